"""FastAPI routes for marketplace orders.

The caller is identified by the ``X-Account-Id`` header and resolved through
the Account repository. Token verification is done upstream.
"""

from fastapi import APIRouter, Depends, Header, HTTPException
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from marketplace.access.actor import Actor
from marketplace.access.policy import is_blocked
from marketplace.account.account import Account, Role
from marketplace.api.schemas import OrderResponse, PlaceOrderRequest, UpdateOrderStatusRequest
from marketplace.errors import AccountBlocked, Forbidden
from marketplace.order.listing import list_orders
from marketplace.order.placement import place_order
from marketplace.order.transitions import update_order_status
from marketplace.utils.logging import add_context


async def current_actor(x_account_id: str | None = Header(default=None)) -> Actor:
    if not x_account_id:
        raise HTTPException(status_code=401, detail="Not authorized, no account")
    try:
        account = current_domain.repository_for(Account).get(x_account_id)
    except ObjectNotFoundError:
        raise HTTPException(status_code=401, detail="Not authorized, account not found")
    actor = Actor.from_account(account)
    add_context(actor_id=actor.id, role=actor.role.value)
    if is_blocked(actor):
        raise AccountBlocked(actor.id)
    return actor


def require_role(*roles: Role):
    async def _checker(actor: Actor = Depends(current_actor)) -> Actor:
        if actor.role not in roles:
            raise Forbidden(
                f"Role {actor.role.value} is not allowed to access this resource",
                role=actor.role.value,
            )
        return actor

    return _checker


def _respond(orders) -> list[OrderResponse]:
    """Order responses with buyer and enterprise summaries, each account loaded once."""
    repo = current_domain.repository_for(Account)
    accounts = {}
    for account_id in {str(o.buyer_id) for o in orders} | {str(o.enterprise_id) for o in orders}:
        try:
            accounts[account_id] = repo.get(account_id)
        except ObjectNotFoundError:
            continue
    return [OrderResponse.from_order(o, accounts) for o in orders]


router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("", status_code=201, response_model=OrderResponse)
async def create_order(body: PlaceOrderRequest, actor: Actor = Depends(require_role(Role.BUYER))) -> OrderResponse:
    order = place_order(
        actor,
        [item.model_dump() for item in body.items],
        body.total_amount,
    )
    return _respond([order])[0]


@router.get("/my-orders", response_model=list[OrderResponse])
async def my_orders(actor: Actor = Depends(require_role(Role.BUYER))) -> list[OrderResponse]:
    return _respond(list_orders(actor))


@router.get("/enterprise-orders", response_model=list[OrderResponse])
async def enterprise_orders(actor: Actor = Depends(require_role(Role.ENTERPRISE))) -> list[OrderResponse]:
    return _respond(list_orders(actor))


@router.get("/all", response_model=list[OrderResponse])
async def all_orders(
    buyerId: str | None = None,  # noqa: N803
    enterpriseId: str | None = None,  # noqa: N803
    actor: Actor = Depends(require_role(Role.ADMIN)),
) -> list[OrderResponse]:
    return _respond(list_orders(actor, buyer_id=buyerId, enterprise_id=enterpriseId))


@router.put("/{order_id}/status", response_model=OrderResponse)
async def change_order_status(
    order_id: str,
    body: UpdateOrderStatusRequest,
    actor: Actor = Depends(current_actor),
) -> OrderResponse:
    order = update_order_status(actor, order_id, body.status, assignments=body.assignments())
    return _respond([order])[0]
