"""Order status updates, the entry point of the fulfillment state machine.

Approval is the only transition that moves stock. The order row and every
product it draws from are locked in one transaction: the ledger reserves all
assigned lines and the approved order is saved in the same commit, so stock
and order status never disagree.
"""

from protean.exceptions import ExpectedVersionError, ObjectNotFoundError
from protean.utils.globals import current_domain

from marketplace.access.actor import Actor
from marketplace.access.policy import can_act_on_order, enforce
from marketplace.errors import MarketplaceError, OrderNotFound, PersistenceFailure
from marketplace.inventory.ledger import Allocation, ledger
from marketplace.order.order import Order
from marketplace.order.status import OrderStatus, parse_status
from marketplace.utils.logging import get_logger
from marketplace.utils.transaction import atomic, lock_rows

logger = get_logger(__name__)

_ADMIN_ACTIONS = {
    OrderStatus.SHIPPED: Order.ship,
    OrderStatus.DELIVERED: Order.deliver,
    OrderStatus.CANCELLED: Order.cancel,
}


def _save(order: Order, operation: str) -> None:
    try:
        current_domain.repository_for(Order).add(order)
    except (MarketplaceError, ExpectedVersionError):
        raise
    except Exception as exc:
        logger.error("order_persist_failed", order_id=str(order.id), operation=operation, error=str(exc))
        raise PersistenceFailure(operation, exc) from exc


def _approve(order: Order, assignments) -> None:
    order.assert_can_transition(OrderStatus.APPROVED)
    resolved = order.resolve_assignments(assignments)
    ledger.reserve_all(
        [
            Allocation(
                product_id=str(item.product_id),
                warehouse_name=warehouse_name,
                quantity=item.quantity,
                reference=str(order.id),
            )
            for item, warehouse_name in resolved
        ]
    )
    order.approve(assignments)
    _save(order, "approve_order")


def update_order_status(actor: Actor, order_id, target_status, assignments=None) -> Order:
    """Move an order to ``target_status`` on behalf of ``actor``.

    Args:
        assignments: ``{item_id: warehouse_name}`` for every item; required
            when approving.
    """
    log = logger.bind(order_id=str(order_id), actor_id=actor.id, target_status=str(target_status))

    try:
        target = parse_status(target_status)
        with atomic(f"{target.value}_order"):
            lock_rows(Order, [order_id])
            try:
                order = current_domain.repository_for(Order).get(order_id)
            except ObjectNotFoundError:
                raise OrderNotFound(str(order_id))

            enforce(can_act_on_order(actor, order, target.value))
            previous = order.status

            if target == OrderStatus.APPROVED:
                _approve(order, assignments)
            elif target == OrderStatus.REJECTED:
                order.reject()
                _save(order, "reject_order")
            else:
                _ADMIN_ACTIONS[target](order, actor.id)
                _save(order, f"{target.value}_order")
    except MarketplaceError as exc:
        log.warning("order_status_update_refused", error_type=type(exc).__name__, reason=exc.message)
        raise

    log.info("order_status_updated", previous_status=previous, status=order.status)
    return order
