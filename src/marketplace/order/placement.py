"""Placing orders: command, handler and the buyer-facing entry point."""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, Text
from protean.utils.globals import current_domain

from marketplace.access.actor import Actor
from marketplace.access.policy import can_place_order, enforce
from marketplace.domain import marketplace
from marketplace.errors import MarketplaceError, PersistenceFailure
from marketplace.order.builder import OrderBuilder
from marketplace.order.order import Order
from marketplace.utils.logging import get_logger
from marketplace.utils.transaction import serialized_writes

logger = get_logger(__name__)


def _cart_payload(cart_items) -> str:
    lines = []
    for entry in cart_items or []:
        if not isinstance(entry, dict):
            entry = {"product_id": getattr(entry, "product_id", None), "quantity": getattr(entry, "quantity", None)}
        lines.append(entry)
    return json.dumps(lines, default=str)


@marketplace.command(part_of="Order")
class PlaceOrder:
    buyer_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of {product_id, quantity}
    total_amount = Float()


@marketplace.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        cart_items = json.loads(command.items)
        order = OrderBuilder().build(command.buyer_id, cart_items, command.total_amount)
        current_domain.repository_for(Order).add(order)
        return str(order.id)


def place_order(actor: Actor, cart_items, claimed_total) -> Order:
    """Build and persist a pending order for a buyer."""
    try:
        enforce(can_place_order(actor))
        command = PlaceOrder(
            buyer_id=actor.id,
            items=_cart_payload(cart_items),
            total_amount=claimed_total,
        )
        with serialized_writes():
            order_id = current_domain.process(command, asynchronous=False)
    except MarketplaceError as exc:
        logger.warning(
            "order_placement_refused",
            buyer_id=actor.id,
            error_type=type(exc).__name__,
            reason=exc.message,
        )
        raise
    except ValidationError:
        raise
    except Exception as exc:
        logger.error("order_persist_failed", buyer_id=actor.id, error=str(exc))
        raise PersistenceFailure("place_order", exc) from exc

    order = current_domain.repository_for(Order).get(order_id)
    logger.info(
        "order_placed",
        order_id=order_id,
        buyer_id=actor.id,
        enterprise_id=str(order.enterprise_id),
        items=len(order.items),
        total_amount=order.total_amount,
    )
    return order
