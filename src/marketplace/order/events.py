"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from marketplace.domain import marketplace


@marketplace.event(part_of="Order")
class OrderPlaced:
    """A buyer placed an order with one enterprise. No stock was moved."""

    __version__ = 1

    order_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    enterprise_id = Identifier(required=True)
    items = Text(required=True)  # JSON: [{item_id, product_id, name, quantity, price_at_order}]
    item_count = Integer(required=True)
    total_amount = Float(required=True)
    placed_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderApproved:
    """The enterprise approved the order and stock was reserved."""

    __version__ = 1

    order_id = Identifier(required=True)
    enterprise_id = Identifier(required=True)
    assignments = Text(required=True)  # JSON: {item_id: warehouse_name}
    approved_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderRejected:
    __version__ = 1

    order_id = Identifier(required=True)
    enterprise_id = Identifier(required=True)
    rejected_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderShipped:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    changed_by = Identifier(required=True)
    shipped_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderDelivered:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    changed_by = Identifier(required=True)
    delivered_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    changed_by = Identifier(required=True)
    cancelled_at = DateTime(required=True)
