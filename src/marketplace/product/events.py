"""Domain events for the Product aggregate's warehouse stock."""

from protean.fields import DateTime, Identifier, Integer, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Product")
class StockReserved:
    """Stock was deducted from one of a product's warehouses."""

    __version__ = 1

    product_id = Identifier(required=True)
    warehouse_name = String(required=True)
    quantity = Integer(required=True)
    previous_stock_level = Integer(required=True)
    new_stock_level = Integer(required=True)
    reference = String()
    reserved_at = DateTime(required=True)


@marketplace.event(part_of="Product")
class StockReleased:
    """Previously deducted stock was returned to a warehouse."""

    __version__ = 1

    product_id = Identifier(required=True)
    warehouse_name = String(required=True)
    quantity = Integer(required=True)
    previous_stock_level = Integer(required=True)
    new_stock_level = Integer(required=True)
    reference = String()
    released_at = DateTime(required=True)
