"""Product aggregate with per-warehouse stock.

A product belongs to exactly one enterprise and keeps its stock split across
named warehouses. Creating and editing products is the catalogue's job; the
marketplace only moves stock in and out of warehouses as orders are approved
(or as an approval is rolled back).

Stock Model:
    warehouses:  ordered list of (warehouse_name, stock_level)
    total_stock: sum of stock_level across all warehouses
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String

from marketplace.domain import marketplace
from marketplace.errors import InsufficientStock, WarehouseNotFound
from marketplace.product.events import StockReleased, StockReserved


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@marketplace.entity(part_of="Product", limit=None)
class Warehouse:
    """A named stock pool for one product."""

    warehouse_name = String(required=True, max_length=100)
    stock_level = Integer(required=True, min_value=0, default=0)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@marketplace.aggregate
class Product:
    """A sellable product owned by one enterprise."""

    name = String(required=True, max_length=100)
    description = String(max_length=500)
    price = Float(required=True, min_value=0.0, default=0.0)
    enterprise_id = Identifier()
    is_available = Boolean(default=True)
    warehouses = HasMany(Warehouse)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def warehouse_names_must_be_unique(self):
        names = [w.warehouse_name for w in self.warehouses]
        if len(names) != len(set(names)):
            raise ValidationError({"warehouses": ["Warehouse names must be unique within a product"]})

    @classmethod
    def create(cls, name, price, enterprise_id, warehouses=None, description=None, is_available=True):
        """Create a product with its initial warehouse stock.

        Args:
            warehouses: list of dicts with warehouse_name and stock_level.
        """
        now = datetime.now(UTC)
        product = cls(
            name=name.strip() if name else name,
            description=description,
            price=price,
            enterprise_id=enterprise_id,
            is_available=is_available,
            created_at=now,
            updated_at=now,
        )
        for warehouse in warehouses or []:
            product.add_warehouse(warehouse["warehouse_name"], warehouse.get("stock_level", 0))
        return product

    # -------------------------------------------------------------------
    # Warehouses
    # -------------------------------------------------------------------
    @property
    def total_stock(self) -> int:
        return sum(w.stock_level for w in self.warehouses)

    def warehouse_named(self, warehouse_name):
        """Return the warehouse with this name, or None."""
        return next((w for w in self.warehouses if w.warehouse_name == warehouse_name), None)

    def add_warehouse(self, warehouse_name, stock_level=0):
        warehouse_name = (warehouse_name or "").strip()
        if not warehouse_name:
            raise ValidationError({"warehouse_name": ["Warehouse name is required"]})
        if self.warehouse_named(warehouse_name) is not None:
            raise ValidationError({"warehouses": [f"Warehouse '{warehouse_name}' already exists"]})

        warehouse = Warehouse(warehouse_name=warehouse_name, stock_level=stock_level)
        self.add_warehouses(warehouse)
        self.updated_at = datetime.now(UTC)
        return warehouse

    def _require_warehouse(self, warehouse_name):
        warehouse = self.warehouse_named(warehouse_name)
        if warehouse is None:
            raise WarehouseNotFound(str(self.id), warehouse_name, product_name=self.name)
        return warehouse

    # -------------------------------------------------------------------
    # Stock movements
    # -------------------------------------------------------------------
    def check_stock(self, warehouse_name, quantity):
        """Raise if ``quantity`` cannot be deducted from the warehouse right now."""
        warehouse = self._require_warehouse(warehouse_name)
        if warehouse.stock_level < quantity:
            raise InsufficientStock(
                str(self.id),
                warehouse_name,
                available=warehouse.stock_level,
                needed=quantity,
                item_name=self.name,
            )
        return warehouse

    def deduct_stock(self, warehouse_name, quantity, reference=None):
        """Take ``quantity`` units out of a warehouse. Fails without mutation."""
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        warehouse = self.check_stock(warehouse_name, quantity)
        previous = warehouse.stock_level
        warehouse.stock_level = previous - quantity
        now = datetime.now(UTC)
        self.updated_at = now

        self.raise_(
            StockReserved(
                product_id=str(self.id),
                warehouse_name=warehouse_name,
                quantity=quantity,
                previous_stock_level=previous,
                new_stock_level=warehouse.stock_level,
                reference=reference,
                reserved_at=now,
            )
        )

    def restore_stock(self, warehouse_name, quantity, reference=None):
        """Put ``quantity`` units back into a warehouse."""
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        warehouse = self._require_warehouse(warehouse_name)
        previous = warehouse.stock_level
        warehouse.stock_level = previous + quantity
        now = datetime.now(UTC)
        self.updated_at = now

        self.raise_(
            StockReleased(
                product_id=str(self.id),
                warehouse_name=warehouse_name,
                quantity=quantity,
                previous_stock_level=previous,
                new_stock_level=warehouse.stock_level,
                reference=reference,
                released_at=now,
            )
        )
