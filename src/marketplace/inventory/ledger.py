"""Inventory ledger: atomic reserve/release of per-warehouse product stock.

The ledger is the only contended resource in the marketplace. Every
read-check-write cycle on a product runs in one transaction that holds the
product's row lock, so two approvals competing for the last units of a
warehouse never both succeed, even from different worker processes.
Multi-line reservations lock their products in sorted order.

Products are persisted as whole aggregates, so the lock covers the product
rather than a single warehouse: a concurrent write to a sibling warehouse
would otherwise overwrite the deduction.
"""

from collections import defaultdict
from dataclasses import dataclass

from protean.exceptions import ExpectedVersionError, ObjectNotFoundError
from protean.utils.globals import current_domain

from marketplace.errors import MarketplaceError, PersistenceFailure, ProductNotFound
from marketplace.product.product import Product
from marketplace.utils.logging import get_logger
from marketplace.utils.transaction import atomic, lock_rows

logger = get_logger(__name__)


@dataclass(frozen=True)
class Allocation:
    """A request to move ``quantity`` units of a product in one warehouse."""

    product_id: str
    warehouse_name: str
    quantity: int
    reference: str | None = None


@dataclass(frozen=True)
class Reservation:
    """The outcome of a successful reserve or release."""

    product_id: str
    warehouse_name: str
    quantity: int
    stock_level: int
    reference: str | None = None


def _by_product(lines) -> dict[str, list]:
    grouped = defaultdict(list)
    for line in lines:
        grouped[line.product_id].append(line)
    return grouped


class InventoryLedger:
    @staticmethod
    def _load(product_id: str) -> Product:
        try:
            return current_domain.repository_for(Product).get(product_id)
        except ObjectNotFoundError:
            raise ProductNotFound(product_id)

    @staticmethod
    def _persist(product: Product, operation: str) -> None:
        try:
            current_domain.repository_for(Product).add(product)
        except (MarketplaceError, ExpectedVersionError):
            raise
        except Exception as exc:
            logger.error(
                "stock_persist_failed",
                operation=operation,
                product_id=str(product.id),
                error=str(exc),
            )
            raise PersistenceFailure(operation, exc) from exc

    def _locked(self, product_ids) -> dict[str, Product]:
        lock_rows(Product, product_ids)
        return {product_id: self._load(product_id) for product_id in sorted(product_ids)}

    # -------------------------------------------------------------------
    # Single line
    # -------------------------------------------------------------------
    def reserve(self, product_id, warehouse_name, quantity, reference=None) -> Reservation:
        """Deduct ``quantity`` units, or fail without touching stock."""
        return self.reserve_all([Allocation(product_id, warehouse_name, quantity, reference)])[0]

    def release(self, product_id, warehouse_name, quantity, reference=None) -> Reservation:
        """Return ``quantity`` units to the warehouse."""
        return self.release_all([Reservation(product_id, warehouse_name, quantity, 0, reference)])[0]

    # -------------------------------------------------------------------
    # Multi line
    # -------------------------------------------------------------------
    def reserve_all(self, allocations: list[Allocation]) -> list[Reservation]:
        """Reserve every allocation, or none of them.

        Every line is checked against the combined demand on its warehouse
        before anything is deducted. A failure while writing rolls the whole
        transaction back, so no product keeps a partial deduction.
        """
        if not allocations:
            return []

        by_product = _by_product(allocations)

        with atomic("reserve_all"):
            products = self._locked(by_product)

            # Validate
            for product_id, lines in by_product.items():
                demand: dict[str, int] = defaultdict(int)
                for line in lines:
                    demand[line.warehouse_name] += line.quantity
                    products[product_id].check_stock(line.warehouse_name, demand[line.warehouse_name])

            # Mutate
            for product_id, lines in by_product.items():
                for line in lines:
                    products[product_id].deduct_stock(line.warehouse_name, line.quantity, reference=line.reference)

            for product_id in sorted(by_product):
                self._persist(products[product_id], "reserve_all")

            reservations = [
                Reservation(
                    line.product_id,
                    line.warehouse_name,
                    line.quantity,
                    products[line.product_id].warehouse_named(line.warehouse_name).stock_level,
                    line.reference,
                )
                for line in allocations
            ]

        for r in reservations:
            logger.info(
                "stock_reserved",
                product_id=r.product_id,
                warehouse=r.warehouse_name,
                quantity=r.quantity,
                stock_level=r.stock_level,
                reference=r.reference,
            )
        return reservations

    def release_all(self, reservations: list[Reservation]) -> list[Reservation]:
        """Give back previously reserved stock in one transaction."""
        if not reservations:
            return []

        by_product = _by_product(reservations)

        with atomic("release_all"):
            products = self._locked(by_product)
            for product_id in sorted(by_product):
                for line in by_product[product_id]:
                    products[product_id].restore_stock(line.warehouse_name, line.quantity, reference=line.reference)
                self._persist(products[product_id], "release_all")

            released = [
                Reservation(
                    r.product_id,
                    r.warehouse_name,
                    r.quantity,
                    products[r.product_id].warehouse_named(r.warehouse_name).stock_level,
                    r.reference,
                )
                for r in reservations
            ]

        for r in released:
            logger.info(
                "stock_released",
                product_id=r.product_id,
                warehouse=r.warehouse_name,
                quantity=r.quantity,
                stock_level=r.stock_level,
                reference=r.reference,
            )
        return released


ledger = InventoryLedger()
