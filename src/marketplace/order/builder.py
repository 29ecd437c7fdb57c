"""Order builder: turns a buyer's cart into a priced, pending order.

The first product in the cart fixes the order's enterprise. Every later
product must belong to the same enterprise, or no order is created. Totals
are always computed from current product prices; the buyer's claimed total
is only accepted when it agrees within ``TOTAL_TOLERANCE``.

No stock is reserved here. That happens when the enterprise approves.
"""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from marketplace.access.policy import is_approved_enterprise
from marketplace.account.account import Account
from marketplace.errors import (
    EmptyOrder,
    EnterpriseNotApproved,
    MissingEnterpriseLink,
    MixedEnterpriseOrder,
    ProductNotFound,
    ProductUnavailable,
    TotalMismatch,
)
from marketplace.order.order import TOTAL_TOLERANCE, Order
from marketplace.product.product import Product
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


def _line(entry):
    if isinstance(entry, dict):
        return entry.get("product_id"), entry.get("quantity")
    return getattr(entry, "product_id", None), getattr(entry, "quantity", None)


def _is_quantity(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 1


class OrderBuilder:
    def build(self, buyer_id, cart_items, claimed_total) -> Order:
        """Validate ``cart_items`` and return an unsaved pending ``Order``.

        Args:
            cart_items: iterable of dicts (or objects) with product_id and
                quantity.
            claimed_total: the total the buyer saw.
        """
        lines = [_line(entry) for entry in cart_items or []]
        if not lines or not all(pid and _is_quantity(qty) for pid, qty in lines):
            raise EmptyOrder()

        products = current_domain.repository_for(Product)
        enterprise_id = None
        order_lines = []
        calculated = 0.0

        for product_id, quantity in lines:
            try:
                product = products.get(product_id)
            except ObjectNotFoundError:
                raise ProductNotFound(product_id)

            if not product.enterprise_id:
                logger.error("product_missing_enterprise", product_id=product_id, buyer_id=buyer_id)
                raise MissingEnterpriseLink(product_id, product.name)

            if enterprise_id is None:
                enterprise_id = str(product.enterprise_id)
            elif str(product.enterprise_id) != enterprise_id:
                raise MixedEnterpriseOrder(enterprise_id, str(product.enterprise_id), product_id)

            if not product.is_available:
                raise ProductUnavailable(product_id, product.name)

            calculated += product.price * quantity
            order_lines.append(
                {
                    "product_id": product_id,
                    "name": product.name,
                    "quantity": quantity,
                    "price_at_order": product.price,
                }
            )

        self._check_enterprise(enterprise_id)

        if claimed_total is None or abs(calculated - float(claimed_total)) > TOTAL_TOLERANCE:
            raise TotalMismatch(calculated, claimed_total)

        return Order.place(
            buyer_id=buyer_id,
            enterprise_id=enterprise_id,
            lines=order_lines,
            total_amount=round(calculated, 2),
        )

    @staticmethod
    def _check_enterprise(enterprise_id):
        try:
            enterprise = current_domain.repository_for(Account).get(enterprise_id)
        except ObjectNotFoundError:
            enterprise = None
        if not is_approved_enterprise(enterprise):
            raise EnterpriseNotApproved(enterprise_id)
