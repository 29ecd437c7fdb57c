"""Error taxonomy for the marketplace.

Every business failure is a ``MarketplaceError``. The category classes
(``OrderValidationError``, ``NotFound``, ``Forbidden``, ``Conflict``,
``InternalError``) decide how a caller should react; the leaf classes carry
the detail a caller needs to correct the request and retry.
"""


class MarketplaceError(Exception):
    """Base exception for all marketplace errors."""

    def __init__(self, message: str, **detail):
        self.message = message
        self.detail = detail
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"error_type": type(self).__name__, "detail": self.message, **self.detail}


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------
class OrderValidationError(MarketplaceError):
    """Malformed or inconsistent request data the caller can fix."""


class NotFound(MarketplaceError):
    """A referenced product or order does not exist."""


class Forbidden(MarketplaceError):
    """The actor's role or ownership does not permit the action."""


class Conflict(MarketplaceError):
    """The request violates a business rule given the current state."""


class InternalError(MarketplaceError):
    """Data-integrity or persistence failure. Opaque to the caller."""

    public_message = "Internal error processing the request"

    def to_dict(self) -> dict:
        return {"error_type": type(self).__name__, "detail": self.public_message}


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------
class EmptyOrder(OrderValidationError):
    def __init__(self):
        super().__init__("No order items")


class TotalMismatch(OrderValidationError):
    def __init__(self, calculated: float, claimed: float):
        super().__init__(
            "Calculated total amount does not match provided total amount.",
            calculated=round(calculated, 2),
            claimed=claimed,
        )


class MissingWarehouseAssignment(OrderValidationError):
    def __init__(self, item_ids: list[str] | None = None):
        super().__init__(
            "Assigned warehouses are required for all items before approval.",
            item_ids=item_ids or [],
        )


class UnknownOrderItem(OrderValidationError):
    def __init__(self, item_id: str):
        super().__init__(f"Order item not found: {item_id}", item_id=item_id)


class UnknownStatus(OrderValidationError):
    def __init__(self, status: str):
        super().__init__(f"Unknown order status: {status}", status=status)


# ---------------------------------------------------------------------------
# Not found
# ---------------------------------------------------------------------------
class ProductNotFound(NotFound):
    def __init__(self, product_id: str):
        super().__init__(f"Product not found: {product_id}", product_id=product_id)


class OrderNotFound(NotFound):
    def __init__(self, order_id: str):
        super().__init__("Order not found", order_id=order_id)


# ---------------------------------------------------------------------------
# Forbidden
# ---------------------------------------------------------------------------
class AccountBlocked(Forbidden):
    def __init__(self, account_id: str):
        super().__init__(
            "Your account has been blocked. Please contact an administrator.",
            account_id=account_id,
        )


class EnterpriseNotApproved(Forbidden):
    def __init__(self, enterprise_id: str):
        super().__init__(
            "This enterprise account is not approved.",
            enterprise_id=enterprise_id,
        )


# ---------------------------------------------------------------------------
# Conflict
# ---------------------------------------------------------------------------
class MixedEnterpriseOrder(Conflict):
    def __init__(self, expected_enterprise_id: str, found_enterprise_id: str, product_id: str):
        super().__init__(
            "All items in one order must belong to the same enterprise.",
            expected_enterprise_id=expected_enterprise_id,
            found_enterprise_id=found_enterprise_id,
            product_id=product_id,
        )


class ProductUnavailable(Conflict):
    def __init__(self, product_id: str, name: str):
        super().__init__(
            f'Product "{name}" is not available for purchase.',
            product_id=product_id,
        )


class WarehouseNotFound(Conflict):
    def __init__(self, product_id: str, warehouse_name: str, product_name: str | None = None):
        super().__init__(
            f"Warehouse '{warehouse_name}' not found for product {product_name or product_id}. "
            "Please ensure the warehouse exists.",
            product_id=product_id,
            warehouse=warehouse_name,
        )


class InsufficientStock(Conflict):
    def __init__(
        self,
        product_id: str,
        warehouse_name: str,
        available: int,
        needed: int,
        item_name: str | None = None,
    ):
        self.available = available
        self.needed = needed
        label = item_name or product_id
        super().__init__(
            f"Insufficient stock for {label} in warehouse '{warehouse_name}'. "
            f"Available: {available}, Needed: {needed}",
            product_id=product_id,
            item=item_name,
            warehouse=warehouse_name,
            available=available,
            needed=needed,
        )


class InvalidTransition(Conflict):
    def __init__(self, current: str, target: str):
        super().__init__(
            f"Cannot transition order from {current} to {target}",
            current_status=current,
            target_status=target,
        )


class ConcurrentUpdate(Conflict):
    def __init__(self, reason: str):
        super().__init__("The record was changed by another request. Please retry.", reason=reason)


# ---------------------------------------------------------------------------
# Internal
# ---------------------------------------------------------------------------
class MissingEnterpriseLink(InternalError):
    def __init__(self, product_id: str, name: str):
        super().__init__(
            f'Product "{name}" is missing enterprise information.',
            product_id=product_id,
        )


class PersistenceFailure(InternalError):
    def __init__(self, operation: str, cause: Exception):
        self.cause = cause
        super().__init__(f"Persistence failure during {operation}: {cause}", operation=operation)
