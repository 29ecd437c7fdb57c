"""Order statuses and the transitions between them.

State Machine:
    PENDING → APPROVED → SHIPPED → DELIVERED
    PENDING → REJECTED
    APPROVED → CANCELLED

Enterprises move orders out of PENDING only. Admin targets (SHIPPED,
DELIVERED, CANCELLED) are reachable from any status.
"""

from enum import Enum

from marketplace.errors import UnknownStatus


class OrderStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# Target → statuses the target may be entered from. ``None`` means any.
_ALLOWED_SOURCES = {
    OrderStatus.APPROVED: {OrderStatus.PENDING},
    OrderStatus.REJECTED: {OrderStatus.PENDING},
    OrderStatus.SHIPPED: None,
    OrderStatus.DELIVERED: None,
    OrderStatus.CANCELLED: None,
}


def parse_status(value) -> OrderStatus:
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(str(value).strip().lower())
    except ValueError:
        raise UnknownStatus(str(value))


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    if target not in _ALLOWED_SOURCES:
        return False
    sources = _ALLOWED_SOURCES[target]
    return sources is None or current in sources
