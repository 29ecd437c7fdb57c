"""Order aggregate: a buyer's priced request to one enterprise.

An order is created ``pending`` by the order builder with name and price
snapshots on every item. After that only the status and the per-item
warehouse assignment ever change; the state machine in
``marketplace.order.status`` decides which moves are legal.
"""

import json
from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from marketplace.domain import marketplace
from marketplace.errors import InvalidTransition, MissingWarehouseAssignment, UnknownOrderItem
from marketplace.order.events import (
    OrderApproved,
    OrderCancelled,
    OrderDelivered,
    OrderPlaced,
    OrderRejected,
    OrderShipped,
)
from marketplace.order.status import OrderStatus, can_transition

TOTAL_TOLERANCE = 0.01


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@marketplace.entity(part_of="Order", limit=None)
class OrderItem:
    """One product line, priced at the moment the order was placed."""

    product_id = Identifier(required=True)
    enterprise_id = Identifier(required=True)
    name = String(required=True, max_length=100)
    quantity = Integer(required=True, min_value=1)
    price_at_order = Float(required=True, min_value=0.0)
    assigned_warehouse = String(max_length=100)

    @property
    def line_total(self) -> float:
        return self.price_at_order * self.quantity


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@marketplace.aggregate
class Order:
    buyer_id = Identifier(required=True)
    enterprise_id = Identifier(required=True)
    items = HasMany(OrderItem)
    total_amount = Float(required=True, min_value=0.0)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def items_must_belong_to_order_enterprise(self):
        for item in self.items:
            if str(item.enterprise_id) != str(self.enterprise_id):
                raise ValidationError({"items": ["All items must belong to the order's enterprise"]})

    @invariant.post
    def total_must_match_items(self):
        if not self.items:
            return
        calculated = sum(item.line_total for item in self.items)
        if abs(calculated - self.total_amount) > TOTAL_TOLERANCE:
            raise ValidationError({"total_amount": ["Total amount must equal the sum of item totals"]})

    @classmethod
    def place(cls, buyer_id, enterprise_id, lines, total_amount):
        """Create a pending order.

        Args:
            lines: list of dicts with product_id, name, quantity and
                price_at_order. Every line belongs to ``enterprise_id``.
        """
        now = datetime.now(UTC)
        order = cls(
            buyer_id=buyer_id,
            enterprise_id=enterprise_id,
            items=[OrderItem(enterprise_id=enterprise_id, **line) for line in lines],
            total_amount=total_amount,
            status=OrderStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                buyer_id=str(buyer_id),
                enterprise_id=str(enterprise_id),
                items=json.dumps(
                    [
                        {
                            "item_id": str(item.id),
                            "product_id": str(item.product_id),
                            "name": item.name,
                            "quantity": item.quantity,
                            "price_at_order": item.price_at_order,
                        }
                        for item in order.items
                    ]
                ),
                item_count=len(order.items),
                total_amount=order.total_amount,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def current_status(self) -> OrderStatus:
        return OrderStatus(self.status)

    def item(self, item_id):
        return next((i for i in self.items if str(i.id) == str(item_id)), None)

    def assert_can_transition(self, target: OrderStatus):
        if not can_transition(self.current_status, target):
            raise InvalidTransition(self.status, target.value)

    def resolve_assignments(self, assignments) -> list[tuple[OrderItem, str]]:
        """Pair every item with its assigned warehouse name.

        Raises when an assignment names an item not on this order, or when
        any item is left without a non-blank warehouse.
        """
        assignments = {str(k): (v or "").strip() for k, v in (assignments or {}).items()}
        for item_id in assignments:
            if self.item(item_id) is None:
                raise UnknownOrderItem(item_id)

        missing = [str(item.id) for item in self.items if not assignments.get(str(item.id))]
        if missing:
            raise MissingWarehouseAssignment(missing)
        return [(item, assignments[str(item.id)]) for item in self.items]

    # -------------------------------------------------------------------
    # Enterprise transitions
    # -------------------------------------------------------------------
    def approve(self, assignments):
        """Record warehouse assignments and mark the order approved.

        Stock must already be reserved for every assignment.
        """
        self.assert_can_transition(OrderStatus.APPROVED)
        resolved = self.resolve_assignments(assignments)

        for item, warehouse_name in resolved:
            item.assigned_warehouse = warehouse_name
        now = datetime.now(UTC)
        self.status = OrderStatus.APPROVED.value
        self.updated_at = now

        self.raise_(
            OrderApproved(
                order_id=str(self.id),
                enterprise_id=str(self.enterprise_id),
                assignments=json.dumps({str(item.id): name for item, name in resolved}),
                approved_at=now,
            )
        )

    def reject(self):
        self.assert_can_transition(OrderStatus.REJECTED)
        now = datetime.now(UTC)
        self.status = OrderStatus.REJECTED.value
        self.updated_at = now

        self.raise_(
            OrderRejected(
                order_id=str(self.id),
                enterprise_id=str(self.enterprise_id),
                rejected_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Admin transitions
    # -------------------------------------------------------------------
    def ship(self, changed_by):
        self.assert_can_transition(OrderStatus.SHIPPED)
        previous, now = self.status, datetime.now(UTC)
        self.status = OrderStatus.SHIPPED.value
        self.updated_at = now
        self.raise_(OrderShipped(order_id=str(self.id), previous_status=previous, changed_by=changed_by, shipped_at=now))

    def deliver(self, changed_by):
        self.assert_can_transition(OrderStatus.DELIVERED)
        previous, now = self.status, datetime.now(UTC)
        self.status = OrderStatus.DELIVERED.value
        self.updated_at = now
        self.raise_(
            OrderDelivered(order_id=str(self.id), previous_status=previous, changed_by=changed_by, delivered_at=now)
        )

    def cancel(self, changed_by):
        self.assert_can_transition(OrderStatus.CANCELLED)
        previous, now = self.status, datetime.now(UTC)
        self.status = OrderStatus.CANCELLED.value
        self.updated_at = now
        self.raise_(
            OrderCancelled(order_id=str(self.id), previous_status=previous, changed_by=changed_by, cancelled_at=now)
        )
