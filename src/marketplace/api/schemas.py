"""Pydantic request/response schemas for the Orders API.

These are external contracts, kept separate from the Order aggregate.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------
class CartItemSchema(BaseModel):
    product_id: str
    quantity: int


class PlaceOrderRequest(BaseModel):
    items: list[CartItemSchema] = Field(default_factory=list)
    total_amount: float

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "items": [{"product_id": "prod-001", "quantity": 3}],
                    "total_amount": 30.0,
                }
            ]
        }
    }


class WarehouseAssignmentSchema(BaseModel):
    item_id: str
    assigned_warehouse: str | None = None


class UpdateOrderStatusRequest(BaseModel):
    status: str
    items: list[WarehouseAssignmentSchema] = Field(default_factory=list)

    def assignments(self) -> dict[str, str | None]:
        return {item.item_id: item.assigned_warehouse for item in self.items}


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------
class OrderItemResponse(BaseModel):
    id: str
    product_id: str
    name: str
    quantity: int
    price_at_order: float
    assigned_warehouse: str | None = None


class BuyerSummary(BaseModel):
    id: str
    name: str
    email: str


class EnterpriseSummary(BaseModel):
    id: str
    name: str


class OrderResponse(BaseModel):
    id: str
    buyer_id: str
    enterprise_id: str
    buyer: BuyerSummary | None = None
    enterprise: EnterpriseSummary | None = None
    items: list[OrderItemResponse]
    total_amount: float
    status: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_order(cls, order, accounts: dict | None = None) -> "OrderResponse":
        """Build the response; ``accounts`` maps account id to Account for the summaries."""
        accounts = accounts or {}
        buyer = accounts.get(str(order.buyer_id))
        enterprise = accounts.get(str(order.enterprise_id))
        return cls(
            id=str(order.id),
            buyer_id=str(order.buyer_id),
            enterprise_id=str(order.enterprise_id),
            buyer=BuyerSummary(id=str(buyer.id), name=buyer.name, email=buyer.email) if buyer else None,
            enterprise=EnterpriseSummary(id=str(enterprise.id), name=enterprise.name) if enterprise else None,
            items=[
                OrderItemResponse(
                    id=str(item.id),
                    product_id=str(item.product_id),
                    name=item.name,
                    quantity=item.quantity,
                    price_at_order=item.price_at_order,
                    assigned_warehouse=item.assigned_warehouse or None,
                )
                for item in order.items
            ],
            total_amount=order.total_amount,
            status=order.status,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )
