from datetime import date
from pydantic import BaseModel, Field
from typing import List, Optional

from app.models.order import OrderStatus


class OrderItemRequest(BaseModel):
    """Schema for a single line in the order request."""
    recipe_id: int
    quantity: int = Field(..., description="Units ordered; must be positive.")
    unit_price: Optional[str] = Field(None, description="Overrides the recipe's selling price.")
    notes: Optional[str] = None

class OrderRequest(BaseModel):
    """Schema for the order creation request body."""
    customer_id: Optional[int] = Field(None, description="Omit for walk-in orders.")
    items: List[OrderItemRequest]
    notes: Optional[str] = None
    due_date: Optional[date] = None
    recurring_group_id: Optional[str] = None

class OrderUpdate(BaseModel):
    """Partial update. Items and total are fixed at creation."""
    notes: Optional[str] = None
    due_date: Optional[date] = None
    customer_id: Optional[int] = None

class OrderStatusUpdate(BaseModel):
    """Target status by name, e.g. 'in_progress'."""
    status: str

    def to_status(self) -> Optional[OrderStatus]:
        return OrderStatus.__members__.get(self.status.strip().upper())

class OrderItemResponse(BaseModel):
    position: int
    recipe_id: int
    quantity: int
    unit_price: str  # Use string for Decimal type serialization
    line_total: str
    notes: Optional[str] = None

class OrderResponse(BaseModel):
    id: int
    order_number: int
    status: str
    customer_id: Optional[int] = None
    total_amount: str
    notes: Optional[str] = None
    due_date: Optional[date] = None
    recurring_group_id: Optional[str] = None
    items: List[OrderItemResponse]
    created_at: str

    @classmethod
    def from_model(cls, order) -> "OrderResponse":
        return cls(
            id=order.id,
            order_number=order.order_number,
            status=OrderStatus(order.status).label,
            customer_id=order.customer_id,
            total_amount=str(order.total_amount),
            notes=order.notes,
            due_date=order.due_date,
            recurring_group_id=order.recurring_group_id,
            items=[
                OrderItemResponse(
                    position=i.position,
                    recipe_id=i.recipe_id,
                    quantity=i.quantity,
                    unit_price=str(i.unit_price),
                    line_total=str(i.line_total),
                    notes=i.notes,
                )
                for i in order.items
            ],
            created_at=str(order.created_at),
        )

class StatusChangeResponse(BaseModel):
    order: OrderResponse
    previous_status: str
    new_status: str
