from decimal import Decimal
from pydantic import BaseModel, Field
from typing import Optional

from app.models.inventory import AdjustmentType


class IngredientRequest(BaseModel):
    name: str = Field(..., description="Name of the ingredient (e.g., Bread flour).")
    unit: str = Field(..., description="Unit stock is counted in: g, kg, ml, l, pcs.")
    quantity: float = Field(0, description="Opening stock.")
    cost_per_unit: Decimal = Field(Decimal("0"), ge=0)
    low_stock_threshold: float = Field(0, description="Stock level at or below which a low-stock alert fires.")
    supplier: Optional[str] = None
    notes: Optional[str] = None

class IngredientUpdate(BaseModel):
    """Partial update; stock itself only changes through adjustments."""
    name: Optional[str] = None
    unit: Optional[str] = None
    cost_per_unit: Optional[Decimal] = None
    low_stock_threshold: Optional[float] = None
    supplier: Optional[str] = None
    notes: Optional[str] = None

class StockAdjustmentRequest(BaseModel):
    type: AdjustmentType
    quantity: float = Field(..., description="Positive magnitude; direction comes from `type`.")
    reason: Optional[str] = None
    price_paid: Optional[Decimal] = None
    suppress_event: bool = Field(False, description="Skip the low-stock alert (bulk stocktakes).")

class IngredientResponse(BaseModel):
    id: int
    name: str
    unit: str
    quantity: float
    cost_per_unit: str
    low_stock_threshold: float
    is_low_stock: bool
    supplier: Optional[str] = None
    notes: Optional[str] = None
    updated_at: str

    @classmethod
    def from_model(cls, ingredient) -> "IngredientResponse":
        return cls(
            id=ingredient.id,
            name=ingredient.name,
            unit=ingredient.unit,
            quantity=ingredient.quantity,
            cost_per_unit=str(ingredient.cost_per_unit),
            low_stock_threshold=ingredient.low_stock_threshold,
            is_low_stock=ingredient.quantity <= ingredient.low_stock_threshold,
            supplier=ingredient.supplier,
            notes=ingredient.notes,
            updated_at=str(ingredient.updated_at),
        )

class InventoryLogResponse(BaseModel):
    id: int
    type: str
    quantity: float
    reason: Optional[str] = None
    price_paid: Optional[str] = None
    created_at: str

    @classmethod
    def from_model(cls, entry) -> "InventoryLogResponse":
        return cls(
            id=entry.id,
            type=AdjustmentType(entry.type).value,
            quantity=entry.quantity,
            reason=entry.reason,
            price_paid=str(entry.price_paid) if entry.price_paid is not None else None,
            created_at=str(entry.created_at),
        )
