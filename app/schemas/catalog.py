from decimal import Decimal
from pydantic import BaseModel, Field
from typing import List, Optional

from app.models.store import LoyaltyTier


class StoreRequest(BaseModel):
    name: str = Field(..., description="Name of the store.")

class StoreResponse(BaseModel):
    id: int
    name: str
    is_active: bool

class CustomerRequest(BaseModel):
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    loyalty_enabled: bool = True
    loyalty_tier: LoyaltyTier = LoyaltyTier.BRONZE

class CustomerResponse(BaseModel):
    id: int
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    loyalty_points: int
    loyalty_enabled: bool
    loyalty_tier: str

    @classmethod
    def from_model(cls, customer) -> "CustomerResponse":
        return cls(
            id=customer.id,
            name=customer.name,
            phone=customer.phone,
            email=customer.email,
            loyalty_points=customer.loyalty_points,
            loyalty_enabled=customer.loyalty_enabled,
            loyalty_tier=LoyaltyTier(customer.loyalty_tier).value,
        )

class RecipeIngredientRequest(BaseModel):
    ingredient_id: int
    quantity: float = Field(..., description="Amount per single unit of the recipe.")
    unit: str

class RecipeRequest(BaseModel):
    name: str
    selling_price: Decimal = Field(Decimal("0"), ge=0)
    ingredients: List[RecipeIngredientRequest] = []

class RecipeResponse(BaseModel):
    id: int
    name: str
    selling_price: str
    is_active: bool
    ingredients: List[RecipeIngredientRequest]

    @classmethod
    def from_model(cls, recipe) -> "RecipeResponse":
        return cls(
            id=recipe.id,
            name=recipe.name,
            selling_price=str(recipe.selling_price),
            is_active=recipe.is_active,
            ingredients=[
                RecipeIngredientRequest(ingredient_id=line.ingredient_id, quantity=line.quantity, unit=line.unit)
                for line in recipe.ingredients
            ],
        )

class NotificationPreferenceRequest(BaseModel):
    event_type: str = Field(..., description="'order_created', 'low_stock' or 'payment_received'.")
    recipient_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    language: str = "en"
    channel_email: bool = True
    channel_sms: bool = False
    channel_whatsapp: bool = False

class NotificationPreferenceResponse(NotificationPreferenceRequest):
    id: int
