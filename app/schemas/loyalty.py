from decimal import Decimal
from pydantic import BaseModel, Field
from typing import List, Optional

from app.models.loyalty import LoyaltyTransactionType


class LoyaltyConfigUpdate(BaseModel):
    is_active: Optional[bool] = None
    points_per_unit: Optional[Decimal] = Field(None, description="Points earned per currency unit paid.")
    point_value: Optional[Decimal] = Field(None, description="Currency value of one point.")
    min_redeem_points: Optional[int] = None

class LoyaltyConfigResponse(BaseModel):
    is_active: bool
    points_per_unit: str
    point_value: str
    min_redeem_points: int

    @classmethod
    def from_settings(cls, settings) -> "LoyaltyConfigResponse":
        return cls(
            is_active=settings.is_active,
            points_per_unit=str(settings.points_per_unit),
            point_value=str(settings.point_value),
            min_redeem_points=settings.min_redeem_points,
        )

class PointsRequest(BaseModel):
    """`points` is positive for redemptions and signed for adjustments."""
    points: int
    description: Optional[str] = None

class LoyaltyTransactionResponse(BaseModel):
    id: int
    customer_id: int
    payment_id: Optional[int] = None
    type: str
    points: int
    balance_after: int
    description: Optional[str] = None
    value: Optional[str] = None  # Currency value, set on redemptions
    created_at: str

    @classmethod
    def from_model(cls, tx) -> "LoyaltyTransactionResponse":
        return cls(
            id=tx.id,
            customer_id=tx.customer_id,
            payment_id=tx.payment_id,
            type=LoyaltyTransactionType(tx.type).value,
            points=tx.points,
            balance_after=tx.balance_after,
            description=tx.description,
            value=str(tx.value) if tx.value is not None else None,
            created_at=str(tx.created_at),
        )

class LoyaltyBalanceResponse(BaseModel):
    balance: int
    lifetime_earned: int
    lifetime_redeemed: int

class LoyaltyTransactionPage(BaseModel):
    items: List[LoyaltyTransactionResponse]
    total: int
    limit: int
    offset: int
