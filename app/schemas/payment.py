from decimal import Decimal
from pydantic import BaseModel, Field
from typing import Optional

from app.models.payment import PaymentMethod, PaymentRecordStatus


class PaymentRequest(BaseModel):
    order_id: int
    amount: Decimal = Field(..., description="Amount received; must be positive.")
    method: PaymentMethod = PaymentMethod.CASH
    notes: Optional[str] = None

class PaymentResponse(BaseModel):
    id: int
    order_id: int
    amount: str
    method: str
    status: str
    notes: Optional[str] = None
    created_at: str

    @classmethod
    def from_model(cls, payment) -> "PaymentResponse":
        return cls(
            id=payment.id,
            order_id=payment.order_id,
            amount=str(payment.amount),
            method=PaymentMethod(payment.method).value,
            status=PaymentRecordStatus(payment.status).value,
            notes=payment.notes,
            created_at=str(payment.created_at),
        )

class PaymentSummaryResponse(BaseModel):
    total: str
    paid_amount: str
    remaining: str
    status: str

    @classmethod
    def from_summary(cls, summary) -> "PaymentSummaryResponse":
        return cls(
            total=str(summary.total),
            paid_amount=str(summary.paid_amount),
            remaining=str(summary.remaining),
            status=summary.status,
        )
