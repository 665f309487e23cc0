from decimal import Decimal
from typing import List, Optional

from tortoise import timezone

from app.models.payment import Payment, PaymentMethod, PaymentRecordStatus


class PaymentRepository:

    async def find_by_id(self, store_id: int, payment_id: int) -> Optional[Payment]:
        return await Payment.get_or_none(id=payment_id, store_id=store_id)

    async def find_by_order(self, store_id: int, order_id: int) -> List[Payment]:
        return await Payment.filter(store_id=store_id, order_id=order_id).order_by("created_at", "id")

    async def create(
        self,
        store_id: int,
        order_id: int,
        amount: Decimal,
        method: PaymentMethod,
        notes: Optional[str] = None,
    ) -> Payment:
        return await Payment.create(
            store_id=store_id,
            order_id=order_id,
            amount=amount,
            method=method,
            status=PaymentRecordStatus.COMPLETED,
            notes=notes,
        )

    async def mark_refunded(self, store_id: int, payment_id: int) -> Optional[Payment]:
        """Flips completed -> refunded. Returns None if the row was not in `completed`."""
        updated = await Payment.filter(
            id=payment_id, store_id=store_id, status=PaymentRecordStatus.COMPLETED
        ).update(status=PaymentRecordStatus.REFUNDED, updated_at=timezone.now())
        if not updated:
            return None
        return await self.find_by_id(store_id, payment_id)

    async def delete(self, store_id: int, payment_id: int) -> None:
        await Payment.filter(id=payment_id, store_id=store_id).delete()
