import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List, Optional

from app.core.errors import AppError, ConflictError, NotFoundError, ValidationError
from app.events.event_bus import DomainEvent, EventBus
from app.events.event_names import EventNames
from app.models.order import Order
from app.models.payment import Payment, PaymentMethod, PaymentRecordStatus
from app.services.loyalty_service import LoyaltyService

log = logging.getLogger("payment_service")

UNPAID = "unpaid"
PARTIAL = "partial"
PAID = "paid"


@dataclass
class PaymentSummary:
    total: Decimal
    paid_amount: Decimal
    remaining: Decimal
    status: str


def summarize_payments(total: Any, payments: Iterable[Any]) -> PaymentSummary:
    """
    Derives an order's payment status from its payment rows. Refunded rows do not
    count. Everything is summed as Decimal, so a payment equal to the total is
    exactly `paid`.
    """
    order_total = Decimal(str(total))
    paid = sum(
        (Decimal(str(p.amount)) for p in payments if PaymentRecordStatus(p.status) != PaymentRecordStatus.REFUNDED),
        Decimal("0"),
    )
    if paid <= 0:
        status = UNPAID
    elif paid >= order_total:
        status = PAID
    else:
        status = PARTIAL
    return PaymentSummary(
        total=order_total,
        paid_amount=paid,
        remaining=max(order_total - paid, Decimal("0")),
        status=status,
    )


class PaymentService:

    def __init__(self, payment_repository, order_repository, loyalty_service: LoyaltyService, event_bus: EventBus):
        self._payments = payment_repository
        self._orders = order_repository
        self._loyalty = loyalty_service
        self._bus = event_bus

    async def create_payment(
        self,
        store_id: int,
        order_id: int,
        amount: Any,
        method: PaymentMethod = PaymentMethod.CASH,
        notes: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> Payment:
        try:
            value = Decimal(str(amount))
        except InvalidOperation:
            raise ValidationError(f"Invalid payment amount: {amount}")
        if value <= 0:
            raise ValidationError("Payment amount must be positive")
        try:
            payment_method = PaymentMethod(method)
        except ValueError:
            raise ValidationError(f"Unsupported payment method: {method}")

        order = await self._require_order(store_id, order_id)
        payment = await self._payments.create(store_id, order_id, value, payment_method, notes=notes)
        log.info(f"Payment {payment.id} of {value} recorded for order {order_id}.")

        if order.customer_id is not None:
            try:
                await self._loyalty.award_points_for_payment(store_id, order.customer_id, payment.id, value)
            except AppError as e:
                log.error(f"Loyalty award for payment {payment.id} failed: {e.message}")

        summary = summarize_payments(order.total_amount, await self._payments.find_by_order(store_id, order_id))
        self._publish(EventNames.PAYMENT_RECEIVED, {
            "storeId": store_id,
            "paymentId": payment.id,
            "orderId": order_id,
            "orderNumber": order.order_number,
            "customerName": _customer_name(order),
            "amount": str(value),
            "method": payment_method.value,
            "paymentStatus": summary.status,
        }, correlation_id)
        return payment

    async def refund_payment(self, store_id: int, payment_id: int, correlation_id: Optional[str] = None) -> Payment:
        existing = await self._payments.find_by_id(store_id, payment_id)
        if existing is None:
            raise NotFoundError("Payment not found")

        payment = await self._payments.mark_refunded(store_id, payment_id)
        if payment is None:
            raise ConflictError("Payment is already refunded", data={"paymentId": payment_id})

        order = await self._orders.find_by_id(store_id, payment.order_id)
        if order is not None and order.customer_id is not None:
            try:
                await self._loyalty.reverse_points_for_payment(store_id, order.customer_id, payment_id)
            except ConflictError as e:
                log.warning(f"Skipping loyalty reversal for payment {payment_id}: {e.message}")

        self._publish(EventNames.PAYMENT_REFUNDED, {
            "storeId": store_id,
            "paymentId": payment_id,
            "orderId": payment.order_id,
            "amount": str(payment.amount),
        }, correlation_id)
        return payment

    async def delete_payment(self, store_id: int, payment_id: int) -> None:
        if await self._payments.find_by_id(store_id, payment_id) is None:
            raise NotFoundError("Payment not found")
        await self._payments.delete(store_id, payment_id)

    async def list_payments(self, store_id: int, order_id: int) -> List[Payment]:
        await self._require_order(store_id, order_id)
        return await self._payments.find_by_order(store_id, order_id)

    async def get_payment_summary(self, store_id: int, order_id: int) -> PaymentSummary:
        order = await self._require_order(store_id, order_id)
        return summarize_payments(order.total_amount, await self._payments.find_by_order(store_id, order_id))

    async def _require_order(self, store_id: int, order_id: int) -> Order:
        order = await self._orders.find_by_id(store_id, order_id)
        if order is None:
            raise NotFoundError("Order not found")
        return order

    def _publish(self, event_name: str, payload, correlation_id: Optional[str]) -> None:
        try:
            self._bus.publish_detached(DomainEvent(event_name=event_name, payload=payload, correlation_id=correlation_id))
        except Exception as e:
            log.error(f"Could not schedule {event_name} (correlation_id={correlation_id}): {e!r}")


def _customer_name(order) -> Optional[str]:
    customer = getattr(order, "customer", None)
    return getattr(customer, "name", None) if customer is not None else None
