import logging

from fastapi import APIRouter, Depends, status

from app.api.deps import get_request_id, get_services, get_store_id
from app.core.container import Services
from app.schemas.payment import PaymentRequest, PaymentResponse, PaymentSummaryResponse
from app.schemas.response import SuccessResponse

router = APIRouter()
log = logging.getLogger("api.payments")


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_payment_endpoint(
    payload: PaymentRequest,
    store_id: int = Depends(get_store_id),
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    """Records a payment against an order and accrues loyalty points for its customer."""
    payment = await services.payments.create_payment(
        store_id, payload.order_id, payload.amount, payload.method, notes=payload.notes, correlation_id=request_id
    )
    return SuccessResponse(request_id=request_id, data=PaymentResponse.from_model(payment).model_dump())


@router.post("/{payment_id}/refund", response_model=SuccessResponse)
async def refund_payment_endpoint(
    payment_id: int,
    store_id: int = Depends(get_store_id),
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    """Marks a completed payment refunded and reverses the points it earned."""
    payment = await services.payments.refund_payment(store_id, payment_id, correlation_id=request_id)
    return SuccessResponse(request_id=request_id, data=PaymentResponse.from_model(payment).model_dump())


@router.delete("/{payment_id}", response_model=SuccessResponse)
async def delete_payment_endpoint(
    payment_id: int,
    store_id: int = Depends(get_store_id),
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    await services.payments.delete_payment(store_id, payment_id)
    return SuccessResponse(request_id=request_id, data={"id": payment_id, "deleted": True})


@router.get("/order/{order_id}", response_model=SuccessResponse)
async def list_order_payments_endpoint(
    order_id: int,
    store_id: int = Depends(get_store_id),
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    payments = await services.payments.list_payments(store_id, order_id)
    return SuccessResponse(request_id=request_id, data=[PaymentResponse.from_model(p).model_dump() for p in payments])


@router.get("/order/{order_id}/summary", response_model=SuccessResponse)
async def payment_summary_endpoint(
    order_id: int,
    store_id: int = Depends(get_store_id),
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    """unpaid / partial / paid, derived from the non-refunded payments."""
    summary = await services.payments.get_payment_summary(store_id, order_id)
    return SuccessResponse(request_id=request_id, data=PaymentSummaryResponse.from_summary(summary).model_dump())
