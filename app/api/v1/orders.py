import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_request_id, get_services, get_store_id
from app.core.container import Services
from app.core.errors import ValidationError
from app.models.order import OrderStatus
from app.schemas.order import OrderRequest, OrderResponse, OrderStatusUpdate, OrderUpdate, StatusChangeResponse
from app.schemas.response import SuccessResponse

router = APIRouter()
log = logging.getLogger("api.orders")


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_order_endpoint(
    request_data: OrderRequest,
    store_id: int = Depends(get_store_id),
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    """Creates an order in `received`. The total is computed once from the items."""
    order = await services.orders.create_order(
        store_id,
        items=[item.model_dump() for item in request_data.items],
        customer_id=request_data.customer_id,
        notes=request_data.notes,
        due_date=request_data.due_date,
        recurring_group_id=request_data.recurring_group_id,
        correlation_id=request_id,
    )
    return SuccessResponse(request_id=request_id, data=OrderResponse.from_model(order).model_dump())


@router.get("/", response_model=SuccessResponse)
async def list_orders_endpoint(
    status_filter: Optional[str] = Query(None, alias="status"),
    store_id: int = Depends(get_store_id),
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    """Lists the store's orders, newest first, optionally filtered by status name."""
    order_status = None
    if status_filter is not None:
        order_status = OrderStatus.__members__.get(status_filter.upper())
        if order_status is None:
            raise ValidationError(f"Unknown order status: {status_filter}")
    orders = await services.orders.list_orders(store_id, order_status)
    return SuccessResponse(request_id=request_id, data=[OrderResponse.from_model(o).model_dump() for o in orders])


@router.get("/{order_id}", response_model=SuccessResponse)
async def get_order_endpoint(
    order_id: int,
    store_id: int = Depends(get_store_id),
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    """Fetches details for a specific order."""
    order = await services.orders.get_order(store_id, order_id)
    return SuccessResponse(request_id=request_id, data=OrderResponse.from_model(order).model_dump())


@router.patch("/{order_id}", response_model=SuccessResponse)
async def update_order_endpoint(
    order_id: int,
    payload: OrderUpdate,
    store_id: int = Depends(get_store_id),
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    """Patches notes, due date or customer. Only the fields sent are touched."""
    order = await services.orders.update_order(store_id, order_id, payload.model_dump(exclude_unset=True))
    return SuccessResponse(request_id=request_id, data=OrderResponse.from_model(order).model_dump())


@router.patch("/{order_id}/status", response_model=SuccessResponse)
async def update_status_endpoint(
    order_id: int,
    payload: OrderStatusUpdate,
    store_id: int = Depends(get_store_id),
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    """
    Moves the order one step along received -> in_progress -> ready -> delivered
    (or one step back).
    """
    new_status = payload.to_status()
    if new_status is None:
        raise ValidationError(f"Unknown order status: {payload.status}")

    change = await services.orders.update_status(store_id, order_id, new_status, correlation_id=request_id)
    log.info(f"Order {order_id}: {change.previous_status.label} -> {change.new_status.label}")
    data = StatusChangeResponse(
        order=OrderResponse.from_model(change.order),
        previous_status=change.previous_status.label,
        new_status=change.new_status.label,
    ).model_dump()
    return SuccessResponse(request_id=request_id, data=data)


@router.delete("/{order_id}", response_model=SuccessResponse)
async def delete_order_endpoint(
    order_id: int,
    store_id: int = Depends(get_store_id),
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    """Deletes an order that is still `received`."""
    await services.orders.delete_order(store_id, order_id)
    return SuccessResponse(request_id=request_id, data={"id": order_id, "deleted": True})
