import logging

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_request_id, get_services, get_store_id
from app.core.container import Services
from app.schemas.loyalty import (
    LoyaltyBalanceResponse,
    LoyaltyConfigResponse,
    LoyaltyConfigUpdate,
    LoyaltyTransactionPage,
    LoyaltyTransactionResponse,
    PointsRequest,
)
from app.schemas.response import SuccessResponse

router = APIRouter()
log = logging.getLogger("api.loyalty")


@router.get("/config", response_model=SuccessResponse)
async def get_config_endpoint(
    store_id: int = Depends(get_store_id),
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    settings = await services.loyalty.get_config(store_id)
    return SuccessResponse(request_id=request_id, data=LoyaltyConfigResponse.from_settings(settings).model_dump())


@router.put("/config", response_model=SuccessResponse)
async def update_config_endpoint(
    payload: LoyaltyConfigUpdate,
    store_id: int = Depends(get_store_id),
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    settings = await services.loyalty.update_config(store_id, payload.model_dump(exclude_unset=True))
    return SuccessResponse(request_id=request_id, data=LoyaltyConfigResponse.from_settings(settings).model_dump())


@router.get("/customers/{customer_id}/balance", response_model=SuccessResponse)
async def balance_endpoint(
    customer_id: int,
    store_id: int = Depends(get_store_id),
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    balance = await services.loyalty.get_balance(store_id, customer_id)
    data = LoyaltyBalanceResponse(
        balance=balance.balance,
        lifetime_earned=balance.lifetime_earned,
        lifetime_redeemed=balance.lifetime_redeemed,
    ).model_dump()
    return SuccessResponse(request_id=request_id, data=data)


@router.get("/customers/{customer_id}/transactions", response_model=SuccessResponse)
async def transactions_endpoint(
    customer_id: int,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    store_id: int = Depends(get_store_id),
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    """Ledger entries for one customer, newest first."""
    items, total = await services.loyalty.list_transactions(store_id, customer_id, limit=limit, offset=offset)
    data = LoyaltyTransactionPage(
        items=[LoyaltyTransactionResponse.from_model(tx) for tx in items],
        total=total,
        limit=limit,
        offset=offset,
    ).model_dump()
    return SuccessResponse(request_id=request_id, data=data)


@router.post("/customers/{customer_id}/redeem", response_model=SuccessResponse)
async def redeem_endpoint(
    customer_id: int,
    payload: PointsRequest,
    store_id: int = Depends(get_store_id),
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    tx = await services.loyalty.redeem_points(store_id, customer_id, payload.points, payload.description)
    return SuccessResponse(request_id=request_id, data=LoyaltyTransactionResponse.from_model(tx).model_dump())


@router.post("/customers/{customer_id}/adjust", response_model=SuccessResponse)
async def adjust_endpoint(
    customer_id: int,
    payload: PointsRequest,
    store_id: int = Depends(get_store_id),
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    """Manual correction; a negative adjustment cannot take the balance below zero."""
    tx = await services.loyalty.adjust_points(store_id, customer_id, payload.points, payload.description)
    log.info(f"Loyalty adjustment of {payload.points} for customer {customer_id} in store {store_id}.")
    return SuccessResponse(request_id=request_id, data=LoyaltyTransactionResponse.from_model(tx).model_dump())
