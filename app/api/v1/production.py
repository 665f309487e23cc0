import logging
from datetime import date

from fastapi import APIRouter, Depends, status

from app.api.deps import get_request_id, get_services, get_store_id
from app.core.container import Services
from app.core.errors import ValidationError
from app.schemas.production import BatchRequest, BatchResponse, GenerateBatchesRequest, StageUpdate
from app.schemas.response import SuccessResponse

router = APIRouter()
log = logging.getLogger("api.production")


@router.get("/batches", response_model=SuccessResponse)
async def list_batches_endpoint(
    production_date: date,
    store_id: int = Depends(get_store_id),
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    batches = await services.production.list_batches(store_id, production_date)
    return SuccessResponse(request_id=request_id, data=[BatchResponse.from_model(b).model_dump() for b in batches])


@router.post("/batches", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_batch_endpoint(
    payload: BatchRequest,
    store_id: int = Depends(get_store_id),
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    batch = await services.production.create_batch(
        store_id, payload.recipe_id, payload.quantity, payload.production_date,
        priority=payload.priority, notes=payload.notes, correlation_id=request_id,
    )
    return SuccessResponse(request_id=request_id, data=BatchResponse.from_model(batch).model_dump())


@router.post("/generate", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def generate_batches_endpoint(
    payload: GenerateBatchesRequest,
    store_id: int = Depends(get_store_id),
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    """Creates one batch per recipe from the open orders due on the given day."""
    batches = await services.production.generate_batches(store_id, payload.production_date, correlation_id=request_id)
    return SuccessResponse(request_id=request_id, data=[BatchResponse.from_model(b).model_dump() for b in batches])


@router.patch("/batches/{batch_id}/stage", response_model=SuccessResponse)
async def update_stage_endpoint(
    batch_id: int,
    payload: StageUpdate,
    store_id: int = Depends(get_store_id),
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    stage = payload.to_stage()
    if stage is None:
        raise ValidationError(f"Unknown production stage: {payload.stage}")
    batch = await services.production.update_stage(store_id, batch_id, stage, correlation_id=request_id)
    return SuccessResponse(request_id=request_id, data=BatchResponse.from_model(batch).model_dump())


@router.delete("/batches/{batch_id}", response_model=SuccessResponse)
async def delete_batch_endpoint(
    batch_id: int,
    store_id: int = Depends(get_store_id),
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    await services.production.delete_batch(store_id, batch_id)
    return SuccessResponse(request_id=request_id, data={"id": batch_id, "deleted": True})
