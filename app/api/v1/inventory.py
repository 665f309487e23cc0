import logging
from typing import Optional

from fastapi import APIRouter, Depends, status

from app.api.deps import get_request_id, get_services, get_store_id
from app.core.container import Services
from app.schemas.inventory import (
    IngredientRequest,
    IngredientResponse,
    IngredientUpdate,
    InventoryLogResponse,
    StockAdjustmentRequest,
)
from app.schemas.response import SuccessResponse
from app.services.inventory_service import AdjustStockCommand

router = APIRouter()
log = logging.getLogger("api.inventory")


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_ingredient_endpoint(
    item_data: IngredientRequest,
    store_id: int = Depends(get_store_id),
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    ingredient = await services.inventory.create_ingredient(store_id, **item_data.model_dump())
    log.info(f"Ingredient '{ingredient.name}' added to store {store_id}.")
    return SuccessResponse(request_id=request_id, data=IngredientResponse.from_model(ingredient).model_dump())


@router.get("/", response_model=SuccessResponse)
async def list_ingredients_endpoint(
    search: Optional[str] = None,
    store_id: int = Depends(get_store_id),
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    ingredients = await services.inventory.list_ingredients(store_id, search)
    return SuccessResponse(request_id=request_id, data=[IngredientResponse.from_model(i).model_dump() for i in ingredients])


@router.get("/low-stock", response_model=SuccessResponse)
async def low_stock_endpoint(
    store_id: int = Depends(get_store_id),
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    """Ingredients at or below their low-stock threshold."""
    ingredients = await services.inventory.list_low_stock(store_id)
    return SuccessResponse(request_id=request_id, data=[IngredientResponse.from_model(i).model_dump() for i in ingredients])


@router.get("/{ingredient_id}", response_model=SuccessResponse)
async def get_ingredient_endpoint(
    ingredient_id: int,
    store_id: int = Depends(get_store_id),
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    """Fetches the stock record for one ingredient."""
    ingredient = await services.inventory.get_ingredient(store_id, ingredient_id)
    return SuccessResponse(request_id=request_id, data=IngredientResponse.from_model(ingredient).model_dump())


@router.patch("/{ingredient_id}", response_model=SuccessResponse)
async def update_ingredient_endpoint(
    ingredient_id: int,
    payload: IngredientUpdate,
    store_id: int = Depends(get_store_id),
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    ingredient = await services.inventory.update_ingredient(store_id, ingredient_id, payload.model_dump(exclude_unset=True))
    return SuccessResponse(request_id=request_id, data=IngredientResponse.from_model(ingredient).model_dump())


@router.delete("/{ingredient_id}", response_model=SuccessResponse)
async def delete_ingredient_endpoint(
    ingredient_id: int,
    store_id: int = Depends(get_store_id),
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    await services.inventory.delete_ingredient(store_id, ingredient_id)
    return SuccessResponse(request_id=request_id, data={"id": ingredient_id, "deleted": True})


@router.post("/{ingredient_id}/adjust", response_model=SuccessResponse)
async def adjust_stock_endpoint(
    ingredient_id: int,
    payload: StockAdjustmentRequest,
    store_id: int = Depends(get_store_id),
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    """
    Adds (addition, adjustment) or removes (usage) stock. A result at or below the
    threshold raises one low-stock alert unless `suppress_event` is set.
    """
    command = AdjustStockCommand(ingredient_id=ingredient_id, **payload.model_dump())
    ingredient = await services.inventory.adjust_stock(store_id, command, correlation_id=request_id)
    return SuccessResponse(request_id=request_id, data=IngredientResponse.from_model(ingredient).model_dump())


@router.get("/{ingredient_id}/log", response_model=SuccessResponse)
async def ingredient_log_endpoint(
    ingredient_id: int,
    store_id: int = Depends(get_store_id),
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    entries = await services.inventory.get_log(store_id, ingredient_id)
    return SuccessResponse(request_id=request_id, data=[InventoryLogResponse.from_model(e).model_dump() for e in entries])
