import logging

from fastapi import APIRouter, Depends, status

from app.api.deps import get_request_id, get_services, get_store_id
from app.core.container import Services
from app.schemas.catalog import (
    CustomerRequest,
    CustomerResponse,
    NotificationPreferenceRequest,
    NotificationPreferenceResponse,
    RecipeRequest,
    RecipeResponse,
    StoreRequest,
    StoreResponse,
)
from app.schemas.response import SuccessResponse

router = APIRouter()
log = logging.getLogger("api.catalog")


@router.post("/stores", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_store_endpoint(
    payload: StoreRequest,
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    """Creates a store. Its id is what every other route expects in X-Store-ID."""
    store = await services.catalog.create_store(payload.name)
    log.info(f"Store '{store.name}' created with id {store.id}.")
    data = StoreResponse(id=store.id, name=store.name, is_active=store.is_active).model_dump()
    return SuccessResponse(request_id=request_id, data=data)


@router.get("/stores/{store_id}", response_model=SuccessResponse)
async def get_store_endpoint(
    store_id: int,
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    store = await services.catalog.get_store(store_id)
    data = StoreResponse(id=store.id, name=store.name, is_active=store.is_active).model_dump()
    return SuccessResponse(request_id=request_id, data=data)


@router.post("/customers", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_customer_endpoint(
    payload: CustomerRequest,
    store_id: int = Depends(get_store_id),
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    customer = await services.catalog.create_customer(store_id, **payload.model_dump())
    return SuccessResponse(request_id=request_id, data=CustomerResponse.from_model(customer).model_dump())


@router.get("/customers/{customer_id}", response_model=SuccessResponse)
async def get_customer_endpoint(
    customer_id: int,
    store_id: int = Depends(get_store_id),
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    customer = await services.catalog.get_customer(store_id, customer_id)
    return SuccessResponse(request_id=request_id, data=CustomerResponse.from_model(customer).model_dump())


@router.post("/recipes", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_recipe_endpoint(
    payload: RecipeRequest,
    store_id: int = Depends(get_store_id),
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    recipe = await services.catalog.create_recipe(
        store_id, payload.name, payload.selling_price, [line.model_dump() for line in payload.ingredients]
    )
    return SuccessResponse(request_id=request_id, data=RecipeResponse.from_model(recipe).model_dump())


@router.get("/recipes/{recipe_id}", response_model=SuccessResponse)
async def get_recipe_endpoint(
    recipe_id: int,
    store_id: int = Depends(get_store_id),
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    recipe = await services.catalog.get_recipe(store_id, recipe_id)
    return SuccessResponse(request_id=request_id, data=RecipeResponse.from_model(recipe).model_dump())


@router.post("/notification-preferences", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_preference_endpoint(
    payload: NotificationPreferenceRequest,
    store_id: int = Depends(get_store_id),
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    """Subscribes a recipient to one event type on the chosen channels."""
    pref = await services.catalog.create_notification_preference(store_id, payload.model_dump())
    data = NotificationPreferenceResponse.model_validate(pref, from_attributes=True).model_dump()
    return SuccessResponse(request_id=request_id, data=data)


@router.get("/notification-preferences/{event_type}", response_model=SuccessResponse)
async def list_preferences_endpoint(
    event_type: str,
    store_id: int = Depends(get_store_id),
    services: Services = Depends(get_services),
    request_id: str = Depends(get_request_id),
):
    prefs = await services.catalog.list_notification_preferences(store_id, event_type)
    data = [NotificationPreferenceResponse.model_validate(p, from_attributes=True).model_dump() for p in prefs]
    return SuccessResponse(request_id=request_id, data=data)
