import logging
from collections import OrderedDict
from datetime import date
from typing import Any, Dict, List, Optional

from app.core.errors import NotFoundError, ValidationError
from app.events.event_bus import DomainEvent, EventBus
from app.events.event_names import EventNames
from app.models.order import OrderStatus
from app.models.production import ProductionBatch, ProductionStage

log = logging.getLogger("production_service")

PLANNABLE_STATUSES = (OrderStatus.RECEIVED, OrderStatus.IN_PROGRESS)


class ProductionService:

    def __init__(self, production_repository, order_repository, recipe_repository, event_bus: EventBus):
        self._batches = production_repository
        self._orders = order_repository
        self._recipes = recipe_repository
        self._bus = event_bus

    async def list_batches(self, store_id: int, production_date: date) -> List[ProductionBatch]:
        return await self._batches.list_for_date(store_id, production_date)

    async def get_batch(self, store_id: int, batch_id: int) -> ProductionBatch:
        batch = await self._batches.find_by_id(store_id, batch_id)
        if batch is None:
            raise NotFoundError("Production batch not found")
        return batch

    async def create_batch(
        self,
        store_id: int,
        recipe_id: int,
        quantity: int,
        production_date: date,
        priority: int = 0,
        notes: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> ProductionBatch:
        if quantity <= 0:
            raise ValidationError("Batch quantity must be positive")
        if await self._recipes.find_by_id(store_id, recipe_id) is None:
            raise NotFoundError("Recipe not found")

        batch = await self._batches.create_with_sources(
            store_id, recipe_id, quantity, production_date, [], source="manual", priority=priority, notes=notes
        )
        self._publish_created(store_id, batch, correlation_id)
        return batch

    async def generate_batches(
        self, store_id: int, production_date: date, correlation_id: Optional[str] = None
    ) -> List[ProductionBatch]:
        """
        Plans the day's production: every line of every received or in-progress
        order due on `production_date` is grouped by recipe into one `auto` batch,
        linked back to the order lines it covers.
        """
        orders = await self._orders.find_due_on(store_id, production_date, PLANNABLE_STATUSES)
        if not orders:
            return []

        groups: "OrderedDict[int, Dict[str, Any]]" = OrderedDict()
        for order in orders:
            for index, item in enumerate(order.items):
                group = groups.setdefault(item.recipe_id, {"quantity": 0, "sources": []})
                group["quantity"] += item.quantity
                group["sources"].append({"order_id": order.id, "item_index": index, "quantity": item.quantity})

        batches = []
        for recipe_id, group in groups.items():
            batch = await self._batches.create_with_sources(
                store_id, recipe_id, group["quantity"], production_date, group["sources"], source="auto"
            )
            batches.append(batch)
            self._publish_created(store_id, batch, correlation_id)

        log.info(f"Generated {len(batches)} batches for store {store_id} on {production_date}.")
        return batches

    async def update_stage(
        self, store_id: int, batch_id: int, stage: ProductionStage, correlation_id: Optional[str] = None
    ) -> ProductionBatch:
        try:
            new_stage = ProductionStage(stage)
        except ValueError:
            raise ValidationError(f"Unknown production stage: {stage}")

        existing = await self.get_batch(store_id, batch_id)
        previous_stage = ProductionStage(existing.stage)
        batch = await self._batches.update_stage(store_id, batch_id, new_stage)

        self._publish(EventNames.BATCH_STAGE_CHANGED, {
            "storeId": store_id,
            "batchId": batch_id,
            "previousStage": previous_stage.name.lower(),
            "newStage": new_stage.name.lower(),
        }, correlation_id)
        if new_stage == ProductionStage.PACKAGED:
            self._publish(EventNames.BATCH_COMPLETED, {"storeId": store_id, "batchId": batch_id}, correlation_id)
        return batch

    async def delete_batch(self, store_id: int, batch_id: int) -> None:
        await self.get_batch(store_id, batch_id)
        await self._batches.delete(store_id, batch_id)

    def _publish_created(self, store_id: int, batch: ProductionBatch, correlation_id: Optional[str]) -> None:
        self._publish(EventNames.BATCH_CREATED, {
            "storeId": store_id,
            "batchId": batch.id,
            "recipeId": batch.recipe_id,
            "quantity": batch.quantity,
        }, correlation_id)

    def _publish(self, event_name: str, payload: Dict[str, Any], correlation_id: Optional[str]) -> None:
        try:
            self._bus.publish_detached(DomainEvent(event_name=event_name, payload=payload, correlation_id=correlation_id))
        except Exception as e:
            log.error(f"Could not schedule {event_name} (correlation_id={correlation_id}): {e!r}")
