from datetime import date
from typing import Dict, List, Optional

from tortoise import timezone
from tortoise.transactions import in_transaction

from app.models.production import BatchOrder, ProductionBatch, ProductionStage


class ProductionRepository:

    async def find_by_id(self, store_id: int, batch_id: int) -> Optional[ProductionBatch]:
        return await ProductionBatch.get_or_none(id=batch_id, store_id=store_id).prefetch_related(
            "recipe", "order_sources"
        )

    async def list_for_date(self, store_id: int, production_date: date) -> List[ProductionBatch]:
        return await ProductionBatch.filter(
            store_id=store_id, production_date=production_date
        ).order_by("-priority", "id").prefetch_related("recipe", "order_sources")

    async def create_with_sources(
        self,
        store_id: int,
        recipe_id: int,
        quantity: int,
        production_date: date,
        sources: List[Dict[str, int]],
        source: str = "auto",
        priority: int = 0,
        notes: Optional[str] = None,
    ) -> ProductionBatch:
        """Creates the batch and its batch->order links in one transaction."""
        async with in_transaction() as conn:
            batch = await ProductionBatch.create(
                store_id=store_id,
                recipe_id=recipe_id,
                quantity=quantity,
                production_date=production_date,
                source=source,
                priority=priority,
                notes=notes,
                using_db=conn,
            )
            for src in sources:
                await BatchOrder.create(
                    batch=batch,
                    order_id=src["order_id"],
                    order_item_index=src["item_index"],
                    quantity_from_order=src["quantity"],
                    using_db=conn,
                )
        return await self.find_by_id(store_id, batch.id)

    async def update_stage(self, store_id: int, batch_id: int, stage: ProductionStage) -> Optional[ProductionBatch]:
        await ProductionBatch.filter(id=batch_id, store_id=store_id).update(stage=stage, updated_at=timezone.now())
        return await self.find_by_id(store_id, batch_id)

    async def delete(self, store_id: int, batch_id: int) -> None:
        async with in_transaction() as conn:
            await BatchOrder.filter(batch_id=batch_id).using_db(conn).delete()
            await ProductionBatch.filter(id=batch_id, store_id=store_id).using_db(conn).delete()
