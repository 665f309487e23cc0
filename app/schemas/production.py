from datetime import date
from pydantic import BaseModel, Field
from typing import List, Optional

from app.models.production import ProductionStage


class BatchRequest(BaseModel):
    recipe_id: int
    quantity: int
    production_date: date
    priority: int = 0
    notes: Optional[str] = None

class GenerateBatchesRequest(BaseModel):
    production_date: date = Field(..., description="Plan batches for orders due on this day.")

class StageUpdate(BaseModel):
    """Target stage by name, e.g. 'baking'."""
    stage: str

    def to_stage(self) -> Optional[ProductionStage]:
        return ProductionStage.__members__.get(self.stage.strip().upper())

class BatchSourceResponse(BaseModel):
    order_id: int
    order_item_index: int
    quantity_from_order: int

class BatchResponse(BaseModel):
    id: int
    recipe_id: int
    quantity: int
    stage: str
    production_date: date
    priority: int
    source: str
    notes: Optional[str] = None
    order_sources: List[BatchSourceResponse]

    @classmethod
    def from_model(cls, batch) -> "BatchResponse":
        return cls(
            id=batch.id,
            recipe_id=batch.recipe_id,
            quantity=batch.quantity,
            stage=ProductionStage(batch.stage).name.lower(),
            production_date=batch.production_date,
            priority=batch.priority,
            source=batch.source,
            notes=batch.notes,
            order_sources=[
                BatchSourceResponse(
                    order_id=s.order_id,
                    order_item_index=s.order_item_index,
                    quantity_from_order=s.quantity_from_order,
                )
                for s in batch.order_sources
            ],
        )
