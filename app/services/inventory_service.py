import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional

from app.core.errors import NotFoundError, ValidationError
from app.events.event_bus import DomainEvent, EventBus
from app.events.event_names import EventNames
from app.models.inventory import AdjustmentType, Ingredient, InventoryLog

log = logging.getLogger("inventory_service")

# Direction of each adjustment type; the caller always supplies a positive magnitude.
STOCK_DIRECTION = {
    AdjustmentType.ADDITION: 1,
    AdjustmentType.USAGE: -1,
    AdjustmentType.ADJUSTMENT: 1,
}

PATCHABLE_FIELDS = {"name", "unit", "cost_per_unit", "low_stock_threshold", "supplier", "notes"}
# Columns without a NULL option; a patch may change them but not clear them
REQUIRED_FIELDS = {"name", "unit", "cost_per_unit", "low_stock_threshold"}


@dataclass
class AdjustStockCommand:
    ingredient_id: int
    type: AdjustmentType
    quantity: float
    reason: Optional[str] = None
    price_paid: Optional[Decimal] = None
    suppress_event: bool = False  # Bulk flows (stocktakes, imports) skip the low-stock signal


class AdjustStock:
    """
    Mutates one ingredient's stock and, when the result sits at or below its
    threshold, emits a single inventory.lowStock event for that ingredient.
    """

    def __init__(self, inventory_repository, event_bus: EventBus):
        self._inventory = inventory_repository
        self._bus = event_bus

    async def execute(self, store_id: int, command: AdjustStockCommand, correlation_id: Optional[str] = None) -> Ingredient:
        if command.quantity is None or command.quantity <= 0:
            raise ValidationError("Adjustment quantity must be positive")
        try:
            adjustment_type = AdjustmentType(command.type)
        except ValueError:
            raise ValidationError(f"Unknown adjustment type: {command.type}")

        existing = await self._inventory.find_by_id(store_id, command.ingredient_id)
        if existing is None:
            raise NotFoundError("Ingredient not found")
        if adjustment_type == AdjustmentType.USAGE and existing.quantity < command.quantity:
            raise ValidationError("Insufficient stock for this usage")

        delta = STOCK_DIRECTION[adjustment_type] * command.quantity
        ingredient = await self._inventory.adjust_stock(
            store_id,
            command.ingredient_id,
            delta,
            adjustment_type,
            command.quantity,
            reason=command.reason,
            price_paid=command.price_paid,
        )
        if ingredient is None:
            # The guarded UPDATE matched nothing: a concurrent usage drained the stock first.
            raise ValidationError("Insufficient stock for this usage")

        if ingredient.quantity <= ingredient.low_stock_threshold and not command.suppress_event:
            self._signal_low_stock(store_id, ingredient, correlation_id)
        return ingredient

    def _signal_low_stock(self, store_id: int, ingredient: Ingredient, correlation_id: Optional[str]) -> None:
        event = DomainEvent(
            event_name=EventNames.INVENTORY_LOW_STOCK,
            payload={
                "storeId": store_id,
                "ingredientId": ingredient.id,
                "itemName": ingredient.name,
                "currentQuantity": ingredient.quantity,
                "threshold": ingredient.low_stock_threshold,
                "unit": ingredient.unit,
            },
            correlation_id=correlation_id,
        )
        try:
            self._bus.publish_detached(event)
        except Exception as e:
            log.error(f"Could not schedule low-stock event for ingredient {ingredient.id}: {e!r}")


class InventoryService:

    def __init__(self, inventory_repository, event_bus: EventBus):
        self._inventory = inventory_repository
        self._adjust_stock = AdjustStock(inventory_repository, event_bus)

    async def get_ingredient(self, store_id: int, ingredient_id: int) -> Ingredient:
        ingredient = await self._inventory.find_by_id(store_id, ingredient_id)
        if ingredient is None:
            raise NotFoundError("Ingredient not found")
        return ingredient

    async def list_ingredients(self, store_id: int, search: Optional[str] = None) -> List[Ingredient]:
        return await self._inventory.list(store_id, search)

    async def list_low_stock(self, store_id: int) -> List[Ingredient]:
        return await self._inventory.find_low_stock(store_id)

    async def create_ingredient(
        self,
        store_id: int,
        name: str,
        unit: str,
        quantity: float = 0,
        cost_per_unit: Decimal = Decimal("0"),
        low_stock_threshold: float = 0,
        supplier: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Ingredient:
        if not name or not name.strip():
            raise ValidationError("Ingredient name is required")
        if quantity < 0 or low_stock_threshold < 0:
            raise ValidationError("Quantity and low-stock threshold cannot be negative")
        return await self._inventory.create(store_id, {
            "name": name.strip(),
            "unit": unit,
            "quantity": quantity,
            "cost_per_unit": cost_per_unit,
            "low_stock_threshold": low_stock_threshold,
            "supplier": supplier,
            "notes": notes,
        })

    async def update_ingredient(self, store_id: int, ingredient_id: int, patch: Dict[str, Any]) -> Ingredient:
        """Applies a partial update field by field. Stock levels only move through adjust_stock."""
        unknown = set(patch) - PATCHABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be updated directly: {', '.join(sorted(unknown))}")
        cleared = sorted(name for name in REQUIRED_FIELDS if name in patch and patch[name] is None)
        if cleared:
            raise ValidationError(f"Fields cannot be cleared: {', '.join(cleared)}")

        fields = dict(patch)
        if "name" in fields:
            if not str(fields["name"]).strip():
                raise ValidationError("Ingredient name is required")
            fields["name"] = str(fields["name"]).strip()
        if "cost_per_unit" in fields and Decimal(str(fields["cost_per_unit"])) < 0:
            raise ValidationError("Cost per unit cannot be negative")
        if "low_stock_threshold" in fields and fields["low_stock_threshold"] < 0:
            raise ValidationError("Low-stock threshold cannot be negative")

        await self.get_ingredient(store_id, ingredient_id)
        return await self._inventory.update(store_id, ingredient_id, fields)

    async def delete_ingredient(self, store_id: int, ingredient_id: int) -> None:
        await self.get_ingredient(store_id, ingredient_id)
        await self._inventory.delete(store_id, ingredient_id)

    async def get_log(self, store_id: int, ingredient_id: int) -> List[InventoryLog]:
        await self.get_ingredient(store_id, ingredient_id)
        return await self._inventory.get_log(store_id, ingredient_id)

    async def adjust_stock(self, store_id: int, command: AdjustStockCommand, correlation_id: Optional[str] = None) -> Ingredient:
        return await self._adjust_stock.execute(store_id, command, correlation_id)
