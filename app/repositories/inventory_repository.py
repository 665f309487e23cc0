from decimal import Decimal
from typing import Any, Dict, List, Optional

from tortoise import timezone
from tortoise.expressions import F
from tortoise.transactions import in_transaction

from app.models.inventory import AdjustmentType, Ingredient, InventoryLog


class InventoryRepository:

    async def find_by_id(self, store_id: int, ingredient_id: int) -> Optional[Ingredient]:
        return await Ingredient.get_or_none(id=ingredient_id, store_id=store_id)

    async def list(self, store_id: int, search: Optional[str] = None) -> List[Ingredient]:
        query = Ingredient.filter(store_id=store_id)
        if search:
            query = query.filter(name__icontains=search)
        return await query.order_by("name")

    async def find_low_stock(self, store_id: int) -> List[Ingredient]:
        ingredients = await Ingredient.filter(store_id=store_id).order_by("quantity")
        return [i for i in ingredients if i.quantity <= i.low_stock_threshold]

    async def create(self, store_id: int, data: Dict[str, Any]) -> Ingredient:
        return await Ingredient.create(store_id=store_id, **data)

    async def update(self, store_id: int, ingredient_id: int, fields: Dict[str, Any]) -> Optional[Ingredient]:
        if fields:
            await Ingredient.filter(id=ingredient_id, store_id=store_id).update(**fields, updated_at=timezone.now())
        return await self.find_by_id(store_id, ingredient_id)

    async def delete(self, store_id: int, ingredient_id: int) -> None:
        await Ingredient.filter(id=ingredient_id, store_id=store_id).delete()

    async def adjust_stock(
        self,
        store_id: int,
        ingredient_id: int,
        delta: float,
        log_type: AdjustmentType,
        quantity: float,
        reason: Optional[str] = None,
        price_paid: Optional[Decimal] = None,
    ) -> Optional[Ingredient]:
        """
        Applies `delta` in a single UPDATE ... SET quantity = quantity + delta, so
        concurrent adjustments never lose each other's writes. A negative delta only
        applies while enough stock remains. Returns None when no row was updated.
        """
        async with in_transaction() as conn:
            query = Ingredient.filter(id=ingredient_id, store_id=store_id).using_db(conn)
            if delta < 0:
                query = query.filter(quantity__gte=-delta)
            updated = await query.update(quantity=F("quantity") + delta, updated_at=timezone.now())
            if not updated:
                return None

            await InventoryLog.create(
                store_id=store_id,
                ingredient_id=ingredient_id,
                type=log_type,
                quantity=quantity,
                reason=reason,
                price_paid=price_paid,
                using_db=conn,
            )
            return await Ingredient.get(id=ingredient_id).using_db(conn)

    async def get_log(self, store_id: int, ingredient_id: int) -> List[InventoryLog]:
        return await InventoryLog.filter(store_id=store_id, ingredient_id=ingredient_id).order_by("-created_at", "-id")
