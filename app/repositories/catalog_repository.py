from decimal import Decimal
from typing import Any, Dict, List, Optional

from tortoise.transactions import in_transaction

from app.models.recipe import Recipe, RecipeIngredient
from app.models.store import Customer, Store


class StoreRepository:

    async def find_by_id(self, store_id: int) -> Optional[Store]:
        return await Store.get_or_none(id=store_id)

    async def create(self, name: str, is_active: bool = True) -> Store:
        return await Store.create(name=name, is_active=is_active)


class CustomerRepository:

    async def find_by_id(self, store_id: int, customer_id: int) -> Optional[Customer]:
        return await Customer.get_or_none(id=customer_id, store_id=store_id)

    async def create(self, store_id: int, data: Dict[str, Any]) -> Customer:
        return await Customer.create(store_id=store_id, **data)


class RecipeRepository:

    async def find_by_id(self, store_id: int, recipe_id: int) -> Optional[Recipe]:
        return await Recipe.get_or_none(id=recipe_id, store_id=store_id).prefetch_related(
            "ingredients", "ingredients__ingredient"
        )

    async def find_many(self, store_id: int, recipe_ids: List[int]) -> List[Recipe]:
        return await Recipe.filter(store_id=store_id, id__in=recipe_ids).prefetch_related(
            "ingredients", "ingredients__ingredient"
        )

    async def create(
        self,
        store_id: int,
        name: str,
        selling_price: Decimal,
        ingredients: List[Dict[str, Any]],
    ) -> Recipe:
        async with in_transaction() as conn:
            recipe = await Recipe.create(store_id=store_id, name=name, selling_price=selling_price, using_db=conn)
            for line in ingredients:
                await RecipeIngredient.create(
                    recipe=recipe,
                    ingredient_id=line["ingredient_id"],
                    quantity=line["quantity"],
                    unit=line["unit"],
                    using_db=conn,
                )
        return await self.find_by_id(store_id, recipe.id)
