from decimal import Decimal
from typing import Any, Dict, List, Optional

from app.core.errors import NotFoundError, ValidationError
from app.models.notification import NotificationPreference
from app.models.recipe import Recipe
from app.models.store import Customer, LoyaltyTier, Store


class CatalogService:
    """Stores, customers, recipes and notification recipients."""

    def __init__(self, store_repository, customer_repository, recipe_repository,
                 inventory_repository, preference_repository):
        self._stores = store_repository
        self._customers = customer_repository
        self._recipes = recipe_repository
        self._inventory = inventory_repository
        self._preferences = preference_repository

    async def create_store(self, name: str) -> Store:
        if not name or not name.strip():
            raise ValidationError("Store name is required")
        return await self._stores.create(name.strip())

    async def get_store(self, store_id: int) -> Store:
        store = await self._stores.find_by_id(store_id)
        if store is None:
            raise NotFoundError("Store not found")
        return store

    async def create_customer(
        self,
        store_id: int,
        name: str,
        phone: Optional[str] = None,
        email: Optional[str] = None,
        loyalty_enabled: bool = True,
        loyalty_tier: LoyaltyTier = LoyaltyTier.BRONZE,
    ) -> Customer:
        if not name or not name.strip():
            raise ValidationError("Customer name is required")
        return await self._customers.create(store_id, {
            "name": name.strip(),
            "phone": phone,
            "email": email,
            "loyalty_enabled": loyalty_enabled,
            "loyalty_tier": LoyaltyTier(loyalty_tier),
        })

    async def get_customer(self, store_id: int, customer_id: int) -> Customer:
        customer = await self._customers.find_by_id(store_id, customer_id)
        if customer is None:
            raise NotFoundError("Customer not found")
        return customer

    async def create_recipe(
        self, store_id: int, name: str, selling_price: Decimal, ingredients: List[Dict[str, Any]]
    ) -> Recipe:
        if not name or not name.strip():
            raise ValidationError("Recipe name is required")
        if Decimal(str(selling_price)) < 0:
            raise ValidationError("Selling price cannot be negative")
        for line in ingredients:
            if line["quantity"] <= 0:
                raise ValidationError("Ingredient quantity must be positive")
            if await self._inventory.find_by_id(store_id, line["ingredient_id"]) is None:
                raise NotFoundError(f"Ingredient {line['ingredient_id']} not found")
        return await self._recipes.create(store_id, name.strip(), Decimal(str(selling_price)), ingredients)

    async def get_recipe(self, store_id: int, recipe_id: int) -> Recipe:
        recipe = await self._recipes.find_by_id(store_id, recipe_id)
        if recipe is None:
            raise NotFoundError("Recipe not found")
        return recipe

    async def create_notification_preference(self, store_id: int, data: Dict[str, Any]) -> NotificationPreference:
        if data.get("channel_email") and not data.get("email"):
            raise ValidationError("An email address is required for the email channel")
        if (data.get("channel_sms") or data.get("channel_whatsapp")) and not data.get("phone"):
            raise ValidationError("A phone number is required for SMS or WhatsApp")
        return await self._preferences.create(store_id, data)

    async def list_notification_preferences(self, store_id: int, event_type: str) -> List[NotificationPreference]:
        return await self._preferences.find_by_event_type(store_id, event_type)
