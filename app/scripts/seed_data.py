# scripts/seed_data.py
import asyncio
from decimal import Decimal
from app.core.db import init_db, close_db
from app.models.store import Store, Customer, LoyaltyTier
from app.models.inventory import Ingredient
from app.models.recipe import Recipe, RecipeIngredient
from app.models.loyalty import LoyaltyConfig
from app.models.notification import NotificationPreference

async def seed():
    # Create one store
    store, _ = await Store.get_or_create(name="Demo Bakehouse")
    print("Store:", store.id)

    # Ingredients, stock counted in each ingredient's own unit
    flour, _ = await Ingredient.get_or_create(store=store, name="Bread flour", defaults={"unit": "kg", "quantity": 25, "low_stock_threshold": 5, "cost_per_unit": Decimal("4.20")})
    butter, _ = await Ingredient.get_or_create(store=store, name="Butter", defaults={"unit": "kg", "quantity": 8, "low_stock_threshold": 2, "cost_per_unit": Decimal("38.00")})
    eggs, _ = await Ingredient.get_or_create(store=store, name="Eggs", defaults={"unit": "pcs", "quantity": 120, "low_stock_threshold": 30, "cost_per_unit": Decimal("0.90")})

    # If existing, reset quantities (idempotent)
    flour.quantity = 25
    butter.quantity = 8
    eggs.quantity = 120
    await flour.save(); await butter.save(); await eggs.save()
    print("Ingredients:", flour.id, butter.id, eggs.id)

    # Recipes, quantities per single unit sold
    challah, created = await Recipe.get_or_create(store=store, name="Challah", defaults={"selling_price": Decimal("28.00")})
    if created:
        await RecipeIngredient.create(recipe=challah, ingredient=flour, quantity=500, unit="g")
        await RecipeIngredient.create(recipe=challah, ingredient=eggs, quantity=2, unit="pcs")
    croissant, created = await Recipe.get_or_create(store=store, name="Butter croissant", defaults={"selling_price": Decimal("12.00")})
    if created:
        await RecipeIngredient.create(recipe=croissant, ingredient=flour, quantity=80, unit="g")
        await RecipeIngredient.create(recipe=croissant, ingredient=butter, quantity=40, unit="g")
    print("Recipes:", challah.id, croissant.id)

    customer, _ = await Customer.get_or_create(store=store, name="Dana Levi", defaults={"phone": "0521234567", "loyalty_tier": LoyaltyTier.SILVER})
    print("Customer:", customer.id)

    await LoyaltyConfig.get_or_create(store=store, defaults={"is_active": True, "points_per_unit": Decimal("1"), "min_redeem_points": 50})
    await NotificationPreference.get_or_create(store=store, event_type="low_stock", recipient_name="Kitchen lead", defaults={"email": "kitchen@example.com"})

    print("Seed complete.")

async def main():
    await init_db()
    await seed()
    await close_db()

if __name__ == "__main__":
    asyncio.run(main())
