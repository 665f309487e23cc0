from tortoise import fields, models


class Recipe(models.Model):
    id = fields.IntField(primary_key=True)
    store = fields.ForeignKeyField("models.Store", related_name="recipes")
    name = fields.CharField(max_length=255)
    selling_price = fields.DecimalField(max_digits=12, decimal_places=2, default=0)
    is_active = fields.BooleanField(default=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "recipes"
        indexes = [
            ("store_id",),
        ]


class RecipeIngredient(models.Model):
    """Quantity of one ingredient needed to make a single unit of a recipe."""
    id = fields.IntField(primary_key=True)
    recipe = fields.ForeignKeyField("models.Recipe", related_name="ingredients")
    ingredient = fields.ForeignKeyField("models.Ingredient", related_name="recipe_uses")
    quantity = fields.FloatField()
    unit = fields.CharField(max_length=16)

    class Meta:
        table = "recipe_ingredients"
