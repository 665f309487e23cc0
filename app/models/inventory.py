from enum import Enum
from tortoise import fields, models


class AdjustmentType(str, Enum):
    ADDITION = "addition"
    USAGE = "usage"
    ADJUSTMENT = "adjustment"


class Ingredient(models.Model):
    id = fields.IntField(primary_key=True)
    store = fields.ForeignKeyField("models.Store", related_name="ingredients")
    name = fields.CharField(max_length=255)
    unit = fields.CharField(max_length=16)
    quantity = fields.FloatField(default=0)
    cost_per_unit = fields.DecimalField(max_digits=12, decimal_places=4, default=0)
    low_stock_threshold = fields.FloatField(default=0) # For low stock alert
    supplier = fields.CharField(max_length=255, null=True)
    notes = fields.TextField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "ingredients"
        indexes = [
            ("store_id",),
            ("store_id", "name"),
        ]


class InventoryLog(models.Model):
    """One row per stock adjustment; quantity is the unsigned magnitude, direction is in `type`."""
    id = fields.IntField(primary_key=True)
    store = fields.ForeignKeyField("models.Store", related_name="inventory_logs")
    ingredient = fields.ForeignKeyField("models.Ingredient", related_name="logs")
    type = fields.CharEnumField(AdjustmentType)
    quantity = fields.FloatField()
    reason = fields.CharField(max_length=255, null=True)
    price_paid = fields.DecimalField(max_digits=12, decimal_places=2, null=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "inventory_log"
        indexes = [
            ("ingredient_id", "created_at"),
        ]
