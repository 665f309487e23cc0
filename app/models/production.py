from enum import IntEnum
from tortoise import fields, models


class ProductionStage(IntEnum):
    TO_PREP = 0
    MIXING = 1
    PROOFING = 2
    BAKING = 3
    COOLING = 4
    READY = 5
    PACKAGED = 6


class ProductionBatch(models.Model):
    id = fields.IntField(primary_key=True)
    store = fields.ForeignKeyField("models.Store", related_name="production_batches")
    recipe = fields.ForeignKeyField("models.Recipe", related_name="production_batches")
    quantity = fields.IntField()
    stage = fields.IntEnumField(ProductionStage, default=ProductionStage.TO_PREP)
    production_date = fields.DateField()
    priority = fields.IntField(default=0)
    source = fields.CharField(max_length=16, default="auto")  # 'auto' | 'manual'
    notes = fields.TextField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "production_batches"
        indexes = [
            ("store_id", "production_date"),
        ]


class BatchOrder(models.Model):
    """Links a batch back to the order line items it was generated from."""
    id = fields.IntField(primary_key=True)
    batch = fields.ForeignKeyField("models.ProductionBatch", related_name="order_sources")
    order = fields.ForeignKeyField("models.Order", related_name="batch_links")
    order_item_index = fields.IntField()
    quantity_from_order = fields.IntField()

    class Meta:
        table = "batch_orders"
