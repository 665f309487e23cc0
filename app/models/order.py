from enum import IntEnum
from tortoise import fields, models


class OrderStatus(IntEnum):
    RECEIVED = 0  # Initial state, the only one in which an order may be deleted
    IN_PROGRESS = 1
    READY = 2
    DELIVERED = 3

    @property
    def label(self) -> str:
        return self.name.lower()


class Order(models.Model):
    id = fields.IntField(primary_key=True)
    store = fields.ForeignKeyField("models.Store", related_name="orders")
    order_number = fields.IntField()  # Sequential per store
    customer = fields.ForeignKeyField("models.Customer", related_name="orders", null=True)  # null = walk-in
    status = fields.IntEnumField(OrderStatus, default=OrderStatus.RECEIVED)
    # Computed once from the items at creation; never recomputed
    total_amount = fields.DecimalField(max_digits=14, decimal_places=2, default=0)
    notes = fields.TextField(null=True)
    due_date = fields.DateField(null=True)
    recurring_group_id = fields.CharField(max_length=64, null=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "orders"
        unique_together = (("store", "order_number"),)
        indexes = [
            ("store_id", "status"),       # Status-based filtering
            ("store_id", "due_date"),     # Production planning by day
            ("customer_id",),             # Customer order history
        ]


class OrderItem(models.Model):
    id = fields.IntField(primary_key=True)
    order = fields.ForeignKeyField("models.Order", related_name="items")
    position = fields.IntField()  # Keeps line items in their submitted order
    recipe = fields.ForeignKeyField("models.Recipe", related_name="order_items")
    quantity = fields.IntField()
    unit_price = fields.DecimalField(max_digits=12, decimal_places=2)
    line_total = fields.DecimalField(max_digits=14, decimal_places=2)
    notes = fields.TextField(null=True)

    class Meta:
        table = "order_items"
        ordering = ["position"]
        indexes = [
            ("order_id",),
            ("recipe_id",),
        ]
