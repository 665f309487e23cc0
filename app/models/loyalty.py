from decimal import Decimal
from enum import Enum
from tortoise import fields, models


class LoyaltyTransactionType(str, Enum):
    EARNED = "earned"
    REDEEMED = "redeemed"
    ADJUSTED = "adjusted"


class LoyaltyConfig(models.Model):
    id = fields.IntField(primary_key=True)
    store = fields.OneToOneField("models.Store", related_name="loyalty_config")
    is_active = fields.BooleanField(default=False)
    points_per_unit = fields.DecimalField(max_digits=8, decimal_places=4, default=Decimal("1"))  # Points per currency unit paid
    point_value = fields.DecimalField(max_digits=8, decimal_places=4, default=Decimal("0.1"))    # Currency value of one point
    min_redeem_points = fields.IntField(default=0)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "loyalty_config"


class LoyaltyTransaction(models.Model):
    """
    Append-only ledger. A customer's balance is the balance_after of their most
    recent row (zero with no rows); Customer.loyalty_points mirrors it.
    """
    id = fields.IntField(primary_key=True)
    store = fields.ForeignKeyField("models.Store", related_name="loyalty_transactions")
    customer = fields.ForeignKeyField("models.Customer", related_name="loyalty_transactions")
    payment = fields.ForeignKeyField(
        "models.Payment", related_name="loyalty_transactions", null=True, on_delete=fields.SET_NULL
    )
    type = fields.CharEnumField(LoyaltyTransactionType)
    points = fields.IntField()  # Signed delta
    balance_after = fields.IntField()
    description = fields.CharField(max_length=255, null=True)
    value = fields.DecimalField(max_digits=12, decimal_places=2, null=True)  # Currency value of a redemption
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "loyalty_transactions"
        indexes = [
            ("store_id", "customer_id"),
            ("store_id", "payment_id", "type"),
        ]
