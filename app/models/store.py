from enum import Enum
from tortoise import fields, models


class LoyaltyTier(str, Enum):
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"


class Store(models.Model):
    id = fields.IntField(primary_key=True)
    name = fields.CharField(max_length=255)
    is_active = fields.BooleanField(default=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "stores"


class Customer(models.Model):
    id = fields.IntField(primary_key=True)
    store = fields.ForeignKeyField("models.Store", related_name="customers")
    name = fields.CharField(max_length=255)
    phone = fields.CharField(max_length=32, null=True)
    email = fields.CharField(max_length=255, null=True)
    # Denormalized copy of the latest loyalty ledger balance_after
    loyalty_points = fields.IntField(default=0)
    loyalty_enabled = fields.BooleanField(default=True)
    loyalty_tier = fields.CharEnumField(LoyaltyTier, default=LoyaltyTier.BRONZE)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "customers"
        indexes = [
            ("store_id",),
        ]
