from enum import Enum
from tortoise import fields, models


class PaymentMethod(str, Enum):
    CASH = "cash"


class PaymentRecordStatus(str, Enum):
    COMPLETED = "completed"
    REFUNDED = "refunded"


class Payment(models.Model):
    """
    Append-only payment ledger row. A refund flips `status` on the existing row;
    no negative-amount rows are ever written.
    """
    id = fields.IntField(primary_key=True)
    store = fields.ForeignKeyField("models.Store", related_name="payments")
    order = fields.ForeignKeyField("models.Order", related_name="payments")
    amount = fields.DecimalField(max_digits=14, decimal_places=2)
    method = fields.CharEnumField(PaymentMethod, default=PaymentMethod.CASH)
    status = fields.CharEnumField(PaymentRecordStatus, default=PaymentRecordStatus.COMPLETED)
    notes = fields.TextField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "payments"
        indexes = [
            ("store_id", "order_id"),
        ]
