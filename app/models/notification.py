from tortoise import fields, models


class NotificationPreference(models.Model):
    """Who gets notified about which event type, and through which channels."""
    id = fields.IntField(primary_key=True)
    store = fields.ForeignKeyField("models.Store", related_name="notification_preferences")
    event_type = fields.CharField(max_length=64)  # e.g. 'order_created', 'low_stock'
    recipient_name = fields.CharField(max_length=255)
    email = fields.CharField(max_length=255, null=True)
    phone = fields.CharField(max_length=32, null=True)
    language = fields.CharField(max_length=8, default="en")
    channel_email = fields.BooleanField(default=True)
    channel_sms = fields.BooleanField(default=False)
    channel_whatsapp = fields.BooleanField(default=False)

    class Meta:
        table = "notification_preferences"
        indexes = [
            ("store_id", "event_type"),
        ]
