class EventNames:
    """Names under which domain events are published on the bus."""
    ORDER_CREATED = "order.created"
    ORDER_STATUS_CHANGED = "order.statusChanged"
    INVENTORY_LOW_STOCK = "inventory.lowStock"
    PAYMENT_RECEIVED = "payment.received"
    PAYMENT_REFUNDED = "payment.refunded"
    BATCH_CREATED = "batch.created"
    BATCH_STAGE_CHANGED = "batch.stageChanged"
    BATCH_COMPLETED = "batch.completed"
