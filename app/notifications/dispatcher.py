import asyncio
import logging
from typing import Dict, List, Optional

from app.events.event_bus import DomainEvent, EventBus
from app.events.event_names import EventNames
from app.notifications.channels import NotificationChannel, NotificationContext, NotificationRecipient

log = logging.getLogger("notifications.dispatcher")

# Only these events notify anyone; the value is the preference event_type.
EVENT_TYPE_MAP = {
    EventNames.ORDER_CREATED: "order_created",
    EventNames.INVENTORY_LOW_STOCK: "low_stock",
    EventNames.PAYMENT_RECEIVED: "payment_received",
}

# Preference flag -> channel key
CHANNEL_FLAGS = {
    "channel_email": "email",
    "channel_sms": "sms",
    "channel_whatsapp": "whatsapp",
}


class NotificationDispatcher:
    """
    Fans a domain event out to every recipient subscribed to its event type,
    over each channel the recipient has enabled. Sends run concurrently and a
    failing channel never affects its siblings or the publisher.
    """

    def __init__(self, preference_repository, channels: Dict[str, NotificationChannel]):
        self._preferences = preference_repository
        self._channels = channels

    def register(self, bus: EventBus) -> None:
        for event_name in EVENT_TYPE_MAP:
            bus.subscribe(event_name, self.dispatch)

    async def dispatch(self, event: DomainEvent) -> int:
        """Returns the number of messages a channel reported as delivered."""
        event_type = EVENT_TYPE_MAP.get(event.event_name)
        if event_type is None:
            log.warning(f"No notification mapping for {event.event_name}")
            return 0

        store_id: Optional[int] = event.payload.get("storeId")
        if store_id is None:
            log.warning(f"{event.event_name} carries no storeId (correlation_id={event.correlation_id}); nothing sent.")
            return 0

        preferences = await self._preferences.find_by_event_type(store_id, event_type)
        context = NotificationContext(
            event_type=event_type,
            event_name=event.event_name,
            store_id=store_id,
            payload=dict(event.payload),
            correlation_id=event.correlation_id,
        )

        labels: List[str] = []
        sends = []
        for pref in preferences:
            recipient = NotificationRecipient(
                name=pref.recipient_name, email=pref.email, phone=pref.phone, language=pref.language
            )
            for flag, key in CHANNEL_FLAGS.items():
                channel = self._channels.get(key)
                if getattr(pref, flag, False) and channel is not None:
                    labels.append(f"{key}:{recipient.name}")
                    sends.append(channel.send(recipient, context))

        results = await asyncio.gather(*sends, return_exceptions=True)
        delivered = 0
        for label, result in zip(labels, results):
            if isinstance(result, Exception):
                log.error(f"Channel send {label} failed for {event.event_name} "
                          f"(correlation_id={event.correlation_id}): {result!r}")
            elif result:
                delivered += 1

        log.info(f"Dispatched {event_type} to {len(preferences)} recipient(s): {delivered}/{len(sends)} delivered.")
        return delivered
