import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

log = logging.getLogger("notifications")


@dataclass
class NotificationRecipient:
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    language: str = "en"


@dataclass
class NotificationContext:
    event_type: str  # 'order_created', 'low_stock', 'payment_received'
    event_name: str
    store_id: Optional[int] = None
    payload: Dict[str, Any] = field(default_factory=dict)
    correlation_id: Optional[str] = None


class NotificationChannel(ABC):
    """
    One delivery mechanism. `send` reports success as a bool and handles its own
    delivery failures; it must not raise for an undeliverable message.
    """
    name = "channel"

    @abstractmethod
    async def send(self, recipient: NotificationRecipient, context: NotificationContext) -> bool:
        ...


class EmailChannel(NotificationChannel):
    """Log-delivery email adapter until an SMTP provider is wired in."""
    name = "email"

    async def send(self, recipient: NotificationRecipient, context: NotificationContext) -> bool:
        if not recipient.email:
            log.warning(f"[EMAIL] No email address for {recipient.name}; {context.event_type} not sent.")
            return False
        log.info(
            f"[EMAIL] {context.event_type} -> {recipient.email} "
            f"(store={context.store_id}, correlation_id={context.correlation_id})"
        )
        return True


class SmsChannel(NotificationChannel):
    name = "sms"

    async def send(self, recipient: NotificationRecipient, context: NotificationContext) -> bool:
        if not recipient.phone:
            log.warning(f"[SMS] No phone number for {recipient.name}; {context.event_type} not sent.")
            return False
        log.info(
            f"[SMS] {context.event_type} -> {recipient.phone} "
            f"(store={context.store_id}, correlation_id={context.correlation_id})"
        )
        return True
