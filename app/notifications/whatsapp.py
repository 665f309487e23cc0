import logging
import re
from typing import Any, Dict, Optional

import httpx

from app.core.config import (
    DEFAULT_CURRENCY_SYMBOL,
    NOTIFICATION_HTTP_TIMEOUT,
    WHATSAPP_ACCESS_TOKEN,
    WHATSAPP_API_BASE,
    WHATSAPP_PHONE_NUMBER_ID,
)
from app.notifications.channels import NotificationChannel, NotificationContext, NotificationRecipient

log = logging.getLogger("notifications.whatsapp")

TRANSLATIONS: Dict[str, Dict[str, str]] = {
    "en": {
        "order_created_subject": "New Order Received",
        "order_created_body": "A new order has been placed.",
        "low_stock_subject": "Low Stock Alert",
        "running_low": "is running low.",
        "payment_received_subject": "Payment Received",
        "payment_received_body": "A payment has been successfully processed.",
        "order_id": "Order ID",
        "customer": "Customer",
        "total": "Total",
        "items": "Items",
        "due": "Due",
        "current_quantity": "Current quantity",
        "threshold": "Threshold",
        "amount": "Amount",
        "order_ref": "Order",
        "method": "Method",
        "default_item": "An item",
    },
    "he": {
        "order_created_subject": "הזמנה חדשה התקבלה",
        "order_created_body": "הזמנה חדשה בוצעה.",
        "low_stock_subject": "התראת מלאי נמוך",
        "running_low": "המלאי הולך ואוזל",
        "payment_received_subject": "תשלום התקבל",
        "payment_received_body": "התשלום עובד בהצלחה.",
        "order_id": "מספר הזמנה",
        "customer": "לקוח",
        "total": 'סה"כ',
        "items": "פריטים",
        "due": "מועד",
        "current_quantity": "כמות נוכחית",
        "threshold": "סף מינימום",
        "amount": "סכום",
        "order_ref": "הזמנה",
        "method": "אמצעי תשלום",
        "default_item": "פריט",
    },
}


def _t(language: Optional[str]) -> Dict[str, str]:
    return TRANSLATIONS.get(language or "en", TRANSLATIONS["en"])


def normalize_phone(phone: str, country_code: str = "972") -> str:
    """Local numbers with a leading 0 get the country code; everything ends up in +<digits> form."""
    digits = re.sub(r"[^0-9]", "", phone)
    if digits.startswith(country_code):
        return f"+{digits}"
    if digits.startswith("0"):
        return f"+{country_code}{digits[1:]}"
    return f"+{digits}"


def build_order_created(t: Dict[str, str], p: Dict[str, Any]) -> str:
    lines = [f"*{t['order_created_subject']}*", t["order_created_body"], ""]
    if p.get("orderNumber"):
        lines.append(f"{t['order_id']}: #{p['orderNumber']}")
    if p.get("customerName"):
        lines.append(f"{t['customer']}: {p['customerName']}")
    if p.get("totalAmount") is not None:
        lines.append(f"{t['total']}: {DEFAULT_CURRENCY_SYMBOL}{p['totalAmount']}")
    if p.get("itemCount"):
        lines.append(f"{t['items']}: {p['itemCount']}")
    if p.get("dueDate"):
        lines.append(f"{t['due']}: {p['dueDate']}")
    return "\n".join(lines)


def build_low_stock(t: Dict[str, str], p: Dict[str, Any]) -> str:
    item_name = p.get("itemName") or t["default_item"]
    unit_suffix = f" {p['unit']}" if p.get("unit") else ""
    lines = [f"*{t['low_stock_subject']}*", "", f"*{item_name}* {t['running_low']}"]
    if p.get("currentQuantity") is not None:
        lines.append(f"{t['current_quantity']}: {p['currentQuantity']}{unit_suffix}")
    if p.get("threshold") is not None:
        lines.append(f"{t['threshold']}: {p['threshold']}{unit_suffix}")
    return "\n".join(lines)


def build_payment_received(t: Dict[str, str], p: Dict[str, Any]) -> str:
    lines = [f"*{t['payment_received_subject']}*", t["payment_received_body"], ""]
    if p.get("amount") is not None:
        lines.append(f"{t['amount']}: {DEFAULT_CURRENCY_SYMBOL}{p['amount']}")
    if p.get("orderNumber"):
        lines.append(f"{t['order_ref']}: #{p['orderNumber']}")
    if p.get("method"):
        lines.append(f"{t['method']}: {p['method']}")
    if p.get("customerName"):
        lines.append(f"{t['customer']}: {p['customerName']}")
    return "\n".join(lines)


MESSAGE_BUILDERS = {
    "order_created": build_order_created,
    "low_stock": build_low_stock,
    "payment_received": build_payment_received,
}


def build_message(context: NotificationContext, language: Optional[str]) -> str:
    builder = MESSAGE_BUILDERS.get(context.event_type)
    if builder is None:
        return f"*{context.event_name}*\n{context.payload}"
    return builder(_t(language), context.payload)


class WhatsAppChannel(NotificationChannel):
    """Sends plain-text messages through the WhatsApp Cloud API."""
    name = "whatsapp"

    def __init__(
        self,
        phone_number_id: str = WHATSAPP_PHONE_NUMBER_ID,
        access_token: str = WHATSAPP_ACCESS_TOKEN,
        api_base: str = WHATSAPP_API_BASE,
        timeout: float = NOTIFICATION_HTTP_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.phone_number_id = phone_number_id
        self.access_token = access_token
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.phone_number_id and self.access_token)

    async def send(self, recipient: NotificationRecipient, context: NotificationContext) -> bool:
        if not self.configured:
            log.warning(f"[WHATSAPP] Not configured; {context.event_type} to {recipient.name} skipped.")
            return False
        if not recipient.phone:
            log.warning(f"[WHATSAPP] No phone number for {recipient.name}; {context.event_type} not sent.")
            return False

        to = normalize_phone(recipient.phone)
        body = {
            "messaging_product": "whatsapp",
            "to": to,
            "type": "text",
            "text": {"body": build_message(context, recipient.language)},
        }
        url = f"{self.api_base}/{self.phone_number_id}/messages"

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(url, json=body, headers={"Authorization": f"Bearer {self.access_token}"})
        except httpx.HTTPError as e:
            log.error(f"[WHATSAPP] Request to {to} failed for {context.event_type} "
                      f"(correlation_id={context.correlation_id}): {e!r}")
            return False

        if resp.status_code >= 400:
            log.error(f"[WHATSAPP] API error {resp.status_code} sending {context.event_type} to {to}: {resp.text}")
            return False

        log.info(f"[WHATSAPP] {context.event_type} sent to {to}.")
        return True
