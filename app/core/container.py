from dataclasses import dataclass
from typing import Dict, Optional

from app.events.event_bus import EventBus
from app.notifications.channels import EmailChannel, NotificationChannel, SmsChannel
from app.notifications.dispatcher import NotificationDispatcher
from app.notifications.whatsapp import WhatsAppChannel
from app.repositories import (
    CustomerRepository,
    InventoryRepository,
    LoyaltyRepository,
    NotificationPreferenceRepository,
    OrderRepository,
    PaymentRepository,
    ProductionRepository,
    RecipeRepository,
    StoreRepository,
)
from app.services.catalog_service import CatalogService
from app.services.inventory_service import InventoryService
from app.services.loyalty_service import LoyaltyService
from app.services.order_service import OrderService
from app.services.payment_service import PaymentService
from app.services.production_service import ProductionService


@dataclass
class Repositories:
    orders: object
    inventory: object
    payments: object
    loyalty: object
    production: object
    stores: object
    customers: object
    recipes: object
    preferences: object


@dataclass
class Services:
    event_bus: EventBus
    orders: OrderService
    inventory: InventoryService
    payments: PaymentService
    loyalty: LoyaltyService
    production: ProductionService
    catalog: CatalogService
    notifications: NotificationDispatcher


def tortoise_repositories() -> Repositories:
    return Repositories(
        orders=OrderRepository(),
        inventory=InventoryRepository(),
        payments=PaymentRepository(),
        loyalty=LoyaltyRepository(),
        production=ProductionRepository(),
        stores=StoreRepository(),
        customers=CustomerRepository(),
        recipes=RecipeRepository(),
        preferences=NotificationPreferenceRepository(),
    )


def default_channels() -> Dict[str, NotificationChannel]:
    return {"email": EmailChannel(), "sms": SmsChannel(), "whatsapp": WhatsAppChannel()}


def build_services(
    event_bus: EventBus,
    repos: Optional[Repositories] = None,
    channels: Optional[Dict[str, NotificationChannel]] = None,
) -> Services:
    """Wires every service around one event bus. The dispatcher is built but not yet subscribed."""
    repos = repos or tortoise_repositories()
    inventory = InventoryService(repos.inventory, event_bus)
    loyalty = LoyaltyService(repos.loyalty, repos.customers)
    return Services(
        event_bus=event_bus,
        orders=OrderService(repos.orders, repos.recipes, repos.customers, inventory, event_bus),
        inventory=inventory,
        payments=PaymentService(repos.payments, repos.orders, loyalty, event_bus),
        loyalty=loyalty,
        production=ProductionService(repos.production, repos.orders, repos.recipes, event_bus),
        catalog=CatalogService(repos.stores, repos.customers, repos.recipes, repos.inventory, repos.preferences),
        notifications=NotificationDispatcher(repos.preferences, channels if channels is not None else default_channels()),
    )
