from .catalog_repository import CustomerRepository, RecipeRepository, StoreRepository
from .inventory_repository import InventoryRepository
from .loyalty_repository import LoyaltyRepository
from .notification_repository import NotificationPreferenceRepository
from .order_repository import OrderRepository
from .payment_repository import PaymentRepository
from .production_repository import ProductionRepository

__all__ = [
    "CustomerRepository",
    "InventoryRepository",
    "LoyaltyRepository",
    "NotificationPreferenceRepository",
    "OrderRepository",
    "PaymentRepository",
    "ProductionRepository",
    "RecipeRepository",
    "StoreRepository",
]
