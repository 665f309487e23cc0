# app/models/__init__.py
from .store import Store, Customer, LoyaltyTier
from .recipe import Recipe, RecipeIngredient
from .order import Order, OrderItem, OrderStatus
from .inventory import Ingredient, InventoryLog, AdjustmentType
from .payment import Payment, PaymentMethod, PaymentRecordStatus
from .loyalty import LoyaltyConfig, LoyaltyTransaction, LoyaltyTransactionType
from .production import ProductionBatch, BatchOrder, ProductionStage
from .notification import NotificationPreference

# Export all models
__all__ = [
    "Store",
    "Customer",
    "LoyaltyTier",
    "Recipe",
    "RecipeIngredient",
    "Order",
    "OrderItem",
    "OrderStatus",
    "Ingredient",
    "InventoryLog",
    "AdjustmentType",
    "Payment",
    "PaymentMethod",
    "PaymentRecordStatus",
    "LoyaltyConfig",
    "LoyaltyTransaction",
    "LoyaltyTransactionType",
    "ProductionBatch",
    "BatchOrder",
    "ProductionStage",
    "NotificationPreference",
]
