"""Store Service models package."""

from services.store_service.models.catalog import Product, Store
from services.store_service.models.commerce import Order, OrderItem
from services.store_service.models.enums import (
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)

__all__ = [
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentMethod",
    "PaymentStatus",
    "Product",
    "Store",
]
