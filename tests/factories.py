"""
Model factories for creating valid test data.

Every factory produces a valid, insertable SQLAlchemy model instance.
Override any field via kwargs.

Usage:
    store = StoreFactory.create(name="Kape Kanto")
    db_session.add(store)
    await db_session.commit()
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _uuid() -> uuid.UUID:
    return uuid.uuid4()


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Store Service - catalog
# ---------------------------------------------------------------------------


class StoreFactory:
    @staticmethod
    def create(**overrides):
        from services.store_service.models import Store

        defaults = {
            "id": _uuid(),
            "name": f"Store {uuid.uuid4().hex[:6]}",
            "description": "Rice meals and snacks",
            "image": None,
            "rating": Decimal("4.50"),
            "delivery_time": "20-30 min",
            "location": "Area 2",
            "phone": "09171234567",
            "is_open": True,
            "categories": ["Rice Meals", "Drinks"],
            "created_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return Store(**defaults)


class ProductFactory:
    @staticmethod
    def create(store_id=None, **overrides):
        from services.store_service.models import Product

        defaults = {
            "id": _uuid(),
            "store_id": store_id or _uuid(),
            "name": f"Product {uuid.uuid4().hex[:6]}",
            "description": "House special",
            "price": Decimal("85.00"),
            "image": None,
            "category": "Rice Meals",
            "is_available": True,
            "created_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return Product(**defaults)


# ---------------------------------------------------------------------------
# Store Service - orders
# ---------------------------------------------------------------------------


class OrderFactory:
    @staticmethod
    def create(user_id="test-user", **overrides):
        from services.store_service.models import (
            Order,
            OrderStatus,
            PaymentMethod,
            PaymentStatus,
        )

        defaults = {
            "id": _uuid(),
            "user_id": user_id,
            "customer_name": "Juan dela Cruz",
            "customer_phone": "09181234567",
            "delivery_address": "Molave Residence Hall, Room 214",
            "special_instructions": None,
            "subtotal": Decimal("170.00"),
            "delivery_fee": Decimal("5.00"),
            "total": Decimal("175.00"),
            "status": OrderStatus.PENDING,
            "payment_method": PaymentMethod.COD,
            "payment_status": PaymentStatus.PENDING,
            "created_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return Order(**defaults)


class OrderItemFactory:
    @staticmethod
    def create(order_id=None, **overrides):
        from services.store_service.models import OrderItem

        defaults = {
            "id": _uuid(),
            "order_id": order_id or _uuid(),
            "product_id": str(_uuid()),
            "product_name": "Tapsilog",
            "product_price": Decimal("85.00"),
            "quantity": 2,
            "store_id": str(_uuid()),
            "store_name": "Rodic's",
        }
        defaults.update(overrides)
        return OrderItem(**defaults)


# ---------------------------------------------------------------------------
# Communications Service
# ---------------------------------------------------------------------------


class ConversationFactory:
    @staticmethod
    def create(user_id="test-user", **overrides):
        from services.communications_service.models import Conversation

        defaults = {
            "id": _uuid(),
            "user_id": user_id,
            "admin_started": True,
            "started_by": "admin@palaro.app",
            "created_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return Conversation(**defaults)


class MessageFactory:
    @staticmethod
    def create(user_id="test-user", **overrides):
        from services.communications_service.models import Message

        defaults = {
            "id": _uuid(),
            "user_id": user_id,
            "sender_id": user_id,
            "content": "Hi, is my order on the way?",
            "created_at": _now(),
        }
        defaults.update(overrides)
        return Message(**defaults)
