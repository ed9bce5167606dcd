"""Store service routers package."""

from services.store_service.routers.admin_catalog import router as admin_catalog_router
from services.store_service.routers.admin_orders import router as admin_orders_router
from services.store_service.routers.catalog import router as catalog_router
from services.store_service.routers.notify import router as notify_router
from services.store_service.routers.orders import router as orders_router
from services.store_service.routers.realtime import router as realtime_router

__all__ = [
    "admin_catalog_router",
    "admin_orders_router",
    "catalog_router",
    "notify_router",
    "orders_router",
    "realtime_router",
]
