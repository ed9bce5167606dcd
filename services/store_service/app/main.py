"""FastAPI application for the Store Service."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from libs.common.logging import get_logger
from libs.common.middleware import add_observability_middleware
from libs.db.session import create_all_tables
from libs.realtime.feed import change_feed
from services.store_service.routers import (
    admin_catalog_router,
    admin_orders_router,
    catalog_router,
    notify_router,
    orders_router,
    realtime_router,
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_all_tables()
    logger.info("Store service started")
    yield
    # Release open SSE streams so the server can shut down
    change_feed.close_all()


def create_app() -> FastAPI:
    """Create and configure the Store Service FastAPI app."""
    app = FastAPI(
        title="Palaro Store Service",
        version="0.1.0",
        description="Campus food delivery - stores, products, orders and realtime order updates.",
        lifespan=lifespan,
    )
    add_observability_middleware(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "store"}

    # Public store routes (catalog, checkout, order history, realtime)
    app.include_router(catalog_router, prefix="/store")
    app.include_router(orders_router, prefix="/store")
    app.include_router(realtime_router, prefix="/store")

    # Admin routes (catalog management, order management, dashboard)
    app.include_router(admin_catalog_router, prefix="/admin/store")
    app.include_router(admin_orders_router, prefix="/admin/store")

    # Outward notification hook
    app.include_router(notify_router)

    return app


app = create_app()
