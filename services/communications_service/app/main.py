"""FastAPI application for the Communications Service."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from libs.common.logging import get_logger
from libs.common.middleware import add_observability_middleware
from libs.db.session import create_all_tables
from libs.realtime.feed import change_feed
from services.communications_service.routers import admin_chat_router, chat_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_all_tables()
    logger.info("Communications service started")
    yield
    change_feed.close_all()


def create_app() -> FastAPI:
    """Create and configure the Communications Service FastAPI app."""
    app = FastAPI(
        title="Palaro Communications Service",
        version="0.1.0",
        description="Customer support chat for Palaro.",
        lifespan=lifespan,
    )
    add_observability_middleware(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "communications"}

    app.include_router(chat_router)
    app.include_router(admin_chat_router)

    return app


app = create_app()
