"""Communications service routers package."""

from services.communications_service.routers.admin_chat import router as admin_chat_router
from services.communications_service.routers.chat import router as chat_router

__all__ = ["admin_chat_router", "chat_router"]
