"""Communications Service models package."""

from services.communications_service.models.chat import Conversation, Message

__all__ = ["Conversation", "Message"]
