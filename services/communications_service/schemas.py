"""Pydantic schemas for the communications service."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


class MessageCreate(BaseModel):
    content: str = Field(..., max_length=2000)
    # Admins post into a customer's conversation; ignored for customers
    user_id: Optional[str] = None

    @field_validator("content", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v


class MessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: str
    sender_id: str
    content: str
    created_at: datetime


class ConversationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    admin_started: bool = False
    started_by: Optional[str] = None
    created_at: Optional[datetime] = None

    @computed_field
    @property
    def can_send(self) -> bool:
        return self.admin_started
