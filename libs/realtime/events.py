"""Change-feed payloads and the typed events decoded from them.

Services publish a ``ChangePayload`` for every committed row change; the wire
form mirrors the Supabase ``postgres_changes`` shape::

    {"table": "orders", "eventType": "UPDATE",
     "new": {...row...}, "old": {...row...}, "commit_timestamp": "..."}

Consumers turn payloads into ``OrderInserted``, ``OrderUpdated`` or
``MessageInserted`` with ``decode_change``. Anything else decodes to None.
"""

import enum
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from libs.orders.status import OrderStatus

logger = get_logger(__name__)

ORDERS_TABLE = "orders"
MESSAGES_TABLE = "messages"


class ChangeType(str, enum.Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class ChangePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    table: str
    event_type: ChangeType = Field(..., alias="eventType")
    new: dict[str, Any] = Field(default_factory=dict)
    old: dict[str, Any] = Field(default_factory=dict)
    commit_timestamp: datetime = Field(default_factory=utc_now)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# Row projections (defaults are applied here, at the boundary)
# ---------------------------------------------------------------------------


class OrderRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    user_id: str = ""
    customer_name: str = "New customer"
    customer_phone: str = ""
    total: Decimal = Decimal("0")
    status: OrderStatus = OrderStatus.PENDING
    created_at: Optional[datetime] = None

    @field_validator("id", "user_id", mode="before")
    @classmethod
    def _stringify(cls, v):
        return "" if v is None else str(v)

    @field_validator("customer_name", mode="before")
    @classmethod
    def _default_name(cls, v):
        return v or "New customer"

    @field_validator("customer_phone", mode="before")
    @classmethod
    def _default_phone(cls, v):
        return v or ""

    @field_validator("total", mode="before")
    @classmethod
    def _default_total(cls, v):
        return Decimal("0") if v is None else v


class MessageRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    user_id: str = ""
    sender_id: str = ""
    content: str = ""
    created_at: Optional[datetime] = None

    @field_validator("id", "user_id", "sender_id", mode="before")
    @classmethod
    def _stringify(cls, v):
        return "" if v is None else str(v)


# ---------------------------------------------------------------------------
# Typed events
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OrderInserted:
    order: OrderRecord
    committed_at: datetime


@dataclass(frozen=True)
class OrderUpdated:
    order: OrderRecord
    previous_status: Optional[OrderStatus]
    committed_at: datetime


@dataclass(frozen=True)
class MessageInserted:
    message: MessageRecord
    committed_at: datetime


ChangeEvent = Union[OrderInserted, OrderUpdated, MessageInserted]


def decode_change(raw: Union[ChangePayload, dict[str, Any]]) -> Optional[ChangeEvent]:
    """Decode a raw change payload. Malformed or unhandled payloads give None."""
    try:
        payload = raw if isinstance(raw, ChangePayload) else ChangePayload.model_validate(raw)

        if payload.table == ORDERS_TABLE and payload.event_type == ChangeType.INSERT:
            return OrderInserted(
                order=OrderRecord.model_validate(payload.new),
                committed_at=payload.commit_timestamp,
            )

        if payload.table == ORDERS_TABLE and payload.event_type == ChangeType.UPDATE:
            previous = payload.old.get("status")
            return OrderUpdated(
                order=OrderRecord.model_validate(payload.new),
                previous_status=OrderStatus(previous) if previous else None,
                committed_at=payload.commit_timestamp,
            )

        if payload.table == MESSAGES_TABLE and payload.event_type == ChangeType.INSERT:
            return MessageInserted(
                message=MessageRecord.model_validate(payload.new),
                committed_at=payload.commit_timestamp,
            )
    except (ValidationError, ValueError) as e:
        logger.warning("Dropping malformed change payload: %s", e)
        return None

    logger.debug("Ignoring change on %s (%s)", payload.table, payload.event_type.value)
    return None
