"""Unit tests for decoding change payloads into typed events."""

from decimal import Decimal

import pytest
from libs.orders.status import OrderStatus
from libs.realtime.events import (
    ChangePayload,
    MessageInserted,
    OrderInserted,
    OrderUpdated,
    decode_change,
)


@pytest.mark.unit
def test_order_insert_applies_defaults_for_missing_fields():
    event = decode_change(
        {
            "table": "orders",
            "eventType": "INSERT",
            "new": {"id": "o-1", "customer_name": None, "total": None},
        }
    )

    assert isinstance(event, OrderInserted)
    assert event.order.customer_name == "New customer"
    assert event.order.total == Decimal("0")
    assert event.order.status == OrderStatus.PENDING


@pytest.mark.unit
def test_order_update_carries_previous_status():
    event = decode_change(
        {
            "table": "orders",
            "eventType": "UPDATE",
            "new": {"id": "o-1", "user_id": "u-1", "status": "out_for_delivery"},
            "old": {"id": "o-1", "status": "preparing"},
        }
    )

    assert isinstance(event, OrderUpdated)
    assert event.order.status == OrderStatus.OUT_FOR_DELIVERY
    assert event.previous_status == OrderStatus.PREPARING


@pytest.mark.unit
def test_message_insert():
    payload = ChangePayload(
        table="messages",
        event_type="INSERT",
        new={"id": "m-1", "user_id": "u-1", "content": "hello"},
    )

    event = decode_change(payload)

    assert isinstance(event, MessageInserted)
    assert event.message.content == "hello"


@pytest.mark.unit
@pytest.mark.parametrize(
    "raw",
    [
        {"table": "orders", "eventType": "DELETE", "old": {"id": "o-1"}},
        {"table": "stores", "eventType": "INSERT", "new": {"id": "s-1"}},
        {"table": "orders", "eventType": "INSERT", "new": {"status": "pending"}},
        {"table": "orders", "eventType": "UPDATE", "new": {"id": "o-1", "status": "lost"}},
        {"eventType": "INSERT"},
    ],
)
def test_unhandled_or_malformed_payloads_decode_to_none(raw):
    assert decode_change(raw) is None


@pytest.mark.unit
def test_wire_form_uses_event_type_alias():
    payload = ChangePayload(table="orders", event_type="INSERT", new={"id": "o-1"})
    wire = payload.to_wire()
    assert wire["eventType"] == "INSERT"
    assert ChangePayload.model_validate(wire) == payload
