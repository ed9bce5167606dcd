"""Unit tests for order status email content and sending."""

from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
from libs.common.config import get_settings
from libs.common.emails.orders import build_order_status_email, send_order_status_email


@pytest.mark.unit
def test_email_mentions_status_short_id_and_total():
    subject, body = build_order_status_email(
        "3f2a9c10-aaaa-bbbb-cccc-1234567890ab",
        "out_for_delivery",
        customer_name="Juan",
        total=Decimal("175"),
    )

    assert subject == "Your order is on its way - #3f2a9c10"
    assert body.startswith("Hi Juan,")
    assert "₱175.00" in body


@pytest.mark.unit
def test_unknown_name_and_total_are_omitted():
    _, body = build_order_status_email("abc", "confirmed")
    assert body.startswith("Hi there,")
    assert "Total" not in body


@pytest.mark.asyncio
@pytest.mark.unit
async def test_send_skipped_when_smtp_not_configured():
    with patch("libs.common.emails.core.smtplib.SMTP") as smtp:
        sent = await send_order_status_email("juan@up.edu.ph", "abc", "confirmed")

    assert sent is False
    smtp.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.unit
async def test_send_uses_smtp_when_configured(monkeypatch):
    monkeypatch.setenv("SMTP_USERNAME", "relay-user")
    monkeypatch.setenv("BREVO_KEY", "brevo-key")
    get_settings.cache_clear()
    try:
        with patch("libs.common.emails.core.smtplib.SMTP") as smtp:
            server = MagicMock()
            smtp.return_value.__enter__.return_value = server
            sent = await send_order_status_email("juan@up.edu.ph", "abc", "delivered")
    finally:
        monkeypatch.undo()
        get_settings.cache_clear()

    assert sent is True
    server.login.assert_called_once_with("relay-user", "brevo-key")
    server.send_message.assert_called_once()
