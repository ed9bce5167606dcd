"""Integration tests for POST /api/notify-order."""

from unittest.mock import AsyncMock, patch

import pytest


@pytest.mark.asyncio
@pytest.mark.integration
async def test_notification_logged_without_email(store_client):
    response = await store_client.post(
        "/api/notify-order", json={"orderId": "abc123", "status": "confirmed"}
    )

    assert response.status_code == 200
    assert response.json() == {"ok": True, "message": "Notification logged"}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_numeric_order_id_is_accepted(store_client):
    response = await store_client.post(
        "/api/notify-order", json={"orderId": 123, "status": "delivered"}
    )

    assert response.status_code == 200
    assert response.json()["ok"] is True


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize(
    "body",
    [
        {"status": "confirmed"},
        {"orderId": "abc123"},
        {"orderId": "", "status": "confirmed"},
    ],
)
async def test_missing_fields_are_400(store_client, body):
    response = await store_client.post("/api/notify-order", json=body)

    assert response.status_code == 400
    assert response.json() == {"ok": False, "error": "Missing orderId or status"}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_unknown_status_is_400(store_client):
    response = await store_client.post(
        "/api/notify-order", json={"orderId": "abc123", "status": "teleported"}
    )

    assert response.status_code == 400
    assert response.json()["ok"] is False


@pytest.mark.asyncio
@pytest.mark.integration
async def test_unparsable_body_is_500(store_client):
    response = await store_client.post(
        "/api/notify-order",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 500
    assert response.json()["ok"] is False


@pytest.mark.asyncio
@pytest.mark.integration
async def test_email_sent_when_configured(store_client):
    with patch(
        "services.store_service.routers.notify.email_configured", return_value=True
    ), patch(
        "services.store_service.routers.notify.send_order_status_email",
        new_callable=AsyncMock,
        return_value=True,
    ) as send:
        response = await store_client.post(
            "/api/notify-order",
            json={
                "orderId": "abc123",
                "status": "out_for_delivery",
                "email": "juan@up.edu.ph",
                "customerName": "Juan",
                "total": 175,
            },
        )

    assert response.status_code == 200
    assert response.json()["message"] == "Notification email sent"
    args, kwargs = send.call_args
    assert args == ("juan@up.edu.ph", "abc123", "out_for_delivery")
    assert kwargs["customer_name"] == "Juan"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_email_failure_still_ok(store_client):
    with patch(
        "services.store_service.routers.notify.email_configured", return_value=True
    ), patch(
        "services.store_service.routers.notify.send_order_status_email",
        new_callable=AsyncMock,
        return_value=False,
    ):
        response = await store_client.post(
            "/api/notify-order",
            json={"orderId": "abc123", "status": "confirmed", "email": "juan@up.edu.ph"},
        )

    assert response.status_code == 200
    assert response.json()["message"] == "Notification logged (email failed)"
