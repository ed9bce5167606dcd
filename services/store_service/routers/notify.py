"""Outward order-notification endpoint used after status changes."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from libs.common.emails.core import email_configured
from libs.common.emails.orders import send_order_status_email
from libs.common.logging import get_logger
from pydantic import ValidationError
from services.store_service.schemas import OrderNotification

logger = get_logger(__name__)

router = APIRouter(tags=["notifications"])


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"ok": False, "error": message}, status_code=status_code)


@router.post("/api/notify-order")
async def notify_order(request: Request):
    """
    Record an order status notification and email the customer when possible.

    400 for a missing ``orderId``/``status`` or an unknown status, 500 for
    anything unexpected (including a body that is not JSON).
    """
    try:
        body = await request.json()
        if not isinstance(body, dict) or not body.get("orderId") or not body.get("status"):
            return _error("Missing orderId or status", 400)

        try:
            notification = OrderNotification.model_validate(body)
        except ValidationError as e:
            return _error(f"Invalid notification: {e.errors()[0]['msg']}", 400)

        status_value = notification.status.value
        logger.info(
            "Order notification: %s - %s",
            notification.order_id,
            status_value,
            extra={
                "extra_fields": {
                    "order_id": notification.order_id,
                    "status": status_value,
                    "email": notification.email,
                    "customer_name": notification.customer_name,
                    "total": str(notification.total) if notification.total is not None else None,
                }
            },
        )

        if notification.email and email_configured():
            sent = await send_order_status_email(
                notification.email,
                notification.order_id,
                status_value,
                customer_name=notification.customer_name,
                total=notification.total,
            )
            message = "Notification email sent" if sent else "Notification logged (email failed)"
        else:
            message = "Notification logged"

        return {"ok": True, "message": message}
    except Exception as e:
        logger.error("Order notification failed: %s", e, exc_info=True)
        return _error(str(e) or "Internal error", 500)
