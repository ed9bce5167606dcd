"""
Order status notification emails.
"""

from decimal import Decimal
from typing import Optional

from libs.common.config import get_settings
from libs.common.emails.core import send_email
from libs.common.pricing import format_amount

STATUS_HEADLINES = {
    "pending": "We received your order",
    "confirmed": "Your order is confirmed",
    "preparing": "Your order is being prepared",
    "out_for_delivery": "Your order is on its way",
    "delivered": "Your order was delivered",
    "cancelled": "Your order was cancelled",
}


def build_order_status_email(
    order_id: str,
    status: str,
    customer_name: Optional[str] = None,
    total: Optional[Decimal] = None,
) -> tuple[str, str]:
    """Return ``(subject, body)`` for an order status change."""
    settings = get_settings()
    headline = STATUS_HEADLINES.get(status, f"Order status: {status}")
    short_id = order_id[:8]

    lines = [
        f"Hi {customer_name or 'there'},",
        "",
        f"{headline}.",
        "",
        f"Order #{short_id}",
    ]
    if total is not None:
        lines.append(f"Total (cash on delivery): {format_amount(total, settings.CURRENCY_SYMBOL)}")
    lines += ["", f"Thank you for ordering with {settings.DEFAULT_FROM_NAME}!"]

    return f"{headline} - #{short_id}", "\n".join(lines)


async def send_order_status_email(
    to_email: str,
    order_id: str,
    status: str,
    customer_name: Optional[str] = None,
    total: Optional[Decimal] = None,
) -> bool:
    subject, body = build_order_status_email(order_id, status, customer_name, total)
    return await send_email(to_email, subject, body)
