"""Enum definitions for store service models."""

from libs.orders.status import OrderStatus, PaymentMethod, PaymentStatus


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


__all__ = ["OrderStatus", "PaymentMethod", "PaymentStatus", "enum_values"]
