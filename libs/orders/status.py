"""Order status values and the delivery lifecycle.

    pending → confirmed → preparing → out_for_delivery → delivered
       └──────────┴───────────┴──────────────┴──→ cancelled

``delivered`` and ``cancelled`` are terminal. Status changes are made by
administrators only; whether an out-of-sequence change is rejected is decided
by the caller (see ``STRICT_ORDER_TRANSITIONS``).
"""

import enum


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethod(str, enum.Enum):
    COD = "cod"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"


ORDER_FLOW: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset({OrderStatus.OUT_FOR_DELIVERY, OrderStatus.CANCELLED}),
    OrderStatus.OUT_FOR_DELIVERY: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_ORDER_STATUSES = frozenset(
    status for status, successors in ORDER_FLOW.items() if not successors
)
ACTIVE_ORDER_STATUSES = frozenset(OrderStatus) - TERMINAL_ORDER_STATUSES

STATUS_LABELS = {
    OrderStatus.PENDING: "Pending",
    OrderStatus.CONFIRMED: "Confirmed",
    OrderStatus.PREPARING: "Preparing",
    OrderStatus.OUT_FOR_DELIVERY: "Out for Delivery",
    OrderStatus.DELIVERED: "Delivered",
    OrderStatus.CANCELLED: "Cancelled",
}


def is_terminal(status: OrderStatus) -> bool:
    return OrderStatus(status) in TERMINAL_ORDER_STATUSES


def is_active(status: OrderStatus) -> bool:
    return OrderStatus(status) in ACTIVE_ORDER_STATUSES


def is_legal_transition(current: OrderStatus, new: OrderStatus) -> bool:
    """True when ``new`` is a successor of ``current`` in the delivery flow."""
    return OrderStatus(new) in ORDER_FLOW[OrderStatus(current)]
