"""Cash-on-delivery checkout: turns the cart into an order and its items."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from libs.common.logging import get_logger
from pydantic import BaseModel, field_validator

from clients.storefront.api import ApiError, StoreApiClient
from clients.storefront.cart import CartItem, CartStore

if TYPE_CHECKING:
    from clients.storefront.session import AuthSession

logger = get_logger(__name__)


class CheckoutError(Exception):
    """Base class for checkout failures. The cart is never cleared."""


class CheckoutValidationError(CheckoutError):
    """Nothing was sent to the backend."""


class CheckoutFailedError(CheckoutError):
    """A backend write failed.

    ``order_id`` is set when the order row was written but its items were
    not, leaving an order without items behind.
    """

    def __init__(self, message: str, order_id: Optional[str] = None):
        super().__init__(message)
        self.order_id = order_id


class DeliveryForm(BaseModel):
    full_name: str = ""
    phone: str = ""
    delivery_address: str = ""
    special_instructions: Optional[str] = None

    @field_validator("full_name", "phone", "delivery_address", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v

    def missing_fields(self) -> list[str]:
        return [
            name
            for name in ("full_name", "phone", "delivery_address")
            if not getattr(self, name)
        ]


@dataclass(frozen=True)
class CheckoutResult:
    order_id: str
    item_count: int

    @property
    def redirect_path(self) -> str:
        return f"/order-success?orderId={self.order_id}"


class CheckoutFlow:
    def __init__(
        self,
        cart: CartStore,
        api: StoreApiClient,
        session: Optional["AuthSession"] = None,
    ):
        self.cart = cart
        self.api = api
        self.session = session

    def validate(self, form: DeliveryForm) -> None:
        if self.session is not None and self.session.current_user() is None:
            raise CheckoutValidationError("Please sign in to place an order")
        if self.cart.is_empty:
            raise CheckoutValidationError("Your cart is empty")
        missing = form.missing_fields()
        if missing:
            raise CheckoutValidationError(
                f"Please fill in all required fields: {', '.join(missing)}"
            )

    async def submit(self, form: DeliveryForm) -> CheckoutResult:
        """
        Place the order: write the order row, then one item per cart line,
        then clear the cart.

        Raises:
            CheckoutValidationError: before any request is made.
            CheckoutFailedError: when either write fails; the cart is kept.
        """
        self.validate(form)

        # Both writes are built from this snapshot; the cart may change while they run
        snapshot = [item.model_copy() for item in self.cart.items]
        subtotal = self.cart.subtotal()
        fee = self.cart.delivery_fee()
        total = self.cart.total()
        lines = [
            {
                "product_id": item.id,
                "product_name": item.name,
                "product_price": item.price,
                "quantity": item.quantity,
                "store_id": item.store_id,
                "store_name": item.store_name,
            }
            for item in snapshot
        ]

        try:
            order = await self.api.insert_order(
                customer_name=form.full_name,
                customer_phone=form.phone,
                delivery_address=form.delivery_address,
                special_instructions=form.special_instructions,
                subtotal=subtotal,
                delivery_fee=fee,
                total=total,
            )
        except ApiError as e:
            logger.error("Error creating order: %s", e.message)
            raise CheckoutFailedError("Failed to create order. Please try again.") from e

        order_id = str(order["id"])

        try:
            await self.api.insert_order_items(order_id, lines)
        except ApiError as e:
            logger.error(
                "Error creating items for order %s; order left without items: %s",
                order_id,
                e.message,
            )
            raise CheckoutFailedError(
                "Failed to create order items. Please try again.", order_id=order_id
            ) from e

        self._remove_ordered(snapshot)
        logger.info("Checkout complete for order %s (%d lines)", order_id, len(lines))
        return CheckoutResult(order_id=order_id, item_count=len(lines))

    def _remove_ordered(self, ordered: list[CartItem]) -> None:
        """Empty the cart, keeping only what was added after the snapshot."""
        if self.cart.items == ordered:
            self.cart.clear_cart()
            return
        placed = {item.id: item.quantity for item in ordered}
        for item in self.cart.items:
            if item.id in placed:
                self.cart.update_quantity(item.id, item.quantity - placed[item.id])
