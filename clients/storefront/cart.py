"""
Shopping cart state.

``CartStore`` owns the cart for one browsing session. Every mutation is
written to local storage before it returns, and a new store rehydrates from
that storage, so the cart survives restarts and the sign-in redirect.
"""

import json
from decimal import Decimal
from typing import Optional

from libs.common.logging import get_logger
from libs.common.pricing import delivery_fee, line_total, quantize, sum_amounts
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from clients.storefront.storage import KeyValueStorage, MemoryStorage

logger = get_logger(__name__)

CART_STORAGE_KEY = "palaro_cart_v1"


class CartItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    price: Decimal = Field(..., ge=0)
    quantity: int = Field(1, ge=1)
    store_id: str = Field(..., alias="storeId")
    store_name: str = Field("", alias="storeName")
    image: str = ""

    @property
    def line_total(self) -> Decimal:
        return line_total(self.price, self.quantity)


class CartState(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    items: list[CartItem] = []
    is_open: bool = Field(False, alias="isOpen")


class CartStore:
    def __init__(self, storage: Optional[KeyValueStorage] = None, key: str = CART_STORAGE_KEY):
        self.storage = storage if storage is not None else MemoryStorage()
        self.key = key
        self.state = self._load()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self) -> CartState:
        raw = self.storage.get(self.key)
        if not raw:
            return CartState()
        try:
            return CartState.model_validate(json.loads(raw))
        except (ValueError, ValidationError):
            # Corrupt carts are dropped; the customer starts over
            logger.debug("Discarding unreadable persisted cart")
            return CartState()

    def _save(self) -> None:
        try:
            self.storage.set(self.key, self.state.model_dump_json(by_alias=True))
        except OSError as e:
            logger.warning("Could not persist cart: %s", e)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_item(self, item: CartItem) -> None:
        """Add one unit. An existing line with the same id is incremented."""
        for existing in self.state.items:
            if existing.id == item.id:
                existing.quantity += 1
                break
        else:
            self.state.items.append(item.model_copy(update={"quantity": 1}))
        self._save()

    def remove_item(self, item_id: str) -> None:
        self.state.items = [i for i in self.state.items if i.id != item_id]
        self._save()

    def update_quantity(self, item_id: str, quantity: int) -> None:
        """Set a line's quantity. Zero or less removes the line."""
        quantity = max(0, quantity)
        items = []
        for item in self.state.items:
            if item.id == item_id:
                if quantity == 0:
                    continue
                item.quantity = quantity
            items.append(item)
        self.state.items = items
        self._save()

    def clear_cart(self) -> None:
        self.state.items = []
        self._save()

    def toggle_cart(self) -> None:
        self.state.is_open = not self.state.is_open
        self._save()

    def close_cart(self) -> None:
        self.state.is_open = False
        self._save()

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def items(self) -> list[CartItem]:
        return list(self.state.items)

    @property
    def is_open(self) -> bool:
        return self.state.is_open

    @property
    def is_empty(self) -> bool:
        return not self.state.items

    def total_items(self) -> int:
        return sum(item.quantity for item in self.state.items)

    def subtotal(self) -> Decimal:
        return sum_amounts(item.line_total for item in self.state.items)

    def delivery_fee(self) -> Decimal:
        return delivery_fee(self.total_items())

    def total(self) -> Decimal:
        return quantize(self.subtotal() + self.delivery_fee())
