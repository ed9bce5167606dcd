"""Tests for the cash-on-delivery checkout flow."""

import json
import uuid
from decimal import Decimal

import httpx
import pytest
from clients.storefront.api import StoreApiClient
from clients.storefront.cart import CartItem, CartStore
from clients.storefront.checkout import (
    CheckoutFailedError,
    CheckoutFlow,
    CheckoutValidationError,
    DeliveryForm,
)
from clients.storefront.session import AuthSession
from httpx import ASGITransport
from services.store_service.models import Order, OrderItem
from sqlalchemy import func, select

FORM = DeliveryForm(
    full_name="Juan dela Cruz",
    phone="09181234567",
    delivery_address="Molave Hall, Room 214",
    special_instructions="Leave at the lobby",
)


def _cart() -> CartStore:
    cart = CartStore()
    for item_id, name, price in [("p-1", "Tapsilog", "85"), ("p-2", "Iced Tea", "35")]:
        cart.add_item(
            CartItem(id=item_id, name=name, price=Decimal(price), storeId="s-1", storeName="Rodic's")
        )
    cart.update_quantity("p-1", 2)
    return cart


class Recorder:
    """MockTransport handler that records requests and replays canned responses."""

    def __init__(self, items_status=201, order_status=201):
        self.requests: list[httpx.Request] = []
        self.items_status = items_status
        self.order_status = order_status
        self.order_id = str(uuid.uuid4())

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/store/orders":
            if self.order_status >= 400:
                return httpx.Response(self.order_status, json={"detail": "boom"})
            return httpx.Response(self.order_status, json={"id": self.order_id})
        if request.url.path.endswith("/items"):
            if self.items_status >= 400:
                return httpx.Response(self.items_status, json={"detail": "items rejected"})
            return httpx.Response(self.items_status, json=json.loads(request.content)["items"])
        return httpx.Response(404)


def _api(recorder: Recorder) -> StoreApiClient:
    return StoreApiClient(
        store_url="http://store.test", token="tok", transport=httpx.MockTransport(recorder)
    )


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_empty_cart_sends_nothing():
    recorder = Recorder()
    flow = CheckoutFlow(CartStore(), _api(recorder))

    with pytest.raises(CheckoutValidationError, match="empty"):
        await flow.submit(FORM)
    assert recorder.requests == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_missing_fields_send_nothing():
    recorder = Recorder()
    flow = CheckoutFlow(_cart(), _api(recorder))

    with pytest.raises(CheckoutValidationError, match="phone"):
        await flow.submit(DeliveryForm(full_name="Juan", phone="   ", delivery_address="Molave"))
    assert recorder.requests == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_signed_out_customer_cannot_check_out():
    recorder = Recorder()
    session = AuthSession(supabase_url="http://auth.test", anon_key="anon")
    flow = CheckoutFlow(_cart(), _api(recorder), session=session)

    with pytest.raises(CheckoutValidationError, match="sign in"):
        await flow.submit(FORM)
    assert recorder.requests == []


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_success_writes_order_then_items_and_clears_cart():
    recorder = Recorder()
    cart = _cart()
    flow = CheckoutFlow(cart, _api(recorder))

    result = await flow.submit(FORM)

    assert result.order_id == recorder.order_id
    assert result.item_count == 2
    assert result.redirect_path == f"/order-success?orderId={recorder.order_id}"
    assert cart.is_empty

    order_request, items_request = recorder.requests
    assert order_request.headers["Authorization"] == "Bearer tok"
    order_body = json.loads(order_request.content)
    assert order_body["subtotal"] == "205.00"
    assert order_body["delivery_fee"] == "5.00"
    assert order_body["total"] == "210.00"
    assert order_body["payment_method"] == "cod"

    assert items_request.url.path == f"/store/orders/{recorder.order_id}/items"
    lines = json.loads(items_request.content)["items"]
    assert [(line["product_id"], line["quantity"]) for line in lines] == [("p-1", 2), ("p-2", 1)]
    assert lines[0]["product_price"] == "85"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_order_failure_keeps_cart():
    recorder = Recorder(order_status=500)
    cart = _cart()

    with pytest.raises(CheckoutFailedError) as exc_info:
        await CheckoutFlow(cart, _api(recorder)).submit(FORM)

    assert exc_info.value.order_id is None
    assert len(recorder.requests) == 1
    assert cart.total_items() == 3


@pytest.mark.asyncio
@pytest.mark.unit
async def test_item_failure_reports_orphan_order_and_keeps_cart():
    recorder = Recorder(items_status=400)
    cart = _cart()

    with pytest.raises(CheckoutFailedError) as exc_info:
        await CheckoutFlow(cart, _api(recorder)).submit(FORM)

    assert exc_info.value.order_id == recorder.order_id
    assert cart.total_items() == 3


@pytest.mark.asyncio
@pytest.mark.integration
async def test_checkout_against_store_service(store_app, db_session, customer_user):
    api = StoreApiClient(store_url="http://test", transport=ASGITransport(app=store_app))
    cart = _cart()

    result = await CheckoutFlow(cart, api).submit(FORM)

    order = await db_session.get(Order, uuid.UUID(result.order_id))
    assert order.user_id == customer_user.user_id
    assert order.total == Decimal("210.00")
    assert order.special_instructions == "Leave at the lobby"
    count = await db_session.scalar(
        select(func.count(OrderItem.id)).where(OrderItem.order_id == order.id)
    )
    assert count == 2
    assert cart.is_empty


@pytest.mark.asyncio
@pytest.mark.unit
async def test_items_added_during_checkout_stay_out_of_the_order():
    cart = _cart()
    recorder = Recorder()

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/store/orders":
            cart.add_item(
                CartItem(id="p-3", name="Turon", price=Decimal("20"), storeId="s-1")
            )
            cart.add_item(
                CartItem(id="p-2", name="Iced Tea", price=Decimal("35"), storeId="s-1")
            )
        return recorder(request)

    api = StoreApiClient(
        store_url="http://store.test", transport=httpx.MockTransport(handler)
    )

    await CheckoutFlow(cart, api).submit(FORM)

    order_request, items_request = recorder.requests
    assert json.loads(order_request.content)["subtotal"] == "205.00"
    lines = json.loads(items_request.content)["items"]
    assert [(line["product_id"], line["quantity"]) for line in lines] == [("p-1", 2), ("p-2", 1)]
    assert [(i.id, i.quantity) for i in cart.items] == [("p-2", 1), ("p-3", 1)]
