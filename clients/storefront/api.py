"""Async HTTP client for the store and communications services."""

import json
from decimal import Decimal
from typing import Any, AsyncIterator, Optional

import httpx
from libs.common.config import get_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)

_DEFAULT_TIMEOUT = 10.0


class ApiError(Exception):
    """A backend call failed (HTTP error status or transport failure)."""

    def __init__(
        self, message: str, status_code: Optional[int] = None, response_data: Any = None
    ):
        self.message = message
        self.status_code = status_code
        self.response_data = response_data if response_data is not None else {}
        super().__init__(message)


def _amount(value: Any) -> Any:
    return str(value) if isinstance(value, Decimal) else value


def _error_message(data: Any, fallback: str) -> str:
    if isinstance(data, dict):
        detail = data.get("detail") or data.get("error") or data.get("message")
        if isinstance(detail, str):
            return detail
        if detail:
            return json.dumps(detail)
    return fallback


class StoreApiClient:
    """
    Thin wrapper over the service REST APIs used by the storefront.

    ``transport`` lets tests route requests to an in-process app
    (``httpx.ASGITransport``) or a ``httpx.MockTransport``.
    """

    def __init__(
        self,
        store_url: Optional[str] = None,
        communications_url: Optional[str] = None,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        communications_transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = _DEFAULT_TIMEOUT,
    ):
        settings = get_settings()
        self.store_url = (store_url or settings.STORE_SERVICE_URL).rstrip("/")
        self.communications_url = (
            communications_url or settings.COMMUNICATIONS_SERVICE_URL
        ).rstrip("/")
        self.token = token
        self._transport = transport
        self._communications_transport = communications_transport or transport
        self.timeout = timeout

    def set_token(self, token: Optional[str]) -> None:
        self.token = token

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _client(self, base_url: str) -> httpx.AsyncClient:
        transport = (
            self._communications_transport
            if base_url == self.communications_url
            else self._transport
        )
        return httpx.AsyncClient(
            base_url=base_url, transport=transport, timeout=self.timeout
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        base_url: Optional[str] = None,
        params: Optional[dict] = None,
        json_data: Any = None,
    ) -> Any:
        base_url = base_url or self.store_url
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        try:
            async with self._client(base_url) as client:
                response = await client.request(
                    method, path, headers=self._headers(), params=params, json=json_data
                )
        except httpx.RequestError as e:
            logger.error("Request to %s%s failed: %s", base_url, path, e)
            raise ApiError(f"Could not reach {base_url}: {e}") from e

        try:
            data = response.json() if response.content else None
        except ValueError:
            data = {"raw": response.text}

        if not response.is_success:
            logger.error("API error: %s %s -> %s", method, path, response.status_code)
            raise ApiError(
                message=_error_message(data, f"{method} {path} failed"),
                status_code=response.status_code,
                response_data=data,
            )
        return data

    # =========================================================================
    # Catalog
    # =========================================================================

    async def list_stores(self) -> list[dict]:
        return await self._request("GET", "/store/stores")

    async def list_products(
        self, store_id: Optional[str] = None, category: Optional[str] = None
    ) -> list[dict]:
        return await self._request(
            "GET", "/store/products", params={"store_id": store_id, "category": category}
        )

    # =========================================================================
    # Orders
    # =========================================================================

    async def insert_order(
        self,
        *,
        customer_name: str,
        customer_phone: str,
        delivery_address: str,
        subtotal: Decimal,
        delivery_fee: Decimal,
        total: Decimal,
        special_instructions: Optional[str] = None,
    ) -> dict:
        payload = {
            "customer_name": customer_name,
            "customer_phone": customer_phone,
            "delivery_address": delivery_address,
            "special_instructions": special_instructions,
            "subtotal": _amount(subtotal),
            "delivery_fee": _amount(delivery_fee),
            "total": _amount(total),
            "payment_method": "cod",
        }
        return await self._request("POST", "/store/orders", json_data=payload)

    async def insert_order_items(self, order_id: str, items: list[dict]) -> list[dict]:
        payload = {
            "items": [{k: _amount(v) for k, v in item.items()} for item in items]
        }
        return await self._request(
            "POST", f"/store/orders/{order_id}/items", json_data=payload
        )

    async def list_my_orders(self) -> list[dict]:
        return await self._request("GET", "/store/orders")

    async def get_order(self, order_id: str) -> dict:
        return await self._request("GET", f"/store/orders/{order_id}")

    async def list_orders(
        self, status: Optional[str] = None, search: Optional[str] = None
    ) -> list[dict]:
        """Admin: every order, optionally filtered."""
        return await self._request(
            "GET", "/admin/store/orders", params={"status": status, "search": search}
        )

    async def update_order_status(self, order_id: str, status: str) -> dict:
        return await self._request(
            "PATCH", f"/admin/store/orders/{order_id}/status", json_data={"status": status}
        )

    async def dashboard_stats(self) -> dict:
        return await self._request("GET", "/admin/store/stats")

    async def notify_order(
        self,
        order_id: str,
        status: str,
        email: Optional[str] = None,
        customer_name: Optional[str] = None,
        total: Optional[Decimal] = None,
    ) -> dict:
        payload = {
            "orderId": order_id,
            "status": status,
            "email": email,
            "customerName": customer_name,
            "total": _amount(total),
        }
        return await self._request("POST", "/api/notify-order", json_data=payload)

    # =========================================================================
    # Chat
    # =========================================================================

    async def list_messages(self, user_id: Optional[str] = None) -> list[dict]:
        return await self._request(
            "GET",
            "/chat/messages",
            base_url=self.communications_url,
            params={"user_id": user_id},
        )

    async def get_conversation(self) -> dict:
        return await self._request(
            "GET", "/chat/conversation", base_url=self.communications_url
        )

    async def send_message(self, content: str, user_id: Optional[str] = None) -> dict:
        return await self._request(
            "POST",
            "/chat/messages",
            base_url=self.communications_url,
            json_data={"content": content, "user_id": user_id},
        )

    async def start_conversation(self, user_id: str) -> dict:
        return await self._request(
            "POST",
            f"/admin/chat/conversations/{user_id}/start",
            base_url=self.communications_url,
        )

    # =========================================================================
    # Realtime
    # =========================================================================

    async def stream_changes(
        self, path: str = "/store/realtime", base_url: Optional[str] = None
    ) -> AsyncIterator[dict]:
        """Yield raw change payloads from a server-sent event stream."""
        base_url = base_url or self.store_url
        async with self._client(base_url) as client:
            async with client.stream(
                "GET", path, headers=self._headers(), timeout=None
            ) as response:
                if not response.is_success:
                    await response.aread()
                    raise ApiError(
                        f"Realtime stream {path} rejected",
                        status_code=response.status_code,
                    )
                data_lines: list[str] = []
                async for line in response.aiter_lines():
                    if line.startswith(":"):
                        continue
                    if line.startswith("data:"):
                        data_lines.append(line[5:].strip())
                        continue
                    if line == "" and data_lines:
                        raw = "\n".join(data_lines)
                        data_lines = []
                        try:
                            yield json.loads(raw)
                        except ValueError:
                            logger.warning("Skipping undecodable realtime frame")
