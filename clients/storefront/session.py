"""Supabase Auth (GoTrue) session for the storefront client."""

import json
from typing import Callable, Optional

import httpx
from libs.common.config import get_settings
from libs.common.logging import get_logger
from pydantic import BaseModel, ValidationError

from clients.storefront.api import ApiError
from clients.storefront.storage import KeyValueStorage

logger = get_logger(__name__)

SESSION_STORAGE_KEY = "palaro_session_v1"

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"
TOKEN_REFRESHED = "TOKEN_REFRESHED"

AuthListener = Callable[[str, Optional["SessionUser"]], None]


class SessionUser(BaseModel):
    id: str
    email: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.email or self.id


class StoredSession(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    user: SessionUser


class AuthSession:
    """
    Email/password session against the GoTrue REST API.

    Listeners registered with ``on_change`` are told about sign-in, sign-out
    and token refresh; the returned callable unregisters them.
    """

    def __init__(
        self,
        supabase_url: Optional[str] = None,
        anon_key: Optional[str] = None,
        storage: Optional[KeyValueStorage] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.supabase_url = (supabase_url or settings.SUPABASE_URL).rstrip("/")
        self.anon_key = anon_key if anon_key is not None else settings.SUPABASE_ANON_KEY
        self.storage = storage
        self._transport = transport
        self._listeners: list[AuthListener] = []
        self._session: Optional[StoredSession] = self._restore()

    def _restore(self) -> Optional[StoredSession]:
        if self.storage is None:
            return None
        raw = self.storage.get(SESSION_STORAGE_KEY)
        if not raw:
            return None
        try:
            return StoredSession.model_validate(json.loads(raw))
        except (ValueError, ValidationError):
            self.storage.remove(SESSION_STORAGE_KEY)
            return None

    def _persist(self) -> None:
        if self.storage is None:
            return
        if self._session is None:
            self.storage.remove(SESSION_STORAGE_KEY)
        else:
            self.storage.set(SESSION_STORAGE_KEY, self._session.model_dump_json())

    def _emit(self, event: str) -> None:
        user = self.current_user()
        for listener in list(self._listeners):
            try:
                listener(event, user)
            except Exception:
                logger.exception("Auth listener failed on %s", event)

    async def _auth_request(
        self, path: str, *, json_data: Optional[dict] = None, token: Optional[str] = None
    ) -> dict:
        headers = {"apikey": self.anon_key}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        try:
            async with httpx.AsyncClient(
                base_url=self.supabase_url, transport=self._transport, timeout=10.0
            ) as client:
                response = await client.post(path, headers=headers, json=json_data)
        except httpx.RequestError as e:
            raise ApiError(f"Could not reach auth server: {e}") from e

        try:
            data = response.json() if response.content else {}
        except ValueError:
            data = {"raw": response.text}
        if not response.is_success:
            message = (
                data.get("error_description") or data.get("msg") or data.get("message")
                if isinstance(data, dict)
                else None
            )
            raise ApiError(
                message or "Authentication failed",
                status_code=response.status_code,
                response_data=data,
            )
        return data

    # ------------------------------------------------------------------

    def current_user(self) -> Optional[SessionUser]:
        return self._session.user if self._session else None

    @property
    def access_token(self) -> Optional[str]:
        return self._session.access_token if self._session else None

    def on_change(self, listener: AuthListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def sign_in(self, email: str, password: str) -> SessionUser:
        data = await self._auth_request(
            "/auth/v1/token?grant_type=password",
            json_data={"email": email, "password": password},
        )
        self._session = StoredSession.model_validate(data)
        self._persist()
        logger.info("Signed in as %s", self._session.user.display_name)
        self._emit(SIGNED_IN)
        return self._session.user

    async def refresh(self) -> Optional[SessionUser]:
        if self._session is None or not self._session.refresh_token:
            return None
        data = await self._auth_request(
            "/auth/v1/token?grant_type=refresh_token",
            json_data={"refresh_token": self._session.refresh_token},
        )
        self._session = StoredSession.model_validate(data)
        self._persist()
        self._emit(TOKEN_REFRESHED)
        return self._session.user

    async def sign_out(self) -> None:
        token = self.access_token
        self._session = None
        self._persist()
        if token:
            try:
                await self._auth_request("/auth/v1/logout", token=token)
            except ApiError as e:
                # Local session is gone either way
                logger.warning("Remote sign-out failed: %s", e.message)
        self._emit(SIGNED_OUT)
