import os
from typing import AsyncGenerator

# Tests run against an in-memory SQLite database; set before settings load.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret"
os.environ["ADMIN_EMAIL"] = "admin@palaro.app"
os.environ["STRICT_ORDER_TRANSITIONS"] = "false"
os.environ["SMTP_USERNAME"] = ""
os.environ["SMTP_PASSWORD"] = ""
os.environ["BREVO_KEY"] = ""

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.cache import catalog_cache
from libs.common.config import get_settings
from libs.db.base import Base
from libs.db.session import get_async_db
from libs.realtime.feed import change_feed

# Import all models so metadata includes every table
from services.communications_service import models as _communications_models  # noqa: F401
from services.store_service import models as _store_models  # noqa: F401

get_settings.cache_clear()

CUSTOMER_ID = "8a4f1d1e-2b1c-4f7e-9a55-3c2d1b0a9e01"
OTHER_CUSTOMER_ID = "5c7e2a90-6d3b-4f21-8e44-0b9a7c6d5e02"
ADMIN_ID = "f0e1d2c3-b4a5-4697-8887-a6b5c4d3e2f1"


@pytest_asyncio.fixture
async def test_engine():
    """A fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        bind=test_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )
    async with session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
def reset_shared_state():
    """The change feed and catalog cache are process-wide."""
    catalog_cache.clear()
    yield
    change_feed.close_all()
    catalog_cache.clear()


@pytest.fixture
def customer_user() -> AuthUser:
    return AuthUser(user_id=CUSTOMER_ID, email="juan@up.edu.ph")


@pytest.fixture
def other_customer_user() -> AuthUser:
    return AuthUser(user_id=OTHER_CUSTOMER_ID, email="maria@up.edu.ph")


@pytest.fixture
def admin_user() -> AuthUser:
    return AuthUser(user_id=ADMIN_ID, email="admin@palaro.app")


def _override(app: FastAPI, db_session: AsyncSession, user: AuthUser) -> FastAPI:
    app.dependency_overrides[get_async_db] = lambda: db_session
    app.dependency_overrides[get_current_user] = lambda: user
    return app


def _client_for(app: FastAPI) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


# ---------------------------------------------------------------------------
# Store service
# ---------------------------------------------------------------------------


@pytest.fixture
def store_app(db_session, customer_user) -> FastAPI:
    from services.store_service.app.main import create_app

    return _override(create_app(), db_session, customer_user)


@pytest.fixture
def admin_store_app(db_session, admin_user) -> FastAPI:
    from services.store_service.app.main import create_app

    return _override(create_app(), db_session, admin_user)


@pytest_asyncio.fixture
async def store_client(store_app) -> AsyncGenerator[AsyncClient, None]:
    """Store service client authenticated as a customer."""
    async with _client_for(store_app) as ac:
        yield ac


@pytest_asyncio.fixture
async def other_store_client(db_session, other_customer_user) -> AsyncGenerator[AsyncClient, None]:
    from services.store_service.app.main import create_app

    app = _override(create_app(), db_session, other_customer_user)
    async with _client_for(app) as ac:
        yield ac


@pytest_asyncio.fixture
async def admin_store_client(admin_store_app) -> AsyncGenerator[AsyncClient, None]:
    async with _client_for(admin_store_app) as ac:
        yield ac


@pytest_asyncio.fixture
async def anonymous_store_client(db_session) -> AsyncGenerator[AsyncClient, None]:
    """No auth override: bearer tokens are really decoded."""
    from services.store_service.app.main import create_app

    app = create_app()
    app.dependency_overrides[get_async_db] = lambda: db_session
    async with _client_for(app) as ac:
        yield ac


# ---------------------------------------------------------------------------
# Communications service
# ---------------------------------------------------------------------------


@pytest.fixture
def communications_app(db_session, customer_user) -> FastAPI:
    from services.communications_service.app.main import create_app

    return _override(create_app(), db_session, customer_user)


@pytest.fixture
def admin_communications_app(db_session, admin_user) -> FastAPI:
    from services.communications_service.app.main import create_app

    return _override(create_app(), db_session, admin_user)


@pytest_asyncio.fixture
async def communications_client(communications_app) -> AsyncGenerator[AsyncClient, None]:
    async with _client_for(communications_app) as ac:
        yield ac


@pytest_asyncio.fixture
async def admin_communications_client(
    admin_communications_app,
) -> AsyncGenerator[AsyncClient, None]:
    async with _client_for(admin_communications_app) as ac:
        yield ac
