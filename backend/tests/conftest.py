"""
TabScope Backend — Test Configuration (conftest.py)
=====================================================

What:  Shared fixtures for the test suite.
How:   Store and service tests run the real SqlAlchemyTabStore against an
       in-memory SQLite database (aiosqlite, one StaticPool connection), so
       the SQL paths are exercised without PostgreSQL. Pure-function tests
       build TabRecord snapshots directly with `make_record`.

Fixture Hierarchy (all function-scoped):
    db_engine ─┬─ db_session ── store ── seeded_store
               └─ test_client (HTTPX AsyncClient over the ASGI app)
"""

import os

# Must be set before any tabscope import reads settings
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["SEED_ON_STARTUP"] = "false"

from typing import Any, AsyncGenerator, Dict, List, Tuple

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from tabscope.database import Base, get_db_session
from tabscope.identity import CallerIdentity
from tabscope.models.tab_config import TabConfig
from tabscope.schemas.tab_config import TabRecord
from tabscope.scopes import Scope
from tabscope.services.seeding import seed_system_tabs
from tabscope.services.store import SqlAlchemyTabStore

ORG_ID = 1
OTHER_ORG_ID = 2
ROLE_ID = 10
USER_ID = 100
OTHER_USER_ID = 200

# overview + billing, the two-tab catalog most scenarios start from
SMALL_CATALOG: List[Dict[str, Any]] = [
    {"key": "overview", "label": "Overview", "icon": "User", "display_order": 10, "category": "clinical"},
    {"key": "billing", "label": "Billing", "icon": "CreditCard", "display_order": 20, "category": "administrative"},
]


def make_record(key: str, scope: Scope = Scope.SYSTEM, **fields: Any) -> TabRecord:
    """A TabRecord snapshot with sensible defaults for pure-function tests."""
    defaults: Dict[str, Any] = {
        "id": None,
        "label": key.title(),
        "display_order": 0,
        "is_visible": True,
        "is_system_default": scope is Scope.SYSTEM,
        "scope_owner_id": None,
    }
    defaults.update(fields)
    return TabRecord(key=key, scope=scope, **defaults)


# ══════════════════════════════════════════════════════════════════════════
# Identities
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def user_identity() -> CallerIdentity:
    return CallerIdentity(organization_id=ORG_ID, role_id=ROLE_ID, user_id=USER_ID)


@pytest.fixture
def admin_identity() -> CallerIdentity:
    return CallerIdentity(organization_id=ORG_ID, role_id=ROLE_ID, user_id=OTHER_USER_ID, is_admin=True)


@pytest.fixture
def anonymous_identity() -> CallerIdentity:
    return CallerIdentity()


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
def store(db_session) -> SqlAlchemyTabStore:
    return SqlAlchemyTabStore(db_session)


@pytest_asyncio.fixture
async def seeded_store(store) -> SqlAlchemyTabStore:
    """Store holding the overview/billing system defaults."""
    await seed_system_tabs(store, catalog=SMALL_CATALOG)
    return store


async def table_rows(session: AsyncSession) -> List[Tuple]:
    """Every row as (key, scope, owner, visible, display_order), for before/after comparisons."""
    result = await session.execute(
        select(
            TabConfig.key,
            TabConfig.scope,
            TabConfig.scope_owner_id,
            TabConfig.is_visible,
            TabConfig.display_order,
        ).order_by(TabConfig.id)
    )
    return [tuple(row) for row in result.all()]


# ══════════════════════════════════════════════════════════════════════════
# HTTP
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(db_engine) -> AsyncGenerator[AsyncClient, None]:
    """
    AsyncClient over the app with get_db_session bound to the test engine.
    The overview/billing catalog is seeded and committed beforehand.
    """
    from tabscope.main import app

    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async with factory() as session:
        await seed_system_tabs(SqlAlchemyTabStore(session), catalog=SMALL_CATALOG)
        await session.commit()

    async def override_session() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
