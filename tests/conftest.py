"""Shared pytest fixtures for Funnel Builder tests.

Fixture summary
---------------
test_engine           - Async SQLite engine on a per-test database file.
test_session_factory  - async_sessionmaker bound to ``test_engine``.
test_settings         - Settings instance for the clone engine (no subdomains).
clone_service         - CloneWorkspaceService wired to the test database.
seller / buyer        - Seeded User rows.
source_workspace      - Seeded workspace subtree (see :func:`seed_source_workspace`).
payment               - Seeded, unconsumed Payment for ``buyer``.

DB-backed tests run against SQLite through ``aiosqlite`` with foreign keys
enabled, so they need no infrastructure.  Every helper that writes seeds in
its own session and commits; assertions read back through a fresh session so
no connection holds a lock while the service under test runs.
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

# ---------------------------------------------------------------------------
# Test environment bootstrap
# ---------------------------------------------------------------------------
# Set required env vars before any application modules are imported so that
# Settings() does not raise a ValidationError during collection.

_TEST_ENV_DEFAULTS: dict[str, str] = {
    "DATABASE_URL": "sqlite+aiosqlite:///./.pytest-funnel-builder.db",
    "REDIS_URL": "redis://localhost:6379/15",
    "INTERNAL_API_TOKEN": "test-internal-token",
    "CLOUDFLARE_API_TOKEN": "test-cloudflare-token",
    "CLOUDFLARE_API_BASE": "https://cloudflare.test/client/v4",
    "LOG_LEVEL": "WARNING",
}

for _key, _default in _TEST_ENV_DEFAULTS.items():
    os.environ.setdefault(_key, _default)

# ---------------------------------------------------------------------------
# Application imports (after env bootstrap)
# ---------------------------------------------------------------------------

from funnel_builder.config.settings import Settings, get_settings  # noqa: E402
from funnel_builder.core.database import _build_engine, _build_session_factory  # noqa: E402
from funnel_builder.core.models import (  # noqa: E402
    Base,
    Funnel,
    FunnelSettings,
    Page,
    Payment,
    Theme,
    ThemeType,
    User,
    Workspace,
    WorkspaceRolePermTemplate,
)
from funnel_builder.workspace_clone.service import CloneWorkspaceService  # noqa: E402
from tests.factories import (  # noqa: E402
    FunnelFactory,
    FunnelSettingsFactory,
    GlobalThemeFactory,
    PageFactory,
    PaymentFactory,
    RoleTemplateFactory,
    ThemeFactory,
    UserFactory,
    WorkspaceFactory,
)

# Clear the lru_cache so Settings() re-reads from the patched environment.
get_settings.cache_clear()

INTERNAL_TOKEN = _TEST_ENV_DEFAULTS["INTERNAL_API_TOKEN"]


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh SQLite database with every table for the current test.

    The engine is created on the test's own event loop to avoid
    'Future attached to a different loop' errors.
    """
    engine = _build_engine(f"sqlite+aiosqlite:///{tmp_path / 'funnel_builder.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def test_session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Return a sessionmaker bound to the test engine."""
    return _build_session_factory(test_engine)


@pytest.fixture
def test_settings() -> Settings:
    """Settings for the clone engine with subdomain provisioning disabled."""
    return Settings(
        _env_file=None,
        database_url="sqlite+aiosqlite://",
        internal_api_token=INTERNAL_TOKEN,
        workspace_domain=None,
        workspace_zone_id=None,
        clone_timeout_seconds=10.0,
    )


@pytest.fixture
def clone_service(
    test_session_factory: async_sessionmaker[AsyncSession],
    test_settings: Settings,
) -> CloneWorkspaceService:
    """A CloneWorkspaceService over the test database, without cache."""
    return CloneWorkspaceService(test_session_factory, settings=test_settings)


async def count_rows(
    session_factory: async_sessionmaker[AsyncSession],
    model: type[Base],
    *criteria: Any,
) -> int:
    """Return ``SELECT COUNT(*) FROM model WHERE criteria`` in a fresh session."""
    async with session_factory() as session:
        stmt = select(func.count()).select_from(model)
        if criteria:
            stmt = stmt.where(*criteria)
        return (await session.execute(stmt)).scalar_one()


# ---------------------------------------------------------------------------
# Seed helpers
# ---------------------------------------------------------------------------


async def create_user(
    session_factory: async_sessionmaker[AsyncSession],
    **overrides: Any,
) -> User:
    """Insert a User row built from :class:`UserFactory` and return it."""
    async with session_factory() as session:
        user = User(**UserFactory.build(**overrides))
        session.add(user)
        await session.commit()
        return user


@dataclass(frozen=True)
class SeededWorkspace:
    """Ids of the source subtree written by :func:`seed_source_workspace`.

    ``live_funnel`` has a CUSTOM theme, password-protected settings with
    tracking ids, and two pages.  ``draft_funnel`` uses the shared GLOBAL
    theme, has no settings, and one page.
    """

    workspace_id: int
    workspace_slug: str
    seller_id: int
    global_theme_id: int
    custom_theme_id: int
    live_funnel_id: int
    draft_funnel_id: int


async def seed_source_workspace(
    session_factory: async_sessionmaker[AsyncSession],
    seller: User,
) -> SeededWorkspace:
    """Write a two-funnel workspace owned by *seller*."""
    async with session_factory() as session:
        global_theme = Theme(**GlobalThemeFactory.build())
        session.add(global_theme)

        workspace = Workspace(**WorkspaceFactory.build(owner_id=seller.id))
        session.add(workspace)
        await session.flush()

        session.add_all(
            [
                WorkspaceRolePermTemplate(
                    **RoleTemplateFactory.build(workspace_id=workspace.id, role="ADMIN")
                ),
                WorkspaceRolePermTemplate(
                    **RoleTemplateFactory.build(
                        workspace_id=workspace.id,
                        role="EDITOR",
                        permissions=["EDIT_FUNNELS", "EDIT_PAGES"],
                    )
                ),
            ]
        )

        custom_theme = Theme(**ThemeFactory.build())
        session.add(custom_theme)
        await session.flush()

        live_funnel = Funnel(
            **FunnelFactory.build(
                name="Lead Magnet",
                slug="lead-magnet",
                status="LIVE",
                workspace_id=workspace.id,
                created_by=seller.id,
                active_theme_id=custom_theme.id,
            )
        )
        draft_funnel = Funnel(
            **FunnelFactory.build(
                name="Webinar",
                slug="webinar",
                status="DRAFT",
                workspace_id=workspace.id,
                created_by=seller.id,
                active_theme_id=global_theme.id,
            )
        )
        session.add_all([live_funnel, draft_funnel])
        await session.flush()
        custom_theme.funnel_id = live_funnel.id

        session.add(
            FunnelSettings(
                **FunnelSettingsFactory.build(
                    funnel_id=live_funnel.id,
                    google_analytics_id="G-SELLER123",
                    facebook_pixel_id="PX-998877",
                    is_password_protected=True,
                    password_hash="pbkdf2$seller-secret",
                )
            )
        )
        session.add_all(
            [
                Page(
                    **PageFactory.build(
                        funnel_id=live_funnel.id,
                        name="Opt-in",
                        order=1,
                        linking_id="opt-in",
                        visits=57,
                        content={"blocks": [{"type": "headline", "text": "Free guide"}]},
                    )
                ),
                Page(
                    **PageFactory.build(
                        funnel_id=live_funnel.id,
                        name="Thank you",
                        order=2,
                        linking_id="thank-you",
                        type="RESULT",
                        visits=12,
                    )
                ),
                Page(
                    **PageFactory.build(
                        funnel_id=draft_funnel.id,
                        name="Registration",
                        order=1,
                        linking_id="register",
                        visits=3,
                    )
                ),
            ]
        )
        await session.commit()

        return SeededWorkspace(
            workspace_id=workspace.id,
            workspace_slug=workspace.slug,
            seller_id=seller.id,
            global_theme_id=global_theme.id,
            custom_theme_id=custom_theme.id,
            live_funnel_id=live_funnel.id,
            draft_funnel_id=draft_funnel.id,
        )


async def create_payment(
    session_factory: async_sessionmaker[AsyncSession],
    buyer: User,
    **overrides: Any,
) -> Payment:
    """Insert a completed Payment for *buyer* and return it."""
    async with session_factory() as session:
        payment = Payment(**PaymentFactory.build(buyer_id=buyer.id, **overrides))
        session.add(payment)
        await session.commit()
        return payment


# ---------------------------------------------------------------------------
# Seeded fixtures
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def seller(test_session_factory: async_sessionmaker[AsyncSession]) -> User:
    return await create_user(test_session_factory, username="seller-studio", plan="AGENCY")


@pytest_asyncio.fixture
async def buyer(test_session_factory: async_sessionmaker[AsyncSession]) -> User:
    return await create_user(test_session_factory, username="Jane Doe!", plan="BUSINESS")


@pytest_asyncio.fixture
async def source_workspace(
    test_session_factory: async_sessionmaker[AsyncSession],
    seller: User,
) -> SeededWorkspace:
    return await seed_source_workspace(test_session_factory, seller)


@pytest_asyncio.fixture
async def payment(
    test_session_factory: async_sessionmaker[AsyncSession],
    buyer: User,
) -> Payment:
    return await create_payment(test_session_factory, buyer, amount=Decimal("49.00"))
