"""Unit tests for workspace slug allocation.

Tests cover:
- slugify() lower-cases and collapses non-alphanumeric runs into '-'
- choose_base_slug() falls back when the username slugifies to nothing
- iter_candidates() yields base, base-2, base-3 ... and respects the limit
- allocate_unique_slug() returns the base when it is free
- allocate_unique_slug() skips candidates used by workspaces
- allocate_unique_slug() skips candidates whose subdomain hostname exists
- allocate_unique_slug() ignores hostnames when no workspace domain is set
- allocate_unique_slug() raises SlugAllocationExhaustedError past the limit

The allocation tests use the per-test SQLite database from conftest.
"""

from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from funnel_builder.core.exceptions import SlugAllocationExhaustedError
from funnel_builder.core.models import Domain, User, Workspace
from funnel_builder.workspace_clone.slug_allocator import (
    allocate_unique_slug,
    choose_base_slug,
    iter_candidates,
    slugify,
)
from tests.factories import WorkspaceFactory


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


class TestSlugify:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("Jane Doe", "jane-doe"),
            ("Jane Doe!", "jane-doe"),
            ("__Ana__Lima!!", "ana-lima"),
            ("studio42", "studio42"),
            ("Æble Ø", "ble"),
            ("!!!", ""),
        ],
    )
    def test_slugify(self, text: str, expected: str) -> None:
        assert slugify(text) == expected

    def test_choose_base_slug_prefers_username(self) -> None:
        assert choose_base_slug("Jane Doe", "seller-studio") == "jane-doe"

    def test_choose_base_slug_falls_back_to_source_slug(self) -> None:
        assert choose_base_slug("---", "Seller Studio") == "seller-studio"


class TestIterCandidates:
    def test_sequence_starts_with_base(self) -> None:
        assert list(iter_candidates("jane", 4)) == ["jane", "jane-2", "jane-3", "jane-4"]

    def test_single_attempt_yields_only_base(self) -> None:
        assert list(iter_candidates("jane", 1)) == ["jane"]

    def test_zero_attempts_yields_nothing(self) -> None:
        assert list(iter_candidates("jane", 0)) == []


# ---------------------------------------------------------------------------
# allocate_unique_slug against the database
# ---------------------------------------------------------------------------


async def _seed_slugs(
    session_factory: async_sessionmaker[AsyncSession],
    owner: User,
    slugs: list[str],
    hostnames: tuple[str, ...] = (),
) -> None:
    async with session_factory() as session:
        for slug in slugs:
            session.add(Workspace(**WorkspaceFactory.build(owner_id=owner.id, slug=slug)))
        for hostname in hostnames:
            session.add(Domain(hostname=hostname, type="SUBDOMAIN", created_by=owner.id))
        await session.commit()


class TestAllocateUniqueSlug:
    async def test_free_base_is_returned(
        self,
        test_session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        async with test_session_factory() as session:
            assert await allocate_unique_slug(session, "jane-doe") == "jane-doe"

    async def test_taken_workspace_slugs_are_skipped(
        self,
        test_session_factory: async_sessionmaker[AsyncSession],
        seller: User,
    ) -> None:
        await _seed_slugs(test_session_factory, seller, ["jane-doe", "jane-doe-2", "jane-doe-4"])

        async with test_session_factory() as session:
            assert await allocate_unique_slug(session, "jane-doe") == "jane-doe-3"

    async def test_similar_prefixes_do_not_block(
        self,
        test_session_factory: async_sessionmaker[AsyncSession],
        seller: User,
    ) -> None:
        await _seed_slugs(test_session_factory, seller, ["jane-doer", "jane-doe-x"])

        async with test_session_factory() as session:
            assert await allocate_unique_slug(session, "jane-doe") == "jane-doe"

    async def test_existing_subdomain_is_skipped(
        self,
        test_session_factory: async_sessionmaker[AsyncSession],
        seller: User,
    ) -> None:
        await _seed_slugs(
            test_session_factory,
            seller,
            ["jane-doe"],
            hostnames=("jane-doe-2.digitalsite.com",),
        )

        async with test_session_factory() as session:
            slug = await allocate_unique_slug(
                session, "jane-doe", hostname_domain="digitalsite.com"
            )

        assert slug == "jane-doe-3"

    async def test_hostnames_ignored_without_workspace_domain(
        self,
        test_session_factory: async_sessionmaker[AsyncSession],
        seller: User,
    ) -> None:
        await _seed_slugs(
            test_session_factory, seller, [], hostnames=("jane-doe.digitalsite.com",)
        )

        async with test_session_factory() as session:
            assert await allocate_unique_slug(session, "jane-doe") == "jane-doe"

    async def test_exhausted_budget_raises(
        self,
        test_session_factory: async_sessionmaker[AsyncSession],
        seller: User,
    ) -> None:
        await _seed_slugs(test_session_factory, seller, ["jane", "jane-2", "jane-3"])

        async with test_session_factory() as session:
            with pytest.raises(SlugAllocationExhaustedError) as exc_info:
                await allocate_unique_slug(session, "jane", max_attempts=3)

        assert exc_info.value.attempts == 3
        assert "Unable to generate unique slug for: jane" in str(exc_info.value)
