"""Tests for the source graph reader.

Covers:
- Funnels in ascending id order, pages in ascending ``order``
- Active theme, settings and role templates are captured
- A funnel without settings snapshots ``settings=None``
- Snapshots are detached from the ORM (content is a deep copy)
- Missing workspace / owner raise the matching NotFoundError

Runs against the per-test SQLite database from conftest.
"""

from __future__ import annotations

import dataclasses

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from funnel_builder.core.exceptions import OwnerNotFoundError, WorkspaceNotFoundError
from funnel_builder.core.models import Page
from funnel_builder.workspace_clone.graph_reader import (
    SourcePage,
    load_new_owner,
    load_source_graph,
)
from tests.conftest import SeededWorkspace


class TestLoadSourceGraph:
    async def test_subtree_is_captured(
        self,
        test_session_factory: async_sessionmaker[AsyncSession],
        source_workspace: SeededWorkspace,
    ) -> None:
        async with test_session_factory() as session:
            graph = await load_source_graph(session, source_workspace.workspace_id)

        assert graph.owner_id == source_workspace.seller_id
        assert [f.id for f in graph.funnels] == [
            source_workspace.live_funnel_id,
            source_workspace.draft_funnel_id,
        ]
        assert sum(len(f.pages) for f in graph.funnels) == 3
        assert {t.role for t in graph.role_templates} == {"ADMIN", "EDITOR"}

        live, draft = graph.funnels
        assert live.theme.id == source_workspace.custom_theme_id
        assert live.theme.type == "CUSTOM"
        assert live.settings.password_hash == "pbkdf2$seller-secret"
        assert [p.linking_id for p in live.pages] == ["opt-in", "thank-you"]
        assert draft.theme.type == "GLOBAL"
        assert draft.settings is None

    async def test_pages_sorted_by_order_not_insert_order(
        self,
        test_session_factory: async_sessionmaker[AsyncSession],
        source_workspace: SeededWorkspace,
    ) -> None:
        async with test_session_factory() as session:
            session.add(
                Page(
                    funnel_id=source_workspace.draft_funnel_id,
                    name="Warm-up",
                    content={},
                    order=0,
                    linking_id="warm-up",
                    type="PAGE",
                )
            )
            await session.commit()

        async with test_session_factory() as session:
            graph = await load_source_graph(session, source_workspace.workspace_id)

        assert [p.order for p in graph.funnels[1].pages] == [0, 1]

    async def test_snapshots_are_detached(
        self,
        test_session_factory: async_sessionmaker[AsyncSession],
        source_workspace: SeededWorkspace,
    ) -> None:
        async with test_session_factory() as session:
            graph = await load_source_graph(session, source_workspace.workspace_id)
            page_row = (
                await session.execute(select(Page).where(Page.linking_id == "opt-in"))
            ).scalar_one()
            snapshot = graph.funnels[0].pages[0]

            assert snapshot.content == page_row.content
            assert snapshot.content is not page_row.content

        assert "visits" not in {f.name for f in dataclasses.fields(SourcePage)}
        with pytest.raises(dataclasses.FrozenInstanceError):
            snapshot.name = "changed"  # type: ignore[misc]

    async def test_missing_workspace(
        self,
        test_session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        async with test_session_factory() as session:
            with pytest.raises(WorkspaceNotFoundError) as exc_info:
                await load_source_graph(session, 999)

        assert exc_info.value.workspace_id == 999


class TestLoadNewOwner:
    async def test_owner_loaded(
        self,
        test_session_factory: async_sessionmaker[AsyncSession],
        buyer,
    ) -> None:
        async with test_session_factory() as session:
            owner = await load_new_owner(session, buyer.id)

        assert owner.id == buyer.id
        assert owner.username == "Jane Doe!"

    async def test_missing_owner(
        self,
        test_session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        async with test_session_factory() as session:
            with pytest.raises(OwnerNotFoundError, match="New owner not found"):
                await load_new_owner(session, 4242)
