"""Write the copy of a source workspace graph.

:func:`clone_graph` runs inside the caller's transaction and never commits
or rolls back itself: any failure propagates and the caller's transaction
boundary discards every row written so far.

Write order per funnel:

1. theme (CUSTOM themes are duplicated with ``funnel_id`` unset)
2. funnel, pointing at the resolved theme
3. back-patch of the duplicated theme's ``funnel_id``
4. settings, through the redaction policy
5. pages, in ascending ``order``

Each step is flushed before the next so database-generated ids are
available and constraint violations surface at the step that caused them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from funnel_builder.config.plans import Plan
from funnel_builder.core.exceptions import CloneConstraintError, SlugConflictError
from funnel_builder.core.models.funnels import Funnel, FunnelSettings, Page, Theme, ThemeType
from funnel_builder.core.models.payments import WorkspaceClone
from funnel_builder.core.models.workspaces import (
    Workspace,
    WorkspaceRolePermTemplate,
    WorkspaceStatus,
)
from funnel_builder.workspace_clone.clone_record import record_clone
from funnel_builder.workspace_clone.graph_reader import (
    SourceFunnel,
    SourceGraph,
    SourceTheme,
)
from funnel_builder.workspace_clone.redaction import redact_settings

logger = structlog.get_logger(__name__)


@dataclass
class ClonedGraph:
    """What :func:`clone_graph` created.

    Attributes:
        workspace: The new workspace row.
        clone_record: The provenance row, ``None`` when no payment was given.
        funnel_ids: Source funnel id -> new funnel id.
        page_count: Number of pages written.
    """

    workspace: Workspace
    clone_record: Optional[WorkspaceClone] = None
    funnel_ids: dict[int, int] = field(default_factory=dict)
    page_count: int = 0


async def _flush(session: AsyncSession, step: str) -> None:
    try:
        await session.flush()
    except IntegrityError as exc:
        raise CloneConstraintError(f"Constraint violated while copying {step}: {exc.orig}") from exc


# SQLite names the column, PostgreSQL names the unique index.
_SLUG_CONSTRAINT_MARKERS = ("workspaces.slug", "ix_workspaces_slug")


def _is_slug_violation(exc: IntegrityError) -> bool:
    message = str(exc.orig)
    return any(marker in message for marker in _SLUG_CONSTRAINT_MARKERS)


async def _create_workspace(
    session: AsyncSession,
    graph: SourceGraph,
    new_owner_id: int,
    unique_slug: str,
    plan_type: Plan,
) -> Workspace:
    workspace = Workspace(
        name=graph.name,
        slug=unique_slug,
        owner_id=new_owner_id,
        description=graph.description,
        image_url=graph.image_url,
        settings=graph.settings,
        status=WorkspaceStatus.ACTIVE.value,
        plan_type=Plan(plan_type).value,
    )
    session.add(workspace)
    try:
        await session.flush()
    except IntegrityError as exc:
        if _is_slug_violation(exc):
            raise SlugConflictError(unique_slug) from exc
        raise CloneConstraintError(
            f"Constraint violated while copying workspace: {exc.orig}"
        ) from exc
    return workspace


async def _copy_role_templates(
    session: AsyncSession,
    graph: SourceGraph,
    workspace_id: int,
) -> None:
    for template in graph.role_templates:
        session.add(
            WorkspaceRolePermTemplate(
                workspace_id=workspace_id,
                role=template.role,
                permissions=list(template.permissions),
            )
        )
    if graph.role_templates:
        await _flush(session, "role permission templates")


async def _resolve_theme(
    session: AsyncSession,
    theme: Optional[SourceTheme],
) -> tuple[Optional[int], Optional[Theme]]:
    """Return ``(active_theme_id, pending_theme)``.

    ``pending_theme`` is the duplicated CUSTOM theme whose ``funnel_id``
    still has to be linked to the new funnel.
    """
    if theme is None:
        return None, None
    if theme.type == ThemeType.GLOBAL.value:
        return theme.id, None

    duplicate = Theme(**theme.style_values(), funnel_id=None)
    session.add(duplicate)
    await _flush(session, "theme")
    return duplicate.id, duplicate


async def _copy_pages(session: AsyncSession, source: SourceFunnel, funnel_id: int) -> int:
    for page in source.pages:
        session.add(
            Page(
                funnel_id=funnel_id,
                name=page.name,
                content=page.content,
                order=page.order,
                linking_id=page.linking_id,
                type=page.type,
                seo_title=page.seo_title,
                seo_description=page.seo_description,
                seo_keywords=page.seo_keywords,
                visits=0,
            )
        )
        await _flush(session, "page")
    return len(source.pages)


async def _copy_funnel(
    session: AsyncSession,
    source: SourceFunnel,
    workspace_id: int,
    new_owner_id: int,
    plan_type: Plan,
    cloned: ClonedGraph,
) -> None:
    active_theme_id, pending_theme = await _resolve_theme(session, source.theme)

    funnel = Funnel(
        name=source.name,
        slug=source.slug,
        status=source.status,
        workspace_id=workspace_id,
        created_by=new_owner_id,
        active_theme_id=active_theme_id,
    )
    session.add(funnel)
    await _flush(session, "funnel")

    if pending_theme is not None:
        pending_theme.funnel_id = funnel.id
        await _flush(session, "theme link")

    if source.settings is not None:
        session.add(
            FunnelSettings(
                funnel_id=funnel.id,
                **redact_settings(source.settings.values(), plan_type),
            )
        )
        await _flush(session, "funnel settings")

    cloned.page_count += await _copy_pages(session, source, funnel.id)
    cloned.funnel_ids[source.id] = funnel.id


async def clone_graph(
    session: AsyncSession,
    graph: SourceGraph,
    new_owner_id: int,
    unique_slug: str,
    plan_type: Plan,
    payment_id: Optional[int] = None,
) -> ClonedGraph:
    """Copy *graph* to a new workspace owned by *new_owner_id*.

    Must be called inside an open transaction on *session*.

    Args:
        session: Session bound to the clone transaction.
        graph: Snapshot of the source workspace.
        new_owner_id: Owner of the new workspace and creator of its funnels.
        unique_slug: Slug reserved by the slug allocator.
        plan_type: Plan of the new workspace.
        payment_id: Internal id of the payment consumed by this clone.

    Returns:
        A :class:`ClonedGraph` describing the rows written.

    Raises:
        SlugConflictError: If a concurrent writer took *unique_slug*.
        CloneConstraintError: If any other write violates a constraint.
        PaymentAlreadyUsedError: If the payment was consumed concurrently.
    """
    workspace = await _create_workspace(session, graph, new_owner_id, unique_slug, plan_type)
    cloned = ClonedGraph(workspace=workspace)

    await _copy_role_templates(session, graph, workspace.id)

    for source_funnel in graph.funnels:
        await _copy_funnel(session, source_funnel, workspace.id, new_owner_id, plan_type, cloned)

    cloned.clone_record = await record_clone(
        session,
        source_workspace_id=graph.workspace_id,
        cloned_workspace_id=workspace.id,
        seller_id=graph.owner_id,
        buyer_id=new_owner_id,
        payment_id=payment_id,
    )

    logger.debug(
        "workspace_graph_copied",
        cloned_workspace_id=workspace.id,
        funnels=len(cloned.funnel_ids),
        pages=cloned.page_count,
    )
    return cloned
