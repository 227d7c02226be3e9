"""Read the source workspace subtree into immutable snapshots.

The whole subtree (funnels, their pages, settings and active theme, plus
the workspace's role-permission templates) is loaded with eager
``selectinload`` options in one call, then converted to frozen dataclasses.
The orchestrator works only on these snapshots, so copying never triggers
a lazy load or re-reads a row that a concurrent writer may be changing.
"""

from __future__ import annotations

import copy
from dataclasses import asdict, dataclass
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from funnel_builder.core.exceptions import OwnerNotFoundError, WorkspaceNotFoundError
from funnel_builder.core.models.funnels import Funnel, FunnelSettings, Page, Theme
from funnel_builder.core.models.users import User
from funnel_builder.core.models.workspaces import Workspace, WorkspaceRolePermTemplate


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SourceTheme:
    id: int
    name: str
    background_color: str
    text_color: str
    button_color: str
    button_text_color: str
    border_color: str
    option_color: str
    font_family: str
    border_radius: int
    type: str

    def style_values(self) -> dict[str, Any]:
        """Every column a duplicated theme copies, i.e. all but ``id``."""
        values = asdict(self)
        values.pop("id")
        return values


@dataclass(frozen=True)
class SourceSettings:
    default_seo_title: Optional[str]
    default_seo_description: Optional[str]
    default_seo_keywords: Optional[str]
    favicon: Optional[str]
    og_image: Optional[str]
    google_analytics_id: Optional[str]
    facebook_pixel_id: Optional[str]
    custom_tracking_scripts: Any
    enable_cookie_consent: bool
    cookie_consent_text: Optional[str]
    privacy_policy_url: Optional[str]
    terms_of_service_url: Optional[str]
    language: Optional[str]
    timezone: Optional[str]
    date_format: Optional[str]
    is_password_protected: bool
    password_hash: Optional[str]

    def values(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SourcePage:
    """A page as it will be copied.  Carries no ``visits``; copies start at zero."""

    name: str
    content: Any
    order: int
    linking_id: str
    type: str
    seo_title: Optional[str]
    seo_description: Optional[str]
    seo_keywords: Optional[str]


@dataclass(frozen=True)
class SourceFunnel:
    id: int
    name: str
    slug: str
    status: str
    theme: Optional[SourceTheme]
    settings: Optional[SourceSettings]
    pages: tuple[SourcePage, ...]


@dataclass(frozen=True)
class SourceRoleTemplate:
    role: str
    permissions: tuple[str, ...]


@dataclass(frozen=True)
class SourceGraph:
    """The complete owned subtree of one workspace."""

    workspace_id: int
    owner_id: int
    name: str
    slug: str
    description: Optional[str]
    image_url: Optional[str]
    settings: Any
    funnels: tuple[SourceFunnel, ...]
    role_templates: tuple[SourceRoleTemplate, ...]


@dataclass(frozen=True)
class NewOwner:
    id: int
    username: str


# ---------------------------------------------------------------------------
# ORM -> snapshot conversion
# ---------------------------------------------------------------------------


def _snapshot_theme(theme: Theme) -> SourceTheme:
    return SourceTheme(
        id=theme.id,
        name=theme.name,
        background_color=theme.background_color,
        text_color=theme.text_color,
        button_color=theme.button_color,
        button_text_color=theme.button_text_color,
        border_color=theme.border_color,
        option_color=theme.option_color,
        font_family=theme.font_family,
        border_radius=theme.border_radius,
        type=theme.type,
    )


def _snapshot_settings(settings: FunnelSettings) -> SourceSettings:
    return SourceSettings(
        default_seo_title=settings.default_seo_title,
        default_seo_description=settings.default_seo_description,
        default_seo_keywords=settings.default_seo_keywords,
        favicon=settings.favicon,
        og_image=settings.og_image,
        google_analytics_id=settings.google_analytics_id,
        facebook_pixel_id=settings.facebook_pixel_id,
        custom_tracking_scripts=copy.deepcopy(settings.custom_tracking_scripts),
        enable_cookie_consent=settings.enable_cookie_consent,
        cookie_consent_text=settings.cookie_consent_text,
        privacy_policy_url=settings.privacy_policy_url,
        terms_of_service_url=settings.terms_of_service_url,
        language=settings.language,
        timezone=settings.timezone,
        date_format=settings.date_format,
        is_password_protected=settings.is_password_protected,
        password_hash=settings.password_hash,
    )


def _snapshot_page(page: Page) -> SourcePage:
    return SourcePage(
        name=page.name,
        content=copy.deepcopy(page.content),
        order=page.order,
        linking_id=page.linking_id,
        type=page.type,
        seo_title=page.seo_title,
        seo_description=page.seo_description,
        seo_keywords=page.seo_keywords,
    )


def _snapshot_funnel(funnel: Funnel) -> SourceFunnel:
    pages = sorted(funnel.pages, key=lambda p: p.order)
    return SourceFunnel(
        id=funnel.id,
        name=funnel.name,
        slug=funnel.slug,
        status=funnel.status,
        theme=_snapshot_theme(funnel.active_theme) if funnel.active_theme else None,
        settings=_snapshot_settings(funnel.settings) if funnel.settings else None,
        pages=tuple(_snapshot_page(page) for page in pages),
    )


def _snapshot_role_template(template: WorkspaceRolePermTemplate) -> SourceRoleTemplate:
    return SourceRoleTemplate(
        role=template.role,
        permissions=tuple(template.permissions or ()),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def load_source_graph(session: AsyncSession, source_workspace_id: int) -> SourceGraph:
    """Load the subtree of *source_workspace_id* as a :class:`SourceGraph`.

    Funnels come back in ascending id order and each funnel's pages in
    ascending ``order``.

    Raises:
        WorkspaceNotFoundError: If the workspace does not exist.
    """
    stmt = (
        select(Workspace)
        .where(Workspace.id == source_workspace_id)
        .options(
            selectinload(Workspace.funnels).options(
                selectinload(Funnel.pages),
                selectinload(Funnel.settings),
                selectinload(Funnel.active_theme),
            ),
            selectinload(Workspace.role_perm_templates),
        )
    )
    workspace = (await session.execute(stmt)).scalar_one_or_none()
    if workspace is None:
        raise WorkspaceNotFoundError(source_workspace_id)

    funnels = sorted(workspace.funnels, key=lambda f: f.id)
    return SourceGraph(
        workspace_id=workspace.id,
        owner_id=workspace.owner_id,
        name=workspace.name,
        slug=workspace.slug,
        description=workspace.description,
        image_url=workspace.image_url,
        settings=copy.deepcopy(workspace.settings),
        funnels=tuple(_snapshot_funnel(funnel) for funnel in funnels),
        role_templates=tuple(
            _snapshot_role_template(t) for t in workspace.role_perm_templates
        ),
    )


async def load_new_owner(session: AsyncSession, user_id: int) -> NewOwner:
    """Return the user who will own the clone.

    Raises:
        OwnerNotFoundError: If the user does not exist.
    """
    row = (
        await session.execute(select(User.id, User.username).where(User.id == user_id))
    ).one_or_none()
    if row is None:
        raise OwnerNotFoundError(user_id)
    return NewOwner(id=row.id, username=row.username)
