"""Funnel content models.

Covers:
- Funnel: an ordered sequence of pages inside a workspace.
- Theme: visual styling.  GLOBAL themes are shared platform-wide; CUSTOM
  themes belong to exactly one funnel through ``funnel_id``.
- FunnelSettings: one-to-one SEO, tracking, consent, locale and access
  settings of a funnel.
- Page: one step of a funnel with its rich JSON content.

Funnels and themes reference each other (``funnels.active_theme_id`` and
``themes.funnel_id``).  The ``themes.funnel_id`` constraint is emitted
with ``use_alter`` so both tables can be created before it is added.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from funnel_builder.core.models.base import Base, JSONType, TimestampMixin

if TYPE_CHECKING:
    from funnel_builder.core.models.workspaces import Workspace


class FunnelStatus(str, Enum):
    DRAFT = "DRAFT"
    LIVE = "LIVE"
    ARCHIVED = "ARCHIVED"
    SHARED = "SHARED"


class ThemeType(str, Enum):
    GLOBAL = "GLOBAL"
    CUSTOM = "CUSTOM"


class PageType(str, Enum):
    PAGE = "PAGE"
    RESULT = "RESULT"


class Funnel(TimestampMixin, Base):
    """A funnel inside a workspace.  ``slug`` is unique per workspace."""

    __tablename__ = "funnels"
    __table_args__ = (
        sa.UniqueConstraint("workspace_id", "slug", name="uq_funnel_workspace_slug"),
    )

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    slug: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    status: Mapped[str] = mapped_column(
        sa.String(20),
        nullable=False,
        default=FunnelStatus.DRAFT.value,
        server_default=sa.text(f"'{FunnelStatus.DRAFT.value}'"),
    )
    workspace_id: Mapped[int] = mapped_column(
        sa.Integer,
        sa.ForeignKey("workspaces.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_by: Mapped[int] = mapped_column(
        sa.Integer,
        sa.ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )
    active_theme_id: Mapped[Optional[int]] = mapped_column(
        sa.Integer,
        sa.ForeignKey("themes.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Relationships
    workspace: Mapped[Workspace] = relationship("Workspace", back_populates="funnels")
    active_theme: Mapped[Optional[Theme]] = relationship(
        "Theme",
        foreign_keys=[active_theme_id],
    )
    settings: Mapped[Optional[FunnelSettings]] = relationship(
        "FunnelSettings",
        back_populates="funnel",
        uselist=False,
        cascade="all, delete-orphan",
    )
    pages: Mapped[list[Page]] = relationship(
        "Page",
        back_populates="funnel",
        cascade="all, delete-orphan",
        order_by="Page.order",
    )

    def __repr__(self) -> str:
        return f"<Funnel id={self.id} slug={self.slug!r} workspace_id={self.workspace_id}>"


class Theme(TimestampMixin, Base):
    """Colour, typography and shape settings applied to a funnel's pages."""

    __tablename__ = "themes"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    background_color: Mapped[str] = mapped_column(sa.String(32), nullable=False)
    text_color: Mapped[str] = mapped_column(sa.String(32), nullable=False)
    button_color: Mapped[str] = mapped_column(sa.String(32), nullable=False)
    button_text_color: Mapped[str] = mapped_column(sa.String(32), nullable=False)
    border_color: Mapped[str] = mapped_column(sa.String(32), nullable=False)
    option_color: Mapped[str] = mapped_column(sa.String(32), nullable=False)
    font_family: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    border_radius: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    type: Mapped[str] = mapped_column(
        sa.String(20),
        nullable=False,
        default=ThemeType.CUSTOM.value,
        server_default=sa.text(f"'{ThemeType.CUSTOM.value}'"),
    )
    funnel_id: Mapped[Optional[int]] = mapped_column(
        sa.Integer,
        sa.ForeignKey(
            "funnels.id",
            ondelete="CASCADE",
            use_alter=True,
            name="fk_themes_funnel_id",
        ),
        nullable=True,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Theme id={self.id} type={self.type!r} funnel_id={self.funnel_id}>"


class FunnelSettings(TimestampMixin, Base):
    """Per-funnel settings.

    ``google_analytics_id`` and ``facebook_pixel_id`` identify the seller's
    tracking accounts; ``password_hash`` is the hashed visitor password
    when ``is_password_protected`` is set.
    """

    __tablename__ = "funnel_settings"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    funnel_id: Mapped[int] = mapped_column(
        sa.Integer,
        sa.ForeignKey("funnels.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )

    # SEO
    default_seo_title: Mapped[Optional[str]] = mapped_column(sa.String(300), nullable=True)
    default_seo_description: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)
    default_seo_keywords: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)
    favicon: Mapped[Optional[str]] = mapped_column(sa.String(2048), nullable=True)
    og_image: Mapped[Optional[str]] = mapped_column(sa.String(2048), nullable=True)

    # Tracking
    google_analytics_id: Mapped[Optional[str]] = mapped_column(sa.String(100), nullable=True)
    facebook_pixel_id: Mapped[Optional[str]] = mapped_column(sa.String(100), nullable=True)
    custom_tracking_scripts: Mapped[Optional[Any]] = mapped_column(JSONType, nullable=True)

    # Consent and legal
    enable_cookie_consent: Mapped[bool] = mapped_column(
        sa.Boolean,
        nullable=False,
        default=False,
        server_default=sa.false(),
    )
    cookie_consent_text: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)
    privacy_policy_url: Mapped[Optional[str]] = mapped_column(sa.String(2048), nullable=True)
    terms_of_service_url: Mapped[Optional[str]] = mapped_column(sa.String(2048), nullable=True)

    # Locale
    language: Mapped[Optional[str]] = mapped_column(sa.String(10), nullable=True)
    timezone: Mapped[Optional[str]] = mapped_column(sa.String(64), nullable=True)
    date_format: Mapped[Optional[str]] = mapped_column(sa.String(32), nullable=True)

    # Access
    is_password_protected: Mapped[bool] = mapped_column(
        sa.Boolean,
        nullable=False,
        default=False,
        server_default=sa.false(),
    )
    password_hash: Mapped[Optional[str]] = mapped_column(sa.String(255), nullable=True)

    funnel: Mapped[Funnel] = relationship("Funnel", back_populates="settings")


class Page(TimestampMixin, Base):
    """A single page of a funnel.

    ``order`` is the position within the funnel and ``linking_id`` the
    stable identifier used by in-content links; both are unique per funnel.
    """

    __tablename__ = "pages"
    __table_args__ = (
        sa.UniqueConstraint("funnel_id", "order", name="uq_page_funnel_order"),
        sa.UniqueConstraint("funnel_id", "linking_id", name="uq_page_funnel_linking_id"),
    )

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    content: Mapped[Optional[Any]] = mapped_column(JSONType, nullable=True)
    order: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    linking_id: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    funnel_id: Mapped[int] = mapped_column(
        sa.Integer,
        sa.ForeignKey("funnels.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type: Mapped[str] = mapped_column(
        sa.String(20),
        nullable=False,
        default=PageType.PAGE.value,
        server_default=sa.text(f"'{PageType.PAGE.value}'"),
    )
    seo_title: Mapped[Optional[str]] = mapped_column(sa.String(300), nullable=True)
    seo_description: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)
    seo_keywords: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)
    visits: Mapped[int] = mapped_column(
        sa.Integer,
        nullable=False,
        default=0,
        server_default=sa.text("0"),
    )

    funnel: Mapped[Funnel] = relationship("Funnel", back_populates="pages")

    def __repr__(self) -> str:
        return f"<Page id={self.id} funnel_id={self.funnel_id} order={self.order}>"
