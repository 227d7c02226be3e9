"""Workspace ORM models.

Covers:
- Workspace: the tenant; owns funnels, members and role templates.
- WorkspaceMember: a user's membership and effective permissions.
- WorkspaceRolePermTemplate: the default permission set of a role within
  one workspace.  Copied verbatim when a workspace is cloned.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from funnel_builder.config.plans import Plan
from funnel_builder.core.models.base import Base, JSONType, TimestampMixin

if TYPE_CHECKING:
    from funnel_builder.core.models.funnels import Funnel
    from funnel_builder.core.models.users import User


class WorkspaceStatus(str, Enum):
    ACTIVE = "ACTIVE"
    DRAFT = "DRAFT"
    SUSPENDED = "SUSPENDED"


class WorkspaceRole(str, Enum):
    OWNER = "OWNER"
    ADMIN = "ADMIN"
    EDITOR = "EDITOR"
    VIEWER = "VIEWER"


class MemberStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INVITED = "INVITED"
    DISABLED = "DISABLED"


class WorkspacePermission(str, Enum):
    """Fine-grained capabilities a member can hold inside a workspace."""

    MANAGE_WORKSPACE = "MANAGE_WORKSPACE"
    MANAGE_MEMBERS = "MANAGE_MEMBERS"
    CREATE_FUNNELS = "CREATE_FUNNELS"
    EDIT_FUNNELS = "EDIT_FUNNELS"
    EDIT_PAGES = "EDIT_PAGES"
    DELETE_FUNNELS = "DELETE_FUNNELS"
    VIEW_ANALYTICS = "VIEW_ANALYTICS"
    MANAGE_DOMAINS = "MANAGE_DOMAINS"
    CREATE_DOMAINS = "CREATE_DOMAINS"
    DELETE_DOMAINS = "DELETE_DOMAINS"
    CONNECT_DOMAINS = "CONNECT_DOMAINS"


ALL_WORKSPACE_PERMISSIONS: list[str] = [perm.value for perm in WorkspacePermission]
"""Permission list granted to a workspace OWNER."""


class Workspace(TimestampMixin, Base):
    """A tenant that groups funnels under one owner.

    ``slug`` is globally unique and doubles as the workspace subdomain label.
    ``settings`` is an opaque JSON blob owned by the front end.
    """

    __tablename__ = "workspaces"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    slug: Mapped[str] = mapped_column(
        sa.String(200),
        unique=True,
        nullable=False,
        index=True,
    )
    owner_id: Mapped[int] = mapped_column(
        sa.Integer,
        sa.ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    description: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(sa.String(2048), nullable=True)
    settings: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    status: Mapped[str] = mapped_column(
        sa.String(20),
        nullable=False,
        default=WorkspaceStatus.ACTIVE.value,
        server_default=sa.text(f"'{WorkspaceStatus.ACTIVE.value}'"),
    )
    plan_type: Mapped[str] = mapped_column(
        sa.String(30),
        nullable=False,
        default=Plan.FREE.value,
        server_default=sa.text(f"'{Plan.FREE.value}'"),
    )

    # Relationships
    owner: Mapped[User] = relationship(
        "User",
        foreign_keys=[owner_id],
        back_populates="owned_workspaces",
    )
    funnels: Mapped[list[Funnel]] = relationship(
        "Funnel",
        back_populates="workspace",
        cascade="all, delete-orphan",
        order_by="Funnel.id",
    )
    members: Mapped[list[WorkspaceMember]] = relationship(
        "WorkspaceMember",
        back_populates="workspace",
        cascade="all, delete-orphan",
    )
    role_perm_templates: Mapped[list[WorkspaceRolePermTemplate]] = relationship(
        "WorkspaceRolePermTemplate",
        back_populates="workspace",
        cascade="all, delete-orphan",
        order_by="WorkspaceRolePermTemplate.id",
    )

    def __repr__(self) -> str:
        return f"<Workspace id={self.id} slug={self.slug!r} owner_id={self.owner_id}>"


class WorkspaceMember(TimestampMixin, Base):
    """A user's membership of a workspace."""

    __tablename__ = "workspace_members"
    __table_args__ = (
        sa.UniqueConstraint("workspace_id", "user_id", name="uq_workspace_member"),
    )

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    workspace_id: Mapped[int] = mapped_column(
        sa.Integer,
        sa.ForeignKey("workspaces.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int] = mapped_column(
        sa.Integer,
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(sa.String(20), nullable=False)
    status: Mapped[str] = mapped_column(
        sa.String(20),
        nullable=False,
        default=MemberStatus.ACTIVE.value,
        server_default=sa.text(f"'{MemberStatus.ACTIVE.value}'"),
    )
    permissions: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)

    workspace: Mapped[Workspace] = relationship("Workspace", back_populates="members")

    def __repr__(self) -> str:
        return (
            f"<WorkspaceMember workspace_id={self.workspace_id} "
            f"user_id={self.user_id} role={self.role!r}>"
        )


class WorkspaceRolePermTemplate(TimestampMixin, Base):
    """Default permissions handed to members invited with ``role``."""

    __tablename__ = "workspace_role_perm_templates"
    __table_args__ = (
        sa.UniqueConstraint("workspace_id", "role", name="uq_workspace_role_template"),
    )

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    workspace_id: Mapped[int] = mapped_column(
        sa.Integer,
        sa.ForeignKey("workspaces.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(sa.String(20), nullable=False)
    permissions: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)

    workspace: Mapped[Workspace] = relationship(
        "Workspace",
        back_populates="role_perm_templates",
    )
