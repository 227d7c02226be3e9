"""SQLAlchemy ORM models for Funnel Builder.

All models are imported here so that:
1. Alembic can discover them via Base.metadata.
2. Application code can do `from funnel_builder.core.models import Workspace`
   without knowing which sub-module a model lives in.
3. SQLAlchemy's relationship resolution finds all mapper targets at
   import time, avoiding "mapper not yet configured" errors.
"""

from __future__ import annotations

from funnel_builder.core.models.base import Base, JSONType, TimestampMixin
from funnel_builder.core.models.domains import Domain, DomainStatus, DomainType, SslStatus
from funnel_builder.core.models.funnels import (
    Funnel,
    FunnelSettings,
    FunnelStatus,
    Page,
    PageType,
    Theme,
    ThemeType,
)
from funnel_builder.core.models.payments import Payment, WorkspaceClone
from funnel_builder.core.models.users import User
from funnel_builder.core.models.workspaces import (
    ALL_WORKSPACE_PERMISSIONS,
    MemberStatus,
    Workspace,
    WorkspaceMember,
    WorkspacePermission,
    WorkspaceRole,
    WorkspaceRolePermTemplate,
    WorkspaceStatus,
)

__all__ = [
    # base
    "Base",
    "JSONType",
    "TimestampMixin",
    # users
    "User",
    # workspaces
    "Workspace",
    "WorkspaceMember",
    "WorkspaceRolePermTemplate",
    "WorkspaceStatus",
    "WorkspaceRole",
    "WorkspacePermission",
    "MemberStatus",
    "ALL_WORKSPACE_PERMISSIONS",
    # funnels
    "Funnel",
    "FunnelSettings",
    "FunnelStatus",
    "Page",
    "PageType",
    "Theme",
    "ThemeType",
    # payments
    "Payment",
    "WorkspaceClone",
    # domains
    "Domain",
    "DomainType",
    "DomainStatus",
    "SslStatus",
]
