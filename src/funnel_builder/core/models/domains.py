"""Domain model: hostnames served by the funnel renderer.

A ``WORKSPACE_SUBDOMAIN`` row is created by the post-clone provisioner for
``<workspace slug>.<workspace domain>``.  Such rows are stored with
``workspace_id`` left null so they do not count against the workspace's
domain allocation.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from funnel_builder.core.models.base import Base, TimestampMixin


class DomainType(str, Enum):
    SUBDOMAIN = "SUBDOMAIN"
    CUSTOM_DOMAIN = "CUSTOM_DOMAIN"
    WORKSPACE_SUBDOMAIN = "WORKSPACE_SUBDOMAIN"


class DomainStatus(str, Enum):
    ACTIVE = "ACTIVE"
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    FAILED = "FAILED"
    SUSPENDED = "SUSPENDED"


class SslStatus(str, Enum):
    ACTIVE = "ACTIVE"
    PENDING = "PENDING"
    ERROR = "ERROR"
    EXPIRED = "EXPIRED"


class Domain(TimestampMixin, Base):
    """A hostname pointing at the funnel renderer."""

    __tablename__ = "domains"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    hostname: Mapped[str] = mapped_column(
        sa.String(253),
        unique=True,
        nullable=False,
        index=True,
    )
    type: Mapped[str] = mapped_column(sa.String(30), nullable=False)
    status: Mapped[str] = mapped_column(
        sa.String(20),
        nullable=False,
        default=DomainStatus.PENDING.value,
        server_default=sa.text(f"'{DomainStatus.PENDING.value}'"),
    )
    ssl_status: Mapped[str] = mapped_column(
        sa.String(20),
        nullable=False,
        default=SslStatus.PENDING.value,
        server_default=sa.text(f"'{SslStatus.PENDING.value}'"),
    )
    workspace_id: Mapped[Optional[int]] = mapped_column(
        sa.Integer,
        sa.ForeignKey("workspaces.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    created_by: Mapped[int] = mapped_column(
        sa.Integer,
        sa.ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )
    cloudflare_record_id: Mapped[Optional[str]] = mapped_column(sa.String(64), nullable=True)
    cloudflare_zone_id: Mapped[Optional[str]] = mapped_column(sa.String(64), nullable=True)
    last_verified_at: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Domain id={self.id} hostname={self.hostname!r} type={self.type!r}>"
