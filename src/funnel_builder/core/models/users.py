"""User identity model.

Only the identity fields the workspace-clone engine reads are mapped here;
authentication and profile data live with the auth service.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from funnel_builder.config.plans import Plan
from funnel_builder.core.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from funnel_builder.core.models.workspaces import Workspace


class User(TimestampMixin, Base):
    """A registered account that can own workspaces and buy clones.

    ``username`` seeds the slug of every workspace cloned for this user.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(
        sa.String(320),
        unique=True,
        nullable=False,
        index=True,
    )
    username: Mapped[str] = mapped_column(
        sa.String(150),
        unique=True,
        nullable=False,
    )
    first_name: Mapped[Optional[str]] = mapped_column(sa.String(150), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(sa.String(150), nullable=True)
    plan: Mapped[str] = mapped_column(
        sa.String(30),
        nullable=False,
        default=Plan.FREE.value,
        server_default=sa.text(f"'{Plan.FREE.value}'"),
    )

    # Relationships
    owned_workspaces: Mapped[list[Workspace]] = relationship(
        "Workspace",
        foreign_keys="Workspace.owner_id",
        back_populates="owner",
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r} plan={self.plan!r}>"
