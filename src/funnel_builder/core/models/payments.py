"""Payment and clone provenance models.

Covers:
- Payment: a completed purchase recorded by the payment webhook worker.
  ``transaction_id`` is the payment provider's correlation key.
- WorkspaceClone: the immutable record of one workspace clone.  The unique
  constraint on ``payment_id`` is what makes a payment consumable at most
  once, even under concurrent clone attempts.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from funnel_builder.core.models.base import Base, JSONType, TimestampMixin


class Payment(TimestampMixin, Base):
    """A purchase recorded from the payment provider's webhook.

    ``status`` is stored exactly as the provider reports it.
    """

    __tablename__ = "payments"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    transaction_id: Mapped[str] = mapped_column(
        sa.String(200),
        unique=True,
        nullable=False,
        index=True,
    )
    status: Mapped[str] = mapped_column(sa.String(50), nullable=False)
    amount: Mapped[Decimal] = mapped_column(sa.Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(sa.String(3), nullable=False)
    payment_type: Mapped[Optional[str]] = mapped_column(sa.String(50), nullable=True)
    buyer_id: Mapped[int] = mapped_column(
        sa.Integer,
        sa.ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    workspace_id: Mapped[Optional[int]] = mapped_column(
        sa.Integer,
        sa.ForeignKey("workspaces.id", ondelete="SET NULL"),
        nullable=True,
    )
    raw_data: Mapped[Optional[Any]] = mapped_column(JSONType, nullable=True)

    def __repr__(self) -> str:
        return f"<Payment id={self.id} transaction_id={self.transaction_id!r}>"


class WorkspaceClone(TimestampMixin, Base):
    """Provenance of a cloned workspace.  Written once, never updated."""

    __tablename__ = "workspace_clones"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    source_workspace_id: Mapped[int] = mapped_column(
        sa.Integer,
        sa.ForeignKey("workspaces.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    cloned_workspace_id: Mapped[int] = mapped_column(
        sa.Integer,
        sa.ForeignKey("workspaces.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    seller_id: Mapped[int] = mapped_column(
        sa.Integer,
        sa.ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    buyer_id: Mapped[int] = mapped_column(
        sa.Integer,
        sa.ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    payment_id: Mapped[Optional[int]] = mapped_column(
        sa.Integer,
        sa.ForeignKey("payments.id", ondelete="RESTRICT"),
        unique=True,
        nullable=True,
    )

    def __repr__(self) -> str:
        return (
            f"<WorkspaceClone id={self.id} source={self.source_workspace_id} "
            f"cloned={self.cloned_workspace_id} payment_id={self.payment_id}>"
        )
