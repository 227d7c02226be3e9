"""Pydantic request/response schemas for the workspace-clone engine.

The payment webhook worker and the operator CLI both build a
:class:`CloneWorkspaceRequest`; the service returns a
:class:`CloneWorkspaceResponse`.  Both accept and emit camelCase field
names on the wire (``sourceWorkspaceId``, ``clonedWorkspaceId`` ...) while
Python code uses snake_case attributes.
"""

from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator
from pydantic.alias_generators import to_camel

from funnel_builder.config.plans import Plan


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class CloneWorkspaceRequest(_CamelModel):
    """Input of a workspace clone.

    Attributes:
        source_workspace_id: Workspace whose subtree is copied.
        new_owner_id: User who owns the clone.
        payment_id: Transaction id of the payment that pays for the clone.
            Integer ids must be positive.
            ``None`` runs the clone without a payment gate (operator use).
        plan_type: Plan assigned to the cloned workspace.  Drives which
            funnel settings are redacted.
    """

    source_workspace_id: PositiveInt
    new_owner_id: PositiveInt
    payment_id: Optional[Union[PositiveInt, str]] = None
    plan_type: Plan

    @field_validator("payment_id")
    @classmethod
    def _reject_blank_payment_id(cls, v: Optional[Union[int, str]]) -> Optional[Union[int, str]]:
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError("payment_id must not be blank")
        return v

    @property
    def payment_token(self) -> Optional[str]:
        """``payment_id`` as the string transaction id, or ``None``."""
        return None if self.payment_id is None else str(self.payment_id)


class ClonedWorkspaceSummary(_CamelModel):
    """The fields of the new workspace returned to the caller."""

    id: int
    name: str
    slug: str
    plan_type: Plan


class CloneWorkspaceResponse(_CamelModel):
    """Outcome of a successful clone.

    ``clone_record_id`` is ``None`` when the clone ran without a payment;
    ``hostname`` is ``None`` when no workspace subdomain was provisioned.
    """

    message: str = Field(default="Workspace cloned successfully")
    cloned_workspace_id: int
    cloned_workspace: ClonedWorkspaceSummary
    clone_record_id: Optional[int] = None
    hostname: Optional[str] = None
