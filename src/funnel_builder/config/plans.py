"""Subscription plan definitions and per-plan feature configuration.

A workspace carries a ``plan_type`` that gates which funnel features its
content may use.  The clone engine consults this table when it decides which
funnel settings survive a transfer to a buyer on a given plan, e.g. a
BUSINESS workspace cannot keep password-protected funnels.

Only the capabilities the backend actually enforces live here; pricing and
billing periods belong to the payment provider.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Plan(str, Enum):
    """Plan assigned to a user or a workspace.

    Attributes:
        FREE: Trial / free accounts.
        BUSINESS: Single-brand plan.  No password-protected funnels.
        AGENCY: Multi-client plan with every funnel feature.
        ADMIN: Internal staff accounts.
        NO_PLAN: Registered user without an active subscription.
        OLD_MEMBER: Legacy plan carried over from the previous platform.
        WORKSPACE_MEMBER: Invited collaborator without a plan of their own.
    """

    FREE = "FREE"
    BUSINESS = "BUSINESS"
    AGENCY = "AGENCY"
    ADMIN = "ADMIN"
    NO_PLAN = "NO_PLAN"
    OLD_MEMBER = "OLD_MEMBER"
    WORKSPACE_MEMBER = "WORKSPACE_MEMBER"


@dataclass(frozen=True)
class PlanConfig:
    """Feature switches for a single plan.

    Attributes:
        plan: The :class:`Plan` this configuration applies to.
        allows_password_protection: Whether funnels in a workspace on this
            plan may be password protected.  When ``False``, cloned funnel
            settings have their password fields cleared.
    """

    plan: Plan
    allows_password_protection: bool


PLAN_DEFAULTS: dict[Plan, PlanConfig] = {
    Plan.FREE: PlanConfig(
        plan=Plan.FREE,
        allows_password_protection=True,
    ),
    Plan.BUSINESS: PlanConfig(
        plan=Plan.BUSINESS,
        allows_password_protection=False,
    ),
    Plan.AGENCY: PlanConfig(
        plan=Plan.AGENCY,
        allows_password_protection=True,
    ),
    Plan.ADMIN: PlanConfig(
        plan=Plan.ADMIN,
        allows_password_protection=True,
    ),
    Plan.NO_PLAN: PlanConfig(
        plan=Plan.NO_PLAN,
        allows_password_protection=True,
    ),
    Plan.OLD_MEMBER: PlanConfig(
        plan=Plan.OLD_MEMBER,
        allows_password_protection=True,
    ),
    Plan.WORKSPACE_MEMBER: PlanConfig(
        plan=Plan.WORKSPACE_MEMBER,
        allows_password_protection=True,
    ),
}
"""Feature configuration per plan.

BUSINESS is the only plan that forbids password protection; every other
plan keeps the source funnel's password settings when a workspace is cloned
into it.
"""


def get_plan_config(plan: Plan | str) -> PlanConfig:
    """Return the :class:`PlanConfig` for *plan*.

    Args:
        plan: A :class:`Plan` member or its string value.

    Returns:
        The matching :class:`PlanConfig`.

    Raises:
        ValueError: If *plan* is not a known plan name.
    """
    return PLAN_DEFAULTS[Plan(plan)]
