"""Plan-aware scrubbing of funnel settings copied into a clone.

The policy is a declarative table of :class:`RedactionRule` entries.  Each
rule names a settings field, a predicate over the destination plan's
:class:`~funnel_builder.config.plans.PlanConfig`, and the value that
replaces the field when the predicate holds.

Tracking ids identify the seller's analytics accounts and are always
cleared.  Password protection is cleared only when the destination plan
does not allow it.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from funnel_builder.config.plans import Plan, PlanConfig, get_plan_config


@dataclass(frozen=True)
class RedactionRule:
    field: str
    applies: Callable[[PlanConfig], bool]
    replacement: Any


def _always(plan_config: PlanConfig) -> bool:  # noqa: ARG001
    return True


def _password_protection_forbidden(plan_config: PlanConfig) -> bool:
    return not plan_config.allows_password_protection


REDACTION_RULES: tuple[RedactionRule, ...] = (
    RedactionRule("google_analytics_id", _always, None),
    RedactionRule("facebook_pixel_id", _always, None),
    RedactionRule("is_password_protected", _password_protection_forbidden, False),
    RedactionRule("password_hash", _password_protection_forbidden, None),
)


def redact_settings(values: Mapping[str, Any], plan: Plan | str) -> dict[str, Any]:
    """Return a copy of *values* with the redaction rules for *plan* applied.

    Pure: *values* is not modified.  Rules whose field is absent from
    *values* are skipped.

    Args:
        values: Funnel settings as a field -> value mapping.
        plan: Plan of the destination workspace.

    Returns:
        A new dict ready to be written to the cloned funnel's settings.

    Raises:
        ValueError: If *plan* is not a known plan.
    """
    plan_config = get_plan_config(plan)
    redacted = dict(values)
    for rule in REDACTION_RULES:
        if rule.field in redacted and rule.applies(plan_config):
            redacted[rule.field] = rule.replacement
    return redacted
