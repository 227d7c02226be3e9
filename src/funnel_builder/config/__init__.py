"""Configuration package for Funnel Builder.

Re-exports the most commonly used configuration symbols so that
callers can write::

    from funnel_builder.config import get_settings, Plan

without needing to know which sub-module each symbol lives in.
"""

from __future__ import annotations

from funnel_builder.config.plans import PLAN_DEFAULTS, Plan, PlanConfig, get_plan_config
from funnel_builder.config.settings import Settings, get_settings

__all__ = [
    # settings
    "Settings",
    "get_settings",
    # plans
    "Plan",
    "PlanConfig",
    "PLAN_DEFAULTS",
    "get_plan_config",
]
