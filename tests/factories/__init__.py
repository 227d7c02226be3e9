"""Factory Boy model factories for test data generation.

Available factories
-------------------
UserFactory             - user dict
WorkspaceFactory        - workspace dict
RoleTemplateFactory     - workspace role-permission template dict
ThemeFactory            - CUSTOM theme dict
GlobalThemeFactory      - GLOBAL (shared) theme dict
FunnelFactory           - funnel dict
FunnelSettingsFactory   - funnel settings dict
PageFactory             - page dict
PaymentFactory          - completed payment dict
"""

from __future__ import annotations

from tests.factories.funnels import (
    FunnelFactory,
    FunnelSettingsFactory,
    GlobalThemeFactory,
    PageFactory,
    ThemeFactory,
)
from tests.factories.payments import PaymentFactory
from tests.factories.users import UserFactory
from tests.factories.workspaces import RoleTemplateFactory, WorkspaceFactory

__all__ = [
    "FunnelFactory",
    "FunnelSettingsFactory",
    "GlobalThemeFactory",
    "PageFactory",
    "PaymentFactory",
    "RoleTemplateFactory",
    "ThemeFactory",
    "UserFactory",
    "WorkspaceFactory",
]
