"""Tests for the workspace-clone request/response schemas.

Pure schema validation tests: no database, HTTP, or async I/O.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from funnel_builder.config.plans import Plan
from funnel_builder.core.schemas.workspace_clone import (
    ClonedWorkspaceSummary,
    CloneWorkspaceRequest,
    CloneWorkspaceResponse,
)


class TestCloneWorkspaceRequest:
    def test_accepts_camel_case(self) -> None:
        request = CloneWorkspaceRequest.model_validate(
            {"sourceWorkspaceId": 3, "newOwnerId": 7, "planType": "AGENCY", "paymentId": 884422}
        )

        assert request.source_workspace_id == 3
        assert request.plan_type is Plan.AGENCY
        assert request.payment_token == "884422"

    def test_accepts_snake_case(self) -> None:
        request = CloneWorkspaceRequest(source_workspace_id=3, new_owner_id=7, plan_type="BUSINESS")

        assert request.payment_id is None
        assert request.payment_token is None

    def test_payment_id_is_stripped(self) -> None:
        request = CloneWorkspaceRequest(
            source_workspace_id=3, new_owner_id=7, plan_type="BUSINESS", payment_id="  TX-1 "
        )

        assert request.payment_token == "TX-1"

    @pytest.mark.parametrize(
        "fields",
        [
            {"source_workspace_id": 0, "new_owner_id": 7, "plan_type": "BUSINESS"},
            {"source_workspace_id": 3, "new_owner_id": -1, "plan_type": "BUSINESS"},
            {"source_workspace_id": 3, "new_owner_id": 7, "plan_type": "GOLD"},
            {"source_workspace_id": 3, "new_owner_id": 7, "plan_type": "BUSINESS", "payment_id": ""},
            {"source_workspace_id": 3, "new_owner_id": 7, "plan_type": "BUSINESS", "payment_id": 0},
            {"source_workspace_id": 3, "new_owner_id": 7, "plan_type": "BUSINESS", "payment_id": -5},
            {"source_workspace_id": 3, "plan_type": "BUSINESS"},
        ],
    )
    def test_invalid_requests_rejected(self, fields: dict) -> None:
        with pytest.raises(ValidationError):
            CloneWorkspaceRequest(**fields)


class TestCloneWorkspaceResponse:
    def test_dumps_camel_case_with_default_message(self) -> None:
        response = CloneWorkspaceResponse(
            cloned_workspace_id=41,
            cloned_workspace=ClonedWorkspaceSummary(
                id=41, name="Studio", slug="jane-doe", plan_type="BUSINESS"
            ),
        )

        dumped = response.model_dump(by_alias=True, mode="json")

        assert dumped["message"] == "Workspace cloned successfully"
        assert dumped["clonedWorkspace"]["planType"] == "BUSINESS"
        assert dumped["cloneRecordId"] is None
        assert dumped["hostname"] is None
