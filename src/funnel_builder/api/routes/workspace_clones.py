"""Internal route that runs a workspace clone.

Called by the payment-webhook worker once a clone purchase has been
recorded.  Authenticated with the shared ``X-Internal-Token`` header, not
with user credentials.

Errors raised by the service are rendered by the exception handler in
``api/main.py``.
"""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, status

from funnel_builder.api.dependencies import get_clone_service, require_internal_token
from funnel_builder.core.schemas.workspace_clone import (
    CloneWorkspaceRequest,
    CloneWorkspaceResponse,
)
from funnel_builder.workspace_clone.service import CloneWorkspaceService

logger = structlog.get_logger(__name__)

router = APIRouter(dependencies=[Depends(require_internal_token)])


@router.post(
    "",
    response_model=CloneWorkspaceResponse,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_workspace_clone(
    payload: CloneWorkspaceRequest,
    service: Annotated[CloneWorkspaceService, Depends(get_clone_service)],
) -> CloneWorkspaceResponse:
    """Clone ``sourceWorkspaceId`` to ``newOwnerId``, consuming ``paymentId``.

    Returns HTTP 201 with the new workspace.  Returns 404 when the payment,
    workspace or owner is missing and 409 when the payment was already used
    or a concurrent clone won a constraint race (``retryable: true``).
    """
    return await service.clone_workspace(payload)
