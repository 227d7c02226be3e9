"""Provenance record that consumes a payment.

The ``workspace_clones`` insert is the authoritative consumption of a
payment: its unique constraint on ``payment_id`` rejects a second clone
paid with the same payment even when both passed the payment guard.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from funnel_builder.core.exceptions import PaymentAlreadyUsedError
from funnel_builder.core.models.payments import WorkspaceClone

logger = logging.getLogger(__name__)


async def record_clone(
    session: AsyncSession,
    source_workspace_id: int,
    cloned_workspace_id: int,
    seller_id: int,
    buyer_id: int,
    payment_id: Optional[int] = None,
) -> Optional[WorkspaceClone]:
    """Insert the provenance row of a clone paid with *payment_id*.

    Args:
        session: Session bound to the clone transaction.
        source_workspace_id: Workspace that was cloned.
        cloned_workspace_id: Workspace that was created.
        seller_id: Owner of the source workspace.
        buyer_id: Owner of the cloned workspace.
        payment_id: Internal id of the consumed payment.  When ``None``
            nothing is consumed and no row is written.

    Returns:
        The flushed :class:`WorkspaceClone`, or ``None`` without a payment.

    Raises:
        PaymentAlreadyUsedError: If a concurrent clone consumed the payment first.
    """
    if payment_id is None:
        return None

    record = WorkspaceClone(
        source_workspace_id=source_workspace_id,
        cloned_workspace_id=cloned_workspace_id,
        seller_id=seller_id,
        buyer_id=buyer_id,
        payment_id=payment_id,
    )
    session.add(record)
    try:
        await session.flush()
    except IntegrityError as exc:
        logger.warning(
            "workspace_clone: payment consumed concurrently",
            extra={"payment_id": payment_id, "error": str(exc.orig)},
        )
        raise PaymentAlreadyUsedError(payment_id) from exc
    return record
