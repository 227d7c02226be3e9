"""At-most-once payment gate for workspace clones.

The guard runs inside the clone transaction before anything is written.  It
only reads; the payment is consumed by the ``workspace_clones`` insert in
:mod:`funnel_builder.workspace_clone.clone_record`, whose unique constraint
on ``payment_id`` settles races between concurrent clones.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from funnel_builder.core.exceptions import PaymentAlreadyUsedError, PaymentNotFoundError
from funnel_builder.core.models.payments import Payment, WorkspaceClone

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PaymentContext:
    """The resolved payment a clone will consume."""

    payment_id: int
    transaction_id: str


async def validate_payment(
    session: AsyncSession,
    payment_token: Optional[Union[int, str]],
) -> Optional[PaymentContext]:
    """Resolve *payment_token* to an unconsumed payment.

    Args:
        session: Session bound to the clone transaction.
        payment_token: Transaction id of the payment, or ``None`` to run the
            clone without a payment gate.

    Returns:
        A :class:`PaymentContext`, or ``None`` when *payment_token* is ``None``.

    Raises:
        PaymentNotFoundError: If no payment has this transaction id.
        PaymentAlreadyUsedError: If a clone record already references the payment.
    """
    if payment_token is None:
        return None

    transaction_id = str(payment_token)
    payment = (
        await session.execute(
            select(Payment).where(Payment.transaction_id == transaction_id)
        )
    ).scalar_one_or_none()
    if payment is None:
        logger.info("clone_payment_not_found", transaction_id=transaction_id)
        raise PaymentNotFoundError(transaction_id)

    existing_clone_id = (
        await session.execute(
            select(WorkspaceClone.id).where(WorkspaceClone.payment_id == payment.id)
        )
    ).scalar_one_or_none()
    if existing_clone_id is not None:
        logger.info(
            "clone_payment_already_used",
            payment_id=payment.id,
            workspace_clone_id=existing_clone_id,
        )
        raise PaymentAlreadyUsedError(payment.id)

    return PaymentContext(
        payment_id=payment.id,
        transaction_id=payment.transaction_id,
    )


async def consumed_payment_id(
    session: AsyncSession,
    payment_token: Union[int, str],
) -> Optional[int]:
    """Return the internal id of the payment if a clone record already consumed it.

    Args:
        session: Any session; the check is a single read.
        payment_token: Transaction id of the payment.

    Returns:
        ``payments.id`` when a ``workspace_clones`` row references the
        payment, ``None`` when the payment is unknown or still unconsumed.
    """
    return (
        await session.execute(
            select(Payment.id)
            .join(WorkspaceClone, WorkspaceClone.payment_id == Payment.id)
            .where(Payment.transaction_id == str(payment_token))
        )
    ).scalar_one_or_none()
