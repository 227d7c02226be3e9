"""Unit tests for the clone payment guard.

Tests cover:
- No payment token → None, no queries
- Unknown transaction id → PaymentNotFoundError
- Payment already referenced by a clone record → PaymentAlreadyUsedError
- Unconsumed payment → PaymentContext
- Integer tokens are matched as their string form
- consumed_payment_id reports a payment only once a clone record holds it

All DB calls are mocked via AsyncMock / MagicMock.
"""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from funnel_builder.core.exceptions import PaymentAlreadyUsedError, PaymentNotFoundError
from funnel_builder.core.models import Payment
from funnel_builder.workspace_clone.payment_guard import (
    PaymentContext,
    consumed_payment_id,
    validate_payment,
)


def _result(value: Any) -> MagicMock:
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


def _make_mock_session(*values: Any) -> MagicMock:
    """Mock AsyncSession whose successive ``execute`` calls return *values*."""
    session = MagicMock()
    session.execute = AsyncMock(side_effect=[_result(v) for v in values])
    return session


def _payment(**overrides: Any) -> Payment:
    fields = {"id": 11, "transaction_id": "TX-1001", "buyer_id": 7}
    fields.update(overrides)
    return Payment(**fields)


class TestValidatePayment:
    async def test_no_token_skips_the_gate(self) -> None:
        session = _make_mock_session()

        assert await validate_payment(session, None) is None
        session.execute.assert_not_awaited()

    async def test_unknown_transaction_id(self) -> None:
        session = _make_mock_session(None)

        with pytest.raises(PaymentNotFoundError) as exc_info:
            await validate_payment(session, "TX-404")

        assert exc_info.value.transaction_id == "TX-404"
        assert "couldn't find a payment" in str(exc_info.value)

    async def test_consumed_payment(self) -> None:
        session = _make_mock_session(_payment(), 3)

        with pytest.raises(PaymentAlreadyUsedError) as exc_info:
            await validate_payment(session, "TX-1001")

        assert exc_info.value.payment_id == 11
        assert session.execute.await_count == 2

    async def test_unconsumed_payment(self) -> None:
        session = _make_mock_session(_payment(), None)

        context = await validate_payment(session, "TX-1001")

        assert context == PaymentContext(payment_id=11, transaction_id="TX-1001")

    async def test_integer_token_compared_as_string(self) -> None:
        session = _make_mock_session(_payment(transaction_id="884422"), None)

        context = await validate_payment(session, 884422)

        assert context.transaction_id == "884422"
        statement = session.execute.await_args_list[0].args[0]
        assert statement.compile().params == {"transaction_id_1": "884422"}


class TestConsumedPaymentId:
    async def test_consumed_payment_returns_internal_id(self) -> None:
        session = _make_mock_session(11)

        assert await consumed_payment_id(session, "TX-1001") == 11
        statement = session.execute.await_args_list[0].args[0]
        assert "workspace_clones" in str(statement)

    async def test_unconsumed_or_unknown_payment(self) -> None:
        session = _make_mock_session(None)

        assert await consumed_payment_id(session, 884422) is None
        statement = session.execute.await_args_list[0].args[0]
        assert statement.compile().params == {"transaction_id_1": "884422"}
