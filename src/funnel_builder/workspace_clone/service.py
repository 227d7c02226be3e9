"""Workspace clone entry point.

:class:`CloneWorkspaceService` runs the payment guard, graph reader, slug
allocator and orchestrator inside one transaction, bounded by the
``clone_timeout_seconds`` setting.  After the commit it runs the
provisioner and invalidates the buyer's cached listings; neither of those
can turn a committed clone into a failure.

Error contract:

- :class:`~funnel_builder.core.exceptions.NotFoundError` and
  :class:`~funnel_builder.core.exceptions.ConflictError` subclasses pass
  through unchanged.
- Constraint violations surface as
  :class:`~funnel_builder.core.exceptions.CloneConstraintError` (retryable),
  unless the request's payment has meanwhile been consumed by another
  clone, which surfaces as
  :class:`~funnel_builder.core.exceptions.PaymentAlreadyUsedError`.
- A timeout surfaces as :class:`~funnel_builder.core.exceptions.CloneTimeoutError`.
- Anything else is logged and surfaces as
  :class:`~funnel_builder.core.exceptions.UnexpectedCloneError`.

In every failure case nothing from the attempted clone is committed.
"""

from __future__ import annotations

import asyncio
import uuid
from typing import Optional

import structlog
from redis.exceptions import RedisError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from funnel_builder.config.settings import Settings, get_settings
from funnel_builder.core.cache import CacheService
from funnel_builder.core.exceptions import (
    CloneConstraintError,
    CloneTimeoutError,
    FunnelBuilderError,
    PaymentAlreadyUsedError,
    UnexpectedCloneError,
)
from funnel_builder.core.logging_config import bind_clone_context, clear_clone_context
from funnel_builder.core.schemas.workspace_clone import (
    CloneWorkspaceRequest,
    ClonedWorkspaceSummary,
    CloneWorkspaceResponse,
)
from funnel_builder.workspace_clone.graph_reader import load_new_owner, load_source_graph
from funnel_builder.workspace_clone.orchestrator import ClonedGraph, clone_graph
from funnel_builder.workspace_clone.payment_guard import consumed_payment_id, validate_payment
from funnel_builder.workspace_clone.provisioner import ProvisioningResult, WorkspaceProvisioner
from funnel_builder.workspace_clone.slug_allocator import allocate_unique_slug, choose_base_slug

logger = structlog.get_logger(__name__)


class CloneWorkspaceService:
    """Clones a workspace subtree to a new owner.

    Args:
        session_factory: Factory for :class:`AsyncSession` objects.  One
            session is opened for the clone transaction and one for
            post-commit provisioning.
        provisioner: Post-clone provisioner.  Built from *settings* when omitted.
        cache: Cache whose buyer entries are invalidated after a clone.
            Invalidation is skipped when omitted.
        settings: Application settings.  Defaults to :func:`get_settings`.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        provisioner: Optional[WorkspaceProvisioner] = None,
        cache: Optional[CacheService] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._session_factory = session_factory
        self._settings = settings or get_settings()
        self._provisioner = provisioner or WorkspaceProvisioner(self._settings)
        self._cache = cache

    async def clone_workspace(self, request: CloneWorkspaceRequest) -> CloneWorkspaceResponse:
        """Clone ``request.source_workspace_id`` to ``request.new_owner_id``.

        Raises:
            NotFoundError: Payment, source workspace or new owner missing.
            PaymentAlreadyUsedError: The payment already paid for a clone.
            CloneConstraintError: A write was rejected; safe to retry.
            CloneTimeoutError: The transaction exceeded its time budget.
            CloneFatalError: Slug space exhausted or an unexpected failure.
        """
        bind_clone_context(
            clone_run_id=uuid.uuid4().hex,
            source_workspace_id=request.source_workspace_id,
            new_owner_id=request.new_owner_id,
        )
        try:
            logger.info(
                "workspace_clone_started",
                plan_type=request.plan_type.value,
                has_payment=request.payment_id is not None,
            )
            cloned = await self._run_transaction(request)
            workspace = cloned.workspace

            provisioning = await self._provision(workspace.id, workspace.slug, request.new_owner_id)
            await self._invalidate_cache(request.new_owner_id, workspace.slug)

            logger.info(
                "workspace_cloned",
                cloned_workspace_id=workspace.id,
                slug=workspace.slug,
                funnels=len(cloned.funnel_ids),
                pages=cloned.page_count,
                clone_record_id=cloned.clone_record.id if cloned.clone_record else None,
                provisioning_errors=provisioning.errors,
            )
            if not provisioning.ok:
                logger.warning(
                    "workspace_clone_provisioning_incomplete",
                    cloned_workspace_id=workspace.id,
                    errors=provisioning.errors,
                )
            return CloneWorkspaceResponse(
                cloned_workspace_id=workspace.id,
                cloned_workspace=ClonedWorkspaceSummary(
                    id=workspace.id,
                    name=workspace.name,
                    slug=workspace.slug,
                    plan_type=workspace.plan_type,
                ),
                clone_record_id=cloned.clone_record.id if cloned.clone_record else None,
                hostname=provisioning.hostname,
            )
        finally:
            clear_clone_context()

    # ------------------------------------------------------------------
    # Transaction
    # ------------------------------------------------------------------

    async def _run_transaction(self, request: CloneWorkspaceRequest) -> ClonedGraph:
        try:
            return await self._run_bounded(request)
        except CloneConstraintError as exc:
            await self._reject_if_payment_consumed(request, exc)
            raise

    async def _run_bounded(self, request: CloneWorkspaceRequest) -> ClonedGraph:
        timeout = self._settings.clone_timeout_seconds
        async with self._session_factory() as session:
            try:
                return await asyncio.wait_for(self._clone_in_transaction(session, request), timeout)
            except asyncio.TimeoutError as exc:
                logger.error("workspace_clone_timeout", timeout_seconds=timeout)
                raise CloneTimeoutError(timeout) from exc
            except FunnelBuilderError as exc:
                logger.info("workspace_clone_rejected", error=type(exc).__name__, detail=str(exc))
                raise
            except IntegrityError as exc:
                logger.warning("workspace_clone_constraint_violation", error=str(exc.orig))
                raise CloneConstraintError(f"Constraint violated on commit: {exc.orig}") from exc
            except Exception as exc:
                logger.exception("workspace_clone_unexpected_error")
                raise UnexpectedCloneError() from exc

    async def _reject_if_payment_consumed(
        self,
        request: CloneWorkspaceRequest,
        exc: CloneConstraintError,
    ) -> None:
        """Raise PaymentAlreadyUsedError when a concurrent clone consumed the payment.

        Two clones paid with the same payment for the same buyer collide on
        the slug before the loser reaches its clone record.  The payment is
        re-read in a fresh session once the failed transaction has rolled
        back, and a consumed payment replaces the retryable constraint error.
        """
        if request.payment_token is None:
            return
        try:
            async with self._session_factory() as session:
                payment_id = await consumed_payment_id(session, request.payment_token)
        except SQLAlchemyError as recheck_exc:
            logger.warning("workspace_clone_payment_recheck_failed", error=str(recheck_exc))
            return
        if payment_id is not None:
            logger.info(
                "workspace_clone_lost_payment_race",
                payment_id=payment_id,
                constraint_error=type(exc).__name__,
            )
            raise PaymentAlreadyUsedError(payment_id) from exc

    async def _clone_in_transaction(
        self,
        session: AsyncSession,
        request: CloneWorkspaceRequest,
    ) -> ClonedGraph:
        async with session.begin():
            payment = await validate_payment(session, request.payment_token)
            graph = await load_source_graph(session, request.source_workspace_id)
            owner = await load_new_owner(session, request.new_owner_id)

            base_slug = choose_base_slug(owner.username, graph.slug)
            unique_slug = await allocate_unique_slug(
                session,
                base_slug,
                hostname_domain=self._settings.workspace_domain,
                max_attempts=self._settings.clone_slug_max_attempts,
            )
            return await clone_graph(
                session,
                graph,
                new_owner_id=owner.id,
                unique_slug=unique_slug,
                plan_type=request.plan_type,
                payment_id=payment.payment_id if payment else None,
            )

    # ------------------------------------------------------------------
    # Post-commit, best effort
    # ------------------------------------------------------------------

    async def _provision(self, workspace_id: int, slug: str, owner_id: int) -> ProvisioningResult:
        try:
            async with self._session_factory() as session:
                return await self._provisioner.provision(session, workspace_id, slug, owner_id)
        except Exception:  # noqa: BLE001
            logger.exception("workspace_provisioning_crashed", cloned_workspace_id=workspace_id)
            return ProvisioningResult(errors=["provisioning crashed"])

    async def _invalidate_cache(self, buyer_id: int, slug: str) -> None:
        if self._cache is None:
            return
        try:
            await self._cache.invalidate_user_cache(buyer_id)
            await self._cache.invalidate_workspace_by_slug(slug)
        except RedisError as exc:
            logger.warning("workspace_clone_cache_invalidation_failed", error=str(exc))
