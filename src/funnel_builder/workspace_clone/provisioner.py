"""Best-effort set-up of a cloned workspace after the clone has committed.

Two independent steps, each in its own transaction:

1. **Owner membership**: an ``OWNER`` :class:`WorkspaceMember` row carrying
   every workspace permission.
2. **Workspace subdomain**: when ``workspace_domain`` and
   ``workspace_zone_id`` are configured, an ``A`` record
   ``<slug>.<workspace_domain>`` is created through Cloudflare and a
   ``Domain`` row is stored for it.  If the ``Domain`` row cannot be stored
   the DNS record is deleted again.

Failures are logged and collected in :class:`ProvisioningResult`; nothing
here raises, so a committed clone is never reported as failed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from funnel_builder.config.settings import Settings
from funnel_builder.core.exceptions import CloudflareAPIError
from funnel_builder.core.models.domains import Domain, DomainStatus, DomainType, SslStatus
from funnel_builder.core.models.workspaces import (
    ALL_WORKSPACE_PERMISSIONS,
    MemberStatus,
    WorkspaceMember,
    WorkspaceRole,
)
from funnel_builder.integrations.cloudflare import CloudflareClient

logger = logging.getLogger(__name__)


@dataclass
class ProvisioningResult:
    """Outcome of :meth:`WorkspaceProvisioner.provision`.

    Attributes:
        membership_created: Whether the OWNER membership row was written.
        hostname: The provisioned subdomain, or ``None`` if none was created.
        dns_record_id: Cloudflare id of the A record, or ``None``.
        errors: One human-readable entry per failed step.
    """

    membership_created: bool = False
    hostname: Optional[str] = None
    dns_record_id: Optional[str] = None
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class WorkspaceProvisioner:
    """Creates the owner membership and the workspace subdomain.

    Args:
        settings: Application settings (workspace domain, zone, target IP).
        cloudflare: DNS client.  Built from *settings* when omitted.
    """

    def __init__(
        self,
        settings: Settings,
        cloudflare: CloudflareClient | None = None,
    ) -> None:
        self._settings = settings
        self._cloudflare = cloudflare or CloudflareClient(
            api_token=settings.cloudflare_api_token,
            api_base=settings.cloudflare_api_base,
        )

    @property
    def subdomains_enabled(self) -> bool:
        return bool(self._settings.workspace_domain and self._settings.workspace_zone_id)

    def hostname_for(self, slug: str) -> str:
        return f"{slug}.{self._settings.workspace_domain}"

    async def provision(
        self,
        session: AsyncSession,
        workspace_id: int,
        slug: str,
        owner_id: int,
    ) -> ProvisioningResult:
        """Run every provisioning step for a freshly committed clone.

        Args:
            session: A session with no transaction in progress.
            workspace_id: Id of the cloned workspace.
            slug: Slug of the cloned workspace; the subdomain label.
            owner_id: Owner of the cloned workspace.

        Returns:
            A :class:`ProvisioningResult`.  Never raises for step failures.
        """
        result = ProvisioningResult()
        await self._create_owner_membership(session, workspace_id, owner_id, result)
        if self.subdomains_enabled:
            await self._create_subdomain(session, slug, owner_id, result)
        else:
            logger.info(
                "provisioner: workspace domain not configured, skipping subdomain",
                extra={"workspace_id": workspace_id},
            )
        return result

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _create_owner_membership(
        self,
        session: AsyncSession,
        workspace_id: int,
        owner_id: int,
        result: ProvisioningResult,
    ) -> None:
        try:
            async with session.begin():
                session.add(
                    WorkspaceMember(
                        workspace_id=workspace_id,
                        user_id=owner_id,
                        role=WorkspaceRole.OWNER.value,
                        status=MemberStatus.ACTIVE.value,
                        permissions=list(ALL_WORKSPACE_PERMISSIONS),
                    )
                )
        except SQLAlchemyError as exc:
            logger.warning(
                "provisioner: owner membership failed",
                extra={"workspace_id": workspace_id, "owner_id": owner_id, "error": str(exc)},
            )
            result.errors.append(f"membership: {exc}")
            return
        result.membership_created = True

    async def _create_subdomain(
        self,
        session: AsyncSession,
        slug: str,
        owner_id: int,
        result: ProvisioningResult,
    ) -> None:
        zone_id = self._settings.workspace_zone_id
        hostname = self.hostname_for(slug)

        try:
            record = await self._cloudflare.create_a_record(
                zone_id, slug, self._settings.subdomain_target_ip
            )
        except CloudflareAPIError as exc:
            logger.warning(
                "provisioner: DNS record creation failed",
                extra={
                    "hostname": hostname,
                    "status_code": exc.status_code,
                    "duplicate": exc.is_duplicate_record,
                    "error": str(exc),
                },
            )
            result.errors.append(f"dns: {exc}")
            return

        record_id = record.get("id")
        try:
            async with session.begin():
                session.add(
                    Domain(
                        hostname=hostname,
                        type=DomainType.SUBDOMAIN.value,
                        status=DomainStatus.ACTIVE.value,
                        ssl_status=SslStatus.ACTIVE.value,
                        workspace_id=None,
                        created_by=owner_id,
                        cloudflare_record_id=record_id,
                        cloudflare_zone_id=zone_id,
                        last_verified_at=datetime.now(timezone.utc),
                    )
                )
        except SQLAlchemyError as exc:
            logger.warning(
                "provisioner: domain row failed, removing DNS record",
                extra={"hostname": hostname, "record_id": record_id, "error": str(exc)},
            )
            result.errors.append(f"domain: {exc}")
            await self._rollback_dns_record(zone_id, record_id)
            return

        result.hostname = hostname
        result.dns_record_id = record_id
        logger.info(
            "provisioner: workspace subdomain created",
            extra={"hostname": hostname, "record_id": record_id},
        )

    async def _rollback_dns_record(self, zone_id: str, record_id: Optional[str]) -> None:
        if not record_id:
            return
        try:
            await self._cloudflare.delete_dns_record(zone_id, record_id)
        except CloudflareAPIError as exc:
            logger.error(
                "provisioner: orphaned DNS record could not be deleted",
                extra={"zone_id": zone_id, "record_id": record_id, "error": str(exc)},
            )
