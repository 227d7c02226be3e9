"""Tests for WorkspaceProvisioner.

Covers:
- OWNER membership with every permission is written
- A duplicate membership is reported, not raised
- Subdomain provisioning is skipped without a workspace domain
- Subdomain: A record created and Domain row stored
- DNS failure is reported, not raised, and no Domain row is stored
- Domain row failure deletes the DNS record again

Cloudflare is an AsyncMock; the database is the per-test SQLite file.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from funnel_builder.config.settings import Settings
from funnel_builder.core.exceptions import CloudflareAPIError
from funnel_builder.core.models import ALL_WORKSPACE_PERMISSIONS, Domain, WorkspaceMember
from funnel_builder.integrations.cloudflare import CloudflareClient
from funnel_builder.workspace_clone.provisioner import WorkspaceProvisioner
from tests.conftest import SeededWorkspace, count_rows


def _make_mock_cloudflare(record_id: str = "rec-1") -> MagicMock:
    cloudflare = MagicMock(spec=CloudflareClient)
    cloudflare.create_a_record = AsyncMock(return_value={"id": record_id})
    cloudflare.delete_dns_record = AsyncMock(return_value=None)
    return cloudflare


@pytest.fixture
def subdomain_settings(test_settings: Settings) -> Settings:
    return test_settings.model_copy(
        update={"workspace_domain": "digitalsite.com", "workspace_zone_id": "zone-123"}
    )


class TestOwnerMembership:
    async def test_membership_created(
        self,
        test_session_factory: async_sessionmaker[AsyncSession],
        test_settings: Settings,
        source_workspace: SeededWorkspace,
        buyer,
    ) -> None:
        provisioner = WorkspaceProvisioner(test_settings, cloudflare=_make_mock_cloudflare())

        async with test_session_factory() as session:
            result = await provisioner.provision(
                session, source_workspace.workspace_id, source_workspace.workspace_slug, buyer.id
            )

        assert result.membership_created is True
        assert result.ok
        async with test_session_factory() as session:
            member = (await session.execute(select(WorkspaceMember))).scalar_one()
        assert member.role == "OWNER"
        assert member.permissions == ALL_WORKSPACE_PERMISSIONS

    async def test_duplicate_membership_reported(
        self,
        test_session_factory: async_sessionmaker[AsyncSession],
        test_settings: Settings,
        source_workspace: SeededWorkspace,
        buyer,
    ) -> None:
        provisioner = WorkspaceProvisioner(test_settings, cloudflare=_make_mock_cloudflare())
        args = (source_workspace.workspace_id, source_workspace.workspace_slug, buyer.id)

        async with test_session_factory() as session:
            await provisioner.provision(session, *args)
        async with test_session_factory() as session:
            result = await provisioner.provision(session, *args)

        assert result.membership_created is False
        assert result.errors and result.errors[0].startswith("membership:")
        assert await count_rows(test_session_factory, WorkspaceMember) == 1

    async def test_subdomain_skipped_without_domain(
        self,
        test_session_factory: async_sessionmaker[AsyncSession],
        test_settings: Settings,
        source_workspace: SeededWorkspace,
        buyer,
    ) -> None:
        cloudflare = _make_mock_cloudflare()
        provisioner = WorkspaceProvisioner(test_settings, cloudflare=cloudflare)

        async with test_session_factory() as session:
            result = await provisioner.provision(
                session, source_workspace.workspace_id, "jane-doe", buyer.id
            )

        assert provisioner.subdomains_enabled is False
        assert result.hostname is None
        cloudflare.create_a_record.assert_not_awaited()


class TestSubdomain:
    async def test_record_and_domain_row_created(
        self,
        test_session_factory: async_sessionmaker[AsyncSession],
        subdomain_settings: Settings,
        source_workspace: SeededWorkspace,
        buyer,
    ) -> None:
        cloudflare = _make_mock_cloudflare("rec-77")
        provisioner = WorkspaceProvisioner(subdomain_settings, cloudflare=cloudflare)

        async with test_session_factory() as session:
            result = await provisioner.provision(
                session, source_workspace.workspace_id, "jane-doe", buyer.id
            )

        assert result.ok
        assert result.hostname == "jane-doe.digitalsite.com"
        assert result.dns_record_id == "rec-77"
        cloudflare.create_a_record.assert_awaited_once_with(
            "zone-123", "jane-doe", subdomain_settings.subdomain_target_ip
        )
        async with test_session_factory() as session:
            domain = (await session.execute(select(Domain))).scalar_one()
        assert domain.hostname == "jane-doe.digitalsite.com"
        assert domain.type == "SUBDOMAIN"
        assert domain.status == "ACTIVE"
        assert domain.ssl_status == "ACTIVE"
        assert domain.workspace_id is None
        assert domain.created_by == buyer.id
        assert domain.cloudflare_record_id == "rec-77"

    async def test_dns_failure_is_reported(
        self,
        test_session_factory: async_sessionmaker[AsyncSession],
        subdomain_settings: Settings,
        source_workspace: SeededWorkspace,
        buyer,
    ) -> None:
        cloudflare = _make_mock_cloudflare()
        cloudflare.create_a_record.side_effect = CloudflareAPIError(
            "cloudflare: Record already exists.", status_code=400, error_code=81057
        )
        provisioner = WorkspaceProvisioner(subdomain_settings, cloudflare=cloudflare)

        async with test_session_factory() as session:
            result = await provisioner.provision(
                session, source_workspace.workspace_id, "jane-doe", buyer.id
            )

        assert result.membership_created is True
        assert result.hostname is None
        assert result.errors == ["dns: cloudflare: Record already exists."]
        assert await count_rows(test_session_factory, Domain) == 0

    async def test_domain_row_failure_removes_dns_record(
        self,
        test_session_factory: async_sessionmaker[AsyncSession],
        subdomain_settings: Settings,
        source_workspace: SeededWorkspace,
        buyer,
    ) -> None:
        async with test_session_factory() as session:
            session.add(
                Domain(hostname="jane-doe.digitalsite.com", type="SUBDOMAIN", created_by=buyer.id)
            )
            await session.commit()

        cloudflare = _make_mock_cloudflare("rec-orphan")
        provisioner = WorkspaceProvisioner(subdomain_settings, cloudflare=cloudflare)

        async with test_session_factory() as session:
            result = await provisioner.provision(
                session, source_workspace.workspace_id, "jane-doe", buyer.id
            )

        assert result.hostname is None
        assert any(error.startswith("domain:") for error in result.errors)
        cloudflare.delete_dns_record.assert_awaited_once_with("zone-123", "rec-orphan")
