"""Async client for the Cloudflare v4 DNS API.

Only the two calls the workspace provisioner needs are implemented:
creating an A record for a workspace subdomain and deleting it again when
the matching ``Domain`` row cannot be stored.

Every Cloudflare response is an envelope::

    {"success": true, "errors": [], "messages": [], "result": {...}}

A non-2xx status or ``success: false`` raises
:class:`~funnel_builder.core.exceptions.CloudflareAPIError` carrying the
first error code from the envelope.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from funnel_builder.core.exceptions import CloudflareAPIError

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT_SECONDS: float = 15.0
_DEFAULT_RECORD_TTL: int = 3600


class CloudflareClient:
    """Minimal Cloudflare DNS client.

    Args:
        api_token: Bearer token with DNS edit permission on the zone.
        api_base: Base URL of the API, e.g. ``https://api.cloudflare.com/client/v4``.
        http_client: Optional injected :class:`httpx.AsyncClient` for testing.
            When omitted a client is created per call.
    """

    def __init__(
        self,
        api_token: str,
        api_base: str = "https://api.cloudflare.com/client/v4",
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_token = api_token
        self._api_base = api_base.rstrip("/")
        self._http_client = http_client

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def create_a_record(
        self,
        zone_id: str,
        name: str,
        content: str,
        *,
        ttl: int = _DEFAULT_RECORD_TTL,
        proxied: bool = True,
    ) -> dict[str, Any]:
        """Create a proxied ``A`` record ``name`` -> ``content`` in *zone_id*.

        Args:
            zone_id: Cloudflare zone id.
            name: Record name, either the bare label or the full hostname.
            content: Target IPv4 address.
            ttl: Record TTL in seconds.
            proxied: Whether traffic goes through the Cloudflare proxy.

        Returns:
            The ``result`` object of the response (contains ``id``).

        Raises:
            CloudflareAPIError: On any API or transport failure.
        """
        payload = {
            "type": "A",
            "name": name,
            "content": content,
            "ttl": ttl,
            "proxied": proxied,
        }
        result = await self._request("POST", f"/zones/{zone_id}/dns_records", json=payload)
        logger.info(
            "cloudflare: A record created",
            extra={"zone_id": zone_id, "record_name": name, "record_id": result.get("id")},
        )
        return result

    async def delete_dns_record(self, zone_id: str, record_id: str) -> None:
        """Delete DNS record *record_id* from *zone_id*.

        Raises:
            CloudflareAPIError: On any API or transport failure.
        """
        await self._request("DELETE", f"/zones/{zone_id}/dns_records/{record_id}")
        logger.info(
            "cloudflare: DNS record deleted",
            extra={"zone_id": zone_id, "record_id": record_id},
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_token}",
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        url = f"{self._api_base}{path}"
        try:
            if self._http_client is not None:
                response = await self._http_client.request(
                    method, url, json=json, headers=self._headers()
                )
            else:
                async with httpx.AsyncClient(timeout=_DEFAULT_TIMEOUT_SECONDS) as client:
                    response = await client.request(
                        method, url, json=json, headers=self._headers()
                    )
        except httpx.RequestError as exc:
            raise CloudflareAPIError(f"cloudflare: connection error: {exc}") from exc

        return self._parse_envelope(response)

    @staticmethod
    def _parse_envelope(response: httpx.Response) -> dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            body = {}

        errors = body.get("errors") or []
        first = errors[0] if errors else {}
        if response.is_error or not body.get("success", False):
            message = first.get("message") or f"HTTP {response.status_code} from Cloudflare"
            raise CloudflareAPIError(
                f"cloudflare: {message}",
                status_code=response.status_code,
                error_code=first.get("code"),
            )
        return body.get("result") or {}
