"""Workspace slug allocation.

A cloned workspace gets its own globally unique slug.  Candidates are
probed in the fixed sequence ``base``, ``base-2``, ``base-3`` ... and the
first free one wins.  A candidate is taken when a workspace already uses it
or, when a workspace domain is configured, when a ``Domain`` row already
owns ``<candidate>.<workspace domain>``.

Allocation is advisory: two concurrent clones can pick the same candidate.
The unique constraint on ``workspaces.slug`` is the final arbiter and the
loser surfaces as :class:`~funnel_builder.core.exceptions.SlugConflictError`.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from typing import Optional

import structlog
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from funnel_builder.core.exceptions import SlugAllocationExhaustedError
from funnel_builder.core.models.domains import Domain
from funnel_builder.core.models.workspaces import Workspace

logger = structlog.get_logger(__name__)

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")

DEFAULT_MAX_ATTEMPTS = 10_000


def slugify(text: str) -> str:
    """Lower-case *text* and collapse every run of non ``[a-z0-9]`` into ``-``.

    Examples::

        >>> slugify("Jane Doe")
        'jane-doe'
        >>> slugify("__Ana__Lima!!")
        'ana-lima'
    """
    return _NON_SLUG_CHARS.sub("-", text.lower()).strip("-")


def choose_base_slug(username: str, fallback: str) -> str:
    """Return the slugified *username*, or *fallback* when that is empty."""
    return slugify(username) or slugify(fallback)


def iter_candidates(base: str, max_attempts: int) -> Iterator[str]:
    """Yield ``base``, ``base-2``, ``base-3`` ... up to *max_attempts* candidates."""
    if max_attempts < 1:
        return
    yield base
    for counter in range(2, max_attempts + 1):
        yield f"{base}-{counter}"


async def _taken_slugs(
    session: AsyncSession,
    base: str,
    hostname_domain: Optional[str],
) -> set[str]:
    # ``_`` is a LIKE wildcard; over-matching only widens the candidate set,
    # membership below is exact.
    pattern = f"{base}-%"
    rows = await session.execute(
        select(Workspace.slug).where(
            or_(Workspace.slug == base, Workspace.slug.like(pattern))
        )
    )
    taken = set(rows.scalars().all())

    if hostname_domain:
        suffix = f".{hostname_domain}"
        rows = await session.execute(
            select(Domain.hostname).where(
                or_(
                    Domain.hostname == f"{base}{suffix}",
                    Domain.hostname.like(f"{pattern}{suffix}"),
                )
            )
        )
        taken.update(
            hostname[: -len(suffix)]
            for hostname in rows.scalars().all()
            if hostname.endswith(suffix)
        )
    return taken


async def allocate_unique_slug(
    session: AsyncSession,
    base: str,
    *,
    hostname_domain: Optional[str] = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> str:
    """Return the first free slug in the ``base``, ``base-2`` ... sequence.

    Args:
        session: Session bound to the clone transaction.
        base: Slugified base candidate.
        hostname_domain: Parent domain of workspace subdomains.  When set,
            candidates whose hostname already exists in ``domains`` are skipped.
        max_attempts: Number of candidates to probe before giving up.

    Returns:
        A slug no workspace (or workspace subdomain) used at read time.

    Raises:
        SlugAllocationExhaustedError: If every candidate is taken.
    """
    taken = await _taken_slugs(session, base, hostname_domain)
    for attempt, candidate in enumerate(iter_candidates(base, max_attempts), start=1):
        if candidate not in taken:
            if attempt > 1:
                logger.debug("slug_allocated_with_suffix", base=base, slug=candidate, attempt=attempt)
            return candidate

    logger.error("slug_allocation_exhausted", base=base, attempts=max_attempts)
    raise SlugAllocationExhaustedError(base, max_attempts)
