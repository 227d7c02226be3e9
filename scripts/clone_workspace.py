#!/usr/bin/env python
"""Clone a workspace by hand.

Runs the same clone engine as ``POST /internal/workspace-clones``.  Meant
for support staff who need to hand a copy of a workspace to a customer, for
example after a payment webhook failed.

Usage::

    python scripts/clone_workspace.py --source-workspace-id 12 --new-owner-id 40 \\
        --plan-type BUSINESS [--payment-id TX-123]

Without ``--payment-id`` no payment is consumed and no clone record is
written.

Exit codes:
    0 - Clone committed (provisioning problems are reported but do not fail).
    1 - The clone was rejected or failed; nothing was written.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from typing import Optional

# Ensure the src layout is on sys.path when run as a standalone script.
_SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
_SRC_DIR = os.path.join(os.path.dirname(_SCRIPT_DIR), "src")
if _SRC_DIR not in sys.path:
    sys.path.insert(0, _SRC_DIR)


async def _run(
    source_workspace_id: int,
    new_owner_id: int,
    plan_type: str,
    payment_id: Optional[str],
) -> None:
    """Run one clone and print the outcome.

    Raises:
        SystemExit: With code 1 if the clone is rejected or fails.
    """
    from funnel_builder.config.settings import get_settings  # noqa: PLC0415
    from funnel_builder.core.cache import CacheService  # noqa: PLC0415
    from funnel_builder.core.database import AsyncSessionLocal, async_engine  # noqa: PLC0415
    from funnel_builder.core.exceptions import FunnelBuilderError  # noqa: PLC0415
    from funnel_builder.core.logging_config import configure_logging  # noqa: PLC0415
    from funnel_builder.core.schemas.workspace_clone import CloneWorkspaceRequest  # noqa: PLC0415
    from funnel_builder.workspace_clone.service import CloneWorkspaceService  # noqa: PLC0415

    settings = get_settings()
    configure_logging(settings.log_level)

    request = CloneWorkspaceRequest(
        source_workspace_id=source_workspace_id,
        new_owner_id=new_owner_id,
        plan_type=plan_type,
        payment_id=payment_id,
    )
    cache = CacheService.from_url(settings.redis_url, settings.cache_default_ttl_seconds)
    service = CloneWorkspaceService(AsyncSessionLocal, cache=cache, settings=settings)

    try:
        response = await service.clone_workspace(request)
    except FunnelBuilderError as exc:
        print(f"[clone_workspace] ERROR ({type(exc).__name__}): {exc}", file=sys.stderr)
        sys.exit(1)
    finally:
        await cache.aclose()
        await async_engine.dispose()

    print(f"[clone_workspace] {response.message}")
    print(f"  workspace id : {response.cloned_workspace_id}")
    print(f"  slug         : {response.cloned_workspace.slug}")
    print(f"  clone record : {response.clone_record_id or '-'}")
    print(f"  hostname     : {response.hostname or '-'}")


def _parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    from funnel_builder.config.plans import Plan  # noqa: PLC0415

    parser = argparse.ArgumentParser(
        description="Clone a Funnel Builder workspace to a new owner.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--source-workspace-id", type=int, required=True)
    parser.add_argument("--new-owner-id", type=int, required=True)
    parser.add_argument(
        "--plan-type",
        required=True,
        choices=[plan.value for plan in Plan],
        help="Plan assigned to the cloned workspace.",
    )
    parser.add_argument(
        "--payment-id",
        default=None,
        help="Transaction id of the payment that pays for the clone.",
    )
    return parser.parse_args()


def main() -> None:
    """Entry point for the clone script."""
    args = _parse_args()
    asyncio.run(
        _run(
            source_workspace_id=args.source_workspace_id,
            new_owner_id=args.new_owner_id,
            plan_type=args.plan_type,
            payment_id=args.payment_id,
        )
    )


if __name__ == "__main__":
    main()
