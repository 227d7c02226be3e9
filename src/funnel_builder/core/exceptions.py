"""Application-wide exception hierarchy for Funnel Builder.

All custom exceptions subclass ``FunnelBuilderError``, enabling
consistent error handling and structured logging across the application.

Hierarchy::

    FunnelBuilderError
    ├── NotFoundError
    │   ├── PaymentNotFoundError
    │   ├── WorkspaceNotFoundError
    │   └── OwnerNotFoundError
    ├── ConflictError
    │   └── PaymentAlreadyUsedError
    ├── CloneConstraintError         (retryable)
    │   └── SlugConflictError
    ├── CloneFatalError
    │   ├── SlugAllocationExhaustedError
    │   ├── CloneTimeoutError
    │   └── UnexpectedCloneError
    └── ProvisioningError
        └── CloudflareAPIError
"""

from __future__ import annotations


class FunnelBuilderError(Exception):
    """Base class for all Funnel Builder exceptions.

    All application-specific exceptions inherit from this class so that
    callers can catch the entire hierarchy with a single ``except`` clause
    when needed.
    """


# ---------------------------------------------------------------------------
# Lookup failures
# ---------------------------------------------------------------------------


class NotFoundError(FunnelBuilderError):
    """Raised when an entity the caller referenced does not exist.

    Never retried automatically; the message is safe to show to the caller.
    """


class PaymentNotFoundError(NotFoundError):
    """Raised when no payment matches the supplied transaction id.

    Args:
        transaction_id: The external transaction id that could not be resolved.
    """

    def __init__(self, transaction_id: str) -> None:
        super().__init__(
            "We couldn't find a payment with this transaction ID. "
            "Please verify your payment information"
        )
        self.transaction_id = transaction_id


class WorkspaceNotFoundError(NotFoundError):
    """Raised when the source workspace of a clone does not exist.

    Args:
        workspace_id: Id of the missing workspace.
    """

    def __init__(self, workspace_id: int) -> None:
        super().__init__("Source workspace not found")
        self.workspace_id = workspace_id


class OwnerNotFoundError(NotFoundError):
    """Raised when the user who should own the cloned workspace does not exist.

    Args:
        user_id: Id of the missing user.
    """

    def __init__(self, user_id: int) -> None:
        super().__init__("New owner not found")
        self.user_id = user_id


# ---------------------------------------------------------------------------
# Conflicts
# ---------------------------------------------------------------------------


class ConflictError(FunnelBuilderError):
    """Raised when the request conflicts with state that already exists."""


class PaymentAlreadyUsedError(ConflictError):
    """Raised when a payment has already been consumed by a previous clone.

    Raised both by the pre-check and when the unique constraint on
    ``workspace_clones.payment_id`` rejects a concurrent insert.  The caller
    must not retry with the same payment.

    Args:
        payment_id: Internal id of the consumed payment.
    """

    def __init__(self, payment_id: int) -> None:
        super().__init__(
            "This payment has already been used to clone a workspace "
            "and cannot be used again"
        )
        self.payment_id = payment_id


# ---------------------------------------------------------------------------
# Constraint violations inside the clone transaction
# ---------------------------------------------------------------------------


class CloneConstraintError(FunnelBuilderError):
    """Raised when the store rejects a write of the clone transaction.

    The transaction has been rolled back in full, so the caller may retry
    the whole clone (a fresh slug is allocated on every attempt).

    Args:
        message: Description of the violated constraint.
    """

    retryable: bool = True

    def __init__(self, message: str) -> None:
        super().__init__(message)


class SlugConflictError(CloneConstraintError):
    """Raised when a concurrent writer took the allocated slug before commit.

    Args:
        slug: The slug that lost the race.
    """

    def __init__(self, slug: str) -> None:
        super().__init__(f"Workspace slug '{slug}' was taken by a concurrent request")
        self.slug = slug


# ---------------------------------------------------------------------------
# Fatal failures
# ---------------------------------------------------------------------------


class CloneFatalError(FunnelBuilderError):
    """Raised for failures that indicate a systemic problem.

    Not retried automatically; logged for operator attention.
    """


class SlugAllocationExhaustedError(CloneFatalError):
    """Raised when no free slug was found within the probe budget.

    Args:
        base_slug: The candidate base that was being suffixed.
        attempts: Number of probes performed.
    """

    def __init__(self, base_slug: str, attempts: int) -> None:
        super().__init__(
            f"Unable to generate unique slug for: {base_slug} "
            f"(gave up after {attempts} attempts)"
        )
        self.base_slug = base_slug
        self.attempts = attempts


class CloneTimeoutError(CloneFatalError):
    """Raised when the clone transaction exceeds its time budget.

    Args:
        timeout_seconds: The budget that was exceeded.
    """

    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(
            f"Workspace clone did not finish within {timeout_seconds:g} seconds "
            "and was rolled back"
        )
        self.timeout_seconds = timeout_seconds


class UnexpectedCloneError(CloneFatalError):
    """Raised when the clone fails for a reason outside the known taxonomy."""

    def __init__(self) -> None:
        super().__init__(
            "An unexpected error occurred while cloning the workspace. Please try again."
        )


# ---------------------------------------------------------------------------
# Post-clone provisioning
# ---------------------------------------------------------------------------


class ProvisioningError(FunnelBuilderError):
    """Raised when a post-clone side effect (membership, subdomain) fails.

    Never escapes the clone service: provisioning is best effort and a
    failure here does not undo a committed clone.
    """


class CloudflareAPIError(ProvisioningError):
    """Raised when the Cloudflare API rejects or fails a request.

    Args:
        message: Human-readable description of the failure.
        status_code: HTTP status returned by Cloudflare, if any.
        error_code: First Cloudflare error code from the response body, if any.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code

    @property
    def is_duplicate_record(self) -> bool:
        """``True`` when Cloudflare reports that an identical record already exists."""
        return self.error_code == 81057 or "already exists" in str(self)
