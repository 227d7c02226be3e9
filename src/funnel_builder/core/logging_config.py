"""Structured JSON logging configuration using structlog.

Call ``configure_logging()`` once at application startup (``api/main.py``
and the operator scripts do this).  Modules then log through either API:

Stdlib usage::

    import logging
    logger = logging.getLogger(__name__)
    logger.info("message", extra={"workspace_id": 12})

Structlog usage (event-style, richer context binding)::

    import structlog
    logger = structlog.get_logger(__name__)
    logger.info("workspace_cloned", source_workspace_id=3, cloned_workspace_id=41)

A ``request_id`` context variable is populated by the request-logging
middleware in ``api/main.py`` and merged into every record emitted during
that request.  Clone runs started outside HTTP (the CLI, the webhook worker)
bind their own ``clone_run_id`` through :func:`bind_clone_context`.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar

import structlog
from structlog.types import EventDict, WrappedLogger

# ---------------------------------------------------------------------------
# Context variable - set by the HTTP middleware, read by the log processor
# ---------------------------------------------------------------------------

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
"""Per-request ID propagated from the HTTP middleware to log processors."""


# ---------------------------------------------------------------------------
# Custom processors
# ---------------------------------------------------------------------------


_SECRET_SUBSTRINGS: frozenset[str] = frozenset({
    "password",
    "secret",
    "token",
    "authorization",
    "api_key",
    "x-internal-token",
    "cookie",
})
"""Lower-cased substrings that identify log event-dict keys whose values
must be redacted before the record reaches any renderer.  ``password``
also covers ``password_hash`` from funnel settings."""


def _redact_secrets(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Replace values of secret-bearing keys with a redaction marker.

    Scans top-level keys and one level of nested ``dict`` values (e.g.
    ``headers={...}`` or a settings payload).  Keys are matched
    case-insensitively against :data:`_SECRET_SUBSTRINGS`.

    Args:
        logger: The wrapped logger instance (unused).
        method_name: The log method name (unused).
        event_dict: Mutable event dictionary being assembled.

    Returns:
        The event dict with sensitive values replaced by ``"[REDACTED]"``.
    """
    redacted = "[REDACTED]"
    for key in list(event_dict.keys()):
        if _is_secret_key(key):
            event_dict[key] = redacted
            continue
        val = event_dict[key]
        if isinstance(val, dict):
            event_dict[key] = {
                nested_key: redacted if _is_secret_key(str(nested_key)) else nested_val
                for nested_key, nested_val in val.items()
            }
    return event_dict


def _is_secret_key(key: str) -> bool:
    key_lower = key.lower()
    return any(secret in key_lower for secret in _SECRET_SUBSTRINGS)


def _inject_request_id(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Inject the current request ID into the log event dict if set.

    Runs after ``merge_contextvars`` as a fallback for code paths that set
    the ``ContextVar`` directly rather than through ``bind_contextvars``.
    """
    rid = request_id_var.get()
    if rid is not None and "request_id" not in event_dict:
        event_dict["request_id"] = rid
    return event_dict


# ---------------------------------------------------------------------------
# Context helpers
# ---------------------------------------------------------------------------


def bind_clone_context(
    clone_run_id: str,
    source_workspace_id: int,
    new_owner_id: int,
) -> None:
    """Bind clone identifiers to every log record emitted by the current task.

    Args:
        clone_run_id: Opaque id correlating all records of one clone attempt.
        source_workspace_id: Workspace being cloned.
        new_owner_id: User receiving the clone.
    """
    structlog.contextvars.bind_contextvars(
        clone_run_id=clone_run_id,
        source_workspace_id=source_workspace_id,
        new_owner_id=new_owner_id,
    )


def clear_clone_context() -> None:
    """Remove the keys bound by :func:`bind_clone_context`."""
    structlog.contextvars.unbind_contextvars(
        "clone_run_id", "source_workspace_id", "new_owner_id"
    )


# ---------------------------------------------------------------------------
# Public configuration entry-point
# ---------------------------------------------------------------------------


def configure_logging(log_level: str = "INFO") -> None:
    """Configure structlog with JSON output for production.

    In production (log_level != ``"DEBUG"``), outputs newline-delimited JSON.
    In development (log_level == ``"DEBUG"``), uses structlog's
    ``ConsoleRenderer`` for human-readable coloured output.

    Standard fields added to every log record: ``timestamp`` (ISO 8601),
    ``level``, ``logger``, ``request_id`` (inside a request) and ``event``.

    Idempotent: calling it again replaces the previous configuration and
    the root handler, so tests may call it freely.

    Args:
        log_level: Logging verbosity string.  One of ``"DEBUG"``, ``"INFO"``,
            ``"WARNING"``, ``"ERROR"``, ``"CRITICAL"``.  Case-insensitive.
    """
    level_upper = log_level.upper()
    numeric_level = getattr(logging, level_upper, logging.INFO)
    is_development = level_upper == "DEBUG"

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        _inject_request_id,
        _redact_secrets,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if is_development:
        final_renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer(
            colors=True,
        )
    else:
        final_renderer = structlog.processors.JSONRenderer()

    # Route ``logging.getLogger(__name__)`` records through the same chain.
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            final_renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(numeric_level)

    if not is_development:
        for noisy_logger in ("uvicorn.access", "httpx", "httpcore", "sqlalchemy.engine"):
            logging.getLogger(noisy_logger).setLevel(logging.WARNING)

    structlog.configure(
        processors=shared_processors
        + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
