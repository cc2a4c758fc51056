"""
Structured Logging with structlog
=============================================================================
CONCEPT: Event-style logs

Every log line in the portal is an EVENT with keyword context:

    logger.info("transition_applied", machine="tool_request", entity_id="req_1a2b",
                action="approve", status="approved", approver_id="usr_admin")

Rendered as JSON in production:

    {"event": "transition_applied", "entity_id": "req_1a2b", "action": "approve",
     "status": "approved", "approver_id": "usr_admin", "user_id": "usr_admin",
     "level": "info", "logger": "ops_portal.workflow.engine",
     "timestamp": "2026-10-19T09:12:44.120Z"}

so "who approved req_1a2b?" is one query in the log backend instead of a
regex over free text. In debug mode the same events go through structlog's
colored console renderer.

REQUEST CONTEXT:
  get_session (ops_portal/auth/dependencies.py) calls bind_request_user()
  once per request; `user_id` then appears on every event logged while that
  request is handled, including events from adapters that never see the
  session. An explicit user_id keyword on a single event wins.

Credentials (passwords, tokens) are NEVER passed as log context.
=============================================================================
"""

import logging
import sys

import structlog

# Request-level chatter from these drowns the portal's own events
NOISY_LOGGERS = ("uvicorn", "uvicorn.access", "sqlalchemy.engine", "httpcore", "httpx")

_configured: bool = False


def setup_logging(level: str = "INFO", json_logs: bool = True) -> None:
    """
    Route structlog through the stdlib root logger so third-party libraries
    using plain `logging` land in the same stream. Only the first call
    configures anything; the app factory may run many times in tests.
    """
    global _configured

    if _configured:
        return

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
    stdout = logging.StreamHandler(sys.stdout)
    stdout.setFormatter(structlog.stdlib.ProcessorFormatter(processor=renderer))

    root = logging.getLogger()
    root.handlers = [stdout]
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _configured = True


def bind_request_user(user_id: str | None) -> None:
    """Reset the per-request log context to the acting user (or nobody)."""
    structlog.contextvars.clear_contextvars()
    if user_id:
        structlog.contextvars.bind_contextvars(user_id=user_id)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """`logger = get_logger(__name__)` at module level."""
    return structlog.get_logger(name)
