"""
Logger Implementation
=====================

structlog configuration for the bridge. Console output with Rich
tracebacks in development, one JSON object per line in production.

Wallet material must never reach a log line: fields named after
credentials are masked, and so is any value carrying a PEM private key.

Version: 0.1.0
"""

import logging
import sys
from typing import Any

import structlog
from structlog.stdlib import BoundLogger
from structlog.types import EventDict, Processor, WrappedLogger

REDACTED = "***REDACTED***"

CREDENTIAL_KEYS = frozenset(
    {
        "private_key",
        "privatekey",
        "credentials",
        "password",
        "secret",
        "authorization",
    }
)

_PEM_KEY_MARKER = "PRIVATE KEY-----"

_service_name = "fabric-asset-bridge"


def _redact(value: Any) -> Any:
    if isinstance(value, str):
        return REDACTED if _PEM_KEY_MARKER in value else value
    if isinstance(value, dict):
        return {
            key: REDACTED if str(key).lower() in CREDENTIAL_KEYS else _redact(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return type(value)(_redact(item) for item in value)
    return value


def _redact_credentials(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Mask credential fields and PEM private keys, including nested ones."""
    return _redact(event_dict)


def _add_service(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service", _service_name)
    return event_dict


def setup_logging(
    log_level: str = "INFO",
    json_logs: bool = False,
    service_name: str = "fabric-asset-bridge",
) -> None:
    """
    Configure structlog and route stdlib logging (uvicorn) through it.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        json_logs: Render JSON lines instead of the console format
        service_name: Value of the ``service`` field on every entry
    """
    global _service_name
    _service_name = service_name

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _add_service,
        _redact_credentials,
    ]

    renderer: Processor
    if json_logs:
        processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()
    else:
        processors.append(structlog.dev.set_exc_info)
        renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stdout.isatty(),
            exception_formatter=structlog.dev.RichTracebackFormatter(
                show_locals=False,
                max_frames=10,
            ),
        )

    structlog.configure(
        processors=[*processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level.upper())

    # Event loop debug chatter is not useful in service logs
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> BoundLogger:
    """
    Get a structured logger.

    Example:
        logger = get_logger(__name__)
        logger.info("transaction_submitted", transaction="CreateAsset")
    """
    return structlog.stdlib.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Attach fields to every log entry emitted in the current request."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Drop all fields attached with ``bind_context``."""
    structlog.contextvars.clear_contextvars()
