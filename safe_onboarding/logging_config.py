"""
Structured logging for onboarding runs.

Log lines go to stderr as JSON (console rendering at DEBUG) so stdout stays
free for the CLI's result record. While a run is active, its id, client,
signer and current onboarding state are bound as structlog context variables
and appear on every line, including the stdlib loggers of the RPC provider and
the executor.
"""

import logging
import sys
import uuid
from contextlib import contextmanager
from typing import Any, Iterator, MutableMapping, Optional

import structlog

from .config import get_settings

SECRET_FIELDS = frozenset({"private_key", "api_token", "p2p_api_token", "authorization"})

EventDict = MutableMapping[str, Any]


def redact_secrets(_logger: Any, _method: str, event_dict: EventDict) -> EventDict:
    for key in SECRET_FIELDS.intersection(event_dict):
        event_dict[key] = "***"
    return event_dict


def hex_bytes(_logger: Any, _method: str, event_dict: EventDict) -> EventDict:
    """Render digests, role keys and calldata as 0x-hex."""
    for key, value in event_dict.items():
        if isinstance(value, (bytes, bytearray)):
            event_dict[key] = "0x" + bytes(value).hex()
    return event_dict


def setup_logging(log_level: Optional[str] = None) -> None:
    """
    Configure structlog and route stdlib logging through it.

    Args:
        log_level: Level name; defaults to ``Settings.log_level``
    """
    level = getattr(logging, (log_level or get_settings().log_level).upper(), logging.INFO)
    console = level == logging.DEBUG

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_secrets,
        hex_bytes,
    ]
    if not console:
        processors.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=[*processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.dev.ConsoleRenderer() if console else structlog.processors.JSONRenderer(),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # Request lines would repeat every RPC poll
    for name in ("httpcore", "httpx"):
        logging.getLogger(name).setLevel(logging.WARNING)


@contextmanager
def onboarding_log_context(client: str, signer: str) -> Iterator[str]:
    """Bind a fresh run id plus client and signer for the duration of one run."""
    run_id = uuid.uuid4().hex[:12]
    with structlog.contextvars.bound_contextvars(
        run_id=run_id,
        client=client,
        signer=signer,
        onboarding_state="idle",
    ):
        yield run_id


def bind_onboarding_state(label: str) -> None:
    """Update the state shown on log lines of the current run."""
    structlog.contextvars.bind_contextvars(onboarding_state=label)
