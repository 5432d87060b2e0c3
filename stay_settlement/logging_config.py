from __future__ import annotations

import logging
import sys
from typing import Any, Callable, MutableMapping, cast

import structlog

from stay_settlement.config import LOG_LEVEL

# Type alias for structlog processor
Processor = Callable[[Any, str, MutableMapping[str, Any]], Any]

REDACTED = "***"
SENSITIVE_KEYS = frozenset(
    {
        "api_key",
        "pms_api_key",
        "secret_key",
        "webhook_secret",
        "signature",
        "stripe_signature",
    }
)


def redact_secrets(
    _logger: Any, _method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Mask credential values so PMS keys and webhook signatures never reach the log sink."""
    for key in SENSITIVE_KEYS.intersection(event_dict):
        if event_dict[key]:
            event_dict[key] = REDACTED
    return event_dict


def setup_logging() -> None:
    """
    Configure stdlib logging and structlog for the service.

    LOG_LEVEL=INFO renders one JSON object per line for the log pipeline;
    any other level renders colored console output for local work.
    """
    logging.basicConfig(
        format="[%(asctime)s] %(levelname)s in %(name)s:%(lineno)d: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        level=LOG_LEVEL,
    )

    # The payment SDK logs every request at INFO
    for noisy_logger in ("urllib3", "requests", "stripe", "uvicorn.access"):
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)

    json_output = LOG_LEVEL == "INFO"
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if json_output:
        processors += [
            structlog.processors.format_exc_info,
            cast(Processor, structlog.processors.JSONRenderer()),
        ]
    else:
        processors.append(cast(Processor, structlog.dev.ConsoleRenderer(colors=True)))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(LOG_LEVEL)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
