"""Structured key=value logging for the Design Manager stage-gate service.

Engine and db modules log through ``get_logger(__name__)``. Item-scoped
events go through ``log_with_context`` so ``item_id`` and the transition
fields land as separate keys:

    timestamp=... level=INFO module=stage_transitions function=transition
    message=Stage transition item_id=... actor=... from_stage=concept to_stage=preliminary
"""

import logging
import sys
from typing import Any

from pydantic import ValidationError

# Log level per DESIGN_MANAGER_ENV; anything else logs at INFO
ENV_LOG_LEVELS = {
    "dev": logging.DEBUG,
    "test": logging.INFO,
    "staging": logging.INFO,
    "prod": logging.INFO,
}


class StructuredFormatter(logging.Formatter):
    """key=value structured log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "module": record.module,
            "function": record.funcName,
            "message": record.getMessage(),
        }

        if hasattr(record, "item_id"):
            log_data["item_id"] = record.item_id

        if hasattr(record, "extra_data"):
            log_data.update(record.extra_data)

        return " ".join(f"{k}={v}" for k, v in log_data.items())


def _configured_level() -> int:
    from design_manager.core.config import get_settings

    try:
        env = get_settings().DESIGN_MANAGER_ENV
    except ValidationError:
        # Settings incomplete (e.g. at import time in tooling)
        return logging.INFO
    return ENV_LOG_LEVELS.get(env, logging.INFO)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger writing structured lines to stdout.

    Handlers are attached once per logger name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)
        logger.setLevel(_configured_level())

    return logger


def log_with_context(logger: logging.Logger, level: int, msg: str, **kwargs: Any) -> None:
    """
    Log with additional key=value fields.

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, etc.)
        msg: Log message
        **kwargs: Context fields (e.g. item_id, actor, to_stage)
    """
    item_id = kwargs.pop("item_id", None)
    extra: dict[str, Any] = {"extra_data": kwargs}
    if item_id is not None:
        extra["item_id"] = item_id

    logger.log(level, msg, extra=extra)
