"""Logging utilities for delegen runs.

Every record carries a ``target`` attribute naming the output file it
concerns (``-`` when it concerns none), so a log of a large generation run
can be filtered down to a single file.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, MutableMapping, Tuple

_LOGGER_NAME = "delegen"
_NO_TARGET = "-"

_CONSOLE_FORMAT = "[delegen] %(levelname)s %(message)s"
_VERBOSE_CONSOLE_FORMAT = "[delegen] %(levelname)s %(name)s [%(target)s] %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(target)s]: %(message)s"


class _TargetFilter(logging.Filter):
    """Gives records logged without a target the placeholder value."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "target"):
            record.target = _NO_TARGET
        return True


class TargetLoggerAdapter(logging.LoggerAdapter):
    """Logger bound to one output path."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        extra.setdefault("target", self.extra["target"])
        kwargs["extra"] = extra
        return msg, kwargs


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the delegen hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def target_logger(name: str | None, target: str) -> TargetLoggerAdapter:
    """Return a logger whose records are tagged with output path ``target``."""
    return TargetLoggerAdapter(get_logger(name), {"target": target or _NO_TARGET})


def configure_logging(
    *, verbose: bool = False, quiet: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Configure the delegen logger with console output and an optional file sink.

    ``verbose`` wins over ``quiet``. The file sink always records at DEBUG
    so a quiet console run still leaves a complete trail.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    logger = logging.getLogger(_LOGGER_NAME)
    logger.propagate = False

    # Repeated CLI invocations in one process must not stack handlers.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.addFilter(_TargetFilter())
    stream_handler.setFormatter(
        logging.Formatter(_VERBOSE_CONSOLE_FORMAT if verbose else _CONSOLE_FORMAT)
    )
    logger.addHandler(stream_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.addFilter(_TargetFilter())
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(file_handler)

    logger.setLevel(logging.DEBUG if log_file is not None else level)
    return logger


__all__ = ["TargetLoggerAdapter", "configure_logging", "get_logger", "target_logger"]
