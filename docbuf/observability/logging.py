"""Centralised logging helpers for the DocBuf toolchain."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional, Union

_LOGGER_CACHE: Dict[str, logging.Logger] = {}
_HANDLER_ATTR = "_docbuf_handler"

DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str = "docbuf") -> logging.Logger:
    """Return a cached :class:`logging.Logger` instance."""

    if name not in _LOGGER_CACHE:
        _LOGGER_CACHE[name] = logging.getLogger(name)
    return _LOGGER_CACHE[name]


def configure_logging(level: Union[int, str] = logging.INFO, *, fmt: str = DEFAULT_FORMAT) -> logging.Logger:
    """Attach one stream handler to the ``docbuf`` logger and set its level.

    Calling this repeatedly only updates the level.
    """

    logger = get_logger("docbuf")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger.setLevel(level)
    if not any(getattr(handler, _HANDLER_ATTR, False) for handler in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt))
        setattr(handler, _HANDLER_ATTR, True)
        logger.addHandler(handler)
    return logger


def log_event(
    event: str,
    message: str,
    *,
    level: int = logging.INFO,
    logger: Optional[logging.Logger] = None,
    **data: Any,
) -> None:
    """Emit a structured log entry."""

    target_logger = logger or get_logger("docbuf")
    target_logger.log(level, message, extra={"docbuf_event": event, "docbuf_data": data})


def log_diagnostics(errors: Iterable[Any], *, logger: Optional[logging.Logger] = None) -> int:
    """Log each collected diagnostic at WARNING and return how many were logged."""

    target_logger = logger or get_logger("docbuf.compiler")
    count = 0
    for error in errors:
        formatted = error.format() if hasattr(error, "format") else str(error)
        target_logger.warning(
            formatted,
            extra={
                "docbuf_event": "diagnostic",
                "docbuf_data": {"code": getattr(error, "code", None)},
            },
        )
        count += 1
    return count
