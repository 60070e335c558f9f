"""
Logging setup built on loguru.

Every module binds its own name onto the shared loguru logger:

    from dockhand.utils.logger import get_logger

    log = get_logger(__name__)
    log.info("Connected")

Sinks are configured once by the embedding application through
configure_logging(). Components that accept a ``logger`` argument take
anything with the loguru/stdlib method names, so tests can pass a
recording double instead.
"""

import sys

from loguru import logger as _logger

from dockhand.models.enums import LogLevel

_LEVEL_MAP = {
    LogLevel.FULL: "TRACE",
    LogLevel.DEBUG: "DEBUG",
    LogLevel.INFO: "INFO",
    LogLevel.WARNING: "WARNING",
}

_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan> - <level>{message}</level>"
)


def _format(record) -> str:
    # Records from loggers not created by get_logger carry no bound name
    record["extra"].setdefault("name", record["name"])
    return _FORMAT + "\n{exception}"


def get_logger(name: str):
    """Get a logger bound to a module name."""
    return _logger.bind(name=name)


def configure_logging(
    level: LogLevel = LogLevel.INFO, log_file: str | None = None
) -> None:
    """
    Replace loguru's sinks with dockhand's stderr (and optional file) sink.

    Args:
        level: Minimum level to emit.
        log_file: Optional path of a rotating log file.
    """
    loguru_level = _LEVEL_MAP.get(level, "INFO")

    _logger.remove()
    _logger.add(
        sys.stderr,
        level=loguru_level,
        format=_format,
        backtrace=level == LogLevel.FULL,
        diagnose=level == LogLevel.FULL,
    )
    if log_file:
        _logger.add(
            log_file,
            level=loguru_level,
            format=_format,
            rotation="10 MB",
            retention=5,
            enqueue=True,
        )
