"""
Logging capability for the HTTP component.

The component never reaches for a process-wide logger: callers hand it any
object with debug/info/warning/error methods. When they don't, the composition
root builds one with create_console_logger(), which formats records like:

    [2026-10-19 12:00:01,123] [I] load router file [file:status.py]

Structured context goes through the standard ``extra`` argument and is rendered
as sorted ``[key:value]`` fields after the message.
"""

import logging
import sys
from typing import Any, Protocol, TextIO, runtime_checkable

DEFAULT_FORMAT = "[%(asctime)s] [%(levelname).1s] %(message)s"

LEVEL_NAMES: dict[str, int] = {
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime", "taskName"}


@runtime_checkable
class LoggerLike(Protocol):
    """Capability set the component logs through."""

    def debug(self, msg: Any, *args: Any, **kwargs: Any) -> None: ...

    def info(self, msg: Any, *args: Any, **kwargs: Any) -> None: ...

    def warning(self, msg: Any, *args: Any, **kwargs: Any) -> None: ...

    def error(self, msg: Any, *args: Any, **kwargs: Any) -> None: ...


def resolve_level(level: str | int) -> int:
    """
    Resolve a level name or number to a logging level.

    Args:
        level: Level name (debug, info, warning, error) or numeric level

    Returns:
        Numeric logging level

    Raises:
        ValueError: If the name is not a known level
    """
    if isinstance(level, int):
        return level
    try:
        return LEVEL_NAMES[level.lower()]
    except KeyError:
        raise ValueError(
            f"Invalid log level '{level}', expected one of {sorted(LEVEL_NAMES)}"
        ) from None


def _format_value(value: Any) -> str:
    if isinstance(value, BaseException):
        return value.__class__.__name__
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    return str(value)


class LogFormatter(logging.Formatter):
    """Formatter appending ``extra`` fields as ``[key:value]`` pairs."""

    def __init__(self, fmt: str = DEFAULT_FORMAT) -> None:
        super().__init__(fmt)

    def extra_fields(self, record: logging.LogRecord) -> dict[str, Any]:
        """Return the fields a caller attached through ``extra``."""
        return {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        }

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = self.extra_fields(record)
        if not fields:
            return line

        parts = [f"[{key}:{_format_value(fields[key])}]" for key in sorted(fields)]
        head, sep, tail = line.partition("\n")
        return f"{head} {' '.join(parts)}{sep}{tail}"


def create_console_logger(
    name: str = "httpfront",
    level: str | int = "info",
    stream: TextIO | None = None,
) -> logging.Logger:
    """
    Create the default console-backed logger.

    The logger does not propagate to the root logger, so building it never
    changes how the host application's own logging behaves. Calling this twice
    with the same name reconfigures the same logger instead of stacking
    handlers.

    Args:
        name: Logger name
        level: Log level name or number
        stream: Output stream (default: sys.stderr)

    Returns:
        Configured logging.Logger
    """
    lg = logging.getLogger(name)
    lg.setLevel(resolve_level(level))
    lg.propagate = False

    for handler in list(lg.handlers):
        lg.removeHandler(handler)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(LogFormatter())
    lg.addHandler(handler)
    return lg


def uvicorn_log_config(log_level: str) -> dict[str, Any]:
    """
    Build the dictConfig handed to uvicorn.

    Only levels are set; no handlers are installed and existing loggers are
    left alone, so uvicorn output flows through whatever the host configured.
    """
    level = log_level.upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "handlers": {},
        "loggers": {
            "uvicorn": {"level": level},
            "uvicorn.error": {"level": level},
            "uvicorn.access": {"level": level},
        },
    }
