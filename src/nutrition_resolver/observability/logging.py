"""Loguru logging setup for the resolver service.

Production runs emit one JSON object per line (serialized with orjson);
development runs get colorized text. Values scoped to a request or to one
resolution (the request id, the query key) live in a ContextVar and are
merged into every record, so log lines from concurrent provider tasks can
be grouped back together.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Any

import orjson
from loguru import logger


if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})

# Libraries whose INFO output would drown the resolution logs.
_QUIET_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error", "httpx", "httpcore", "asyncio")

_DEV_TEMPLATE = (
    "<green>{{time:HH:mm:ss.SSS}}</green> "
    "<level>{{level: <8}}</level> "
    "<cyan>{{name}}:{{line}}</cyan>{context} "
    "<level>{{message}}</level>{extra}\n"
)


def _escape(text: str) -> str:
    return text.replace("{", "{{").replace("}", "}}")


class InterceptHandler(logging.Handler):
    """Route standard library records (uvicorn, httpx) into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk out of the logging module so loguru reports the real caller.
        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def _format_record(record: dict[str, Any]) -> str:
    """One JSON line per record: fixed fields, then context, then extras."""
    record["extra"].update(_log_context.get())

    payload: dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "logger": record["name"],
        "function": record["function"],
        "line": record["line"],
        **record["extra"],
    }
    if record["exception"]:
        exc_type, exc_value, _ = record["exception"]
        payload["exception"] = {
            "type": exc_type.__name__ if exc_type else None,
            "value": str(exc_value) if exc_value else None,
        }

    return _escape(orjson.dumps(payload, default=str).decode()) + "\n"


def _format_record_dev(record: dict[str, Any]) -> str:
    """Readable line with the bound context after the location."""
    context = _log_context.get()
    extra = {k: v for k, v in record["extra"].items() if k != "name" and k not in context}

    template = _DEV_TEMPLATE.format(
        context=_escape(" [" + " ".join(f"{k}={v}" for k, v in context.items()) + "]")
        if context
        else "",
        extra=_escape(" " + " ".join(f"{k}={v}" for k, v in extra.items())) if extra else "",
    )
    if record["exception"]:
        template += "{exception}\n"
    return template


def _add_sink(sink: Any, formatter: Callable[[dict[str, Any]], str], level: str, **options: Any) -> None:
    logger.add(sink, format=formatter, level=level, backtrace=True, **options)


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    *,
    is_development: bool = False,
    log_file: Path | str | None = None,
) -> None:
    """Replace loguru's default sink with the service's sinks.

    Args:
        log_level: Minimum level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: "json" or "text"; development always gets text.
        is_development: Force human-readable output.
        log_file: Optional rotating file sink, always JSON.
    """
    level = log_level.upper()
    logger.remove()

    if log_format == "json" and not is_development:
        _add_sink(sys.stdout, _format_record, level, colorize=False, diagnose=False)
    else:
        _add_sink(sys.stdout, _format_record_dev, level, colorize=True, diagnose=True)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        _add_sink(
            path,
            _format_record,
            level,
            rotation="50 MB",
            retention="7 days",
            compression="gz",
            diagnose=False,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> "logger":  # type: ignore[valid-type]
    """Return the loguru logger bound to a module name."""
    return logger.bind(name=name)


def bind_context(**kwargs: Any) -> None:
    """Add key/value pairs to the logging context of the current task."""
    _log_context.set({**_log_context.get(), **kwargs})


def unbind_context(*keys: str) -> None:
    """Drop the given keys from the logging context."""
    _log_context.set({k: v for k, v in _log_context.get().items() if k not in keys})


def clear_context() -> None:
    _log_context.set({})


def get_context() -> dict[str, Any]:
    """Return a copy of the current logging context."""
    return dict(_log_context.get())


@contextmanager
def log_context(**kwargs: Any) -> Iterator[dict[str, Any]]:
    """Bind values for the duration of a block, then restore the previous context.

    Nested blocks see the outer values; leaving a block undoes only its own
    bindings, even if an inner block rebinds the same key.
    """
    token = _log_context.set({**_log_context.get(), **kwargs})
    try:
        yield _log_context.get()
    finally:
        _log_context.reset(token)


__all__ = [
    "InterceptHandler",
    "bind_context",
    "clear_context",
    "get_context",
    "get_logger",
    "log_context",
    "logger",
    "setup_logging",
    "unbind_context",
]
