from __future__ import annotations

"""
bootkit.core.log
================

Structured logging for the orchestrator, built on the stdlib `logging` module:
- Context propagation via contextvars (provider, phase, ...).
- JSON formatter for containers; human formatter for local debugging.
- LoggerAdapter that accepts arbitrary keyword fields.
- Helpers to enable/disable stdout logging and set levels.

Library code is silent by default (NullHandler on the `bootkit` logger).
"""

import contextvars
import json
import logging
import os
import sys
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any, ClassVar, Final

__all__ = [
    "bind_context",
    "configure_from_env",
    "disable_stdout_logging",
    "enable_stdout_logging",
    "get_logger",
    "log_context",
    "set_level",
]


# ---------- Context ----------

_log_context: contextvars.ContextVar[dict[str, Any] | None] = contextvars.ContextVar("bootkit_log_ctx", default=None)


def _ctx_copy() -> dict[str, Any]:
    ctx = _log_context.get()
    return dict(ctx) if ctx else {}


def bind_context(**fields: Any) -> None:
    """Merge fields into the current structured log context (None values are dropped)."""
    ctx = _ctx_copy()
    ctx.update({k: v for k, v in fields.items() if v is not None})
    _log_context.set(ctx)


@contextmanager
def log_context(**fields: Any):
    """
    Temporarily add fields to the structured log context.
    Restores the previous context on exit.
    """
    token = _log_context.set({**_ctx_copy(), **{k: v for k, v in fields.items() if v is not None}})
    try:
        yield
    finally:
        _log_context.reset(token)


# ---------- Formatters ----------

_STD_ATTRS: Final[frozenset[str]] = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "asctime",
    }
)


def _iso_utc_ms(ts: float) -> str:
    dt = datetime.fromtimestamp(ts, tz=UTC)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line: ts, level, logger, message, context fields,
    keyword extras and (optionally) the exception stack.
    """

    def __init__(self, *, include_stack: bool = False) -> None:
        super().__init__()
        self.include_stack = include_stack

    def format(self, record: logging.LogRecord) -> str:
        out: dict[str, Any] = {
            "ts": _iso_utc_ms(record.created),
            "level": record.levelname,
            "logger": record.name,
        }
        msg = record.getMessage()
        if msg:
            out["message"] = msg

        ctx = _log_context.get()
        if ctx:
            out.update(ctx)

        for k, v in record.__dict__.items():
            if k in _STD_ATTRS or k in out:
                continue
            out[k] = v

        if record.exc_info:
            exc_type = record.exc_info[0].__name__ if record.exc_info[0] else "Exception"
            err = out.setdefault("error", {})
            err["type"] = exc_type
            err["message"] = str(record.exc_info[1]) if record.exc_info[1] else None
            if self.include_stack:
                err["stack"] = self.formatException(record.exc_info)

        return json.dumps(out, ensure_ascii=False, separators=(",", ":"), default=str)


class HumanFormatter(logging.Formatter):
    """Compact formatter for local debugging."""

    default_time_format = "%Y-%m-%d %H:%M:%S"
    default_msec_format = "%s.%03d"

    def format(self, record: logging.LogRecord) -> str:
        s = f"{self.formatTime(record)} {record.levelname:<5} {record.name}: {record.getMessage()}"
        ctx = _log_context.get()
        if ctx:
            keys = ("provider", "phase", "hook", "extension")
            compact = {k: ctx.get(k) for k in keys if ctx.get(k) is not None}
            if compact:
                s += "  [" + ", ".join(f"{k}={v}" for k, v in compact.items()) + "]"
        if record.exc_info:
            s += "\n" + self.formatException(record.exc_info)
        return s


# ---------- Filters / adapter ----------


class ContextFilter(logging.Filter):
    """Copy contextvars into the record so handlers and caplog can see them."""

    def filter(self, record: logging.LogRecord) -> bool:
        ctx = _log_context.get()
        if ctx:
            for k, v in ctx.items():
                if k not in record.__dict__:
                    record.__dict__[k] = v
        return True


class _MaxLevelFilter(logging.Filter):
    def __init__(self, max_level: int) -> None:
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno <= self.max_level


class _KwExtraAdapter(logging.LoggerAdapter):
    """
    Moves unknown kwargs into `extra={...}` so callers can write:
        log.info("orchestrator.init.done", provider="db", elapsed_ms=12)
    """

    _allowed_passthrough: ClassVar[frozenset[str]] = frozenset({"exc_info", "stack_info", "stacklevel", "extra"})

    def process(self, msg, kwargs):
        extra = kwargs.get("extra")
        if not isinstance(extra, dict):
            extra = {}
        for k in list(kwargs.keys()):
            if k in self._allowed_passthrough:
                continue
            v = kwargs.pop(k)
            key = f"field_{k}" if k in _STD_ATTRS else k
            extra.setdefault(key, v)
        kwargs["extra"] = extra
        return msg, kwargs


# ---------- Public configuration API ----------

_ROOT_LOGGER_NAME = "bootkit"
_configured = False
_stdout_handler_key = "_bootkit_stdout_handler"
_stderr_handler_key = "_bootkit_stderr_handler"


def _bootstrap_minimal() -> None:
    global _configured
    if _configured:
        return
    lg = logging.getLogger(_ROOT_LOGGER_NAME)
    lg.setLevel(logging.DEBUG)
    if not any(isinstance(h, logging.NullHandler) for h in lg.handlers):
        lg.addHandler(logging.NullHandler())
    if not any(isinstance(f, ContextFilter) for f in lg.filters):
        lg.addFilter(ContextFilter())
    _configured = True


def get_logger(name: str | None = None) -> logging.LoggerAdapter:
    """Return a `bootkit.<name>` logger adapter that accepts keyword fields."""
    _bootstrap_minimal()
    base = logging.getLogger(_ROOT_LOGGER_NAME)
    target = base.getChild(name) if name else base
    # logger filters do not run for records propagated from children
    if not any(isinstance(f, ContextFilter) for f in target.filters):
        target.addFilter(ContextFilter())
    return _KwExtraAdapter(target, {})


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"invalid log level: {level!r}")
    return resolved


def set_level(level: int | str) -> None:
    logging.getLogger(_ROOT_LOGGER_NAME).setLevel(_resolve_level(level))


def enable_stdout_logging(
    *,
    level: int | str = logging.DEBUG,
    json_output: bool = True,
    include_stack: bool = False,
    pretty: bool = False,
    route_errors_to_stderr: bool = False,
) -> None:
    """
    Attach stream handlers for tests/local runs.
    - pretty=True -> HumanFormatter, else JsonFormatter (json_output=True) or plain text
    - route_errors_to_stderr=True -> ERROR+ to stderr, the rest to stdout
    """
    lvl = _resolve_level(level)
    _bootstrap_minimal()
    lg = logging.getLogger(_ROOT_LOGGER_NAME)
    disable_stdout_logging()

    fmt: logging.Formatter
    if pretty:
        fmt = HumanFormatter()
    elif json_output:
        fmt = JsonFormatter(include_stack=include_stack)
    else:
        fmt = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    out = logging.StreamHandler(sys.stdout)
    out.set_name(_stdout_handler_key)
    out.setLevel(lvl)
    out.setFormatter(fmt)
    if route_errors_to_stderr:
        out.addFilter(_MaxLevelFilter(logging.WARNING))
        err = logging.StreamHandler(sys.stderr)
        err.set_name(_stderr_handler_key)
        err.setLevel(max(lvl, logging.ERROR))
        err.setFormatter(fmt)
        lg.addHandler(err)
    lg.addHandler(out)


def disable_stdout_logging() -> None:
    lg = logging.getLogger(_ROOT_LOGGER_NAME)
    for h in list(lg.handlers):
        if h.get_name() in (_stdout_handler_key, _stderr_handler_key):
            lg.removeHandler(h)


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").lower() in ("1", "true", "yes", "on")


def configure_from_env() -> None:
    """
    Honors:
      - BOOTKIT_LOG_STDOUT=1   -> attach a stdout handler
      - BOOTKIT_LOG_LEVEL=INFO -> library logger level (default DEBUG)
      - BOOTKIT_LOG_PRETTY=1   -> human formatter instead of JSON
      - BOOTKIT_LOG_STACK=1    -> include stack in JSON logs
    """
    level = os.getenv("BOOTKIT_LOG_LEVEL", "DEBUG")
    _bootstrap_minimal()
    set_level(level)
    if _env_flag("BOOTKIT_LOG_STDOUT"):
        pretty = _env_flag("BOOTKIT_LOG_PRETTY")
        enable_stdout_logging(
            level=level, json_output=not pretty, include_stack=_env_flag("BOOTKIT_LOG_STACK"), pretty=pretty
        )
    else:
        disable_stdout_logging()


_bootstrap_minimal()
