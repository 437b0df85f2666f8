"""
Structured logging for Device Lab.

A log line can carry two kinds of context:

    request fields   method, path, status, duration_ms, remote_addr, request_id
                     (attached by the timing middleware)
    lab fields       session_id, device_id, app_type
                     (attached by services through ``extra=lab_extra(...)``)

Output format follows LOG_FORMAT:
    "json"      one JSON object per line (production default)
    "readable"  colored single line with a ``[session=.. device=..]`` tag

Usage:
    from devicelab.middleware.logging_config import lab_extra

    logger.info("TestSession started id=%s", s.id, extra=lab_extra(s))
"""

import json
import logging
import sys
from datetime import datetime, timezone

REQUEST_FIELDS = ("method", "path", "status", "duration_ms", "remote_addr", "request_id")
LAB_FIELDS = ("session_id", "device_id", "app_type")

_NOISY_LOGGERS = ("urllib3", "werkzeug", "sqlalchemy.engine", "flask_limiter")


def lab_extra(session=None, device=None, **fields) -> dict:
    """Build the ``extra=`` mapping for a log call about a session and/or device.

    The device defaults to the one behind the session's BrowserDevice.
    Unset identifiers are left out.
    """
    extra = {}
    if session is not None:
        extra["session_id"] = session.id
        if device is None and session.browser_device is not None:
            extra["device_id"] = session.browser_device.device_id
    if device is not None:
        extra["device_id"] = device.id
    for key, value in fields.items():
        if key in LAB_FIELDS and value is not None:
            extra[key] = value
    return extra


def _fields(record, names) -> dict:
    return {k: getattr(record, k) for k in names if getattr(record, k, None) is not None}


class JSONFormatter(logging.Formatter):
    """One JSON object per record, request and lab context flattened in."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        }
        entry.update(_fields(record, REQUEST_FIELDS))
        entry.update(_fields(record, LAB_FIELDS))
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    """Colored development output: ``12:00:01 INFO  logger [session=7 device=2]: msg [12ms]``."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, color: bool = True) -> None:
        super().__init__()
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        level = f"{record.levelname:<8}"
        if self.color:
            level = f"{self.COLORS.get(record.levelname, '')}{level}{self.RESET}"

        lab = _fields(record, LAB_FIELDS)
        tag = ""
        if lab:
            tag = " [" + " ".join(f"{k.removesuffix('_id')}={v}" for k, v in lab.items()) + "]"
        duration = getattr(record, "duration_ms", None)
        dur = f" [{duration:.0f}ms]" if duration is not None else ""

        line = f"{ts} {level} {record.name}{tag}: {record.getMessage()}{dur}"
        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def build_formatter(log_format: str) -> logging.Formatter:
    if log_format == "json":
        return JSONFormatter()
    return ReadableFormatter(color=sys.stderr.isatty())


def configure_logging(app):
    """Install a single stderr handler on the root logger.

    LOG_LEVEL and LOG_FORMAT come from the app config; when LOG_FORMAT is
    unset, production gets JSON and everything else the readable format.
    """
    is_testing = app.config.get("TESTING", False)
    is_prod = not app.config.get("DEBUG", False) and not is_testing

    level_name = (app.config.get("LOG_LEVEL") or ("INFO" if is_prod else "DEBUG")).upper()
    level = getattr(logging, level_name, logging.INFO)
    log_format = app.config.get("LOG_FORMAT") or ("json" if is_prod else "readable")

    root = logging.getLogger()
    # The factory may run more than once per process (tests)
    root.handlers.clear()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(build_formatter(log_format))
    handler.setLevel(level)
    root.addHandler(handler)
    root.setLevel(level)

    for noisy in _NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    app.logger.setLevel(level)
    if not is_testing:
        app.logger.info("Logging configured: level=%s format=%s", level_name, log_format)
