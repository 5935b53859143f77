from datetime import datetime
import os
import re
import sys
import json
import logging
import traceback


SUCCESS_LEVEL = 25
LOG_SEVERITY = {
    "DEBUG": "DEBUG",
    "INFO": "INFO",
    "SUCCESS": "SUCCESS",
    "WARNING": "WARNING",
    "ERROR": "ERROR",
    "CRITICAL": "CRITICAL"
}

logging.addLevelName(SUCCESS_LEVEL, "SUCCESS")

# Record attributes that are not rendered as "extra" fields
_RESERVED_ATTRS = [
    "msg", "args", "levelname", "levelno", "pathname",
    "filename", "module", "exc_info", "exc_text", "stack_info",
    "lineno", "funcName", "created", "msecs", "relativeCreated",
    "thread", "threadName", "process", "processName", "scope", "name", "taskName",
    "message", "asctime",
]


class CustomLogger(logging.Logger):
    def success(self, message, *args, **kwargs):
        if self.isEnabledFor(SUCCESS_LEVEL):
            self.log(SUCCESS_LEVEL, message, *args, **kwargs, stacklevel=2)


def stringify_extra(value):
    if isinstance(value, (list, dict)):
        return str(value)
    else:
        return value


class CustomFormatter(logging.Formatter):

    def __init__(self, fmt="%(message)s", include_location=False):
        super().__init__(fmt)
        self.include_location = include_location

    def format(self, record):
        level_name = LOG_SEVERITY.get(record.levelname, record.levelname)

        scope = getattr(record, "scope", "")
        location = ""
        if self.include_location:
            location = f"({record.module}:{record.funcName}:{record.lineno})"
        metadata_line = f"{datetime.now().isoformat()} [{level_name}] {scope} {location}".strip()

        message = record.getMessage()
        message_split = message.splitlines()
        if len(message_split) > 1:
            message_line = f"     Message: {message_split[0]}"
            for line in message_split[1:]:
                message_line += f"\n             {line}"
        else:
            message_line = f"     Message: {message}"

        extra_items = [
            f"{key}: {stringify_extra(value)}"
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS
        ]
        extra_info = ""
        if extra_items:
            extra_info = f"\n     {' '.join(extra_items)}"
        formatted_log = f"{metadata_line}\n{message_line}{extra_info}"
        if record.exc_info:
            # clickable "path:line" locations in editors
            format_exception = traceback.format_exception(*record.exc_info)
            format_exception = [
                re.sub(r'File "([^"]+)", line (\d+),', r'File "\1:\2"', line)
                for line in format_exception
            ]
            formatted_log += "\n" + "".join(format_exception)
        return formatted_log


class JSONFormatter(logging.Formatter):
    def format(self, record):
        log_dict = {
            "level": record.levelname,
            "message": record.getMessage(),
            "time": self.formatTime(record, self.datefmt),
            "logger": record.name,
        }
        if hasattr(record, "scope"):
            log_dict["scope"] = record.scope
        log_dict["location"] = {
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            log_dict["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_dict, ensure_ascii=False, default=str)


def log_level(default: str = "WARNING") -> int:
    """Resolve the numeric log level from WQ_LOG_LEVEL."""
    name = os.environ.get("WQ_LOG_LEVEL", default).strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.WARNING


def _use_json() -> bool:
    return os.environ.get("WQ_LOG_JSON", "false").strip().lower() in ("1", "true", "yes", "y", "on")


def setup_logger(name: str, include_location=False, use_json=None):
    """
    Create (or fetch) a named logger writing to stderr.

    stdout is reserved for the console preview, so diagnostics never
    interleave with the rendered tables.
    """
    logging.setLoggerClass(CustomLogger)
    logger = logging.getLogger(name)
    if use_json is None:
        use_json = _use_json()

    if not any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
        stream_handler = logging.StreamHandler(sys.stderr)
        if use_json:
            stream_handler.setFormatter(JSONFormatter())
        else:
            stream_handler.setFormatter(CustomFormatter(include_location=include_location))
        logger.addHandler(stream_handler)
    logger.setLevel(log_level())
    logger.propagate = False
    return logger


def set_level(level_name: str) -> None:
    """Apply a level to every logger created through setup_logger."""
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {level_name}")
    for existing in logging.Logger.manager.loggerDict.values():
        if isinstance(existing, CustomLogger):
            existing.setLevel(level)
