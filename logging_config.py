"""
Centralized logging configuration for the TaskHub backend.
Structured JSON logging in production, colourised lines in development, with the
request id and acting user of the current request attached to every record.
"""

import logging
import logging.handlers
import json
import os
from datetime import datetime, timezone
from contextvars import ContextVar

from config import config

# --- Context Variables (populated by middleware per-request) ---
request_id_var: ContextVar[str] = ContextVar("request_id", default="-")
user_id_var: ContextVar[str] = ContextVar("user_id", default="-")

NOISY_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "uvicorn.error": logging.INFO,
    "motor": logging.WARNING,
    "pymongo": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
}


def _context() -> dict:
    return {"request_id": request_id_var.get("-"), "user_id": user_id_var.get("-")}


class JSONFormatter(logging.Formatter):
    """One JSON object per line; ``extra={"data": {...}}`` lands under ``data``."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            **_context(),
            "message": record.getMessage(),
        }

        data = getattr(record, "data", None)
        if data:
            log_entry["data"] = data

        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class DevFormatter(logging.Formatter):
    """Colorized, human-readable formatter for local development."""

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        ctx = _context()
        msg = (
            f"{color}{record.levelname:<7}{self.RESET} {record.name} "
            f"[req={ctx['request_id']} user={ctx['user_id']}] {record.getMessage()}"
        )

        data = getattr(record, "data", None)
        if data:
            msg += f"  | data={data}"

        if record.exc_info and record.exc_info[0] is not None:
            msg += f"\n{self.formatException(record.exc_info)}"

        return msg


def _file_handler(log_dir: str) -> logging.Handler:
    os.makedirs(log_dir, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        os.path.join(log_dir, "app.log"),
        maxBytes=10 * 1024 * 1024,  # 10 MB
        backupCount=5,
        encoding="utf-8",
    )
    handler.setLevel(logging.INFO)  # File always gets INFO+
    handler.setFormatter(JSONFormatter())
    return handler


def setup_logging():
    """Initialize logging for the application. Safe to call more than once."""
    env = config.ENV.lower()
    log_level = (config.LOG_LEVEL or ("DEBUG" if env == "development" else "INFO")).upper()

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Clear existing handlers (avoids duplicates on reload)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(JSONFormatter() if env == "production" else DevFormatter())
    root_logger.addHandler(console_handler)

    # Tests log to the console only
    log_dir = None
    if env != "testing":
        log_dir = config.LOG_DIR or os.path.join(os.path.dirname(__file__), "logs")
        root_logger.addHandler(_file_handler(log_dir))

    for name, level in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(level)

    get_logger("app").info(f"Logging initialized | env={env} level={log_level} dir={log_dir}")


def get_logger(name: str) -> logging.Logger:
    """Get a named logger under the taskhub namespace."""
    return logging.getLogger(f"taskhub.{name}")
