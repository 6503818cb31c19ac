import json
import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime, timezone

from app.core import config

# Define log format
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Attributes every LogRecord carries; anything else came in through `extra`
_RESERVED_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """One JSON object per line, with structured `extra` context merged in."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                entry[key] = value
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(log_level=None, json_output=None):
    if log_level is None:
        log_level = config.LOG_LEVEL
    if json_output is None:
        json_output = config.IS_PRODUCTION

    # Create root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # Create console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)

    # Create formatter
    if json_output:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)
    console_handler.setFormatter(formatter)

    # Add handler to root logger
    root_logger.addHandler(console_handler)

    # Set logging level for specific libraries
    logging.getLogger("uvicorn").setLevel(logging.WARNING)
    logging.getLogger("fastapi").setLevel(logging.WARNING)
    logging.getLogger("celery").setLevel(logging.INFO)
    logging.getLogger("kombu").setLevel(logging.WARNING)
    logging.getLogger("amqp").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a specific module.

    Args:
        name: Module name (usually __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def log_database(logger: logging.Logger, operation: str, table: str, **details):
    """Debug-level trace of a store read or write."""
    logger.debug(
        f"Database: {operation} on {table}",
        extra={"type": "database", "operation": operation, "table": table, **details},
    )


def log_audit(logger: logging.Logger, action: str, subject_id=None, **details):
    """Audit trail entry for a state-changing action."""
    logger.info(
        f"Action: {action}",
        extra={"type": "audit", "action": action, "subject_id": subject_id, **details},
    )


_operation_logger = get_logger("app.operations")


@contextmanager
def logged_operation(name: str, **context):
    """
    Time a block of work and log its outcome.

    Logs the start at DEBUG, the duration at INFO on success and the
    failure with its duration at ERROR. Exceptions are re-raised.
    """
    start = time.perf_counter()
    _operation_logger.debug(f"Starting operation: {name}", extra={"operation": name, **context})
    try:
        yield
    except Exception as e:
        duration_ms = (time.perf_counter() - start) * 1000
        _operation_logger.error(
            f"Operation failed: {name}: {e}",
            extra={
                "type": "performance",
                "operation": name,
                "duration_ms": round(duration_ms, 2),
                "error_type": type(e).__name__,
                **context,
            },
        )
        raise
    duration_ms = (time.perf_counter() - start) * 1000
    _operation_logger.info(
        f"Performance: {name}",
        extra={"type": "performance", "operation": name, "duration_ms": round(duration_ms, 2), "success": True},
    )
