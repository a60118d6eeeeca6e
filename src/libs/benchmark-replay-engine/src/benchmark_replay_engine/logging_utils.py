# src/libs/benchmark-replay-engine/src/benchmark_replay_engine/logging_utils.py
import logging
import os
import sys
import uuid
from contextvars import ContextVar

from pythonjsonlogger.json import JsonFormatter

# Holds the correlation ID of the replay currently being computed.
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="<not-set>")


class CorrelationIdFilter(logging.Filter):
    """
    A logging filter that injects the current correlation ID from a ContextVar
    into the log record.
    """
    def filter(self, record):
        record.correlation_id = correlation_id_var.get()
        record.service = os.getenv("SERVICE_NAME", "benchmark-replay-engine")
        record.environment = os.getenv("ENVIRONMENT", "local")
        return True


def setup_logging(level: int = logging.INFO):
    """
    Configures the root logger for correlation-ID-aware, structured JSON
    logging. Every logger in the process, including library loggers, inherits
    this configuration.
    """
    root_logger = logging.getLogger()

    # Clear any existing handlers to prevent duplicate logs
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    root_logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    formatter = JsonFormatter(
        "%(asctime)s %(name)s %(levelname)s %(message)s %(service)s %(environment)s %(correlation_id)s",
        rename_fields={
            "asctime": "timestamp",
            "levelname": "level",
            "name": "logger"
        }
    )
    handler.setFormatter(formatter)
    handler.addFilter(CorrelationIdFilter())

    root_logger.addHandler(handler)


def generate_correlation_id(prefix: str) -> str:
    """
    Generates a new correlation ID with a component-specific prefix.
    Args:
        prefix: A short code for the caller (e.g., 'BRE').
    Returns:
        A formatted correlation ID string.
    """
    return f"{prefix}:{uuid.uuid4()}"
