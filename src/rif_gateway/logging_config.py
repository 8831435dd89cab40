"""Structured logging configuration with transaction context.

Every record emitted while a transaction is executing carries the
transaction hash, the external sender and the contract being called,
so a JSON log line can be tied back to the receipt it belongs to.
"""
from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional

tx_hash_var: ContextVar[Optional[str]] = ContextVar("tx_hash", default=None)
sender_var: ContextVar[Optional[str]] = ContextVar("sender", default=None)
contract_var: ContextVar[Optional[str]] = ContextVar("contract", default=None)

_CONTEXT_FIELDS = ("tx_hash", "sender", "contract")

_RESERVED_ATTRS = frozenset(
    (
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "taskName",
        "exc_info",
        "exc_text",
        "stack_info",
    )
    + _CONTEXT_FIELDS
)


class TransactionContextFilter(logging.Filter):
    """Logging filter that adds the active transaction context to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.tx_hash = tx_hash_var.get()
        record.sender = sender_var.get()
        record.contract = contract_var.get()
        return True


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for key in _CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = value

        return json.dumps(log_data, default=str)


def setup_logging(
    level: str = "INFO",
    json_format: bool = True,
    log_file: Optional[str] = None,
) -> None:
    """
    Configure structured logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON structured logging (True) or simple format (False)
        log_file: Optional file path for logging output
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if json_format:
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - [%(tx_hash)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(TransactionContextFilter())
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(TransactionContextFilter())
        root_logger.addHandler(file_handler)


def get_tx_hash() -> Optional[str]:
    """Get the hash of the transaction currently executing, if any."""
    return tx_hash_var.get()


def clear_context() -> None:
    """Clear all context variables."""
    tx_hash_var.set(None)
    sender_var.set(None)
    contract_var.set(None)


class LogContext:
    """Context manager for temporary logging context."""

    def __init__(
        self,
        tx_hash: Optional[str] = None,
        sender: Optional[str] = None,
        contract: Optional[str] = None,
    ):
        self.tx_hash = tx_hash
        self.sender = sender
        self.contract = contract
        self._tokens = []

    def __enter__(self) -> "LogContext":
        if self.tx_hash:
            self._tokens.append((tx_hash_var, tx_hash_var.set(self.tx_hash)))
        if self.sender:
            self._tokens.append((sender_var, sender_var.set(self.sender)))
        if self.contract:
            self._tokens.append((contract_var, contract_var.set(self.contract)))
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        for var, token in reversed(self._tokens):
            var.reset(token)
        self._tokens.clear()
