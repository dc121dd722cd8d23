"""
SchemaSync logging.

Every statement the migrator runs is logged for later forensics. Records
carry ``operation``, ``table_name``, ``sql`` and ``rows_affected`` as extra
fields; the JSON formatter writes them as keys and the console formatter
appends them as a ``[table=..., op=..., rows=...]`` suffix.
"""

import logging
import json
import sys
from datetime import datetime, timezone
from typing import Optional


ROOT_LOGGER = "schemasync"
EXTRA_FIELDS = ("table_name", "operation", "rows_affected", "sql")


class JSONFormatter(logging.Formatter):
    """One JSON object per line, suitable for an append-only migration log."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (name, getattr(record, name)) for name in EXTRA_FIELDS if hasattr(record, name)
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ColoredFormatter(logging.Formatter):
    """Console formatter; ANSI colors by level unless disabled."""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color

    @staticmethod
    def context(record: logging.LogRecord) -> str:
        # SQL is already part of the message
        parts = []
        if hasattr(record, 'table_name'):
            parts.append(f"table={record.table_name}")
        if hasattr(record, 'operation'):
            parts.append(f"op={record.operation}")
        if getattr(record, 'rows_affected', None) is not None:
            parts.append(f"rows={record.rows_affected}")
        return f" [{', '.join(parts)}]" if parts else ""

    def format(self, record: logging.LogRecord) -> str:
        level = record.levelname
        if self.use_color and level in self.COLORS:
            tag = f"{self.COLORS[level]}[{level}]{self.RESET}"
        else:
            tag = f"[{level}]"

        line = f"{tag} {record.getMessage()}{self.context(record)}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(verbose: int = 0, log_format: str = "text", no_color: bool = False) -> None:
    """
    Send SchemaSync logs to stderr.

    Args:
        verbose: 0 for WARNING, 1 for INFO (every executed statement), 2+ for DEBUG
        log_format: "text" or "json"
        no_color: Disable ANSI colors in text output
    """
    level = {0: logging.WARNING, 1: logging.INFO}.get(verbose, logging.DEBUG)

    if log_format == "json":
        formatter = JSONFormatter()
    else:
        formatter = ColoredFormatter(use_color=not no_color and sys.stderr.isatty())

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(formatter)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    # Reconfiguring replaces the handler instead of stacking another one
    logger.handlers.clear()
    logger.addHandler(handler)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger under the ``schemasync`` namespace, e.g. ``schemasync.executor``."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER)
