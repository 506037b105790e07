"""Logging setup: coloured console lines and an optional JSON-lines file."""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional


# Record attributes treated as structured context
CONTEXT_FIELDS = ('deployment_id', 'operation', 'environment', 'project_name')

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ('urllib3', 'requests')


def record_context(record: logging.LogRecord) -> Dict[str, Any]:
    """Return the context fields attached to a record."""
    return {
        field: getattr(record, field)
        for field in CONTEXT_FIELDS
        if getattr(record, field, None) is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for the log file."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            'timestamp': datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        entry.update(record_context(record))

        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Short console lines tagged with the deployment being worked on.

    A record logged while deleting ``abc123`` in production renders as::

        14:02:11 INFO     [production/abc123] Deleted deployment
    """

    LEVEL_COLORS = {
        logging.DEBUG: '\033[36m',
        logging.INFO: '\033[32m',
        logging.WARNING: '\033[33m',
        logging.ERROR: '\033[31m',
        logging.CRITICAL: '\033[35m',
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        """Format a record for the terminal.

        Args:
            record: The log record to format

        Returns:
            One line, followed by the traceback when the record carries one
        """
        color = self.LEVEL_COLORS.get(record.levelno, '')
        stamp = datetime.fromtimestamp(record.created, timezone.utc).strftime('%H:%M:%S')

        tag = '/'.join(
            str(getattr(record, field))
            for field in ('environment', 'deployment_id')
            if getattr(record, field, None) is not None
        )
        message = record.getMessage()
        if tag:
            message = f"[{tag}] {message}"

        line = f"{stamp} {color}{record.levelname:<8}{self.RESET} {message}"

        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"

        return line


def _file_handler(log_file: str) -> logging.Handler:
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(path)
    # The file keeps everything, whatever the console level
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(JSONFormatter())
    return handler


def setup_logging(log_level: str = 'info', log_file: Optional[str] = None) -> None:
    """Configure the root logger for a CLI invocation.

    Replaces any existing root handlers.

    Args:
        log_level: Console level name (debug, info, warning, error)
        log_file: Optional path of a JSON-lines log file
    """
    console_level = getattr(logging, log_level.upper())

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(console_level)
    console.setFormatter(ConsoleFormatter())
    handlers = [console]

    if log_file:
        handlers.append(_file_handler(log_file))

    root = logging.getLogger()
    root.handlers.clear()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(min(handler.level for handler in handlers))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class LogContext:
    """Attach context fields to every record created inside a ``with`` block.

    Usage::

        with LogContext(logger, deployment_id="abc123", operation="delete"):
            logger.info("Deleting")
    """

    def __init__(self, logger: logging.Logger, **fields: Any):
        self.logger = logger
        self.fields = fields
        self._previous_factory = None

    def __enter__(self) -> "LogContext":
        previous = logging.getLogRecordFactory()
        fields = self.fields

        def factory(*args, **kwargs):
            record = previous(*args, **kwargs)
            record.__dict__.update(fields)
            return record

        self._previous_factory = previous
        logging.setLogRecordFactory(factory)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._previous_factory is not None:
            logging.setLogRecordFactory(self._previous_factory)
            self._previous_factory = None
