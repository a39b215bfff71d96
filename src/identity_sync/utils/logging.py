"""Console and JSON-lines logging with per-resource context fields."""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

# Fields a LogContext may stamp onto records
CONTEXT_FIELDS = ('resource_type', 'resource_id', 'operation', 'strategy', 'duration')

DEFAULT_LOG_DIR = '.identity-sync/logs'

_context: ContextVar[Dict[str, Any]] = ContextVar('identity_sync_log_context', default={})


def _record_context(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        name: getattr(record, name)
        for name in CONTEXT_FIELDS
        if getattr(record, name, None) is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per line, with the resource context at top level."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            'timestamp': datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        entry.update(_record_context(record))
        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Short human-readable lines prefixed with the resource being reconciled."""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def __init__(self, use_color: bool = False):
        super().__init__()
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        level = f"{record.levelname:8}"
        if self.use_color:
            level = f"{self.COLORS.get(record.levelname, '')}{level}{self.RESET}"

        context = _record_context(record)
        address = ".".join(
            str(context[name]) for name in ('resource_type', 'resource_id') if name in context
        )
        message = record.getMessage()
        if address:
            message = f"[{address}] {message}"

        timestamp = datetime.fromtimestamp(record.created).strftime('%H:%M:%S')
        line = f"{timestamp} {level} {message}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logging(log_level: str = 'info', log_dir: Optional[str] = None) -> None:
    """Send logs to the console at log_level and to a daily JSON-lines file.

    The file always receives DEBUG records, so a failed run can be inspected
    after the fact without rerunning at a higher verbosity.

    Args:
        log_level: Console level (debug, info, warning, error)
        log_dir: Directory for the JSON log files
    """
    level = getattr(logging, log_level.upper())

    log_path = Path(log_dir or DEFAULT_LOG_DIR)
    log_path.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(ConsoleFormatter(use_color=sys.stdout.isatty()))
    root_logger.addHandler(console_handler)

    log_file = log_path / f"identity-sync-{datetime.now(timezone.utc).strftime('%Y%m%d')}.jsonl"
    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(JSONFormatter())
    root_logger.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class LogContext:
    """Stamp resource fields onto every record logged inside the block.

    Contexts nest: inner fields override outer ones until the inner block
    exits.

    Example:
        with LogContext(logger, resource_type='role', resource_id=role_id, operation='update'):
            reconciler.update(data)
    """

    def __init__(self, logger: logging.Logger, **fields: Any):
        self.logger = logger
        self.fields = fields
        self._token = None

    def __enter__(self) -> "LogContext":
        self._token = _context.set({**_context.get(), **self.fields})
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        _context.reset(self._token)
        self._token = None


def _install_record_factory() -> None:
    base_factory = logging.getLogRecordFactory()

    def record_factory(*args, **kwargs):
        record = base_factory(*args, **kwargs)
        for key, value in _context.get().items():
            setattr(record, key, value)
        return record

    logging.setLogRecordFactory(record_factory)


_install_record_factory()
