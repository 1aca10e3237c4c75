"""
Logging configuration for AutoJournal.

Sets up console and rotating file handlers based on application settings.
Each process context (cli, worker) writes to its own log file.
"""

import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from typing import Optional

from autojournal.config import Settings, settings as default_settings

STANDARD_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class JsonFormatter(logging.Formatter):
    """Format log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def _build_formatter(log_format: str) -> logging.Formatter:
    if log_format == "json":
        return JsonFormatter()
    return logging.Formatter(fmt=STANDARD_FORMAT, datefmt=DATE_FORMAT)


def setup_logging(context: str = "app", config: Optional[Settings] = None) -> None:
    """
    Configure the root logger for a process context.

    Args:
        context: Name of the running context, used for the log file name
        config: Settings to use (defaults to the global settings)

    Raises:
        PermissionError: If the log directory cannot be created
    """
    config = config or default_settings
    root = logging.getLogger()
    root.setLevel(config.log_level.upper())

    # Replace handlers from a previous call so repeated setup stays idempotent
    for handler in list(root.handlers):
        if getattr(handler, "_autojournal_handler", False):
            root.removeHandler(handler)
            handler.close()

    formatter = _build_formatter(config.log_format)

    if config.log_console_enabled:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        console_handler._autojournal_handler = True
        root.addHandler(console_handler)

    if config.log_file_enabled:
        log_dir = config.log_directory
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_dir / f"{context}.log",
            maxBytes=config.log_max_bytes,
            backupCount=config.log_backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        file_handler._autojournal_handler = True
        root.addHandler(file_handler)

    # SQLAlchemy engine logging is noisy at INFO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
