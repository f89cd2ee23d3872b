"""
Centralized logging configuration for the Talkscriber client.

Provides standardized logging setup with different configurations for
development, production and testing environments.
"""

import copy
import logging
import logging.handlers
import json
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional
from enum import Enum

class LogLevel(Enum):
    """Log level enumeration"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

class LogFormat(Enum):
    """Log format options"""
    STANDARD = "standard"
    STRUCTURED = "structured"
    MINIMAL = "minimal"

_RESERVED_RECORD_KEYS = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname', 'filename',
    'module', 'exc_info', 'exc_text', 'stack_info', 'lineno', 'funcName',
    'created', 'msecs', 'relativeCreated', 'thread', 'threadName',
    'processName', 'process', 'message', 'taskName'
}

class StructuredFormatter(logging.Formatter):
    """Custom formatter for structured (JSON) logging."""

    def __init__(self, static_fields: Optional[Dict[str, Any]] = None):
        super().__init__()
        self.static_fields = static_fields or {}

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno
        }
        log_data.update(self.static_fields)

        # Session and timing fields passed through `extra=`
        if hasattr(record, 'session_id'):
            log_data["session_id"] = record.session_id
        if hasattr(record, 'duration_ms'):
            log_data["duration_ms"] = record.duration_ms
        if hasattr(record, 'operation'):
            log_data["operation"] = record.operation

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _RESERVED_RECORD_KEYS or key.startswith('_') or key in log_data:
                continue
            log_data[key] = value

        return json.dumps(log_data, default=str)

class ColoredFormatter(logging.Formatter):
    """Formatter with color support for console output."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m'        # Reset
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format with colors if terminal supports it."""
        if hasattr(sys.stdout, 'isatty') and sys.stdout.isatty():
            # Other handlers share the record, so color a copy
            record = copy.copy(record)
            color = self.COLORS.get(record.levelname, self.COLORS['RESET'])
            record.levelname = f"{color}{record.levelname}{self.COLORS['RESET']}"

        return super().format(record)

def setup_logging(
    name: str = None,
    level: str = "INFO",
    format_type: str = "standard",
    log_file: Optional[str] = None,
    max_file_size: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
    enable_console: bool = True,
    enable_colors: bool = True,
    structured_fields: Optional[Dict[str, Any]] = None
) -> logging.Logger:
    """
    Setup centralized logging configuration.

    Args:
        name: Logger name (if provided, returns named logger; if None, configures root)
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: Format type (standard, structured, minimal)
        log_file: Optional log file path
        max_file_size: Maximum file size before rotation
        backup_count: Number of backup files to keep
        enable_console: Whether to enable console logging
        enable_colors: Whether to enable colored console output
        structured_fields: Additional static fields for structured logging

    Returns:
        Configured logger (named if name provided, root otherwise)
    """
    if name:
        if not logging.getLogger().handlers:
            setup_logging(name=None, level=level, format_type=format_type, log_file=log_file,
                         max_file_size=max_file_size, backup_count=backup_count,
                         enable_console=enable_console, enable_colors=enable_colors,
                         structured_fields=structured_fields)
        return logging.getLogger(name)

    root_logger = logging.getLogger()
    if root_logger.handlers:
        # Already configured
        return root_logger

    log_level = getattr(logging, level.upper())
    root_logger.setLevel(log_level)

    if format_type == LogFormat.STRUCTURED.value:
        formatter = StructuredFormatter(structured_fields)
    elif format_type == LogFormat.MINIMAL.value:
        formatter = logging.Formatter('%(levelname)s: %(message)s')
    elif enable_colors and enable_console:
        formatter = ColoredFormatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    if enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_file_size,
            backupCount=backup_count
        )
        file_handler.setLevel(log_level)

        if format_type == LogFormat.STRUCTURED.value:
            file_formatter = StructuredFormatter(structured_fields)
        else:
            file_formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )

        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)

    # The websockets library logs every frame at DEBUG
    logging.getLogger("websockets").setLevel(logging.WARNING)
    logging.getLogger("websockets.client").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    return root_logger

def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the specified name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)

def configure_from(config) -> logging.Logger:
    """Configure the root logger from a `utils.config.LoggingConfig`."""
    return setup_logging(
        level=config.level,
        format_type=config.format_type,
        log_file=config.log_file,
        max_file_size=config.max_file_size,
        backup_count=config.backup_count,
        enable_console=config.enable_console,
        enable_colors=config.enable_colors
    )

def auto_configure() -> logging.Logger:
    """Configure logging based on TALKSCRIBER_ENV and the LOG_* variables."""
    from .config import get_config
    return configure_from(get_config().logging)
