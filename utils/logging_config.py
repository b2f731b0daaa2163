#!/usr/bin/env python3
"""
Structured logging configuration with JSON output and request tracking
"""

import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Optional

from config import config

# Context variable for request tracking
request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)

# Extra record attributes copied into structured output
_EXTRA_FIELDS = ('duration', 'url', 'status_code', 'article_count', 'skipped_count', 'page_count', 'byte_size')


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging"""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON"""

        log_entry = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        request_id = request_id_var.get()
        if request_id:
            log_entry['request_id'] = request_id

        for field in _EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_entry[field] = value

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        if config.DEBUG_MODE:
            log_entry.update({
                'module': record.module,
                'function': record.funcName,
                'line': record.lineno,
            })

        return json.dumps(log_entry, ensure_ascii=False)


def setup_logging(level: Optional[str] = None, structured: Optional[bool] = None):
    """Configure the root logger from config settings"""

    level_name = level or config.LOG_LEVEL
    log_level = getattr(logging, level_name.upper(), logging.INFO)
    use_json = config.STRUCTURED_LOGGING if structured is None else structured

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)

    if use_json:
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Silence noisy third-party loggers
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('httpcore').setLevel(logging.WARNING)
    logging.getLogger('aiohttp.access').setLevel(logging.WARNING)
    logging.getLogger('openai').setLevel(logging.WARNING)

    return root_logger


def get_request_id() -> str:
    """Get or create request ID for current context"""
    request_id = request_id_var.get()
    if not request_id:
        request_id = str(uuid.uuid4())[:8]
        request_id_var.set(request_id)
    return request_id


def set_request_context(request_id: str = None):
    if request_id:
        request_id_var.set(request_id)


def clear_request_context():
    request_id_var.set(None)


class TimedLogger:
    """Context manager for timing operations with structured logging"""

    def __init__(self, logger: logging.Logger, operation: str, **extra_fields):
        self.logger = logger
        self.operation = operation
        self.extra_fields = extra_fields
        self.start_time = None
        self.duration = None

    def __enter__(self):
        self.start_time = time.monotonic()
        self.logger.debug(f"Starting {self.operation}", extra=self.extra_fields)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = time.monotonic() - self.start_time

        if exc_type is None:
            self.logger.info(
                f"Completed {self.operation} in {self.duration:.2f}s",
                extra={'duration': self.duration, **self.extra_fields}
            )
        else:
            # The caller decides whether the failure is fatal
            self.logger.debug(
                f"Failed {self.operation} after {self.duration:.2f}s: {exc_val}",
                extra={'duration': self.duration, **self.extra_fields}
            )
        return False
