import logging
import os
import sys
from datetime import datetime, timezone
import json
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


class JSONFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging similar to pino."""

    def format(self, record):
        log_data = {
            'level': record.levelname.lower(),
            'time': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'service': 'courier',
            'logger': record.name,
            'msg': record.getMessage()
        }

        # Add exception info if present
        if record.exc_info:
            log_data['err'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'stack': self.formatException(record.exc_info)
            }

        # Add extra fields from the record
        if hasattr(record, 'extra_data'):
            log_data.update(record.extra_data)

        return json.dumps(log_data, default=str)


logger = logging.getLogger('courier')


def configure_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> logging.Logger:
    """
    Attach JSON handlers to the courier logger.

    Args:
        level: Log level name, defaults to the LOG_LEVEL environment variable or INFO
        log_file: Optional path of a rotating log file (10MB max, keep 5 backups)

    Returns:
        The configured courier logger
    """
    logger.setLevel((level or os.getenv('LOG_LEVEL', 'INFO')).upper())

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    # Create console handler with JSON formatter
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(JSONFormatter())
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5
        )
        file_handler.setFormatter(JSONFormatter())
        logger.addHandler(file_handler)

    # Prevent propagation to root logger
    logger.propagate = False

    return logger


def log_with_context(level, msg, log: Optional[logging.Logger] = None, **context):
    """Helper function to log with additional context fields."""
    extra = {'extra_data': context} if context else {}
    (log or logger).log(level, msg, extra=extra)


# Convenience methods
def info(msg, log=None, **context):
    log_with_context(logging.INFO, msg, log, **context)


def error(msg, err=None, log=None, **context):
    if err:
        context['err'] = {'message': str(err), 'type': type(err).__name__}
    log_with_context(logging.ERROR, msg, log, **context)


def warn(msg, log=None, **context):
    log_with_context(logging.WARNING, msg, log, **context)


def debug(msg, log=None, **context):
    log_with_context(logging.DEBUG, msg, log, **context)
