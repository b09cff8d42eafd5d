"""
Logging configuration for the rental service.
Provides structured logging with console, rotating file and JSON handlers.
"""

import logging
import logging.config
import os
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

from rentals.config.settings import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that stamps every record with service context"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]):
        super().add_fields(log_record, record, message_dict)

        log_record['timestamp'] = datetime.now(timezone.utc).isoformat()
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['environment'] = settings.ENVIRONMENT

        if hasattr(record, 'request_id'):
            log_record['request_id'] = record.request_id

        if record.exc_info:
            log_record['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': self.formatException(record.exc_info)
            }


def _file_handler(filename: str, level: str, formatter: str) -> Dict[str, Any]:
    return {
        'level': level,
        'class': 'logging.handlers.RotatingFileHandler',
        'filename': os.path.join(settings.LOG_DIR, filename),
        'maxBytes': 10485760,  # 10MB
        'backupCount': 10,
        'formatter': formatter,
        'encoding': 'utf8'
    }


def build_logging_config(log_to_file: bool = settings.LOG_TO_FILE) -> Dict[str, Any]:
    """Build the dictConfig mapping; file handlers only when log_to_file is set."""
    handlers: Dict[str, Any] = {
        'console': {
            'level': 'DEBUG' if settings.DEBUG else 'INFO',
            'class': 'logging.StreamHandler',
            'formatter': 'colored' if settings.is_development() else 'json'
        },
    }
    if log_to_file:
        handlers['file'] = _file_handler('app.log', 'INFO', 'standard')
        handlers['error_file'] = _file_handler('error.log', 'ERROR', 'standard')
        handlers['json_file'] = _file_handler('app.json.log', 'INFO', 'json')

    app_handlers = list(handlers)
    return {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'standard': {
                'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
            },
            'json': {
                '()': CustomJsonFormatter,
                'format': '%(timestamp)s %(level)s %(logger)s %(message)s'
            },
            'colored': {
                '()': 'colorlog.ColoredFormatter',
                'format': '%(log_color)s%(asctime)s [%(levelname)s] %(name)s: %(message)s',
                'log_colors': {
                    'DEBUG': 'cyan',
                    'INFO': 'green',
                    'WARNING': 'yellow',
                    'ERROR': 'red',
                    'CRITICAL': 'red,bg_white',
                }
            }
        },
        'handlers': handlers,
        'loggers': {
            '': {
                'handlers': app_handlers,
                'level': settings.LOG_LEVEL,
            },
            'rentals': {
                'handlers': app_handlers,
                'level': settings.LOG_LEVEL,
                'propagate': False
            },
            'sqlalchemy.engine': {
                'handlers': ['console'],
                'level': 'WARNING',
                'propagate': False
            },
            'uvicorn.access': {
                'handlers': ['console'],
                'level': 'INFO',
                'propagate': False
            }
        }
    }


def init_sentry() -> bool:
    """Initialise Sentry when a DSN is configured."""
    if not settings.SENTRY_DSN:
        return False

    import sentry_sdk
    from sentry_sdk.integrations.logging import LoggingIntegration

    sentry_logging = LoggingIntegration(
        level=logging.INFO,
        event_level=logging.ERROR
    )
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENVIRONMENT,
        integrations=[sentry_logging],
        traces_sample_rate=0.2,
        send_default_pii=False
    )
    return True


def setup_logging():
    """Configure application logging"""
    if settings.LOG_TO_FILE:
        os.makedirs(settings.LOG_DIR, exist_ok=True)
    logging.config.dictConfig(build_logging_config())
    init_sentry()
    logger = logging.getLogger("rentals")
    logger.info(f"Logging initialized with level: {settings.LOG_LEVEL}")
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get logger with context"""
    return logging.getLogger(name)
