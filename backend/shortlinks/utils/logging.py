"""Application-wide logging initialization

Call `initialize_logging()` once at application start, before any other
logging is done.

Plain format:
    2026-01-01 12:00:00 [INFO] shortlinks.services.links - Short link created

JSON format (LOG_JSON=true):
{
    "timestamp": "2026-01-01T12:00:00.000Z",
    "level": "INFO",
    "logger": "shortlinks.services.links",
    "message": "Short link created",
    "code": "a8Kd93Z"
}
"""

import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Optional


class JsonFormatter(logging.Formatter):
    """JSON formatter that includes LogRecord extras"""

    STANDARD_ATTRS = frozenset(
        {
            'args',
            'asctime',
            'created',
            'exc_info',
            'exc_text',
            'filename',
            'funcName',
            'levelname',
            'levelno',
            'lineno',
            'module',
            'msecs',
            'msg',
            'name',
            'pathname',
            'process',
            'processName',
            'relativeCreated',
            'stack_info',
            'thread',
            'threadName',
            'taskName',
        }
    )

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc) \
                            .isoformat(timespec="milliseconds") \
                            .replace("+00:00", "Z")

        log = {
            'timestamp': timestamp,
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        # Attach `extra` fields
        for key, value in record.__dict__.items():
            if key not in self.STANDARD_ATTRS:
                log[key] = value

        if record.exc_info:
            log['exc_info'] = self.formatException(record.exc_info)

        return json.dumps(log, default=str)


def initialize_logging(level: Optional[str] = None, json_format: Optional[bool] = None) -> None:
    """Configure the root logger with a single stdout handler.

    Args:
        level: Logging level name, defaults to settings.LOG_LEVEL
        json_format: Emit JSON lines, defaults to settings.LOG_JSON
    """
    from ..config import settings

    log_level = (level or settings.LOG_LEVEL).upper()
    use_json = settings.LOG_JSON if json_format is None else json_format

    logging.config.dictConfig(
        {
            'version': 1,
            'disable_existing_loggers': False,
            'formatters': {
                'plain': {
                    'format': '%(asctime)s [%(levelname)s] %(name)s - %(message)s',
                    'datefmt': '%Y-%m-%d %H:%M:%S',
                },
                'json': {
                    '()': JsonFormatter,
                },
            },
            'handlers': {
                'stdout': {
                    'class': 'logging.StreamHandler',
                    'formatter': 'json' if use_json else 'plain',
                    'stream': 'ext://sys.stdout',
                }
            },
            'root': {
                'level': log_level,
                'handlers': ['stdout'],
            },
        }
    )
