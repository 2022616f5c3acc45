"""
Centralized logging configuration for the CityRank package.

All CityRank modules obtain their loggers through :func:`get_logger`, so the
output format (plain text or JSON lines) and level are controlled in one place,
either programmatically or through environment variables.
"""

import json
import logging
import os
import platform
import socket
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional, Dict, Any, Union, List

DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

LOG_LEVEL_ENV_VAR = 'CITYRANK_LOG_LEVEL'
LOG_FORMAT_ENV_VAR = 'CITYRANK_LOG_FORMAT'  # 'json' or 'text'
LOG_FILE_ENV_VAR = 'CITYRANK_LOG_FILE'

LOG_LEVELS = {
    'debug': logging.DEBUG,
    'info': logging.INFO,
    'warning': logging.WARNING,
    'error': logging.ERROR,
    'critical': logging.CRITICAL,
}

_logging_configured = False

_service_info = {
    'service_name': 'cityrank',
    'service_version': None,
    'hostname': socket.gethostname(),
    'os': platform.system(),
}


class JsonFormatter(logging.Formatter):
    """Render each log record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'timestamp': self.formatTime(record, '%Y-%m-%dT%H:%M:%S'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        for key, value in _service_info.items():
            if value is not None:
                log_data[key] = value

        if record.exc_info:
            log_data['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': self.formatException(record.exc_info),
            }

        extras = getattr(record, 'extras', None)
        if extras:
            for key, value in extras.items():
                log_data[key] = value

        return json.dumps(log_data, default=str)


class StructuredLoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter that attaches a fixed set of context fields to every record.

    The fields are exposed to :class:`JsonFormatter` through the ``extras``
    attribute of the record, merged with any ``extra`` passed per call.
    """

    def __init__(self, logger: logging.Logger, extra: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(logger, extra or {})

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extras = dict(self.extra)
        extras.update(kwargs.get('extra') or {})

        kwargs = dict(kwargs)
        kwargs['extra'] = {'extras': extras}
        return msg, kwargs


def configure_logging(level: Optional[Union[int, str]] = None,
                      use_json: Optional[bool] = None,
                      log_file: Optional[str] = None,
                      format_str: Optional[str] = None) -> None:
    """
    Configure the root logger for CityRank.

    Calling this again without arguments is a no-op once logging has been
    configured; passing any argument reconfigures the handlers.

    Args:
        level: Log level name or constant (default: CITYRANK_LOG_LEVEL or INFO)
        use_json: Emit JSON lines instead of text (default: CITYRANK_LOG_FORMAT == 'json')
        log_file: Optional path of a rotating log file (default: CITYRANK_LOG_FILE)
        format_str: Format string used for text output
    """
    global _logging_configured

    if _logging_configured and level is None and use_json is None and log_file is None and format_str is None:
        return

    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV_VAR, 'info')
    if isinstance(level, str):
        level = LOG_LEVELS.get(level.lower(), logging.INFO)

    if use_json is None:
        use_json = os.environ.get(LOG_FORMAT_ENV_VAR, 'text').lower() == 'json'

    if log_file is None:
        log_file = os.environ.get(LOG_FILE_ENV_VAR)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if log_file:
        try:
            handlers.append(RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=5))
        except OSError as e:
            print(f"Warning: Could not open log file {log_file}: {e}", file=sys.stderr)

    formatter = JsonFormatter() if use_json else logging.Formatter(format_str or DEFAULT_LOG_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    _logging_configured = True

    try:
        from CityRank import __version__
        _service_info['service_version'] = __version__
    except ImportError:
        pass

    root_logger.debug(
        f"Logging configured with level: {logging.getLevelName(level)}, "
        f"format: {'json' if use_json else 'text'}"
    )


def set_log_level(level: Union[int, str]) -> None:
    """
    Change the log level at runtime.

    Args:
        level: One of 'debug', 'info', 'warning', 'error', 'critical' or a
               logging module constant

    Raises:
        ValueError: If the level name is unknown
    """
    if isinstance(level, str):
        level_name = level.lower()
        if level_name not in LOG_LEVELS:
            valid_levels = ", ".join(LOG_LEVELS.keys())
            raise ValueError(f"Invalid log level: {level}. Valid levels are: {valid_levels}")
        level = LOG_LEVELS[level_name]

    logging.getLogger().setLevel(level)


def get_logger(name: str, extra: Optional[Dict[str, Any]] = None) -> Union[logging.Logger, StructuredLoggerAdapter]:
    """
    Get a logger following CityRank conventions.

    Returns a :class:`StructuredLoggerAdapter` when JSON output is active so
    that context fields end up in the JSON document, otherwise a plain logger.

    Example:
        >>> logger = get_logger(__name__, {'component': 'ranker'})
        >>> logger.info("Ranked candidates", extra={'count': 42})
    """
    configure_logging()

    logger = logging.getLogger(name)

    root_logger = logging.getLogger()
    if root_logger.handlers and isinstance(root_logger.handlers[0].formatter, JsonFormatter):
        return StructuredLoggerAdapter(logger, extra)

    return logger


def configure_from_settings(settings: Optional[Dict[str, Any]]) -> None:
    """
    Apply the ``logging`` configuration section.

    CITYRANK_LOG_* environment variables take precedence over the section.
    """
    settings = settings or {}
    level = os.environ.get(LOG_LEVEL_ENV_VAR) or settings.get('level') or 'info'
    log_format = os.environ.get(LOG_FORMAT_ENV_VAR) or settings.get('format') or 'text'
    log_file = os.environ.get(LOG_FILE_ENV_VAR) or settings.get('file')

    configure_logging(level=level, use_json=log_format.lower() == 'json', log_file=log_file)
