# sentinel/config/logging_config.py
# =============================================================================
# File: sentinel/config/logging_config.py
# Description: Logging configuration using the Rich framework
# =============================================================================

import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean value from environment variable."""
    value = os.getenv(key, '').lower()
    return value in ('true', '1', 'yes', 'on') if value else default


def get_env_int(key: str, default: int) -> int:
    """Get integer value from environment variable."""
    try:
        return int(os.getenv(key, str(default)))
    except ValueError:
        return default


SENTINEL_THEME = Theme({
    "debug": "magenta dim",
    "info": "green",
    "warning": "dark_goldenrod",
    "error": "red",
    "critical": "bold red",
    "timestamp": "grey70",
    "logger_name": "grey35",
    "message": "grey85",
    "frame": "bright_blue",
})

LEVEL_STYLES = {
    'DEBUG': 'debug',
    'INFO': 'info',
    'WARNING': 'warning',
    'ERROR': 'error',
    'CRITICAL': 'critical',
}

PLAIN_FORMAT = "[%(asctime)s] [%(levelname)-8s] [%(name)-36s] %(message)s"
PLAIN_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Library loggers that are too chatty at INFO
DEFAULT_NOISE_CONFIG = {
    "asyncio": logging.WARNING,
    "asyncpg": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "websockets": logging.WARNING,
    "urllib3": logging.WARNING,
    "google": logging.WARNING,
    "firebase_admin": logging.WARNING,
    "prometheus_client": logging.WARNING,
    "granian.access": logging.WARNING,

    "sentinel.realtime.gateway": logging.INFO,
    "sentinel.notifications.fanout": logging.INFO,
    "sentinel.circuit_breaker": logging.INFO,
}


class SentinelRichHandler(RichHandler):
    """RichHandler with a compact single-line runtime layout"""

    def __init__(self, *args, **kwargs):
        kwargs.setdefault('show_time', False)
        kwargs.setdefault('show_level', False)
        kwargs.setdefault('show_path', False)
        kwargs.setdefault('enable_link_path', False)
        kwargs.setdefault('markup', True)
        kwargs.setdefault('rich_tracebacks', True)
        kwargs.setdefault('tracebacks_show_locals', False)
        super().__init__(*args, **kwargs)

    def format(self, record: logging.LogRecord) -> str:
        time_str = datetime.fromtimestamp(record.created).strftime('%H:%M:%S')

        level_style = LEVEL_STYLES.get(record.levelname, 'white')
        level_str = f"[{level_style}]{record.levelname:>7}[/{level_style}]"

        logger_name = record.name
        if len(logger_name) > 30:
            parts = logger_name.split('.')
            if len(parts) > 2:
                logger_name = f"{parts[0]}...{parts[-1]}"
        logger_str = f"[logger_name]{logger_name:>30}[/logger_name]"

        message = record.getMessage()
        if get_env_bool('LOG_CALLER_INFO', False) and record.pathname:
            message = f"{message} [{record.filename}:{record.lineno}]"

        output = f"[timestamp]{time_str}[/timestamp] {level_str} {logger_str}  {message}"
        if record.exc_info:
            output = f"{output}\n{self.formatException(record.exc_info)}"
        return output

    def formatException(self, exc_info) -> str:
        return logging.Formatter().formatException(exc_info)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.console.print(self.format(record), soft_wrap=True)
        except Exception:
            self.handleError(record)


class ProductionFormatter(logging.Formatter):
    """JSON formatter for production environments"""

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if get_env_bool('LOG_JSON_INCLUDE_EXTRAS', True):
            for extra in ('user_id', 'room_id', 'conn_id', 'provider'):
                if hasattr(record, extra):
                    log_obj[extra] = getattr(record, extra)

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_obj)


def get_logger_level_from_env(logger_name: str, default_level: int) -> int:
    """
    Get logger level from environment variable.

    "sentinel.realtime.gateway" -> LOGLEVEL_SENTINEL_REALTIME_GATEWAY
    """
    env_name = f"LOGLEVEL_{logger_name.replace('.', '_').upper()}"
    level_str = os.getenv(env_name, '').upper()
    if level_str == 'WARN':
        level_str = 'WARNING'
    if level_str in LEVEL_STYLES:
        return getattr(logging, level_str)
    return default_level


def setup_logging(
        service_name: str = "sentinel",
        log_level: Optional[str] = None,
        log_file: Optional[str] = None,
        enable_json: Optional[bool] = None,
) -> None:
    """
    Configure root logging.

    Args:
        service_name: Name of the service (e.g., "api")
        log_level: Override log level (defaults to LOG_LEVEL or INFO)
        log_file: Optional log file path (defaults to LOG_FILE)
        enable_json: Enable JSON formatting for production
    """
    level = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_file = log_file or os.getenv("LOG_FILE")

    if enable_json is None:
        enable_json = get_env_bool('LOG_JSON_FORMAT', False)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    use_rich = not enable_json and (sys.stdout.isatty() or get_env_bool("FORCE_COLOR", False))

    if use_rich:
        console = Console(
            theme=SENTINEL_THEME,
            force_terminal=get_env_bool("FORCE_COLOR", False),
            width=get_env_int('LOG_CONSOLE_WIDTH', 0) or None,
        )
        root_logger.addHandler(SentinelRichHandler(console=console))

    elif enable_json:
        json_handler = logging.StreamHandler(sys.stdout)
        json_handler.setFormatter(ProductionFormatter())
        root_logger.addHandler(json_handler)

    else:
        plain_handler = logging.StreamHandler(sys.stdout)
        plain_handler.setFormatter(logging.Formatter(PLAIN_FORMAT, datefmt=PLAIN_DATEFMT))
        root_logger.addHandler(plain_handler)

    if log_file:
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=get_env_int('LOG_MAX_SIZE_MB', 100) * 1024 * 1024,
            backupCount=get_env_int('LOG_BACKUP_COUNT', 5),
            encoding=os.getenv('LOG_FILE_ENCODING', 'utf-8'),
        )
        # Always use plain formatter for files
        file_handler.setFormatter(logging.Formatter(PLAIN_FORMAT, datefmt=PLAIN_DATEFMT))
        root_logger.addHandler(file_handler)

    for logger_name, default_level in DEFAULT_NOISE_CONFIG.items():
        logging.getLogger(logger_name).setLevel(get_logger_level_from_env(logger_name, default_level))

    # Any other LOGLEVEL_* override, e.g. LOGLEVEL_SENTINEL_INFRA_PUSH=DEBUG
    for key, value in os.environ.items():
        if key.startswith('LOGLEVEL_'):
            logger_name = key[9:].lower().replace('_', '.')
            level_value = getattr(logging, value.upper(), None)
            if isinstance(level_value, int):
                logging.getLogger(logger_name).setLevel(level_value)

    logging.getLogger(f"{service_name}.startup").info(f"Logging configured for {service_name} service")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the given name.

    Args:
        name: Logger name

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)

