import logging
import logging.config
import os
from typing import Dict

from leave_lottery.core.config import settings
from leave_lottery.utils.date_utils import local_today

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 10

# One sub-directory and rotating file per stream
LOG_STREAMS = ("app", "error", "access", "audit")


def _file_handler(log_dir: str, stream: str, level: str, formatter: str) -> Dict:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": formatter,
        "filename": os.path.join(log_dir, stream, f"{stream}-{local_today().isoformat()}.log"),
        "maxBytes": LOG_FILE_MAX_BYTES,
        "backupCount": LOG_FILE_BACKUPS,
        "encoding": "utf-8",
    }


def build_logging_config(log_dir: str, level: str) -> Dict:
    """
    dictConfig for the service.

    - console and ``app`` file receive everything at ``level``
    - ``error`` file keeps ERROR and above
    - ``access`` file is fed by the request middleware
    - ``audit`` file keeps the state changes made by the leave services
      (application, cancellation and exchange decisions)
    """
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "detailed": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "short": {
                "format": "%(asctime)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "default",
                "stream": "ext://sys.stdout",
            },
            "app_file": _file_handler(log_dir, "app", level, "detailed"),
            "error_file": _file_handler(log_dir, "error", "ERROR", "detailed"),
            "access_file": _file_handler(log_dir, "access", "INFO", "short"),
            "audit_file": _file_handler(log_dir, "audit", "INFO", "short"),
        },
        "loggers": {
            "": {
                "level": level,
                "handlers": ["console", "app_file", "error_file"],
                "propagate": False,
            },
            "leave_lottery.services": {
                "level": "INFO",
                "handlers": ["audit_file"],
                "propagate": True,
            },
            "access": {
                "level": "INFO",
                "handlers": ["access_file"],
                "propagate": False,
            },
            "uvicorn.access": {
                "level": "INFO",
                "handlers": ["access_file"],
                "propagate": False,
            },
            "sqlalchemy.engine": {
                "level": "INFO" if settings.DEBUG else "WARNING",
                "handlers": ["app_file"],
                "propagate": False,
            },
        },
    }


def setup_logging():
    """Create the log directories and apply the logging configuration"""
    log_dir = settings.LOG_DIR
    for stream in LOG_STREAMS:
        os.makedirs(os.path.join(log_dir, stream), exist_ok=True)

    logging.config.dictConfig(build_logging_config(log_dir, settings.LOG_LEVEL))

    logger = logging.getLogger(__name__)
    logger.info(f"Leave lottery logging configured (level={settings.LOG_LEVEL}, dir={log_dir}, tz={settings.TIMEZONE})")
