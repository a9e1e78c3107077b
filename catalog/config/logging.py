import logging
from logging.config import dictConfig
import socket

from catalog.core.config import settings


class HostnameFilter(logging.Filter):
    """모든 로그 레코드에 hostname 추가"""
    hostname = socket.gethostname()

    def filter(self, record):
        record.hostname = self.hostname
        return True


def build_log_config(level: str = "INFO") -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "hostname": {
                "()": HostnameFilter,
            }
        },
        "formatters": {
            "json": {
                "()": "pythonjsonlogger.json.JsonFormatter",
                "format": "%(asctime)s %(levelname)s %(name)s %(message)s %(hostname)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "json",
                "filters": ["hostname"],
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "catalog": {
                "handlers": ["console"],
                "level": level,
                "propagate": False
            },
            "": {  # Root logger
                "handlers": ["console"],
                "level": "WARNING",
            },
            "uvicorn.access": {
                "handlers": ["console"],
                "level": "WARNING",
                "propagate": False
            },
        }
    }


def setup_logging(level: str = None):
    # 로깅 설정 적용
    dictConfig(build_log_config((level or settings.LOG_LEVEL).upper()))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
