"""Logging configuration.

JSON records carry the service name and environment. Services pass
reconciliation fields (``order_id``, ``payment_reference``, ``coupon_code``)
through ``extra`` and they show up as top-level keys.
"""

import logging
import sys
from typing import Optional

from pythonjsonlogger.json import JsonFormatter

from fulfillment.config import get_settings

settings = get_settings()

_NOISY_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "pymongo", "motor")
_JSON_FIELDS = "%(asctime)s %(name)s %(levelname)s %(message)s"
_TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def build_formatter(log_format: str) -> logging.Formatter:
    """Create the record formatter for ``json`` or ``text`` output."""
    if log_format == "json":
        return JsonFormatter(
            _JSON_FIELDS,
            datefmt=_DATE_FORMAT,
            rename_fields={"levelname": "level", "asctime": "timestamp"},
            static_fields={"service": settings.app_name, "environment": settings.environment},
        )
    return logging.Formatter(_TEXT_FORMAT, datefmt=_DATE_FORMAT)


def setup_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """Configure the root logger.

    Args:
        log_level: Overrides ``LOG_LEVEL``.
        log_format: ``json`` or ``text``; overrides ``LOG_FORMAT``.
    """
    level_name = (log_level or settings.log_level).upper()
    level = getattr(logging, level_name, logging.INFO)
    fmt = log_format or settings.log_format

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(build_formatter(fmt))
    root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root.info("Logging configured: level=%s, format=%s", level_name, fmt)
