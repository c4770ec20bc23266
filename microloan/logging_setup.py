"""Structured JSON logging for services that embed the calculation engine"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TextIO

from pythonjsonlogger.json import JsonFormatter

SERVICE_NAME = "microloan"


class MicroloanJsonFormatter(JsonFormatter):
    """JSON formatter adding timestamp, level and service fields"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = SERVICE_NAME


def setup_logging(level: str = "INFO", stream: Optional[TextIO] = None) -> logging.Logger:
    """
    Route the package's loggers to a JSON handler.

    Only the `microloan` logger is configured; the root logger and the
    host application's handlers are left alone. Importing the package never
    calls this.
    """
    logger = logging.getLogger(SERVICE_NAME)
    logger.setLevel(level)
    logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(MicroloanJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
