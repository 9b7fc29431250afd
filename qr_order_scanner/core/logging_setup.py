"""
Logging configuration: JSON lines in production, compact text everywhere else.

Call configure_logging(settings) once from the app factory.
"""
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from qr_order_scanner.core.config import Settings

NOISY_LOGGERS = ("httpx", "httpcore", "twilio.http_client")


class JSONFormatter(logging.Formatter):
    """machine-parseable formatter for production."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        for key in ("shop", "duration_ms", "order_id"):
            if hasattr(record, key):
                entry[key] = getattr(record, key)
        return json.dumps(entry, ensure_ascii=False)


def configure_logging(settings: Settings) -> None:
    root = logging.getLogger()
    root.setLevel(getattr(logging, settings.LOG_LEVEL, logging.INFO))
    root.handlers = []

    handler = logging.StreamHandler(sys.stdout)
    if settings.is_production:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)-8s %(name)s | %(message)s", "%H:%M:%S"))
    root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root.info(f"Logging configured: env={settings.APP_ENV}, level={settings.LOG_LEVEL}")
