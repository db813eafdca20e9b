"""
Structured Logger - JSON sync events for the bus location sync
"""
import json
import logging
from typing import Dict, Any, Optional
from utils.timezone import get_utc_time

SERVICE_NAME = "bus-location-sync"


def configure_logging(level: str = 'INFO', structured: bool = True):
    """Configure the root logger once for the process"""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    if not root.handlers:
        handler = logging.StreamHandler()
        if structured:
            handler.setFormatter(JsonFormatter())
        else:
            handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(name)s: %(message)s'))
        root.addHandler(handler)


class StructuredLogger:
    """Provides structured logging in JSON format for better parsing and analysis"""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)
        self.name = name

    def log_sync_event(self, event_type: str, details: Dict[str, Any]):
        """Log a sync-related event with structured data"""
        log_entry = {
            "timestamp": get_utc_time().isoformat(),
            "event_type": event_type,
            "service": SERVICE_NAME,
            "logger": self.name,
            **details
        }

        # Choose log level based on event type
        if "error" in event_type.lower() or "failed" in event_type.lower():
            self.logger.error(json.dumps(log_entry, default=str))
        elif "warning" in event_type.lower():
            self.logger.warning(json.dumps(log_entry, default=str))
        else:
            self.logger.info(json.dumps(log_entry, default=str))

    def log_api_call(self, method: str, endpoint: str, status_code: Optional[int] = None,
                     duration_ms: Optional[float] = None, error: Optional[str] = None):
        """Log API call details"""
        log_entry = {
            "timestamp": get_utc_time().isoformat(),
            "event_type": "api_call",
            "service": SERVICE_NAME,
            "logger": self.name,
            "method": method,
            "endpoint": endpoint
        }

        if status_code is not None:
            log_entry["status_code"] = status_code
        if duration_ms is not None:
            log_entry["duration_ms"] = duration_ms
        if error:
            log_entry["error"] = error

        if error or (status_code and status_code >= 400):
            self.logger.error(json.dumps(log_entry))
        else:
            self.logger.debug(json.dumps(log_entry))


class JsonFormatter(logging.Formatter):
    """Custom formatter that outputs JSON"""

    def format(self, record):
        # If the message is already JSON, return it as-is
        try:
            json.loads(record.getMessage())
            return record.getMessage()
        except (json.JSONDecodeError, TypeError):
            log_entry = {
                "timestamp": get_utc_time().isoformat(),
                "level": record.levelname,
                "logger": record.name,
                "message": record.getMessage()
            }

            if record.exc_info:
                log_entry["exception"] = self.formatException(record.exc_info)

            return json.dumps(log_entry)
