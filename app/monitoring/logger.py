# app/monitoring/logger.py
"""
Structured JSON logger for the Files Gateway.
"""
import logging
import json
from datetime import datetime, timezone

from app.config import settings

# Attributes every LogRecord carries; anything else was passed through `extra`
_RESERVED = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}
_CONTEXT_FIELDS = ("component", "request_id", "client_id", "provider_id")

def get_request_context():
    # Import lazily to avoid import cycles
    from app.monitoring.context import get_request_context as _g
    return _g()

class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "component": getattr(record, "component", None) or record.module,
            "request_id": getattr(record, "request_id", None),
            "client_id": getattr(record, "client_id", None),
            "provider_id": getattr(record, "provider_id", None),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED and key not in _CONTEXT_FIELDS and key not in log_record:
                log_record[key] = value
        return json.dumps(log_record, default=str)

logger = logging.getLogger("files_gateway")
logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
handler = logging.StreamHandler()
handler.setFormatter(JsonFormatter())
logger.handlers = [handler]

# Helper to log with context
def log(level: str, message: str, component: str = None, request_id: str = None, client_id: str = None, provider_id: str = None, **kwargs):
    # Map legacy 'module' kwarg to 'component' to avoid LogRecord collision
    if "module" in kwargs and not component:
        component = kwargs.pop("module")
    # Fill missing fields from contextvars
    ctx = get_request_context()
    if request_id is None:
        request_id = ctx.get("request_id")
    if client_id is None:
        client_id = ctx.get("client_id")
    if provider_id is None:
        provider_id = ctx.get("provider_id")

    extra = {
        "request_id": request_id,
        "client_id": client_id,
        "provider_id": provider_id,
        "component": component,
        **{k: v for k, v in kwargs.items() if k not in _RESERVED},
    }
    logger.log(getattr(logging, level.upper(), logging.INFO), message, extra=extra)
