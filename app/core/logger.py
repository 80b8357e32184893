"""
Application logging and audit trail.
Every record carries a correlation id so a request can be traced end to end.
"""
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from app.core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | correlation_id=%(correlation_id)s | %(message)s"


class CorrelationIdFilter(logging.Filter):
    """Guarantees the correlation_id attribute exists on every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = "-"
        return True


def _build_logger(name: str, level: str) -> logging.Logger:
    built = logging.getLogger(name)

    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO
    built.setLevel(numeric_level)

    if not built.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler.addFilter(CorrelationIdFilter())
        built.addHandler(handler)
        built.propagate = False

    return built


logger = _build_logger("recebedores", settings.LOG_LEVEL)
audit_logger = _build_logger("recebedores.audit", settings.LOG_LEVEL)


def get_logger_with_correlation(correlation_id: Optional[str]) -> logging.LoggerAdapter:
    """Returns a logger adapter that stamps every record with the given correlation id."""
    return logging.LoggerAdapter(logger, {"correlation_id": correlation_id or "-"})


def audit_log(action: str, user: str, resource: str, details: Optional[Dict[str, Any]] = None) -> None:
    """
    Emits a structured audit record (one JSON line) for state-changing operations.
    Callers are responsible for masking sensitive values before passing them in.
    """
    details = details or {}
    entry = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "action": action,
        "user": user,
        "resource": resource,
        "details": details,
    }
    audit_logger.info(
        json.dumps(entry, ensure_ascii=False, default=str),
        extra={"correlation_id": details.get("correlation_id") or "-"}
    )
