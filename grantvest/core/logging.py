import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Optional

from grantvest.core.context import get_calculation_id, get_grant_id
from grantvest.core.settings import VestingSettings, get_settings


class CalculationContextFilter(logging.Filter):
    """Inject grant/calculation ids into log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.grant_id = get_grant_id()
        record.calculation_id = get_calculation_id()
        record.stream = getattr(record, "stream", "calculation")
        return True


class JsonFormatter(logging.Formatter):
    """Lightweight JSON formatter to keep logs structured."""

    def __init__(self, stream_label: str = "calculation") -> None:
        super().__init__()
        self.stream_label = stream_label

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - concise
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "stream": self.stream_label,
            "grant_id": getattr(record, "grant_id", "-"),
            "calculation_id": getattr(record, "calculation_id", "-"),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


AUDIT_LOGGER = "grantvest.audit"


def _stream_handler(formatter: str, level: str) -> dict:
    return {
        "class": "logging.StreamHandler",
        "level": level,
        "formatter": formatter,
        "filters": ["calculation_context"],
        "stream": "ext://sys.stdout",
    }


def configure_logging(
    settings: Optional[VestingSettings] = None, level: Optional[str] = None
) -> None:
    """Route engine and audit records to stdout as JSON.

    Host applications call this once at startup; the engine itself only logs
    through module loggers and never configures handlers.
    """
    settings = settings or get_settings()
    log_level = (level or settings.log_level).upper()
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {"calculation_context": {"()": CalculationContextFilter}},
            "formatters": {
                "calculation": {"()": JsonFormatter, "stream_label": "calculation"},
                "audit": {"()": JsonFormatter, "stream_label": "audit"},
            },
            "handlers": {
                "calculation": _stream_handler("calculation", log_level),
                "audit": _stream_handler("audit", log_level),
            },
            "loggers": {
                "grantvest": {"handlers": ["calculation"], "level": log_level, "propagate": False},
                AUDIT_LOGGER: {"handlers": ["audit"], "level": log_level, "propagate": False},
            },
        }
    )
    logging.getLogger(__name__).debug(
        "Logging configured environment=%s level=%s", settings.environment, log_level
    )


def get_audit_logger() -> logging.Logger:
    return logging.getLogger(AUDIT_LOGGER)
