"""
Strukturerad JSON-loggning för upload-quarantine.

Använder python-json-logger så att Cloud Logging kan filtrera på
hash, verdict och åtgärd utan att tolka meddelandetexten.

Varje loggpost innehåller:
  - timestamp  : ISO 8601 UTC
  - level      : DEBUG / INFO / WARNING / ERROR / CRITICAL
  - logger     : loggerns namn (t.ex. "quarantine.orchestrator")
  - message    : loggmeddelandet
  - service    : "upload-quarantine"
  - environment: från env-variabeln ENVIRONMENT (default: "production")
  - quarantine : bucket, object_name, hash, verdict och action när
                 orchestratorn skickar dem via extra={...}
"""

import logging
import logging.config
import os

from pythonjsonlogger.jsonlogger import JsonFormatter  # type: ignore[import-untyped]

QUARANTINE_FIELDS = ("bucket", "object_name", "hash", "verdict", "action")


class QuarantineJsonFormatter(JsonFormatter):
    """Samlar händelsefälten under "quarantine" och lägger till service/environment."""

    _service = "upload-quarantine"
    _environment = os.getenv("ENVIRONMENT", "production")

    def add_fields(
        self,
        log_record: dict,
        record: logging.LogRecord,
        message_dict: dict,
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["service"] = self._service
        log_record["environment"] = self._environment
        log_record["level"] = log_record.pop("levelname", record.levelname)
        log_record["logger"] = log_record.pop("name", record.name)

        event = {}
        for field in QUARANTINE_FIELDS:
            value = log_record.pop(field, None)
            if value is not None:
                event[field] = value
        if event:
            log_record["quarantine"] = event


def setup_logging(level: str | None = None) -> None:
    """
    Konfigurera root logger och quarantine-loggers med JSON-format.

    level: loggningsnivå som sträng, t.ex. "DEBUG" (default från LOG_LEVEL, annars "INFO").
    """
    log_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "handlers": {
                "json": {
                    "class": "logging.StreamHandler",
                    "formatter": "json",
                    "stream": "ext://sys.stdout",
                },
            },
            "formatters": {
                "json": {
                    "()": QuarantineJsonFormatter,
                    "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
                    "datefmt": "%Y-%m-%dT%H:%M:%S",
                    "rename_fields": {"asctime": "timestamp"},
                },
            },
            "root": {
                "handlers": ["json"],
                "level": log_level,
            },
            # Google-klienternas retry-brus hålls på WARNING
            "loggers": {
                "quarantine": {"handlers": ["json"], "level": log_level, "propagate": False},
                "google": {"handlers": ["json"], "level": "WARNING", "propagate": False},
                "urllib3": {"handlers": ["json"], "level": "WARNING", "propagate": False},
            },
        }
    )
