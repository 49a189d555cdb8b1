"""JSON logging for the billing service"""

import logging
import sys
from pythonjsonlogger import jsonlogger

from schoolfees.config import settings

# Extra fields that identify who or what a billing log line is about
CONTEXT_FIELDS = ("correlation_id", "actor_id", "invoice_id", "payment_id", "student_id", "period")

_HANDLER_NAME = "schoolfees"


class BillingJsonFormatter(jsonlogger.JsonFormatter):
    """One JSON object per line, stamped with the service and any billing context"""

    def add_fields(self, log_record: dict, record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["service"] = settings.APP_NAME
        log_record["environment"] = settings.ENVIRONMENT
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_record[field] = str(value)


def setup_logging() -> None:
    """Install the stdout handler once; calling again (tests, scripts) is a no-op."""
    root_logger = logging.getLogger()
    if any(h.get_name() == _HANDLER_NAME for h in root_logger.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    if settings.LOG_FORMAT == "json":
        handler.setFormatter(
            BillingJsonFormatter(fmt="%(asctime)s %(level)s %(name)s %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
        )
    else:
        handler.setFormatter(
            logging.Formatter(fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
        )

    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper()))
    root_logger.addHandler(handler)

    # Quiet third-party chatter
    for noisy in ("uvicorn.access", "sqlalchemy.engine", "aiosqlite"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
