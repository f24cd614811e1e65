"""
Structured logging for the booking core.

Staging and production emit JSON lines; development emits plain lines.
Booking identifiers passed through ``extra`` (reservation, amenity, user,
status) are grouped under one ``booking`` key in JSON and appended as
``key=value`` pairs in plain lines. Every JSON line carries the building's
local wall-clock time next to the UTC timestamp, since operating hours and
same-day rules are evaluated in local time.
"""
import logging
import sys
from datetime import datetime
from typing import Any, Dict, Optional

import pytz
from pythonjsonlogger import jsonlogger

from core.config import Settings, get_settings
from core.utils_datetime import TimeZoneNormalizer


BOOKING_FIELDS = ("reservation_id", "amenity_id", "user_id", "status", "reason", "kind")

# Per-slot and per-rule debug output stays quiet outside development
CHATTY_LOGGERS = (
    "services.availability",
    "services.approval_policy",
    "services.booking_validator",
)


def _booking_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        key: getattr(record, key)
        for key in BOOKING_FIELDS
        if getattr(record, key, None) is not None
    }


class BookingJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that groups booking identifiers and adds local time."""

    def __init__(self, *args: Any, settings: Settings, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.app_name = settings.app_name
        self.environment = settings.app_env
        self.normalizer = TimeZoneNormalizer(offset_minutes=settings.local_utc_offset_minutes)

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any]
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        created = datetime.fromtimestamp(record.created, tz=pytz.utc)
        log_record['timestamp'] = created.isoformat()
        log_record['local_time'] = self.normalizer.to_local(created).isoformat()
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['app_name'] = self.app_name
        log_record['environment'] = self.environment

        booking = _booking_fields(record)
        for key in BOOKING_FIELDS:
            log_record.pop(key, None)
        if booking:
            log_record['booking'] = booking


class BookingTextFormatter(logging.Formatter):
    """Plain formatter that appends booking identifiers as key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        booking = _booking_fields(record)
        if not booking:
            return line
        pairs = " ".join(f"{key}={value}" for key, value in booking.items())
        return f"{line} [{pairs}]"


def build_formatter(settings: Settings) -> logging.Formatter:
    if settings.app_env in settings.json_log_environments:
        return BookingJsonFormatter(
            fmt='%(timestamp)s %(level)s %(name)s %(message)s',
            settings=settings,
        )
    return BookingTextFormatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def setup_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure the root logger for the booking core.

    Args:
        settings: Settings to read level, environment and local offset from
            (defaults to the singleton)
    """
    settings = settings or get_settings()
    formatter = build_formatter(settings)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    chatty_level = logging.NOTSET if settings.is_development else logging.INFO
    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(chatty_level)

    logging.info(
        f"Logging configured for {settings.app_name} "
        f"(local offset {settings.local_utc_offset_minutes} min)",
        extra={
            "log_level": settings.log_level,
            "environment": settings.app_env,
            "json_logging": isinstance(formatter, BookingJsonFormatter)
        }
    )


class BookingLogContext:
    """
    Carries booking identifiers across the log lines of one operation.

    Identifiers can be added as they become known (``bind``), e.g. the
    reservation id once a record is built. An exception leaving the block is
    logged with the identifiers and then propagates.
    """

    def __init__(self, logger: logging.Logger, **fields: Any):
        self.logger = logger
        self.fields: Dict[str, Any] = {}
        self.bind(**fields)

    def bind(self, **fields: Any) -> 'BookingLogContext':
        self.fields.update({key: value for key, value in fields.items() if value is not None})
        return self

    def __enter__(self) -> 'BookingLogContext':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is not None:
            self.logger.error(
                f"Booking operation failed: {exc_type.__name__}",
                extra=dict(self.fields),
                exc_info=(exc_type, exc_val, exc_tb)
            )

    def info(self, message: str, **fields: Any) -> None:
        self.logger.info(message, extra={**self.fields, **fields})

    def warning(self, message: str, **fields: Any) -> None:
        self.logger.warning(message, extra={**self.fields, **fields})
