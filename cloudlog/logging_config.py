"""Structured JSON logging for Google Cloud Logging integration.

Cloud Run captures structured JSON from stdout as Cloud Logging entries,
and Error Reporting picks up entries that carry a ``serviceContext`` and a
``context.reportLocation``. This module plugs :class:`Formatter` into the
standard library ``logging`` machinery.
"""

import logging
import sys
from datetime import datetime, timezone

from cloudlog.config import Settings, settings as default_settings
from cloudlog.dependencies import formatter_from_settings, get_formatter
from cloudlog.models.schemas import LogEntry
from cloudlog.services.formatter import Formatter, level_from_levelno, with_stack_skip

# Above CRITICAL; reported with severity ALERT.
PANIC = 60

# Attributes every LogRecord carries; anything else arrived through ``extra=``.
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime"}


def record_fields(record: logging.LogRecord) -> dict:
    """Return the structured fields attached to *record* via ``extra``."""
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RECORD_ATTRS and not key.startswith("_")
    }


class CloudJSONFormatter(logging.Formatter):
    """Formats log records as JSON for Cloud Logging ingestion."""

    def __init__(self, formatter: Formatter | None = None) -> None:
        super().__init__()
        if formatter is None:
            formatter = get_formatter()
        # This adapter sits between the logging module and Formatter.format,
        # so its frames must be skipped too.
        self._formatter = formatter.with_options(with_stack_skip(__name__))

    @property
    def formatter(self) -> Formatter:
        return self._formatter

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            message = f"{message}\n{record.exc_text}"
        if record.stack_info:
            message = f"{message}\n{self.formatStack(record.stack_info)}"

        entry = LogEntry(
            message=message,
            level=level_from_levelno(record.levelno),
            fields=record_fields(record),
            timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc),
        )
        # The handler appends its own line terminator.
        return self._formatter.format(entry).decode("utf-8").rstrip("\n")


def setup_logging(level: int | str | None = None, settings: Settings | None = None) -> None:
    settings = settings or default_settings
    logging.addLevelName(PANIC, "PANIC")

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(CloudJSONFormatter(formatter_from_settings(settings)))
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level if level is not None else settings.log_level)
