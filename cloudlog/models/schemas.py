"""Data shapes for log entries and the Cloud Logging JSON envelope.

Every optional envelope field defaults to ``None`` and the envelope is
dumped with ``exclude_none=True``, so a field left unset never shows up as
a JSON key.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Level(str, Enum):
    """Log levels understood by the formatter, lowest first."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    FATAL = "fatal"
    PANIC = "panic"


class Severity(str, Enum):
    """Cloud Logging severity literals."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"
    ALERT = "ALERT"


class LogEntry(BaseModel):
    """One log record as handed over by the logging host.

    ``timestamp`` is informational: the formatter stamps entries from its
    own clock and never reads it.
    """

    message: str = ""
    level: Level | None = None
    fields: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime | None = None

    @field_validator("level", mode="before")
    @classmethod
    def _unmapped_level(cls, v: Any) -> Any:
        if isinstance(v, Level) or v is None:
            return v
        try:
            return Level(v)
        except ValueError:
            return None


class ServiceContext(BaseModel):
    service: str | None = None
    version: str | None = None


class ReportLocation(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_path: str | None = Field(default=None, alias="filePath")
    line_number: int | None = Field(default=None, alias="lineNumber")
    function_name: str | None = Field(default=None, alias="functionName")


class SourceLocation(BaseModel):
    file: str | None = None
    # Cloud Logging expects the line as a string here, unlike ReportLocation.
    line: str | None = None
    function: str | None = None


class Operation(BaseModel):
    id: str | None = None
    producer: str | None = None
    first: bool | None = None
    last: bool | None = None


class ErrorContext(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    data: dict[str, Any] | None = None
    report_location: ReportLocation | None = Field(default=None, alias="reportLocation")
    http_request: dict[str, Any] | None = Field(default=None, alias="httpRequest")
    user: str | None = None


class LogEnvelope(BaseModel):
    """The JSON document written for a single log line."""

    model_config = ConfigDict(populate_by_name=True)

    timestamp: str | None = None
    service_context: ServiceContext | None = Field(default=None, alias="serviceContext")
    message: str | None = None
    severity: Severity | None = None
    context: ErrorContext | None = None
    trace: str | None = Field(default=None, alias="logging.googleapis.com/trace")
    span_id: str | None = Field(default=None, alias="logging.googleapis.com/span_id")
    source_location: SourceLocation | None = Field(default=None, alias="sourceLocation")
    operation: Operation | None = None
