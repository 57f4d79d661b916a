import pytest
from pydantic import ValidationError

from cloudlog.models.schemas import (
    ErrorContext, Level, LogEntry, LogEnvelope, Operation, ReportLocation,
    ServiceContext, Severity, SourceLocation,
)


class TestLevel:
    def test_level_values(self):
        assert [level.value for level in Level] == [
            "debug", "info", "warning", "error", "fatal", "panic",
        ]

    def test_severity_values(self):
        assert [severity.value for severity in Severity] == [
            "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL", "ALERT",
        ]


class TestLogEntry:
    def test_defaults(self):
        entry = LogEntry()
        assert entry.message == ""
        assert entry.level is None
        assert entry.fields == {}
        assert entry.timestamp is None

    def test_level_from_string(self):
        assert LogEntry(level="warning").level is Level.WARNING

    def test_unknown_level_is_unmapped(self):
        assert LogEntry(level="verbose").level is None
        assert LogEntry(level=25).level is None

    def test_fields_keep_arbitrary_values(self):
        err = RuntimeError("boom")
        entry = LogEntry(fields={"error": err})
        assert entry.fields["error"] is err

    def test_non_string_message_raises_error(self):
        with pytest.raises(ValidationError):
            LogEntry(message=["not", "a", "message"])


class TestEnvelope:
    def test_empty_envelope_dumps_nothing(self):
        assert LogEnvelope().model_dump(by_alias=True, exclude_none=True) == {}

    def test_aliases(self):
        env = LogEnvelope(
            service_context=ServiceContext(service="svc"),
            trace="t",
            span_id="s",
            source_location=SourceLocation(file="a.py", line="3", function="f"),
            context=ErrorContext(
                report_location=ReportLocation(file_path="a.py", line_number=3, function_name="f"),
                http_request={"requestMethod": "GET"},
            ),
        )
        dumped = env.model_dump(mode="json", by_alias=True, exclude_none=True)
        assert dumped == {
            "serviceContext": {"service": "svc"},
            "context": {
                "reportLocation": {"filePath": "a.py", "lineNumber": 3, "functionName": "f"},
                "httpRequest": {"requestMethod": "GET"},
            },
            "logging.googleapis.com/trace": "t",
            "logging.googleapis.com/span_id": "s",
            "sourceLocation": {"file": "a.py", "line": "3", "function": "f"},
        }

    def test_operation_flags_kept_when_false(self):
        op = Operation(id="op", first=False)
        assert op.model_dump(exclude_none=True) == {"id": "op", "first": False}

    def test_severity_serialized_as_string(self):
        env = LogEnvelope(severity=Severity.CRITICAL)
        assert env.model_dump(mode="json", exclude_none=True) == {"severity": "CRITICAL"}
