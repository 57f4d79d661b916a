"""Cloud Logging / Error Reporting formatter.

Turns one :class:`LogEntry` into one newline-terminated JSON document:

* the level is mapped onto a Cloud Logging severity,
* error-level entries get a ``serviceContext`` and a
  ``context.reportLocation`` so Error Reporting can group them,
* lower levels get a ``sourceLocation`` instead,
* well-known fields (``error``, ``httpRequest``, subject id, request id,
  trace and span ids) are lifted out of ``context.data`` into their
  dedicated slots.

The call site is found by walking the stack outward until a frame belongs
to a module that is not listed in ``stack_skip``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from cloudlog.models.schemas import (
    ErrorContext,
    Level,
    LogEntry,
    LogEnvelope,
    Operation,
    ReportLocation,
    ServiceContext,
    Severity,
    SourceLocation,
)
from cloudlog.services.stack import Frame, FrameResolver, RuntimeFrameResolver, strip_vendor_path

# Process-wide defaults, read at format time unless a formatter overrides them.
DEFAULT_SUBJECT_KEY = "X-Subject-Id"
DEFAULT_OPERATION_ID_KEY = "X-Request-Id"

# OpenTracing basictracer propagation keys.
_TRACER_STATE_PREFIX = "ot-tracer-"
TRACE_ID_KEY = _TRACER_STATE_PREFIX + "traceid"
SPAN_ID_KEY = _TRACER_STATE_PREFIX + "spanid"

ERROR_KEY = "error"
HTTP_REQUEST_KEY = "httpRequest"

# The logging host's own package; its frames are never reported as the origin.
HOST_PACKAGE = "logging"

_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

_LEVEL_TO_SEVERITY: dict[Level, Severity] = {
    Level.DEBUG: Severity.DEBUG,
    Level.INFO: Severity.INFO,
    Level.WARNING: Severity.WARNING,
    Level.ERROR: Severity.ERROR,
    Level.FATAL: Severity.CRITICAL,
    Level.PANIC: Severity.ALERT,
}

_ERROR_SEVERITIES = frozenset((Severity.ERROR, Severity.CRITICAL, Severity.ALERT))

# Standard library numeric levels; 60 is the PANIC level registered by
# cloudlog.logging_config.
_LEVELNO_TO_LEVEL: dict[int, Level] = {
    10: Level.DEBUG,
    20: Level.INFO,
    30: Level.WARNING,
    40: Level.ERROR,
    50: Level.FATAL,
    60: Level.PANIC,
}


class FormatError(ValueError):
    """Raised when a log entry cannot be encoded as JSON."""


def severity_for(level: Level | None) -> Severity | None:
    """Map a level onto its severity; ``None`` means the level is unmapped."""
    if level is None:
        return None
    return _LEVEL_TO_SEVERITY[level]


def level_from_levelno(levelno: int) -> Level | None:
    return _LEVELNO_TO_LEVEL.get(levelno)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class FormatterConfig:
    """Immutable formatter settings, built once through :func:`new_formatter`."""

    service: str = ""
    version: str = ""
    stack_skip: tuple[str, ...] = (HOST_PACKAGE,)
    # Empty means "use the module-level default".
    subject_key: str = ""
    operation_id_key: str = ""
    deterministic_output: bool = False
    clock: Callable[[], datetime] = _utcnow
    frame_resolver: FrameResolver = field(default_factory=RuntimeFrameResolver)
    normalize_path: Callable[[str], str] = strip_vendor_path


Option = Callable[[FormatterConfig], FormatterConfig]


def with_service(name: str) -> Option:
    """Set the service name reported to Error Reporting."""
    return lambda cfg: replace(cfg, service=name)


def with_version(version: str) -> Option:
    """Set the service version reported to Error Reporting."""
    return lambda cfg: replace(cfg, version=version)


def with_stack_skip(package: str) -> Option:
    """Skip *package* (and its submodules) when locating the call site."""

    def apply(cfg: FormatterConfig) -> FormatterConfig:
        if package in cfg.stack_skip:
            return cfg
        return replace(cfg, stack_skip=cfg.stack_skip + (package,))

    return apply


def with_subject_key(key: str) -> Option:
    return lambda cfg: replace(cfg, subject_key=key)


def with_operation_id_key(key: str) -> Option:
    return lambda cfg: replace(cfg, operation_id_key=key)


def with_deterministic_output(enabled: bool = True) -> Option:
    """Leave out the timestamp so output is stable across runs."""
    return lambda cfg: replace(cfg, deterministic_output=enabled)


def with_clock(clock: Callable[[], datetime]) -> Option:
    return lambda cfg: replace(cfg, clock=clock)


def with_frame_resolver(resolver: FrameResolver) -> Option:
    return lambda cfg: replace(cfg, frame_resolver=resolver)


def with_path_normalizer(normalize: Callable[[str], str]) -> Option:
    """Replace the rewrite applied to module and file paths of stack frames."""
    return lambda cfg: replace(cfg, normalize_path=normalize)


def new_formatter(*options: Option) -> Formatter:
    """Build a :class:`Formatter` from the given options."""
    cfg = FormatterConfig()
    for option in options:
        cfg = option(cfg)
    return Formatter(cfg)


def _string_field(data: Mapping[str, Any], key: str) -> str:
    """Return ``data[key]`` if it is a string, else an empty string."""
    value = data.get(key)
    return value if isinstance(value, str) else ""


def _is_string_mapping(value: Any) -> bool:
    return isinstance(value, Mapping) and all(isinstance(k, str) for k in value)


class Formatter:
    """Formats log entries for Cloud Logging and Error Reporting.

    Instances are immutable and safe to share between threads.
    """

    def __init__(self, config: FormatterConfig | None = None) -> None:
        self._config = config or FormatterConfig()

    @property
    def config(self) -> FormatterConfig:
        return self._config

    def with_options(self, *options: Option) -> Formatter:
        """Return a new formatter with *options* applied on top of this one's config."""
        cfg = self._config
        for option in options:
            cfg = option(cfg)
        return Formatter(cfg)

    def _skipped(self, package: str) -> bool:
        for prefix in self._config.stack_skip:
            if package == prefix or package.startswith(prefix + "."):
                return True
        return False

    def _error_origin(self) -> Frame | None:
        """Return the first frame outside ``stack_skip``, or None if the stack runs out."""
        resolver = self._config.frame_resolver
        normalize = self._config.normalize_path
        # Start at 2 to skip this call and our caller's call.
        depth = 2
        while True:
            frame = resolver.resolve(depth)
            if frame is None:
                return None
            package = normalize(frame.package)
            if not self._skipped(package):
                return replace(frame, file=normalize(frame.file), package=package)
            depth += 1

    def format(self, entry: LogEntry) -> bytes:
        """Encode *entry* as a single JSON line.

        Raises :class:`FormatError` if the entry holds values that cannot be
        represented as JSON.
        """
        cfg = self._config
        severity = severity_for(entry.level)
        message = entry.message
        # Work on a copy; the caller's field map is left as it was.
        data = dict(entry.fields)

        timestamp = None
        if not cfg.deterministic_output:
            timestamp = cfg.clock().astimezone(timezone.utc).strftime(_TIMESTAMP_FORMAT)

        service_context = None
        report_location = None
        source_location = None
        http_request = None
        user = ""

        if severity in _ERROR_SEVERITIES:
            if cfg.service or cfg.version:
                service_context = ServiceContext(
                    service=cfg.service or None,
                    version=cfg.version or None,
                )

            # Error Reporting expects the error as part of the message.
            if ERROR_KEY in data:
                message = f"{message}: {data.pop(ERROR_KEY)}"

            if _is_string_mapping(data.get(HTTP_REQUEST_KEY)):
                http_request = dict(data.pop(HTTP_REQUEST_KEY)) or None

            subject_key = cfg.subject_key or DEFAULT_SUBJECT_KEY
            user = _string_field(data, subject_key)
            if user:
                del data[subject_key]

            origin = self._error_origin()
            if origin is not None:
                report_location = ReportLocation(
                    file_path=origin.file or None,
                    line_number=origin.line or None,
                    function_name=origin.function or None,
                )
        else:
            origin = self._error_origin()
            if origin is not None:
                source_location = SourceLocation(
                    file=origin.file or None,
                    line=str(origin.line) if origin.line else None,
                    function=origin.function or None,
                )

        operation = None
        operation_key = cfg.operation_id_key or DEFAULT_OPERATION_ID_KEY
        operation_id = _string_field(data, operation_key)
        if operation_id:
            operation = Operation(id=operation_id)
            del data[operation_key]

        trace = _string_field(data, TRACE_ID_KEY)
        if trace:
            del data[TRACE_ID_KEY]
        span_id = _string_field(data, SPAN_ID_KEY)
        if span_id:
            del data[SPAN_ID_KEY]

        try:
            context = None
            if data or report_location or http_request or user:
                context = ErrorContext(
                    data=data or None,
                    report_location=report_location,
                    http_request=http_request,
                    user=user or None,
                )
            envelope = LogEnvelope(
                timestamp=timestamp,
                service_context=service_context,
                message=message or None,
                severity=severity,
                context=context,
                trace=trace or None,
                span_id=span_id or None,
                source_location=source_location,
                operation=operation,
            )
            # json.dumps must see the raw floats so NaN and Infinity are rejected.
            payload = envelope.model_dump(by_alias=True, exclude_none=True)
            encoded = json.dumps(payload, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
        except (TypeError, ValueError) as exc:
            raise FormatError(f"cannot encode log entry: {exc}") from exc

        return encoded.encode("utf-8") + b"\n"
