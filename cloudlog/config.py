"""Formatter configuration loaded from environment variables.

Uses a frozen dataclass for immutable, type-safe settings with validation.
Nothing here reads files; every value comes from the process environment.
"""

import os
from dataclasses import dataclass

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL", "PANIC")


def _parse_bool(value: str) -> bool:
    """Parse a boolean from an environment string, accepting common truthy values."""
    return value.strip().lower() in ("true", "1", "yes")


def _parse_list(value: str) -> tuple:
    """Split a comma-separated environment value, dropping blanks."""
    return tuple(part.strip() for part in value.split(",") if part.strip())


@dataclass(frozen=True)
class Settings:
    """Immutable logging settings populated from environment variables."""

    # Error Reporting service context
    service_name: str = ""
    service_version: str = ""

    # Extra module prefixes skipped when locating the log call site.
    stack_skip: tuple = ()

    # Well-known field keys; empty means the formatter defaults apply.
    subject_key: str = ""
    operation_id_key: str = ""

    # Omit timestamps (stable output for examples and tests).
    deterministic_output: bool = False

    # Used to qualify trace ids as projects/<id>/traces/<trace>.
    gcp_project_id: str = ""

    log_level: str = "INFO"

    def __post_init__(self) -> None:
        """Validate settings after initialisation."""
        if self.log_level not in _LOG_LEVELS:
            object.__setattr__(self, "log_level", "INFO")

    @classmethod
    def load(cls) -> "Settings":
        """Create a Settings instance from the current environment variables."""
        return cls(
            service_name=os.environ.get("LOG_SERVICE_NAME", ""),
            service_version=os.environ.get("LOG_SERVICE_VERSION", ""),
            stack_skip=_parse_list(os.environ.get("LOG_STACK_SKIP", "")),
            subject_key=os.environ.get("LOG_SUBJECT_KEY", ""),
            operation_id_key=os.environ.get("LOG_OPERATION_ID_KEY", ""),
            deterministic_output=_parse_bool(os.environ.get("LOG_DETERMINISTIC", "false")),
            gcp_project_id=os.environ.get("GCP_PROJECT_ID", ""),
            log_level=os.environ.get("LOG_LEVEL", "INFO").strip().upper(),
        )


settings = Settings.load()
