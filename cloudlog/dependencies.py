"""Process-wide formatter instance built from the environment settings.

Provides a lazily-initialized, shared :class:`Formatter` that the logging
adapter and the request middleware pick up when none is passed explicitly.
"""

import logging

from cloudlog.config import Settings, settings
from cloudlog.services.formatter import (
    Formatter,
    Option,
    new_formatter,
    with_deterministic_output,
    with_operation_id_key,
    with_service,
    with_stack_skip,
    with_subject_key,
    with_version,
)

logger = logging.getLogger(__name__)

_formatter: Formatter | None = None


def formatter_options(cfg: Settings) -> list[Option]:
    """Translate settings into formatter options."""
    options: list[Option] = [
        with_service(cfg.service_name),
        with_version(cfg.service_version),
        with_deterministic_output(cfg.deterministic_output),
    ]
    options.extend(with_stack_skip(package) for package in cfg.stack_skip)
    if cfg.subject_key:
        options.append(with_subject_key(cfg.subject_key))
    if cfg.operation_id_key:
        options.append(with_operation_id_key(cfg.operation_id_key))
    return options


def formatter_from_settings(cfg: Settings) -> Formatter:
    return new_formatter(*formatter_options(cfg))


def get_formatter() -> Formatter:
    global _formatter
    if _formatter is None:
        _formatter = formatter_from_settings(settings)
        logger.debug(
            "Initialized Formatter (service=%s, version=%s)",
            settings.service_name or "-",
            settings.service_version or "-",
        )
    return _formatter
