import logging

import pytest

from cloudlog.services.formatter import (
    new_formatter,
    with_clock,
    with_frame_resolver,
    with_service,
    with_version,
)
from scripted import FIXED_NOW, SCRIPTED_STACK, ScriptedResolver


@pytest.fixture
def resolver():
    return ScriptedResolver(SCRIPTED_STACK)


@pytest.fixture
def formatter(resolver):
    return new_formatter(
        with_service("test"),
        with_version("0.1"),
        with_clock(lambda: FIXED_NOW),
        with_frame_resolver(resolver),
    )


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
