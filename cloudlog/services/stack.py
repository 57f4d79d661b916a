"""Call stack inspection used to attribute a log line to its call site.

The formatter only depends on the :class:`FrameResolver` protocol, so tests
can hand it a scripted stack instead of the interpreter's real one.
"""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from typing import Protocol

# Matches a vendored-dependency segment in a file path or a dotted module path.
_VENDOR_RE = re.compile(r"[/.]_vendor[/.]")


@dataclass(frozen=True)
class Frame:
    """A resolved stack frame."""

    file: str
    line: int
    function: str
    package: str


class FrameResolver(Protocol):
    def resolve(self, depth: int) -> Frame | None:
        """Return the frame *depth* levels above the caller, or None past the top."""
        ...


class RuntimeFrameResolver:
    """Resolves frames from the running interpreter's call stack."""

    def resolve(self, depth: int) -> Frame | None:
        try:
            # +1 skips this method's own frame.
            frame = sys._getframe(depth + 1)
        except ValueError:
            return None
        code = frame.f_code
        return Frame(
            file=code.co_filename,
            line=frame.f_lineno,
            function=code.co_name,
            package=frame.f_globals.get("__name__", ""),
        )


def strip_vendor_path(path: str) -> str:
    """Drop everything up to and including the last ``_vendor`` segment.

    ``pip/_vendor/requests/api.py`` becomes ``requests/api.py`` and
    ``pip._vendor.requests.api`` becomes ``requests.api``.
    """
    return _VENDOR_RE.split(path)[-1]
