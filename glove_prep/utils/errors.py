# glove_prep/utils/errors.py
from __future__ import annotations
from typing import Optional


class MalformedLineError(ValueError):
    """A vocabulary line that is not exactly `<token> <unsigned int>`."""

    def __init__(self, lineno: int, line: str, reason: str = "", path: Optional[str] = None):
        self.lineno = lineno
        self.line = line
        self.reason = reason
        self.path = path
        where = f"{path}:{lineno}" if path else f"line {lineno}"
        msg = f"{where}: malformed vocabulary line {line!r}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class UsageError(ValueError):
    """Invalid or missing command-line / config arguments."""
