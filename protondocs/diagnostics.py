"""Collects non-fatal anomalies raised while documenting a project."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List

from .logging import get_logger

SYMBOL_NOT_FOUND = "symbol-not-found"
PARSE_FAILED = "parse-failed"
MISSING_DIRECTORY = "missing-directory"


@dataclass(frozen=True)
class Diagnostic:
    """A single warning with the subject (path or symbol) it refers to."""

    code: str
    subject: str
    message: str


class Diagnostics:
    """Warning sink shared by the discovery pipeline and the generator.

    Entries are kept in emission order so callers and tests can assert on
    them; every entry is also logged at WARNING level.
    """

    def __init__(self) -> None:
        self._entries: List[Diagnostic] = []
        self._logger = get_logger("diagnostics")

    def warn(self, code: str, subject: str, message: str) -> Diagnostic:
        entry = Diagnostic(code=code, subject=subject, message=message)
        self._entries.append(entry)
        self._logger.warning("%s", message)
        return entry

    @property
    def entries(self) -> List[Diagnostic]:
        return list(self._entries)

    def by_code(self, code: str) -> List[Diagnostic]:
        return [entry for entry in self._entries if entry.code == code]

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)


__all__ = [
    "Diagnostic",
    "Diagnostics",
    "MISSING_DIRECTORY",
    "PARSE_FAILED",
    "SYMBOL_NOT_FOUND",
]
