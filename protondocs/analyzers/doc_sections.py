"""Best-effort extraction of `Parameters:` / `Returns:` sections from doc comments.

Doc comments are prose, so this module only classifies lines:

    Does X.                 TEXT   (main description)
    Parameters:             HEADER
    - name: the thing       ITEM   (section "parameters", key "name")
    Returns:                HEADER
    - int: the count        ITEM   (section "returns", key "int")

Lookups never fail; a missing entry is an empty string.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

PARAMETERS = "parameters"
RETURNS = "returns"

_HEADERS = {
    "parameters:": PARAMETERS,
    "returns:": RETURNS,
}


class LineKind(str, Enum):
    BLANK = "blank"
    TEXT = "text"
    HEADER = "header"
    ITEM = "item"


@dataclass(frozen=True)
class DocLine:
    """One trimmed line of a doc comment and the section it belongs to."""

    kind: LineKind
    text: str
    section: Optional[str] = None
    key: str = ""
    value: str = ""
    bullet: bool = False


@dataclass(frozen=True)
class ParsedDoc:
    main: str
    lines: Tuple[DocLine, ...]

    def param(self, name: str) -> str:
        """Text documenting parameter `name`, or an empty string."""
        if not name:
            return ""
        for section in (PARAMETERS, None):
            for line in self.lines:
                if line.kind is LineKind.ITEM and line.section == section and line.key == name:
                    return line.value
        return ""

    def result(self, index: int) -> str:
        """Text of the `index`-th bullet under `Returns:`, or an empty string."""
        position = 0
        for line in self.lines:
            if line.kind is not LineKind.ITEM or line.section != RETURNS or not line.bullet:
                continue
            if position == index:
                return line.value
            position += 1
        return ""


def classify(line: str, section: Optional[str]) -> DocLine:
    """Classify one raw line given the section it appears in."""
    stripped = line.strip()
    if not stripped:
        return DocLine(LineKind.BLANK, "", section)
    header = _HEADERS.get(stripped.lower())
    if header is not None:
        return DocLine(LineKind.HEADER, stripped, header)
    bullet = stripped.startswith("- ")
    body = stripped[2:].strip() if bullet else stripped
    if ":" in body:
        key, value = body.split(":", 1)
        key = key.strip()
        if key:
            return DocLine(
                LineKind.ITEM,
                stripped,
                section,
                key=key,
                value=value.strip(),
                bullet=bullet,
            )
    return DocLine(LineKind.TEXT, stripped, section)


def parse_doc(text: str) -> ParsedDoc:
    """Split a doc comment into its main description and classified lines."""
    lines: List[DocLine] = []
    main: List[str] = []
    section: Optional[str] = None
    for raw in (text or "").splitlines():
        line = classify(raw, section)
        if line.kind is LineKind.HEADER:
            section = line.section
        elif section is None and line.kind is not LineKind.BLANK:
            main.append(line.text)
        lines.append(line)
    return ParsedDoc(main=" ".join(main), lines=tuple(lines))


def main_description(text: str) -> str:
    return parse_doc(text).main


def param_doc(text: str, name: str) -> str:
    return parse_doc(text).param(name)


def return_doc(text: str, index: int) -> str:
    return parse_doc(text).result(index)


def interface_method_doc(type_doc: str, method: str) -> str:
    """Look for a mention of `method` in an interface's own doc comment."""
    if not type_doc or not method:
        return ""
    lines = type_doc.splitlines()
    for index, raw in enumerate(lines):
        line = raw.strip()
        if method not in line:
            continue
        if " " in line:
            return line.split(" ", 1)[1].strip()
        if index + 1 < len(lines):
            following = lines[index + 1].strip()
            if following and " " not in following:
                return following
    return ""


__all__ = [
    "DocLine",
    "LineKind",
    "PARAMETERS",
    "ParsedDoc",
    "RETURNS",
    "classify",
    "interface_method_doc",
    "main_description",
    "param_doc",
    "parse_doc",
    "return_doc",
]
