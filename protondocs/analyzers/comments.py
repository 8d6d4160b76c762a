"""Associates Go comments with the declarations they document."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from tree_sitter import Node

_DIRECTIVE = re.compile(r"^(line |extern |export |[a-z0-9]+:[a-z0-9])")

SCAN_LIMIT = 10


@dataclass(frozen=True)
class Comment:
    """A single `//` or `/* */` comment token."""

    raw: str
    start_row: int
    end_row: int
    start_col: int
    own_line: bool


@dataclass(frozen=True)
class CommentGroup:
    """Adjacent comments with no code or blank line between them."""

    comments: Tuple[Comment, ...]

    @property
    def start_row(self) -> int:
        return self.comments[0].start_row

    @property
    def end_row(self) -> int:
        return self.comments[-1].end_row

    @property
    def own_line(self) -> bool:
        return self.comments[0].own_line

    def text(self) -> str:
        """Return the comment text the way `go doc` presents it."""
        lines: List[str] = []
        for comment in self.comments:
            raw = comment.raw
            if raw.startswith("//"):
                body = raw[2:]
                if body.startswith(" "):
                    body = body[1:]
                elif body and _DIRECTIVE.match(body):
                    continue
            else:
                body = raw[2:-2]
            lines.extend(line.rstrip() for line in body.split("\n"))

        cleaned: List[str] = []
        for line in lines:
            if line or (cleaned and cleaned[-1]):
                cleaned.append(line)
        while cleaned and not cleaned[-1]:
            cleaned.pop()
        return "\n".join(cleaned)

    def flat_text(self) -> str:
        """Return the comment text with every line trimmed and joined by spaces."""
        return " ".join(line.strip() for line in self.text().splitlines() if line.strip())


def _iter_comment_nodes(node: Node) -> Iterator[Node]:
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type == "comment":
            yield current
            continue
        stack.extend(reversed(current.children))


def _starts_own_line(source: bytes, start_byte: int) -> bool:
    line_start = source.rfind(b"\n", 0, start_byte) + 1
    return not source[line_start:start_byte].strip()


def collect_comment_groups(root: Node, source: bytes) -> List[CommentGroup]:
    """Group every comment in a file the way go/parser does.

    Own-line comments on consecutive lines form one group. A comment that
    follows code on the same line opens a trailing group which only absorbs
    further comments from that same line.
    """
    comments = sorted(_iter_comment_nodes(root), key=lambda node: node.start_byte)
    groups: List[CommentGroup] = []
    current: List[Comment] = []
    for node in comments:
        comment = Comment(
            raw=source[node.start_byte : node.end_byte].decode("utf-8", errors="replace"),
            start_row=node.start_point[0],
            end_row=node.end_point[0],
            start_col=node.start_point[1],
            own_line=_starts_own_line(source, node.start_byte),
        )
        if current:
            previous = current[-1]
            same_line = comment.start_row == previous.end_row
            adjacent = (
                comment.own_line
                and current[0].own_line
                and comment.start_row <= previous.end_row + 1
            )
            if same_line or adjacent:
                current.append(comment)
                continue
            groups.append(CommentGroup(tuple(current)))
        current = [comment]
    if current:
        groups.append(CommentGroup(tuple(current)))
    return groups


class CommentMap:
    """Positional lookup of leading and trailing comment groups in one file."""

    def __init__(self, groups: Sequence[CommentGroup]) -> None:
        self.groups = tuple(groups)
        self._leading: Dict[int, CommentGroup] = {}
        self._trailing: Dict[int, List[CommentGroup]] = {}
        for group in self.groups:
            if group.own_line:
                self._leading[group.end_row] = group
            else:
                self._trailing.setdefault(group.start_row, []).append(group)

    def leading(self, node: Node) -> Optional[CommentGroup]:
        """Comment group ending on the line directly above `node`."""
        return self._leading.get(node.start_point[0] - 1)

    def trailing(self, node: Node) -> Optional[CommentGroup]:
        """Comment group starting after `node` on the line where it ends."""
        row, column = node.end_point
        for group in self._trailing.get(row, ()):
            if group.comments[0].start_col >= column:
                return group
        return None


def scan_preceding_comments(lines: Sequence[str], line_index: int, limit: int = SCAN_LIMIT) -> str:
    """Collect comment lines above `line_index` from raw source lines.

    Walks upward over at most `limit` non-blank lines and stops at the first
    line that is not part of a comment. Text is returned top-to-bottom,
    joined by spaces.
    """
    collected: List[str] = []
    seen = 0
    in_block = False
    index = min(line_index, len(lines)) - 1
    while index >= 0 and seen < limit:
        stripped = lines[index].strip()
        index -= 1
        if not stripped:
            continue
        seen += 1
        if in_block:
            text = stripped
            if text.startswith("/*"):
                text = text[2:]
                in_block = False
            text = text.lstrip("*").strip()
        elif stripped.startswith("//"):
            text = stripped[2:].strip()
        elif stripped.startswith("/*"):
            text = stripped[2:].removesuffix("*/").strip()
        elif stripped.endswith("*/"):
            text = stripped[:-2].lstrip("*").strip()
            in_block = True
        else:
            break
        if text:
            collected.insert(0, text)
    return " ".join(collected)


def scan_file_comments(path: Path, line_index: int, limit: int = SCAN_LIMIT) -> str:
    """Read `path` from disk and scan for comments above `line_index`."""
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError):
        return ""
    return scan_preceding_comments(lines, line_index, limit)


def find_doc(
    comments: CommentMap,
    node: Node,
    *,
    enclosing: Optional[Node] = None,
    path: Optional[Path] = None,
    scan_fallback: bool = True,
) -> str:
    """Return the best available documentation for a declaration node.

    Order: comment above the node, comment above the enclosing grouped
    declaration, trailing comment on the node's last line, and finally a raw
    scan of the file on disk when `scan_fallback` is set.
    """
    for group in (
        comments.leading(node),
        comments.leading(enclosing) if enclosing is not None else None,
        comments.trailing(node),
    ):
        if group is not None:
            text = group.text()
            if text:
                return text
    if scan_fallback and path is not None:
        return scan_file_comments(path, node.start_point[0])
    return ""


def field_doc(comments: CommentMap, node: Node) -> str:
    """Leading comment of a field or interface element, else its trailing comment."""
    for group in (comments.leading(node), comments.trailing(node)):
        if group is not None:
            text = group.flat_text()
            if text:
                return text
    return ""


__all__ = [
    "Comment",
    "CommentGroup",
    "CommentMap",
    "SCAN_LIMIT",
    "collect_comment_groups",
    "field_doc",
    "find_doc",
    "scan_file_comments",
    "scan_preceding_comments",
]
