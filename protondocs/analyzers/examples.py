"""Extraction of runnable `ExampleXxx` functions from Go test files."""

from __future__ import annotations

import re
import textwrap
from typing import Iterable, List, Optional, Tuple

from tree_sitter import Node

from ..models import Example
from .comments import CommentGroup, find_doc
from .source_tree import FuncEntry, SourceTree, is_test_file

EXAMPLE_PREFIX = "Example"

_OUTPUT_PREFIX = re.compile(r"(?i)^\s*(unordered )?output:")


def is_example_name(name: str) -> bool:
    """`Example`, `ExampleFoo`, `Example_foo`, but not `Examplefoo`."""
    if not name.startswith(EXAMPLE_PREFIX):
        return False
    rest = name[len(EXAMPLE_PREFIX):]
    return not rest or not rest[0].islower()


def _is_runnable_shape(node: Node) -> bool:
    if node.child_by_field_name("type_parameters") is not None:
        return False
    if node.child_by_field_name("result") is not None:
        return False
    parameters = node.child_by_field_name("parameters")
    return parameters is None or not parameters.named_children


def _last_body_comment(entry: FuncEntry, body: Node) -> Optional[CommentGroup]:
    first_row, last_row = body.start_point[0], body.end_point[0]
    last = None
    for group in entry.file.comments.groups:
        if group.start_row > first_row and group.end_row < last_row and group.own_line:
            last = group
    return last


def parse_output(group: Optional[CommentGroup]) -> Tuple[str, bool, bool]:
    """Return `(output, unordered, found)` for the final comment of an example."""
    if group is None:
        return "", False, False
    text = group.text()
    match = _OUTPUT_PREFIX.match(text)
    if match is None:
        return "", False, False
    output = text[match.end():].lstrip(" ")
    if output.startswith("\n"):
        output = output[1:]
    return output, match.group(1) is not None, True


def _example_code(entry: FuncEntry, body: Node, skip: Optional[CommentGroup]) -> str:
    lines = entry.file.text(body).split("\n")
    first_row = body.start_point[0]
    kept: List[str] = []
    for offset, line in enumerate(lines[1:-1], start=1):
        row = first_row + offset
        if skip is not None and skip.start_row <= row <= skip.end_row:
            continue
        kept.append(line)
    return textwrap.dedent("\n".join(kept)).strip("\n")


def extract_example(entry: FuncEntry, scan_fallback: bool = False) -> Optional[Example]:
    """Build an `Example` from a function entry, or None if it is not one."""
    if entry.receiver or not is_example_name(entry.name) or not is_test_file(entry.file.name):
        return None
    node = entry.node
    if not _is_runnable_shape(node):
        return None
    body = node.child_by_field_name("body")
    if body is None:
        return None
    last = _last_body_comment(entry, body)
    output, unordered, found = parse_output(last)
    return Example(
        name=entry.name[len(EXAMPLE_PREFIX):],
        function=entry.name,
        doc=find_doc(entry.file.comments, node, path=entry.file.path, scan_fallback=scan_fallback),
        code=_example_code(entry, body, last if found else None),
        output=output,
        unordered=unordered,
        empty_output=found and not output,
    )


def extract_examples(trees: Iterable[SourceTree], scan_fallback: bool = False) -> List[Example]:
    """Collect runnable examples from every package group of a directory, sorted by name."""
    examples = {}
    for tree in trees:
        for entry in tree.index.functions.values():
            example = extract_example(entry, scan_fallback)
            if example is not None:
                examples.setdefault(example.function, example)
    return [examples[key] for key in sorted(examples)]


__all__ = [
    "EXAMPLE_PREFIX",
    "extract_example",
    "extract_examples",
    "is_example_name",
    "parse_output",
]
