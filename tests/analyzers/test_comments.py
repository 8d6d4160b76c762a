"""Tests for comment grouping and doc lookup."""

from __future__ import annotations

from pathlib import Path

from protondocs.analyzers.comments import (
    CommentMap,
    collect_comment_groups,
    field_doc,
    find_doc,
    scan_file_comments,
    scan_preceding_comments,
)
from protondocs.analyzers.source_tree import parse_source


def _parse(text: str, path: Path = Path("sample.go")):
    source = text.encode("utf-8")
    return parse_source(path, source)


def _declaration(parsed, node_type: str, index: int = 0):
    return [node for node in parsed.root.named_children if node.type == node_type][index]


def test_comment_groups_split_on_blank_lines_and_code() -> None:
    parsed = _parse(
        "// Package sample does things.\n"
        "// Second line.\n"
        "package sample\n"
        "\n"
        "// Detached.\n"
        "\n"
        "// Run runs.\n"
        "func Run() {} // trailing\n"
    )
    groups = collect_comment_groups(parsed.root, parsed.source)
    assert [group.text() for group in groups] == [
        "Package sample does things.\nSecond line.",
        "Detached.",
        "Run runs.",
        "trailing",
    ]
    assert [group.own_line for group in groups] == [True, True, True, False]


def test_comment_group_text_strips_markers_and_directives() -> None:
    parsed = _parse(
        "package sample\n"
        "\n"
        "//go:generate stringer -type=Mode\n"
        "// Mode selects behaviour.\n"
        "//\n"
        "//   indented stays indented\n"
        "type Mode int\n"
    )
    spec = _declaration(parsed, "type_declaration")
    assert find_doc(parsed.comments, spec) == "Mode selects behaviour.\n\n  indented stays indented"


def test_block_comment_text() -> None:
    parsed = _parse("package sample\n\n/*\nBlock docs.\n*/\nfunc Run() {}\n")
    node = _declaration(parsed, "function_declaration")
    assert find_doc(parsed.comments, node) == "Block docs."


def test_find_doc_prefers_leading_then_enclosing_then_trailing() -> None:
    parsed = _parse(
        "package sample\n"
        "\n"
        "// Group doc.\n"
        "const (\n"
        "\t// Own doc.\n"
        "\tA = 1\n"
        "\tB = 2 // trailing doc\n"
        "\tC = 3\n"
        ")\n"
    )
    declaration = _declaration(parsed, "const_declaration")
    specs = [node for node in declaration.named_children if node.type == "const_spec"]
    assert find_doc(parsed.comments, specs[0], enclosing=declaration) == "Own doc."
    assert find_doc(parsed.comments, specs[1], enclosing=declaration) == "Group doc."
    assert find_doc(parsed.comments, specs[1]) == "trailing doc"
    assert find_doc(parsed.comments, specs[2], scan_fallback=False) == ""


def test_find_doc_scan_fallback_reads_file_from_disk(tmp_path: Path) -> None:
    path = tmp_path / "sample.go"
    text = "package sample\n\n// Run runs.\n\nfunc Run() {}\n"
    path.write_text(text, encoding="utf-8")
    parsed = _parse(text, path)
    node = _declaration(parsed, "function_declaration")
    assert find_doc(parsed.comments, node, path=path, scan_fallback=False) == ""
    assert find_doc(parsed.comments, node, path=path) == "Run runs."


def test_scan_preceding_comments_stops_at_code() -> None:
    lines = [
        "var x = 1",
        "// first",
        "",
        "/* second",
        " * third */",
        "func Run() {}",
    ]
    assert scan_preceding_comments(lines, 5) == "first second third"


def test_scan_preceding_comments_honours_limit() -> None:
    lines = [f"// line {index}" for index in range(15)] + ["func Run() {}"]
    scanned = scan_preceding_comments(lines, 15)
    assert scanned.startswith("line 5 ")
    assert scanned.endswith("line 14")
    assert "line 4" not in scanned


def test_scan_file_comments_missing_file_is_empty(tmp_path: Path) -> None:
    assert scan_file_comments(tmp_path / "missing.go", 3) == ""


def test_field_doc_prefers_leading_over_trailing() -> None:
    parsed = _parse(
        "package sample\n"
        "\n"
        "type Options struct {\n"
        "\t// Retries is the retry budget.\n"
        "\tRetries int // ignored\n"
        "\tTimeout int // seconds to wait\n"
        "\tName string\n"
        "}\n"
    )
    declaration = _declaration(parsed, "type_declaration")
    spec = declaration.named_children[0]
    struct = spec.child_by_field_name("type")
    field_list = next(child for child in struct.named_children if child.type == "field_declaration_list")
    fields = [child for child in field_list.named_children if child.type == "field_declaration"]
    comments = CommentMap(collect_comment_groups(parsed.root, parsed.source))
    assert field_doc(comments, fields[0]) == "Retries is the retry budget."
    assert field_doc(comments, fields[1]) == "seconds to wait"
    assert field_doc(comments, fields[2]) == ""
