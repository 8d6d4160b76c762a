"""Tests for table-of-contents generation."""

from __future__ import annotations

from protondocs.postproc.toc import BEGIN_MARKER, END_MARKER, TableOfContentsBuilder, slugify


def test_table_of_contents_builder_fills_placeholder() -> None:
    md = "# widgets\n\n<!-- proton:toc -->\n\n## Types\n\n### Widget\n\n#### Widget.Render\n"
    result = TableOfContentsBuilder().build(md)
    assert "## Table of Contents" in result
    assert "- [Types](#types)" in result
    assert "  - [Widget](#widget)" in result
    assert "Widget.Render](#" not in result
    assert TableOfContentsBuilder.PLACEHOLDER not in result
    assert result.count(BEGIN_MARKER) == 1
    assert END_MARKER in result


def test_table_of_contents_depth_is_configurable() -> None:
    md = "<!-- proton:toc -->\n## Types\n### Widget\n#### Widget.Render\n"
    result = TableOfContentsBuilder(max_depth=4).build(md)
    assert "    - [Widget.Render](#widgetrender)" in result
    shallow = TableOfContentsBuilder(max_depth=1).build(md)
    assert "  - [Widget](#widget)" not in shallow
    assert "- [Types](#types)" in shallow


def test_table_of_contents_deduplicates_anchors() -> None:
    md = "<!-- proton:toc -->\n## Example\n## Example\n"
    result = TableOfContentsBuilder().build(md)
    assert "- [Example](#example)" in result
    assert "- [Example](#example-1)" in result


def test_table_of_contents_skips_code_fences() -> None:
    md = "<!-- proton:toc -->\n## Real\n\n```go\n## not a heading\n```\n"
    result = TableOfContentsBuilder().build(md)
    assert "not a heading](#" not in result


def test_table_of_contents_replaces_existing_block() -> None:
    md = f"# Title\n\n{BEGIN_MARKER}\n## Table of Contents\n- [Old](#old)\n{END_MARKER}\n\n## Alpha\n"
    result = TableOfContentsBuilder().build(md)
    assert "- [Old](#old)" not in result
    assert "- [Alpha](#alpha)" in result
    assert result.count(BEGIN_MARKER) == 1


def test_table_of_contents_without_headings_drops_placeholder() -> None:
    md = "# Title\n\n<!-- proton:toc -->\n\nText only.\n"
    assert TableOfContentsBuilder().build(md) == "# Title\n\n\n\nText only.\n"


def test_slugify() -> None:
    assert slugify("Widget.Render") == "widgetrender"
    assert slugify("Build & Test") == "build-test"
    assert slugify("snake_case Name") == "snake_case-name"
