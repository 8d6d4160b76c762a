"""Automatic table-of-contents generation for rendered pages."""

from __future__ import annotations

import re
from typing import Dict, List

BEGIN_MARKER = "<!-- proton:begin:toc -->"
END_MARKER = "<!-- proton:end:toc -->"


def slugify(title: str) -> str:
    """GitBook/GitHub style heading anchor."""
    slug = title.lower()
    slug = re.sub(r"[^a-z0-9\s_-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


class TableOfContentsBuilder:
    """Builds ToC blocks from `##` headings down to `max_depth`."""

    PLACEHOLDER = "<!-- proton:toc -->"

    def __init__(self, max_depth: int = 3) -> None:
        self.max_depth = max(2, max_depth)

    def build(self, markdown: str) -> str:
        toc_block = self._build_block(markdown)
        if not toc_block:
            return markdown.replace(self.PLACEHOLDER, "", 1)
        if BEGIN_MARKER in markdown and END_MARKER in markdown:
            pre, rest = markdown.split(BEGIN_MARKER, 1)
            _, post = rest.split(END_MARKER, 1)
            return f"{pre}{toc_block}{post}"
        if self.PLACEHOLDER in markdown:
            return markdown.replace(self.PLACEHOLDER, toc_block, 1)
        return markdown

    def _build_block(self, markdown: str) -> str:
        headings: List[tuple[int, str, str]] = []
        seen: Dict[str, int] = {}
        in_code = False
        in_block = False
        for line in markdown.splitlines():
            stripped = line.strip()
            if stripped == BEGIN_MARKER:
                in_block = True
                continue
            if stripped == END_MARKER:
                in_block = False
                continue
            if in_block:
                continue
            if stripped.startswith("```"):
                in_code = not in_code
                continue
            if in_code:
                continue
            match = re.match(r"^(#{2,6})\s+(.*)$", stripped)
            if not match:
                continue
            level = len(match.group(1))
            if level > self.max_depth:
                continue
            title = match.group(2).strip()
            anchor = slugify(title)
            count = seen.get(anchor, 0)
            seen[anchor] = count + 1
            if count:
                anchor = f"{anchor}-{count}"
            headings.append((level, title, anchor))

        if not headings:
            return ""

        output: List[str] = [BEGIN_MARKER, "## Table of Contents", ""]
        for level, title, anchor in headings:
            indent = "  " * (level - 2)
            output.append(f"{indent}- [{title}](#{anchor})")
        output.append(END_MARKER)
        return "\n".join(output)


__all__ = ["BEGIN_MARKER", "END_MARKER", "TableOfContentsBuilder", "slugify"]
