"""Package discovery: walks a Go project and builds `PackageSummary` records."""

from __future__ import annotations

import os
import re
from dataclasses import replace
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..config import APIGenerationConfig, ManualPackage, PackagesConfig, ProtonConfig
from ..diagnostics import PARSE_FAILED, Diagnostics
from ..logging import get_logger
from ..models import Example, PackageSummary, ValueGroup
from .comments import find_doc
from .enhancer import INDENT, SymbolEnhancer
from .examples import extract_examples
from .source_tree import (
    SourceParseError,
    SourceTree,
    ValueEntry,
    is_exported,
    is_test_file,
    parse_directory,
)

_SKIPPED_DIRS = {"vendor", "testdata", "node_modules"}
_TEST_DIRS = {"test"}
_GLOB_CHARS = ("*", "?", "[")

CATEGORY_INTERNAL = "internal"
CATEGORY_COMMANDS = "commands"
CATEGORY_TEST = "test"
CATEGORY_MAIN = "main"
CATEGORY_API = "api"


class DiscoveryError(RuntimeError):
    """Raised when the project or a manually configured package cannot be documented."""


def _strip_dot_slash(pattern: str) -> str:
    pattern = pattern.strip()
    while pattern.startswith("./"):
        pattern = pattern[2:]
    return pattern


def _pattern_regex(pattern: str) -> "re.Pattern[str]":
    pieces = []
    for piece in pattern.split("..."):
        escaped = re.escape(piece).replace(r"\*", "[^/]*").replace(r"\?", "[^/]")
        pieces.append(escaped)
    return re.compile(".*".join(pieces))


def pattern_matches(pattern: str, rel_path: str) -> bool:
    """Match a package pattern (`./...`, `./pkg/...`, `./pkg`, globs) against a relative path."""
    cleaned = _strip_dot_slash(pattern).rstrip("/")
    if cleaned in {"", "."}:
        return rel_path == "."
    if cleaned == "...":
        return True
    if cleaned.endswith("/...") and rel_path == cleaned[: -len("/...")]:
        return True
    return _pattern_regex(cleaned).fullmatch(rel_path) is not None


def loose_fragment(pattern: str) -> str:
    """Pattern with `./`, `...`, `*`, `?` and surrounding slashes removed."""
    fragment = _strip_dot_slash(pattern)
    for token in ("...", "*", "?"):
        fragment = fragment.replace(token, "")
    return fragment.strip("/")


def is_excluded(rel_path: str, patterns: Iterable[str]) -> bool:
    """True when `rel_path` matches an exclude pattern or contains its literal fragment.

    The substring rule is intentionally loose: `./test/...` also excludes
    `latest/`.
    """
    for pattern in patterns:
        if not pattern.strip():
            continue
        if fnmatchcase(rel_path, pattern) or pattern_matches(pattern, rel_path):
            return True
        fragment = loose_fragment(pattern)
        if fragment and fragment in rel_path:
            return True
    return False


def is_included(rel_path: str, patterns: Sequence[str]) -> bool:
    """True when any include pattern admits `rel_path`; an empty list admits everything."""
    if not patterns:
        return True
    for pattern in patterns:
        if pattern_matches(pattern, rel_path):
            return True
        if any(char in pattern for char in _GLOB_CHARS) and fnmatchcase(rel_path, _strip_dot_slash(pattern)):
            return True
    return False


def synopsis(doc: str) -> str:
    """First sentence of a package doc; a period after an uppercase letter does not end it."""
    text = " ".join(doc.split())
    for index, char in enumerate(text):
        if char != ".":
            continue
        at_end = index + 1 == len(text)
        if (at_end or text[index + 1] == " ") and not (index > 0 and text[index - 1].isupper()):
            return text[: index + 1]
    return text


def package_category(summary: PackageSummary) -> str:
    """Navigation category of a package, derived from its path and name."""
    segments = [segment for segment in summary.rel_path.split("/") if segment]
    if CATEGORY_INTERNAL in segments:
        return CATEGORY_INTERNAL
    if "cmd" in segments:
        return CATEGORY_COMMANDS
    if summary.name.endswith("_test"):
        return CATEGORY_TEST
    if summary.name == "main":
        return CATEGORY_MAIN
    return CATEGORY_API


def packages_by_category(packages: Iterable[PackageSummary]) -> Dict[str, List[PackageSummary]]:
    """Group summaries by category, preserving their order within each group."""
    categories: Dict[str, List[PackageSummary]] = {}
    for summary in packages:
        categories.setdefault(package_category(summary), []).append(summary)
    return categories


class Discoverer:
    """Finds the packages of a Go project and documents their exported API."""

    def __init__(
        self,
        config: ProtonConfig,
        project_path: Path,
        diagnostics: Optional[Diagnostics] = None,
    ) -> None:
        self.config = config
        self.project_path = Path(project_path).expanduser().resolve()
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self._logger = get_logger("analyzers.discovery")

    @property
    def _packages_config(self) -> PackagesConfig:
        return self.config.discovery.packages

    @property
    def _api_config(self) -> APIGenerationConfig:
        return self.config.discovery.api_generation

    def discover_packages(self) -> List[PackageSummary]:
        """Auto-discovered packages in walk order, then manual packages in config order."""
        if not self.project_path.is_dir():
            raise DiscoveryError(f"Project path not found or not a directory: {self.project_path}")

        packages: List[PackageSummary] = []
        if self._packages_config.auto_discover:
            packages.extend(self._auto_discover())

        for manual in self._packages_config.manual_packages:
            summary = self._parse_manual(manual)
            packages = [item for item in packages if item.path != summary.path]
            packages.append(summary)

        self._logger.info("Discovered %d package(s)", len(packages))
        return packages

    def _parse_manual(self, manual: ManualPackage) -> PackageSummary:
        directory = self._resolve(manual.path)
        try:
            summary = self.parse_package(directory)
        except (SourceParseError, DiscoveryError) as exc:
            raise DiscoveryError(f"failed to parse manual package {manual.path}: {exc}") from exc
        overrides = {}
        if manual.name:
            overrides["name"] = manual.name
        if manual.description:
            overrides["description"] = manual.description
        return replace(summary, **overrides) if overrides else summary

    def _resolve(self, path: str) -> Path:
        candidate = Path(path).expanduser()
        if not candidate.is_absolute():
            candidate = self.project_path / candidate
        return candidate.resolve()

    def relative_path(self, directory: Path) -> str:
        try:
            rel = directory.resolve().relative_to(self.project_path).as_posix()
        except ValueError:
            return directory.as_posix()
        return rel or "."

    # ------------------------------------------------------------------
    # Walking
    # ------------------------------------------------------------------
    def _prune(self, name: str) -> bool:
        if name.startswith((".", "_")) or name in _SKIPPED_DIRS:
            return True
        return name in _TEST_DIRS and not self._api_config.include_tests

    def _admits(self, filename: str) -> bool:
        if not filename.endswith(".go"):
            return False
        return self._api_config.include_tests or not is_test_file(filename)

    def iter_package_dirs(self) -> Iterable[Path]:
        """Directories holding admitted Go files, in lexical walk order."""
        for dirpath, dirnames, filenames in os.walk(self.project_path, onerror=self._walk_error):
            dirnames[:] = sorted(name for name in dirnames if not self._prune(name))
            if any(self._admits(name) for name in filenames):
                yield Path(dirpath)

    def _walk_error(self, exc: OSError) -> None:
        failed = Path(exc.filename) if exc.filename else self.project_path
        if failed.resolve() == self.project_path:
            raise DiscoveryError(f"Cannot read project directory {self.project_path}: {exc}") from exc
        rel_path = self.relative_path(failed)
        self.diagnostics.warn(PARSE_FAILED, rel_path, f"cannot read directory {rel_path}: {exc}")

    def _auto_discover(self) -> List[PackageSummary]:
        packages: List[PackageSummary] = []
        include = self._packages_config.include_patterns
        exclude = self._packages_config.exclude_patterns
        for directory in self.iter_package_dirs():
            rel_path = self.relative_path(directory)
            if not is_included(rel_path, include):
                self._logger.debug("Skipping %s: not matched by include patterns", rel_path)
                continue
            if is_excluded(rel_path, exclude):
                self._logger.debug("Skipping %s: excluded", rel_path)
                continue
            try:
                packages.append(self.parse_package(directory))
            except (SourceParseError, DiscoveryError) as exc:
                self.diagnostics.warn(PARSE_FAILED, rel_path, f"failed to parse package {rel_path}: {exc}")
        return packages

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------
    def parse_package(self, directory: Path) -> PackageSummary:
        """Parse one directory into the summary of its non-test package."""
        directory = Path(directory)
        include_tests = self._api_config.include_tests
        trees = parse_directory(directory, include_tests=include_tests)
        tree = next((item for item in trees if not item.is_test_package), None)
        if tree is None:
            raise DiscoveryError(f"no non-test package found in {directory}")

        rel_path = self.relative_path(directory)
        self._logger.debug("Parsing package %s (%s)", tree.package, rel_path)
        enhancer = SymbolEnhancer(
            tree,
            self.diagnostics,
            comment_scan_fallback=self._api_config.comment_scan_fallback,
        )
        index = tree.index

        functions = sorted(
            (entry for entry in index.package_functions() if is_exported(entry.name)),
            key=lambda entry: entry.name,
        )
        type_names = sorted(name for name in index.types if is_exported(name))
        doc = tree.doc

        return PackageSummary(
            name=tree.package,
            path=str(directory.resolve()),
            rel_path=rel_path,
            import_path=self.import_path(rel_path),
            description=synopsis(doc),
            doc=doc,
            functions=tuple(enhancer.enhance_function(entry.name) for entry in functions),
            types=tuple(enhancer.enhance_type(name) for name in type_names),
            variables=self._value_groups(tree, "var"),
            constants=self._value_groups(tree, "const"),
            examples=tuple(self._examples(directory, trees)) if self._api_config.include_examples else (),
            files=tuple(tree.files),
        )

    def import_path(self, rel_path: str) -> str:
        root = self.config.repository.import_path.rstrip("/")
        if rel_path == ".":
            return root
        if not root:
            return rel_path
        return f"{root}/{rel_path}"

    def _value_groups(self, tree: SourceTree, kind: str) -> Tuple[ValueGroup, ...]:
        groups = []
        for entry in tree.index.values:
            if entry.kind != kind:
                continue
            group = self._value_group(entry)
            if group is not None:
                groups.append(group)
        return tuple(groups)

    def _value_group(self, entry: ValueEntry) -> Optional[ValueGroup]:
        source_file = entry.file
        exported_specs = []
        names: List[str] = []
        for spec in entry.specs:
            spec_names = [
                source_file.text(node)
                for node in spec.children_by_field_name("name")
                if is_exported(source_file.text(node))
            ]
            if spec_names:
                exported_specs.append(spec)
                names.extend(spec_names)
        if not names:
            return None

        if len(exported_specs) == len(entry.specs):
            declaration = source_file.text(entry.decl)
        elif entry.grouped:
            body = "\n".join(f"{INDENT}{source_file.text(spec)}" for spec in exported_specs)
            declaration = f"{entry.kind} (\n{body}\n)"
        else:
            declaration = f"{entry.kind} {source_file.text(exported_specs[0])}"

        doc = find_doc(
            source_file.comments,
            entry.decl,
            path=source_file.path,
            scan_fallback=self._api_config.comment_scan_fallback,
        )
        return ValueGroup(kind=entry.kind, names=tuple(names), doc=doc, declaration=declaration)

    def _examples(self, directory: Path, trees: List[SourceTree]) -> List[Example]:
        sources = list(trees)
        if not self._api_config.include_tests and any(directory.glob("*_test.go")):
            try:
                sources.extend(parse_directory(directory, tests_only=True))
            except SourceParseError as exc:
                rel_path = self.relative_path(directory)
                self.diagnostics.warn(
                    PARSE_FAILED,
                    rel_path,
                    f"failed to parse test files of {rel_path}, examples skipped: {exc}",
                )
        return extract_examples(sources)


__all__ = [
    "CATEGORY_API",
    "CATEGORY_COMMANDS",
    "CATEGORY_INTERNAL",
    "CATEGORY_MAIN",
    "CATEGORY_TEST",
    "Discoverer",
    "DiscoveryError",
    "is_excluded",
    "is_included",
    "loose_fragment",
    "package_category",
    "packages_by_category",
    "pattern_matches",
    "synopsis",
]
