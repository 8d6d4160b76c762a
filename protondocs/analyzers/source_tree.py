"""Tree-sitter powered parsing of Go package directories."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

import tree_sitter_go
from tree_sitter import Language, Node, Parser

from .comments import CommentMap, collect_comment_groups
from .type_format import node_text

GO_LANGUAGE = Language(tree_sitter_go.language())

TEST_FILE_SUFFIX = "_test.go"
TEST_PACKAGE_SUFFIX = "_test"


class SourceParseError(RuntimeError):
    """Raised when a Go file or package directory cannot be parsed."""


def is_exported(name: str) -> bool:
    """Go export rule: the first character is an uppercase letter."""
    return bool(name) and name[0].isupper()


def is_test_file(name: str) -> bool:
    """True for `_test.go` files."""
    return name.endswith(TEST_FILE_SUFFIX)


@dataclass(frozen=True)
class SourceFile:
    """One parsed Go file."""

    path: Path
    source: bytes
    root: Node
    package: str
    package_clause: Node
    comments: CommentMap

    @property
    def name(self) -> str:
        return self.path.name

    def text(self, node: Node) -> str:
        return node_text(node, self.source)

    @property
    def doc(self) -> str:
        group = self.comments.leading(self.package_clause)
        return group.text() if group is not None else ""


@dataclass(frozen=True)
class FuncEntry:
    """A top-level function or method declaration."""

    name: str
    node: Node
    file: SourceFile
    receiver: str = ""


@dataclass(frozen=True)
class TypeEntry:
    """A type spec together with the declaration that contains it."""

    name: str
    spec: Node
    decl: Node
    file: SourceFile
    grouped: bool


@dataclass(frozen=True)
class ValueEntry:
    """A top-level const or var declaration and its specs in source order."""

    kind: str
    decl: Node
    specs: Tuple[Node, ...]
    file: SourceFile
    grouped: bool


def _iter_nodes(node: Node, node_type: str) -> Iterator[Node]:
    for child in node.children:
        if child.type == node_type:
            yield child
        elif child.is_named:
            yield from _iter_nodes(child, node_type)


def _is_grouped(decl: Node) -> bool:
    for child in decl.children:
        if child.type == "(":
            return True
        if child.type.endswith("_list") and any(grand.type == "(" for grand in child.children):
            return True
    return False


def base_type_name(node: Optional[Node], source: bytes) -> str:
    """Name of the local type behind `T`, `*T`, `(T)` or `T[P]`; empty otherwise."""
    while node is not None:
        if node.type in {"type_identifier", "identifier"}:
            return node_text(node, source)
        if node.type in {"pointer_type", "parenthesized_type"}:
            node = next((child for child in node.named_children if child.type != "comment"), None)
        elif node.type == "generic_type":
            node = node.child_by_field_name("type")
        else:
            return ""
    return ""


def _result_type_nodes(result: Optional[Node]) -> List[Node]:
    if result is None:
        return []
    if result.type != "parameter_list":
        return [result]
    nodes = []
    for child in result.named_children:
        type_node = child.child_by_field_name("type")
        if type_node is not None:
            nodes.append(type_node)
    return nodes


class SymbolIndex:
    """Name to declaration lookup built once per parsed package.

    Plain functions are keyed by name, methods by receiver base type and
    name. The first declaration wins, which only matters for invalid code.
    """

    def __init__(self, files: Sequence[SourceFile]) -> None:
        self.functions: Dict[str, FuncEntry] = {}
        self.methods: Dict[Tuple[str, str], FuncEntry] = {}
        self.types: Dict[str, TypeEntry] = {}
        self.values: List[ValueEntry] = []
        self._methods_by_type: Dict[str, List[FuncEntry]] = {}
        for source_file in files:
            self._index_file(source_file)
        self._constructors: Dict[str, List[FuncEntry]] = {}
        self._package_functions: List[FuncEntry] = []
        self._associate_constructors()

    def _index_file(self, source_file: SourceFile) -> None:
        for node in source_file.root.named_children:
            if node.type == "function_declaration":
                name_node = node.child_by_field_name("name")
                if name_node is None:
                    continue
                name = source_file.text(name_node)
                self.functions.setdefault(name, FuncEntry(name, node, source_file))
            elif node.type == "method_declaration":
                name_node = node.child_by_field_name("name")
                if name_node is None:
                    continue
                name = source_file.text(name_node)
                receiver = self._receiver_name(node, source_file)
                key = (receiver, name)
                if key not in self.methods:
                    entry = FuncEntry(name, node, source_file, receiver=receiver)
                    self.methods[key] = entry
                    self._methods_by_type.setdefault(receiver, []).append(entry)
            elif node.type == "type_declaration":
                grouped = _is_grouped(node)
                for spec in node.named_children:
                    if spec.type not in {"type_spec", "type_alias"}:
                        continue
                    name_node = spec.child_by_field_name("name")
                    if name_node is None:
                        continue
                    name = source_file.text(name_node)
                    self.types.setdefault(name, TypeEntry(name, spec, node, source_file, grouped))
            elif node.type in {"const_declaration", "var_declaration"}:
                kind = "const" if node.type == "const_declaration" else "var"
                specs = tuple(_iter_nodes(node, f"{kind}_spec"))
                self.values.append(ValueEntry(kind, node, specs, source_file, _is_grouped(node)))

    @staticmethod
    def _receiver_name(node: Node, source_file: SourceFile) -> str:
        receiver = node.child_by_field_name("receiver")
        if receiver is None:
            return ""
        for child in receiver.named_children:
            type_node = child.child_by_field_name("type")
            if type_node is not None:
                return base_type_name(type_node, source_file.source)
        return ""

    def _associate_constructors(self) -> None:
        for entry in self.functions.values():
            owner = self._factory_type(entry)
            if owner:
                self._constructors.setdefault(owner, []).append(entry)
            else:
                self._package_functions.append(entry)

    def _factory_type(self, entry: FuncEntry) -> str:
        """Exported local type returned by a factory function, if exactly one."""
        owner = ""
        for type_node in _result_type_nodes(entry.node.child_by_field_name("result")):
            if type_node.type in {"slice_type", "array_type"}:
                type_node = type_node.child_by_field_name("element")
            name = base_type_name(type_node, entry.file.source)
            if not name or not is_exported(name) or name not in self.types:
                continue
            if owner:
                return ""
            owner = name
        return owner

    def function(self, name: str, receiver: str = "") -> Optional[FuncEntry]:
        if receiver:
            return self.methods.get((receiver, name))
        return self.functions.get(name)

    def type(self, name: str) -> Optional[TypeEntry]:
        return self.types.get(name)

    def methods_of(self, type_name: str) -> List[FuncEntry]:
        return list(self._methods_by_type.get(type_name, ()))

    def constructors_of(self, type_name: str) -> List[FuncEntry]:
        return list(self._constructors.get(type_name, ()))

    def package_functions(self) -> List[FuncEntry]:
        """Plain functions that are not constructors of an exported type."""
        return list(self._package_functions)


class SourceTree:
    """One Go package in one directory: its files keyed by name plus a symbol index."""

    def __init__(self, directory: Path, package: str, files: Iterable[SourceFile]) -> None:
        ordered = sorted(files, key=lambda item: item.name)
        self.directory = directory
        self.package = package
        self.files: Mapping[str, SourceFile] = MappingProxyType({item.name: item for item in ordered})
        self.index = SymbolIndex(ordered)

    @property
    def is_test_package(self) -> bool:
        return self.package.endswith(TEST_PACKAGE_SUFFIX)

    @property
    def doc(self) -> str:
        """Package comment; several package comments are concatenated in file order."""
        parts = [item.doc for item in self.files.values() if item.doc]
        return "\n".join(parts)


def _first_error_row(node: Node) -> int:
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type == "ERROR" or current.is_missing:
            return current.start_point[0]
        stack.extend(reversed([child for child in current.children if child.has_error or child.is_missing]))
    return node.start_point[0]


def parse_source(path: Path, source: bytes, parser: Optional[Parser] = None) -> SourceFile:
    """Parse one Go file; syntax errors and a missing package clause are fatal."""
    parser = parser or Parser(GO_LANGUAGE)
    tree = parser.parse(source)
    root = tree.root_node
    if root.has_error:
        row = _first_error_row(root)
        raise SourceParseError(f"{path}:{row + 1}: syntax error")
    clause = next((child for child in root.named_children if child.type == "package_clause"), None)
    if clause is None:
        raise SourceParseError(f"{path}: missing package clause")
    name_node = next((child for child in clause.named_children if child.type == "package_identifier"), None)
    if name_node is None:
        raise SourceParseError(f"{path}: missing package name")
    return SourceFile(
        path=path,
        source=source,
        root=root,
        package=node_text(name_node, source),
        package_clause=clause,
        comments=CommentMap(collect_comment_groups(root, source)),
    )


def parse_directory(
    directory: Path,
    *,
    include_tests: bool = False,
    tests_only: bool = False,
) -> List[SourceTree]:
    """Parse the Go files of one directory, grouped by package clause.

    Groups are ordered by the name of their first file. Test files are only
    read when `include_tests` (or `tests_only`) is set.
    """
    if not directory.is_dir():
        raise SourceParseError(f"package directory not found: {directory}")

    try:
        entries = sorted(directory.iterdir())
    except OSError as exc:
        raise SourceParseError(f"failed to list {directory}: {exc}") from exc

    paths = []
    for path in entries:
        if not path.is_file() or path.suffix != ".go":
            continue
        test_file = is_test_file(path.name)
        if tests_only and not test_file:
            continue
        if test_file and not (include_tests or tests_only):
            continue
        paths.append(path)
    if not paths:
        raise SourceParseError(f"no Go source files in {directory}")

    parser = Parser(GO_LANGUAGE)
    grouped: Dict[str, List[SourceFile]] = {}
    for path in paths:
        try:
            source = path.read_bytes()
        except OSError as exc:
            raise SourceParseError(f"failed to read {path}: {exc}") from exc
        parsed = parse_source(path, source, parser)
        grouped.setdefault(parsed.package, []).append(parsed)

    return [SourceTree(directory, package, files) for package, files in grouped.items()]


__all__ = [
    "FuncEntry",
    "GO_LANGUAGE",
    "SourceFile",
    "SourceParseError",
    "SourceTree",
    "SymbolIndex",
    "TEST_FILE_SUFFIX",
    "TEST_PACKAGE_SUFFIX",
    "TypeEntry",
    "ValueEntry",
    "base_type_name",
    "is_exported",
    "is_test_file",
    "parse_directory",
    "parse_source",
]
