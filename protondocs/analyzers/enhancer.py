"""Derives declarations, per-item docs and usage snippets for Go symbols."""

from __future__ import annotations

from typing import List, Optional, Tuple

from tree_sitter import Node

from ..diagnostics import SYMBOL_NOT_FOUND, Diagnostics
from ..logging import get_logger
from ..models import EnhancedFunction, EnhancedType, Field, Parameter, Result, TypeKind
from .comments import field_doc, find_doc
from .doc_sections import interface_method_doc, parse_doc
from .source_tree import FuncEntry, SourceTree, TypeEntry, is_exported
from .type_format import (
    format_results,
    format_signature,
    format_type,
    node_text,
    parameter_groups,
    result_groups,
)

_INTEGER_TYPES = {
    "int", "int8", "int16", "int32", "int64",
    "uint", "uint8", "uint16", "uint32", "uint64", "uintptr",
    "byte", "rune",
}
_FLOAT_TYPES = {"float32", "float64"}
_METHOD_ELEMENTS = {"method_elem", "method_spec"}
_INLINE_TYPES = {"struct_type", "interface_type"}
_GO_KEYWORDS = {
    "break", "case", "chan", "const", "continue", "default", "defer", "else",
    "fallthrough", "for", "func", "go", "goto", "if", "import", "interface",
    "map", "package", "range", "return", "select", "struct", "switch", "type", "var",
}

INDENT = "    "


def example_value(node: Optional[Node], source: bytes) -> str:
    """Placeholder literal for a field of the given type."""
    if node is None:
        return "nil"
    kind = node.type
    if kind == "pointer_type":
        inner = next((child for child in node.named_children if child.type != "comment"), None)
        return "&" + example_value(inner, source)
    if kind == "parenthesized_type":
        inner = next((child for child in node.named_children if child.type != "comment"), None)
        return example_value(inner, source)
    if kind == "interface_type":
        return "nil"
    if kind == "struct_type":
        return node_text(node, source) + "{}"
    if kind == "type_identifier":
        name = node_text(node, source)
        if name == "string":
            return '"example"'
        if name in _INTEGER_TYPES:
            return "42"
        if name in _FLOAT_TYPES:
            return "3.14"
        if name == "bool":
            return "true"
    return f"{format_type(node, source)}{{}}"


def _variable_name(type_name: str) -> str:
    name = type_name.lower()
    return "value" if name in _GO_KEYWORDS else name


def _type_parameters(node: Node, source: bytes) -> str:
    params = node.child_by_field_name("type_parameters")
    if params is None:
        return ""
    return " ".join(node_text(params, source).split())


class SymbolEnhancer:
    """Builds `EnhancedFunction` / `EnhancedType` records from one package's source tree.

    Lookups go through the tree's symbol index; a missing symbol yields an
    empty record plus one `symbol-not-found` diagnostic.
    """

    def __init__(
        self,
        tree: SourceTree,
        diagnostics: Optional[Diagnostics] = None,
        comment_scan_fallback: bool = True,
    ) -> None:
        self.tree = tree
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self.comment_scan_fallback = comment_scan_fallback
        self._logger = get_logger("analyzers.enhancer")

    # ------------------------------------------------------------------
    # Functions
    # ------------------------------------------------------------------
    def enhance_function(self, name: str, receiver: Optional[str] = None) -> EnhancedFunction:
        receiver_type = ""
        if receiver:
            receiver_type = receiver.lstrip("*").split("[", 1)[0].strip()
        entry = self.tree.index.function(name, receiver_type)
        if entry is None:
            subject = f"{receiver_type}.{name}" if receiver_type else name
            self.diagnostics.warn(
                SYMBOL_NOT_FOUND,
                subject,
                f"symbol {subject} not found in package {self.tree.package}",
            )
            return EnhancedFunction(
                name=name,
                receiver=receiver or "",
                example_code=self.function_example(name),
            )
        return self._enhance_entry(entry)

    def _enhance_entry(self, entry: FuncEntry) -> EnhancedFunction:
        node = entry.node
        source = entry.file.source
        full_doc = find_doc(
            entry.file.comments,
            node,
            path=entry.file.path,
            scan_fallback=self.comment_scan_fallback,
        )
        parsed = parse_doc(full_doc)
        parameters = node.child_by_field_name("parameters")
        result = node.child_by_field_name("result")

        receiver = ""
        if entry.receiver:
            receiver = self._receiver_type(node, source)
            head = f"func ({receiver}) {entry.name}"
        else:
            head = f"func {entry.name}{_type_parameters(node, source)}"

        return EnhancedFunction(
            name=entry.name,
            receiver=receiver,
            doc=parsed.main,
            full_doc=full_doc,
            declaration=head + format_signature(parameters, result, source),
            params=self._parameters(parameters, source, full_doc),
            results=self._results(result, source, full_doc),
            example_code=self.function_example(entry.name),
        )

    @staticmethod
    def _receiver_type(node: Node, source: bytes) -> str:
        receiver = node.child_by_field_name("receiver")
        if receiver is None:
            return ""
        for child in receiver.named_children:
            type_node = child.child_by_field_name("type")
            if type_node is not None:
                return format_type(type_node, source)
        return ""

    @staticmethod
    def _parameters(parameter_list: Optional[Node], source: bytes, full_doc: str) -> Tuple[Parameter, ...]:
        parsed = parse_doc(full_doc)
        params: List[Parameter] = []
        for names, type_text in parameter_groups(parameter_list, source):
            if not names:
                params.append(Parameter(name="", type=type_text))
                continue
            for name in names:
                params.append(Parameter(name=name, type=type_text, doc=parsed.param(name)))
        return tuple(params)

    @staticmethod
    def _results(result: Optional[Node], source: bytes, full_doc: str) -> Tuple[Result, ...]:
        parsed = parse_doc(full_doc)
        results: List[Result] = []
        for names, type_text in result_groups(result, source):
            for name in names or [""]:
                results.append(Result(name=name, type=type_text, doc=parsed.result(len(results))))
        return tuple(results)

    @staticmethod
    def function_example(name: str) -> str:
        return f"result := {name}(/* parameters */)"

    # ------------------------------------------------------------------
    # Types
    # ------------------------------------------------------------------
    def enhance_type(self, name: str) -> EnhancedType:
        entry = self.tree.index.type(name)
        if entry is None:
            self.diagnostics.warn(
                SYMBOL_NOT_FOUND,
                name,
                f"type {name} not found in package {self.tree.package}",
            )
            return EnhancedType(name=name)

        self._logger.debug("Enhancing type %s.%s from %s", self.tree.package, name, entry.file.name)
        source = entry.file.source
        doc = find_doc(
            entry.file.comments,
            entry.spec,
            enclosing=entry.decl if entry.grouped else None,
            path=entry.file.path,
            scan_fallback=self.comment_scan_fallback,
        )
        type_node = entry.spec.child_by_field_name("type")
        head = f"type {name}{_type_parameters(entry.spec, source)}"

        if entry.spec.type == "type_spec" and type_node is not None and type_node.type == "struct_type":
            fields = self._struct_fields(entry, type_node)
            return EnhancedType(
                name=name,
                kind=TypeKind.STRUCT,
                doc=doc,
                declaration=self._struct_declaration(head, entry, type_node),
                fields=fields,
                methods=self._declared_methods(name),
                funcs=self._constructors(name),
                example_code=self.struct_example(name, entry, type_node),
            )

        if entry.spec.type == "type_spec" and type_node is not None and type_node.type == "interface_type":
            elements = self._interface_methods(entry, type_node, doc)
            return EnhancedType(
                name=name,
                kind=TypeKind.INTERFACE,
                doc=doc,
                declaration=self._interface_declaration(head, entry, type_node),
                methods=elements + self._declared_methods(name),
                funcs=self._constructors(name),
                example_code=self.interface_example(name, entry, type_node),
            )

        separator = " = " if entry.spec.type == "type_alias" else " "
        declaration = head + separator + format_type(type_node, source) if type_node is not None else ""
        return EnhancedType(
            name=name,
            kind=TypeKind.ALIAS,
            doc=doc,
            declaration=declaration,
            methods=self._declared_methods(name),
            funcs=self._constructors(name),
            example_code=self.alias_example(name),
        )

    def _declared_methods(self, type_name: str) -> Tuple[EnhancedFunction, ...]:
        entries = [entry for entry in self.tree.index.methods_of(type_name) if is_exported(entry.name)]
        entries.sort(key=lambda entry: entry.name)
        return tuple(self._enhance_entry(entry) for entry in entries)

    def _constructors(self, type_name: str) -> Tuple[EnhancedFunction, ...]:
        entries = [entry for entry in self.tree.index.constructors_of(type_name) if is_exported(entry.name)]
        entries.sort(key=lambda entry: entry.name)
        return tuple(self._enhance_entry(entry) for entry in entries)

    # Structs -----------------------------------------------------------
    @staticmethod
    def _field_nodes(struct_node: Node) -> List[Node]:
        for child in struct_node.named_children:
            if child.type == "field_declaration_list":
                return [item for item in child.named_children if item.type == "field_declaration"]
        return []

    @staticmethod
    def _field_type(field_node: Node, source: bytes) -> str:
        type_node = field_node.child_by_field_name("type")
        if type_node is not None and type_node.type in _INLINE_TYPES:
            return node_text(type_node, source)
        type_text = format_type(type_node, source)
        embedded_pointer = not field_node.children_by_field_name("name") and any(
            child.type == "*" for child in field_node.children
        )
        return "*" + type_text if embedded_pointer else type_text

    def _struct_fields(self, entry: TypeEntry, struct_node: Node) -> Tuple[Field, ...]:
        source = entry.file.source
        fields: List[Field] = []
        for field_node in self._field_nodes(struct_node):
            type_text = self._field_type(field_node, source)
            tag_node = field_node.child_by_field_name("tag")
            tag = node_text(tag_node, source) if tag_node is not None else ""
            doc = field_doc(entry.file.comments, field_node)
            names = [node_text(name, source) for name in field_node.children_by_field_name("name")]
            for name in names or [""]:
                fields.append(Field(name=name, type=type_text, tag=tag, doc=doc))
        return tuple(fields)

    def _struct_declaration(self, head: str, entry: TypeEntry, struct_node: Node) -> str:
        source = entry.file.source
        lines = [f"{head} struct {{"]
        for field_node in self._field_nodes(struct_node):
            type_text = self._field_type(field_node, source)
            tag_node = field_node.child_by_field_name("tag")
            tag = " " + node_text(tag_node, source) if tag_node is not None else ""
            names = [node_text(name, source) for name in field_node.children_by_field_name("name")]
            if names:
                for name in names:
                    lines.append(f"{INDENT}{name} {type_text}{tag}")
            else:
                lines.append(f"{INDENT}{type_text}{tag}")
        lines.append("}")
        return "\n".join(lines)

    def struct_example(self, name: str, entry: TypeEntry, struct_node: Node) -> str:
        source = entry.file.source
        lines = [f"// Create a new {name}", f"{_variable_name(name)} := {name}{{"]
        for field_node in self._field_nodes(struct_node):
            value = example_value(field_node.child_by_field_name("type"), source)
            for name_node in field_node.children_by_field_name("name"):
                field_name = node_text(name_node, source)
                if is_exported(field_name):
                    lines.append(f"{INDENT}{field_name}: {value},")
        lines.append("}")
        return "\n".join(lines)

    # Interfaces --------------------------------------------------------
    @staticmethod
    def _interface_elements(interface_node: Node) -> List[Node]:
        return [child for child in interface_node.named_children if child.type != "comment"]

    def _interface_methods(
        self, entry: TypeEntry, interface_node: Node, type_doc: str
    ) -> Tuple[EnhancedFunction, ...]:
        source = entry.file.source
        methods: List[EnhancedFunction] = []
        for element in self._interface_elements(interface_node):
            if element.type not in _METHOD_ELEMENTS:
                continue
            name_node = element.child_by_field_name("name")
            if name_node is None:
                continue
            method_name = node_text(name_node, source)
            if not is_exported(method_name):
                continue
            full_doc = find_doc(entry.file.comments, element, scan_fallback=False)
            parsed = parse_doc(full_doc)
            main = parsed.main or interface_method_doc(type_doc, method_name)
            parameters = element.child_by_field_name("parameters")
            result = element.child_by_field_name("result")
            methods.append(
                EnhancedFunction(
                    name=method_name,
                    receiver=entry.name,
                    doc=main,
                    full_doc=full_doc,
                    declaration=f"func ({entry.name}) {method_name}"
                    + format_signature(parameters, result, source),
                    params=self._parameters(parameters, source, full_doc),
                    results=self._results(result, source, full_doc),
                    example_code=self.function_example(method_name),
                )
            )
        return tuple(methods)

    def _interface_declaration(self, head: str, entry: TypeEntry, interface_node: Node) -> str:
        source = entry.file.source
        lines = [f"{head} interface {{"]
        for element in self._interface_elements(interface_node):
            if element.type in _METHOD_ELEMENTS:
                name_node = element.child_by_field_name("name")
                signature = format_signature(
                    element.child_by_field_name("parameters"),
                    element.child_by_field_name("result"),
                    source,
                )
                name = node_text(name_node, source) if name_node is not None else ""
                lines.append(f"{INDENT}{name}{signature}")
            else:
                lines.append(f"{INDENT}{format_type(element, source)}")
        lines.append("}")
        return "\n".join(lines)

    def interface_example(self, name: str, entry: TypeEntry, interface_node: Node) -> str:
        source = entry.file.source
        implementation = f"My{name}"
        blocks = [
            "\n".join(
                [
                    f"// Example implementation of {name}",
                    f"type {implementation} struct {{",
                    f"{INDENT}// Add your fields here",
                    "}",
                ]
            )
        ]
        for element in self._interface_elements(interface_node):
            if element.type not in _METHOD_ELEMENTS:
                continue
            name_node = element.child_by_field_name("name")
            if name_node is None:
                continue
            params = []
            for names, type_text in parameter_groups(element.child_by_field_name("parameters"), source):
                for _ in names or [""]:
                    params.append(f"param{len(params) + 1} {type_text}")
            results = format_results(element.child_by_field_name("result"), source)
            suffix = f" {results}" if results else ""
            blocks.append(
                "\n".join(
                    [
                        f"func (m {implementation}) {node_text(name_node, source)}({', '.join(params)}){suffix} {{",
                        f"{INDENT}// Implement your logic here",
                        f"{INDENT}return",
                        "}",
                    ]
                )
            )
        return "\n\n".join(blocks)

    @staticmethod
    def alias_example(name: str) -> str:
        return "\n".join(
            [
                f"// Example usage of {name}",
                f"var value {name}",
                "// Initialize with appropriate value",
            ]
        )


__all__ = ["INDENT", "SymbolEnhancer", "example_value"]
