"""Canonical text rendering of Go type expressions from tree-sitter nodes."""

from __future__ import annotations

from typing import List, Optional, Tuple

from tree_sitter import Node

_NAME_NODES = {"type_identifier", "identifier", "field_identifier", "package_identifier"}
_PARAMETER_NODES = {"parameter_declaration", "variadic_parameter_declaration"}

ParameterGroup = Tuple[List[str], str]


def node_text(node: Node, source: bytes) -> str:
    """Source text spanned by `node`."""
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def format_type(node: Optional[Node], source: bytes) -> str:
    """Return the canonical spelling of a type expression node."""
    if node is None:
        return ""
    kind = node.type
    if kind in _NAME_NODES:
        return node_text(node, source)
    if kind == "pointer_type":
        return "*" + format_type(_first_named(node), source)
    if kind == "slice_type":
        return "[]" + format_type(node.child_by_field_name("element"), source)
    if kind == "array_type":
        length = node.child_by_field_name("length")
        size = " ".join(node_text(length, source).split()) if length is not None else ""
        return f"[{size}]" + format_type(node.child_by_field_name("element"), source)
    if kind == "implicit_length_array_type":
        return "[...]" + format_type(node.child_by_field_name("element"), source)
    if kind == "map_type":
        key = format_type(node.child_by_field_name("key"), source)
        value = format_type(node.child_by_field_name("value"), source)
        return f"map[{key}]{value}"
    if kind == "channel_type":
        return f"{_channel_prefix(node)} {format_type(node.child_by_field_name('value'), source)}"
    if kind == "function_type":
        return "func" + format_signature(
            node.child_by_field_name("parameters"),
            node.child_by_field_name("result"),
            source,
        )
    if kind == "interface_type":
        return "interface{}"
    if kind == "qualified_type":
        package = node.child_by_field_name("package")
        name = node.child_by_field_name("name")
        return f"{format_type(package, source)}.{format_type(name, source)}"
    if kind == "generic_type":
        base = format_type(node.child_by_field_name("type"), source)
        arguments = node.child_by_field_name("type_arguments")
        if arguments is None:
            return base
        rendered = ", ".join(
            format_type(child, source) for child in arguments.named_children if child.type != "comment"
        )
        return f"{base}[{rendered}]"
    if kind == "type_elem":
        return " | ".join(
            format_type(child, source) for child in node.named_children if child.type != "comment"
        )
    if kind == "negated_type":
        return "~" + format_type(_first_named(node), source)
    if kind == "parenthesized_type":
        return format_type(_first_named(node), source)
    return f"<{kind}>"


def _first_named(node: Node) -> Optional[Node]:
    for child in node.named_children:
        if child.type != "comment":
            return child
    return None


def _channel_prefix(node: Node) -> str:
    tokens = [child.type for child in node.children if not child.is_named]
    if tokens and tokens[0] == "<-":
        return "<-chan"
    if "<-" in tokens:
        return "chan<-"
    return "chan"


def parameter_groups(parameter_list: Optional[Node], source: bytes) -> List[ParameterGroup]:
    """Return `(names, type)` per declaration in a parameter list.

    Names stay grouped the way they were written (`a, b int` is one group
    with two names); variadic parameters carry the `...` prefix on the type.
    """
    if parameter_list is None:
        return []
    groups: List[ParameterGroup] = []
    for child in parameter_list.named_children:
        if child.type not in _PARAMETER_NODES:
            continue
        names = [node_text(name, source) for name in child.children_by_field_name("name")]
        type_text = format_type(child.child_by_field_name("type"), source)
        if child.type == "variadic_parameter_declaration":
            type_text = "..." + type_text
        groups.append((names, type_text))
    return groups


def _join_groups(groups: List[ParameterGroup]) -> str:
    parts = []
    for names, type_text in groups:
        parts.append(f"{', '.join(names)} {type_text}" if names else type_text)
    return ", ".join(parts)


def format_parameters(parameter_list: Optional[Node], source: bytes) -> str:
    """`(a, b int, opts ...Option)` for a parameter list node."""
    return f"({_join_groups(parameter_groups(parameter_list, source))})"


def result_groups(result: Optional[Node], source: bytes) -> List[ParameterGroup]:
    """Result declarations; a bare result type becomes one unnamed group."""
    if result is None:
        return []
    if result.type == "parameter_list":
        return parameter_groups(result, source)
    return [([], format_type(result, source))]


def format_results(result: Optional[Node], source: bytes) -> str:
    """Result list without the leading space; parenthesised unless a single unnamed type."""
    groups = result_groups(result, source)
    if not groups:
        return ""
    if len(groups) == 1 and not groups[0][0]:
        return groups[0][1]
    return f"({_join_groups(groups)})"


def format_signature(parameters: Optional[Node], result: Optional[Node], source: bytes) -> str:
    """`(params) results` as it follows a function name or the `func` keyword."""
    results = format_results(result, source)
    signature = format_parameters(parameters, source)
    return f"{signature} {results}" if results else signature


__all__ = [
    "format_parameters",
    "format_results",
    "format_signature",
    "format_type",
    "node_text",
    "parameter_groups",
    "result_groups",
]
