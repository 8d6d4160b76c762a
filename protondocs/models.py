"""Core data models shared across protondocs components."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple


class TypeKind(str, Enum):
    """Shape of a named type's underlying type."""

    STRUCT = "struct"
    INTERFACE = "interface"
    ALIAS = "alias"


@dataclass(frozen=True)
class Parameter:
    """A function parameter; `name` is empty when the source omits it."""

    name: str
    type: str
    doc: str = ""


@dataclass(frozen=True)
class Result:
    """A function return value; `name` is empty for unnamed results."""

    name: str
    type: str
    doc: str = ""


@dataclass(frozen=True)
class Field:
    """A struct field; `name` is empty for embedded fields."""

    name: str
    type: str
    tag: str = ""
    doc: str = ""


@dataclass(frozen=True)
class EnhancedFunction:
    """Function or method with derived declaration and per-item docs."""

    name: str
    receiver: str = ""
    doc: str = ""
    full_doc: str = ""
    declaration: str = ""
    params: Tuple[Parameter, ...] = ()
    results: Tuple[Result, ...] = ()
    example_code: str = ""

    @property
    def is_method(self) -> bool:
        return bool(self.receiver)


@dataclass(frozen=True)
class EnhancedType:
    """Named type with its fields, methods, constructors and usage example."""

    name: str
    kind: TypeKind = TypeKind.ALIAS
    doc: str = ""
    declaration: str = ""
    fields: Tuple[Field, ...] = ()
    methods: Tuple[EnhancedFunction, ...] = ()
    funcs: Tuple[EnhancedFunction, ...] = ()
    example_code: str = ""


@dataclass(frozen=True)
class ValueGroup:
    """One const or var declaration, restricted to its exported names."""

    kind: str
    names: Tuple[str, ...]
    doc: str = ""
    declaration: str = ""


@dataclass(frozen=True)
class Example:
    """Runnable example function (`ExampleXxx`) found in a package directory."""

    name: str
    function: str
    doc: str = ""
    code: str = ""
    output: str = ""
    unordered: bool = False
    empty_output: bool = False


@dataclass(frozen=True)
class PackageSummary:
    """Public API of one Go package, ready for rendering."""

    name: str
    path: str
    rel_path: str
    import_path: str
    description: str = ""
    doc: str = ""
    functions: Tuple[EnhancedFunction, ...] = ()
    types: Tuple[EnhancedType, ...] = ()
    variables: Tuple[ValueGroup, ...] = ()
    constants: Tuple[ValueGroup, ...] = ()
    examples: Tuple[Example, ...] = field(default_factory=tuple)
    files: Tuple[str, ...] = ()
