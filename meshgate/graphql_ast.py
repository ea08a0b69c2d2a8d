"""Plain data structures describing GraphQL schemas, documents and operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Optional, Union

_ESCAPES = {
    "\a": "\\a",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\v": "\\v",
    "\\": "\\\\",
    '"': '\\"',
}


def _quote(text: str) -> str:
    """Quote a string as a double-quoted literal with backslash escapes."""
    out = []
    for ch in text:
        if ch in _ESCAPES:
            out.append(_ESCAPES[ch])
        elif ch == " " or ch.isprintable():
            out.append(ch)
        else:
            code = ord(ch)
            if code < 0x80:
                out.append(f"\\x{code:02x}")
            elif code < 0x10000:
                out.append(f"\\u{code:04x}")
            else:
                out.append(f"\\U{code:08x}")
    return '"' + "".join(out) + '"'


@dataclass
class Type:
    """A GraphQL type reference: a named type or a list of another type."""

    named_type: str = ""
    elem: Optional[Type] = None
    non_null: bool = False

    def name(self) -> str:
        """The innermost named type."""
        if self.named_type:
            return self.named_type
        if self.elem is None:
            return ""
        return self.elem.name()

    def __str__(self) -> str:
        suffix = "!" if self.non_null else ""
        if self.named_type:
            return self.named_type + suffix
        return "[" + str(self.elem) + "]" + suffix


class ValueKind(Enum):
    VARIABLE = auto()
    INT = auto()
    FLOAT = auto()
    STRING = auto()
    BLOCK = auto()
    BOOLEAN = auto()
    NULL = auto()
    ENUM = auto()
    LIST = auto()
    OBJECT = auto()


@dataclass
class ChildValue:
    """An element of a list value or a named member of an object value."""

    name: str
    value: Value


@dataclass
class Value:
    """A literal or variable appearing as an argument value."""

    kind: ValueKind
    raw: str = ""
    children: list[ChildValue] = field(default_factory=list)
    expected_type: Optional[Type] = None

    def __str__(self) -> str:
        if self.kind is ValueKind.VARIABLE:
            return "$" + self.raw
        if self.kind in (ValueKind.STRING, ValueKind.BLOCK):
            return _quote(self.raw)
        if self.kind is ValueKind.LIST:
            return "[" + ",".join(str(child.value) for child in self.children) + "]"
        if self.kind is ValueKind.OBJECT:
            return (
                "{"
                + ",".join(f"{child.name}:{child.value}" for child in self.children)
                + "}"
            )
        return self.raw


@dataclass
class Argument:
    name: str
    value: Value


@dataclass
class Directive:
    name: str
    arguments: list[Argument] = field(default_factory=list)


@dataclass
class FieldDefinition:
    name: str
    type: Type
    arguments: list[Any] = field(default_factory=list)


@dataclass
class Definition:
    """A named type in a schema; kind is OBJECT, INTERFACE, UNION, SCALAR, ENUM or INPUT_OBJECT."""

    name: str
    kind: str = "OBJECT"
    fields: list[FieldDefinition] = field(default_factory=list)
    interfaces: list[str] = field(default_factory=list)
    types: list[str] = field(default_factory=list)

    def is_abstract_type(self) -> bool:
        return self.kind in ("INTERFACE", "UNION")

    def field(self, name: str) -> Optional[FieldDefinition]:
        """The field definition with the given name, or None."""
        return next((f for f in self.fields if f.name == name), None)


@dataclass
class Schema:
    types: dict[str, Definition] = field(default_factory=dict)
    query: Optional[Definition] = None
    mutation: Optional[Definition] = None
    subscription: Optional[Definition] = None
    implements: dict[str, list[Definition]] = field(default_factory=dict)


@dataclass
class Field:
    """A field selection; the alias defaults to the field name."""

    name: str
    alias: str = ""
    arguments: list[Argument] = field(default_factory=list)
    directives: list[Directive] = field(default_factory=list)
    selection_set: list[Selection] = field(default_factory=list)
    definition: Optional[FieldDefinition] = None
    object_definition: Optional[Definition] = None
    position: Optional[tuple[int, int]] = None

    def __post_init__(self) -> None:
        if not self.alias:
            self.alias = self.name


@dataclass
class InlineFragment:
    type_condition: str
    selection_set: list[Selection] = field(default_factory=list)
    directives: list[Directive] = field(default_factory=list)
    object_definition: Optional[Definition] = None
    position: Optional[tuple[int, int]] = None


@dataclass
class FragmentDefinition:
    name: str
    type_condition: str
    selection_set: list[Selection] = field(default_factory=list)
    directives: list[Directive] = field(default_factory=list)


@dataclass
class FragmentSpread:
    name: str
    definition: Optional[FragmentDefinition] = None
    directives: list[Directive] = field(default_factory=list)
    object_definition: Optional[Definition] = None
    position: Optional[tuple[int, int]] = None


Selection = Union[Field, InlineFragment, FragmentSpread]


@dataclass
class VariableDefinition:
    variable: str
    type: Type


@dataclass
class OperationDefinition:
    operation: str = "query"
    name: str = ""
    variable_definitions: list[VariableDefinition] = field(default_factory=list)
    selection_set: list[Selection] = field(default_factory=list)
    directives: list[Directive] = field(default_factory=list)


@dataclass
class OperationContext:
    """The operation being executed together with its request variables."""

    operation: OperationDefinition = field(default_factory=OperationDefinition)
    variables: dict[str, Any] = field(default_factory=dict)
    operation_name: Optional[str] = None

    def __post_init__(self) -> None:
        if self.operation_name is None:
            self.operation_name = self.operation.name


def selection_set_to_fields(selection_set: list[Selection]) -> list[Field]:
    """The field selections of a selection set, fragments left out."""
    return [s for s in selection_set if isinstance(s, Field)]