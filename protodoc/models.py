"""Core data models shared across protodoc components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, List, Optional, Sequence, Tuple, Union


class SymbolKind(StrEnum):
    """Declaration kinds found in a descriptor set."""

    MESSAGE = "message"
    FIELD = "field"
    ONEOF = "oneof"
    ENUM = "enum"
    ENUM_VALUE = "enum_value"
    SERVICE = "service"
    METHOD = "method"

    @property
    def is_member(self) -> bool:
        """Members live inside a container and are addressed with ``::``."""
        return self in _MEMBER_KINDS


_MEMBER_KINDS = frozenset(
    {SymbolKind.FIELD, SymbolKind.ONEOF, SymbolKind.ENUM_VALUE, SymbolKind.METHOD}
)


class Cardinality(StrEnum):
    SINGULAR = "singular"
    OPTIONAL = "optional"
    REQUIRED = "required"
    REPEATED = "repeated"
    MAP = "map"


@dataclass(frozen=True)
class Comments:
    """Comment bundle attached to a declaration."""

    leading: Optional[str] = None
    trailing: Optional[str] = None
    detached: Tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.leading or self.trailing or self.detached)


@dataclass(frozen=True)
class SourceSpan:
    """1-based line/column range of a declaration in its ``.proto`` file."""

    start_line: int
    start_column: int
    end_line: int
    end_column: int

    @classmethod
    def from_span(cls, span: Sequence[int]) -> Optional["SourceSpan"]:
        """Convert a zero-based descriptor span (3 or 4 items)."""
        if len(span) == 4:
            start_line, start_column, end_line, end_column = span
        elif len(span) == 3:
            start_line, start_column, end_column = span
            end_line = start_line
        else:
            return None
        return cls(start_line + 1, start_column + 1, end_line + 1, end_column + 1)

    def fragment(self) -> str:
        if self.start_line == self.end_line:
            return f"L{self.start_line}"
        return f"L{self.start_line}-L{self.end_line}"


@dataclass(frozen=True)
class FieldDetail:
    number: int
    cardinality: Cardinality
    scalar_type: Optional[str] = None
    type_name: Optional[str] = None
    key_type: Optional[str] = None
    oneof: Optional[str] = None
    json_name: Optional[str] = None
    default_value: Optional[str] = None

    @property
    def is_scalar(self) -> bool:
        return self.type_name is None


@dataclass(frozen=True)
class MethodDetail:
    input_type: str
    output_type: str
    client_streaming: bool = False
    server_streaming: bool = False


@dataclass(frozen=True)
class EnumValueDetail:
    number: int


Detail = Union[FieldDetail, MethodDetail, EnumValueDetail, None]


@dataclass
class DescriptorNode:
    """Decoded declaration before names are qualified.

    ``path`` is the structural source-info path inside the owning file.
    """

    kind: SymbolKind
    name: str
    path: Tuple[int, ...]
    deprecated: bool = False
    detail: Detail = None
    children: List["DescriptorNode"] = field(default_factory=list)
    comments: Comments = field(default_factory=Comments)
    span: Optional[SourceSpan] = None

    def walk(self):
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass
class ProtoFile:
    """One compiled ``.proto`` source unit."""

    name: str
    package: str
    syntax: str = "proto2"
    dependencies: List[str] = field(default_factory=list)
    declarations: List[DescriptorNode] = field(default_factory=list)
    # descriptor_pb2.SourceCodeInfo when the compiler emitted it
    source_info: Optional[Any] = None

    def walk(self):
        for node in self.declarations:
            yield from node.walk()


@dataclass(frozen=True)
class Symbol:
    """Addressable declaration in the symbol table.

    ``parent`` and ``children`` hold fully-qualified names, never objects, so
    containment stays a forest while type references live in the graph.
    """

    kind: SymbolKind
    name: str
    full_name: str
    package: str
    file: str
    anchor: str
    parent: Optional[str] = None
    children: Tuple[str, ...] = ()
    deprecated: bool = False
    comments: Comments = Comments()
    span: Optional[SourceSpan] = None
    detail: Detail = None

    @property
    def is_member(self) -> bool:
        return self.kind.is_member

    def source_url(self, base_url: str | None) -> Optional[str]:
        """Link to the declaration in a hosted copy of the ``.proto`` sources."""
        if not base_url or self.span is None:
            return None
        return f"{base_url.rstrip('/')}/{self.file}#{self.span.fragment()}"


__all__ = [
    "Cardinality",
    "Comments",
    "DescriptorNode",
    "Detail",
    "EnumValueDetail",
    "FieldDetail",
    "MethodDetail",
    "ProtoFile",
    "SourceSpan",
    "Symbol",
    "SymbolKind",
]
