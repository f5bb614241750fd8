"""Error kinds raised or collected while building the protobuf symbol model."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


class ProtodocError(RuntimeError):
    """Base class for every protodoc failure."""


class MalformedDescriptor(ProtodocError):
    """Raised when descriptor-set bytes cannot be decoded."""


class DuplicateSymbol(ProtodocError):
    """Raised when two declarations resolve to the same fully-qualified name."""

    def __init__(self, full_name: str, first_file: str, second_file: str) -> None:
        super().__init__(
            f"Symbol '{full_name}' is declared in both {first_file} and {second_file}"
            if first_file != second_file
            else f"Symbol '{full_name}' is declared twice in {first_file}"
        )
        self.full_name = full_name
        self.first_file = first_file
        self.second_file = second_file


class DanglingReference(ProtodocError):
    """A field or method type that names a symbol absent from the table.

    Collected as a diagnostic; the loader never raises it.
    """

    def __init__(self, source: str, type_name: str, file: str) -> None:
        super().__init__(
            f"{source} references unknown type '{type_name}' (declared in {file}); "
            "was the descriptor set built with --include_imports?"
        )
        self.source = source
        self.type_name = type_name
        self.file = file


@dataclass(frozen=True)
class DocumentLocation:
    """Where a link macro occurs in authored prose."""

    path: Optional[str]
    line: int

    def __str__(self) -> str:
        return f"{self.path or '<draft>'}:{self.line}"


class UnresolvedSymbolReference(ProtodocError):
    """A ``proto!(...)`` macro that matched no symbol."""

    def __init__(
        self,
        text: str,
        location: Optional[DocumentLocation] = None,
        reason: str | None = None,
    ) -> None:
        detail = reason or "no protobuf symbol matched"
        where = f" at {location}" if location is not None else ""
        super().__init__(f"Unresolved reference proto!({text}){where}: {detail}")
        self.text = text
        self.location = location
        self.reason = detail

    def with_location(self, location: DocumentLocation) -> "UnresolvedSymbolReference":
        return UnresolvedSymbolReference(self.text, location, self.reason)


__all__ = [
    "DanglingReference",
    "DocumentLocation",
    "DuplicateSymbol",
    "MalformedDescriptor",
    "ProtodocError",
    "UnresolvedSymbolReference",
]
