"""Fully-qualified symbol table built from decoded descriptor files."""

from __future__ import annotations

from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from .errors import DuplicateSymbol
from .logging import get_logger
from .models import DescriptorNode, ProtoFile, Symbol, SymbolKind


def join_name(scope: str, name: str) -> str:
    return f"{scope}.{name}" if scope else name


def scope_chain(scope: str) -> List[str]:
    """``a.b.C`` -> ``["a.b.C", "a.b", "a", ""]`` (innermost first)."""
    parts = scope.split(".") if scope else []
    return [".".join(parts[:size]) for size in range(len(parts), -1, -1)]


class SymbolTable:
    """Maps fully-qualified names to immutable :class:`Symbol` records.

    Iteration follows declaration order: files in descriptor-set order,
    then each declaration before its children.
    """

    def __init__(self, files: Sequence[ProtoFile]) -> None:
        self.logger = get_logger("symbols")
        self._files: Tuple[ProtoFile, ...] = tuple(files)
        self._symbols: Dict[str, Symbol] = {}
        self._order: List[str] = []
        self._owners: Dict[str, str] = {}
        for proto_file in self._files:
            for node in proto_file.declarations:
                self._add(node, proto_file, proto_file.package, "", None)
        self.logger.debug(
            "Indexed %d symbols across %d files", len(self._order), len(self._files)
        )

    @classmethod
    def build(cls, files: Sequence[ProtoFile]) -> "SymbolTable":
        return cls(files)

    def _add(
        self,
        node: DescriptorNode,
        proto_file: ProtoFile,
        scope: str,
        container_anchor: str,
        parent: Optional[str],
    ) -> str:
        full_name = join_name(scope, node.name)
        if node.kind.is_member:
            anchor = f"{container_anchor}::{node.name}"
        else:
            anchor = join_name(container_anchor, node.name)

        if full_name in self._owners:
            raise DuplicateSymbol(full_name, self._owners[full_name], proto_file.name)
        self._owners[full_name] = proto_file.name
        self._order.append(full_name)

        # a oneof does not open a name scope for its member fields
        if node.kind is SymbolKind.ONEOF:
            child_scope, child_anchor = scope, container_anchor
        else:
            child_scope, child_anchor = full_name, anchor
        children = tuple(
            self._add(child, proto_file, child_scope, child_anchor, full_name)
            for child in node.children
        )

        self._symbols[full_name] = Symbol(
            kind=node.kind,
            name=node.name,
            full_name=full_name,
            package=proto_file.package,
            file=proto_file.name,
            anchor=anchor,
            parent=parent,
            children=children,
            deprecated=node.deprecated,
            comments=node.comments,
            span=node.span,
            detail=node.detail,
        )
        return full_name

    @property
    def files(self) -> Tuple[ProtoFile, ...]:
        return self._files

    def lookup(self, full_name: str) -> Optional[Symbol]:
        return self._symbols.get(full_name)

    def __getitem__(self, full_name: str) -> Symbol:
        return self._symbols[full_name]

    def __contains__(self, full_name: object) -> bool:
        return full_name in self._symbols

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[Symbol]:
        return iter(self.all_symbols())

    def all_symbols(self) -> List[Symbol]:
        return [self._symbols[name] for name in self._order]

    def children(self, symbol: Symbol) -> List[Symbol]:
        return [self._symbols[name] for name in symbol.children]

    def parent(self, symbol: Symbol) -> Optional[Symbol]:
        return self._symbols.get(symbol.parent) if symbol.parent else None

    def ancestors(self, symbol: Symbol) -> List[Symbol]:
        """Enclosing symbols, innermost first."""
        result: List[Symbol] = []
        current = self.parent(symbol)
        while current is not None:
            result.append(current)
            current = self.parent(current)
        return result

    def container(self, symbol: Symbol) -> Symbol:
        """The nearest message, enum or service that is or encloses ``symbol``."""
        current = symbol
        while current.is_member and current.parent:
            current = self._symbols[current.parent]
        return current

    def packages(self) -> List[str]:
        return sorted({proto_file.package for proto_file in self._files})

    def in_package(self, package: str) -> List[Symbol]:
        return [symbol for symbol in self.all_symbols() if symbol.package == package]

    def resolve_scoped(self, name: str, scope: str) -> Optional[Symbol]:
        """Resolve ``name`` the way protoc does from inside ``scope``.

        A leading ``.`` marks an absolute name; otherwise each enclosing
        scope is tried, innermost first, ending at the root.
        """
        if name.startswith("."):
            return self.lookup(name[1:])
        for prefix in scope_chain(scope):
            found = self.lookup(join_name(prefix, name))
            if found is not None:
                return found
        return None


__all__ = ["SymbolTable", "join_name", "scope_chain"]
