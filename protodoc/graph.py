"""Directed type-reference graph and derived backlinks."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from enum import StrEnum
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .errors import DanglingReference
from .logging import get_logger
from .models import FieldDetail, MethodDetail, Symbol, SymbolKind
from .symbols import SymbolTable

_TYPE_KINDS = frozenset({SymbolKind.MESSAGE, SymbolKind.ENUM})


class EdgeKind(StrEnum):
    FIELD_TYPE = "field_type"
    METHOD_INPUT = "method_input"
    METHOD_OUTPUT = "method_output"
    NESTED_IN = "nested_in"


@dataclass(frozen=True)
class ReferenceEdge:
    """``source`` references ``target``.

    Field edges start at the declaring message; ``via`` names the field
    (or method) that carries the reference.
    """

    source: str
    target: str
    kind: EdgeKind
    via: Optional[str] = None


class ReferenceGraph:
    """Resolves recorded type names once and inverts them into backlinks.

    Unresolvable names are collected as :class:`DanglingReference`
    diagnostics and their edges are left out. Cycles, including
    self-references, are kept as-is.
    """

    def __init__(self, table: SymbolTable) -> None:
        self.logger = get_logger("graph")
        self._table = table
        edges: List[ReferenceEdge] = []
        diagnostics: List[DanglingReference] = []
        for symbol in table.all_symbols():
            for edge_or_error in self._edges_for(symbol):
                if isinstance(edge_or_error, DanglingReference):
                    self.logger.warning("%s", edge_or_error)
                    diagnostics.append(edge_or_error)
                else:
                    edges.append(edge_or_error)
        self._edges: Tuple[ReferenceEdge, ...] = tuple(edges)
        self._diagnostics: Tuple[DanglingReference, ...] = tuple(diagnostics)

        self._outgoing: Dict[str, List[ReferenceEdge]] = defaultdict(list)
        self._incoming: Dict[str, List[ReferenceEdge]] = defaultdict(list)
        self._carried: Dict[str, List[ReferenceEdge]] = defaultdict(list)
        for edge in self._edges:
            self._outgoing[edge.source].append(edge)
            self._incoming[edge.target].append(edge)
            if edge.via is not None and edge.via != edge.source:
                self._carried[edge.via].append(edge)
        self.logger.debug(
            "Resolved %d reference edges (%d dangling)", len(self._edges), len(self._diagnostics)
        )

    @classmethod
    def build(cls, table: SymbolTable) -> "ReferenceGraph":
        return cls(table)

    def _edges_for(self, symbol: Symbol) -> Iterable[ReferenceEdge | DanglingReference]:
        detail = symbol.detail
        if isinstance(detail, FieldDetail) and detail.type_name:
            owner = self._table.container(symbol)
            yield self._resolve(
                symbol, detail.type_name, owner.full_name, owner.full_name, EdgeKind.FIELD_TYPE
            )
        elif isinstance(detail, MethodDetail):
            scope = symbol.parent or symbol.package
            yield self._resolve(
                symbol, detail.input_type, scope, symbol.full_name, EdgeKind.METHOD_INPUT
            )
            yield self._resolve(
                symbol, detail.output_type, scope, symbol.full_name, EdgeKind.METHOD_OUTPUT
            )
        elif symbol.kind in _TYPE_KINDS and symbol.parent:
            yield ReferenceEdge(symbol.full_name, symbol.parent, EdgeKind.NESTED_IN)

    def _resolve(
        self, symbol: Symbol, type_name: str, scope: str, source: str, kind: EdgeKind
    ) -> ReferenceEdge | DanglingReference:
        target = self._table.resolve_scoped(type_name, scope)
        if target is None or target.kind not in _TYPE_KINDS:
            return DanglingReference(symbol.full_name, type_name.lstrip("."), symbol.file)
        return ReferenceEdge(source, target.full_name, kind, via=symbol.full_name)

    @property
    def edges(self) -> Tuple[ReferenceEdge, ...]:
        return self._edges

    @property
    def diagnostics(self) -> Tuple[DanglingReference, ...]:
        return self._diagnostics

    def edges_from(self, symbol: Symbol) -> List[ReferenceEdge]:
        """Edges the symbol originates or carries (a field's own edge)."""
        return list(self._outgoing.get(symbol.full_name, ())) + list(
            self._carried.get(symbol.full_name, ())
        )

    def edges_to(self, symbol: Symbol) -> List[ReferenceEdge]:
        return list(self._incoming.get(symbol.full_name, ()))

    def references_of(
        self, symbol: Symbol, kinds: Optional[Iterable[EdgeKind]] = None
    ) -> Set[Symbol]:
        wanted = set(kinds) if kinds is not None else None
        return {
            self._table[edge.target]
            for edge in self.edges_from(symbol)
            if wanted is None or edge.kind in wanted
        }

    def referenced_by(
        self, symbol: Symbol, kinds: Optional[Iterable[EdgeKind]] = None
    ) -> Set[Symbol]:
        """The backlink set of ``symbol``."""
        wanted = set(kinds) if kinds is not None else None
        return {
            self._table[edge.source]
            for edge in self.edges_to(symbol)
            if wanted is None or edge.kind in wanted
        }

    def resolved_type(self, symbol: Symbol, kind: EdgeKind = EdgeKind.FIELD_TYPE) -> Optional[Symbol]:
        """Target of a field's type, or of a method's input/output."""
        for edge in self.edges_from(symbol):
            if edge.kind is kind and edge.via == symbol.full_name:
                return self._table[edge.target]
        return None


__all__ = ["EdgeKind", "ReferenceEdge", "ReferenceGraph"]
