"""Per-symbol page data handed to the documentation renderer."""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, Field

from .graph import EdgeKind, ReferenceGraph
from .links import DEFAULT_PAGE_ROOT, ContentLink, page_path
from .models import Comments, EnumValueDetail, FieldDetail, MethodDetail, Symbol
from .primitives import ScalarType, scalar_type
from .symbols import SymbolTable


class CommentsData(BaseModel):
    leading: Optional[str] = None
    trailing: Optional[str] = None
    detached: List[str] = Field(default_factory=list)

    @classmethod
    def from_comments(cls, comments: Comments) -> "CommentsData":
        return cls(
            leading=comments.leading,
            trailing=comments.trailing,
            detached=list(comments.detached),
        )


class SymbolRef(BaseModel):
    full_name: str
    name: str
    kind: str
    href: str


class BacklinkData(BaseModel):
    """A symbol whose definition references the page's symbol."""

    source: SymbolRef
    kind: EdgeKind
    via: Optional[SymbolRef] = None


class ContentBacklinkData(BaseModel):
    """A prose document that links to the page's symbol."""

    document: str
    label: str
    href: str


class ScalarData(BaseModel):
    proto: str
    note: str
    cpp: str
    java: str
    python: str
    go: str
    rust: str

    @classmethod
    def from_scalar(cls, scalar: ScalarType) -> "ScalarData":
        return cls(
            proto=scalar.proto,
            note=scalar.note,
            cpp=scalar.cpp,
            java=scalar.java,
            python=scalar.python,
            go=scalar.go,
            rust=scalar.rust,
        )


class FieldData(BaseModel):
    number: int
    cardinality: str
    scalar: Optional[ScalarData] = None
    type: Optional[SymbolRef] = None
    # raw type name, kept when the reference could not be resolved
    type_name: Optional[str] = None
    key_type: Optional[str] = None
    oneof: Optional[str] = None
    json_name: Optional[str] = None
    default_value: Optional[str] = None


class MethodData(BaseModel):
    input_type: str
    output_type: str
    input: Optional[SymbolRef] = None
    output: Optional[SymbolRef] = None
    client_streaming: bool = False
    server_streaming: bool = False


class PageData(BaseModel):
    full_name: str
    name: str
    kind: str
    anchor: str
    href: str
    package: str
    file: str
    deprecated: bool = False
    comments: CommentsData = Field(default_factory=CommentsData)
    source_url: Optional[str] = None
    children: List[SymbolRef] = Field(default_factory=list)
    field: Optional[FieldData] = None
    method: Optional[MethodData] = None
    enum_number: Optional[int] = None
    backlinks: List[BacklinkData] = Field(default_factory=list)
    content_backlinks: List[ContentBacklinkData] = Field(default_factory=list)


class PackagePage(BaseModel):
    package: str
    path: str
    files: List[str] = Field(default_factory=list)
    pages: List[PageData] = Field(default_factory=list)


class PageModel:
    """Pure transform from the built model into :class:`PageData` records."""

    def __init__(
        self,
        table: SymbolTable,
        graph: ReferenceGraph,
        *,
        page_root: str = DEFAULT_PAGE_ROOT,
        source_url: Optional[str] = None,
        content_links: Iterable[ContentLink] = (),
    ) -> None:
        self._table = table
        self._graph = graph
        self.page_root = page_root
        self.source_url = source_url
        self._content_links: Dict[str, List[ContentLink]] = defaultdict(list)
        for link in content_links:
            self._content_links[link.target].append(link)

    def ref(self, symbol: Symbol) -> SymbolRef:
        return SymbolRef(
            full_name=symbol.full_name,
            name=symbol.name,
            kind=symbol.kind.value,
            href=f"{page_path(symbol.package, self.page_root)}#{symbol.anchor}",
        )

    def build_page(self, symbol: Symbol) -> PageData:
        page = PageData(
            full_name=symbol.full_name,
            name=symbol.name,
            kind=symbol.kind.value,
            anchor=symbol.anchor,
            href=f"{page_path(symbol.package, self.page_root)}#{symbol.anchor}",
            package=symbol.package,
            file=symbol.file,
            deprecated=symbol.deprecated,
            comments=CommentsData.from_comments(symbol.comments),
            source_url=symbol.source_url(self.source_url),
            children=[self.ref(child) for child in self._table.children(symbol)],
            backlinks=self._backlinks(symbol),
            content_backlinks=[
                ContentBacklinkData(document=link.document, label=link.label, href=link.href)
                for link in self._content_links.get(symbol.full_name, ())
            ],
        )
        detail = symbol.detail
        if isinstance(detail, FieldDetail):
            page.field = self._field_data(symbol, detail)
        elif isinstance(detail, MethodDetail):
            page.method = self._method_data(symbol, detail)
        elif isinstance(detail, EnumValueDetail):
            page.enum_number = detail.number
        return page

    def build_package(self, package: str) -> PackagePage:
        return PackagePage(
            package=package,
            path=page_path(package, self.page_root),
            files=[
                proto_file.name
                for proto_file in self._table.files
                if proto_file.package == package
            ],
            pages=[self.build_page(symbol) for symbol in self._table.in_package(package)],
        )

    def build_all(self) -> List[PackagePage]:
        return [self.build_package(package) for package in self._table.packages()]

    def _backlinks(self, symbol: Symbol) -> List[BacklinkData]:
        seen = set()
        backlinks: List[BacklinkData] = []
        edges = sorted(
            self._graph.edges_to(symbol),
            key=lambda edge: (edge.source, edge.kind.value, edge.via or ""),
        )
        for edge in edges:
            key = (edge.source, edge.kind, edge.via)
            if key in seen:
                continue
            seen.add(key)
            via = None
            if edge.via is not None and edge.via != edge.source:
                via = self.ref(self._table[edge.via])
            backlinks.append(
                BacklinkData(source=self.ref(self._table[edge.source]), kind=edge.kind, via=via)
            )
        return backlinks

    def _field_data(self, symbol: Symbol, detail: FieldDetail) -> FieldData:
        target = self._graph.resolved_type(symbol, EdgeKind.FIELD_TYPE)
        scalar = scalar_type(detail.scalar_type)
        return FieldData(
            number=detail.number,
            cardinality=detail.cardinality.value,
            scalar=ScalarData.from_scalar(scalar) if scalar is not None else None,
            type=self.ref(target) if target is not None else None,
            type_name=detail.type_name.lstrip(".") if detail.type_name else None,
            key_type=detail.key_type,
            oneof=detail.oneof,
            json_name=detail.json_name,
            default_value=detail.default_value,
        )

    def _method_data(self, symbol: Symbol, detail: MethodDetail) -> MethodData:
        request = self._graph.resolved_type(symbol, EdgeKind.METHOD_INPUT)
        response = self._graph.resolved_type(symbol, EdgeKind.METHOD_OUTPUT)
        return MethodData(
            input_type=detail.input_type.lstrip("."),
            output_type=detail.output_type.lstrip("."),
            input=self.ref(request) if request is not None else None,
            output=self.ref(response) if response is not None else None,
            client_streaming=detail.client_streaming,
            server_streaming=detail.server_streaming,
        )


__all__ = [
    "BacklinkData",
    "CommentsData",
    "ContentBacklinkData",
    "FieldData",
    "MethodData",
    "PackagePage",
    "PageData",
    "PageModel",
    "ScalarData",
]
