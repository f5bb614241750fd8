"""End-to-end construction of the protobuf documentation model."""

from __future__ import annotations

import hashlib
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from .descriptors import CommentExtractor, DescriptorLoader
from .errors import DanglingReference, ProtodocError
from .graph import ReferenceGraph
from .links import DEFAULT_PAGE_ROOT, ContentLink, LinkReport, LinkResolver, Scope, link_document
from .logging import get_logger
from .models import ProtoFile, Symbol
from .pages import PageModel
from .symbols import SymbolTable


@dataclass(frozen=True)
class ProtoModel:
    """Immutable result of one load: table, graph and collected diagnostics.

    A changed descriptor set means building a new model, never patching
    this one.
    """

    files: Tuple[ProtoFile, ...]
    table: SymbolTable
    graph: ReferenceGraph
    fingerprint: str
    page_root: str = DEFAULT_PAGE_ROOT
    source_url: Optional[str] = None
    resolver: LinkResolver = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "resolver", LinkResolver(self.table, page_root=self.page_root))

    @property
    def diagnostics(self) -> Tuple[DanglingReference, ...]:
        return self.graph.diagnostics

    def lookup(self, full_name: str) -> Optional[Symbol]:
        return self.table.lookup(full_name)

    def link(
        self, text: str, *, document: Optional[str] = None, scope: Scope = None
    ) -> LinkReport:
        return link_document(text, self.resolver, document=document, scope=scope)

    def pages(self, content_links: Iterable[ContentLink] = ()) -> PageModel:
        return PageModel(
            self.table,
            self.graph,
            page_root=self.page_root,
            source_url=self.source_url,
            content_links=content_links,
        )


def build_model(
    data: bytes,
    *,
    page_root: str = DEFAULT_PAGE_ROOT,
    source_url: Optional[str] = None,
) -> ProtoModel:
    """Decode descriptor-set bytes and derive every cross-reference.

    Raises :class:`MalformedDescriptor` or :class:`DuplicateSymbol`;
    dangling type references end up in ``model.diagnostics``.
    """
    logger = get_logger("pipeline")
    files = DescriptorLoader().load(data)
    CommentExtractor().attach(files)
    table = SymbolTable.build(files)
    graph = ReferenceGraph.build(table)
    logger.info(
        "Loaded %d proto files, %d symbols, %d reference edges",
        len(files),
        len(table),
        len(graph.edges),
    )
    return ProtoModel(
        files=tuple(files),
        table=table,
        graph=graph,
        fingerprint=fingerprint(data),
        page_root=page_root,
        source_url=source_url,
    )


def load_model(
    path: Path,
    *,
    page_root: str = DEFAULT_PAGE_ROOT,
    source_url: Optional[str] = None,
) -> ProtoModel:
    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        raise ProtodocError(f"Cannot read descriptor set {path}: {exc}") from exc
    return build_model(data, page_root=page_root, source_url=source_url)


def fingerprint(data: bytes) -> str:
    return hashlib.sha256(bytes(data)).hexdigest()


class ModelCache:
    """Keeps built models keyed by descriptor content for reuse across renders."""

    def __init__(self) -> None:
        self._models: Dict[Tuple[str, str, Optional[str]], ProtoModel] = {}
        self._lock = threading.Lock()
        self.logger = get_logger("cache")

    def get(
        self,
        data: bytes,
        *,
        page_root: str = DEFAULT_PAGE_ROOT,
        source_url: Optional[str] = None,
    ) -> ProtoModel:
        key = (fingerprint(data), page_root, source_url)
        with self._lock:
            cached = self._models.get(key)
            if cached is not None:
                self.logger.debug("Reusing model %s", key[0][:12])
                return cached
            model = build_model(data, page_root=page_root, source_url=source_url)
            self._models[key] = model
            return model

    def clear(self) -> None:
        with self._lock:
            self._models.clear()

    def __len__(self) -> int:
        return len(self._models)


def merge_content_links(reports: Iterable[LinkReport]) -> List[ContentLink]:
    links: List[ContentLink] = []
    for report in reports:
        links.extend(report.content_links)
    return links


__all__ = [
    "ModelCache",
    "ProtoModel",
    "build_model",
    "fingerprint",
    "load_model",
    "merge_content_links",
]
