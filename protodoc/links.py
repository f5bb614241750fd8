"""Resolution of ``proto!(...)`` link macros found in authored prose."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Union

from jinja2 import Environment

from .errors import DocumentLocation, UnresolvedSymbolReference
from .logging import get_logger
from .models import Symbol
from .symbols import SymbolTable, join_name, scope_chain

DEFAULT_PAGE_ROOT = "proto"

_NAME = r"[A-Za-z_][A-Za-z0-9_]*"
_REFERENCE_PATTERN = re.compile(
    rf"^(?P<absolute>\.)?(?P<path>{_NAME}(?:\.{_NAME})*)(?:::(?P<member>{_NAME}))?$"
)
_MACRO_PATTERN = re.compile(
    r"\[(?P<label>[^\]\n]*)\]\(\s*proto!\((?P<link_ref>[^()\n]*)\)\s*\)"
    r"|proto!\((?P<bare_ref>[^()\n]*)\)"
)
_FENCE_PATTERN = re.compile(r"^\s*(?P<fence>`{3,}|~{3,})(?P<info>.*)$")
_CODE_SPAN_PATTERN = re.compile(r"`[^`\n]*`")

_ENV = Environment(autoescape=True)
_LINK_TEMPLATE = _ENV.from_string(
    '<a href="{{ href }}"{% if usage_id %} id="{{ usage_id }}"{% endif %}>{{ label }}</a>'
)
_BROKEN_TEMPLATE = _ENV.from_string(
    '<span class="proto-broken-link" title="Unresolved protobuf reference: {{ text }}">'
    "{{ label }}</span>"
)

Scope = Union[Symbol, str, None]


def page_path(package: str, page_root: str = DEFAULT_PAGE_ROOT) -> str:
    """Page holding every symbol of ``package``."""
    slug = package.replace(".", "/") if package else "index"
    return f"/{page_root.strip('/')}/{slug}.md"


@dataclass(frozen=True)
class LinkTarget:
    """A resolved macro: the symbol plus where its documentation lives."""

    symbol: Symbol
    href: str

    @property
    def full_name(self) -> str:
        return self.symbol.full_name

    @property
    def anchor(self) -> str:
        return self.symbol.anchor


@dataclass(frozen=True)
class ContentLink:
    """One prose occurrence of a resolved macro, used as a backlink."""

    document: str
    usage_id: str
    label: str
    target: str

    @property
    def href(self) -> str:
        return f"/{self.document.lstrip('/')}#{self.usage_id}"


@dataclass
class LinkReport:
    text: str
    diagnostics: List[UnresolvedSymbolReference] = field(default_factory=list)
    content_links: List[ContentLink] = field(default_factory=list)


class LinkResolver:
    """Resolves macro text against a :class:`SymbolTable`.

    Lookup order:

    1. the text as a fully-qualified name;
    2. when a scope is given, the text appended to each enclosing scope,
       innermost first: the scope's container (message, enum or service),
       its enclosing containers, its package, then each parent package.

    ``Container::member`` only matches fields, oneofs, enum values and
    methods declared directly in ``Container``. A leading ``.`` skips step 2.
    Matching is exact and case-sensitive.
    """

    def __init__(self, table: SymbolTable, *, page_root: str = DEFAULT_PAGE_ROOT) -> None:
        self._table = table
        self.page_root = page_root

    def target(self, symbol: Symbol) -> LinkTarget:
        return LinkTarget(symbol, f"{page_path(symbol.package, self.page_root)}#{symbol.anchor}")

    def resolve(self, text: str, scope: Scope = None) -> LinkTarget:
        reference = text.strip()
        match = _REFERENCE_PATTERN.match(reference)
        if match is None:
            raise UnresolvedSymbolReference(text, reason="not a valid protobuf reference")

        member = match.group("member")
        candidate = match.group("path")
        if member:
            candidate = f"{candidate}.{member}"

        names = [candidate]
        if not match.group("absolute"):
            names.extend(join_name(prefix, candidate) for prefix in self._scopes(scope))

        for full_name in names:
            symbol = self._table.lookup(full_name)
            if symbol is None:
                continue
            if member and not self._is_member_of(symbol, full_name):
                continue
            return self.target(symbol)
        raise UnresolvedSymbolReference(text)

    def _scopes(self, scope: Scope) -> List[str]:
        if scope is None:
            return []
        if isinstance(scope, Symbol):
            scope = self._table.container(scope).full_name
        return [prefix for prefix in scope_chain(scope) if prefix]

    def _is_member_of(self, symbol: Symbol, full_name: str) -> bool:
        if not symbol.is_member or not symbol.parent:
            return False
        container = self._table.container(self._table[symbol.parent])
        return container.full_name == full_name.rsplit(".", 1)[0]


def _closes(opener: str, marker: str, info: str) -> bool:
    """Closing fences repeat the opening character at least as often and carry no info string."""
    return marker[0] == opener[0] and len(marker) >= len(opener) and not info.strip()


def link_document(
    text: str,
    resolver: LinkResolver,
    *,
    document: Optional[str] = None,
    scope: Scope = None,
) -> LinkReport:
    """Replace every ``proto!`` macro in markdown ``text`` with an HTML link.

    Fenced code blocks and inline code spans are left untouched. Failed
    references become broken-link markers and are reported, never raised.
    """
    logger = get_logger("links")
    report = LinkReport(text="")
    counter = 0
    open_fence: Optional[str] = None
    lines_out: List[str] = []

    for line_number, line in enumerate(text.split("\n"), start=1):
        fence = _FENCE_PATTERN.match(line)
        if fence is not None:
            marker = fence.group("fence")
            if open_fence is None:
                open_fence = marker
            elif _closes(open_fence, marker, fence.group("info")):
                open_fence = None
            lines_out.append(line)
            continue
        if open_fence is not None or "proto!(" not in line:
            lines_out.append(line)
            continue

        def _replace(match: re.Match[str]) -> str:
            nonlocal counter
            if any(start <= match.start() < end for start, end in code_spans):
                return match.group(0)
            reference = match.group("link_ref")
            label = match.group("label")
            if reference is None:
                reference = match.group("bare_ref")
                label = None
            location = DocumentLocation(document, line_number)
            try:
                target = resolver.resolve(reference, scope)
            except UnresolvedSymbolReference as exc:
                failure = exc.with_location(location)
                logger.warning("%s", failure)
                report.diagnostics.append(failure)
                return _BROKEN_TEMPLATE.render(text=reference, label=label or reference)

            counter += 1
            label = label or target.symbol.name
            usage_id = None
            if document is not None:
                usage_id = f"ref-{counter}-{target.full_name}"
                report.content_links.append(
                    ContentLink(document, usage_id, label, target.full_name)
                )
            return _LINK_TEMPLATE.render(href=target.href, usage_id=usage_id, label=label)

        code_spans = [span.span() for span in _CODE_SPAN_PATTERN.finditer(line)]
        lines_out.append(_MACRO_PATTERN.sub(_replace, line))

    report.text = "\n".join(lines_out)
    return report


__all__ = [
    "ContentLink",
    "LinkReport",
    "LinkResolver",
    "LinkTarget",
    "link_document",
    "page_path",
]
