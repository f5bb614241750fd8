"""Attach source-info comments to decoded descriptor nodes."""

from __future__ import annotations

from typing import Dict, Iterable, Optional, Tuple

from ..logging import get_logger
from ..models import Comments, ProtoFile, SourceSpan


class CommentExtractor:
    """Matches ``SourceCodeInfo`` locations to nodes by structural path.

    Leading, trailing and detached comments are kept apart; each renders
    in a different position around the declaration.
    """

    def __init__(self) -> None:
        self.logger = get_logger("comments")

    def attach(self, files: Iterable[ProtoFile]) -> None:
        for proto_file in files:
            if proto_file.source_info is None:
                continue
            locations = index_locations(proto_file.source_info)
            attached = 0
            for node in proto_file.walk():
                location = locations.get(node.path)
                if location is None:
                    continue
                node.comments = comments_from_location(location)
                node.span = SourceSpan.from_span(list(location.span))
                attached += 1
            self.logger.debug(
                "Matched %d source locations in %s", attached, proto_file.name
            )


def index_locations(source_info) -> Dict[Tuple[int, ...], object]:
    """Return path -> location, keeping the first location for repeated paths."""
    index: Dict[Tuple[int, ...], object] = {}
    for location in source_info.location:
        key = tuple(location.path)
        index.setdefault(key, location)
    return index


def comments_from_location(location) -> Comments:
    return Comments(
        leading=_clean(location.leading_comments) if location.HasField("leading_comments") else None,
        trailing=_clean(location.trailing_comments)
        if location.HasField("trailing_comments")
        else None,
        detached=tuple(
            cleaned
            for cleaned in (_clean(text) for text in location.leading_detached_comments)
            if cleaned
        ),
    )


def _clean(text: str) -> Optional[str]:
    # protoc keeps the single space after "//" on every line
    lines = [line[1:] if line.startswith(" ") else line for line in text.split("\n")]
    cleaned = "\n".join(lines).strip("\n")
    return cleaned or None


__all__ = ["CommentExtractor", "comments_from_location", "index_locations"]
