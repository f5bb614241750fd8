"""Symbol model, cross references and link resolution for protobuf descriptor sets."""

from .errors import (
    DanglingReference,
    DuplicateSymbol,
    MalformedDescriptor,
    ProtodocError,
    UnresolvedSymbolReference,
)
from .pipeline import ProtoModel, build_model, load_model

__all__ = [
    "DanglingReference",
    "DuplicateSymbol",
    "MalformedDescriptor",
    "ProtoModel",
    "ProtodocError",
    "UnresolvedSymbolReference",
    "build_model",
    "load_model",
]
