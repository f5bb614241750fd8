"""Reference table for protobuf scalar value types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class ScalarType:
    """How a scalar proto type maps onto generated code."""

    proto: str
    note: str
    cpp: str
    java: str
    python: str
    go: str
    rust: str


_VARINT_NEGATIVE = (
    "Uses variable-length encoding. Inefficient for encoding negative numbers; "
    "if the field is likely to hold negative values, use {alt} instead."
)

SCALAR_TYPES: Dict[str, ScalarType] = {
    scalar.proto: scalar
    for scalar in (
        ScalarType("double", "", "double", "double", "float", "float64", "f64"),
        ScalarType("float", "", "float", "float", "float", "float32", "f32"),
        ScalarType("int32", _VARINT_NEGATIVE.format(alt="sint32"), "int32", "int", "int", "int32", "i32"),
        ScalarType("int64", _VARINT_NEGATIVE.format(alt="sint64"), "int64", "long", "int", "int64", "i64"),
        ScalarType("uint32", "Uses variable-length encoding.", "uint32", "int", "int", "uint32", "u32"),
        ScalarType("uint64", "Uses variable-length encoding.", "uint64", "long", "int", "uint64", "u64"),
        ScalarType(
            "sint32",
            "Uses variable-length encoding. Signed value that encodes negative numbers "
            "more efficiently than int32.",
            "int32", "int", "int", "int32", "i32",
        ),
        ScalarType(
            "sint64",
            "Uses variable-length encoding. Signed value that encodes negative numbers "
            "more efficiently than int64.",
            "int64", "long", "int", "int64", "i64",
        ),
        ScalarType(
            "fixed32",
            "Always four bytes. More efficient than uint32 if values are often greater than 2^28.",
            "uint32", "int", "int", "uint32", "u32",
        ),
        ScalarType(
            "fixed64",
            "Always eight bytes. More efficient than uint64 if values are often greater than 2^56.",
            "uint64", "long", "int", "uint64", "u64",
        ),
        ScalarType("sfixed32", "Always four bytes.", "int32", "int", "int", "int32", "i32"),
        ScalarType("sfixed64", "Always eight bytes.", "int64", "long", "int", "int64", "i64"),
        ScalarType("bool", "", "bool", "boolean", "bool", "bool", "bool"),
        ScalarType(
            "string",
            "Must contain UTF-8 encoded or 7-bit ASCII text, no longer than 2^32.",
            "string", "String", "str", "string", "String",
        ),
        ScalarType(
            "bytes",
            "Any sequence of bytes no longer than 2^32.",
            "string", "ByteString", "bytes", "[]byte", "Vec<u8>",
        ),
    )
}


def scalar_type(name: Optional[str]) -> Optional[ScalarType]:
    if name is None:
        return None
    return SCALAR_TYPES.get(name)


__all__ = ["SCALAR_TYPES", "ScalarType", "scalar_type"]
