"""Decode serialized ``FileDescriptorSet`` bytes into descriptor nodes."""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from google.protobuf import descriptor_pb2
from google.protobuf.message import DecodeError

from ..errors import MalformedDescriptor
from ..logging import get_logger
from ..models import (
    Cardinality,
    DescriptorNode,
    EnumValueDetail,
    FieldDetail,
    MethodDetail,
    ProtoFile,
    SymbolKind,
)
from ..symbols import join_name

# Field numbers from descriptor.proto, used to build source-info paths.
FILE_MESSAGE_TAG = 4
FILE_ENUM_TAG = 5
FILE_SERVICE_TAG = 6
MESSAGE_FIELD_TAG = 2
MESSAGE_NESTED_TAG = 3
MESSAGE_ENUM_TAG = 4
MESSAGE_ONEOF_TAG = 8
ENUM_VALUE_TAG = 2
SERVICE_METHOD_TAG = 2

_FieldProto = descriptor_pb2.FieldDescriptorProto
_REFERENCE_TYPES = {_FieldProto.TYPE_MESSAGE, _FieldProto.TYPE_ENUM, _FieldProto.TYPE_GROUP}


def decode_descriptor_set(data: bytes) -> descriptor_pb2.FileDescriptorSet:
    """Parse raw bytes, failing with :class:`MalformedDescriptor`."""
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise MalformedDescriptor(
            f"Descriptor set must be bytes, got {type(data).__name__}"
        )
    try:
        return descriptor_pb2.FileDescriptorSet.FromString(bytes(data))
    except DecodeError as exc:
        raise MalformedDescriptor(f"Failed to decode descriptor set: {exc}") from exc


class DescriptorLoader:
    """Builds :class:`ProtoFile` trees in declaration order.

    Oneof members arrive flattened in the message's field list and are
    regrouped under their oneof node here. Compiler-generated map entry
    messages are folded into the owning map field.
    """

    def __init__(self) -> None:
        self.logger = get_logger("loader")

    def load(self, data: bytes) -> List[ProtoFile]:
        descriptor_set = decode_descriptor_set(data)
        files = [self.load_file(proto) for proto in descriptor_set.file]
        self.logger.debug("Decoded %d descriptor files", len(files))
        return files

    def load_file(self, proto: descriptor_pb2.FileDescriptorProto) -> ProtoFile:
        if not proto.name:
            raise MalformedDescriptor("Descriptor set contains a file without a name")
        syntax = proto.syntax or "proto2"
        proto_file = ProtoFile(
            name=proto.name,
            package=proto.package,
            syntax=syntax,
            dependencies=list(proto.dependency),
            source_info=proto.source_code_info if proto.HasField("source_code_info") else None,
        )
        for index, message in enumerate(proto.message_type):
            proto_file.declarations.append(
                self._load_message(
                    message, (FILE_MESSAGE_TAG, index), proto_file, proto_file.package
                )
            )
        for index, enum in enumerate(proto.enum_type):
            proto_file.declarations.append(
                self._load_enum(enum, (FILE_ENUM_TAG, index), proto_file)
            )
        for index, service in enumerate(proto.service):
            proto_file.declarations.append(
                self._load_service(service, (FILE_SERVICE_TAG, index), proto_file)
            )
        self.logger.debug(
            "Loaded %s (package %r, %d top-level declarations)",
            proto_file.name,
            proto_file.package,
            len(proto_file.declarations),
        )
        return proto_file

    def _load_message(
        self,
        message: descriptor_pb2.DescriptorProto,
        path: Tuple[int, ...],
        proto_file: ProtoFile,
        scope: str,
    ) -> DescriptorNode:
        _require_name(message.name, "message", proto_file)
        full_name = join_name(scope, message.name)
        node = DescriptorNode(
            kind=SymbolKind.MESSAGE,
            name=message.name,
            path=path,
            deprecated=_deprecated(message),
        )

        # keyed by the absolute type name a map field refers to
        map_entries = {
            "." + join_name(full_name, nested.name): nested
            for nested in message.nested_type
            if nested.options.map_entry
        }
        synthetic = _synthetic_oneofs(message)
        oneofs: Dict[int, DescriptorNode] = {}
        for index, oneof in enumerate(message.oneof_decl):
            if index in synthetic:
                continue
            _require_name(oneof.name, "oneof", proto_file)
            oneofs[index] = DescriptorNode(
                kind=SymbolKind.ONEOF,
                name=oneof.name,
                path=path + (MESSAGE_ONEOF_TAG, index),
            )

        placed: set[int] = set()
        for index, field in enumerate(message.field):
            oneof_index: Optional[int] = None
            if field.HasField("oneof_index") and field.oneof_index in oneofs:
                oneof_index = field.oneof_index
            field_node = self._load_field(
                field,
                path + (MESSAGE_FIELD_TAG, index),
                proto_file,
                full_name,
                map_entries,
                oneofs[oneof_index].name if oneof_index is not None else None,
            )
            if oneof_index is None:
                node.children.append(field_node)
                continue
            group = oneofs[oneof_index]
            if oneof_index not in placed:
                # the group takes the position of its first member
                node.children.append(group)
                placed.add(oneof_index)
            group.children.append(field_node)

        for index, group in oneofs.items():
            if index not in placed:
                node.children.append(group)

        for index, nested in enumerate(message.nested_type):
            if nested.options.map_entry:
                continue
            node.children.append(
                self._load_message(
                    nested, path + (MESSAGE_NESTED_TAG, index), proto_file, full_name
                )
            )
        for index, enum in enumerate(message.enum_type):
            node.children.append(
                self._load_enum(enum, path + (MESSAGE_ENUM_TAG, index), proto_file)
            )
        return node

    def _load_field(
        self,
        field: descriptor_pb2.FieldDescriptorProto,
        path: Tuple[int, ...],
        proto_file: ProtoFile,
        message_name: str,
        map_entries: Dict[str, descriptor_pb2.DescriptorProto],
        oneof: Optional[str],
    ) -> DescriptorNode:
        _require_name(field.name, "field", proto_file)
        scalar_type, type_name = _field_type(field, proto_file)
        key_type: Optional[str] = None

        entry = None
        if field.label == _FieldProto.LABEL_REPEATED and type_name:
            absolute = type_name
            if not absolute.startswith("."):
                absolute = "." + join_name(message_name, type_name)
            entry = map_entries.get(absolute)
        if entry is not None:
            cardinality = Cardinality.MAP
            key_field, value_field = _map_entry_fields(entry, proto_file)
            key_type, _ = _field_type(key_field, proto_file)
            scalar_type, type_name = _field_type(value_field, proto_file)
        elif field.label == _FieldProto.LABEL_REPEATED:
            cardinality = Cardinality.REPEATED
        elif field.label == _FieldProto.LABEL_REQUIRED:
            cardinality = Cardinality.REQUIRED
        elif field.proto3_optional or (
            proto_file.syntax == "proto2" and field.label == _FieldProto.LABEL_OPTIONAL
        ):
            cardinality = Cardinality.OPTIONAL
        else:
            cardinality = Cardinality.SINGULAR

        return DescriptorNode(
            kind=SymbolKind.FIELD,
            name=field.name,
            path=path,
            deprecated=_deprecated(field),
            detail=FieldDetail(
                number=field.number,
                cardinality=cardinality,
                scalar_type=scalar_type,
                type_name=type_name,
                key_type=key_type,
                oneof=oneof,
                json_name=field.json_name if field.HasField("json_name") else None,
                default_value=(
                    field.default_value if field.HasField("default_value") else None
                ),
            ),
        )

    def _load_enum(
        self,
        enum: descriptor_pb2.EnumDescriptorProto,
        path: Tuple[int, ...],
        proto_file: ProtoFile,
    ) -> DescriptorNode:
        _require_name(enum.name, "enum", proto_file)
        node = DescriptorNode(
            kind=SymbolKind.ENUM,
            name=enum.name,
            path=path,
            deprecated=_deprecated(enum),
        )
        for index, value in enumerate(enum.value):
            _require_name(value.name, "enum value", proto_file)
            node.children.append(
                DescriptorNode(
                    kind=SymbolKind.ENUM_VALUE,
                    name=value.name,
                    path=path + (ENUM_VALUE_TAG, index),
                    deprecated=_deprecated(value),
                    detail=EnumValueDetail(number=value.number),
                )
            )
        return node

    def _load_service(
        self,
        service: descriptor_pb2.ServiceDescriptorProto,
        path: Tuple[int, ...],
        proto_file: ProtoFile,
    ) -> DescriptorNode:
        _require_name(service.name, "service", proto_file)
        node = DescriptorNode(
            kind=SymbolKind.SERVICE,
            name=service.name,
            path=path,
            deprecated=_deprecated(service),
        )
        for index, method in enumerate(service.method):
            _require_name(method.name, "method", proto_file)
            if not method.input_type or not method.output_type:
                raise MalformedDescriptor(
                    f"Method {service.name}.{method.name} in {proto_file.name} "
                    "is missing its input or output type"
                )
            node.children.append(
                DescriptorNode(
                    kind=SymbolKind.METHOD,
                    name=method.name,
                    path=path + (SERVICE_METHOD_TAG, index),
                    deprecated=_deprecated(method),
                    detail=MethodDetail(
                        input_type=method.input_type,
                        output_type=method.output_type,
                        client_streaming=method.client_streaming,
                        server_streaming=method.server_streaming,
                    ),
                )
            )
        return node


def scalar_name(field_type: int) -> str:
    """``TYPE_SFIXED64`` -> ``sfixed64``."""
    return _FieldProto.Type.Name(field_type)[len("TYPE_"):].lower()


def _field_type(
    field: descriptor_pb2.FieldDescriptorProto, proto_file: ProtoFile
) -> Tuple[Optional[str], Optional[str]]:
    if field.type in _REFERENCE_TYPES or (not field.HasField("type") and field.type_name):
        if not field.type_name:
            raise MalformedDescriptor(
                f"Field {field.name} in {proto_file.name} has a message or enum type "
                "but no type name"
            )
        return None, field.type_name
    if not field.HasField("type"):
        raise MalformedDescriptor(f"Field {field.name} in {proto_file.name} has no type")
    return scalar_name(field.type), None


def _map_entry_fields(
    entry: descriptor_pb2.DescriptorProto, proto_file: ProtoFile
) -> Tuple[descriptor_pb2.FieldDescriptorProto, descriptor_pb2.FieldDescriptorProto]:
    by_number = {field.number: field for field in entry.field}
    if 1 not in by_number or 2 not in by_number:
        raise MalformedDescriptor(
            f"Map entry {entry.name} in {proto_file.name} lacks key or value field"
        )
    return by_number[1], by_number[2]


def _synthetic_oneofs(message: descriptor_pb2.DescriptorProto) -> set[int]:
    """Oneofs the compiler generated for proto3 ``optional`` fields."""
    members: Dict[int, List[descriptor_pb2.FieldDescriptorProto]] = {}
    for field in message.field:
        if field.HasField("oneof_index"):
            members.setdefault(field.oneof_index, []).append(field)
    return {
        index
        for index, fields in members.items()
        if fields and all(field.proto3_optional for field in fields)
    }


def _deprecated(descriptor) -> bool:
    return descriptor.HasField("options") and descriptor.options.deprecated


def _require_name(name: str, what: str, proto_file: ProtoFile) -> None:
    if not name:
        raise MalformedDescriptor(f"Unnamed {what} declared in {proto_file.name}")


__all__ = ["DescriptorLoader", "decode_descriptor_set", "scalar_name"]
