"""Higher level views of services, methods, messages and fields, resolved against a `DescriptorSet`."""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import TypeGuard, assert_never

from google.protobuf import descriptor_pb2

from pbjsonrpc_generator import helper
from pbjsonrpc_generator.descriptor import (
    Descriptor,
    DescriptorSet,
    EnumDescriptor,
    MessageDescriptor,
    ServiceDescriptor,
    Syntax,
    TypePath,
)
from pbjsonrpc_generator.proto_types import PROTO_TYPE_TO_SCALAR

logger = logging.getLogger(__name__)

FieldDescriptorProto = descriptor_pb2.FieldDescriptorProto


class DanglingReferenceError(LookupError):
    """Raised when a service method references a type that is not a registered message."""

    def __init__(self, service: TypePath, type_name: str):
        super().__init__(f"Service '{service}' references unknown message type '{type_name}'")
        self.service = service
        self.type_name = type_name


class ScalarType(enum.Enum):
    """Scalar value types, named after their Rust representation."""

    F64 = "f64"
    F32 = "f32"
    I32 = "i32"
    I64 = "i64"
    U32 = "u32"
    U64 = "u64"
    BOOL = "bool"
    STRING = "string"
    BYTES = "bytes"


@dataclass(frozen=True)
class ScalarField:
    scalar: ScalarType


@dataclass(frozen=True)
class EnumField:
    path: TypePath


@dataclass(frozen=True)
class MessageField:
    path: TypePath


@dataclass(frozen=True)
class MapField:
    key: ScalarType
    value: FieldType


FieldType = ScalarField | EnumField | MessageField | MapField


class FieldModifier(enum.Enum):
    """How often a field may be present."""

    REQUIRED = "required"
    OPTIONAL = "optional"
    USE_DEFAULT = "use_default"
    REPEATED = "repeated"


@dataclass(frozen=True)
class Field:
    """A message field."""

    name: str
    field_modifier: FieldModifier
    field_type: FieldType

    @property
    def rust_field_name(self) -> str:
        """The escaped snake_case name, e.g. `type` becomes `r#type`."""
        return helper.escape_identifier(helper.snake_case(self.name))

    @property
    def is_repeated(self) -> bool:
        return self.field_modifier is FieldModifier.REPEATED

    @property
    def is_map(self) -> bool:
        return isinstance(self.field_type, MapField)


@dataclass(frozen=True)
class OneOf:
    """The fields of a oneof, in declaration order."""

    fields: tuple[Field, ...]


@dataclass(frozen=True)
class Message:
    """A message with its fields resolved."""

    path: TypePath
    fields: tuple[Field, ...] = ()
    one_ofs: tuple[OneOf, ...] = ()

    def all_fields(self) -> Iterator[Field]:
        """All direct fields: plain fields in declaration order, then the fields of each oneof."""
        yield from self.fields
        for one_of in self.one_ofs:
            yield from one_of.fields


@dataclass(frozen=True)
class Method:
    """A service method with its input and output messages resolved."""

    name: str
    input: Message
    output: Message
    is_stream: bool

    @property
    def rust_method_name(self) -> str:
        """The snake_case method name.

        This is also the JSON-RPC method name, so it is not escaped.
        """
        return helper.snake_case(self.name)


@dataclass(frozen=True)
class Service:
    path: TypePath
    methods: tuple[Method, ...] = ()


def _is_map_entry(descriptor: Descriptor | None) -> TypeGuard[MessageDescriptor]:
    return isinstance(descriptor, MessageDescriptor) and descriptor.proto.options.map_entry


def _referenced_path(descriptors: DescriptorSet, type_name: str) -> TypePath:
    descriptor = descriptors.lookup(type_name)
    if descriptor is None:
        logger.debug(f"Type '{type_name}' is not registered, using its literal path.")
        return TypePath.from_name(type_name)
    return descriptor.path


def _resolve_field_type(descriptors: DescriptorSet, proto: FieldDescriptorProto) -> FieldType:
    if proto.type in PROTO_TYPE_TO_SCALAR:
        return ScalarField(ScalarType(PROTO_TYPE_TO_SCALAR[proto.type]))

    if proto.type == FieldDescriptorProto.TYPE_ENUM:
        return EnumField(_referenced_path(descriptors, proto.type_name))

    # TYPE_MESSAGE and TYPE_GROUP
    entry = descriptors.lookup(proto.type_name)
    if proto.label == FieldDescriptorProto.LABEL_REPEATED and _is_map_entry(entry):
        entry_fields = {f.number: f for f in entry.proto.field}
        key = _resolve_field_type(descriptors, entry_fields[1])
        if not isinstance(key, ScalarField):
            raise ValueError(f"Map key of '{entry.path}' is not a scalar")
        return MapField(key.scalar, _resolve_field_type(descriptors, entry_fields[2]))

    return MessageField(_referenced_path(descriptors, proto.type_name))


def _field_modifier(proto: FieldDescriptorProto, field_type: FieldType, syntax: Syntax) -> FieldModifier:
    if proto.label == FieldDescriptorProto.LABEL_REPEATED:
        return FieldModifier.REPEATED
    if proto.label == FieldDescriptorProto.LABEL_REQUIRED:
        return FieldModifier.REQUIRED
    # oneof members and proto3 `optional` fields (synthetic oneofs) have explicit presence
    if proto.HasField("oneof_index") or isinstance(field_type, MessageField):
        return FieldModifier.OPTIONAL
    if syntax is Syntax.PROTO3:
        return FieldModifier.USE_DEFAULT
    return FieldModifier.OPTIONAL


def _resolve_field(descriptors: DescriptorSet, proto: FieldDescriptorProto, syntax: Syntax) -> Field:
    field_type = _resolve_field_type(descriptors, proto)
    return Field(
        name=proto.name,
        field_modifier=_field_modifier(proto, field_type, syntax),
        field_type=field_type,
    )


def resolve_message(descriptors: DescriptorSet, message: MessageDescriptor) -> Message:
    """Resolve the fields of a message.

    Fields that belong to a real oneof are grouped into `OneOf`s. The synthetic oneofs
    protoc creates for proto3 `optional` fields are not.

    Args:
        descriptors (DescriptorSet): The registry to resolve field types against.
        message (MessageDescriptor): The message to resolve.

    Returns:
        Message: The resolved message.
    """
    fields: list[Field] = []
    one_of_fields: dict[int, list[Field]] = {}

    for proto in message.proto.field:
        resolved = _resolve_field(descriptors, proto, message.syntax)
        if proto.HasField("oneof_index") and not proto.proto3_optional:
            one_of_fields.setdefault(proto.oneof_index, []).append(resolved)
        else:
            fields.append(resolved)

    one_ofs = tuple(OneOf(fields=tuple(members)) for _, members in sorted(one_of_fields.items()))

    return Message(path=message.path, fields=tuple(fields), one_ofs=one_ofs)


def _resolve_method_message(descriptors: DescriptorSet, service: TypePath, type_name: str) -> Message:
    descriptor = descriptors.lookup(type_name)
    if descriptor is None:
        raise DanglingReferenceError(service, type_name)

    if isinstance(descriptor, MessageDescriptor):
        return resolve_message(descriptors, descriptor)
    elif isinstance(descriptor, (EnumDescriptor, ServiceDescriptor)):
        raise DanglingReferenceError(service, type_name)
    else:
        assert_never(descriptor)


def resolve_service(descriptors: DescriptorSet, service: ServiceDescriptor) -> Service:
    """Resolve the input and output messages of every method of a service.

    Args:
        descriptors (DescriptorSet): The registry to look up method types in.
        service (ServiceDescriptor): The service to resolve.

    Raises:
        DanglingReferenceError: A method input or output is not a registered message.

    Returns:
        Service: The resolved service, methods in declaration order.
    """
    methods = []
    for method in service.proto.method:
        methods.append(
            Method(
                name=method.name,
                input=_resolve_method_message(descriptors, service.path, method.input_type),
                output=_resolve_method_message(descriptors, service.path, method.output_type),
                is_stream=method.server_streaming,
            )
        )

        if method.client_streaming and not method.server_streaming:
            logger.debug(f"Client streaming method '{method.name}' of '{service.path}' is generated as a unary call.")

    return Service(path=service.path, methods=tuple(methods))
