"""Pytest configuration and fixtures for pbjsonrpc generator tests.

Descriptors are built in memory, so no protoc is needed to run the tests.
"""

from __future__ import annotations

from collections.abc import Sequence

import pytest
from google.protobuf import descriptor_pb2

from pbjsonrpc_generator.descriptor import DescriptorSet
from pbjsonrpc_generator.run import Builder, GeneratorConfig

FieldDescriptorProto = descriptor_pb2.FieldDescriptorProto

TYPE_STRING = FieldDescriptorProto.TYPE_STRING
TYPE_INT32 = FieldDescriptorProto.TYPE_INT32
TYPE_INT64 = FieldDescriptorProto.TYPE_INT64
TYPE_UINT32 = FieldDescriptorProto.TYPE_UINT32
TYPE_UINT64 = FieldDescriptorProto.TYPE_UINT64
TYPE_BYTES = FieldDescriptorProto.TYPE_BYTES
TYPE_ENUM = FieldDescriptorProto.TYPE_ENUM
TYPE_MESSAGE = FieldDescriptorProto.TYPE_MESSAGE

LABEL_OPTIONAL = FieldDescriptorProto.LABEL_OPTIONAL
LABEL_REPEATED = FieldDescriptorProto.LABEL_REPEATED
LABEL_REQUIRED = FieldDescriptorProto.LABEL_REQUIRED

EXTERN_WELL_KNOWN = (".google.protobuf", "::pbjson_types")

GREETER_TRAIT = """\
#[jsonrpsee::proc_macros::rpc(server, client)]
pub trait Greeter {
        #[method(name = "say_hello")]
        async fn say_hello(&self, args: Option<HelloRequest>) -> jsonrpsee::core::RpcResult<HelloReply>;
        #[subscription(name = "sub_ticks", unsubscribe = "unsub_ticks", item = Tick)]
        async fn sub_ticks(&self, args: Option<TickRequest>) -> jsonrpsee::core::SubscriptionResult;
        #[method(name = "ping")]
        async fn ping(&self, args: Option<::pbjson_types::Empty>) -> jsonrpsee::core::RpcResult<HelloReply>;
}
"""


def new_field(
    name: str,
    number: int,
    field_type: int,
    label: int = LABEL_OPTIONAL,
    type_name: str = "",
    **kwargs,
) -> FieldDescriptorProto:
    """Create a field descriptor, `json_name` filled in like protoc does."""
    json_name = name.split("_")[0] + "".join(part.title() for part in name.split("_")[1:])
    return FieldDescriptorProto(
        name=name,
        number=number,
        type=field_type,
        label=label,
        type_name=type_name,
        json_name=json_name,
        **kwargs,
    )


def new_map_entry(name: str, key_type: int, value_type: int, value_type_name: str = "") -> descriptor_pb2.DescriptorProto:
    """Create the nested entry message protoc generates for a map field."""
    return descriptor_pb2.DescriptorProto(
        name=name,
        field=[
            new_field("key", 1, key_type),
            new_field("value", 2, value_type, type_name=value_type_name),
        ],
        options=descriptor_pb2.MessageOptions(map_entry=True),
    )


def new_message(
    name: str,
    fields: Sequence[FieldDescriptorProto] = (),
    nested: Sequence[descriptor_pb2.DescriptorProto] = (),
    enums: Sequence[descriptor_pb2.EnumDescriptorProto] = (),
    oneofs: Sequence[str] = (),
) -> descriptor_pb2.DescriptorProto:
    return descriptor_pb2.DescriptorProto(
        name=name,
        field=list(fields),
        nested_type=list(nested),
        enum_type=list(enums),
        oneof_decl=[descriptor_pb2.OneofDescriptorProto(name=oneof) for oneof in oneofs],
    )


def new_enum(name: str, values: Sequence[str]) -> descriptor_pb2.EnumDescriptorProto:
    return descriptor_pb2.EnumDescriptorProto(
        name=name,
        value=[descriptor_pb2.EnumValueDescriptorProto(name=value, number=i) for i, value in enumerate(values)],
    )


def new_method(
    name: str,
    input_type: str,
    output_type: str,
    server_streaming: bool = False,
    client_streaming: bool = False,
) -> descriptor_pb2.MethodDescriptorProto:
    return descriptor_pb2.MethodDescriptorProto(
        name=name,
        input_type=input_type,
        output_type=output_type,
        server_streaming=server_streaming,
        client_streaming=client_streaming,
    )


def new_service(name: str, methods: Sequence[descriptor_pb2.MethodDescriptorProto]) -> descriptor_pb2.ServiceDescriptorProto:
    return descriptor_pb2.ServiceDescriptorProto(name=name, method=list(methods))


def new_file(
    name: str,
    package: str,
    messages: Sequence[descriptor_pb2.DescriptorProto] = (),
    enums: Sequence[descriptor_pb2.EnumDescriptorProto] = (),
    services: Sequence[descriptor_pb2.ServiceDescriptorProto] = (),
    syntax: str = "proto3",
) -> descriptor_pb2.FileDescriptorProto:
    return descriptor_pb2.FileDescriptorProto(
        name=name,
        package=package,
        syntax=syntax,
        message_type=list(messages),
        enum_type=list(enums),
        service=list(services),
    )


def well_known_file() -> descriptor_pb2.FileDescriptorProto:
    """A subset of the protobuf well-known types."""
    return new_file(
        "google/protobuf/well_known.proto",
        "google.protobuf",
        messages=[
            new_message("Empty"),
            new_message(
                "Timestamp",
                [new_field("seconds", 1, TYPE_INT64), new_field("nanos", 2, TYPE_INT32)],
            ),
        ],
    )


def common_file() -> descriptor_pb2.FileDescriptorProto:
    """The `test.common` package with a `Greeter` service covering unary, streaming and foreign input methods."""
    return new_file(
        "test/common.proto",
        "test.common",
        messages=[
            new_message(
                "HelloRequest",
                [
                    new_field("name", 1, TYPE_STRING),
                    new_field("tags", 2, TYPE_STRING, LABEL_REPEATED),
                    new_field("attrs", 3, TYPE_MESSAGE, LABEL_REPEATED, ".test.common.HelloRequest.AttrsEntry"),
                    new_field("kind", 4, TYPE_ENUM, type_name=".test.common.Kind"),
                ],
                nested=[new_map_entry("AttrsEntry", TYPE_STRING, TYPE_INT32)],
            ),
            new_message("HelloReply", [new_field("message", 1, TYPE_STRING)]),
            new_message("TickRequest", [new_field("interval", 1, TYPE_UINT32)]),
            new_message("Tick", [new_field("count", 1, TYPE_UINT64)]),
        ],
        enums=[new_enum("Kind", ["KIND_UNSPECIFIED", "KIND_FAST"])],
        services=[
            new_service(
                "Greeter",
                [
                    new_method("SayHello", ".test.common.HelloRequest", ".test.common.HelloReply"),
                    new_method("sub_ticks", ".test.common.TickRequest", ".test.common.Tick", server_streaming=True),
                    new_method("Ping", ".google.protobuf.Empty", ".test.common.HelloReply"),
                ],
            )
        ],
    )


def other_file() -> descriptor_pb2.FileDescriptorProto:
    """The `test.other` package, with a service referencing `test.common` and the well-known types."""
    return new_file(
        "test/other.proto",
        "test.other",
        messages=[
            new_message(
                "Event",
                [
                    new_field("at", 1, TYPE_MESSAGE, type_name=".google.protobuf.Timestamp"),
                    new_field("reply", 2, TYPE_MESSAGE, type_name=".test.common.HelloReply"),
                ],
            ),
        ],
        services=[
            new_service(
                "Events",
                [new_method("Publish", ".test.other.Event", ".test.common.HelloReply")],
            )
        ],
    )


def encode_files(*files: descriptor_pb2.FileDescriptorProto) -> bytes:
    """Serialize files into an encoded `FileDescriptorSet`."""
    return descriptor_pb2.FileDescriptorSet(file=list(files)).SerializeToString()


@pytest.fixture
def descriptors() -> DescriptorSet:
    """A registry holding the well-known types, `test.common` and `test.other`."""
    descriptor_set = DescriptorSet()
    for file in (well_known_file(), common_file(), other_file()):
        descriptor_set.register_file_descriptor(file)
    return descriptor_set


@pytest.fixture
def config() -> GeneratorConfig:
    return GeneratorConfig(extern_paths=(EXTERN_WELL_KNOWN,))


@pytest.fixture
def builder(config: GeneratorConfig) -> Builder:
    """A builder with all test files registered from an encoded descriptor set."""
    return Builder(config).register_descriptors(encode_files(well_known_file(), common_file(), other_file()))
