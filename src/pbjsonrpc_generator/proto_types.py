"""Types definitions that are common in protobuf schemas."""

from __future__ import annotations

from google.protobuf import descriptor_pb2

FieldDescriptorProto = descriptor_pb2.FieldDescriptorProto

WELL_KNOWN_PREFIX = ".google.protobuf"
"""Types under this prefix are treated as foreign when shaping method arguments."""

SUBSCRIBE_PREFIX = "sub_"
UNSUBSCRIBE_PREFIX = "unsub_"

OUTPUT_SUFFIX = "jsonrpc.rs"
EMPTY_PACKAGE_NAME = "_"

PROTO_SCALAR_TO_RUST = {
    "f64": "f64",
    "f32": "f32",
    "i32": "i32",
    "i64": "i64",
    "u32": "u32",
    "u64": "u64",
    "bool": "bool",
    "string": "String",
    "bytes": "Vec<u8>",
}

PROTO_TYPE_TO_SCALAR = {
    FieldDescriptorProto.TYPE_DOUBLE: "f64",
    FieldDescriptorProto.TYPE_FLOAT: "f32",
    FieldDescriptorProto.TYPE_INT32: "i32",
    FieldDescriptorProto.TYPE_INT64: "i64",
    FieldDescriptorProto.TYPE_UINT32: "u32",
    FieldDescriptorProto.TYPE_UINT64: "u64",
    FieldDescriptorProto.TYPE_SINT32: "i32",
    FieldDescriptorProto.TYPE_SINT64: "i64",
    FieldDescriptorProto.TYPE_FIXED32: "u32",
    FieldDescriptorProto.TYPE_FIXED64: "u64",
    FieldDescriptorProto.TYPE_SFIXED32: "i32",
    FieldDescriptorProto.TYPE_SFIXED64: "i64",
    FieldDescriptorProto.TYPE_BOOL: "bool",
    FieldDescriptorProto.TYPE_STRING: "string",
    FieldDescriptorProto.TYPE_BYTES: "bytes",
}

# Keywords that can be emitted as raw identifiers (`r#type`).
RUST_KEYWORDS = frozenset(
    {
        "abstract",
        "as",
        "async",
        "await",
        "become",
        "box",
        "break",
        "const",
        "continue",
        "do",
        "dyn",
        "else",
        "enum",
        "extern",
        "false",
        "final",
        "fn",
        "for",
        "if",
        "impl",
        "in",
        "let",
        "loop",
        "macro",
        "match",
        "mod",
        "move",
        "mut",
        "override",
        "priv",
        "pub",
        "ref",
        "return",
        "static",
        "struct",
        "trait",
        "true",
        "try",
        "type",
        "typeof",
        "unsafe",
        "unsized",
        "use",
        "virtual",
        "where",
        "while",
        "yield",
    }
)

# Keywords that are not allowed as raw identifiers and get an underscore suffix instead.
RUST_PATH_KEYWORDS = frozenset({"crate", "self", "Self", "super"})


class RpcRole:
    """Roles a generated jsonrpsee trait can be expanded into."""

    SERVER = "server"
    CLIENT = "client"
