"""Indexing of protobuf descriptors by their fully-qualified type path."""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterator
from dataclasses import dataclass

from google.protobuf import descriptor_pb2
from google.protobuf.message import DecodeError

logger = logging.getLogger(__name__)


class DescriptorDecodeError(ValueError):
    """Raised when an encoded `FileDescriptorSet` cannot be decoded."""

    pass


class Syntax(enum.Enum):
    """The syntax a protobuf file was declared with."""

    PROTO2 = "proto2"
    PROTO3 = "proto3"
    EDITIONS = "editions"

    @classmethod
    def from_file(cls, file: descriptor_pb2.FileDescriptorProto) -> Syntax:
        """protoc leaves the syntax empty for proto2 files."""
        if not file.syntax:
            return cls.PROTO2
        return cls(file.syntax)


def _split(name: str) -> tuple[str, ...]:
    name = name.removeprefix(".")
    if not name:
        return ()
    return tuple(name.split("."))


@dataclass(frozen=True, order=True)
class Package:
    """The package component of a type path, e.g. `test.common`."""

    path: tuple[str, ...] = ()

    @classmethod
    def new(cls, name: str) -> Package:
        """Parse a dotted package name, with or without a leading dot."""
        return cls(_split(name))

    def __str__(self) -> str:
        return ".".join(self.path)


@dataclass(frozen=True, order=True)
class TypePath:
    """The fully-qualified path of a message, enum or service.

    `path` holds the type name and the names of all enclosing messages, outermost first.
    """

    package: Package
    path: tuple[str, ...]

    @classmethod
    def from_name(cls, name: str) -> TypePath:
        """Best-effort construction of a path for a type that was never registered.

        Without the declaring file there is no way to tell package segments from enclosing
        messages, so every segment but the last is treated as package.
        """
        segments = _split(name)
        return cls(Package(segments[:-1]), segments[-1:])

    @property
    def segments(self) -> tuple[str, ...]:
        """Package segments followed by type segments."""
        return self.package.path + self.path

    @property
    def full_name(self) -> str:
        """The protobuf name, e.g. `.test.common.Outer.Inner`."""
        return "." + ".".join(self.segments)

    @property
    def name(self) -> str:
        """The unqualified type name."""
        return self.path[-1]

    def child(self, name: str) -> TypePath:
        """The path of a type nested inside this one."""
        return TypePath(self.package, self.path + (name,))

    def prefix_match(self, prefix: str) -> int | None:
        """Match this path against a dotted prefix, segment by segment.

        A leading dot on the prefix is ignored, and the empty prefix matches every path.

        Args:
            prefix (str): The prefix, e.g. `.google.protobuf`.

        Returns:
            int | None: The number of segments the prefix covers, or None if it does not match.
        """
        prefix_segments = _split(prefix)
        segments = self.segments
        if len(prefix_segments) > len(segments):
            return None

        if segments[: len(prefix_segments)] != prefix_segments:
            return None

        return len(prefix_segments)

    def __str__(self) -> str:
        return self.full_name


@dataclass(frozen=True)
class MessageDescriptor:
    path: TypePath
    proto: descriptor_pb2.DescriptorProto
    syntax: Syntax


@dataclass(frozen=True)
class EnumDescriptor:
    path: TypePath
    proto: descriptor_pb2.EnumDescriptorProto


@dataclass(frozen=True)
class ServiceDescriptor:
    path: TypePath
    proto: descriptor_pb2.ServiceDescriptorProto


Descriptor = MessageDescriptor | EnumDescriptor | ServiceDescriptor


class DescriptorSet:
    """All registered descriptors, keyed by type path.

    Registering a path twice keeps both entries. Lookups return the first one.
    """

    def __init__(self) -> None:
        self._entries: list[tuple[TypePath, Descriptor]] = []
        self._by_name: dict[str, Descriptor] = {}

    def register_encoded(self, encoded: bytes) -> None:
        """Decode and register an encoded `FileDescriptorSet`.

        The set is decoded completely before anything is registered.

        Args:
            encoded (bytes): The serialized `FileDescriptorSet`.

        Raises:
            DescriptorDecodeError: The data is not a valid `FileDescriptorSet`.
        """
        try:
            file_set = descriptor_pb2.FileDescriptorSet.FromString(encoded)
        except DecodeError as e:
            raise DescriptorDecodeError(f"Malformed FileDescriptorSet: {e}") from e

        for file in file_set.file:
            self.register_file_descriptor(file)

    def register_file_descriptor(self, file: descriptor_pb2.FileDescriptorProto) -> None:
        """Register all messages, enums and services of a decoded file.

        Args:
            file (FileDescriptorProto): The file to register.
        """
        package = Package.new(file.package)
        syntax = Syntax.from_file(file)
        registered_before = len(self._entries)

        for message in file.message_type:
            self._register_message(TypePath(package, (message.name,)), message, syntax)

        for enum_proto in file.enum_type:
            self._add(EnumDescriptor(TypePath(package, (enum_proto.name,)), enum_proto))

        for service in file.service:
            self._add(ServiceDescriptor(TypePath(package, (service.name,)), service))

        registered = len(self._entries) - registered_before
        logger.debug(f"Registered {registered} descriptor(s) from '{file.name}' (package '{package}').")

    def _register_message(self, path: TypePath, message: descriptor_pb2.DescriptorProto, syntax: Syntax) -> None:
        self._add(MessageDescriptor(path, message, syntax))

        for nested in message.nested_type:
            self._register_message(path.child(nested.name), nested, syntax)

        for enum_proto in message.enum_type:
            self._add(EnumDescriptor(path.child(enum_proto.name), enum_proto))

    def _add(self, descriptor: Descriptor) -> None:
        self._entries.append((descriptor.path, descriptor))
        self._by_name.setdefault(descriptor.path.full_name, descriptor)

    def iter(self) -> Iterator[tuple[TypePath, Descriptor]]:
        """Iterate over all entries, with the entries of each package next to each other.

        Packages are ordered by name. Within a package the registration order is kept.
        """
        return iter(sorted(self._entries, key=lambda entry: entry[0].package))

    def __iter__(self) -> Iterator[tuple[TypePath, Descriptor]]:
        return self.iter()

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, name: str) -> Descriptor | None:
        """The first descriptor registered under a fully-qualified protobuf name like `.a.b.Foo`."""
        if not name.startswith("."):
            name = f".{name}"
        return self._by_name.get(name)
