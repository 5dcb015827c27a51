"""Mapping of protobuf type paths to Rust type paths."""

from __future__ import annotations

from collections.abc import Sequence
from typing import assert_never

from pbjsonrpc_generator import helper
from pbjsonrpc_generator.descriptor import Package, TypePath
from pbjsonrpc_generator.message import EnumField, FieldType, MapField, MessageField, ScalarField
from pbjsonrpc_generator.proto_types import PROTO_SCALAR_TO_RUST


class Resolver:
    """Resolves type paths relative to the package that code is generated for.

    Generated code for a package lives in the Rust module of that package (as `prost` lays it out),
    so references into other packages are written with `super::`. Types matching one of the
    configured extern paths are written relative to the Rust path they were mapped to.
    """

    def __init__(
        self,
        extern_paths: Sequence[tuple[str, str]],
        package: Package,
        retain_enum_prefix: bool = False,
    ):
        """Initialize the resolver.

        Args:
            extern_paths (Sequence[tuple[str, str]]): Ordered (protobuf prefix, Rust path) pairs.
            package (Package): The package code is generated for.
            retain_enum_prefix (bool): Keep the enum name prefix on variant names.
        """
        self.extern_paths = extern_paths
        self.package = package
        self.retain_enum_prefix = retain_enum_prefix

    def _extern_match(self, path: TypePath) -> tuple[int, str] | None:
        best: tuple[int, str] | None = None
        for proto_prefix, rust_path in self.extern_paths:
            matched = path.prefix_match(proto_prefix)
            if matched is None:
                continue
            if best is None or matched > best[0]:
                best = (matched, rust_path)
        return best

    def rust_type(self, path: TypePath) -> str:
        """The Rust path of a message, enum or service.

        Args:
            path (TypePath): The type to resolve.

        Returns:
            str: The Rust type path. Resolution never fails, unknown types resolve to their literal path.
        """
        extern = self._extern_match(path)
        if extern is not None:
            matched, rust_path = extern
            package_len = len(path.package.path)
            remaining_package = path.package.path[matched:]
            remaining_types = path.path[max(matched - package_len, 0) :]
            if not remaining_types:
                return rust_path

            modules = [helper.escape_identifier(helper.snake_case(p)) for p in remaining_package]
            return "::".join([rust_path, *modules, self._type_suffix(remaining_types)])

        current = self.package.path
        target = path.package.path
        shared = 0
        for ours, theirs in zip(current, target):
            if ours != theirs:
                break
            shared += 1

        parts = ["super"] * (len(current) - shared)
        parts.extend(helper.escape_identifier(helper.snake_case(p)) for p in target[shared:])
        parts.append(self._type_suffix(path.path))
        return "::".join(parts)

    @staticmethod
    def _type_suffix(type_segments: Sequence[str]) -> str:
        """Enclosing messages become snake_case modules, the type itself is UpperCamelCase."""
        modules = [helper.escape_identifier(helper.snake_case(s)) for s in type_segments[:-1]]
        return "::".join([*modules, helper.upper_camel_case(type_segments[-1])])

    def rust_variant(self, enumeration: TypePath, variant: str) -> str:
        """The Rust name of an enum variant.

        Unless enum prefixes are retained, `PHONE_TYPE_MOBILE` of enum `PhoneType` becomes `Mobile`.
        The prefix is kept unless what follows it starts a new word, so stripping never leaves
        an empty name or one starting with a digit.

        Args:
            enumeration (TypePath): The enum the variant belongs to.
            variant (str): The variant name as declared.

        Returns:
            str: The UpperCamelCase variant name.
        """
        name = helper.upper_camel_case(variant)
        if self.retain_enum_prefix:
            return name

        stripped = name.removeprefix(helper.upper_camel_case(enumeration.name))
        if stripped[:1].isupper():
            return stripped
        return name

    def field_type(self, field_type: FieldType) -> str:
        """The Rust type of a field value, without any `Option` or `Vec` wrapping.

        Args:
            field_type (FieldType): The field type to resolve.

        Returns:
            str: The Rust type.
        """
        if isinstance(field_type, ScalarField):
            return PROTO_SCALAR_TO_RUST[field_type.scalar.value]
        elif isinstance(field_type, (EnumField, MessageField)):
            return self.rust_type(field_type.path)
        elif isinstance(field_type, MapField):
            key = PROTO_SCALAR_TO_RUST[field_type.key.value]
            return helper.new_hash_map(key, self.field_type(field_type.value))
        else:
            assert_never(field_type)
