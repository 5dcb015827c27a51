"""Top-level module for trait generation."""

from __future__ import annotations

import contextlib
import dataclasses
import logging
import os
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO, TypeVar, assert_never

from google.protobuf import descriptor_pb2

from pbjsonrpc_generator.descriptor import (
    DescriptorSet,
    EnumDescriptor,
    MessageDescriptor,
    Package,
    ServiceDescriptor,
    TypePath,
)
from pbjsonrpc_generator.message import DanglingReferenceError, resolve_service
from pbjsonrpc_generator.proto_types import EMPTY_PACKAGE_NAME, OUTPUT_SUFFIX
from pbjsonrpc_generator.resolver import Resolver
from pbjsonrpc_generator.writer import generate_service
from pbjsonrpc_generator.writer_dto import ForeignArgs, GenerationOutput, ServiceOutcome, ServiceStatus

logger = logging.getLogger(__name__)

W = TypeVar("W", bound=TextIO)


class ConfigurationError(Exception):
    """Raised when the generator is not configured well enough to run."""

    pass


def output_file_name(package: Package) -> str:
    """The name of the file generated for a package, e.g. `test.common.jsonrpc.rs`."""
    return f"{str(package) or EMPTY_PACKAGE_NAME}.{OUTPUT_SUFFIX}"


@dataclass(frozen=True)
class GeneratorConfig:
    """An immutable snapshot of the generator options.

    Attributes:
        out_dir: The directory `Builder.build` writes to
        exclude: Type path prefixes to not generate code for
        extern_paths: Ordered (protobuf prefix, Rust path) pairs for types generated elsewhere
        retain_enum_prefix: Keep the enum name prefix on enum variant names
        unfold_args: Pass the fields of input messages as separate parameters
        foreign_args: How inputs of a well-known type are shaped
        server: Expand the server side of the traits
        client: Expand the client side of the traits
    """

    out_dir: Path | None = None
    exclude: tuple[str, ...] = ()
    extern_paths: tuple[tuple[str, str], ...] = ()
    retain_enum_prefix: bool = False
    unfold_args: bool = False
    foreign_args: ForeignArgs = ForeignArgs.OPTIONAL
    server: bool = True
    client: bool = True

    def __post_init__(self):
        """Normalise sequence inputs, so that no caller keeps a handle on mutable state."""
        if self.out_dir is not None:
            object.__setattr__(self, "out_dir", Path(self.out_dir))
        object.__setattr__(self, "exclude", tuple(self.exclude))
        object.__setattr__(self, "extern_paths", tuple((str(p), str(r)) for p, r in self.extern_paths))

    def with_out_dir(self, path: str | os.PathLike[str]) -> GeneratorConfig:
        return dataclasses.replace(self, out_dir=Path(path))

    def with_exclude(self, prefixes: Iterable[str]) -> GeneratorConfig:
        """A copy that additionally excludes `prefixes`."""
        return dataclasses.replace(self, exclude=(*self.exclude, *prefixes))

    def with_extern_path(self, proto_path: str, rust_path: str) -> GeneratorConfig:
        """A copy that additionally maps `proto_path` to the Rust path `rust_path`."""
        return dataclasses.replace(self, extern_paths=(*self.extern_paths, (proto_path, rust_path)))


class Builder:
    """Generates RPC traits for registered descriptors.

    Descriptors are registered first, then code is generated with `generate` or `build`.
    """

    def __init__(self, config: GeneratorConfig | None = None):
        self.config = config if config is not None else GeneratorConfig()
        self.descriptors = DescriptorSet()

    def register_descriptors(self, descriptors: bytes) -> Builder:
        """Register an encoded `FileDescriptorSet`.

        Raises:
            DescriptorDecodeError: The data could not be decoded.
        """
        self.descriptors.register_encoded(descriptors)
        return self

    def register_file_descriptor(self, file: descriptor_pb2.FileDescriptorProto) -> Builder:
        """Register a decoded `FileDescriptorProto`."""
        self.descriptors.register_file_descriptor(file)
        return self

    def _is_selected(self, path: TypePath, prefixes: Sequence[str]) -> bool:
        include = any(path.prefix_match(prefix) is not None for prefix in prefixes)
        exclude = any(path.prefix_match(prefix) is not None for prefix in self.config.exclude)
        return include and not exclude

    def generate(self, prefixes: Sequence[str], write_factory: Callable[[Package], W]) -> GenerationOutput[W]:
        """Generate code into the streams provided by `write_factory`.

        Only types matching one of `prefixes` and none of the excluded prefixes are generated.
        One stream is requested per package. Services referencing unknown types are skipped and
        reported in the returned outcomes. The streams are neither flushed nor closed.

        Args:
            prefixes (Sequence[str]): The type path prefixes to generate code for.
            write_factory (Callable[[Package], W]): Returns the output stream for a package.

        Returns:
            GenerationOutput[W]: The streams in order of generation and the outcome of every service.
        """
        output: GenerationOutput[W] = GenerationOutput()
        group: tuple[Resolver, W] | None = None

        for type_path, descriptor in self.descriptors.iter():
            if not self._is_selected(type_path, prefixes):
                continue

            # Entries of a package are contiguous, so a new package always starts a new group
            if group is None or output.streams[-1][0] != type_path.package:
                package = type_path.package
                stream = write_factory(package)
                output.streams.append((package, stream))
                group = (Resolver(self.config.extern_paths, package, self.config.retain_enum_prefix), stream)

            resolver, writer = group

            if isinstance(descriptor, ServiceDescriptor):
                output.outcomes.append(self._generate_service(resolver, descriptor, writer))
            elif isinstance(descriptor, (MessageDescriptor, EnumDescriptor)):
                continue
            else:
                assert_never(descriptor)

        return output

    def _generate_service(self, resolver: Resolver, descriptor: ServiceDescriptor, writer: TextIO) -> ServiceOutcome:
        try:
            service = resolve_service(self.descriptors, descriptor)
        except DanglingReferenceError as e:
            logger.warning(f"Skipping service '{descriptor.path}': {e}")
            return ServiceOutcome(descriptor.path, ServiceStatus.SKIPPED, str(e))

        generate_service(
            resolver,
            service,
            writer,
            self.config.unfold_args,
            server=self.config.server,
            client=self.config.client,
            foreign_args=self.config.foreign_args,
        )
        return ServiceOutcome(descriptor.path, ServiceStatus.GENERATED)

    def build(self, prefixes: Sequence[str]) -> GenerationOutput[TextIO]:
        """Generate code for `prefixes` into one file per package in the configured output directory.

        Existing files are truncated. All files are closed when this returns or raises.

        Raises:
            ConfigurationError: No output directory is configured or it does not exist.

        Returns:
            GenerationOutput[TextIO]: The (closed) files and the outcome of every service.
        """
        out_dir = self.config.out_dir
        if out_dir is None:
            raise ConfigurationError("No output directory configured.")
        if not out_dir.is_dir():
            raise ConfigurationError(f"Output directory '{out_dir}' does not exist.")

        with contextlib.ExitStack() as stack:

            def write_factory(package: Package) -> TextIO:
                output_path = out_dir / output_file_name(package)
                logger.info(f"Writing '{output_path}'.")
                return stack.enter_context(open(output_path, "w", encoding="utf8"))

            output = self.generate(prefixes, write_factory)

        return output
