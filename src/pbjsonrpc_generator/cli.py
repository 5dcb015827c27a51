"""Command-line interface for generating jsonrpsee traits from protobuf descriptor sets.

Notes:
    - Descriptor sets are produced by `protoc --descriptor_set_out=... --include_imports`.
    - The generated files are meant to be `include!`d next to the prost output of the same package.
"""

from __future__ import annotations

import argparse
import logging
import os
from collections.abc import Sequence
from pathlib import Path

from pbjsonrpc_generator.descriptor import DescriptorDecodeError
from pbjsonrpc_generator.run import Builder, ConfigurationError, GeneratorConfig
from pbjsonrpc_generator.writer_dto import ForeignArgs

logger = logging.getLogger(__name__)


def parse_extern_path(value: str) -> tuple[str, str]:
    """Parse an extern path argument of the form `PROTO_PATH=RUST_PATH`.

    Args:
        value (str): The argument value, e.g. `.google.protobuf=::pbjson_types`.

    Raises:
        argparse.ArgumentTypeError: The value is not of the expected form.

    Returns:
        tuple[str, str]: The protobuf prefix and the Rust path.
    """
    proto_path, separator, rust_path = value.partition("=")
    if not separator or not proto_path or not rust_path:
        raise argparse.ArgumentTypeError(f"expected PROTO_PATH=RUST_PATH, got '{value}'")
    return proto_path, rust_path


def setup_parser() -> argparse.ArgumentParser:
    """Setup for the parser.

    Returns:
        argparse.ArgumentParser: The parser after setup.
    """
    parser = argparse.ArgumentParser(description="Generate jsonrpsee RPC traits for protobuf services.")

    parser.add_argument(
        "-d",
        "--descriptor-sets",
        dest="descriptor_sets",
        type=str,
        nargs="+",
        required=True,
        help="encoded FileDescriptorSet files to register.",
    )

    parser.add_argument(
        "-p",
        "--prefixes",
        type=str,
        nargs="+",
        required=True,
        help="type path prefixes to generate traits for, e.g. '.my.package'.",
    )

    parser.add_argument(
        "-o",
        "--output-dir",
        type=str,
        required=True,
        help="directory to write one <package>.jsonrpc.rs file per package to; created if missing.",
    )

    parser.add_argument(
        "-e",
        "--exclude",
        type=str,
        nargs="+",
        default=[],
        help="type path prefixes to not generate traits for.",
    )

    parser.add_argument(
        "-x",
        "--extern-path",
        dest="extern_paths",
        type=parse_extern_path,
        action="append",
        default=[],
        help="map a protobuf prefix to a Rust path, e.g. '.google.protobuf=::pbjson_types'. May be repeated.",
    )

    parser.add_argument(
        "--retain-enum-prefix",
        dest="retain_enum_prefix",
        default=False,
        action="store_true",
        help="do not strip the enum name from enum variant names.",
    )

    parser.add_argument(
        "--unfold-args",
        dest="unfold_args",
        default=False,
        action="store_true",
        help="pass the fields of input messages as separate method parameters.",
    )

    parser.add_argument(
        "--foreign-args",
        dest="foreign_args",
        choices=[choice.value for choice in ForeignArgs],
        default=ForeignArgs.OPTIONAL.value,
        help="how inputs of a well-known type are passed (default: %(default)s).",
    )

    parser.add_argument(
        "--no-server",
        dest="server",
        default=True,
        action="store_false",
        help="do not expand the server side of the traits.",
    )

    parser.add_argument(
        "--no-client",
        dest="client",
        default=True,
        action="store_false",
        help="do not expand the client side of the traits.",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        default=False,
        action="store_true",
        help="log debug output.",
    )

    return parser


def config_from_args(args: argparse.Namespace) -> GeneratorConfig:
    """Build the generator configuration from parsed arguments."""
    return GeneratorConfig(
        out_dir=Path(args.output_dir),
        exclude=tuple(args.exclude),
        extern_paths=tuple(args.extern_paths),
        retain_enum_prefix=args.retain_enum_prefix,
        unfold_args=args.unfold_args,
        foreign_args=ForeignArgs(args.foreign_args),
        server=args.server,
        client=args.client,
    )


def run(args: argparse.Namespace) -> None:
    """Register all descriptor sets and write the traits.

    Args:
        args (argparse.Namespace): The arguments that were passed when calling the generator.
    """
    config = config_from_args(args)
    os.makedirs(args.output_dir, exist_ok=True)

    builder = Builder(config)
    for descriptor_set in args.descriptor_sets:
        logger.info(f"Registering descriptor set '{descriptor_set}'.")
        builder.register_descriptors(Path(descriptor_set).read_bytes())

    output = builder.build(args.prefixes)

    for outcome in output.skipped:
        logger.warning(f"Skipped service '{outcome.path}': {outcome.reason}")

    logger.info(f"Wrote traits for {len(output.streams)} package(s).")


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point of the trait generator.

    Args:
        argv (Sequence[str] | None, optional): Run arguments. Defaults to None.

    Returns:
        int: Error code.
    """
    parser = setup_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        run(args)
    except (ConfigurationError, DescriptorDecodeError) as e:
        logger.error(str(e))
        return 1

    return 0
