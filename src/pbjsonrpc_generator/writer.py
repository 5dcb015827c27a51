"""Generate jsonrpsee RPC traits for protobuf services.

Each service becomes one trait. Unary methods become `#[method]` declarations returning
`RpcResult<Output>`, server streaming methods become `#[subscription]` declarations.
"""

from __future__ import annotations

import logging
from typing import TextIO

from pbjsonrpc_generator import helper
from pbjsonrpc_generator.message import Method, Service
from pbjsonrpc_generator.proto_types import WELL_KNOWN_PREFIX, RpcRole
from pbjsonrpc_generator.resolver import Resolver
from pbjsonrpc_generator.writer_dto import ForeignArgs, MethodSignature, ParameterInfo

logger = logging.getLogger(__name__)

RPC_MACRO = "jsonrpsee::proc_macros::rpc"
RPC_RESULT = "jsonrpsee::core::RpcResult"
SUBSCRIPTION_RESULT = "jsonrpsee::core::SubscriptionResult"

SERVICE_INDENT = 0
METHOD_INDENT = 2

ARGS_NAME = "args"


def _writeln(writer: TextIO, level: int, line: str) -> None:
    writer.write(f"{helper.indent(level)}{line}\n")


def rpc_roles(server: bool, client: bool) -> list[str]:
    """The roles passed to the rpc macro, e.g. `["server", "client"]`."""
    roles = []
    if server:
        roles.append(RpcRole.SERVER)
    if client:
        roles.append(RpcRole.CLIENT)
    return roles


def write_rpc_start(level: int, rust_type: str, writer: TextIO, server: bool, client: bool) -> None:
    """Write the rpc macro attribute and open the trait.

    Args:
        level (int): The indentation level.
        rust_type (str): The trait name.
        writer (TextIO): The output stream.
        server (bool): Whether the server trait is expanded.
        client (bool): Whether the client trait is expanded.
    """
    _writeln(writer, level, helper.new_attribute(RPC_MACRO, rpc_roles(server, client)))
    _writeln(writer, level, f"pub trait {rust_type} {{")


def write_rpc_end(level: int, writer: TextIO) -> None:
    """Close the trait."""
    _writeln(writer, level, "}")


def is_foreign(method: Method) -> bool:
    """Whether the method input is a well-known type."""
    return method.input.path.prefix_match(WELL_KNOWN_PREFIX) is not None


def build_parameters(
    resolver: Resolver,
    method: Method,
    unfold_args: bool,
    foreign_args: ForeignArgs = ForeignArgs.OPTIONAL,
) -> list[ParameterInfo]:
    """Shape the parameter list of a method.

    Without unfolding, the whole input message is taken as a single optional `args` parameter.
    With unfolding, every field of the input message becomes an optional parameter of its own,
    repeated fields (except maps) being passed as `Vec`. How foreign inputs are shaped is
    decided by `foreign_args`.

    Args:
        resolver (Resolver): The resolver for the current package.
        method (Method): The method to shape the parameters for.
        unfold_args (bool): Whether to unfold the input message into its fields.
        foreign_args (ForeignArgs): How to shape foreign inputs.

    Returns:
        list[ParameterInfo]: The parameters following `&self`.
    """
    input_type = resolver.rust_type(method.input.path)

    if is_foreign(method):
        if foreign_args is ForeignArgs.BARE:
            return [ParameterInfo(ARGS_NAME, input_type, optional=False)]
        if foreign_args is ForeignArgs.OPTIONAL:
            return [ParameterInfo(ARGS_NAME, input_type)]

    if not unfold_args:
        return [ParameterInfo(ARGS_NAME, input_type)]

    return [
        ParameterInfo(
            field.rust_field_name,
            resolver.field_type(field.field_type),
            sequence=field.is_repeated and not field.is_map,
        )
        for field in method.input.all_fields()
    ]


def build_signature(
    resolver: Resolver,
    method: Method,
    unfold_args: bool,
    foreign_args: ForeignArgs = ForeignArgs.OPTIONAL,
) -> MethodSignature:
    """Collect the name, parameters and output of a method."""
    return MethodSignature(
        name=method.rust_method_name,
        parameters=build_parameters(resolver, method, unfold_args, foreign_args),
        output=resolver.rust_type(method.output.path),
        is_stream=method.is_stream,
    )


def write_method(level: int, signature: MethodSignature, writer: TextIO) -> None:
    """Write one trait method, as a subscription if it streams.

    Args:
        level (int): The indentation level.
        signature (MethodSignature): The method to write.
        writer (TextIO): The output stream.
    """
    if signature.is_stream:
        attribute = helper.new_attribute(
            "subscription",
            [
                f'name = "{signature.subscribe_name}"',
                f'unsubscribe = "{signature.unsubscribe_name}"',
                f"item = {signature.output}",
            ],
        )
        declaration = helper.new_async_function(
            signature.subscribe_name,
            signature.parameters,
            SUBSCRIPTION_RESULT,
        )
    else:
        attribute = helper.new_attribute("method", [f'name = "{signature.name}"'])
        declaration = helper.new_async_function(
            signature.fn_name,
            signature.parameters,
            helper.new_generic(RPC_RESULT, [signature.output]),
        )

    _writeln(writer, level, attribute)
    _writeln(writer, level, declaration)


def generate_service(
    resolver: Resolver,
    service: Service,
    writer: TextIO,
    unfold_args: bool,
    server: bool = True,
    client: bool = True,
    foreign_args: ForeignArgs = ForeignArgs.OPTIONAL,
) -> None:
    """Write the RPC trait of a service.

    Write failures propagate immediately, and whatever was written before stays in the stream.

    Args:
        resolver (Resolver): The resolver for the service's package.
        service (Service): The resolved service.
        writer (TextIO): The output stream.
        unfold_args (bool): Whether to unfold input messages into their fields.
        server (bool): Whether the server trait is expanded.
        client (bool): Whether the client trait is expanded.
        foreign_args (ForeignArgs): How to shape foreign inputs.
    """
    rust_type = resolver.rust_type(service.path)

    write_rpc_start(SERVICE_INDENT, rust_type, writer, server, client)
    for method in service.methods:
        write_method(METHOD_INDENT, build_signature(resolver, method, unfold_args, foreign_args), writer)
    write_rpc_end(SERVICE_INDENT, writer)

    logger.debug(f"Generated trait '{rust_type}' with {len(service.methods)} method(s).")
