from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar, override

from pbjsonrpc_generator import helper
from pbjsonrpc_generator.proto_types import SUBSCRIBE_PREFIX, UNSUBSCRIBE_PREFIX

if TYPE_CHECKING:
    from pbjsonrpc_generator.descriptor import Package, TypePath

W = TypeVar("W")


class ForeignArgs(enum.Enum):
    """How the input of a method taking a foreign (well-known) type is shaped.

    Attributes:
        OPTIONAL: A single `args: Option<T>` parameter, whether or not arguments are unfolded.
        BARE: A single non-optional `args: T` parameter, whether or not arguments are unfolded.
        UNFOLD: No special treatment, the unfold flag alone decides.
    """

    OPTIONAL = "optional"
    BARE = "bare"
    UNFOLD = "unfold"


@dataclass
class ParameterInfo:
    """A single parameter of a generated trait method.

    Attributes:
        name: The Rust parameter name
        rust_type: The Rust value type, without wrapping
        optional: Whether the type is wrapped in `Option`
        sequence: Whether the value type is wrapped in `Vec`
    """

    name: str
    rust_type: str
    optional: bool = True
    sequence: bool = False

    @property
    def full_type(self) -> str:
        """The parameter type with all wrapping applied, e.g. `Option<Vec<String>>`."""
        type_name = self.rust_type
        if self.sequence:
            type_name = helper.new_vec(type_name)
        if self.optional:
            type_name = helper.new_option(type_name)
        return type_name

    @override
    def __str__(self) -> str:
        """Format as method parameter, e.g. `name: Option<String>`."""
        return f"{self.name}: {self.full_type}"


@dataclass
class MethodSignature:
    """Everything needed to write one trait method.

    Attributes:
        name: The snake_case method name
        parameters: The parameters after `&self`
        output: The resolved output type
        is_stream: Whether the method is written as a subscription
    """

    name: str
    parameters: list[ParameterInfo]
    output: str
    is_stream: bool = False

    @property
    def fn_name(self) -> str:
        """The Rust function identifier, e.g. `r#move` for the method `move`."""
        return helper.escape_identifier(self.name)

    @property
    def subscription_name(self) -> str:
        """The method name without the subscribe prefix, e.g. `foo` for `sub_foo`."""
        return self.name.removeprefix(SUBSCRIBE_PREFIX)

    @property
    def subscribe_name(self) -> str:
        """The public subscription name, e.g. `sub_foo`."""
        return f"{SUBSCRIBE_PREFIX}{self.subscription_name}"

    @property
    def unsubscribe_name(self) -> str:
        """The companion unsubscribe name, e.g. `unsub_foo`."""
        return f"{UNSUBSCRIBE_PREFIX}{self.subscription_name}"


class ServiceStatus(enum.Enum):
    GENERATED = "generated"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class ServiceOutcome:
    """What happened to one service during generation.

    Attributes:
        path: The service's type path
        status: Whether a trait was written
        reason: Why the service was skipped, if it was
    """

    path: TypePath
    status: ServiceStatus
    reason: str | None = None

    @property
    def skipped(self) -> bool:
        return self.status is ServiceStatus.SKIPPED


@dataclass
class GenerationOutput(Generic[W]):
    """The output streams, one per package in order of generation, and the outcome for every service."""

    streams: list[tuple[Package, W]] = field(default_factory=list)
    outcomes: list[ServiceOutcome] = field(default_factory=list)

    @property
    def skipped(self) -> list[ServiceOutcome]:
        """The outcomes of all services that were not generated."""
        return [outcome for outcome in self.outcomes if outcome.skipped]

    @property
    def packages(self) -> list[Package]:
        return [package for package, _ in self.streams]

    @override
    def __repr__(self) -> str:
        """Return a readable representation for debugging."""
        return (
            f"GenerationOutput("
            f"packages={len(self.streams)}, "
            f"services={len(self.outcomes)}, "
            f"skipped={len(self.skipped)})"
        )
