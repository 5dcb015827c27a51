"""Helper functionality that is used in other modules of this package."""

from __future__ import annotations

import re
from collections.abc import Sequence

from pbjsonrpc_generator.proto_types import RUST_KEYWORDS, RUST_PATH_KEYWORDS

INDENT_UNIT = "    "

# An acronym followed by a capitalised word, a (capitalised) lower case word, an acronym, or a run of digits.
_WORD_PATTERN = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z0-9]+|[A-Z]+[0-9]*|[0-9]+")


def split_words(name: str) -> list[str]:
    """Split an identifier into its words.

    Non-alphanumeric characters separate words, and so do lower-to-upper case transitions
    and the end of an acronym.

    Examples:
        >>> split_words("sayHello")
        ['say', 'Hello']
        >>> split_words("HTTPRequest")
        ['HTTP', 'Request']
        >>> split_words("STATUS_OK")
        ['STATUS', 'OK']

    Args:
        name (str): The identifier to split.

    Returns:
        list[str]: The words, in order of appearance.
    """
    return _WORD_PATTERN.findall(name)


def snake_case(name: str) -> str:
    """Converts a name to snake_case, e.g. `SayHello` becomes `say_hello`."""
    return "_".join(word.lower() for word in split_words(name))


def upper_camel_case(name: str) -> str:
    """Converts a name to UpperCamelCase, e.g. `hello_request` becomes `HelloRequest`."""
    return "".join(word[:1].upper() + word[1:].lower() for word in split_words(name))


def escape_identifier(name: str) -> str:
    """Escape a name to avoid Rust keywords.

    Keywords that may be used as raw identifiers get the `r#` prefix,
    e.g. 'type' becomes 'r#type'. Path keywords like 'self' cannot be raw
    identifiers and get an underscore appended instead, e.g. 'self' becomes 'self_'.

    Args:
        name (str): The original name.

    Returns:
        str: The escaped name.
    """
    if name in RUST_PATH_KEYWORDS:
        return f"{name}_"
    if name in RUST_KEYWORDS:
        return f"r#{name}"
    return name


def indent(level: int) -> str:
    """The leading whitespace for a nesting level."""
    return INDENT_UNIT * level


def new_generic(name: str, members: Sequence[str]) -> str:
    """Create a string for a generic Rust type.

    For example, when the name is 'HashMap', and the members are 'String', and 'i32',
    the output will be 'HashMap<String, i32>'.

    Args:
        name (str): The name of the generic type.
        members (Sequence[str]): The type arguments.

    Returns:
        str: The resulting type string.
    """
    return f"{name}<{join_parameters(members)}>"


def new_option(type_name: str) -> str:
    """Wrap a type into `Option<...>`."""
    return new_generic("Option", [type_name])


def new_vec(type_name: str) -> str:
    """Wrap a type into `Vec<...>`."""
    return new_generic("Vec", [type_name])


def new_hash_map(key_type: str, value_type: str) -> str:
    """Create a `::std::collections::HashMap<K, V>` type string."""
    return new_generic("::std::collections::HashMap", [key_type, value_type])


def join_parameters(parameters: Sequence[object] | None) -> str:
    """Joins parameters by means of ', '.

    Empty entries are dropped.

    Args:
        parameters (Sequence[object] | None): The parameters to join.

    Returns:
        str: The joined parameters.
    """
    if parameters:
        return ", ".join(str(p) for p in parameters if p)

    else:
        return ""


def new_attribute(name: str, arguments: Sequence[str] | None = None) -> str:
    """Create a Rust outer attribute.

    Args:
        name (str): The attribute path, e.g. `method`.
        arguments (Sequence[str] | None, optional): The attribute arguments, if any. Defaults to None.

    Returns:
        str: The attribute string, e.g. `#[method(name = "foo")]`.
    """
    if arguments is None:
        return f"#[{name}]"

    return f"#[{name}({join_parameters(arguments)})]"


def new_async_function(name: str, parameters: Sequence[object], return_type: str) -> str:
    """Create a string for an async trait method declaration taking `&self`.

    Args:
        name (str): The method name.
        parameters (Sequence[object]): The method parameters, after the receiver.
        return_type (str): The method's return type.

    Returns:
        str: The method declaration, terminated by a semicolon.
    """
    arguments = join_parameters(["&self", *parameters])
    return f"async fn {name}({arguments}) -> {return_type};"
