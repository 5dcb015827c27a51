"""Tests for naming and formatting helpers."""

from __future__ import annotations

import pytest

from pbjsonrpc_generator import helper


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("SayHello", "say_hello"),
        ("sayHello", "say_hello"),
        ("sub_ticks", "sub_ticks"),
        ("SubTicks", "sub_ticks"),
        ("HTTPRequest", "http_request"),
        ("GetV2Status", "get_v2_status"),
        ("ID2", "id2"),
        ("already_snake", "already_snake"),
    ],
)
def test_snake_case(name: str, expected: str):
    assert helper.snake_case(name) == expected


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("hello_request", "HelloRequest"),
        ("HELLO_request", "HelloRequest"),
        ("HelloRequest", "HelloRequest"),
        ("KIND_FAST", "KindFast"),
        ("HTTPRequest", "HttpRequest"),
    ],
)
def test_upper_camel_case(name: str, expected: str):
    assert helper.upper_camel_case(name) == expected


def test_escape_identifier():
    assert helper.escape_identifier("type") == "r#type"
    assert helper.escape_identifier("async") == "r#async"
    assert helper.escape_identifier("self") == "self_"
    assert helper.escape_identifier("crate") == "crate_"
    assert helper.escape_identifier("name") == "name"


def test_indent():
    assert helper.indent(0) == ""
    assert helper.indent(2) == " " * 8


def test_type_wrappers():
    assert helper.new_option("String") == "Option<String>"
    assert helper.new_option(helper.new_vec("u8")) == "Option<Vec<u8>>"
    assert helper.new_hash_map("String", "i32") == "::std::collections::HashMap<String, i32>"


def test_new_attribute():
    assert helper.new_attribute("method", ['name = "ping"']) == '#[method(name = "ping")]'
    assert helper.new_attribute("rpc", []) == "#[rpc()]"
    assert helper.new_attribute("inline") == "#[inline]"


def test_new_async_function_without_parameters():
    assert helper.new_async_function("ping", [], "T") == "async fn ping(&self) -> T;"


def test_new_async_function_with_parameters():
    declaration = helper.new_async_function("add", ["a: Option<i32>", "b: Option<i32>"], "i32")
    assert declaration == "async fn add(&self, a: Option<i32>, b: Option<i32>) -> i32;"
