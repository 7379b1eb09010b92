"""Tests for naming convention translation and WIT to Python type mapping"""

import pytest

from latticegen import TypeMapper
from latticegen.errors import WitParseError
from latticegen.naming import safe_ident, to_kebab, to_snake, to_upper_camel


@pytest.mark.parametrize("name, kebab, snake, camel", [
    ("key-value", "key-value", "key_value", "KeyValue"),
    ("key_value", "key-value", "key_value", "KeyValue"),
    ("KeyValue", "key-value", "key_value", "KeyValue"),
    ("wasmcloud", "wasmcloud", "wasmcloud", "Wasmcloud"),
    ("HTTPServer", "http-server", "http_server", "HttpServer"),
    ("http2-client", "http2-client", "http2_client", "Http2Client"),
])
def test_case_conventions(name, kebab, snake, camel):
    assert to_kebab(name) == kebab
    assert to_snake(name) == snake
    assert to_upper_camel(name) == camel


def test_safe_ident():
    assert safe_ident("del") == "del_"
    assert safe_ident("ctx", frozenset({"ctx"})) == "ctx_"
    assert safe_ident("key") == "key"
    # the trailing underscore disappears again on the wire
    assert to_kebab(safe_ident("del")) == "del"


@pytest.mark.parametrize("wit_type, python", [
    ("string", "str"),
    ("u32", "int"),
    ("s64", "int"),
    ("f64", "float"),
    ("bool", "bool"),
    ("list<u8>", "bytes"),
    ("list<string>", "list[str]"),
    ("option<u64>", "Optional[int]"),
    ("tuple<string, u32>", "tuple[str, int]"),
    ("list<tuple<string, string>>", "list[tuple[str, str]]"),
    ("result", "Result[None, None]"),
    ("result<string>", "Result[str, None]"),
    ("result<_, string>", "Result[None, str]"),
    ("result<put-args, string>", "Result[PutArgs, str]"),
    ("option<list<broker-message>>", "Optional[list[BrokerMessage]]"),
])
def test_to_python(wit_type, python):
    assert TypeMapper.to_python(wit_type) == python


def test_unsupported_generic():
    with pytest.raises(WitParseError, match="borrow"):
        TypeMapper.to_python("borrow<thing>")
