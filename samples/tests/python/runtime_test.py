"""Tests for the runtime support module used by generated bindings"""

import asyncio
from collections import deque

import msgspec
import pytest

from latticegen import runtime
from latticegen.runtime import (
    Context, DynamicFunction, Err, Ok, Result, TransportError, TypeShape, UnexpectedError,
)


def test_pairs_to_dict():
    assert runtime.pairs_to_dict([("a", 1), ("b", 2)], "labels") == {"a": 1, "b": 2}
    assert runtime.pairs_to_dict([], "labels") == {}
    assert runtime.dict_to_pairs({"a": 1, "b": 2}) == [("a", 1), ("b", 2)]


def test_pairs_to_dict_rejects_duplicate_keys():
    with pytest.raises(UnexpectedError, match=r"duplicate key \[a\] in parameter \[labels\]"):
        runtime.pairs_to_dict([("a", 1), ("a", 2)], "labels")


def test_pairs_to_dict_rejects_unhashable_keys():
    with pytest.raises(UnexpectedError, match=r"invalid key \[\['a'\]\] in parameter \[counts\]"):
        runtime.pairs_to_dict([(["a"], 1)], "counts")


def test_take_param_consumes_front_first():
    params = deque([runtime.encode_value("first"), runtime.encode_value(2)])
    assert runtime.take_param(params, "a", str) == "first"
    assert runtime.take_param(params, "b", int) == 2
    with pytest.raises(UnexpectedError, match=r"missing expected parameter \[c\]"):
        runtime.take_param(params, "c", str)


def test_take_param_reports_decode_failures():
    with pytest.raises(UnexpectedError, match=r"failed to decode parameter \[count\]"):
        runtime.take_param(deque([b"\xc1"]), "count", int)


def test_result_wire_format():
    raw = runtime.encode_result(Ok("value"), "a:b/c.d")
    assert msgspec.msgpack.decode(raw) == {"type": "ok", "value": "value"}
    assert msgspec.msgpack.decode(runtime.encode_result(Err(3), "a:b/c.d"), type=Result[str, int]) == Err(3)


def test_dynamic_function_json():
    function = DynamicFunction(
        params=(TypeShape("option", args=(TypeShape("string"),)),),
        results=(TypeShape("enum", names=("on", "off")),),
    )
    text = runtime.dump_dynamic_function(function)
    assert '"names":["on","off"]' in text
    assert runtime.load_dynamic_function(text) == function


def test_dynamic_function_rejects_unknown_fields():
    with pytest.raises(msgspec.ValidationError):
        runtime.load_dynamic_function('{"params": [], "results": [], "extra": 1}')


def test_context_defaults():
    ctx = Context()
    assert ctx.source is None
    assert ctx.headers == {}


class EchoClient:
    async def invoke(self, target, operation, params):
        return params[0]


class FailingClient:
    async def invoke(self, target, operation, params):
        raise TimeoutError("no responders")


def test_invoke_round_trip():
    result = asyncio.run(runtime.invoke(EchoClient(), "target", "a:b/c.echo", ["hello"], str))
    assert result == "hello"


def test_invoke_wraps_failures():
    with pytest.raises(TransportError, match=r"failed to invoke \[a:b/c.echo\]: no responders"):
        asyncio.run(runtime.invoke(FailingClient(), "target", "a:b/c.echo", ["hello"], str))

    with pytest.raises(TransportError, match="failed to invoke"):
        asyncio.run(runtime.invoke(EchoClient(), "target", "a:b/c.echo", ["hello"], int))
