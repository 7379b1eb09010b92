"""Runtime support imported by generated provider bindings

Generated modules only depend on this module and msgspec. Every argument and
every result travels as one MessagePack document; function shapes are
described by DynamicFunction values embedded as JSON.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, NamedTuple, Optional, Protocol, TypeVar, Union

import msgspec

T = TypeVar("T")
E = TypeVar("E")


class Ok(msgspec.Struct, Generic[T], tag="ok"):
    """Successful arm of a WIT result"""
    value: T


class Err(msgspec.Struct, Generic[E], tag="err"):
    """Error arm of a WIT result"""
    value: E


Result = Union[Ok[T], Err[E]]


class InvocationError(Exception):
    """Failure of a single lattice invocation"""


class UnexpectedError(InvocationError):
    """An argument or result could not be decoded or encoded"""


class MalformedError(InvocationError):
    """The invocation does not name a known operation"""


class TransportError(InvocationError):
    """An outbound invocation failed in transport or while decoding its response"""


@dataclass(frozen=True)
class Context:
    """Invocation context handed to every handler"""
    source: Optional[str] = None
    headers: Mapping[str, str] = field(default_factory=dict)


class WrpcClient(Protocol):
    """Transport client used by InvocationHandler; must tolerate concurrent use"""

    async def invoke(self, target: str, operation: str, params: Sequence[bytes]) -> bytes:
        ...


class TypeShape(msgspec.Struct, frozen=True, omit_defaults=True, forbid_unknown_fields=True):
    """Structural description of one WIT type"""
    kind: str
    args: tuple[TypeShape, ...] = ()
    names: tuple[str, ...] = ()


class DynamicFunction(msgspec.Struct, frozen=True, forbid_unknown_fields=True):
    """Argument and result shapes of a function, used for late-bound marshalling"""
    params: tuple[TypeShape, ...] = ()
    results: tuple[TypeShape, ...] = ()


class SubjectTarget(NamedTuple):
    world_key_name: str
    function_name: str
    dynamic_function: DynamicFunction


def dump_dynamic_function(function: DynamicFunction) -> str:
    return msgspec.json.encode(function).decode()


def load_dynamic_function(data: str) -> DynamicFunction:
    return msgspec.json.decode(data, type=DynamicFunction)


def encode_value(value: Any) -> bytes:
    return msgspec.msgpack.encode(value)


def take_param(params: deque[bytes], name: str, type_: Any) -> Any:
    """Consume the next wire value and decode it as the named parameter"""
    try:
        raw = params.popleft()
    except IndexError:
        raise UnexpectedError(f"missing expected parameter [{name}]") from None
    try:
        return msgspec.msgpack.decode(raw, type=type_)
    except (msgspec.DecodeError, TypeError) as e:
        raise UnexpectedError(f"failed to decode parameter [{name}]: {e}") from e


def encode_result(result: Any, operation: str) -> bytes:
    try:
        return msgspec.msgpack.encode(result)
    except (msgspec.EncodeError, TypeError, OverflowError) as e:
        raise UnexpectedError(f"failed to encode result of operation [{operation}]: {e}") from e


def pairs_to_dict(pairs: Iterable[tuple[Any, Any]], name: str) -> dict[Any, Any]:
    """Turn a witified map (sequence of key/value pairs) into a dict; keys must be unique"""
    result = {}
    for key, value in pairs:
        try:
            if key in result:
                raise UnexpectedError(f"duplicate key [{key}] in parameter [{name}]")
            result[key] = value
        except TypeError as e:
            raise UnexpectedError(f"invalid key [{key!r}] in parameter [{name}]: {e}") from e
    return result


def dict_to_pairs(mapping: Mapping[Any, Any]) -> list[tuple[Any, Any]]:
    return list(mapping.items())


async def invoke(client: WrpcClient, target: str, operation: str,
                 params: Iterable[Any], return_type: Any) -> Any:
    """Encode params in order, call the operation on target and decode the response"""
    try:
        encoded = [encode_value(p) for p in params]
        response = await client.invoke(target, operation, encoded)
        return msgspec.msgpack.decode(response, type=return_type)
    except Exception as e:
        raise TransportError(f"failed to invoke [{operation}]: {e}") from e
