"""
timelockwatch/decoder/abi.py
Selector-based call decoding over raw byte spans.

decode() turns `selector ++ abi_tuple` into a DecodedCall using a dialect.
decode_arguments() decodes a selector-less argument tuple whose types are
declared by a human-readable prototype such as "transfer(address,uint256)".
Both are pure functions; they never touch state outside their inputs.
"""

from __future__ import annotations

import logging
from typing import Any, List, Sequence, Tuple

import eth_abi
from eth_abi.exceptions import DecodingError, ParseError
from eth_abi.grammar import ABIType, TupleType, normalize, parse
from eth_utils import to_checksum_address

from timelockwatch.decoder.registry import Dialect, FunctionEntry, ParamKind
from timelockwatch.decoder.values import (
    AddressValue,
    BlobValue,
    BytesValue,
    DecodedCall,
    StringValue,
    TypedValue,
    UintValue,
)
from timelockwatch.errors import MalformedPayloadError, UnknownSelectorError

logger = logging.getLogger(__name__)

SELECTOR_SIZE = 4


def split_selector(payload: bytes) -> Tuple[bytes, bytes]:
    return bytes(payload[:SELECTOR_SIZE]), bytes(payload[SELECTOR_SIZE:])


def decode(payload: bytes, dialect: Dialect) -> DecodedCall:
    """
    Decode a call payload against a dialect.

    Raises:
        UnknownSelectorError: the leading 4 bytes are not in ``dialect``
        MalformedPayloadError: the argument bytes do not fit the declared types
    """
    if len(payload) < SELECTOR_SIZE:
        raise UnknownSelectorError(
            f"Payload of {len(payload)} bytes has no selector",
            dialect=dialect.name,
        )

    selector, body = split_selector(payload)
    entry = dialect.lookup(selector)
    if entry is None:
        raise UnknownSelectorError(
            f"Selector 0x{selector.hex()} not in dialect {dialect.name}",
            selector="0x" + selector.hex(),
            dialect=dialect.name,
        )

    raw_values = decode_tuple(entry.abi_types, body, context=entry.prototype)
    params = tuple((p.name, _wrap(p.kind, v)) for p, v in zip(entry.params, raw_values))
    return DecodedCall(function_name=entry.name, params=params)


def decode_nested(call: DecodedCall, param: str, dialect: Dialect) -> DecodedCall:
    """Decode the BlobValue held in ``call.param`` as a call on ``dialect``."""
    blob = call.value(param)
    if not isinstance(blob, BlobValue):
        raise MalformedPayloadError(
            f"{call.function_name}.{param} is not an embedded payload",
            param=param,
        )
    if not blob.value:
        raise MalformedPayloadError(
            f"{call.function_name}.{param} is empty",
            param=param,
        )
    return decode(blob.value, dialect)


def decode_tuple(abi_types: Sequence[str], body: bytes, context: str = "") -> Tuple[Any, ...]:
    """Standard positional tuple decoding with no selector prefix."""
    try:
        return tuple(eth_abi.decode([normalize(t) for t in abi_types], bytes(body)))
    except (DecodingError, ParseError, ValueError, OverflowError) as e:
        raise MalformedPayloadError(
            f"Cannot decode {context or ','.join(abi_types)}: {e}",
            types=list(abi_types),
            length=len(body),
        ) from e


def encode_call(entry: FunctionEntry, values: Sequence[Any]) -> bytes:
    """Inverse of decode() for a single entry."""
    return entry.selector + eth_abi.encode([normalize(t) for t in entry.abi_types], list(values))


def _wrap(kind: ParamKind, raw: Any) -> TypedValue:
    if kind is ParamKind.ADDRESS:
        return AddressValue(to_checksum_address(raw))
    if kind is ParamKind.UINT:
        return UintValue(str(raw))
    if kind is ParamKind.BYTES:
        return BytesValue(bytes(raw))
    if kind is ParamKind.STRING:
        return StringValue(raw)
    if kind is ParamKind.BLOB:
        return BlobValue(bytes(raw))
    raise TypeError(f"Unhandled parameter kind {kind!r}")


# --- Prototype-declared argument lists ------------------------------------

def parse_prototype_types(prototype: str) -> List[str]:
    """
    Extract the parameter type list from "name(type,type,...)".

    Commas inside nested tuple types do not split:
    "f((address,uint256),bool)" -> ["(address,uint256)", "bool"].
    """
    start = prototype.find("(")
    end = prototype.rfind(")")
    if start == -1 or end < start:
        raise MalformedPayloadError(f"Signature {prototype!r} has no parameter list", signature=prototype)

    inner = prototype[start + 1:end].strip()
    if not inner:
        return []

    types: List[str] = []
    depth = 0
    current = []
    for ch in inner:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                break
        elif ch == "," and depth == 0:
            types.append("".join(current).strip())
            current = []
            continue
        current.append(ch)
    if depth != 0:
        raise MalformedPayloadError(f"Signature {prototype!r} has unbalanced parentheses", signature=prototype)
    types.append("".join(current).strip())

    if any(not t for t in types):
        raise MalformedPayloadError(f"Signature {prototype!r} has an empty parameter type", signature=prototype)
    return types


def decode_arguments(prototype: str, data: bytes) -> Tuple[str, ...]:
    """Decode ``data`` against the types declared in ``prototype`` and render each argument."""
    types = parse_prototype_types(prototype)
    values = decode_tuple(types, data, context=prototype)
    try:
        parsed = [parse(normalize(t)) for t in types]
    except ParseError as e:
        raise MalformedPayloadError(f"Signature {prototype!r}: {e}", signature=prototype) from e
    return tuple(render_abi_value(t, v) for t, v in zip(parsed, values))


def render_abi_value(abi_type: ABIType, value: Any) -> str:
    if abi_type.arrlist:
        return "[" + ", ".join(render_abi_value(abi_type.item_type, v) for v in value) + "]"
    if isinstance(abi_type, TupleType):
        return "(" + ", ".join(render_abi_value(c, v) for c, v in zip(abi_type.components, value)) + ")"

    base = abi_type.base
    if base == "address":
        return to_checksum_address(value)
    if base == "bool":
        return "true" if value else "false"
    if base == "bytes":
        return "0x" + bytes(value).hex()
    if base == "string":
        return value
    return str(value)
