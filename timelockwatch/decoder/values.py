"""
timelockwatch/decoder/values.py
Typed argument values produced by the call decoder.

The set is closed: every decoded parameter is exactly one of
AddressValue, UintValue, BytesValue, StringValue or BlobValue, and
`render_value` refuses anything else.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple, Union


@dataclass(frozen=True)
class AddressValue:
    value: str  # EIP-55 checksummed

    def render(self) -> str:
        return self.value


@dataclass(frozen=True)
class UintValue:
    value: str  # decimal, may exceed 64 bits

    def as_int(self) -> int:
        return int(self.value)

    def render(self) -> str:
        return self.value


@dataclass(frozen=True)
class BytesValue:
    value: bytes

    def render(self) -> str:
        return "0x" + self.value.hex()


@dataclass(frozen=True)
class StringValue:
    value: str

    def render(self) -> str:
        return self.value


@dataclass(frozen=True)
class BlobValue:
    """An embedded call payload that has not been decoded yet."""
    value: bytes

    def render(self) -> str:
        return "0x" + self.value.hex()


TypedValue = Union[AddressValue, UintValue, BytesValue, StringValue, BlobValue]

TYPED_VALUE_CLASSES = (AddressValue, UintValue, BytesValue, StringValue, BlobValue)


def render_value(value: TypedValue) -> str:
    if not isinstance(value, TYPED_VALUE_CLASSES):
        raise TypeError(f"Not a decoded value: {type(value).__name__}")
    return value.render()


@dataclass(frozen=True)
class DecodedCall:
    """
    A function call decoded against a dialect.

    Params keep the declaration order of the function entry. Instances are
    never mutated; decoding a nested BlobValue yields a separate DecodedCall.
    """
    function_name: str
    params: Tuple[Tuple[str, TypedValue], ...]

    def get(self, name: str) -> Optional[TypedValue]:
        for param_name, value in self.params:
            if param_name == name:
                return value
        return None

    def value(self, name: str) -> TypedValue:
        found = self.get(name)
        if found is None:
            raise KeyError(f"{self.function_name} has no parameter {name!r}")
        return found

    @property
    def values(self) -> Tuple[TypedValue, ...]:
        return tuple(value for _, value in self.params)

    def describe(self) -> str:
        args = ", ".join(f"{name}={render_value(value)}" for name, value in self.params)
        return f"{self.function_name}({args})"
