"""
Governance operation model.

Defines the records the correlator works on:
1. RawRecord (one on-chain transaction sent to the executor)
2. GovernanceOperation (one decoded queue/cancel/execute call)
3. OperationStatus (derived lifecycle state of a queued operation)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple, Optional, Tuple

import eth_abi
from eth_utils import keccak, to_checksum_address


@dataclass(frozen=True)
class RawRecord:
    hash: str
    from_address: str
    block_number: int
    timestamp: int  # unix seconds
    payload: bytes
    # set when the ledger returned an unreadable payload; decoding reports it
    payload_error: Optional[str] = None


class OperationKind(str, Enum):
    QUEUE = "queueTransaction"
    CANCEL = "cancelTransaction"
    EXECUTE = "executeTransaction"

    @classmethod
    def from_function(cls, name: str) -> Optional["OperationKind"]:
        for kind in cls:
            if kind.value == name:
                return kind
        return None


_FINGERPRINT_TYPES = ["address", "uint256", "string", "bytes", "uint256"]


def operation_fingerprint(target: str, value: int, signature: str, data: bytes, eta: int) -> str:
    """
    Identity of a timelock action.

    keccak256(abi.encode(target, value, signature, data, eta)), the same key
    the timelock contract stores queued transactions under.
    """
    encoded = eth_abi.encode(
        _FINGERPRINT_TYPES,
        [to_checksum_address(target), value, signature, bytes(data), eta],
    )
    return "0x" + keccak(encoded).hex()


@dataclass(frozen=True)
class GovernanceOperation:
    """
    One decoded timelock call.

    Matching between queue and cancel/execute uses `fingerprint` only;
    `source_hash`, `block_number` and `timestamp` are for ordering and display.
    """
    source_hash: str
    kind: OperationKind
    target: str
    value: int
    signature: str
    data: bytes
    eta: int
    fingerprint: str
    timelock: str = ""
    block_number: int = 0
    timestamp: int = 0
    decoded_args: Optional[Tuple[str, ...]] = None
    data_error: Optional[str] = None

    @classmethod
    def build(
        cls,
        source_hash: str,
        kind: OperationKind,
        target: str,
        value: int,
        signature: str,
        data: bytes,
        eta: int,
        **extra,
    ) -> "GovernanceOperation":
        target = to_checksum_address(target)
        return cls(
            source_hash=source_hash,
            kind=kind,
            target=target,
            value=value,
            signature=signature,
            data=bytes(data),
            eta=eta,
            fingerprint=operation_fingerprint(target, value, signature, data, eta),
            **extra,
        )

    @property
    def raw_data(self) -> str:
        return "0x" + self.data.hex()

    @property
    def data_decoded(self) -> bool:
        return self.decoded_args is not None

    @property
    def data_display(self) -> str:
        """Decoded argument list, or the raw bytes when the data could not be decoded."""
        if self.decoded_args is None:
            return self.raw_data
        return "[" + ", ".join(self.decoded_args) + "]"


class StatusKind(str, Enum):
    QUEUED = "queued"
    CANCELLED = "cancelled"
    EXECUTED = "executed"


@dataclass(frozen=True)
class OperationStatus:
    kind: StatusKind
    terminating_hash: Optional[str] = field(default=None)

    def __post_init__(self):
        if self.kind is StatusKind.QUEUED and self.terminating_hash is not None:
            raise ValueError("A queued operation has no terminating transaction")
        if self.kind is not StatusKind.QUEUED and not self.terminating_hash:
            raise ValueError(f"A {self.kind.value} operation needs its terminating transaction hash")

    @classmethod
    def queued(cls) -> "OperationStatus":
        return cls(StatusKind.QUEUED)

    @classmethod
    def cancelled(cls, terminating_hash: str) -> "OperationStatus":
        return cls(StatusKind.CANCELLED, terminating_hash)

    @classmethod
    def executed(cls, terminating_hash: str) -> "OperationStatus":
        return cls(StatusKind.EXECUTED, terminating_hash)

    @property
    def is_terminal(self) -> bool:
        return self.kind is not StatusKind.QUEUED

    def __str__(self) -> str:
        if self.terminating_hash:
            return f"{self.kind.value} ({self.terminating_hash})"
        return self.kind.value


class CorrelatedOperation(NamedTuple):
    operation: GovernanceOperation
    status: OperationStatus
