"""
timelockwatch/decoder/registry.py
Signature registry: selector -> function entry, per contract dialect.

A dialect is the set of functions one contract exposes. The same payload
bytes decode differently depending on the dialect, so every decode call
names the dialect it runs against.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple

from eth_utils import function_signature_to_4byte_selector

logger = logging.getLogger(__name__)

MULTISIG_DIALECT = "gnosis_safe"
TIMELOCK_DIALECT = "compound_timelock"


class ParamKind(str, Enum):
    ADDRESS = "address"
    UINT = "uint"
    BYTES = "bytes"
    STRING = "string"
    BLOB = "blob"


def kind_for(abi_type: str, nested: bool = False) -> ParamKind:
    """Map a declared ABI type onto the closed set of decoded value kinds."""
    if abi_type == "address":
        return ParamKind.ADDRESS
    if abi_type == "uint" or (abi_type.startswith("uint") and abi_type[4:].isdigit()):
        return ParamKind.UINT
    if abi_type == "bytes":
        return ParamKind.BLOB if nested else ParamKind.BYTES
    if abi_type.startswith("bytes") and abi_type[5:].isdigit():
        return ParamKind.BYTES
    if abi_type == "string":
        return ParamKind.STRING
    raise ValueError(f"Unsupported parameter type for a dialect entry: {abi_type!r}")


@dataclass(frozen=True)
class Param:
    name: str
    abi_type: str
    kind: ParamKind


@dataclass(frozen=True)
class FunctionEntry:
    name: str
    params: Tuple[Param, ...] = ()

    @property
    def prototype(self) -> str:
        return f"{self.name}({','.join(p.abi_type for p in self.params)})"

    @property
    def selector(self) -> bytes:
        return function_signature_to_4byte_selector(self.prototype)

    @property
    def abi_types(self) -> Tuple[str, ...]:
        return tuple(p.abi_type for p in self.params)


def function(name: str, params: Sequence[Tuple[str, str]] = (), nested: Iterable[str] = ()) -> FunctionEntry:
    """
    Build a FunctionEntry from (name, abi_type) pairs.

    Parameters listed in ``nested`` must be ``bytes`` and carry an embedded
    call payload; they decode to BlobValue instead of BytesValue.
    """
    nested = set(nested)
    unknown = nested - {n for n, _ in params}
    if unknown:
        raise ValueError(f"{name}: nested parameters {sorted(unknown)} are not declared")
    return FunctionEntry(
        name=name,
        params=tuple(Param(n, t, kind_for(t, n in nested)) for n, t in params),
    )


@dataclass(frozen=True)
class Forwarding:
    """Which function of a dialect forwards a call, and where its target and payload live."""
    function: str
    target_param: str
    payload_param: str


@dataclass(frozen=True)
class Dialect:
    name: str
    entries: Tuple[FunctionEntry, ...]
    forwarding: Optional[Forwarding] = None
    _by_selector: Mapping[bytes, FunctionEntry] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        by_selector: Dict[bytes, FunctionEntry] = {}
        for entry in self.entries:
            selector = entry.selector
            if selector in by_selector:
                raise ValueError(
                    f"Dialect {self.name}: selector 0x{selector.hex()} collides "
                    f"({by_selector[selector].prototype} vs {entry.prototype})"
                )
            by_selector[selector] = entry
        if self.forwarding is not None:
            entry = next((e for e in self.entries if e.name == self.forwarding.function), None)
            if entry is None:
                raise ValueError(f"Dialect {self.name}: forwarding function {self.forwarding.function} not declared")
            kinds = {p.name: p.kind for p in entry.params}
            if kinds.get(self.forwarding.target_param) is not ParamKind.ADDRESS:
                raise ValueError(f"Dialect {self.name}: forwarding target must be an address parameter")
            if kinds.get(self.forwarding.payload_param) is not ParamKind.BLOB:
                raise ValueError(f"Dialect {self.name}: forwarding payload must be a nested bytes parameter")
        object.__setattr__(self, "_by_selector", MappingProxyType(by_selector))

    def lookup(self, selector: bytes) -> Optional[FunctionEntry]:
        return self._by_selector.get(bytes(selector))

    def entry(self, name: str) -> FunctionEntry:
        for entry in self.entries:
            if entry.name == name:
                return entry
        raise KeyError(f"Dialect {self.name} has no function {name!r}")

    def __contains__(self, selector: bytes) -> bool:
        return bytes(selector) in self._by_selector

    def __len__(self) -> int:
        return len(self._by_selector)


class SignatureRegistry:
    """
    Immutable set of dialects, loaded once at startup.
    """

    def __init__(self, dialects: Iterable[Dialect]):
        by_name: Dict[str, Dialect] = {}
        for dialect in dialects:
            if dialect.name in by_name:
                raise ValueError(f"Duplicate dialect {dialect.name}")
            by_name[dialect.name] = dialect
        self._dialects = MappingProxyType(by_name)
        logger.debug(f"[Registry] Loaded dialects: {', '.join(f'{n} ({len(d)})' for n, d in by_name.items())}")

    def dialect(self, name: str) -> Dialect:
        try:
            return self._dialects[name]
        except KeyError:
            raise KeyError(f"Unknown dialect {name!r}") from None

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(self._dialects)


_TIMELOCK_TX_PARAMS = (
    ("target", "address"),
    ("value", "uint256"),
    ("signature", "string"),
    ("data", "bytes"),
    ("eta", "uint256"),
)

GNOSIS_SAFE = Dialect(
    name=MULTISIG_DIALECT,
    entries=(
        function(
            "execTransaction",
            (
                ("to", "address"),
                ("value", "uint256"),
                ("data", "bytes"),
                ("operation", "uint8"),
                ("safeTxGas", "uint256"),
                ("baseGas", "uint256"),
                ("gasPrice", "uint256"),
                ("gasToken", "address"),
                ("refundReceiver", "address"),
                ("signatures", "bytes"),
            ),
            nested=("data",),
        ),
        function("approveHash", (("hashToApprove", "bytes32"),)),
        function("addOwnerWithThreshold", (("owner", "address"), ("_threshold", "uint256"))),
        function("removeOwner", (("prevOwner", "address"), ("owner", "address"), ("_threshold", "uint256"))),
        function("swapOwner", (("prevOwner", "address"), ("oldOwner", "address"), ("newOwner", "address"))),
        function("changeThreshold", (("_threshold", "uint256"),)),
    ),
    forwarding=Forwarding(function="execTransaction", target_param="to", payload_param="data"),
)

COMPOUND_TIMELOCK = Dialect(
    name=TIMELOCK_DIALECT,
    entries=(
        function("queueTransaction", _TIMELOCK_TX_PARAMS),
        function("cancelTransaction", _TIMELOCK_TX_PARAMS),
        function("executeTransaction", _TIMELOCK_TX_PARAMS),
        function("setDelay", (("delay_", "uint256"),)),
        function("setPendingAdmin", (("pendingAdmin_", "address"),)),
        function("acceptAdmin"),
    ),
)


def default_registry() -> SignatureRegistry:
    return SignatureRegistry([GNOSIS_SAFE, COMPOUND_TIMELOCK])


# Prototypes tried when a timelock call carries an empty signature and the
# selector travels inside `data` instead.
KNOWN_PROTOTYPES: Tuple[str, ...] = (
    # ERC20
    "transfer(address,uint256)",
    "approve(address,uint256)",
    "transferFrom(address,address,uint256)",
    # Ownable / access control
    "transferOwnership(address)",
    "grantRole(bytes32,address)",
    "revokeRole(bytes32,address)",
    # Proxy upgrades
    "upgradeTo(address)",
    "upgradeToAndCall(address,bytes)",
    # Pausable
    "pause()",
    "unpause()",
    # Timelock admin
    "setDelay(uint256)",
    "setPendingAdmin(address)",
    "acceptAdmin()",
    # MasterChef pools
    "add(uint256,address,bool)",
    "set(uint256,uint256,bool)",
)

KNOWN_SELECTORS: Mapping[bytes, str] = MappingProxyType(
    {function_signature_to_4byte_selector(p): p for p in KNOWN_PROTOTYPES}
)
