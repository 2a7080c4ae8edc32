"""
timelockwatch/decoder/pipeline.py
Turns raw executor transactions into GovernanceOperations.

Layers:
1. multisig payload  -> forwarded (target, inner payload); non-timelock targets are noise
2. inner payload     -> timelock call; only queue/cancel/execute are tracked
3. timelock `data`   -> arguments decoded against the `signature` prototype (non-fatal)
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from timelockwatch.decoder.abi import decode, decode_arguments, decode_nested, split_selector
from timelockwatch.decoder.registry import (
    KNOWN_SELECTORS,
    MULTISIG_DIALECT,
    TIMELOCK_DIALECT,
    ParamKind,
    SignatureRegistry,
)
from timelockwatch.errors import DecodeError, MalformedPayloadError, UnsupportedGovernanceActionError
from timelockwatch.lifecycle.models import GovernanceOperation, OperationKind, RawRecord

logger = logging.getLogger(__name__)

# target, value, signature, data, eta
_TRACKED_KINDS = {
    (ParamKind.ADDRESS, ParamKind.UINT, ParamKind.STRING, data_kind, ParamKind.UINT)
    for data_kind in (ParamKind.BYTES, ParamKind.BLOB)
}


@dataclass
class DecodeBatch:
    operations: List[GovernanceOperation] = field(default_factory=list)
    errors: List[DecodeError] = field(default_factory=list)
    filtered: int = 0

    @property
    def total(self) -> int:
        return len(self.operations) + len(self.errors) + self.filtered


# (operation, reported error, filtered)
_Outcome = Tuple[Optional[GovernanceOperation], Optional[DecodeError], bool]


class RecordDecoder:
    """
    Decodes executor transactions against a signature registry.

    Only calls forwarded to one of ``timelock_addresses`` are considered.
    """

    def __init__(
        self,
        registry: SignatureRegistry,
        timelock_addresses: Iterable[str],
        multisig_dialect: str = MULTISIG_DIALECT,
        timelock_dialect: str = TIMELOCK_DIALECT,
    ):
        self.multisig = registry.dialect(multisig_dialect)
        self.timelock = registry.dialect(timelock_dialect)
        if self.multisig.forwarding is None:
            raise ValueError(f"Dialect {self.multisig.name} does not forward calls")
        for entry in self.timelock.entries:
            if OperationKind.from_function(entry.name) is None:
                continue
            kinds = tuple(p.kind for p in entry.params)
            if kinds not in _TRACKED_KINDS:
                raise ValueError(
                    f"Dialect {self.timelock.name}: {entry.prototype} must take "
                    f"(target, value, signature, data, eta)"
                )
        self.timelocks = frozenset(a.lower() for a in timelock_addresses)

    def decode_record(self, record: RawRecord) -> Optional[GovernanceOperation]:
        """
        Decode one record.

        Returns:
            The governance operation, or None when the record is not addressed
            to a monitored timelock.

        Raises:
            UnknownSelectorError / MalformedPayloadError: the record cannot be decoded
            UnsupportedGovernanceActionError: a timelock call other than queue/cancel/execute
        """
        try:
            return self._decode(record)
        except DecodeError as e:
            raise e.for_record(record.hash) from e

    def _decode(self, record: RawRecord) -> Optional[GovernanceOperation]:
        forwarding = self.multisig.forwarding

        if record.payload_error:
            raise MalformedPayloadError(f"Unreadable payload: {record.payload_error}")

        outer = decode(record.payload, self.multisig)
        if outer.function_name != forwarding.function:
            logger.debug(f"[Decoder] {record.hash}: {outer.function_name} forwards nothing, skipping")
            return None

        to = outer.value(forwarding.target_param)
        if to.value.lower() not in self.timelocks:
            logger.debug(f"[Decoder] {record.hash}: call to {to.value} is not a monitored timelock")
            return None

        inner = decode_nested(outer, forwarding.payload_param, self.timelock)
        kind = OperationKind.from_function(inner.function_name)
        if kind is None:
            raise UnsupportedGovernanceActionError(
                f"Timelock call {inner.function_name} is not tracked",
                function=inner.function_name,
            )

        # Kinds were checked against _TRACKED_KINDS in __init__.
        target, value, signature, data, eta = inner.values

        decoded_args, data_error = self._decode_data(signature.value, data.value)
        if data_error:
            logger.info(f"[Decoder] {record.hash}: data kept raw ({data_error})")

        return GovernanceOperation.build(
            source_hash=record.hash,
            kind=kind,
            target=target.value,
            value=value.as_int(),
            signature=signature.value,
            data=data.value,
            eta=eta.as_int(),
            timelock=to.value,
            block_number=record.block_number,
            timestamp=record.timestamp,
            decoded_args=decoded_args,
            data_error=data_error,
        )

    @staticmethod
    def _decode_data(signature: str, data: bytes) -> Tuple[Optional[Tuple[str, ...]], Optional[str]]:
        try:
            if signature:
                return decode_arguments(signature, data), None
            # Empty signature: `data` is a full call, selector included.
            selector, body = split_selector(data)
            prototype = KNOWN_SELECTORS.get(selector)
            if prototype is None:
                return None, "empty signature and unrecognised call data"
            return decode_arguments(prototype, body), None
        except MalformedPayloadError as e:
            return None, e.message

    def _outcome(self, record: RawRecord) -> _Outcome:
        try:
            return self.decode_record(record), None, False
        except UnsupportedGovernanceActionError as e:
            logger.debug(f"[Decoder] {record.hash}: {e.message}")
            return None, None, True
        except DecodeError as e:
            return None, e, False

    def decode_batch(self, records: Sequence[RawRecord], workers: int = 1) -> DecodeBatch:
        """
        Decode every record; failures are collected, never raised.

        Records decode independently, so ``workers > 1`` spreads them over a
        thread pool. The result keeps input order either way.
        """
        if workers > 1 and len(records) > 1:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="decode") as pool:
                outcomes = list(pool.map(self._outcome, records))
        else:
            outcomes = [self._outcome(r) for r in records]

        batch = DecodeBatch()
        for operation, error, filtered in outcomes:
            if error is not None:
                logger.warning(f"[Decoder] Skipping {error.record_hash}: {error.message}")
                batch.errors.append(error)
            elif filtered or operation is None:
                batch.filtered += 1
            else:
                batch.operations.append(operation)

        logger.info(
            f"[Decoder] {len(records)} record(s): {len(batch.operations)} operation(s), "
            f"{len(batch.errors)} error(s), {batch.filtered} filtered"
        )
        return batch
