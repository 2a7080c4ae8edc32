"""
timelockwatch/monitor.py
Fetch -> decode -> correlate, for one executor account.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from timelockwatch.base.config import TimelockWatchConfig, get_config
from timelockwatch.decoder.pipeline import RecordDecoder
from timelockwatch.decoder.registry import SignatureRegistry, default_registry
from timelockwatch.errors import DecodeError
from timelockwatch.lifecycle.correlator import LifecycleCorrelator
from timelockwatch.lifecycle.models import (
    CorrelatedOperation,
    GovernanceOperation,
    OperationStatus,
    RawRecord,
)
from timelockwatch.net.etherscan import EtherscanHistorySource

logger = logging.getLogger(__name__)


@dataclass
class MonitorReport:
    """
    Result of one monitoring pass.

    `operations` holds every decoded queue/cancel/execute call, newest first.
    `correlated` holds the queued ones with their derived status, same order.
    """
    operations: List[GovernanceOperation] = field(default_factory=list)
    correlated: List[CorrelatedOperation] = field(default_factory=list)
    errors: List[DecodeError] = field(default_factory=list)
    filtered: int = 0
    fetched: int = 0

    def __post_init__(self):
        self._status_by_hash: Dict[str, OperationStatus] = {
            c.operation.source_hash: c.status for c in self.correlated
        }

    def status_of(self, operation: GovernanceOperation) -> Optional[OperationStatus]:
        """Status of a queue operation; None for cancel/execute calls."""
        return self._status_by_hash.get(operation.source_hash)


def chronological(records: Sequence[RawRecord], newest_first: bool = True) -> List[RawRecord]:
    return sorted(records, key=lambda r: (r.timestamp, r.block_number), reverse=newest_first)


class TimelockMonitor:
    def __init__(
        self,
        config: Optional[TimelockWatchConfig] = None,
        source: Optional[EtherscanHistorySource] = None,
        registry: Optional[SignatureRegistry] = None,
        correlator: Optional[LifecycleCorrelator] = None,
    ):
        self.config = config or get_config()
        self.source = source or EtherscanHistorySource(self.config.etherscan)
        self.decoder = RecordDecoder(registry or default_registry(), self.config.chain.timelocks)
        self.correlator = correlator or LifecycleCorrelator()

    async def run(self) -> MonitorReport:
        """
        Fetch the executor's history and process it.

        Raises:
            RecordFetchError: the history could not be fetched
        """
        executor = self.config.chain.executor_address
        logger.info(f"[Monitor] Fetching history for executor {executor}")
        records = await self.source.fetch(executor)
        return self.process(records)

    def process(self, records: Sequence[RawRecord]) -> MonitorReport:
        """Decode and correlate an already fetched batch, in any order."""
        ordered = chronological(records)
        batch = self.decoder.decode_batch(ordered, workers=self.config.decode.workers)
        correlated = self.correlator.correlate(batch.operations)
        return MonitorReport(
            operations=batch.operations,
            correlated=correlated,
            errors=batch.errors,
            filtered=batch.filtered,
            fetched=len(records),
        )
