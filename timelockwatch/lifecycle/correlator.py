"""Lifecycle correlator for timelock governance operations."""
#
# PURPOSE:
# Resolves every queued governance action to its lifecycle state by matching
# it against the cancel/execute calls that carry the same fingerprint.
#
# LOGIC:
# - Input: GovernanceOperations of all three kinds, any order.
# - Process: Order the terminators newest-first -> fold into a
#   fingerprint index that keeps the first entry per key.
# - Output: (queue operation, status) pairs in the input order of the queues.
#
# The fold requires newest-first input. One fingerprint can be terminated
# several times (cancelled, re-queued with the same eta, executed again);
# the most recent terminator is the current state.
#
# A cancel does not always win over an execute for the same fingerprint. It
# wins only inside one block; across blocks the newer terminator decides.
#

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Sequence

from timelockwatch.lifecycle.models import (
    CorrelatedOperation,
    GovernanceOperation,
    OperationKind,
    OperationStatus,
)

logger = logging.getLogger(__name__)

# Inside one block, a cancellation outranks an execution.
_SAME_BLOCK_RANK = {OperationKind.CANCEL: 0, OperationKind.EXECUTE: 1, OperationKind.QUEUE: 2}


def newest_first(operations: Sequence[GovernanceOperation]) -> List[GovernanceOperation]:
    """
    Order operations newest first by (timestamp, block_number).

    Operations in the same block put cancellations ahead of executions;
    anything still tied keeps its input order.
    """
    indexed = list(enumerate(operations))
    indexed.sort(key=lambda item: (-item[1].timestamp, -item[1].block_number, _SAME_BLOCK_RANK[item[1].kind], item[0]))
    return [op for _, op in indexed]


def index_terminators(terminators: Iterable[GovernanceOperation]) -> Dict[str, GovernanceOperation]:
    """
    Fold terminators into fingerprint -> terminator, keeping the first one seen.

    The caller decides which terminator is authoritative through the order it
    supplies; feed it newest_first() output. Queue operations are ignored.
    """
    index: Dict[str, GovernanceOperation] = {}
    for op in terminators:
        if op.kind is OperationKind.QUEUE:
            continue
        index.setdefault(op.fingerprint, op)
    return index


class LifecycleCorrelator:
    """
    Derives an OperationStatus for every queued operation.
    """

    def __init__(self, order: Callable[[Sequence[GovernanceOperation]], List[GovernanceOperation]] = newest_first):
        self.order = order

    def correlate(self, operations: Sequence[GovernanceOperation]) -> List[CorrelatedOperation]:
        """
        Resolve each Queue operation in ``operations``.

        Never fails: a queue with no matching terminator stays Queued.
        """
        queued = [op for op in operations if op.kind is OperationKind.QUEUE]
        terminators = [op for op in operations if op.kind is not OperationKind.QUEUE]

        authoritative = index_terminators(self.order(terminators))

        results = [CorrelatedOperation(op, self._status_for(op, authoritative)) for op in queued]

        unmatched = len(authoritative.keys() - {op.fingerprint for op in queued})
        if unmatched:
            # Terminators whose queue fell outside the fetched window.
            logger.debug(f"[Correlator] {unmatched} terminated action(s) have no queue in this batch")

        logger.info(
            f"[Correlator] {len(queued)} queued, "
            f"{sum(1 for r in results if r.status.is_terminal)} terminated, "
            f"{len(terminators)} terminator call(s)"
        )
        return results

    @staticmethod
    def _status_for(op: GovernanceOperation, authoritative: Dict[str, GovernanceOperation]) -> OperationStatus:
        terminator = authoritative.get(op.fingerprint)
        if terminator is None:
            return OperationStatus.queued()
        if terminator.kind is OperationKind.CANCEL:
            return OperationStatus.cancelled(terminator.source_hash)
        return OperationStatus.executed(terminator.source_hash)


def correlate(operations: Sequence[GovernanceOperation]) -> List[CorrelatedOperation]:
    return LifecycleCorrelator().correlate(operations)
