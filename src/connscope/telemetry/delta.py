"""
Per-connection rate derivation from cumulative counters.

Holds no state. The caller owns the previous-counter map and threads it
through each call, so skipping a call (pause) cannot corrupt history.
"""
from typing import Dict, List, Mapping, Sequence, Tuple

from ..models.connection import (
    ConnectionRecord,
    CounterSnapshot,
    DerivedRates,
    TrackedConnection,
)

CounterMap = Dict[str, CounterSnapshot]


def derive_rates(previous: Mapping[str, CounterSnapshot],
                 batch: Sequence[ConnectionRecord]) -> Tuple[CounterMap, List[TrackedConnection]]:
    """
    Compute rates for one batch.

    Returns the counter map for the next call and the enriched records.
    A duplicate identity within the batch resolves to its last occurrence.
    An identity with no previous counters gets a zero rate. The returned
    map only holds identities present in this batch.
    """
    latest: Dict[str, ConnectionRecord] = {}
    for record in batch:
        latest.pop(record.identity, None)
        latest[record.identity] = record

    updated: CounterMap = {}
    tracked: List[TrackedConnection] = []
    for identity, record in latest.items():
        before = previous.get(identity, record.counters)
        tracked.append(TrackedConnection(record=record, rates=DerivedRates.between(before, record.counters)))
        updated[identity] = record.counters

    return updated, tracked
