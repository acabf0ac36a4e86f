"""
Connection telemetry data models.
"""

from .connection import (
    ConnectionMetadata,
    CounterSnapshot,
    DerivedRates,
    ConnectionRecord,
    TrackedConnection,
    LedgerEntry,
    ZERO_COUNTERS,
)

__all__ = [
    'ConnectionMetadata',
    'CounterSnapshot',
    'DerivedRates',
    'ConnectionRecord',
    'TrackedConnection',
    'LedgerEntry',
    'ZERO_COUNTERS',
]
