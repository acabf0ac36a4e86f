"""
Snapshot transports.
"""

from .itransport import ISnapshotTransport, Subscription, BatchCallback
from .dummy_transport import DummyTransport
from .polling_transport import PollingTransport

__all__ = [
    'ISnapshotTransport',
    'Subscription',
    'BatchCallback',
    'DummyTransport',
    'PollingTransport',
]
