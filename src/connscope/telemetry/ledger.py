"""
Authoritative in-memory store of live and closed connections.

Per identity: Unknown -> Live -> Closed. A batch replaces the live set
with exactly the batch's identities. Every previously live identity the
batch no longer reports moves to the closed set, in the order the diff
finds it. The closed set only shrinks through clear_closed().

The closed set has no size cap. Callers that need bounded memory must
call clear_closed() themselves.
"""
import logging
import threading
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

from ..models.connection import LedgerEntry, TrackedConnection

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerSnapshot:
    """A consistent copy of both sets taken under the ledger lock."""
    live: Tuple[LedgerEntry, ...]
    closed: Tuple[LedgerEntry, ...]
    batch_seq: int


class ConnectionLedger:

    def __init__(self):
        self._live: Dict[str, LedgerEntry] = {}
        self._closed: Dict[str, LedgerEntry] = {}
        self._batch_seq = 0
        self._lock = threading.RLock()

    def apply_batch(self, tracked: Iterable[TrackedConnection]) -> Tuple[str, ...]:
        """
        Swap in a new live set built from one batch.

        The diff and swap run under the lock, so readers see either the
        old state or the new one. Returns the identities that moved to the
        closed set.
        """
        items = list(tracked)
        with self._lock:
            batch_seq = self._batch_seq + 1
            previous_live = self._live

            new_live: Dict[str, LedgerEntry] = {}
            for item in items:
                new_live[item.identity] = LedgerEntry.from_tracked(item, batch_seq)

            dropped = [identity for identity in previous_live if identity not in new_live]

            closed = dict(self._closed)
            for identity in new_live:
                if closed.pop(identity, None) is not None:
                    _log.debug("closed connection %s reappeared; treating it as new", identity)
            for identity in dropped:
                closed[identity] = previous_live[identity]
            self._live = new_live
            self._closed = closed
            self._batch_seq = batch_seq

        return tuple(dropped)

    def remove(self, identity: str) -> Optional[LedgerEntry]:
        """Drop a live entry without recording it as closed."""
        with self._lock:
            if identity not in self._live:
                return None
            live = dict(self._live)
            entry = live.pop(identity)
            self._live = live
            return entry

    def clear_closed(self) -> int:
        with self._lock:
            count = len(self._closed)
            self._closed = {}
            return count

    def get(self, identity: str) -> Optional[LedgerEntry]:
        """Look up an identity in the live set, then the closed set."""
        with self._lock:
            entry = self._live.get(identity)
            if entry is None:
                entry = self._closed.get(identity)
            return entry

    def get_live(self, identity: str) -> Optional[LedgerEntry]:
        with self._lock:
            return self._live.get(identity)

    def is_live(self, identity: str) -> bool:
        with self._lock:
            return identity in self._live

    def is_closed(self, identity: str) -> bool:
        with self._lock:
            return identity in self._closed

    def live_identities(self) -> Tuple[str, ...]:
        with self._lock:
            return tuple(self._live)

    def closed_identities(self) -> Tuple[str, ...]:
        with self._lock:
            return tuple(self._closed)

    def snapshot(self) -> LedgerSnapshot:
        with self._lock:
            return LedgerSnapshot(
                live=tuple(self._live.values()),
                closed=tuple(self._closed.values()),
                batch_seq=self._batch_seq,
            )

    @property
    def batch_seq(self) -> int:
        with self._lock:
            return self._batch_seq

    def __len__(self) -> int:
        with self._lock:
            return len(self._live)
