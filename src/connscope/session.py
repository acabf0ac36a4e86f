"""
Live connection telemetry session.

Wires a snapshot transport to the decode -> rates -> ledger pipeline and
exposes the presentation-facing API: view state (keyword, sort, active or
closed selection), pause/resume, and the connection actions.

Batches are applied one at a time in delivery order. Batches that arrive
while paused are discarded, and the first batch after resume is a fresh
rate baseline for every connection.
"""
import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .actions.dispatcher import ActionDispatcher, ActionResult
from .errors import AlreadyUnsubscribed, DecodeError
from .models.connection import ZERO_COUNTERS, CounterSnapshot, LedgerEntry
from .telemetry.columns import default_layout
from .telemetry.decoder import decode_batch
from .telemetry.delta import derive_rates
from .telemetry.ledger import ConnectionLedger
from .telemetry.projector import SortDirection, SortSpec, project, render_rows
from .transport.itransport import ISnapshotTransport, Subscription

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionTotals:
    upload_total: int
    download_total: int
    live: int
    closed: int
    batches_applied: int
    batches_discarded: int
    batches_rejected: int
    records_dropped: int


class TelemetrySession:

    def __init__(self,
                 transport: ISnapshotTransport,
                 dispatcher_factory=None,
                 ledger: Optional[ConnectionLedger] = None):
        """
        Args:
            transport: Source of snapshot batches
            dispatcher_factory: Called with the ledger to build the
                ActionDispatcher; without one the actions are unavailable
            ledger: Pre-built ledger, mostly for tests
        """
        self.transport = transport
        self.ledger = ledger or ConnectionLedger()
        self.dispatcher: Optional[ActionDispatcher] = (
            dispatcher_factory(self.ledger) if dispatcher_factory else None
        )

        self._counters: Dict[str, CounterSnapshot] = {}
        self._ingest_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._subscription: Optional[Subscription] = None
        self._torn_down = False

        self._paused = False
        self._keyword = ""
        self._sort: Optional[SortSpec] = None
        self._show_active = True

        self._upload_total = 0
        self._download_total = 0
        self._batches_applied = 0
        self._batches_discarded = 0
        self._batches_rejected = 0
        self._records_dropped = 0

    # --- Lifecycle ---

    def start(self) -> None:
        with self._state_lock:
            if self._torn_down:
                raise RuntimeError("session has been torn down")
            if self._subscription is not None:
                return
            self._subscription = self.transport.subscribe(self.on_batch)
        _log.debug("subscribed to snapshot transport")

    def teardown(self) -> None:
        """Unsubscribe and drop references; safe to call more than once."""
        with self._state_lock:
            subscription = self._subscription
            self._subscription = None
            self._torn_down = True
        if subscription is not None:
            try:
                subscription.unsubscribe()
            except AlreadyUnsubscribed:
                _log.debug("subscription already cancelled")
        with self._ingest_lock:
            self._counters = {}
            self.ledger = ConnectionLedger()
            self.dispatcher = None

    @property
    def is_running(self) -> bool:
        with self._state_lock:
            return self._subscription is not None

    # --- Ingestion ---

    def on_batch(self, raw: Any) -> None:
        """Transport callback: apply one raw batch unless paused."""
        with self._ingest_lock:
            with self._state_lock:
                if self._torn_down:
                    return
                if self._paused:
                    self._batches_discarded += 1
                    return
            try:
                decoded = decode_batch(raw)
            except DecodeError as e:
                _log.warning("skipping malformed batch: %s", e)
                with self._state_lock:
                    self._batches_rejected += 1
                return

            previous = self._counters
            # reappearing after close: a new connection with a zero baseline
            reappeared = [r.identity for r in decoded.records
                          if r.identity not in previous and self.ledger.is_closed(r.identity)]
            if reappeared:
                previous = dict(previous)
                for identity in reappeared:
                    previous[identity] = ZERO_COUNTERS

            self._counters, tracked = derive_rates(previous, decoded.records)
            closed = self.ledger.apply_batch(tracked)
            if closed:
                _log.debug("%d connection(s) closed", len(closed))

            with self._state_lock:
                self._upload_total = decoded.upload_total
                self._download_total = decoded.download_total
                self._batches_applied += 1
                self._records_dropped += decoded.dropped

    def pause(self) -> None:
        with self._state_lock:
            self._paused = True

    def resume(self) -> None:
        with self._ingest_lock:
            self._counters = {}
            with self._state_lock:
                self._paused = False

    @property
    def is_paused(self) -> bool:
        with self._state_lock:
            return self._paused

    # --- View state ---

    def set_keyword(self, keyword: str) -> None:
        with self._state_lock:
            self._keyword = keyword or ""

    def set_sort(self, key: Optional[str], direction=SortDirection.ASC) -> None:
        spec = SortSpec(key=key, direction=SortDirection.parse(direction)) if key else None
        with self._state_lock:
            self._sort = spec

    def select_active(self, active: bool) -> None:
        with self._state_lock:
            self._show_active = bool(active)

    def view(self) -> Tuple[LedgerEntry, ...]:
        """Filtered, sorted entries of the selected set."""
        with self._state_lock:
            keyword = self._keyword
            sort = self._sort
            show_active = self._show_active
        snapshot = self.ledger.snapshot()
        entries = snapshot.live if show_active else snapshot.closed
        return project(entries, keyword=keyword, sort=sort)

    def rows(self, layout: Optional[Sequence[str]] = None) -> List[Dict[str, str]]:
        return render_rows(self.view(), layout if layout is not None else default_layout())

    def clear_closed(self) -> int:
        return self.ledger.clear_closed()

    @property
    def totals(self) -> SessionTotals:
        snapshot = self.ledger.snapshot()
        with self._state_lock:
            return SessionTotals(
                upload_total=self._upload_total,
                download_total=self._download_total,
                live=len(snapshot.live),
                closed=len(snapshot.closed),
                batches_applied=self._batches_applied,
                batches_discarded=self._batches_discarded,
                batches_rejected=self._batches_rejected,
                records_dropped=self._records_dropped,
            )

    # --- Actions ---

    def _require_dispatcher(self) -> ActionDispatcher:
        if self.dispatcher is None:
            raise RuntimeError("no action backends configured for this session")
        return self.dispatcher

    def close_one(self, identity: str) -> ActionResult:
        return self._require_dispatcher().close_one(identity)

    def close_all(self) -> Dict[str, ActionResult]:
        return self._require_dispatcher().close_all()

    def add_to_rule_set(self, identity: str, rule_set: str) -> ActionResult:
        return self._require_dispatcher().add_to_rule_set(identity, rule_set)
