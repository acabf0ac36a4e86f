"""
Transport that polls the controller's /connections endpoint.
"""
import logging
import threading
import time
from typing import Any, Dict, Optional

from ..actions.kernel_client import KernelClient
from ..errors import ActionError, TransportError
from .itransport import BatchCallback, ISnapshotTransport, Subscription

_log = logging.getLogger(__name__)


class PollingTransport(ISnapshotTransport):
    """
    One polling thread per subscription, fixed interval, no backoff.

    A failed poll is logged as a TransportError and the next poll goes
    ahead on schedule.
    """

    def __init__(self, client: KernelClient, interval: float = 1.0):
        self.client = client
        self.interval = interval
        self._lock = threading.Lock()
        self.stats: Dict[str, Any] = {
            'polls_total': 0,
            'errors_total': 0,
            'last_error': None,
            'last_poll': None,
        }

    def subscribe(self, callback: BatchCallback) -> Subscription:
        stop_event = threading.Event()
        thread = threading.Thread(
            target=self._poll_loop,
            args=(callback, stop_event),
            daemon=True,
            name="connscope-poll",
        )

        def cancel():
            stop_event.set()
            if thread is not threading.current_thread():
                thread.join(timeout=self.interval + self.client.timeout)

        thread.start()
        return Subscription(cancel)

    def poll_once(self) -> Optional[Any]:
        """Fetch one snapshot; None when the poll failed."""
        try:
            body = self.client.get_connections()
        except ActionError as e:
            error = TransportError(f"snapshot poll failed: {e}")
            with self._lock:
                self.stats['errors_total'] += 1
                self.stats['last_error'] = str(error)
            _log.warning("%s", error)
            return None
        with self._lock:
            self.stats['polls_total'] += 1
            self.stats['last_poll'] = time.time()
        return body

    def _poll_loop(self, callback: BatchCallback, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            body = self.poll_once()
            if body is not None and not stop_event.is_set():
                try:
                    callback(body)
                except Exception:
                    _log.exception("snapshot callback failed")
            stop_event.wait(self.interval)

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return dict(self.stats)
