"""
Snapshot transport interface.
"""
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable

from ..errors import AlreadyUnsubscribed

BatchCallback = Callable[[Any], None]


class Subscription:
    """Handle returned by subscribe(); cancel it exactly once."""

    def __init__(self, cancel: Callable[[], None]):
        self._cancel = cancel
        self._lock = threading.Lock()
        self._active = True

    @property
    def active(self) -> bool:
        with self._lock:
            return self._active

    def unsubscribe(self) -> None:
        with self._lock:
            if not self._active:
                raise AlreadyUnsubscribed("subscription already cancelled")
            self._active = False
        self._cancel()


class ISnapshotTransport(ABC):
    """
    Delivers full connection snapshots to subscribers.

    Batches for one subscriber are delivered one at a time, in order, until
    the subscription is cancelled.
    """

    @abstractmethod
    def subscribe(self, callback: BatchCallback) -> Subscription:
        pass
