"""
Dummy snapshot transport for testing without a proxy kernel.
"""
import itertools
import logging
import random
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .itransport import BatchCallback, ISnapshotTransport, Subscription

_log = logging.getLogger(__name__)

_HOSTS = [
    "example.com", "api.github.com", "www.google.com", "cdn.jsdelivr.net",
    "", "", "update.microsoft.com", "registry.npmjs.org",
]
_PROCESSES = ["firefox", "curl", "git", "node", "python3", ""]
_CHAINS = [["DIRECT"], ["HK-01", "Proxy"], ["JP-02", "Auto", "Proxy"], ["REJECT"]]


class DummyTransport(ISnapshotTransport):
    """
    Delivers snapshots pushed by the caller, or synthetic ones from a
    background generator thread.
    """

    def __init__(self, seed: Optional[int] = None):
        self._subscribers: Dict[int, BatchCallback] = {}
        self._ids = itertools.count(1)
        self._lock = threading.RLock()
        self._deliver_lock = threading.Lock()
        self._random = random.Random(seed)
        self._connections: Dict[str, Dict[str, Any]] = {}
        self._stop_event = threading.Event()
        self._generator: Optional[threading.Thread] = None

    def subscribe(self, callback: BatchCallback) -> Subscription:
        with self._lock:
            sub_id = next(self._ids)
            self._subscribers[sub_id] = callback

        def cancel():
            with self._lock:
                self._subscribers.pop(sub_id, None)

        return Subscription(cancel)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def push(self, batch: Any) -> None:
        """Deliver one batch to every current subscriber, synchronously."""
        with self._deliver_lock:
            with self._lock:
                callbacks = list(self._subscribers.values())
            for callback in callbacks:
                callback(batch)

    # --- Synthetic generator ---

    def start(self, interval: float = 1.0) -> None:
        with self._lock:
            if self._generator is not None:
                return
            self._stop_event.clear()
            self._generator = threading.Thread(
                target=self._run,
                args=(interval,),
                daemon=True,
            )
            self._generator.start()

    def stop(self) -> None:
        with self._lock:
            generator = self._generator
            self._generator = None
        if generator is not None:
            self._stop_event.set()
            generator.join(timeout=1.0)

    def _run(self, interval: float) -> None:
        while not self._stop_event.is_set():
            try:
                self.push(self.next_snapshot())
            except Exception:
                _log.exception("error in dummy snapshot generator")
            self._stop_event.wait(interval)

    def next_snapshot(self) -> Dict[str, Any]:
        """Advance the synthetic connection set by one tick."""
        rnd = self._random
        for identity in list(self._connections):
            if rnd.random() < 0.15:
                del self._connections[identity]
        for _ in range(rnd.randint(0, 3)):
            conn = self._new_connection()
            self._connections[conn["id"]] = conn
        for conn in self._connections.values():
            conn["upload"] += rnd.randint(0, 4096)
            conn["download"] += rnd.randint(0, 65536)

        connections: List[Dict[str, Any]] = [dict(c) for c in self._connections.values()]
        return {
            "uploadTotal": sum(c["upload"] for c in connections),
            "downloadTotal": sum(c["download"] for c in connections),
            "connections": connections,
        }

    def _new_connection(self) -> Dict[str, Any]:
        rnd = self._random
        host = rnd.choice(_HOSTS)
        return {
            "id": str(uuid.UUID(int=rnd.getrandbits(128))),
            "upload": rnd.randint(0, 2048),
            "download": rnd.randint(0, 8192),
            "start": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "chains": list(rnd.choice(_CHAINS)),
            "rule": "Match" if not host else "DomainSuffix",
            "rulePayload": host.split(".", 1)[-1] if host else "",
            "metadata": {
                "network": rnd.choice(["tcp", "udp"]),
                "type": rnd.choice(["HTTP", "Socks5", "Tun"]),
                "sourceIP": "192.168.1.100",
                "sourcePort": str(rnd.randint(40000, 65000)),
                "destinationIP": f"10.{rnd.randint(0, 255)}.{rnd.randint(0, 255)}.{rnd.randint(1, 254)}",
                "destinationPort": rnd.choice(["443", "80", "53"]),
                "host": host,
                "process": rnd.choice(_PROCESSES),
                "inboundName": "mixed",
            },
        }
