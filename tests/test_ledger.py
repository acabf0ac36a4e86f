"""
Tests for the live/closed connection ledger.
"""
import threading
import unittest

from connscope.models.connection import (
    ConnectionMetadata,
    ConnectionRecord,
    CounterSnapshot,
    DerivedRates,
    TrackedConnection,
)
from connscope.telemetry.ledger import ConnectionLedger


def _tracked(identity, up=0, down=0, host="example.com", rate=0):
    record = ConnectionRecord(
        identity=identity,
        metadata=ConnectionMetadata(host=host),
        counters=CounterSnapshot(upload=up, download=down),
    )
    return TrackedConnection(record=record, rates=DerivedRates(upload=rate, download=rate))


class ConnectionLedgerTests(unittest.TestCase):
    def setUp(self):
        self.ledger = ConnectionLedger()

    def test_live_set_equals_latest_batch(self):
        self.ledger.apply_batch([_tracked("a"), _tracked("b")])
        self.ledger.apply_batch([_tracked("b"), _tracked("c")])
        self.assertEqual(self.ledger.live_identities(), ("b", "c"))

    def test_dropped_identity_moves_to_closed(self):
        self.ledger.apply_batch([_tracked("a", up=10), _tracked("b")])
        closed = self.ledger.apply_batch([_tracked("b")])

        self.assertEqual(closed, ("a",))
        self.assertFalse(self.ledger.is_live("a"))
        self.assertTrue(self.ledger.is_closed("a"))
        self.assertEqual(self.ledger.get("a").counters.upload, 10)

    def test_closed_order_follows_previous_live_order(self):
        self.ledger.apply_batch([_tracked("x"), _tracked("y"), _tracked("z")])
        self.ledger.apply_batch([_tracked("y")])
        self.ledger.apply_batch([])
        self.assertEqual(self.ledger.closed_identities(), ("x", "z", "y"))

    def test_entries_are_refreshed_with_batch_sequence(self):
        self.ledger.apply_batch([_tracked("a", up=1)])
        self.ledger.apply_batch([_tracked("a", up=5, rate=4)])
        entry = self.ledger.get_live("a")
        self.assertEqual(entry.counters.upload, 5)
        self.assertEqual(entry.rates.upload, 4)
        self.assertEqual(entry.last_seen_batch, 2)
        self.assertEqual(self.ledger.batch_seq, 2)

    def test_metadata_is_last_write_wins(self):
        self.ledger.apply_batch([_tracked("a", host="old.example")])
        self.ledger.apply_batch([_tracked("a", host="new.example")])
        self.assertEqual(self.ledger.get("a").metadata.host, "new.example")

    def test_remove_does_not_record_closure(self):
        self.ledger.apply_batch([_tracked("a"), _tracked("b")])
        removed = self.ledger.remove("a")
        self.assertEqual(removed.identity, "a")
        self.assertEqual(self.ledger.live_identities(), ("b",))
        self.assertFalse(self.ledger.is_closed("a"))
        self.assertIsNone(self.ledger.remove("a"))

        # the next batch without "a" must not resurrect it as closed either
        self.ledger.apply_batch([_tracked("b")])
        self.assertEqual(self.ledger.closed_identities(), ())

    def test_clear_closed_leaves_live_alone(self):
        self.ledger.apply_batch([_tracked("a"), _tracked("b")])
        self.ledger.apply_batch([_tracked("b")])
        self.assertEqual(self.ledger.clear_closed(), 1)
        self.assertEqual(self.ledger.closed_identities(), ())
        self.assertEqual(self.ledger.live_identities(), ("b",))

    def test_reappearing_identity_leaves_closed_set(self):
        self.ledger.apply_batch([_tracked("a")])
        self.ledger.apply_batch([])
        self.assertTrue(self.ledger.is_closed("a"))

        self.ledger.apply_batch([_tracked("a")])
        self.assertTrue(self.ledger.is_live("a"))
        self.assertFalse(self.ledger.is_closed("a"))

    def test_snapshot_is_isolated_from_later_batches(self):
        self.ledger.apply_batch([_tracked("a")])
        snapshot = self.ledger.snapshot()
        self.ledger.apply_batch([_tracked("b")])
        self.assertEqual([e.identity for e in snapshot.live], ["a"])
        self.assertEqual(snapshot.closed, ())
        self.assertEqual(snapshot.batch_seq, 1)

    def test_concurrent_reads_never_see_partial_batch(self):
        batch_a = [_tracked(f"a{i}") for i in range(50)]
        batch_b = [_tracked(f"b{i}") for i in range(50)]
        expected = ({e.identity for e in batch_a}, {e.identity for e in batch_b})
        stop = threading.Event()
        bad = []

        def reader():
            while not stop.is_set():
                snap = self.ledger.snapshot()
                live = {e.identity for e in snap.live}
                if snap.batch_seq and live not in expected:
                    bad.append(live)
                if set(e.identity for e in snap.closed) & live:
                    bad.append(live)

        threads = [threading.Thread(target=reader) for _ in range(3)]
        for t in threads:
            t.start()
        for i in range(200):
            self.ledger.apply_batch(batch_a if i % 2 == 0 else batch_b)
        stop.set()
        for t in threads:
            t.join()
        self.assertEqual(bad, [])


if __name__ == "__main__":
    unittest.main()
