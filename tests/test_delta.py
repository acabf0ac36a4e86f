"""
Tests for per-connection rate derivation.
"""
from connscope.models.connection import ConnectionMetadata, ConnectionRecord, CounterSnapshot
from connscope.telemetry.delta import derive_rates


def _rec(identity, up, down):
    return ConnectionRecord(
        identity=identity,
        metadata=ConnectionMetadata(host=f"{identity}.example"),
        counters=CounterSnapshot(upload=up, download=down),
    )


def test_first_observation_has_zero_rate():
    counters, tracked = derive_rates({}, [_rec("a", 5000, 9000)])
    assert tracked[0].rates.upload == 0
    assert tracked[0].rates.download == 0
    assert counters == {"a": CounterSnapshot(5000, 9000)}


def test_rate_is_delta_from_previous_batch():
    counters, _ = derive_rates({}, [_rec("a", 100, 1000)])
    counters, tracked = derive_rates(counters, [_rec("a", 150, 4000)])
    assert tracked[0].rates.upload == 50
    assert tracked[0].rates.download == 3000
    assert counters["a"] == CounterSnapshot(150, 4000)


def test_decreasing_counter_clamps_to_zero():
    counters, _ = derive_rates({}, [_rec("a", 100, 100)])
    _, tracked = derive_rates(counters, [_rec("a", 40, 130)])
    assert tracked[0].rates.upload == 0
    assert tracked[0].rates.download == 30


def test_replaying_same_batch_gives_zero_rates():
    batch = [_rec("a", 10, 20), _rec("b", 30, 40)]
    counters, _ = derive_rates({}, batch)
    counters, tracked = derive_rates(counters, batch)
    assert all(t.rates.upload == 0 and t.rates.download == 0 for t in tracked)


def test_duplicate_identity_takes_last_occurrence():
    counters, _ = derive_rates({}, [_rec("a", 0, 0)])
    counters, tracked = derive_rates(counters, [_rec("a", 5, 5), _rec("b", 1, 1), _rec("a", 7, 9)])
    assert [t.identity for t in tracked] == ["b", "a"]
    assert tracked[1].rates.upload == 7
    assert tracked[1].rates.download == 9
    assert counters["a"] == CounterSnapshot(7, 9)


def test_counter_map_only_holds_current_batch_and_input_is_untouched():
    previous = {"gone": CounterSnapshot(1, 1)}
    counters, _ = derive_rates(previous, [_rec("a", 1, 1)])
    assert set(counters) == {"a"}
    assert previous == {"gone": CounterSnapshot(1, 1)}


def test_explicit_zero_baseline_reports_full_counters():
    _, tracked = derive_rates({"a": CounterSnapshot(0, 0)}, [_rec("a", 300, 700)])
    assert tracked[0].rates.upload == 300
    assert tracked[0].rates.download == 700
