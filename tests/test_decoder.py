"""
Tests for snapshot batch decoding.
"""
from datetime import datetime, timezone

import pytest

from connscope.errors import DecodeError
from connscope.telemetry.decoder import DropReason, decode_batch, parse_start


def _raw(identity="c1", upload=10, download=20, host="example.com", **meta):
    metadata = {
        "network": "tcp",
        "type": "HTTP",
        "sourceIP": "192.168.1.2",
        "sourcePort": "50000",
        "destinationIP": "93.184.216.34",
        "destinationPort": "443",
        "host": host,
        "process": "curl",
    }
    metadata.update(meta)
    return {
        "id": identity,
        "upload": upload,
        "download": download,
        "start": "2024-05-01T10:00:00.123456789+08:00",
        "chains": ["HK-01", "Proxy"],
        "rule": "DomainSuffix",
        "rulePayload": "example.com",
        "metadata": metadata,
    }


def test_decode_envelope():
    batch = decode_batch({
        "uploadTotal": 1000,
        "downloadTotal": 2000,
        "connections": [_raw("a"), _raw("b", host="")],
    })

    assert [r.identity for r in batch.records] == ["a", "b"]
    assert batch.dropped == 0
    assert batch.upload_total == 1000
    assert batch.download_total == 2000

    first = batch.records[0]
    assert first.counters.upload == 10
    assert first.counters.download == 20
    assert first.metadata.host == "example.com"
    assert first.metadata.destination_port == "443"
    assert first.metadata.chains == ("HK-01", "Proxy")
    assert first.metadata.chain_label == "Proxy / HK-01"
    assert first.metadata.rule_label == "DomainSuffix(example.com)"
    assert batch.records[1].metadata.host_label == "93.184.216.34:443"


def test_decode_bare_list_and_null_connections():
    assert len(decode_batch([_raw("a")]).records) == 1
    assert decode_batch([]).records == ()
    empty = decode_batch({"connections": None, "uploadTotal": 5})
    assert empty.records == ()
    assert empty.upload_total == 5


def test_malformed_records_are_dropped_not_fatal():
    no_id = _raw()
    del no_id["id"]
    bad_counter = _raw("x", upload="lots")
    batch = decode_batch([_raw("a"), no_id, "garbage", bad_counter, _raw("b"), {"id": ""}])

    assert [r.identity for r in batch.records] == ["a", "b"]
    assert batch.dropped == 4
    assert batch.drop_reasons == (
        DropReason.MISSING_IDENTITY,
        DropReason.NOT_A_MAPPING,
        DropReason.BAD_COUNTER,
        DropReason.MISSING_IDENTITY,
    )


def test_duplicates_are_kept_in_order():
    batch = decode_batch([_raw("a", upload=1), _raw("a", upload=2)])
    assert [r.counters.upload for r in batch.records] == [1, 2]


def test_missing_counters_and_metadata_default():
    batch = decode_batch([{"id": "bare"}])
    record = batch.records[0]
    assert record.counters.upload == 0
    assert record.counters.download == 0
    assert record.metadata.host == ""
    assert record.metadata.chains == ()
    assert record.start_ts is None


@pytest.mark.parametrize("raw", [42, "connections", {"uploadTotal": 1}, {"connections": 7}])
def test_structurally_malformed_batch_raises(raw):
    with pytest.raises(DecodeError):
        decode_batch(raw)


def test_parse_start_variants():
    expected = datetime(2024, 5, 1, 2, 0, 0, 123456, tzinfo=timezone.utc).timestamp()
    assert parse_start("2024-05-01T10:00:00.123456789+08:00") == pytest.approx(expected)
    assert parse_start("2024-05-01T02:00:00.123456Z") == pytest.approx(expected)
    assert parse_start("2024-05-01T02:00:00Z") == pytest.approx(expected - 0.123456)
    assert parse_start(1714528800) == 1714528800.0
    assert parse_start(1714528800000) == 1714528800.0
    assert parse_start("yesterday") is None
    assert parse_start(None) is None
    assert parse_start(True) is None


def test_non_finite_start_is_unknown():
    assert parse_start(float("nan")) is None
    assert parse_start(float("-inf")) is None
    assert parse_start(float("inf")) is None

    record = _raw("c1")
    record["start"] = float("-inf")
    batch = decode_batch([record])
    assert batch.dropped == 0
    assert batch.records[0].start_ts is None
