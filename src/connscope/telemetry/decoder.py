"""
Snapshot batch decoding.

This module is deterministic and best-effort:
- A structurally malformed batch raises DecodeError
- A malformed record is dropped and counted, the rest of the batch survives
- No filtering or deduplication happens here
"""
from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from ..errors import DecodeError
from ..models.connection import ConnectionMetadata, ConnectionRecord, CounterSnapshot

_log = logging.getLogger(__name__)

# metadata key on the wire -> ConnectionMetadata field
_METADATA_FIELDS = (
    ("network", "network"),
    ("type", "type"),
    ("inboundName", "inbound_name"),
    ("sourceIP", "source_ip"),
    ("sourcePort", "source_port"),
    ("destinationIP", "destination_ip"),
    ("destinationPort", "destination_port"),
    ("host", "host"),
    ("sniffHost", "sniff_host"),
    ("remoteDestination", "remote_destination"),
    ("dnsMode", "dns_mode"),
    ("process", "process"),
    ("processPath", "process_path"),
    ("specialProxy", "special_proxy"),
)

_RFC3339 = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<frac>\d+))?"
    r"(?P<tz>Z|z|[+-]\d{2}:?\d{2})?$"
)


class DropReason(Enum):
    NOT_A_MAPPING = "not_a_mapping"
    MISSING_IDENTITY = "missing_identity"
    BAD_COUNTER = "bad_counter"


@dataclass(frozen=True)
class DecodedBatch:
    """Result of decoding one batch."""
    records: Tuple[ConnectionRecord, ...] = field(default_factory=tuple)
    dropped: int = 0
    drop_reasons: Tuple[DropReason, ...] = field(default_factory=tuple)
    upload_total: int = 0
    download_total: int = 0


class _RecordDropped(Exception):
    def __init__(self, reason: DropReason):
        super().__init__(reason.value)
        self.reason = reason


def decode_batch(raw: Any) -> DecodedBatch:
    """
    Decode one raw batch into connection records.

    Accepts either a bare list of records or the controller envelope
    ``{"connections": [...], "uploadTotal": ..., "downloadTotal": ...}``.
    ``connections: null`` is an empty batch.
    """
    upload_total = 0
    download_total = 0

    if isinstance(raw, Mapping):
        if "connections" not in raw:
            raise DecodeError("batch envelope has no 'connections' field")
        items = raw.get("connections")
        upload_total = _optional_int(raw.get("uploadTotal"))
        download_total = _optional_int(raw.get("downloadTotal"))
        if items is None:
            items = []
    else:
        items = raw

    if isinstance(items, (str, bytes)) or not isinstance(items, Sequence):
        raise DecodeError(f"batch is not a sequence of records: {type(items).__name__}")

    records: List[ConnectionRecord] = []
    reasons: List[DropReason] = []
    for index, item in enumerate(items):
        try:
            records.append(decode_record(item))
        except _RecordDropped as e:
            _log.debug("dropping record %d: %s", index, e.reason.value)
            reasons.append(e.reason)

    if reasons:
        _log.warning("dropped %d malformed record(s) out of %d", len(reasons), len(items))

    return DecodedBatch(
        records=tuple(records),
        dropped=len(reasons),
        drop_reasons=tuple(reasons),
        upload_total=upload_total,
        download_total=download_total,
    )


def decode_record(item: Any) -> ConnectionRecord:
    if not isinstance(item, Mapping):
        raise _RecordDropped(DropReason.NOT_A_MAPPING)

    identity = item.get("id")
    if not isinstance(identity, str) or not identity:
        raise _RecordDropped(DropReason.MISSING_IDENTITY)

    upload = _counter(item.get("upload"))
    download = _counter(item.get("download"))

    raw_meta = item.get("metadata")
    if not isinstance(raw_meta, Mapping):
        raw_meta = {}
    meta_kwargs: Dict[str, Any] = {}
    for wire_key, attr in _METADATA_FIELDS:
        value = raw_meta.get(wire_key)
        meta_kwargs[attr] = "" if value is None else str(value)

    chains = item.get("chains")
    if isinstance(chains, Sequence) and not isinstance(chains, (str, bytes)):
        meta_kwargs["chains"] = tuple(str(c) for c in chains)

    meta_kwargs["rule"] = _text(item.get("rule"))
    meta_kwargs["rule_payload"] = _text(item.get("rulePayload"))

    start_raw = item.get("start")
    return ConnectionRecord(
        identity=identity,
        metadata=ConnectionMetadata(**meta_kwargs),
        counters=CounterSnapshot(upload=upload, download=download),
        start=_text(start_raw),
        start_ts=parse_start(start_raw),
    )


def parse_start(value: Any) -> Optional[float]:
    """
    Parse a kernel start time to epoch seconds.

    Accepts RFC3339 strings (any fractional precision, 'Z' or numeric
    offset; no offset means UTC) and epoch numbers (seconds, or
    milliseconds when the value is too large to be seconds).
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        ts = float(value)
        if not math.isfinite(ts):
            return None
        return ts / 1000.0 if ts > 1e11 else ts
    if not isinstance(value, str):
        return None

    m = _RFC3339.match(value.strip())
    if not m:
        return None
    frac = (m.group("frac") or "")[:6].ljust(6, "0")
    tz = m.group("tz")
    if tz is None or tz in ("Z", "z"):
        tz = "+00:00"
    elif ":" not in tz:
        tz = f"{tz[:3]}:{tz[3:]}"
    try:
        parsed = datetime.fromisoformat(f"{m.group('base').replace(' ', 'T')}.{frac}{tz}")
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def _counter(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise _RecordDropped(DropReason.BAD_COUNTER)
    if isinstance(value, float) and not math.isfinite(value):
        raise _RecordDropped(DropReason.BAD_COUNTER)
    return int(value)


def _optional_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    return int(value)


def _text(value: Any) -> str:
    return "" if value is None else str(value)
