# Connection data models
"""
Connection data models for connscope.

THESE MODELS ARE IMMUTABLE. A batch never edits an existing entry; the
ledger replaces it with a new object. Readers holding an old entry keep a
consistent view no matter what ingestion does afterwards.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class ConnectionMetadata:
    """
    Descriptive fields reported by the kernel for one connection.

    Captured at first observation. If a later batch reports different
    metadata for the same identity, the later value replaces it.
    """
    network: str = ""
    """Network family, e.g. 'tcp' or 'udp'"""

    type: str = ""
    """Inbound transport type, e.g. 'HTTP', 'Socks5', 'Tun'"""

    inbound_name: str = ""
    """Label of the inbound listener that accepted the connection"""

    source_ip: str = ""
    source_port: str = ""
    destination_ip: str = ""
    destination_port: str = ""

    host: str = ""
    """Requested host name, empty when the client connected by IP"""

    sniff_host: str = ""
    """Host recovered by the kernel's sniffer (TLS SNI, HTTP Host)"""

    remote_destination: str = ""
    dns_mode: str = ""

    process: str = ""
    process_path: str = ""
    special_proxy: str = ""

    rule: str = ""
    """Name of the matched routing rule type, e.g. 'DomainSuffix'"""

    rule_payload: str = ""
    """Payload of the matched rule, e.g. 'google.com'"""

    chains: Tuple[str, ...] = field(default_factory=tuple)
    """Proxies/selectors that handled the connection, innermost first"""

    def __post_init__(self):
        if not isinstance(self.chains, tuple):
            object.__setattr__(self, 'chains', tuple(self.chains))

    @property
    def host_label(self) -> str:
        """Host (or address) and destination port, as shown in the table."""
        target = self.host or self.remote_destination or self.destination_ip
        return f"{target}:{self.destination_port}"

    @property
    def chain_label(self) -> str:
        """Chain with the outermost group first."""
        return " / ".join(reversed(self.chains))

    @property
    def source_label(self) -> str:
        return f"{self.source_ip}:{self.source_port}"

    @property
    def destination_label(self) -> str:
        return f"{self.destination_ip}:{self.destination_port}"

    @property
    def rule_label(self) -> str:
        if self.rule_payload:
            return f"{self.rule}({self.rule_payload})"
        return self.rule


@dataclass(frozen=True)
class CounterSnapshot:
    """Cumulative byte counters for one connection as of one batch."""
    upload: int = 0
    download: int = 0


ZERO_COUNTERS = CounterSnapshot()


@dataclass(frozen=True)
class DerivedRates:
    """
    Per-batch-interval throughput.

    Always >= 0: a counter that goes backwards (kernel counter reset)
    yields a zero rate instead of a negative one.
    """
    upload: int = 0
    download: int = 0

    @classmethod
    def between(cls, previous: CounterSnapshot, current: CounterSnapshot) -> "DerivedRates":
        return cls(
            upload=max(0, current.upload - previous.upload),
            download=max(0, current.download - previous.download),
        )


@dataclass(frozen=True)
class ConnectionRecord:
    """One decoded connection from a snapshot batch."""
    identity: str
    """Opaque kernel-assigned identity, unique per kernel process"""

    metadata: ConnectionMetadata
    counters: CounterSnapshot

    start: str = ""
    """Start time exactly as reported by the kernel"""

    start_ts: Optional[float] = None
    """Start time as epoch seconds, None when it could not be parsed"""


@dataclass(frozen=True)
class TrackedConnection:
    """A decoded record enriched with its derived rates."""
    record: ConnectionRecord
    rates: DerivedRates

    @property
    def identity(self) -> str:
        return self.record.identity


@dataclass(frozen=True)
class LedgerEntry:
    """
    The ledger's view of one connection.

    Owned by ConnectionLedger. Replaced wholesale on every batch in which
    the identity is still reported.
    """
    identity: str
    metadata: ConnectionMetadata
    counters: CounterSnapshot
    rates: DerivedRates
    last_seen_batch: int
    """Sequence number of the last batch that reported this identity"""

    start: str = ""
    start_ts: Optional[float] = None

    @classmethod
    def from_tracked(cls, tracked: TrackedConnection, batch_seq: int) -> "LedgerEntry":
        record = tracked.record
        return cls(
            identity=record.identity,
            metadata=record.metadata,
            counters=record.counters,
            rates=tracked.rates,
            last_seen_batch=batch_seq,
            start=record.start,
            start_ts=record.start_ts,
        )
