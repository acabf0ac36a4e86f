"""
Column definitions for the connections view.

Each column is pure data: a title, a value getter for display and a sort
key for ordering. Nothing here knows how a table is drawn. Callers pick
which columns to show and in what order; the projector never assumes all
of them are present.
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from ..models.connection import LedgerEntry
from ..utils.format import format_bytes, format_duration, format_rate

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Column:
    key: str
    title: str
    value: Callable[[LedgerEntry], Any]
    """Raw cell value"""

    sort_key: Callable[[LedgerEntry], Any]
    """Comparable value; None sorts after everything else"""

    display: Optional[Callable[[LedgerEntry], str]] = None
    visible_by_default: bool = True
    numeric: bool = False

    def render(self, entry: LedgerEntry) -> str:
        if self.display is not None:
            return self.display(entry)
        value = self.value(entry)
        return "" if value is None else str(value)


def _text_column(key: str, title: str, getter: Callable[[LedgerEntry], str],
                 visible: bool = True) -> Column:
    return Column(key=key, title=title, value=getter, sort_key=getter,
                  visible_by_default=visible)


_COLUMNS: Tuple[Column, ...] = (
    _text_column("host", "Host", lambda e: e.metadata.host_label),
    Column(
        key="download",
        title="Download",
        value=lambda e: e.counters.download,
        sort_key=lambda e: e.counters.download,
        display=lambda e: format_bytes(e.counters.download),
        numeric=True,
    ),
    Column(
        key="upload",
        title="Upload",
        value=lambda e: e.counters.upload,
        sort_key=lambda e: e.counters.upload,
        display=lambda e: format_bytes(e.counters.upload),
        numeric=True,
    ),
    Column(
        key="dl_speed",
        title="DL Speed",
        value=lambda e: e.rates.download,
        sort_key=lambda e: e.rates.download,
        display=lambda e: format_rate(e.rates.download),
        numeric=True,
    ),
    Column(
        key="ul_speed",
        title="UL Speed",
        value=lambda e: e.rates.upload,
        sort_key=lambda e: e.rates.upload,
        display=lambda e: format_rate(e.rates.upload),
        numeric=True,
    ),
    _text_column("chains", "Chains", lambda e: e.metadata.chain_label),
    _text_column("rule", "Rule", lambda e: e.metadata.rule_label),
    _text_column("process", "Process", lambda e: e.metadata.process),
    Column(
        key="time",
        title="Time",
        value=lambda e: e.start_ts,
        # newest first when sorted descending
        sort_key=lambda e: e.start_ts,
        display=lambda e: format_duration(e.start_ts),
        numeric=True,
    ),
    _text_column("source", "Source", lambda e: e.metadata.source_label),
    _text_column("destination", "Destination", lambda e: e.metadata.destination_label,
                 visible=False),
    _text_column("remote_destination", "Remote Destination",
                 lambda e: e.metadata.remote_destination, visible=False),
    _text_column("type", "Type", lambda e: f"{e.metadata.type}({e.metadata.network})"),
)

COLUMNS: Dict[str, Column] = {column.key: column for column in _COLUMNS}


def get_column(key: str) -> Optional[Column]:
    return COLUMNS.get(key)


def default_layout() -> Tuple[str, ...]:
    """Keys of the columns shown when the caller has no saved layout."""
    return tuple(c.key for c in _COLUMNS if c.visible_by_default)


def resolve_layout(keys: Iterable[str]) -> List[Column]:
    """Known columns for the given keys, in order; unknown keys are skipped."""
    resolved = []
    for key in keys:
        column = COLUMNS.get(key)
        if column is None:
            _log.debug("skipping unknown column %r", key)
            continue
        resolved.append(column)
    return resolved
