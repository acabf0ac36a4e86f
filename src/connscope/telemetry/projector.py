"""
Read-only projection of ledger entries for presentation.

Filter by keyword, sort by one column, render the caller's column layout.
Nothing here mutates the ledger or the entries it receives.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..models.connection import LedgerEntry
from .columns import Column, get_column, resolve_layout

_log = logging.getLogger(__name__)


class SortDirection(Enum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, value) -> "SortDirection":
        if isinstance(value, cls):
            return value
        return cls(str(value).lower())


@dataclass(frozen=True)
class SortSpec:
    key: str
    direction: SortDirection = SortDirection.ASC


def filter_by_keyword(entries: Iterable[LedgerEntry], keyword: str) -> List[LedgerEntry]:
    """Case-sensitive substring match on the host field. Empty keyword keeps all."""
    if not keyword:
        return list(entries)
    return [e for e in entries if keyword in e.metadata.host]


def sort_entries(entries: Sequence[LedgerEntry], sort: Optional[SortSpec]) -> List[LedgerEntry]:
    """
    Stable sort on one column.

    Entries whose sort key is None go last in either direction. An unknown
    column leaves the input order untouched.
    """
    if sort is None:
        return list(entries)
    column = get_column(sort.key)
    if column is None:
        _log.debug("unknown sort column %r, keeping ledger order", sort.key)
        return list(entries)

    present = []
    missing = []
    for entry in entries:
        (missing if column.sort_key(entry) is None else present).append(entry)
    present.sort(key=column.sort_key, reverse=sort.direction is SortDirection.DESC)
    return present + missing


def project(entries: Iterable[LedgerEntry],
            keyword: str = "",
            sort: Optional[SortSpec] = None) -> Tuple[LedgerEntry, ...]:
    return tuple(sort_entries(filter_by_keyword(entries, keyword), sort))


def render_rows(entries: Iterable[LedgerEntry],
                layout: Sequence[str]) -> List[Dict[str, str]]:
    """Display strings for the known columns in ``layout``, keyed by column key."""
    columns: List[Column] = resolve_layout(layout)
    return [{c.key: c.render(entry) for c in columns} for entry in entries]
