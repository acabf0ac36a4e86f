"""
Connection telemetry pipeline: decode -> rates -> ledger -> view.
"""

from .decoder import DecodedBatch, DropReason, decode_batch
from .delta import derive_rates
from .ledger import ConnectionLedger, LedgerSnapshot
from .projector import SortDirection, SortSpec, project, render_rows

__all__ = [
    'DecodedBatch',
    'DropReason',
    'decode_batch',
    'derive_rates',
    'ConnectionLedger',
    'LedgerSnapshot',
    'SortDirection',
    'SortSpec',
    'project',
    'render_rows',
]
