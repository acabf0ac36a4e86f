"""
Shared CLI plumbing: config resolution and session construction.
"""
from typing import List, Optional, Sequence

import click

from ..actions.dispatcher import ActionDispatcher
from ..actions.kernel_client import KernelClient
from ..actions.rule_store import RuleSetFileStore
from ..config import ControllerConfig
from ..errors import ActionError
from ..session import TelemetrySession
from ..telemetry.columns import COLUMNS
from ..transport.itransport import ISnapshotTransport


def make_session(cfg: ControllerConfig, client: KernelClient,
                 transport: ISnapshotTransport) -> TelemetrySession:
    store = RuleSetFileStore(cfg.rule_set_dir)

    def dispatcher_factory(ledger):
        return ActionDispatcher(
            ledger,
            terminate=client.terminate_connection,
            submit_rule=store.submit,
            refresh_provider=client.refresh_rule_provider,
            max_workers=cfg.max_workers,
        )

    return TelemetrySession(transport, dispatcher_factory=dispatcher_factory)


def load_snapshot(session: TelemetrySession, client: KernelClient) -> None:
    """Apply one fetched snapshot so the ledger knows the live connections."""
    try:
        session.on_batch(client.get_connections())
    except ActionError as e:
        raise click.ClickException(f"Failed to fetch connections: {e}")


def parse_layout(value: Optional[str]) -> Optional[List[str]]:
    if not value:
        return None
    keys = [k.strip() for k in value.split(",") if k.strip()]
    unknown = [k for k in keys if k not in COLUMNS]
    if unknown:
        raise click.BadParameter(f"unknown column(s): {', '.join(unknown)}", param_hint="--columns")
    return keys


def format_table(rows: Sequence[dict], layout: Sequence[str]) -> List[str]:
    """Left-aligned plain-text table, header first."""
    titles = {key: COLUMNS[key].title for key in layout}
    widths = {key: len(titles[key]) for key in layout}
    for row in rows:
        for key in layout:
            widths[key] = max(widths[key], len(row.get(key, "")))
    lines = ["  ".join(f"{titles[k]:<{widths[k]}}" for k in layout).rstrip()]
    lines.append("-" * len(lines[0]))
    for row in rows:
        lines.append("  ".join(f"{row.get(k, ''):<{widths[k]}}" for k in layout).rstrip())
    return lines
