"""
CLI command for watching live connections.
"""
import time
from typing import Optional

import click

from ..actions.kernel_client import KernelClient
from ..telemetry.columns import default_layout
from ..transport.dummy_transport import DummyTransport
from ..transport.polling_transport import PollingTransport
from ..utils.format import format_bytes
from .common import format_table, make_session, parse_layout


@click.command()
@click.option('--keyword', '-k', default='', help='Only show hosts containing this text (case-sensitive)')
@click.option('--sort', 'sort_key', help='Column key to sort by (see "connscope columns")')
@click.option('--desc/--asc', default=True, show_default=True, help='Sort direction')
@click.option('--closed', is_flag=True, help='Show closed connections instead of live ones')
@click.option('--columns', 'columns_opt', help='Comma-separated column keys to display')
@click.option('--limit', '-n', type=int, default=30, show_default=True, help='Max rows per refresh (0 = all)')
@click.option('--duration', '-d', type=int, help='Duration in seconds (default: run until Ctrl+C)')
@click.option('--interval', '-i', type=float, help='Refresh interval in seconds')
@click.option('--backend', type=click.Choice(['poll', 'dummy']), default='poll', help='Snapshot source')
@click.pass_obj
def watch(cfg, keyword: str, sort_key: Optional[str], desc: bool, closed: bool,
          columns_opt: Optional[str], limit: int, duration: Optional[int],
          interval: Optional[float], backend: str):
    """
    Watch live connections with per-connection throughput.

    Examples:
      connscope watch --sort dl_speed
      connscope watch -k github --columns host,dl_speed,ul_speed,chains
      connscope watch --backend dummy --duration 10
    """
    layout = parse_layout(columns_opt) or list(default_layout())
    if interval is not None:
        if interval <= 0:
            raise click.BadParameter("must be positive", param_hint="--interval")
        cfg.poll_interval = interval

    client = KernelClient(cfg)
    if backend == 'dummy':
        transport = DummyTransport()
    else:
        transport = PollingTransport(client, interval=cfg.poll_interval)

    session = make_session(cfg, client, transport)
    session.set_keyword(keyword)
    session.set_sort(sort_key, 'desc' if desc else 'asc')
    session.select_active(not closed)

    try:
        session.start()
        if backend == 'dummy':
            transport.start(interval=cfg.poll_interval)
        click.echo(f"Watching {'dummy snapshots' if backend == 'dummy' else cfg.controller_url}")
        click.echo("Press Ctrl+C to stop\n")
    except Exception as e:
        client.close()
        raise click.ClickException(f"Error starting watch: {e}")

    start_time = time.time()
    try:
        while True:
            if duration and (time.time() - start_time) >= duration:
                click.echo(f"\nDuration reached ({duration}s), stopping...")
                break

            _render(session, layout, limit)
            time.sleep(cfg.poll_interval)

    except KeyboardInterrupt:
        click.echo("\n\nStopping...")
    finally:
        if backend == 'dummy':
            transport.stop()
        session.teardown()
        client.close()


def _render(session, layout, limit: int) -> None:
    rows = session.rows(layout)
    totals = session.totals
    shown = rows[:limit] if limit > 0 else rows

    click.clear()
    click.echo(
        f"Live: {totals.live}  Closed: {totals.closed}  "
        f"Up: {format_bytes(totals.upload_total)}  Down: {format_bytes(totals.download_total)}"
        f"{'  [paused]' if session.is_paused else ''}"
    )
    for line in format_table(shown, layout):
        click.echo(line)
    if len(rows) > len(shown):
        click.echo(f"... {len(rows) - len(shown)} more")
