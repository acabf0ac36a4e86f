"""
connscope CLI - main entry point.
"""
import logging
from typing import Optional

import click

from ..config import ControllerConfig
from ..telemetry.columns import COLUMNS
from .actions import add_rule, close, close_all
from .watch import watch


@click.group()
@click.option('--controller', '-c', envvar='CONNSCOPE_CONTROLLER',
              help='External controller URL (default: http://127.0.0.1:9097)')
@click.option('--secret', '-s', envvar='CONNSCOPE_SECRET', help='Controller secret')
@click.option('--rule-set-dir', type=click.Path(file_okay=False),
              help='Directory holding rule-set .list files')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, controller: Optional[str], secret: Optional[str],
        rule_set_dir: Optional[str], verbose: bool):
    """connscope - live proxy connection telemetry."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        cfg = ControllerConfig.from_env()
        if controller:
            cfg.controller_url = controller.rstrip("/")
        if secret is not None:
            cfg.secret = secret
        if rule_set_dir:
            cfg.rule_set_dir = rule_set_dir
    except ValueError as e:
        raise click.ClickException(f"Invalid configuration: {e}")
    ctx.obj = cfg


@cli.command()
def columns():
    """List the available table columns."""
    click.echo(f"{'Key':20} {'Title':20} Default")
    click.echo("-" * 48)
    for column in COLUMNS.values():
        shown = "yes" if column.visible_by_default else "no"
        click.echo(f"{column.key:20} {column.title:20} {shown}")


cli.add_command(watch)
cli.add_command(close)
cli.add_command(close_all)
cli.add_command(add_rule)

if __name__ == "__main__":
    cli()
