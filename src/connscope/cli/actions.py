"""
CLI commands for connection actions.
"""
import click

from ..actions.kernel_client import KernelClient
from ..transport.dummy_transport import DummyTransport
from .common import load_snapshot, make_session


def _one_shot_session(cfg):
    client = KernelClient(cfg)
    # actions only need one snapshot; nothing is subscribed
    return client, make_session(cfg, client, DummyTransport())


@click.command()
@click.argument('identity')
@click.pass_obj
def close(cfg, identity: str):
    """Terminate one live connection by ID."""
    client, session = _one_shot_session(cfg)
    try:
        load_snapshot(session, client)
        result = session.close_one(identity)
    finally:
        client.close()
    if not result.ok:
        raise click.ClickException(str(result.error))
    click.echo(f"Closed {identity}")


@click.command(name='close-all')
@click.pass_obj
def close_all(cfg):
    """Terminate every live connection."""
    client, session = _one_shot_session(cfg)
    try:
        load_snapshot(session, client)
        results = session.close_all()
    finally:
        client.close()

    failed = [r for r in results.values() if not r.ok]
    for result in failed:
        click.echo(f"Failed to close {result.identity}: {result.error}", err=True)
    click.echo(f"Closed {len(results) - len(failed)} of {len(results)} connection(s)")
    if failed:
        raise click.exceptions.Exit(1)


@click.command(name='add-rule')
@click.argument('identity')
@click.argument('rule_set')
@click.pass_obj
def add_rule(cfg, identity: str, rule_set: str):
    """Add a connection's host (or IP) to a rule set and refresh it."""
    client, session = _one_shot_session(cfg)
    try:
        load_snapshot(session, client)
        result = session.add_to_rule_set(identity, rule_set)
    finally:
        client.close()
    if not result.ok:
        raise click.ClickException(str(result.error))
    click.echo(f"Added '{result.detail}' to {rule_set}")
    for warning in result.warnings:
        click.echo(f"Warning: {warning}", err=True)
