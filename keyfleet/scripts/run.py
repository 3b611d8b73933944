#!/usr/bin/env python3
"""
Main entry point for the keyfleet controller
"""
import sys
import logging
import click
from pydantic import ValidationError

from keyfleet import config
from keyfleet.core.confirm import AlwaysConfirm, ClickConfirmer
from keyfleet.core.controller import FleetController
from keyfleet.errors import FleetError, OperationAborted
from keyfleet.provider.digitalocean import DigitalOceanProvider
from keyfleet.schemas import Campaign
from keyfleet.worker.client import WorkerClient


def setup_logging(debug: bool = False):
    """Setup logging configuration"""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


@click.group()
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.option('--yes', '-y', is_flag=True, help='Do not ask for confirmation')
@click.option('--max-concurrency', type=int, default=config.MAX_CONCURRENCY, show_default=True,
              help='Maximum concurrent provider/worker calls')
@click.pass_context
def cli(ctx, debug, yes, max_concurrency):
    """keyfleet: run prefix searches across a fleet of cloud nodes"""
    setup_logging(debug)
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug
    ctx.obj['yes'] = yes
    ctx.obj['max_concurrency'] = max_concurrency


def _build_controller(ctx) -> FleetController:
    provider = DigitalOceanProvider(config.require_token())
    worker = WorkerClient()
    confirmer = AlwaysConfirm() if ctx.obj.get('yes') else ClickConfirmer()
    return FleetController(
        provider,
        worker,
        confirmer=confirmer,
        max_concurrency=ctx.obj.get('max_concurrency', config.MAX_CONCURRENCY),
    )


def _fail(exc: Exception):
    if isinstance(exc, OperationAborted):
        click.echo("Aborted.", err=True)
    else:
        click.echo(f"Error: {exc}", err=True)
    sys.exit(1)


@cli.command()
@click.option('--tag', required=True, help='Campaign tag')
@click.option('--count', type=int, default=1, show_default=True, help='Number of nodes')
@click.option('--region', default='nyc3', show_default=True, help='Region slug')
@click.option('--size', default='s-2vcpu-2gb', show_default=True, help='Size slug')
@click.option('--image', required=True, help='Exact name of the private worker image')
@click.option('--keys', default='', help='Comma-separated SSH key names')
@click.option('--strict-keys', is_flag=True, help='Fail when a key name does not exist')
@click.pass_context
def spawn(ctx, tag: str, count: int, region: str, size: str, image: str, keys: str, strict_keys: bool):
    """Create COUNT nodes for a campaign"""
    try:
        campaign = Campaign(tag=tag, count=count, region=region, size=size, image=image, keys=keys)
        _build_controller(ctx).spawn(campaign, strict_keys=strict_keys)
    except (FleetError, ValidationError) as e:
        _fail(e)


@cli.command()
@click.option('--tag', required=True, help='Campaign tag')
@click.pass_context
def destroy(ctx, tag: str):
    """Delete every node of a campaign"""
    try:
        _build_controller(ctx).destroy(tag)
    except FleetError as e:
        _fail(e)


@cli.command()
@click.option('--tag', required=True, help='Campaign tag')
@click.option('--prefix', required=True, help='Key prefix to search for')
@click.option('--email', help='Where workers send found keys')
@click.pass_context
def schedule(ctx, tag: str, prefix: str, email: str):
    """Start a search job on every node of a campaign"""
    try:
        _build_controller(ctx).schedule(tag, prefix, email)
    except FleetError as e:
        _fail(e)


@cli.command()
@click.option('--tag', required=True, help='Campaign tag')
@click.option('--prefix', required=True, help='Key prefix to report on')
@click.pass_context
def status(ctx, tag: str, prefix: str):
    """Report fleet-wide progress for a prefix"""
    try:
        _build_controller(ctx).status(tag, prefix)
    except FleetError as e:
        _fail(e)


def main():
    """Main entry point"""
    cli()


if __name__ == '__main__':
    main()
