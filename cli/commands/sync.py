# cli/commands/sync.py
import json
import click
from ..utils import Services, dump_json, handle_errors, print_sync_result

@click.group()
def sync():
    """Offline client sync commands"""
    pass

@sync.command()
@click.argument('payload', type=click.File('r'))
@click.pass_context
@handle_errors
def upload(ctx, payload):
    """Merge an offline upload from a JSON file

    The file holds {"books": [...], "transactions": [...], "last_sync": "..."}.
    """
    services: Services = ctx.obj
    try:
        body = json.load(payload)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"Not valid JSON: {e}", param_hint='PAYLOAD')
    if not isinstance(body, dict):
        raise click.BadParameter("Expected a JSON object with books, transactions and last_sync", param_hint='PAYLOAD')
    result = services.reconciler.upload_merge(
        body.get('books'), body.get('transactions'), body.get('last_sync')
    )
    print_sync_result(result, verbose=ctx.meta.get('verbose', False))

@sync.command()
@click.option('--since', required=True, help='Watermark (ISO-8601) of the last sync')
@click.pass_obj
@handle_errors
def download(services: Services, since: str):
    """Print everything changed after the watermark as JSON"""
    delta = services.reconciler.download_delta(since)
    click.echo(dump_json(delta.model_dump(mode='json')))

@sync.command()
@click.pass_obj
@handle_errors
def status(services: Services):
    """Show sync status"""
    click.echo(dump_json(services.reconciler.sync_status().model_dump(mode='json')))
