# cli/commands/inventory.py
import click
from ..utils import Services, dump_json, handle_errors, print_metrics

@click.group()
def inventory():
    """Inventory analytics commands"""
    pass

@inventory.command()
@click.pass_obj
def summary(services: Services):
    """Stock and movement totals"""
    print_metrics("Inventory summary", services.analytics.inventory_summary())
    for bucket, metrics in services.analytics.time_based().items():
        print_metrics(bucket.replace('_', ' ').capitalize(), metrics)

@inventory.command()
@click.option('--period', default=30, type=click.IntRange(min=1), help='Trailing window in days')
@click.pass_obj
@handle_errors
def analytics(services: Services, period: int):
    """Recent activity, top sellers and daily totals as JSON"""
    click.echo(dump_json(services.analytics.period_analytics(days=period)))

@inventory.command()
@click.pass_obj
def audit(services: Services):
    """Compare every book's stock with its transaction history"""
    mismatches = services.analytics.audit()
    if not mismatches:
        click.echo(click.style("All books match their transaction history", fg='green'))
        return
    for row in mismatches:
        click.echo(click.style(f"{row['book_id']}: ", fg='red') +
                   f"stored {row['stored_quantity']}, ledger {row['ledger_quantity']}")
    raise SystemExit(1)
