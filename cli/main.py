# cli/main.py
import logging
import click
from .utils import Services
from .commands.db import init_db
from .commands.book import book
from .commands.transaction import donate, sell, history
from .commands.sync import sync
from .commands.inventory import inventory

@click.group()
@click.option('--database-url', envvar='DATABASE_URL', default=None, help='SQLAlchemy database URL')
@click.option('--reject-stale/--no-reject-stale', default=False,
              help='Refuse uploaded books older than the stored copy')
@click.option('--verbose/--no-verbose', default=False, help='Show detailed output and debug logging')
@click.pass_context
def cli(ctx, database_url, reject_stale, verbose):
    """Bookloft donation inventory CLI"""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)
    services = Services(database_url, reject_stale=reject_stale)
    ctx.obj = services
    ctx.meta['verbose'] = verbose
    ctx.call_on_close(services.close)

cli.add_command(init_db)
cli.add_command(book)
cli.add_command(donate)
cli.add_command(sell)
cli.add_command(history)
cli.add_command(sync)
cli.add_command(inventory)

def main():
    """Entry point for the CLI"""
    cli()

if __name__ == '__main__':
    main()
