# cli/commands/db.py
import click
from ..utils import Services

@click.command('init-db')
@click.pass_obj
def init_db(services: Services):
    """Create the database schema"""
    services.database.init_db()
    click.echo(click.style("Database ready: ", fg='green') + click.style(str(services.database.engine.url), fg='cyan'))
