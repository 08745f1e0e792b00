# cli/commands/transaction.py
import click
from bookloft.sa.models import TransactionType
from ..utils import Services, handle_errors, print_transaction

def _record(services: Services, type_: TransactionType, book_id, quantity, date, volunteer, notes):
    transaction = services.ledger.append(
        type=type_,
        book_id=book_id,
        quantity=quantity,
        date=date,
        volunteer_name=volunteer,
        notes=notes
    )
    print_transaction(transaction)
    click.echo(click.style("Stock now: ", fg='blue') +
               click.style(str(services.ledger.quantity_for(book_id)), fg='green'))

_transaction_options = [
    click.argument('book_id'),
    click.argument('quantity', type=int),
    click.option('--date', default=None, help='Business date (ISO-8601), defaults to now'),
    click.option('--volunteer', default=None, help='Volunteer recording the transaction'),
    click.option('--notes', default=None, help='Free text notes'),
]

def transaction_options(func):
    for option in reversed(_transaction_options):
        func = option(func)
    return func

@click.command()
@transaction_options
@click.pass_obj
@handle_errors
def donate(services: Services, book_id, quantity, date, volunteer, notes):
    """Record a donation of QUANTITY copies of BOOK_ID"""
    _record(services, TransactionType.DONATION, book_id, quantity, date, volunteer, notes)

@click.command()
@transaction_options
@click.pass_obj
@handle_errors
def sell(services: Services, book_id, quantity, date, volunteer, notes):
    """Record a sale of QUANTITY copies of BOOK_ID"""
    _record(services, TransactionType.SALE, book_id, quantity, date, volunteer, notes)

@click.command()
@click.argument('book_id')
@click.pass_obj
@handle_errors
def history(services: Services, book_id):
    """Show a book's transactions and totals"""
    report = services.analytics.book_analytics(book_id)
    for transaction in report.transactions:
        print_transaction(transaction)
    a = report.analytics
    click.echo(click.style(f"\nDonated {a.times_donated} in {a.donation_count} transactions, "
                           f"sold {a.times_sold} in {a.sale_count}", fg='blue'))
