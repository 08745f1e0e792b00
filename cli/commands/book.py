# cli/commands/book.py
import click
from ..utils import Services, handle_errors, print_book

@click.group()
def book():
    """Book catalog commands"""
    pass

@book.command()
@click.option('--isbn', required=True, help='13-character ISBN')
@click.option('--title', required=True, help='Book title')
@click.option('--author', default='', help='Author name')
@click.option('--quantity', default=0, type=click.IntRange(min=0), help='Opening stock, recorded as a donation')
@click.option('--publisher', default=None, help='Publisher')
@click.option('--volunteer', default=None, help='Volunteer recording the book')
@click.pass_obj
@handle_errors
def add(services: Services, isbn: str, title: str, author: str, quantity: int, publisher: str, volunteer: str):
    """Add a book to the catalog

    Example:
        bookloft book add --isbn 9780141439518 --title "Pride and Prejudice" --author "Jane Austen" --quantity 2
    """
    metadata = {'publisher': publisher} if publisher else {}
    created = services.catalog.add_book(
        isbn=isbn, title=title, author=author, quantity=quantity, volunteer_name=volunteer, **metadata
    )
    click.echo(click.style("Added book:", fg='green'))
    print_book(created)

@book.command()
@click.argument('book_id', required=False)
@click.option('--isbn', default=None, help='Look the book up by ISBN instead')
@click.pass_obj
@handle_errors
def show(services: Services, book_id: str, isbn: str):
    """Show a book by ID or ISBN"""
    if not book_id and not isbn:
        raise click.UsageError("Give a BOOK_ID or --isbn")
    found = services.catalog.get_by_isbn(isbn) if isbn else services.catalog.get_book(book_id)
    print_book(found)

@book.command('list')
@click.option('--search', default=None, help='Match title, author or ISBN')
@click.option('--available-only/--all', default=False, help='Only books in stock')
@click.option('--page', default=1, type=click.IntRange(min=1))
@click.option('--limit', default=50, type=click.IntRange(min=1, max=100))
@click.pass_obj
@handle_errors
def list_books(services: Services, search: str, available_only: bool, page: int, limit: int):
    """List books ordered by title"""
    books, total = services.catalog.search(search=search, available_only=available_only, page=page, limit=limit)
    if not books:
        click.echo(click.style("No books found", fg='yellow'))
        return
    for entry in books:
        print_book(entry)
    click.echo(click.style(f"\nShowing {len(books)} of {total} books", fg='blue'))
