"""Command-line interface for libraryapi.

Built with Typer for commands and Rich for output. This module is also the
composition root: it builds the catalog, the ledger and the notifier from
the configuration.
"""

import signal
import threading
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .catalog import Book, BookCatalog, BookFilter
from .config import get_config
from .db import SqlBookStorage, SqlLoanStorage, get_db
from .errors import ErrorKind, Result
from .lending import Loan, LoanFilter, LoanLedger
from .logging_setup import configure_logging
from .notify import LogNotificationSender, NotifierScheduler, OverdueNotifier
from .paging import Page, PageRequest

# Create the main app
app = typer.Typer(
    name="libraryapi",
    help="Manage a library catalog and its loans.",
    no_args_is_help=True,
)

# Create sub-apps for command groups
books_app = typer.Typer(help="Register and search catalog books.")
app.add_typer(books_app, name="books")
loans_app = typer.Typer(help="Lend books and track returns.")
app.add_typer(loans_app, name="loans")
notifier_app = typer.Typer(help="Notify customers about overdue loans.")
app.add_typer(notifier_app, name="notifier")

# Rich console for pretty output
console = Console()


# ============================================================================
# Helper Functions
# ============================================================================


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[dim]{message}[/dim]")


def get_catalog() -> BookCatalog:
    """Build the book catalog on the configured database."""
    return BookCatalog(SqlBookStorage(get_db(str(get_config().db_path))))


def get_ledger() -> LoanLedger:
    """Build the loan ledger on the configured database."""
    return LoanLedger(SqlLoanStorage(get_db(str(get_config().db_path))))


def get_notifier() -> OverdueNotifier:
    """Build the overdue notifier from the configuration."""
    config = get_config()
    return OverdueNotifier(
        get_ledger(),
        LogNotificationSender(),
        message=config.late_loan_message,
        threshold_days=config.overdue_threshold_days,
    )


def unwrap(result: Result, not_found: Optional[ErrorKind] = None):
    """Return a result's value, or print its error and exit."""
    if not_found is not None:
        result = result.require(not_found, "Not found")
    if not result.ok:
        print_error(f"{result.error.message} [{result.error.kind.value}]")
        raise typer.Exit(1)
    return result.value


def format_book_table(page: Page[Book], title: str = "Books") -> Table:
    """Create a rich table for displaying a page of books."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Title", style="cyan", no_wrap=False, max_width=40)
    table.add_column("Author", style="green", max_width=25)
    table.add_column("ISBN", style="yellow")

    for book in page.content:
        table.add_row(book.id, book.title, book.author, book.isbn)

    return table


def format_loan_table(page: Page[Loan], title: str = "Loans") -> Table:
    """Create a rich table for displaying a page of loans."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Book", style="cyan", max_width=30)
    table.add_column("ISBN", style="yellow")
    table.add_column("Customer")
    table.add_column("Email")
    table.add_column("Date")
    table.add_column("Status")

    for loan in page.content:
        status = "[green]returned[/green]" if loan.returned else "[yellow]on loan[/yellow]"
        table.add_row(
            loan.id,
            loan.book.title,
            loan.book.isbn,
            loan.customer,
            loan.customer_email or "-",
            loan.loan_date.isoformat() if loan.loan_date else "-",
            status,
        )

    return table


def print_page_footer(page: Page) -> None:
    print_info(
        f"Page {page.page + 1} of {max(page.total_pages, 1)} "
        f"({page.total_elements} total)"
    )


@app.callback()
def main_callback() -> None:
    """Manage a library catalog and its loans."""
    configure_logging(get_config().log_level)


# ============================================================================
# Book Commands
# ============================================================================


@books_app.command("add")
def books_add(
    title: str = typer.Argument(..., help="Book title"),
    author: str = typer.Argument(..., help="Book author"),
    isbn: str = typer.Argument(..., help="ISBN (must be unique)"),
) -> None:
    """Register a new book."""
    try:
        book = Book(title=title, author=author, isbn=isbn)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    book = unwrap(get_catalog().save(book))
    print_success(f"Registered '{book.title}'")
    console.print(f"ID: {book.id}")


@books_app.command("show")
def books_show(book_id: str = typer.Argument(..., help="Book ID")) -> None:
    """Show one book."""
    book = unwrap(get_catalog().get_by_id(book_id), not_found=ErrorKind.BOOK_NOT_FOUND)
    console.print(f"[bold cyan]{book.title}[/bold cyan]")
    console.print(f"Author: {book.author}")
    console.print(f"ISBN: {book.isbn}")
    console.print(f"ID: {book.id}")


@books_app.command("list")
def books_list(
    title: Optional[str] = typer.Option(None, "--title", "-t", help="Title contains"),
    author: Optional[str] = typer.Option(None, "--author", "-a", help="Author contains"),
    isbn: Optional[str] = typer.Option(None, "--isbn", "-i", help="ISBN contains"),
    page: int = typer.Option(0, "--page", "-p", help="Page index (from 0)"),
    size: int = typer.Option(20, "--size", "-s", help="Page size"),
) -> None:
    """Search books."""
    try:
        book_filter = BookFilter(title=title, author=author, isbn=isbn)
        request = PageRequest(page=page, size=size)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    books = unwrap(get_catalog().find(book_filter, request))
    if not books.content:
        console.print("[dim]No books found[/dim]")
        return

    console.print(format_book_table(books))
    print_page_footer(books)


@books_app.command("update")
def books_update(
    book_id: str = typer.Argument(..., help="Book ID"),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="New title"),
    author: Optional[str] = typer.Option(None, "--author", "-a", help="New author"),
) -> None:
    """Change a book's title or author."""
    catalog = get_catalog()
    book = unwrap(catalog.get_by_id(book_id), not_found=ErrorKind.BOOK_NOT_FOUND)

    changes = {}
    if title:
        changes["title"] = title
    if author:
        changes["author"] = author
    if not changes:
        print_info("Nothing to update")
        return

    updated = unwrap(catalog.update(book.model_copy(update=changes)))
    print_success(f"Updated '{updated.title}'")


@books_app.command("delete")
def books_delete(book_id: str = typer.Argument(..., help="Book ID")) -> None:
    """Remove a book from the catalog."""
    catalog = get_catalog()
    book = unwrap(catalog.get_by_id(book_id), not_found=ErrorKind.BOOK_NOT_FOUND)
    unwrap(catalog.delete(book))
    print_success(f"Deleted '{book.title}'")


@books_app.command("loans")
def books_loans(
    book_id: str = typer.Argument(..., help="Book ID"),
    page: int = typer.Option(0, "--page", "-p", help="Page index (from 0)"),
    size: int = typer.Option(20, "--size", "-s", help="Page size"),
) -> None:
    """Show the loan history of a book."""
    try:
        request = PageRequest(page=page, size=size)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    book = unwrap(get_catalog().get_by_id(book_id), not_found=ErrorKind.BOOK_NOT_FOUND)
    loans = unwrap(get_ledger().get_loans_by_book(book, request))
    if not loans.content:
        console.print("[dim]No loans found[/dim]")
        return

    console.print(format_loan_table(loans, title=f"Loans of '{book.title}'"))
    print_page_footer(loans)


# ============================================================================
# Loan Commands
# ============================================================================


@loans_app.command("create")
def loans_create(
    isbn: str = typer.Argument(..., help="ISBN of the book to lend"),
    customer: str = typer.Argument(..., help="Customer name"),
    email: Optional[str] = typer.Option(None, "--email", "-e", help="Customer email"),
) -> None:
    """Lend a book to a customer."""
    book = get_catalog().get_by_isbn(isbn)
    if book.is_empty:
        print_error("Book not found for passed isbn")
        raise typer.Exit(1)
    book = unwrap(book)

    try:
        loan = Loan(book=book, customer=customer, customer_email=email)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    loan = unwrap(get_ledger().save(loan))
    print_success(f"'{book.title}' lent to {customer}")
    console.print(f"ID: {loan.id}")


@loans_app.command("return")
def loans_return(loan_id: str = typer.Argument(..., help="Loan ID")) -> None:
    """Flag a loan returned."""
    loan = unwrap(get_ledger().return_loan(loan_id))
    print_success(f"'{loan.book.title}' returned by {loan.customer}")


@loans_app.command("list")
def loans_list(
    isbn: Optional[str] = typer.Option(None, "--isbn", "-i", help="Book ISBN"),
    customer: Optional[str] = typer.Option(None, "--customer", "-c", help="Customer name"),
    page: int = typer.Option(0, "--page", "-p", help="Page index (from 0)"),
    size: int = typer.Option(20, "--size", "-s", help="Page size"),
) -> None:
    """Search loans matching the ISBN or the customer."""
    try:
        loan_filter = LoanFilter(isbn=isbn, customer=customer)
        request = PageRequest(page=page, size=size)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    loans = unwrap(get_ledger().find(loan_filter, request))
    if not loans.content:
        console.print("[dim]No loans found[/dim]")
        return

    console.print(format_loan_table(loans))
    print_page_footer(loans)


@loans_app.command("overdue")
def loans_overdue(
    days: Optional[int] = typer.Option(
        None, "--days", "-d", help="Overdue threshold in days (default from config)"
    ),
) -> None:
    """List overdue loans."""
    threshold = days if days is not None else get_config().overdue_threshold_days
    loans = unwrap(get_ledger().get_all_overdue_loans(threshold))
    if not loans:
        console.print("[dim]No overdue loans[/dim]")
        return

    page = Page(content=loans, page=0, size=len(loans), total_elements=len(loans))
    console.print(format_loan_table(page, title=f"Overdue loans ({threshold}+ days)"))


# ============================================================================
# Notifier Commands
# ============================================================================


@notifier_app.command("run")
def notifier_run() -> None:
    """Run the overdue notification job once."""
    run = get_notifier().run()
    if run.error:
        print_error(run.summary)
        raise typer.Exit(1)
    print_success(run.summary)


@notifier_app.command("serve")
def notifier_serve() -> None:
    """Run the overdue notification job on its schedule until interrupted."""
    config = get_config()
    errors = config.validate()
    if errors:
        for error in errors:
            print_error(error)
        raise typer.Exit(1)

    scheduler = NotifierScheduler(get_notifier().run, cron=config.notify_cron)
    stop = threading.Event()
    signal.signal(signal.SIGTERM, lambda signum, frame: stop.set())

    scheduler.start()
    console.print(f"Next run: {scheduler.next_run_time()}")
    try:
        stop.wait()
    except KeyboardInterrupt:
        pass
    finally:
        scheduler.shutdown()


# ============================================================================
# Version Command
# ============================================================================


@app.command()
def version() -> None:
    """Show version information."""
    from . import __version__

    console.print(f"libraryapi version {__version__}")


# ============================================================================
# Main Entry Point
# ============================================================================


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
