import asyncio
import logging
from typing import Awaitable, Callable, Optional

import httpx
import typer
import uvicorn
from rich.console import Console
from rich.prompt import Confirm

from config import settings
from library_admin.catalog import SearchMode
from library_admin.coordinator import MutationOutcome, OutcomeKind, auto_confirm
from library_admin.models import BookForm, LoanForm, MemberForm
from library_admin.session import AdminSession
from library_admin.sandbox import create_app
from utils.ui_helpers import (
    set_output_mode, print_books, print_members, print_loans, print_summary, print_message,
)

console = Console()


# --- Session wiring ---
def get_transport() -> Optional[httpx.AsyncBaseTransport]:
    """Transport for catalog requests; None means real network I/O."""
    return None


def build_session(confirm: Callable[[str], bool] = auto_confirm) -> AdminSession:
    return AdminSession.connect(base_url=settings.catalog_base_url, transport=get_transport(), confirm=confirm)


def _confirmer(yes: bool) -> Callable[[str], bool]:
    if yes or not settings.confirm_destructive:
        return auto_confirm
    return lambda prompt: Confirm.ask(prompt, default=False)


def _execute(action: Callable[[AdminSession], Awaitable[int]], confirm: Callable[[str], bool] = auto_confirm) -> None:
    """Open a session, load the catalog, run ``action`` and exit with its status code."""

    async def runner() -> int:
        async with build_session(confirm) as session:
            if not await session.load():
                print_message(session.state.error or "Could not load the catalog.", error=True)
                return 1
            return await action(session)

    code = asyncio.run(runner())
    if code:
        raise typer.Exit(code)


def _report(outcome: MutationOutcome) -> int:
    print_message(outcome.message, error=not outcome.ok and outcome.kind is not OutcomeKind.CANCELLED,
                  record=outcome.record if outcome.ok else None)
    return 1 if outcome.kind is OutcomeKind.TRANSPORT_ERROR else 0


# --- Typer CLI ---
app = typer.Typer(help="Library admin console")


@app.callback()
def _global_options(
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log catalog requests"),
):
    """Global options (output mode, logging)."""
    if output:
        set_output_mode(output)
    logging.basicConfig(
        level=logging.DEBUG if verbose or settings.debug else settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command("dashboard")
def cli_dashboard():
    """Show book, member, active-loan and late-loan counts."""
    async def action(session: AdminSession) -> int:
        print_summary(session.summary())
        return 0

    _execute(action)


@app.command("books")
def cli_books(
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Search the catalog service"),
    mode: SearchMode = typer.Option(SearchMode.TITLE, "--mode", "-m", help="Field to search"),
):
    """List books, or search them by title, author or category."""
    async def action(session: AdminSession) -> int:
        if search is not None and not await session.search_books(search, mode):
            print_message(session.state.error, error=True)
            return 1
        print_books(session.books)
        return 0

    _execute(action)


@app.command("available")
def cli_available():
    """List books with at least one copy available for lending."""
    async def action(session: AdminSession) -> int:
        print_books(session.loanable_books(), title="Available books", empty="No books available for loan.")
        return 0

    _execute(action)


@app.command("members")
def cli_members(search: Optional[str] = typer.Option(None, "--search", "-s", help="Filter by name or email")):
    """List members, optionally filtered by name or email."""
    async def action(session: AdminSession) -> int:
        print_members(session.search_members(search or ""))
        return 0

    _execute(action)


@app.command("loans")
def cli_loans():
    """List loans with book, member and status."""
    async def action(session: AdminSession) -> int:
        print_loans(session.enriched_loans())
        return 0

    _execute(action)


@app.command("add-book")
def cli_add_book(title: str, author: str, category: str, year: int, copies: int):
    """Add a book to the catalog."""
    form = BookForm(title=title, author=author, category=category, year=year, total_copies=copies)

    async def action(session: AdminSession) -> int:
        return _report(await session.create_book(form))

    _execute(action)


@app.command("delete-book")
def cli_delete_book(book_id: int, yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation")):
    """Delete a book by id."""
    async def action(session: AdminSession) -> int:
        return _report(await session.delete_book(book_id))

    _execute(action, _confirmer(yes))


@app.command("add-member")
def cli_add_member(name: str, email: str):
    """Register a new member."""
    form = MemberForm(name=name, email=email)

    async def action(session: AdminSession) -> int:
        return _report(await session.create_member(form))

    _execute(action)


@app.command("delete-member")
def cli_delete_member(member_id: int, yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation")):
    """Delete a member by id."""
    async def action(session: AdminSession) -> int:
        return _report(await session.delete_member(member_id))

    _execute(action, _confirmer(yes))


@app.command("lend")
def cli_lend(
    member_id: int,
    book_id: int,
    due_date: str = typer.Argument(..., help="Due date as YYYY-MM-DD"),
):
    """Register a loan of a book to a member."""
    form = LoanForm(member_id=member_id, book_id=book_id, due_date=due_date)

    async def action(session: AdminSession) -> int:
        return _report(await session.create_loan(form))

    _execute(action)


@app.command("return")
def cli_return(loan_id: int, yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation")):
    """Mark a loan as returned."""
    async def action(session: AdminSession) -> int:
        return _report(await session.return_loan(loan_id))

    _execute(action, _confirmer(yes))


@app.command("sandbox")
def cli_sandbox(
    host: str = typer.Option(settings.sandbox_host, "--host", help="Bind address"),
    port: int = typer.Option(settings.sandbox_port, "--port", help="Bind port"),
    seed: bool = typer.Option(settings.sandbox_seed, "--seed/--no-seed", help="Load demo records"),
):
    """Run the in-memory catalog sandbox server."""
    console.print(f"[bold]Starting catalog sandbox on http://{host}:{port}[/]")
    uvicorn.run(create_app(seed=seed), host=host, port=port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    app()
