import os
import json
from typing import List, Any, Optional
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from config import settings

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "LIBRARY_ADMIN_OUTPUT"

_console = Console()

_STATUS_STYLES = {"Active": "green", "Overdue": "bold red", "Returned": "dim"}


def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode


def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, settings.output_mode).lower()


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False))


def print_books(books: List[Any], title: str = "Books", empty: str = "No books found.") -> None:
    """Print books in the current output mode.
    - plain: '#id Title by Author [category, year] available/total' lines
    - json: list of book objects
    - rich: table
    """
    mode = get_output_mode()

    if mode == "json":
        _print_json([b.to_dict() for b in books])
        return
    if not books:
        print(empty)
        return

    if mode == "rich":
        table = Table(title=f"📚 {title}", show_lines=True, header_style="bold cyan")
        table.add_column("ID", style="magenta", no_wrap=True)
        table.add_column("Title", style="white")
        table.add_column("Author", style="white")
        table.add_column("Category")
        table.add_column("Year", justify="right")
        table.add_column("Available", justify="right")
        for b in books:
            style = "red" if b.available_copies <= 0 else "green"
            table.add_row(str(b.id), b.title, b.author, b.category, str(b.year),
                          f"[{style}]{b.available_copies}/{b.total_copies}[/]")
        _console.print(table)
    else:
        for b in books:
            print(f"#{b.id} {b.title} by {b.author} [{b.category}, {b.year}] "
                  f"{b.available_copies}/{b.total_copies} available")


def print_members(members: List[Any], empty: str = "No members found.") -> None:
    mode = get_output_mode()

    if mode == "json":
        _print_json([m.to_dict() for m in members])
        return
    if not members:
        print(empty)
        return

    if mode == "rich":
        table = Table(title="👥 Members", show_lines=True, header_style="bold cyan")
        table.add_column("ID", style="magenta", no_wrap=True)
        table.add_column("Name")
        table.add_column("Email")
        table.add_column("Joined", style="dim")
        for m in members:
            table.add_row(str(m.id), m.name, m.email, m.joined_at or "")
        _console.print(table)
    else:
        for m in members:
            print(f"#{m.id} {m.name} <{m.email}>")


def print_loans(rows: List[Any], empty: str = "No loans recorded.") -> None:
    """Print enriched loan rows; status and lateness come precomputed on each row."""
    mode = get_output_mode()

    if mode == "json":
        _print_json([r.to_dict() for r in rows])
        return
    if not rows:
        print(empty)
        return

    if mode == "rich":
        table = Table(title="🔖 Loans", show_lines=True, header_style="bold cyan")
        table.add_column("ID", style="magenta", no_wrap=True)
        table.add_column("Book")
        table.add_column("Member")
        table.add_column("Borrowed", style="dim")
        table.add_column("Due")
        table.add_column("Returned", style="dim")
        table.add_column("Status")
        for r in rows:
            status = r.status.value
            table.add_row(str(r.id), r.book_title, r.member_name, r.loan.borrowed_at or "",
                          r.loan.due_at, r.loan.returned_at or "-",
                          f"[{_STATUS_STYLES.get(status, 'white')}]{status}[/]")
        _console.print(table)
    else:
        for r in rows:
            late = " (late)" if r.is_late else ""
            print(f"#{r.id} {r.book_title} -> {r.member_name} due {r.loan.due_at}: {r.status.value}{late}")


def print_summary(summary: Any) -> None:
    mode = get_output_mode()
    data = summary.to_dict()

    if mode == "json":
        _print_json(data)
    elif mode == "rich":
        content = (
            f"[bold]Books:[/] {data['total_books']}\n"
            f"[bold]Members:[/] {data['total_members']}\n"
            f"[bold]Active loans:[/] {data['active_loans']}\n"
            f"[bold red]Late loans:[/] {data['late_loans']}"
        )
        _console.print(Panel.fit(content, title="📊 Dashboard", border_style="blue"))
    else:
        print(f"Total Books: {data['total_books']}")
        print(f"Total Members: {data['total_members']}")
        print(f"Active Loans: {data['active_loans']}")
        print(f"Late Loans: {data['late_loans']}")


def print_message(message: str, error: bool = False, record: Optional[Any] = None) -> None:
    """Print the outcome of an action; json mode wraps it in an object."""
    mode = get_output_mode()
    if mode == "json":
        payload = {"ok": not error, "message": message}
        if record is not None and hasattr(record, "to_dict"):
            payload["record"] = record.to_dict()
        _print_json(payload)
    elif mode == "rich":
        style = "bold red" if error else "green"
        _console.print(f"[{style}]{message}[/]")
    else:
        print(message)
