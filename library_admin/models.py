from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional, Union

Timestamp = Union[str, datetime, date]


def parse_timestamp(value: Timestamp) -> datetime:
    """Parse an ISO timestamp sent by the catalog service into a naive UTC datetime.

    Accepts full ISO datetimes (with or without a ``Z`` or offset suffix) and
    plain ``YYYY-MM-DD`` dates, which are read as midnight.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise ValueError(f"Unrecognised timestamp: {value!r}") from exc
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Book:
    """A catalog title and its copy counts as reported by the catalog service."""

    def __init__(self, id: int, title: str, author: str, category: str, year: int,
                 total_copies: int, available_copies: int) -> None:
        self.id = id
        self.title = title
        self.author = author
        self.category = category
        self.year = year
        self.total_copies = total_copies
        self.available_copies = available_copies

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"#{self.id} {self.title} by {self.author} ({self.available_copies}/{self.total_copies})"

    def __repr__(self) -> str:  # pragma: no cover
        return f"Book(id={self.id!r}, title={self.title!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Book):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "category": self.category,
            "year": self.year,
            "total_copies": self.total_copies,
            "available_copies": self.available_copies,
        }

    @staticmethod
    def from_dict(data: dict) -> "Book":
        total = int(data.get("total_copies") or 0)
        return Book(
            id=int(data["id"]),
            title=data["title"],
            author=data["author"],
            category=data.get("category", ""),
            year=int(data.get("year") or 0),
            total_copies=total,
            # Freshly created books may omit the available count
            available_copies=int(data.get("available_copies", total) or 0),
        )


class Member:
    """A registered library member."""

    def __init__(self, id: int, name: str, email: str, joined_at: str | None = None) -> None:
        self.id = id
        self.name = name
        self.email = email
        self.joined_at = joined_at

    def __str__(self) -> str:  # pragma: no cover
        return f"#{self.id} {self.name} <{self.email}>"

    def __repr__(self) -> str:  # pragma: no cover
        return f"Member(id={self.id!r}, name={self.name!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Member):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "email": self.email, "joined_at": self.joined_at}

    @staticmethod
    def from_dict(data: dict) -> "Member":
        return Member(
            id=int(data["id"]),
            name=data["name"],
            email=data["email"],
            joined_at=data.get("joined_at"),
        )


class Loan:
    """One book borrowed by one member.

    Timestamps are kept exactly as the service sent them; use
    :func:`parse_timestamp` when a comparison is needed.
    """

    def __init__(self, id: int, book_id: int, member_id: int, borrowed_at: str | None,
                 due_at: str, returned_at: str | None = None) -> None:
        self.id = id
        self.book_id = book_id
        self.member_id = member_id
        self.borrowed_at = borrowed_at
        self.due_at = due_at
        self.returned_at = returned_at

    def __repr__(self) -> str:  # pragma: no cover
        return f"Loan(id={self.id!r}, book_id={self.book_id!r}, member_id={self.member_id!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Loan):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "book_id": self.book_id,
            "member_id": self.member_id,
            "borrowed_at": self.borrowed_at,
            "due_at": self.due_at,
            "returned_at": self.returned_at,
        }

    @staticmethod
    def from_dict(data: dict) -> "Loan":
        return Loan(
            id=int(data["id"]),
            book_id=int(data["book_id"]),
            member_id=int(data["member_id"]),
            borrowed_at=data.get("borrowed_at"),
            due_at=data["due_at"],
            returned_at=data.get("returned_at"),
        )


# ------------------------- Forms ------------------------- #

@dataclass
class BookForm:
    """Pending input for the create-book mutation."""
    title: str = ""
    author: str = ""
    category: str = ""
    year: Optional[int] = None
    total_copies: Optional[int] = None

    def reset(self) -> None:
        self.title = ""
        self.author = ""
        self.category = ""
        self.year = None
        self.total_copies = None


@dataclass
class MemberForm:
    name: str = ""
    email: str = ""

    def reset(self) -> None:
        self.name = ""
        self.email = ""


@dataclass
class LoanForm:
    """Pending input for the create-loan mutation; due_date is ``YYYY-MM-DD``."""
    member_id: Optional[int] = None
    book_id: Optional[int] = None
    due_date: str = ""

    def reset(self) -> None:
        self.member_id = None
        self.book_id = None
        self.due_date = ""
