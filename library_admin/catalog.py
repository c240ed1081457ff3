from __future__ import annotations

from enum import Enum
from typing import Iterable, List

from library_admin.models import Book, Member
from library_admin.services.catalog_service import CatalogService


class SearchMode(Enum):
    """Book field the catalog service matches a search against"""
    TITLE = "title"
    AUTHOR = "author"
    CATEGORY = "category"

    @classmethod
    def parse(cls, raw: "str | SearchMode") -> "SearchMode":
        if isinstance(raw, SearchMode):
            return raw
        try:
            return cls((raw or "").strip().lower())
        except ValueError:
            choices = ", ".join(m.value for m in cls)
            raise ValueError(f"Unknown search mode {raw!r}; expected one of: {choices}") from None


def available_books(books: Iterable[Book]) -> List[Book]:
    """Books that can be lent right now: at least one available copy, input order kept."""
    return [book for book in books if book.available_copies > 0]


def filter_members(members: Iterable[Member], query: str) -> List[Member]:
    """Local, case-insensitive substring match on member name or email."""
    needle = (query or "").strip().lower()
    if not needle:
        return list(members)
    return [m for m in members if needle in m.name.lower() or needle in m.email.lower()]


async def dispatch_book_search(service: CatalogService, books: List[Book], query: str,
                               mode: "str | SearchMode" = SearchMode.TITLE) -> List[Book]:
    """Resolve a book search.

    An empty query shows the whole collection without touching the network.
    Anything else is sent once, trimmed, to the catalog service and its answer
    is used as is.
    """
    selected = SearchMode.parse(mode)
    text = (query or "").strip()
    if not text:
        return list(books)
    return await service.search_books(selected.value, text)
