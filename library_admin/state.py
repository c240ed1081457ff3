from __future__ import annotations

import logging
from typing import List, Optional, Set

from library_admin.models import Book, Loan, Member
from library_admin.services.catalog_service import CatalogSnapshot

logger = logging.getLogger(__name__)


class AdminState:
    """In-memory collections owned by one admin session.

    Collections are only replaced wholesale from a complete snapshot, except for
    appending a freshly created book/member and dropping a record after a
    confirmed delete. Refreshes and searches are ticketed: a response belonging
    to an older request than the newest one issued is dropped.
    """

    def __init__(self) -> None:
        self.books: List[Book] = []
        self.members: List[Member] = []
        self.loans: List[Loan] = []
        # None means no search is active and every book is shown
        self.search_results: Optional[List[Book]] = None
        self.loaded = False
        self.error: Optional[str] = None
        self.notice: Optional[str] = None

        self._saving: Set[str] = set()
        self._refresh_ticket = 0
        self._search_ticket = 0

    # ------------------------- Views ------------------------- #
    @property
    def displayed_books(self) -> List[Book]:
        return self.search_results if self.search_results is not None else self.books

    # ------------------------- Snapshots ------------------------- #
    def begin_refresh(self) -> int:
        self._refresh_ticket += 1
        return self._refresh_ticket

    def replace_all(self, snapshot: CatalogSnapshot, ticket: Optional[int] = None) -> bool:
        """Commit a complete snapshot. Returns False when a newer refresh was issued."""
        if ticket is not None and ticket != self._refresh_ticket:
            logger.info(f"Dropping stale snapshot (ticket {ticket}, newest {self._refresh_ticket})")
            return False
        self.books = list(snapshot.books)
        self.members = list(snapshot.members)
        self.loans = list(snapshot.loans)
        self.search_results = None
        # a search issued before this snapshot must not overwrite it
        self._search_ticket += 1
        self.loaded = True
        return True

    # ------------------------- Search ------------------------- #
    def begin_search(self) -> int:
        self._search_ticket += 1
        return self._search_ticket

    def set_search_results(self, ticket: int, results: Optional[List[Book]]) -> bool:
        if ticket != self._search_ticket:
            logger.info(f"Dropping stale search results (ticket {ticket}, newest {self._search_ticket})")
            return False
        self.search_results = list(results) if results is not None else None
        return True

    # ------------------------- Local merges ------------------------- #
    def append_book(self, book: Book) -> None:
        self.books.append(book)

    def append_member(self, member: Member) -> None:
        self.members.append(member)

    def remove_book(self, book_id: int) -> None:
        self.books = [b for b in self.books if b.id != book_id]
        if self.search_results is not None:
            self.search_results = [b for b in self.search_results if b.id != book_id]

    def remove_member(self, member_id: int) -> None:
        self.members = [m for m in self.members if m.id != member_id]

    # ------------------------- In-flight flags ------------------------- #
    def is_saving(self, kind: str) -> bool:
        return kind in self._saving

    def start_saving(self, kind: str) -> bool:
        """Raise the in-flight flag for ``kind``; False if it was already raised."""
        if kind in self._saving:
            return False
        self._saving.add(kind)
        return True

    def finish_saving(self, kind: str) -> None:
        self._saving.discard(kind)

    # ------------------------- Messages ------------------------- #
    def report_error(self, message: str) -> None:
        self.error = message
        self.notice = None

    def report_notice(self, message: str) -> None:
        self.notice = message
        self.error = None
