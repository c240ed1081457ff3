from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

import httpx

from library_admin.catalog import SearchMode, available_books, dispatch_book_search, filter_members
from library_admin.coordinator import Confirm, MutationCoordinator, MutationOutcome, auto_confirm
from library_admin.loans import EnrichedLoan, enrich_loans
from library_admin.models import Book, BookForm, LoanForm, Member, MemberForm
from library_admin.services.catalog_service import CatalogService, CatalogServiceError
from library_admin.state import AdminState
from library_admin.summary import DashboardSummary, summarize

logger = logging.getLogger(__name__)


class AdminSession:
    """View controller for the admin console.

    Owns the :class:`AdminState`, talks to the catalog service and hands the
    current collections to the pure view functions on every read.
    """

    def __init__(self, service: CatalogService, confirm: Confirm = auto_confirm,
                 state: Optional[AdminState] = None):
        self.service = service
        self.state = state or AdminState()
        self.coordinator = MutationCoordinator(service, self.state, confirm=confirm, reload=self.refresh)

    @classmethod
    def connect(cls, base_url: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None,
                confirm: Confirm = auto_confirm) -> "AdminSession":
        return cls(CatalogService(base_url=base_url, transport=transport), confirm=confirm)

    async def close(self) -> None:
        await self.service.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    # ------------------------- Loading ------------------------- #
    async def refresh(self) -> None:
        """Fetch books, members and loans together and commit them as one snapshot.

        Raises :class:`CatalogServiceError` without touching the state if any of
        the three requests fails.
        """
        ticket = self.state.begin_refresh()
        snapshot = await self.service.fetch_snapshot()
        if self.state.replace_all(snapshot, ticket):
            logger.debug(f"Loaded {len(snapshot.books)} books, {len(snapshot.members)} members, "
                         f"{len(snapshot.loans)} loans")

    async def load(self) -> bool:
        """Like :meth:`refresh` but reports a failure on the state instead of raising."""
        try:
            await self.refresh()
        except CatalogServiceError as exc:
            logger.warning(f"Refresh failed: {exc}")
            self.state.report_error(f"Could not load the catalog: {exc}")
            return False
        return True

    # ------------------------- Search ------------------------- #
    async def search_books(self, query: str, mode: "str | SearchMode" = SearchMode.TITLE) -> bool:
        selected = SearchMode.parse(mode)
        ticket = self.state.begin_search()
        try:
            results = await dispatch_book_search(self.service, self.state.books, query, selected)
        except CatalogServiceError as exc:
            logger.warning(f"Book search failed: {exc}")
            self.state.report_error(f"Search failed: {exc}")
            return False
        # An empty query shows the full collection again
        self.state.set_search_results(ticket, results if (query or "").strip() else None)
        return True

    def search_members(self, query: str) -> List[Member]:
        return filter_members(self.state.members, query)

    # ------------------------- Derived views ------------------------- #
    @property
    def books(self) -> List[Book]:
        return self.state.displayed_books

    @property
    def members(self) -> List[Member]:
        return self.state.members

    def loanable_books(self) -> List[Book]:
        return available_books(self.state.books)

    def enriched_loans(self, now: Optional[datetime] = None) -> List[EnrichedLoan]:
        return enrich_loans(self.state.loans, self.state.books, self.state.members, now)

    def summary(self, now: Optional[datetime] = None) -> DashboardSummary:
        return summarize(self.state.books, self.state.members, self.state.loans, now)

    # ------------------------- Mutations ------------------------- #
    async def create_book(self, form: BookForm) -> MutationOutcome:
        return await self.coordinator.create_book(form)

    async def delete_book(self, book_id: int) -> MutationOutcome:
        return await self.coordinator.delete_book(book_id)

    async def create_member(self, form: MemberForm) -> MutationOutcome:
        return await self.coordinator.create_member(form)

    async def delete_member(self, member_id: int) -> MutationOutcome:
        return await self.coordinator.delete_member(member_id)

    async def create_loan(self, form: LoanForm) -> MutationOutcome:
        return await self.coordinator.create_loan(form)

    async def return_loan(self, loan_id: int) -> MutationOutcome:
        return await self.coordinator.return_loan(loan_id)
