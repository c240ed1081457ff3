"""Create/return/delete operations against the catalog service.

Every operation validates its input, holds a per-kind in-flight flag, reads the
service answer through :mod:`library_admin.services.catalog_service` result
types and reconciles :class:`~library_admin.state.AdminState`. Failures are
returned as :class:`MutationOutcome` values; nothing here raises for a
validation, transport or business failure and nothing is retried.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from library_admin.models import BookForm, LoanForm, MemberForm
from library_admin.services.catalog_service import CatalogService, CatalogServiceError, Rejected
from library_admin.state import AdminState
from library_admin.validators import FormValidator, ValidationError

logger = logging.getLogger(__name__)

Confirm = Callable[[str], bool]


def auto_confirm(prompt: str) -> bool:
    return True


class OutcomeKind(Enum):
    SUCCESS = "success"
    VALIDATION_ERROR = "validation_error"
    REJECTED = "rejected"
    TRANSPORT_ERROR = "transport_error"
    CANCELLED = "cancelled"
    BUSY = "busy"


@dataclass
class MutationOutcome:
    kind: OutcomeKind
    message: str
    record: Any = None

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS


class _Busy(Exception):
    pass


class MutationCoordinator:

    def __init__(self, service: CatalogService, state: AdminState, confirm: Confirm = auto_confirm,
                 reload: Optional[Callable[[], Awaitable[None]]] = None):
        self.service = service
        self.state = state
        self.confirm = confirm
        self._reload = reload

    # ------------------------- Plumbing ------------------------- #
    @asynccontextmanager
    async def _saving(self, kind: str):
        if not self.state.start_saving(kind):
            raise _Busy(kind)
        try:
            yield
        finally:
            self.state.finish_saving(kind)

    async def _run(self, kind: str, operation: Callable[[], Awaitable[MutationOutcome]]) -> MutationOutcome:
        try:
            async with self._saving(kind):
                outcome = await operation()
        except _Busy:
            outcome = MutationOutcome(OutcomeKind.BUSY, f"A {kind.replace('_', ' ')} request is already in progress.")
        except ValidationError as exc:
            outcome = MutationOutcome(OutcomeKind.VALIDATION_ERROR, str(exc))
        except CatalogServiceError as exc:
            logger.warning(f"{kind} failed: {exc}")
            outcome = MutationOutcome(OutcomeKind.TRANSPORT_ERROR, f"Request failed: {exc}")

        if outcome.kind is OutcomeKind.SUCCESS:
            self.state.report_notice(outcome.message)
        elif outcome.kind is not OutcomeKind.CANCELLED:
            self.state.report_error(outcome.message)
        return outcome

    async def reload(self) -> None:
        """Replace all three collections from one concurrent snapshot fetch."""
        if self._reload is not None:
            await self._reload()
            return
        ticket = self.state.begin_refresh()
        snapshot = await self.service.fetch_snapshot()
        self.state.replace_all(snapshot, ticket)

    async def _reload_after(self, what: str) -> bool:
        try:
            await self.reload()
        except CatalogServiceError as exc:
            logger.warning(f"{what}; reload failed: {exc}")
            return False
        return True

    @staticmethod
    def _rejected(result: Rejected) -> MutationOutcome:
        logger.info(f"Catalog service rejected request: {result.reason}")
        return MutationOutcome(OutcomeKind.REJECTED, result.reason, result.record)

    # ------------------------- Books ------------------------- #
    async def create_book(self, form: BookForm) -> MutationOutcome:
        async def operation() -> MutationOutcome:
            payload = FormValidator.validate_book(form)
            result = await self.service.create_book(**payload)
            if isinstance(result, Rejected):
                return self._rejected(result)
            book = result.value
            self.state.append_book(book)
            form.reset()
            return MutationOutcome(OutcomeKind.SUCCESS, f"Added book #{book.id}: {book.title}", book)

        return await self._run("book", operation)

    async def delete_book(self, book_id: int) -> MutationOutcome:
        async def operation() -> MutationOutcome:
            if not self.confirm(f"Delete book #{book_id}?"):
                return MutationOutcome(OutcomeKind.CANCELLED, "Deletion cancelled.")
            result = await self.service.delete_book(book_id)
            if isinstance(result, Rejected):
                return self._rejected(result)
            self.state.remove_book(book_id)
            return MutationOutcome(OutcomeKind.SUCCESS, f"Deleted book #{book_id}.")

        return await self._run("delete_book", operation)

    # ------------------------- Members ------------------------- #
    async def create_member(self, form: MemberForm) -> MutationOutcome:
        async def operation() -> MutationOutcome:
            payload = FormValidator.validate_member(form)
            result = await self.service.create_member(**payload)
            if isinstance(result, Rejected):
                return self._rejected(result)
            member = result.value
            self.state.append_member(member)
            form.reset()
            return MutationOutcome(OutcomeKind.SUCCESS, f"Added member #{member.id}: {member.name}", member)

        return await self._run("member", operation)

    async def delete_member(self, member_id: int) -> MutationOutcome:
        async def operation() -> MutationOutcome:
            if not self.confirm(f"Delete member #{member_id}?"):
                return MutationOutcome(OutcomeKind.CANCELLED, "Deletion cancelled.")
            result = await self.service.delete_member(member_id)
            if isinstance(result, Rejected):
                return self._rejected(result)
            self.state.remove_member(member_id)
            return MutationOutcome(OutcomeKind.SUCCESS, f"Deleted member #{member_id}.")

        return await self._run("delete_member", operation)

    # ------------------------- Loans ------------------------- #
    def _loan_rejection(self, book_id: int, result: Rejected) -> MutationOutcome:
        book = next((b for b in self.state.books if b.id == book_id), None)
        if book is not None and book.available_copies <= 0:
            logger.info(f"Loan for book #{book_id} rejected, no copies left")
            return MutationOutcome(
                OutcomeKind.REJECTED,
                f"Stock exhausted: no copies of '{book.title}' are available.",
                result.record,
            )
        return self._rejected(result)

    async def create_loan(self, form: LoanForm) -> MutationOutcome:
        async def operation() -> MutationOutcome:
            payload = FormValidator.validate_loan(form)
            result = await self.service.create_loan(**payload)
            if isinstance(result, Rejected):
                return self._loan_rejection(payload["book_id"], result)
            loan = result.value
            form.reset()
            # Availability is not part of the answer, so pull everything again
            if not await self._reload_after(f"Loan #{loan.id} registered"):
                return MutationOutcome(OutcomeKind.TRANSPORT_ERROR,
                                       f"Loan #{loan.id} registered, but reloading the catalog failed.", loan)
            return MutationOutcome(OutcomeKind.SUCCESS, f"Registered loan #{loan.id}.", loan)

        return await self._run("loan", operation)

    async def return_loan(self, loan_id: int) -> MutationOutcome:
        async def operation() -> MutationOutcome:
            if not self.confirm(f"Mark loan #{loan_id} as returned?"):
                return MutationOutcome(OutcomeKind.CANCELLED, "Return cancelled.")
            result = await self.service.return_loan(loan_id)
            if isinstance(result, Rejected):
                return self._rejected(result)
            if not await self._reload_after(f"Loan #{loan_id} returned"):
                return MutationOutcome(OutcomeKind.TRANSPORT_ERROR,
                                       f"Loan #{loan_id} marked returned, but reloading the catalog failed.")
            return MutationOutcome(OutcomeKind.SUCCESS, f"Loan #{loan_id} marked returned.")

        return await self._run("return", operation)
