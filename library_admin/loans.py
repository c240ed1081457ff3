from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, Iterable, List, Optional, TypeVar

from library_admin.models import Book, Loan, Member, Timestamp, parse_timestamp, utc_now


class LoanStatus(Enum):
    """Display status of a loan"""
    ACTIVE = "Active"
    OVERDUE = "Overdue"
    RETURNED = "Returned"


def is_overdue(due_at: Timestamp, returned_at: Optional[Timestamp], now: Optional[Timestamp] = None) -> bool:
    """True when the loan is still out and ``now`` is strictly past its due date.

    This is the only lateness predicate; the loan table and the dashboard both use it.
    """
    if returned_at is not None:
        return False
    current = parse_timestamp(now) if now is not None else utc_now()
    return current > parse_timestamp(due_at)


def classify_loan(due_at: Timestamp, returned_at: Optional[Timestamp], now: Optional[Timestamp] = None) -> LoanStatus:
    # A return always wins, even when it happened after the due date
    if returned_at is not None:
        return LoanStatus.RETURNED
    if is_overdue(due_at, None, now):
        return LoanStatus.OVERDUE
    return LoanStatus.ACTIVE


@dataclass
class EnrichedLoan:
    """A loan row joined with display labels and its derived status."""
    loan: Loan
    book_title: str
    member_name: str
    status: LoanStatus

    @property
    def is_late(self) -> bool:
        return self.status is LoanStatus.OVERDUE

    @property
    def id(self) -> int:
        return self.loan.id

    def to_dict(self) -> dict:
        data = self.loan.to_dict()
        data.update({
            "book_title": self.book_title,
            "member_name": self.member_name,
            "status": self.status.value,
            "is_late": self.is_late,
        })
        return data


T = TypeVar("T", Book, Member)


def _index_first(records: Iterable[T]) -> Dict[int, T]:
    index: Dict[int, T] = {}
    for record in records:
        index.setdefault(record.id, record)
    return index


def placeholder(record_id: int) -> str:
    return f"#{record_id}"


def enrich_loans(loans: Iterable[Loan], books: Iterable[Book], members: Iterable[Member],
                 now: Optional[datetime] = None) -> List[EnrichedLoan]:
    """Join each loan against the current books and members, keeping loan order.

    References to records that no longer exist are labelled ``#<id>``.
    """
    current = now if now is not None else utc_now()
    books_by_id = _index_first(books)
    members_by_id = _index_first(members)

    rows: List[EnrichedLoan] = []
    for loan in loans:
        book = books_by_id.get(loan.book_id)
        member = members_by_id.get(loan.member_id)
        rows.append(EnrichedLoan(
            loan=loan,
            book_title=book.title if book else placeholder(loan.book_id),
            member_name=member.name if member else placeholder(loan.member_id),
            status=classify_loan(loan.due_at, loan.returned_at, current),
        ))
    return rows
