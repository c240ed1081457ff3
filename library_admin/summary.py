from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional, Sequence

from library_admin.loans import is_overdue
from library_admin.models import Book, Loan, Member, utc_now


@dataclass
class DashboardSummary:
    total_books: int
    total_members: int
    active_loans: int
    late_loans: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "total_books": self.total_books,
            "total_members": self.total_members,
            "active_loans": self.active_loans,
            "late_loans": self.late_loans,
        }


def summarize(books: Sequence[Book], members: Sequence[Member], loans: Sequence[Loan],
              now: Optional[datetime] = None) -> DashboardSummary:
    """Dashboard counts. Lateness uses the same predicate as the loan table."""
    current = now if now is not None else utc_now()
    open_loans = [loan for loan in loans if loan.returned_at is None]
    late = sum(1 for loan in open_loans if is_overdue(loan.due_at, loan.returned_at, current))
    return DashboardSummary(
        total_books=len(books),
        total_members=len(members),
        active_loans=len(open_loans),
        late_loans=late,
    )
