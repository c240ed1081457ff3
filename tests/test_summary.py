from datetime import datetime, timedelta

from library_admin.loans import enrich_loans
from library_admin.models import Book, Loan, Member
from library_admin.summary import summarize

NOW = datetime(2024, 3, 1, 12, 0, 0)


def _loans():
    return [
        Loan(1, 1, 1, "2024-02-01T10:00:00", "2024-02-15T00:00:00", None),                   # late
        Loan(2, 2, 1, "2024-02-20T10:00:00", "2024-03-10T00:00:00", None),                   # active
        Loan(3, 1, 2, "2024-01-01T10:00:00", "2024-01-10T00:00:00", "2024-02-20T10:00:00"),  # returned late
        Loan(4, 3, 2, "2024-02-25T10:00:00", NOW.isoformat(), None),                         # due right now
        Loan(5, 9, 9, "2024-01-05T10:00:00", "2024-01-20T00:00:00", None),                   # late, dangling refs
    ]


def test_summary_counts():
    books = [Book(1, "Dune", "F", "SF", 1965, 2, 1), Book(2, "Emma", "J", "C", 1815, 1, 0)]
    members = [Member(1, "Amy", "amy@example.com"), Member(2, "Sam", "sam@example.com"), Member(3, "Rory", "r@x")]

    summary = summarize(books, members, _loans(), now=NOW)

    assert summary.to_dict() == {"total_books": 2, "total_members": 3, "active_loans": 4, "late_loans": 2}


def test_summary_on_empty_collections():
    assert summarize([], [], [], now=NOW).to_dict() == {
        "total_books": 0, "total_members": 0, "active_loans": 0, "late_loans": 0,
    }


def test_dashboard_and_loan_table_agree_on_lateness():
    loans = _loans()
    for offset in (-40, -10, 0, 10, 40):
        now = NOW + timedelta(days=offset)
        rows = enrich_loans(loans, [], [], now=now)
        assert summarize([], [], loans, now=now).late_loans == sum(1 for r in rows if r.is_late)
