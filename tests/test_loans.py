from datetime import datetime

import pytest

from library_admin.loans import LoanStatus, classify_loan, enrich_loans, is_overdue
from library_admin.models import Book, Loan, Member


def make_loan(id=1, book_id=1, member_id=1, due_at="2024-01-10T00:00:00", returned_at=None):
    return Loan(id, book_id, member_id, "2024-01-01T09:00:00", due_at, returned_at)


@pytest.mark.parametrize("now", ["2023-12-01", "2024-01-10", "2030-06-01T08:00:00"])
@pytest.mark.parametrize("returned_at", ["2024-01-05T10:00:00", "2024-02-01T10:00:00"])
def test_returned_wins_regardless_of_dates(now, returned_at):
    assert classify_loan("2024-01-10", returned_at, now) is LoanStatus.RETURNED
    assert is_overdue("2024-01-10", returned_at, now) is False


def test_open_loan_past_due_is_overdue():
    assert classify_loan("2024-01-10", None, "2024-01-11") is LoanStatus.OVERDUE
    assert is_overdue("2024-01-10", None, "2024-01-11") is True


def test_open_loan_at_due_instant_is_still_active():
    assert classify_loan("2024-01-10T00:00:00", None, "2024-01-10T00:00:00") is LoanStatus.ACTIVE
    assert classify_loan("2024-01-10", None, "2024-01-10T00:00:01") is LoanStatus.OVERDUE


def test_open_loan_before_due_is_active():
    assert classify_loan("2024-01-10", None, datetime(2024, 1, 3)) is LoanStatus.ACTIVE


def test_timezone_suffixes_are_normalised():
    # 23:30 at +02:00 is 21:30 UTC, before the naive UTC due instant
    assert classify_loan("2024-01-10T22:00:00", None, "2024-01-10T23:30:00+02:00") is LoanStatus.ACTIVE
    assert classify_loan("2024-01-10T22:00:00Z", None, "2024-01-10T22:00:01Z") is LoanStatus.OVERDUE


def test_overdue_then_returned_scenario():
    now = "2024-01-11"
    loan = make_loan(due_at="2024-01-10", returned_at=None)
    [row] = enrich_loans([loan], [], [], now=datetime(2024, 1, 11))
    assert classify_loan(loan.due_at, loan.returned_at, now) is LoanStatus.OVERDUE
    assert row.status is LoanStatus.OVERDUE
    assert row.is_late is True

    loan.returned_at = "2024-01-09"
    [row] = enrich_loans([loan], [], [], now=datetime(2024, 1, 11))
    assert row.status is LoanStatus.RETURNED
    assert row.is_late is False


def test_enrichment_resolves_titles_and_names_in_loan_order():
    books = [Book(1, "Dune", "Frank Herbert", "SF", 1965, 2, 1), Book(2, "Emma", "Jane Austen", "Classic", 1815, 1, 1)]
    members = [Member(7, "Amy", "amy@example.com"), Member(8, "Sam", "sam@example.com")]
    loans = [make_loan(id=3, book_id=2, member_id=8), make_loan(id=1, book_id=1, member_id=7)]

    rows = enrich_loans(loans, books, members, now=datetime(2024, 1, 5))

    assert [r.id for r in rows] == [3, 1]
    assert [(r.book_title, r.member_name) for r in rows] == [("Emma", "Sam"), ("Dune", "Amy")]
    assert all(r.status is LoanStatus.ACTIVE for r in rows)


def test_enrichment_uses_placeholder_for_missing_records():
    loans = [make_loan(id=1, book_id=42, member_id=99)]
    [row] = enrich_loans(loans, [], [Member(1, "Amy", "amy@example.com")], now=datetime(2024, 1, 5))
    assert row.book_title == "#42"
    assert row.member_name == "#99"


def test_enrichment_takes_first_match_for_duplicate_ids():
    books = [Book(1, "First", "A", "C", 2000, 1, 1), Book(1, "Second", "B", "C", 2001, 1, 1)]
    [row] = enrich_loans([make_loan(book_id=1, member_id=5)], books, [], now=datetime(2024, 1, 5))
    assert row.book_title == "First"


def test_enrichment_does_not_mutate_inputs():
    books = [Book(1, "Dune", "Frank Herbert", "SF", 1965, 2, 1)]
    loans = [make_loan()]
    before = [loan.to_dict() for loan in loans]
    enrich_loans(loans, books, [], now=datetime(2024, 1, 20))
    assert [loan.to_dict() for loan in loans] == before
    assert books[0].available_copies == 1


def test_enriched_row_serialises_status():
    [row] = enrich_loans([make_loan()], [], [], now=datetime(2024, 1, 20))
    data = row.to_dict()
    assert data["status"] == "Overdue"
    assert data["is_late"] is True
    assert data["book_title"] == "#1"
