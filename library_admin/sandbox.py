"""In-memory implementation of the catalog service REST contract.

Used for local development (``library-admin sandbox``) and as the in-process
backend of the test suite. Nothing is persisted.
"""
import logging
from datetime import datetime, timedelta
from threading import RLock
from typing import Callable, Dict, List, Optional

from fastapi import FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from library_admin.catalog import SearchMode
from library_admin.models import Book, Loan, Member, utc_now

logger = logging.getLogger(__name__)

REJECTED_ID = -1


def _stamp(moment: datetime) -> str:
    return moment.isoformat(timespec="seconds")


# --- Request models ---
class BookCreateModel(BaseModel):
    title: str
    author: str
    category: str
    year: int
    total_copies: int


class MemberCreateModel(BaseModel):
    name: str
    email: str


class LoanCreateModel(BaseModel):
    member_id: int
    book_id: int
    due_date: str


class CatalogStore:
    """Books, members and loans held in memory behind a lock."""

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self.clock = clock
        self.lock = RLock()
        self.books: Dict[int, Book] = {}
        self.members: Dict[int, Member] = {}
        self.loans: Dict[int, Loan] = {}
        self._next_ids = {"book": 1, "member": 1, "loan": 1}

    def _next_id(self, kind: str) -> int:
        value = self._next_ids[kind]
        self._next_ids[kind] = value + 1
        return value

    # ------------------------- Books ------------------------- #
    def list_books(self) -> List[Book]:
        with self.lock:
            return list(self.books.values())

    def add_book(self, title: str, author: str, category: str, year: int, total_copies: int) -> Book:
        with self.lock:
            book = Book(self._next_id("book"), title, author, category, year, total_copies, total_copies)
            self.books[book.id] = book
            return book

    def delete_book(self, book_id: int) -> bool:
        with self.lock:
            return self.books.pop(book_id, None) is not None

    def search_books(self, mode: SearchMode, query: str) -> List[Book]:
        needle = query.lower()
        with self.lock:
            return [b for b in self.books.values() if needle in getattr(b, mode.value).lower()]

    # ------------------------- Members ------------------------- #
    def list_members(self) -> List[Member]:
        with self.lock:
            return list(self.members.values())

    def add_member(self, name: str, email: str) -> Member:
        with self.lock:
            member = Member(self._next_id("member"), name, email, _stamp(self.clock()))
            self.members[member.id] = member
            return member

    def delete_member(self, member_id: int) -> bool:
        with self.lock:
            return self.members.pop(member_id, None) is not None

    # ------------------------- Loans ------------------------- #
    def list_loans(self) -> List[Loan]:
        with self.lock:
            return list(self.loans.values())

    def _rejected_loan(self, payload: LoanCreateModel, due_at: Optional[datetime] = None) -> Loan:
        return Loan(REJECTED_ID, payload.book_id, payload.member_id, _stamp(datetime.min),
                    _stamp(due_at or datetime.min), None)

    def create_loan(self, payload: LoanCreateModel) -> Loan:
        try:
            due_date = datetime.strptime(payload.due_date, "%Y-%m-%d")
        except ValueError:
            logger.info(f"Loan rejected: cannot parse due date {payload.due_date!r}")
            return self._rejected_loan(payload)

        now = self.clock()
        if due_date.date() < now.date():
            logger.info(f"Loan rejected: due date {payload.due_date} is in the past")
            return self._rejected_loan(payload)

        with self.lock:
            book = self.books.get(payload.book_id)
            if book is None:
                logger.info(f"Loan rejected: unknown book #{payload.book_id}")
                return self._rejected_loan(payload, due_date)
            if book.available_copies <= 0:
                logger.info(f"Loan rejected: no copies left for book #{book.id}")
                return self._rejected_loan(payload, due_date)

            loan = Loan(self._next_id("loan"), book.id, payload.member_id, _stamp(now), _stamp(due_date), None)
            self.loans[loan.id] = loan
            book.available_copies -= 1
            return loan

    def return_loan(self, loan_id: int) -> bool:
        with self.lock:
            loan = self.loans.get(loan_id)
            if loan is None or loan.returned_at is not None:
                return False
            loan.returned_at = _stamp(self.clock())
            book = self.books.get(loan.book_id)
            if book is not None:
                book.available_copies = min(book.available_copies + 1, book.total_copies)
            return True

    # ------------------------- Demo data ------------------------- #
    def seed(self) -> None:
        """Load a small demo catalog, including one overdue and one returned loan."""
        now = self.clock()
        dune = self.add_book("Dune", "Frank Herbert", "Science Fiction", 1965, 3)
        self.add_book("The Hobbit", "J. R. R. Tolkien", "Fantasy", 1937, 2)
        sapiens = self.add_book("Sapiens", "Yuval Noah Harari", "History", 2011, 1)
        self.add_book("Clean Code", "Robert C. Martin", "Programming", 2008, 4)
        amy = self.add_member("Amy Pond", "amy@library.test")
        sam = self.add_member("Sam Carter", "sam@library.test")
        self.add_member("Clara Oswald", "clara@library.test")

        with self.lock:
            late = Loan(self._next_id("loan"), sapiens.id, sam.id, _stamp(now - timedelta(days=21)),
                        _stamp(now - timedelta(days=7)), None)
            done = Loan(self._next_id("loan"), dune.id, amy.id, _stamp(now - timedelta(days=30)),
                        _stamp(now - timedelta(days=16)), _stamp(now - timedelta(days=18)))
            self.loans[late.id] = late
            self.loans[done.id] = done
            sapiens.available_copies -= 1


def create_app(store: Optional[CatalogStore] = None, seed: bool = False) -> FastAPI:
    store = store or CatalogStore()
    if seed:
        store.seed()

    app = FastAPI(title="Library Catalog Sandbox")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", response_class=PlainTextResponse)
    def health():
        return "OK - library catalog sandbox"

    @app.get("/books")
    def list_books():
        return [b.to_dict() for b in store.list_books()]

    @app.post("/books")
    def create_book(payload: BookCreateModel):
        return store.add_book(payload.title, payload.author, payload.category, payload.year,
                              payload.total_copies).to_dict()

    @app.delete("/books/{book_id}")
    def delete_book(book_id: int) -> bool:
        return store.delete_book(book_id)

    @app.get("/search")
    def search_books(q: str = Query(""), mode: Optional[str] = Query(None)):
        try:
            selected = SearchMode.parse(mode) if mode else SearchMode.TITLE
        except ValueError:
            selected = SearchMode.TITLE
        return [b.to_dict() for b in store.search_books(selected, q)]

    @app.get("/members")
    def list_members():
        return [m.to_dict() for m in store.list_members()]

    @app.post("/members")
    def create_member(payload: MemberCreateModel):
        return store.add_member(payload.name, payload.email).to_dict()

    @app.delete("/members/{member_id}")
    def delete_member(member_id: int) -> bool:
        return store.delete_member(member_id)

    @app.get("/loans")
    def list_loans():
        return [loan.to_dict() for loan in store.list_loans()]

    @app.post("/loans")
    def create_loan(payload: LoanCreateModel):
        return store.create_loan(payload).to_dict()

    @app.post("/loans/{loan_id}/return")
    def return_loan(loan_id: int) -> bool:
        return store.return_loan(loan_id)

    return app
