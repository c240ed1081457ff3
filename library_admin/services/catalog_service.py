import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, List, Optional, TypeVar, Union

import httpx

from library_admin.models import Book, Loan, Member
from library_admin.services.http_client import CatalogHTTPClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CatalogServiceError(Exception):
    """Transport-level failure talking to the catalog service"""
    pass


class CatalogHTTPStatusError(CatalogServiceError):
    """The catalog service answered with a non-2xx status"""

    def __init__(self, method: str, path: str, status_code: int):
        self.method = method
        self.path = path
        self.status_code = status_code
        super().__init__(f"{method} {path} failed with HTTP {status_code}")


@dataclass
class Accepted(Generic[T]):
    """The service carried out the request."""
    value: T = None

    @property
    def ok(self) -> bool:
        return True


@dataclass
class Rejected:
    """The service answered normally but refused the operation."""
    reason: str
    record: Any = None

    @property
    def ok(self) -> bool:
        return False


Result = Union[Accepted, Rejected]


@dataclass
class CatalogSnapshot:
    """Books, members and loans fetched together in one refresh."""
    books: List[Book] = field(default_factory=list)
    members: List[Member] = field(default_factory=list)
    loans: List[Loan] = field(default_factory=list)


class CatalogService:
    """Client for the Remote Catalog Service REST API.

    Transport failures and non-2xx answers raise :class:`CatalogServiceError`.
    Domain refusals (negative id on a created record, ``false`` from a delete or
    return) come back as :class:`Rejected` so callers never inspect sentinels.
    """

    def __init__(self, client: Optional[CatalogHTTPClient] = None, base_url: Optional[str] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.client = client or CatalogHTTPClient(base_url=base_url, transport=transport)

    async def close(self) -> None:
        await self.client.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    # ------------------------- Request plumbing ------------------------- #
    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            if method == "GET":
                response = await self.client.get(path, **kwargs)
            elif method == "POST":
                response = await self.client.post(path, **kwargs)
            elif method == "DELETE":
                response = await self.client.delete(path, **kwargs)
            else:
                raise ValueError(f"Unsupported method: {method}")
        except httpx.HTTPError as exc:
            logger.warning(f"{method} {path} could not reach catalog service: {exc}")
            raise CatalogServiceError(f"Catalog service unreachable ({exc.__class__.__name__})") from exc

        if not response.is_success:
            logger.warning(f"{method} {path} returned HTTP {response.status_code}")
            raise CatalogHTTPStatusError(method, path, response.status_code)

        try:
            return response.json()
        except ValueError as exc:
            raise CatalogServiceError(f"{method} {path} returned a non-JSON body") from exc

    @staticmethod
    def _decode(payload: Any, parse: Callable[[dict], T], what: str) -> T:
        try:
            return parse(payload)
        except (KeyError, TypeError, ValueError) as exc:
            raise CatalogServiceError(f"Malformed {what} in catalog response") from exc

    def _decode_list(self, payload: Any, parse: Callable[[dict], T], what: str) -> List[T]:
        if not isinstance(payload, list):
            raise CatalogServiceError(f"Expected a list of {what}, got {type(payload).__name__}")
        return [self._decode(item, parse, what) for item in payload]

    @staticmethod
    def _decode_flag(payload: Any, path: str) -> bool:
        if not isinstance(payload, bool):
            raise CatalogServiceError(f"Expected a boolean from {path}, got {type(payload).__name__}")
        return payload

    # ------------------------- Listing ------------------------- #
    async def list_books(self) -> List[Book]:
        return self._decode_list(await self._request("GET", "/books"), Book.from_dict, "books")

    async def list_members(self) -> List[Member]:
        return self._decode_list(await self._request("GET", "/members"), Member.from_dict, "members")

    async def list_loans(self) -> List[Loan]:
        return self._decode_list(await self._request("GET", "/loans"), Loan.from_dict, "loans")

    async def fetch_snapshot(self) -> CatalogSnapshot:
        """Fetch all three collections concurrently; any failure fails the batch."""
        books, members, loans = await asyncio.gather(
            self.list_books(), self.list_members(), self.list_loans()
        )
        return CatalogSnapshot(books=books, members=members, loans=loans)

    async def search_books(self, mode: str, query: str) -> List[Book]:
        """Server-side search; the service matches case-insensitively on ``mode``."""
        payload = await self._request("GET", "/search", params={"mode": mode, "q": query})
        return self._decode_list(payload, Book.from_dict, "books")

    # ------------------------- Books ------------------------- #
    async def create_book(self, title: str, author: str, category: str, year: int, total_copies: int) -> Result:
        payload = await self._request("POST", "/books", json={
            "title": title,
            "author": author,
            "category": category,
            "year": year,
            "total_copies": total_copies,
        })
        book = self._decode(payload, Book.from_dict, "book")
        if book.id < 0:
            return Rejected("The catalog service could not store the book.", record=book)
        return Accepted(book)

    async def delete_book(self, book_id: int) -> Result:
        path = f"/books/{book_id}"
        if self._decode_flag(await self._request("DELETE", path), path):
            return Accepted()
        return Rejected(f"Book #{book_id} was not found or could not be deleted.")

    # ------------------------- Members ------------------------- #
    async def create_member(self, name: str, email: str) -> Result:
        payload = await self._request("POST", "/members", json={"name": name, "email": email})
        member = self._decode(payload, Member.from_dict, "member")
        if member.id < 0:
            return Rejected("The catalog service could not store the member.", record=member)
        return Accepted(member)

    async def delete_member(self, member_id: int) -> Result:
        path = f"/members/{member_id}"
        if self._decode_flag(await self._request("DELETE", path), path):
            return Accepted()
        return Rejected(f"Member #{member_id} was not found or could not be deleted.")

    # ------------------------- Loans ------------------------- #
    async def create_loan(self, member_id: int, book_id: int, due_date: str) -> Result:
        payload = await self._request("POST", "/loans", json={
            "member_id": member_id,
            "book_id": book_id,
            "due_date": due_date,
        })
        loan = self._decode(payload, Loan.from_dict, "loan")
        if loan.id < 0:
            return Rejected("The loan was refused: no available copies or invalid due date.", record=loan)
        return Accepted(loan)

    async def return_loan(self, loan_id: int) -> Result:
        path = f"/loans/{loan_id}/return"
        if self._decode_flag(await self._request("POST", path), path):
            return Accepted()
        return Rejected(f"Loan #{loan_id} could not be marked returned.")
