"""In-memory library of snip books."""

import logging
import threading
from typing import Dict, List, Optional

from app.config import settings
from app.services.book_service import BookService

logger = logging.getLogger(__name__)


class BookNotFound(KeyError):
    """Raised when the library has no book with the requested id."""


class LibraryService:
    """Keeps every book by id and hands out new ones.

    Each book serializes its own page changes; the library lock only guards
    which books exist.
    """

    def __init__(
        self,
        default_title: str = "My Snipbook",
        capacity: int = 4,
        max_capacity: int = 12,
        api_prefix: str = "/api/v1",
    ) -> None:
        """Initialize an empty library.

        Args:
            default_title: Title given to books created without one.
            capacity: Snips per page for new books.
            max_capacity: Largest capacity a book accepts.
            api_prefix: Prefix used when building snip image URLs.
        """
        self._lock = threading.RLock()
        self._books: Dict[str, BookService] = {}
        self.default_title = default_title
        self.capacity = capacity
        self.max_capacity = max_capacity
        self.api_prefix = api_prefix

    def create_book(self, title: Optional[str] = None, capacity: Optional[int] = None) -> BookService:
        """Add an empty book. A blank title falls back to the default one.

        Raises:
            ValueError: If capacity is above the maximum.
        """
        title = (title or "").strip() or self.default_title
        book = BookService(
            title=title,
            capacity=self.capacity if capacity is None else capacity,
            max_capacity=self.max_capacity,
            api_prefix=self.api_prefix,
        )
        with self._lock:
            self._books[book.id] = book
        logger.info("Created book %s (%r)", book.id, title)
        return book

    def list_books(self) -> List[BookService]:
        """All books, newest first."""
        with self._lock:
            books = list(self._books.values())
        # Stable sort keeps later inserts ahead on equal timestamps
        return sorted(reversed(books), key=lambda book: book.created_at, reverse=True)

    def get_book(self, book_id: str) -> BookService:
        with self._lock:
            try:
                return self._books[book_id]
            except KeyError:
                raise BookNotFound(book_id) from None

    def delete_book(self, book_id: str) -> BookService:
        """Remove a book together with its pages and snips.

        Raises:
            BookNotFound: If the book does not exist.
        """
        with self._lock:
            try:
                book = self._books.pop(book_id)
            except KeyError:
                raise BookNotFound(book_id) from None
        logger.info("Deleted book %s with %d snips", book_id, book.snapshot().snip_count)
        return book

    def __len__(self) -> int:
        with self._lock:
            return len(self._books)


# Singleton instance
_library_service: Optional[LibraryService] = None


def get_library_service() -> LibraryService:
    """Get the singleton LibraryService instance."""
    global _library_service
    if _library_service is None:
        _library_service = LibraryService(
            default_title=settings.BOOK_TITLE,
            capacity=settings.DEFAULT_PAGE_CAPACITY,
            max_capacity=settings.MAX_PAGE_CAPACITY,
            api_prefix=settings.API_V1_STR,
        )
    return _library_service
