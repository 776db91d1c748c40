"""In-memory snip book with serialized page allocation."""

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from app.models.book_model import BookResponse, BookSummary, PageResponse, SnipResponse
from app.services.page_allocator import PageAllocator
from snip_shapes import ShapeVariant

logger = logging.getLogger(__name__)

DEFAULT_BACKGROUND = "paper-cream"
EDITABLE_SNIP_FIELDS = ("name", "latitude", "longitude", "location_name")


class SnipNotFound(KeyError):
    """Raised when no page holds a snip with the requested id."""


@dataclass
class Snip:
    """A masked transparent image and its details."""

    image: bytes
    shape: ShapeVariant
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    order_index: int = 0
    name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    location_name: Optional[str] = None


class BookService:
    """Owns the book's pages and serializes every change to them.

    All mutations and snapshots take the same lock, so readers always see the
    state between two complete writes.
    """

    def __init__(
        self,
        title: str = "My Snipbook",
        capacity: int = 4,
        max_capacity: int = 12,
        api_prefix: str = "/api/v1",
        book_id: Optional[str] = None,
    ) -> None:
        """Initialize an empty book.

        Args:
            title: Book title.
            capacity: Snips per page.
            max_capacity: Largest capacity accepted by ``set_capacity``.
            api_prefix: Prefix used when building snip image URLs.
            book_id: Stable id, generated when omitted.
        """
        self.id = book_id or str(uuid.uuid4())
        self._lock = threading.RLock()
        self.max_capacity = max_capacity
        self._allocator: PageAllocator[Snip] = PageAllocator(self._check_capacity(capacity))
        self.title = title
        self.background_texture = DEFAULT_BACKGROUND
        self.created_at = datetime.now(timezone.utc)
        self.api_prefix = api_prefix
        self._last_added_id: Optional[str] = None

    @property
    def capacity(self) -> int:
        return self._allocator.capacity

    def _check_capacity(self, capacity: int) -> int:
        if capacity > self.max_capacity:
            raise ValueError(f"Page capacity must be at most {self.max_capacity}, got {capacity}")
        return capacity

    def add_snip(
        self,
        image: bytes,
        shape: ShapeVariant,
        name: Optional[str] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        location_name: Optional[str] = None,
    ) -> Snip:
        """Wrap a masked image in a snip and append it to the book."""
        snip = Snip(
            image=image,
            shape=ShapeVariant(shape),
            name=name,
            latitude=latitude,
            longitude=longitude,
            location_name=location_name,
        )
        with self._lock:
            page = self._allocator.append(snip)
            self._last_added_id = snip.id
        logger.info("Added %s snip %s to page %d", snip.shape.value, snip.id, page.order_index)
        return snip

    def get_snip(self, snip_id: str) -> Snip:
        with self._lock:
            try:
                return self._allocator.get(snip_id)
            except KeyError:
                raise SnipNotFound(snip_id) from None

    def replace_image(self, snip_id: str, image: bytes, shape: ShapeVariant) -> Snip:
        """Swap the image and shape of a snip after it has been re-masked."""
        with self._lock:
            snip = self.get_snip(snip_id)
            snip.image = image
            snip.shape = ShapeVariant(shape)
        logger.info("Replaced image of snip %s (%s)", snip_id, snip.shape.value)
        return snip

    def update_details(self, snip_id: str, **changes: Any) -> Snip:
        """Set name or location fields of a snip.

        Raises:
            ValueError: If a field other than name or location is given.
            SnipNotFound: If the snip does not exist.
        """
        unknown = set(changes) - set(EDITABLE_SNIP_FIELDS)
        if unknown:
            raise ValueError(f"Cannot edit snip fields: {sorted(unknown)}")
        with self._lock:
            snip = self.get_snip(snip_id)
            for key, value in changes.items():
                setattr(snip, key, value)
        return snip

    def delete_snip(self, snip_id: str, rebalance: bool = True) -> Snip:
        """Remove a snip, then optionally repack the pages.

        Raises:
            SnipNotFound: If the snip does not exist.
        """
        with self._lock:
            try:
                snip = self._allocator.remove(snip_id)
            except KeyError:
                raise SnipNotFound(snip_id) from None
            if rebalance:
                self._allocator.rebalance()
            if self._last_added_id == snip_id:
                self._last_added_id = None
        logger.info("Deleted snip %s", snip_id)
        return snip

    def undo_last(self) -> Optional[Snip]:
        """Remove the most recently added snip if it is still in the book."""
        with self._lock:
            if self._last_added_id is None:
                return None
            snip_id, self._last_added_id = self._last_added_id, None
            try:
                snip = self._allocator.remove(snip_id)
            except KeyError:
                return None
        logger.info("Undid snip %s", snip_id)
        return snip

    def rebalance(self) -> None:
        with self._lock:
            self._allocator.rebalance()

    def set_capacity(self, capacity: int) -> None:
        """Change snips per page and repack.

        Raises:
            ValueError: If capacity is not between 1 and ``max_capacity``.
        """
        with self._lock:
            self._allocator.set_capacity(self._check_capacity(capacity))
        logger.info("Page capacity set to %d", capacity)

    def reorder(self, page_index: int, from_index: int, to_index: int) -> None:
        """Move a snip within one page.

        Raises:
            IndexError: If the page or positions do not exist.
        """
        with self._lock:
            self._allocator.reorder_within_page(page_index, from_index, to_index)

    def update_metadata(self, title: Optional[str] = None, background_texture: Optional[str] = None) -> None:
        """Rename the book or change its background.

        Raises:
            ValueError: If the title is blank once trimmed.
        """
        if title is not None:
            title = title.strip()
            if not title:
                raise ValueError("Book title cannot be blank")
        with self._lock:
            if title is not None:
                self.title = title
            if background_texture is not None:
                self.background_texture = background_texture

    def snapshot(self) -> BookResponse:
        """Consistent copy of the book for readers."""
        with self._lock:
            pages = [
                PageResponse(
                    id=page.id,
                    order_index=page.order_index,
                    is_full=len(page.items) >= self._allocator.capacity,
                    snips=[self._snip_response(snip) for snip in page.items],
                )
                for page in self._allocator.pages
            ]
            return BookResponse(
                id=self.id,
                title=self.title,
                background_texture=self.background_texture,
                created_at=self.created_at,
                capacity=self._allocator.capacity,
                page_count=self._allocator.page_count,
                snip_count=self._allocator.item_count,
                pages=pages,
            )

    def summary(self) -> BookSummary:
        """Title and counts without the pages, for library listings."""
        with self._lock:
            return BookSummary(
                id=self.id,
                title=self.title,
                background_texture=self.background_texture,
                created_at=self.created_at,
                capacity=self._allocator.capacity,
                page_count=self._allocator.page_count,
                snip_count=self._allocator.item_count,
            )

    def _snip_response(self, snip: Snip) -> SnipResponse:
        return SnipResponse(
            id=snip.id,
            shape=snip.shape,
            order_index=snip.order_index,
            created_at=snip.created_at,
            image_url=f"{self.api_prefix}/books/{self.id}/snips/{snip.id}/image",
            name=snip.name,
            latitude=snip.latitude,
            longitude=snip.longitude,
            location_name=snip.location_name,
        )
