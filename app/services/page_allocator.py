"""Allocation of snips to fixed-capacity pages.

Pages hold items in order and share one capacity. Items are looked up by id
and pages by position, so the allocator never needs back references from an
item to its page.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Generic, List, Protocol, Tuple, TypeVar

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 4


class AllocatorInvariantViolation(AssertionError):
    """Page or item order bookkeeping is inconsistent."""


class Allocatable(Protocol):
    """Anything with an id and a position inside its page."""

    id: str
    order_index: int


ItemT = TypeVar("ItemT", bound=Allocatable)


@dataclass
class Page(Generic[ItemT]):
    """An ordered run of items at position ``order_index`` in the book."""

    order_index: int
    items: List[ItemT] = field(default_factory=list)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_empty(self) -> bool:
        return not self.items

    def renumber(self) -> None:
        """Reassign item order indices 0..n-1 in list order."""
        for index, item in enumerate(self.items):
            item.order_index = index


def validate_capacity(capacity: int) -> int:
    if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
        raise ValueError(f"Page capacity must be a positive integer, got {capacity!r}")
    return capacity


class PageAllocator(Generic[ItemT]):
    """Packs an ordered stream of items into pages of at most ``capacity`` items."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        """Initialize an empty allocator.

        Args:
            capacity: Maximum number of items per page.
        """
        self._capacity = validate_capacity(capacity)
        self._pages: List[Page[ItemT]] = []

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def pages(self) -> Tuple[Page[ItemT], ...]:
        return tuple(self._pages)

    @property
    def page_count(self) -> int:
        return len(self._pages)

    @property
    def item_count(self) -> int:
        return sum(len(page.items) for page in self._pages)

    def items(self) -> List[ItemT]:
        """All items, page by page, in order."""
        return [item for page in self._pages for item in page.items]

    def page(self, page_index: int) -> Page[ItemT]:
        """Return the page at ``page_index``.

        Raises:
            IndexError: If the page does not exist.
        """
        if not 0 <= page_index < len(self._pages):
            raise IndexError(f"Page index {page_index} out of range (0..{len(self._pages) - 1})")
        return self._pages[page_index]

    def locate(self, item_id: str) -> Tuple[int, int]:
        """Find (page index, item index) of an item.

        Raises:
            KeyError: If no page holds the item.
        """
        for page_index, page in enumerate(self._pages):
            for item_index, item in enumerate(page.items):
                if item.id == item_id:
                    return page_index, item_index
        raise KeyError(item_id)

    def get(self, item_id: str) -> ItemT:
        page_index, item_index = self.locate(item_id)
        return self._pages[page_index].items[item_index]

    def append(self, item: ItemT) -> Page[ItemT]:
        """Add an item after every other item.

        The item goes onto the last page when it has room, otherwise onto a new
        last page.

        Args:
            item: The item to place.

        Returns:
            The page that received the item.
        """
        if self._pages and len(self._pages[-1].items) < self._capacity:
            page = self._pages[-1]
        else:
            page = Page(order_index=len(self._pages))
            self._pages.append(page)
            logger.debug("Opened page %d", page.order_index)

        item.order_index = len(page.items)
        page.items.append(item)
        self._verify()
        return page

    def remove(self, item_id: str) -> ItemT:
        """Take an item out of its page.

        Remaining items on that page are renumbered, and the page is dropped if
        it is left empty. Other pages are not compacted; call ``rebalance`` for
        that.

        Args:
            item_id: Id of the item to remove.

        Returns:
            The removed item.

        Raises:
            KeyError: If the item is not in any page.
        """
        page_index, item_index = self.locate(item_id)
        page = self._pages[page_index]
        item = page.items.pop(item_index)
        page.renumber()

        if page.is_empty:
            del self._pages[page_index]
            self._renumber_pages()
            logger.debug("Dropped empty page %d", page_index)

        self._verify()
        return item

    def rebalance(self) -> None:
        """Repack every item into full pages, keeping their overall order.

        Every page except possibly the last ends up holding exactly
        ``capacity`` items, and all page and item indices restart at 0.
        """
        flat = self.items()
        pages: List[Page[ItemT]] = []
        for start in range(0, len(flat), self._capacity):
            page = Page(order_index=len(pages), items=flat[start : start + self._capacity])
            page.renumber()
            pages.append(page)
        self._pages = pages
        logger.debug("Rebalanced %d items into %d pages of %d", len(flat), len(pages), self._capacity)
        self._verify(packed=True)

    def set_capacity(self, capacity: int) -> None:
        """Change the page capacity and repack all pages.

        Raises:
            ValueError: If capacity is not a positive integer.
        """
        self._capacity = validate_capacity(capacity)
        self.rebalance()

    def reorder_within_page(self, page_index: int, from_index: int, to_index: int) -> None:
        """Move one item to another position on the same page.

        Args:
            page_index: Page holding the item.
            from_index: Current position of the item.
            to_index: Position the item should end up at.

        Raises:
            IndexError: If the page or either position does not exist.
        """
        page = self.page(page_index)
        count = len(page.items)
        if not 0 <= from_index < count or not 0 <= to_index < count:
            raise IndexError(f"Cannot move item {from_index} to {to_index} on a page of {count} items")

        item = page.items.pop(from_index)
        page.items.insert(to_index, item)
        page.renumber()
        self._verify()

    def check_invariants(self, packed: bool = False) -> None:
        """Validate page and item bookkeeping.

        Args:
            packed: Also require every page but the last to be full.

        Raises:
            AllocatorInvariantViolation: If any index or size is inconsistent.
        """
        for page_index, page in enumerate(self._pages):
            if page.order_index != page_index:
                raise AllocatorInvariantViolation(f"Page at {page_index} has order index {page.order_index}")
            if page.is_empty:
                raise AllocatorInvariantViolation(f"Page {page_index} is empty")
            if len(page.items) > self._capacity:
                raise AllocatorInvariantViolation(
                    f"Page {page_index} holds {len(page.items)} items, capacity is {self._capacity}"
                )
            if packed and page_index < len(self._pages) - 1 and len(page.items) != self._capacity:
                raise AllocatorInvariantViolation(f"Page {page_index} is not full after rebalance")
            for item_index, item in enumerate(page.items):
                if item.order_index != item_index:
                    raise AllocatorInvariantViolation(
                        f"Item {item.id} at {page_index}/{item_index} has order index {item.order_index}"
                    )

    def _renumber_pages(self) -> None:
        for index, page in enumerate(self._pages):
            page.order_index = index

    def _verify(self, packed: bool = False) -> None:
        # Skipped under python -O, like an assert
        if __debug__:
            self.check_invariants(packed=packed)
