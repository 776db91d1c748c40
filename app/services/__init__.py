"""Services for masking photos and paginating snip books."""

from app.services.book_service import BookService, Snip, SnipNotFound
from app.services.library_service import BookNotFound, LibraryService, get_library_service
from app.services.page_allocator import AllocatorInvariantViolation, Page, PageAllocator
from app.services.snip_masker import SnipMasker, get_snip_masker

__all__ = [
    "AllocatorInvariantViolation",
    "BookNotFound",
    "BookService",
    "LibraryService",
    "Page",
    "PageAllocator",
    "Snip",
    "SnipMasker",
    "SnipNotFound",
    "get_library_service",
    "get_snip_masker",
]
