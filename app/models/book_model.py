"""Data models for snip and book operations."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field
from snip_shapes import ShapeVariant


class ShapeResponse(BaseModel):
    """Catalog entry for one shape variant."""

    name: ShapeVariant
    display_name: str
    icon_name: str
    aspect_ratio: float = Field(..., description="Height divided by width")
    composite: bool


class MaskResponse(BaseModel):
    """Response model for a masked photo returned as a data URL."""

    image: str = Field(..., description="Base64 encoded PNG with transparency")
    shape: ShapeVariant
    rotation: int
    width: int
    height: int


class SnipResponse(BaseModel):
    """A snip as it sits on its page."""

    id: str
    shape: ShapeVariant
    order_index: int
    created_at: datetime
    image_url: str
    name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    location_name: Optional[str] = None


class PageResponse(BaseModel):
    """A page and its snips in order."""

    id: str
    order_index: int
    is_full: bool
    snips: List[SnipResponse]


class BookSummary(BaseModel):
    """A book as listed in the library."""

    id: str
    title: str
    background_texture: str
    created_at: datetime
    capacity: int
    page_count: int
    snip_count: int


class BookResponse(BaseModel):
    """Snapshot of the whole book."""

    id: str
    title: str
    background_texture: str
    created_at: datetime
    capacity: int
    page_count: int
    snip_count: int
    pages: List[PageResponse]


class CapacityRequest(BaseModel):
    """Request model for changing the number of snips per page."""

    capacity: int = Field(..., ge=1, description="Snips per page")


class ReorderRequest(BaseModel):
    """Request model for moving a snip within its page."""

    from_index: int = Field(..., ge=0)
    to_index: int = Field(..., ge=0)


class SnipUpdateRequest(BaseModel):
    """Request model for editing snip details. Unset fields are left alone."""

    name: Optional[str] = Field(default=None, max_length=200)
    latitude: Optional[float] = Field(default=None, ge=-90.0, le=90.0)
    longitude: Optional[float] = Field(default=None, ge=-180.0, le=180.0)
    location_name: Optional[str] = Field(default=None, max_length=200)


class BookUpdateRequest(BaseModel):
    """Request model for editing book metadata. Unset fields are left alone."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    background_texture: Optional[str] = Field(default=None, min_length=1, max_length=64)


class BookCreateRequest(BaseModel):
    """Request model for starting a new book. A blank title gets the default one."""

    title: Optional[str] = Field(default=None, max_length=200)
    capacity: Optional[int] = Field(default=None, ge=1, description="Snips per page")
