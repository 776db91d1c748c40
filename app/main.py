"""Main FastAPI application module for Snipbook."""

import logging
from typing import List, Optional, Union

from app.config import settings
from app.models.book_model import (
    BookCreateRequest,
    BookResponse,
    BookSummary,
    BookUpdateRequest,
    CapacityRequest,
    MaskResponse,
    ReorderRequest,
    ShapeResponse,
    SnipResponse,
    SnipUpdateRequest,
)
from app.services.book_service import BookService, Snip, SnipNotFound
from app.services.library_service import BookNotFound, LibraryService, get_library_service
from app.services.snip_masker import SnipMasker, get_snip_masker
from fastapi import Depends, FastAPI, Form, HTTPException, Response, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from snip_shapes import VALID_ROTATIONS, MaskingFailed, ShapeVariant, canvas_size, list_shapes

logging.basicConfig(level=settings.LOG_LEVEL)

# Initialize FastAPI app
app = FastAPI(title=settings.PROJECT_NAME)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


async def _read_upload(file: Optional[UploadFile]) -> bytes:
    """Read an uploaded photo, enforcing presence and size limits.

    Raises:
        HTTPException: If no file was sent or it is too large.
    """
    if file is None:
        raise HTTPException(status_code=400, detail="No file provided")

    if file.size and file.size > settings.MAX_UPLOAD_SIZE:
        raise HTTPException(status_code=413, detail="File too large")

    contents = await file.read()
    if len(contents) > settings.MAX_UPLOAD_SIZE:
        raise HTTPException(status_code=413, detail="File too large")
    if not contents:
        raise HTTPException(status_code=400, detail="Empty file")
    return contents


async def _mask_upload(
    masker: SnipMasker,
    contents: bytes,
    shape: ShapeVariant,
    rotation: int,
    preview: bool = False,
    width: Optional[int] = None,
) -> bytes:
    """Mask an upload in the threadpool, mapping failures to HTTP errors."""
    if rotation not in VALID_ROTATIONS:
        raise HTTPException(status_code=422, detail=f"Rotation must be one of {list(VALID_ROTATIONS)}")
    try:
        masker.resolve_width(preview, width)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    try:
        return await run_in_threadpool(masker.mask, contents, shape, rotation, preview, width)
    except MaskingFailed as e:
        raise HTTPException(status_code=422, detail=str(e))


def get_book_or_404(book_id: str, library: LibraryService = Depends(get_library_service)) -> BookService:
    """Resolve the ``book_id`` path parameter to a book.

    Raises:
        HTTPException: If the library has no such book.
    """
    try:
        return library.get_book(book_id)
    except BookNotFound:
        raise HTTPException(status_code=404, detail="Book not found")


def _get_snip_or_404(book: BookService, snip_id: str) -> Snip:
    try:
        return book.get_snip(snip_id)
    except SnipNotFound:
        raise HTTPException(status_code=404, detail="Snip not found")


def _snip_response(book: BookService, snip_id: str) -> SnipResponse:
    """Find a snip in a fresh snapshot of the book."""
    for page in book.snapshot().pages:
        for snip in page.snips:
            if snip.id == snip_id:
                return snip
    raise HTTPException(status_code=404, detail="Snip not found")


@app.get("/health")
def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/api/v1/shapes", response_model=List[ShapeResponse])
def get_shapes() -> List[ShapeResponse]:
    """List every shape a photo can be cut into."""
    return [
        ShapeResponse(
            name=info.variant,
            display_name=info.display_name,
            icon_name=info.icon_name,
            aspect_ratio=info.aspect_ratio,
            composite=info.composite,
        )
        for info in list_shapes()
    ]


@app.post("/api/v1/snips/mask", response_model=None)
async def mask_photo(
    file: Optional[UploadFile] = None,
    shape: ShapeVariant = Form(...),
    rotation: int = Form(0),
    preview: bool = Form(False),
    width: Optional[int] = Form(None),
    as_data_url: bool = Form(False),
    masker: SnipMasker = Depends(get_snip_masker),
) -> Union[Response, MaskResponse]:
    """Cut a photo into a shape without adding it to the book.

    Args:
        file: The photo file.
        shape: Shape to cut.
        rotation: Clockwise rotation in degrees (0, 90, 180, 270).
        preview: Render at preview resolution.
        width: Explicit width in pixels.
        as_data_url: Return JSON with a base64 data URL instead of raw PNG.

    Returns:
        PNG bytes, or a MaskResponse when ``as_data_url`` is set.

    Raises:
        HTTPException: If the file is missing, too large or cannot be masked.
    """
    contents = await _read_upload(file)
    png = await _mask_upload(masker, contents, shape, rotation, preview, width)

    if as_data_url:
        out_w, out_h = canvas_size(shape, masker.resolve_width(preview, width), rotation)
        return MaskResponse(
            image=masker.to_data_url(png),
            shape=shape,
            rotation=rotation,
            width=out_w,
            height=out_h,
        )
    return Response(content=png, media_type="image/png")


@app.get("/api/v1/books", response_model=List[BookSummary])
def list_books(library: LibraryService = Depends(get_library_service)) -> List[BookSummary]:
    """List every book, newest first."""
    return [book.summary() for book in library.list_books()]


@app.post("/api/v1/books", response_model=BookResponse, status_code=201)
def create_book(
    request: Optional[BookCreateRequest] = None,
    library: LibraryService = Depends(get_library_service),
) -> BookResponse:
    """Start a new, empty book."""
    request = request or BookCreateRequest()
    try:
        book = library.create_book(title=request.title, capacity=request.capacity)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return book.snapshot()


@app.get("/api/v1/books/{book_id}", response_model=BookResponse)
def get_book(book: BookService = Depends(get_book_or_404)) -> BookResponse:
    """Return the pages and snips of a book."""
    return book.snapshot()


@app.patch("/api/v1/books/{book_id}", response_model=BookResponse)
def update_book(request: BookUpdateRequest, book: BookService = Depends(get_book_or_404)) -> BookResponse:
    """Rename a book or change its background."""
    try:
        book.update_metadata(title=request.title, background_texture=request.background_texture)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return book.snapshot()


@app.delete("/api/v1/books/{book_id}", status_code=204)
def delete_book(book_id: str, library: LibraryService = Depends(get_library_service)) -> Response:
    """Delete a book with all of its pages and snips."""
    try:
        library.delete_book(book_id)
    except BookNotFound:
        raise HTTPException(status_code=404, detail="Book not found")
    return Response(status_code=204)


@app.post("/api/v1/books/{book_id}/snips", response_model=SnipResponse)
async def add_snip(
    file: Optional[UploadFile] = None,
    shape: ShapeVariant = Form(...),
    rotation: int = Form(0),
    name: Optional[str] = Form(None),
    latitude: Optional[float] = Form(None),
    longitude: Optional[float] = Form(None),
    location_name: Optional[str] = Form(None),
    masker: SnipMasker = Depends(get_snip_masker),
    book: BookService = Depends(get_book_or_404),
) -> SnipResponse:
    """Cut a photo into a shape and append it to the last page of the book.

    Raises:
        HTTPException: If the book does not exist, or the file is missing, too
            large or cannot be masked.
    """
    contents = await _read_upload(file)
    png = await _mask_upload(masker, contents, shape, rotation)
    snip = book.add_snip(
        png,
        shape,
        name=name,
        latitude=latitude,
        longitude=longitude,
        location_name=location_name,
    )
    return _snip_response(book, snip.id)


@app.get("/api/v1/books/{book_id}/snips/{snip_id}/image")
def get_snip_image(snip_id: str, book: BookService = Depends(get_book_or_404)) -> Response:
    """Return the transparent PNG of a snip."""
    snip = _get_snip_or_404(book, snip_id)
    return Response(content=snip.image, media_type="image/png")


@app.put("/api/v1/books/{book_id}/snips/{snip_id}", response_model=SnipResponse)
async def replace_snip(
    snip_id: str,
    file: Optional[UploadFile] = None,
    shape: ShapeVariant = Form(...),
    rotation: int = Form(0),
    masker: SnipMasker = Depends(get_snip_masker),
    book: BookService = Depends(get_book_or_404),
) -> SnipResponse:
    """Re-cut a snip from a new photo and/or shape, keeping its place in the book."""
    _get_snip_or_404(book, snip_id)
    contents = await _read_upload(file)
    png = await _mask_upload(masker, contents, shape, rotation)
    try:
        book.replace_image(snip_id, png, shape)
    except SnipNotFound:
        raise HTTPException(status_code=404, detail="Snip not found")
    return _snip_response(book, snip_id)


@app.patch("/api/v1/books/{book_id}/snips/{snip_id}", response_model=SnipResponse)
def update_snip(
    snip_id: str,
    request: SnipUpdateRequest,
    book: BookService = Depends(get_book_or_404),
) -> SnipResponse:
    """Rename a snip or set its location."""
    try:
        book.update_details(snip_id, **request.model_dump(exclude_unset=True))
    except SnipNotFound:
        raise HTTPException(status_code=404, detail="Snip not found")
    return _snip_response(book, snip_id)


@app.delete("/api/v1/books/{book_id}/snips/{snip_id}", response_model=BookResponse)
def delete_snip(snip_id: str, book: BookService = Depends(get_book_or_404)) -> BookResponse:
    """Delete a snip and repack the pages."""
    try:
        book.delete_snip(snip_id, rebalance=True)
    except SnipNotFound:
        raise HTTPException(status_code=404, detail="Snip not found")
    return book.snapshot()


@app.post("/api/v1/books/{book_id}/undo", response_model=BookResponse)
def undo_last_snip(book: BookService = Depends(get_book_or_404)) -> BookResponse:
    """Remove the most recently added snip, if any."""
    if book.undo_last() is None:
        raise HTTPException(status_code=409, detail="Nothing to undo")
    return book.snapshot()


@app.post("/api/v1/books/{book_id}/rebalance", response_model=BookResponse)
def rebalance_book(book: BookService = Depends(get_book_or_404)) -> BookResponse:
    """Repack all snips into full pages."""
    book.rebalance()
    return book.snapshot()


@app.put("/api/v1/books/{book_id}/capacity", response_model=BookResponse)
def set_capacity(request: CapacityRequest, book: BookService = Depends(get_book_or_404)) -> BookResponse:
    """Change the number of snips per page."""
    try:
        book.set_capacity(request.capacity)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return book.snapshot()


@app.post("/api/v1/books/{book_id}/pages/{page_index}/reorder", response_model=BookResponse)
def reorder_page(
    page_index: int,
    request: ReorderRequest,
    book: BookService = Depends(get_book_or_404),
) -> BookResponse:
    """Move a snip to another position on the same page."""
    try:
        book.reorder(page_index, request.from_index, request.to_index)
    except IndexError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return book.snapshot()
