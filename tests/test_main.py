"""Test module for the Snipbook FastAPI application."""

import base64
import io
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from app.main import app, settings
from app.services.book_service import BookService
from app.services.library_service import LibraryService, get_library_service
from app.services.snip_masker import SnipMasker, get_snip_masker

client = TestClient(app)


def make_photo(size: tuple[int, int] = (120, 90)) -> bytes:
    """Create a small JPEG for uploads."""
    buffer = io.BytesIO()
    Image.new("RGB", size, (200, 120, 40)).save(buffer, format="JPEG")
    return buffer.getvalue()


def upload(content: bytes = b"") -> dict:
    return {"file": ("photo.jpg", content or make_photo(), "image/jpeg")}


@pytest.fixture(autouse=True)
def library() -> Generator[LibraryService, None, None]:
    """Swap in a fresh library and a fast masker for each test."""
    library = LibraryService(default_title="Test Book", capacity=2, max_capacity=5, api_prefix=settings.API_V1_STR)
    masker = SnipMasker(output_width=80, preview_width=40, max_width=200, supersample=1)
    app.dependency_overrides[get_library_service] = lambda: library
    app.dependency_overrides[get_snip_masker] = lambda: masker

    yield library

    app.dependency_overrides.clear()


@pytest.fixture
def services(library: LibraryService) -> BookService:
    """A book already in the library."""
    return library.create_book()


@pytest.fixture
def book_path(services: BookService) -> str:
    return f"/api/v1/books/{services.id}"


def add(book_path: str, shape: str = "stamp", **form: str) -> dict:
    response = client.post(f"{book_path}/snips", files=upload(), data={"shape": shape, **form})
    assert response.status_code == 200, response.text
    return response.json()


def test_health_check() -> None:
    """Test the health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_list_shapes() -> None:
    response = client.get("/api/v1/shapes")
    assert response.status_code == 200
    shapes = {shape["name"]: shape for shape in response.json()}
    assert len(shapes) == 8
    assert shapes["ticket"]["aspect_ratio"] == 0.5
    assert shapes["framed-photo"]["display_name"] == "Polaroid"
    assert shapes["filmstrip"]["composite"] is True


class TestMaskEndpoint:
    """Tests for masking a photo without storing it."""

    def test_returns_png(self) -> None:
        response = client.post("/api/v1/snips/mask", files=upload(), data={"shape": "stamp"})
        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        image = Image.open(io.BytesIO(response.content))
        assert image.mode == "RGBA"
        assert image.size == (80, 96)

    def test_rotation_and_preview(self) -> None:
        response = client.post(
            "/api/v1/snips/mask",
            files=upload(),
            data={"shape": "ticket", "rotation": "90", "preview": "true"},
        )
        assert response.status_code == 200
        assert Image.open(io.BytesIO(response.content)).size == (20, 40)

    def test_data_url(self) -> None:
        response = client.post(
            "/api/v1/snips/mask",
            files=upload(),
            data={"shape": "circle", "width": "50", "as_data_url": "true"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["shape"] == "circle"
        assert (body["width"], body["height"]) == (50, 50)
        assert body["image"].startswith("data:image/png;base64,")
        png = base64.b64decode(body["image"].split(",", 1)[1])
        assert Image.open(io.BytesIO(png)).size == (50, 50)

    def test_missing_file(self) -> None:
        response = client.post("/api/v1/snips/mask", data={"shape": "stamp"})
        assert response.status_code == 400

    def test_file_too_large(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE", 16)
        response = client.post("/api/v1/snips/mask", files=upload(), data={"shape": "stamp"})
        assert response.status_code == 413

    def test_undecodable_file(self) -> None:
        response = client.post("/api/v1/snips/mask", files=upload(b"not a photo"), data={"shape": "stamp"})
        assert response.status_code == 422

    @pytest.mark.parametrize(
        "form",
        [
            {"shape": "hexagon"},
            {"shape": "stamp", "rotation": "45"},
            {"shape": "stamp", "width": "0"},
            {"shape": "stamp", "width": "5000"},
        ],
    )
    def test_invalid_parameters(self, form: dict) -> None:
        response = client.post("/api/v1/snips/mask", files=upload(), data=form)
        assert response.status_code == 422


class TestLibraryEndpoints:
    """Tests for creating, listing and removing books."""

    def test_empty_library(self) -> None:
        response = client.get("/api/v1/books")
        assert response.status_code == 200
        assert response.json() == []

    def test_create_book_trims_title(self) -> None:
        response = client.post("/api/v1/books", json={"title": "  Lisbon  "})
        assert response.status_code == 201
        body = response.json()
        assert body["title"] == "Lisbon"
        assert body["capacity"] == 2
        assert body["pages"] == []
        assert client.get(f"/api/v1/books/{body['id']}").json()["title"] == "Lisbon"

    @pytest.mark.parametrize("payload", [None, {}, {"title": "   "}])
    def test_create_book_without_title_uses_default(self, payload: dict) -> None:
        response = client.post("/api/v1/books", json=payload)
        assert response.status_code == 201
        assert response.json()["title"] == "Test Book"

    def test_create_book_with_capacity(self) -> None:
        assert client.post("/api/v1/books", json={"capacity": 3}).json()["capacity"] == 3
        assert client.post("/api/v1/books", json={"capacity": 9}).status_code == 400
        assert client.post("/api/v1/books", json={"capacity": 0}).status_code == 422

    def test_list_books_newest_first(self) -> None:
        ids = [client.post("/api/v1/books", json={"title": title}).json()["id"] for title in ("A", "B", "C")]
        books = client.get("/api/v1/books").json()
        assert [book["id"] for book in books] == ids[::-1]
        assert [book["title"] for book in books] == ["C", "B", "A"]
        assert "pages" not in books[0]

    def test_listing_counts_snips_and_pages(self, book_path: str) -> None:
        for _ in range(3):
            add(book_path)
        (summary,) = client.get("/api/v1/books").json()
        assert summary["snip_count"] == 3
        assert summary["page_count"] == 2

    def test_delete_book_removes_its_snips(self, book_path: str) -> None:
        snip = add(book_path)
        response = client.delete(book_path)
        assert response.status_code == 204
        assert client.get(book_path).status_code == 404
        assert client.get(snip["image_url"]).status_code == 404
        assert client.get("/api/v1/books").json() == []
        assert client.delete(book_path).status_code == 404

    def test_books_keep_separate_pages(self, book_path: str) -> None:
        other = client.post("/api/v1/books", json={"title": "Other"}).json()["id"]
        snip = add(book_path)
        assert client.get(f"/api/v1/books/{other}").json()["snip_count"] == 0
        assert client.get(f"/api/v1/books/{other}/snips/{snip['id']}/image").status_code == 404

    @pytest.mark.parametrize(
        "method,path",
        [
            ("get", ""),
            ("patch", ""),
            ("get", "/snips/abc/image"),
            ("post", "/undo"),
            ("post", "/rebalance"),
        ],
    )
    def test_unknown_book(self, method: str, path: str) -> None:
        kwargs = {"json": {"title": "x"}} if method == "patch" else {}
        response = getattr(client, method)(f"/api/v1/books/missing{path}", **kwargs)
        assert response.status_code == 404
        assert response.json()["detail"] == "Book not found"

    def test_add_snip_to_unknown_book(self) -> None:
        response = client.post("/api/v1/books/missing/snips", files=upload(), data={"shape": "stamp"})
        assert response.status_code == 404


class TestBookEndpoints:
    """Tests for building and editing a book."""

    def test_empty_book(self, book_path: str, services: BookService) -> None:
        response = client.get(book_path)
        assert response.status_code == 200
        body = response.json()
        assert body["id"] == services.id
        assert body["title"] == "Test Book"
        assert body["capacity"] == 2
        assert body["pages"] == []

    def test_add_snip_and_fetch_image(self, book_path: str) -> None:
        snip = add(book_path, "label", name="Market", latitude="41.15", longitude="-8.61", location_name="Porto")
        assert snip["shape"] == "label"
        assert snip["name"] == "Market"
        assert snip["latitude"] == pytest.approx(41.15)
        assert snip["order_index"] == 0
        assert snip["image_url"] == f"{book_path}/snips/{snip['id']}/image"

        image = client.get(snip["image_url"])
        assert image.status_code == 200
        assert image.headers["content-type"] == "image/png"
        assert Image.open(io.BytesIO(image.content)).size == (80, 36)

    def test_snips_fill_pages(self, book_path: str) -> None:
        for _ in range(3):
            add(book_path)
        body = client.get(book_path).json()
        assert body["page_count"] == 2
        assert body["snip_count"] == 3
        assert [len(page["snips"]) for page in body["pages"]] == [2, 1]
        assert body["pages"][0]["is_full"] is True

    def test_add_snip_with_bad_photo_adds_nothing(self, book_path: str, services: BookService) -> None:
        response = client.post(f"{book_path}/snips", files=upload(b"garbage"), data={"shape": "stamp"})
        assert response.status_code == 422
        assert services.snapshot().snip_count == 0

    def test_unknown_snip_image(self, book_path: str) -> None:
        assert client.get(f"{book_path}/snips/missing/image").status_code == 404

    def test_replace_snip(self, book_path: str) -> None:
        snip = add(book_path, "stamp")
        response = client.put(
            f"{book_path}/snips/{snip['id']}",
            files=upload(),
            data={"shape": "circle"},
        )
        assert response.status_code == 200
        assert response.json()["shape"] == "circle"
        image = client.get(snip["image_url"])
        assert Image.open(io.BytesIO(image.content)).size == (80, 80)

    def test_replace_unknown_snip(self, book_path: str) -> None:
        response = client.put(f"{book_path}/snips/missing", files=upload(), data={"shape": "circle"})
        assert response.status_code == 404

    def test_update_snip_details(self, book_path: str) -> None:
        snip = add(book_path)
        response = client.patch(f"{book_path}/snips/{snip['id']}", json={"name": "Beach", "latitude": 10.5})
        assert response.status_code == 200
        assert response.json()["name"] == "Beach"
        assert response.json()["latitude"] == 10.5

    def test_update_snip_rejects_bad_latitude(self, book_path: str) -> None:
        snip = add(book_path)
        response = client.patch(f"{book_path}/snips/{snip['id']}", json={"latitude": 120})
        assert response.status_code == 422

    def test_delete_snip_repacks(self, book_path: str) -> None:
        ids = [add(book_path)["id"] for _ in range(5)]
        response = client.delete(f"{book_path}/snips/{ids[1]}")
        assert response.status_code == 200
        pages = response.json()["pages"]
        assert [[s["id"] for s in page["snips"]] for page in pages] == [[ids[0], ids[2]], [ids[3], ids[4]]]
        assert client.delete(f"{book_path}/snips/{ids[1]}").status_code == 404

    def test_undo(self, book_path: str) -> None:
        first = add(book_path)["id"]
        add(book_path)
        response = client.post(f"{book_path}/undo")
        assert response.status_code == 200
        assert [s["id"] for s in response.json()["pages"][0]["snips"]] == [first]
        assert client.post(f"{book_path}/undo").status_code == 409

    def test_set_capacity(self, book_path: str) -> None:
        for _ in range(5):
            add(book_path)
        response = client.put(f"{book_path}/capacity", json={"capacity": 3})
        assert response.status_code == 200
        assert [len(page["snips"]) for page in response.json()["pages"]] == [3, 2]

    @pytest.mark.parametrize("capacity,status", [(0, 422), (6, 400)])
    def test_set_capacity_out_of_range(self, book_path: str, capacity: int, status: int) -> None:
        response = client.put(f"{book_path}/capacity", json={"capacity": capacity})
        assert response.status_code == status

    def test_rebalance(self, book_path: str, services: BookService) -> None:
        ids = [add(book_path)["id"] for _ in range(4)]
        services.delete_snip(ids[0], rebalance=False)
        response = client.post(f"{book_path}/rebalance")
        assert response.status_code == 200
        assert [len(page["snips"]) for page in response.json()["pages"]] == [2, 1]

    def test_reorder_page(self, book_path: str) -> None:
        ids = [add(book_path)["id"] for _ in range(2)]
        response = client.post(f"{book_path}/pages/0/reorder", json={"from_index": 1, "to_index": 0})
        assert response.status_code == 200
        assert [s["id"] for s in response.json()["pages"][0]["snips"]] == [ids[1], ids[0]]

    def test_reorder_out_of_range(self, book_path: str) -> None:
        add(book_path)
        response = client.post(f"{book_path}/pages/3/reorder", json={"from_index": 0, "to_index": 0})
        assert response.status_code == 400

    def test_update_book(self, book_path: str) -> None:
        response = client.patch(book_path, json={"title": " Road Trip ", "background_texture": "kraft"})
        assert response.status_code == 200
        assert response.json()["title"] == "Road Trip"
        assert response.json()["background_texture"] == "kraft"

    def test_rename_to_blank_title_is_rejected(self, book_path: str) -> None:
        assert client.patch(book_path, json={"title": "   "}).status_code == 400
        assert client.get(book_path).json()["title"] == "Test Book"
