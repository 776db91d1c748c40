"""Tests for the shape catalog."""

import pytest

from snip_shapes import SHAPE_CATALOG, ShapeVariant, aspect_ratio, canvas_size, get_shape_info, list_shapes, shape_size


@pytest.mark.parametrize(
    "variant,expected",
    [
        (ShapeVariant.STAMP, 1.2),
        (ShapeVariant.CIRCLE, 1.0),
        (ShapeVariant.TICKET, 0.5),
        (ShapeVariant.LABEL, 0.45),
        (ShapeVariant.TORN, 1.1),
        (ShapeVariant.RECTANGLE, 0.75),
        (ShapeVariant.FRAMED_PHOTO, 1.25),
        (ShapeVariant.FILMSTRIP, 1.5),
    ],
)
def test_aspect_ratio(variant: ShapeVariant, expected: float) -> None:
    assert aspect_ratio(variant) == expected


def test_every_variant_is_cataloged() -> None:
    assert set(SHAPE_CATALOG) == set(ShapeVariant)
    assert [info.variant for info in list_shapes()] == list(ShapeVariant)


def test_only_frames_are_composite() -> None:
    composite = {info.variant for info in list_shapes() if info.composite}
    assert composite == {ShapeVariant.FRAMED_PHOTO, ShapeVariant.FILMSTRIP}


def test_lookup_by_value() -> None:
    assert get_shape_info("framed-photo").display_name == "Polaroid"  # type: ignore[arg-type]


def test_shape_size_uses_width() -> None:
    assert shape_size(ShapeVariant.STAMP, 800) == (800, 960)
    assert shape_size(ShapeVariant.LABEL, 400) == (400, 180)


@pytest.mark.parametrize("rotation,expected", [(0, (800, 400)), (90, (400, 800)), (180, (800, 400)), (270, (400, 800))])
def test_canvas_size_swaps_for_quarter_turns(rotation: int, expected: tuple) -> None:
    assert canvas_size(ShapeVariant.TICKET, 800, rotation) == expected
