"""Static metadata for every snip shape variant."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Tuple


class ShapeVariant(str, Enum):
    """Closed set of cut-out silhouettes."""

    STAMP = "stamp"
    CIRCLE = "circle"
    TICKET = "ticket"
    LABEL = "label"
    TORN = "torn"
    RECTANGLE = "rectangle"
    FRAMED_PHOTO = "framed-photo"
    FILMSTRIP = "filmstrip"


@dataclass(frozen=True)
class ShapeInfo:
    """Display and sizing metadata for a shape variant."""

    variant: ShapeVariant
    display_name: str
    icon_name: str
    # Height divided by width
    aspect_ratio: float
    # Composite shapes paint a frame and clip the photo to an inner window
    composite: bool = False


SHAPE_CATALOG: Dict[ShapeVariant, ShapeInfo] = {
    ShapeVariant.STAMP: ShapeInfo(ShapeVariant.STAMP, "Stamp", "stamp", 1.2),
    ShapeVariant.CIRCLE: ShapeInfo(ShapeVariant.CIRCLE, "Circle", "circle", 1.0),
    ShapeVariant.TICKET: ShapeInfo(ShapeVariant.TICKET, "Ticket", "ticket", 0.5),
    ShapeVariant.LABEL: ShapeInfo(ShapeVariant.LABEL, "Label", "tag", 0.45),
    ShapeVariant.TORN: ShapeInfo(ShapeVariant.TORN, "Torn", "scribble", 1.1),
    ShapeVariant.RECTANGLE: ShapeInfo(ShapeVariant.RECTANGLE, "Rectangle", "rectangle", 0.75),
    ShapeVariant.FRAMED_PHOTO: ShapeInfo(ShapeVariant.FRAMED_PHOTO, "Polaroid", "photo", 1.25, composite=True),
    ShapeVariant.FILMSTRIP: ShapeInfo(ShapeVariant.FILMSTRIP, "Filmstrip", "film", 1.5, composite=True),
}

VALID_ROTATIONS = (0, 90, 180, 270)


def get_shape_info(variant: ShapeVariant) -> ShapeInfo:
    """Look up the catalog entry for a variant."""
    return SHAPE_CATALOG[ShapeVariant(variant)]


def aspect_ratio(variant: ShapeVariant) -> float:
    """Intrinsic height / width ratio of a variant."""
    return get_shape_info(variant).aspect_ratio


def list_shapes() -> List[ShapeInfo]:
    """All catalog entries in declaration order."""
    return [SHAPE_CATALOG[v] for v in ShapeVariant]


def shape_size(variant: ShapeVariant, width: int) -> Tuple[int, int]:
    """Pre-rotation (width, height) in pixels for a shape drawn at ``width``."""
    return width, max(1, int(round(width * aspect_ratio(variant))))


def canvas_size(variant: ShapeVariant, width: int, rotation: int = 0) -> Tuple[int, int]:
    """Final canvas (width, height): the shape size, swapped for quarter turns.

    Args:
        variant: Shape variant.
        width: Pre-rotation width of the shape in pixels.
        rotation: Rotation in degrees (0, 90, 180, 270).

    Returns:
        Canvas size after rotation.
    """
    w, h = shape_size(variant, width)
    if rotation % 180 == 90:
        return h, w
    return w, h
