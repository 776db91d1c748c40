"""Cut photos into transparent snips using shape outlines."""

import io
import logging
import math
from typing import Dict, List, Tuple

from PIL import Image, ImageChops, ImageDraw, ImageOps, UnidentifiedImageError

from .catalog import VALID_ROTATIONS, ShapeVariant, get_shape_info, shape_size
from .errors import GeometryError, MaskingFailed
from .geometry import FRAME_CORNER_RADIUS, outline_for
from .models import BezierCurve, Outline, Point, Rect, subpath_points

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_WIDTH = 800
PREVIEW_OUTPUT_WIDTH = 400
DEFAULT_SUPERSAMPLE = 4
POINTS_PER_CURVE = 12
# Upper bound on the oversampled mask area (pixels)
MAX_SUPERSAMPLED_PIXELS = 4096 * 4096

FRAME_COLORS: Dict[ShapeVariant, Tuple[int, int, int]] = {
    ShapeVariant.FRAMED_PHOTO: (255, 255, 255),
    ShapeVariant.FILMSTRIP: (28, 28, 30),
}
# 1px hairline around the frame edge
FRAME_STROKES: Dict[ShapeVariant, Tuple[int, int, int]] = {
    ShapeVariant.FRAMED_PHOTO: (217, 217, 217),
}


def aspect_fill_rect(image_size: Tuple[int, int], target: Rect) -> Rect:
    """Placement rect that covers ``target`` with the image, keeping its aspect ratio.

    The side that fits exactly matches the target; the other overflows and is
    centered, so the image is cropped evenly on both sides and never stretched.

    Args:
        image_size: (width, height) of the source image.
        target: Rectangle to cover.

    Returns:
        The rectangle to draw the whole image into.
    """
    image_w, image_h = image_size
    image_aspect = image_w / image_h
    target_aspect = target.width / target.height

    if image_aspect > target_aspect:
        # Image is wider - fit height, overflow width
        height = target.height
        width = height * image_aspect
        return Rect(target.mid_x - width / 2, target.min_y, width, height)

    # Image is taller (or equal) - fit width, overflow height
    width = target.width
    height = width / image_aspect
    return Rect(target.min_x, target.mid_y - height / 2, width, height)


def normalize_orientation(image: Image.Image) -> Image.Image:
    """Bake EXIF orientation into the pixels and convert to RGBA."""
    upright = ImageOps.exif_transpose(image)
    if upright is None:
        upright = image
    if upright.mode != "RGBA":
        upright = upright.convert("RGBA")
    return upright


def effective_supersample(size: Tuple[int, int], supersample: int = DEFAULT_SUPERSAMPLE) -> int:
    """Largest factor up to ``supersample`` whose oversampled canvas fits the pixel budget.

    Large canvases already have smooth edges at 1x, so the factor drops
    towards 1 instead of allocating masks of hundreds of megapixels.
    """
    width, height = size
    factor = max(1, int(supersample))
    while factor > 1 and width * height * factor * factor > MAX_SUPERSAMPLED_PIXELS:
        factor -= 1
    return factor


def _pixel_bounds(curves: List[BezierCurve], size: Tuple[int, int]) -> Tuple[int, int, int, int]:
    """Integer (left, top, right, bottom) covering a path, clipped to the canvas."""
    bounds = Outline(contour=curves).bounds()
    return (
        max(0, int(math.floor(bounds.min_x))),
        max(0, int(math.floor(bounds.min_y))),
        min(size[0], int(math.ceil(bounds.max_x))),
        min(size[1], int(math.ceil(bounds.max_y))),
    )


def create_outline_mask(
    paths: List[List[BezierCurve]],
    size: Tuple[int, int],
    supersample: int = DEFAULT_SUPERSAMPLE,
) -> Image.Image:
    """Rasterize closed paths into an anti-aliased grayscale mask.

    Each path is filled at ``supersample`` times the final resolution over its
    own bounding box only and box filtered down, so interiors are exactly 255,
    exteriors exactly 0 and edges are smooth. The factor shrinks for large
    canvases (see ``effective_supersample``).

    Args:
        paths: Closed sub-paths to fill (union).
        size: (width, height) of the mask.
        supersample: Oversampling factor per axis.

    Returns:
        Mode "L" mask image.
    """
    factor = effective_supersample(size, supersample)
    mask = Image.new("L", size, 0)
    for curves in paths:
        if not curves:
            continue
        left, top, right, bottom = _pixel_bounds(curves, size)
        if right <= left or bottom <= top:
            continue

        # Draw in the box's own coordinates, oversampled
        local = [
            BezierCurve(*[((x - left) * factor, (y - top) * factor) for x, y in curve.control_points()])
            for curve in curves
        ]
        polygon: List[Point] = subpath_points(local, POINTS_PER_CURVE)
        if len(polygon) < 3:
            continue
        box_size = (right - left, bottom - top)
        big = Image.new("L", (box_size[0] * factor, box_size[1] * factor), 0)
        ImageDraw.Draw(big).polygon(polygon, fill=255)
        patch = big if factor == 1 else big.resize(box_size, Image.Resampling.BOX)

        region = (left, top, right, bottom)
        mask.paste(ImageChops.lighter(mask.crop(region), patch), region)
    return mask


def place_photo(photo: Image.Image, placement: Rect, canvas_size: Tuple[int, int]) -> Image.Image:
    """Draw ``photo`` scaled into ``placement`` on a transparent canvas.

    Only the part of the placement rect that lands on the canvas is resampled.
    """
    canvas_w, canvas_h = canvas_size
    layer = Image.new("RGBA", canvas_size, (0, 0, 0, 0))

    left = max(0, int(math.floor(placement.min_x)))
    top = max(0, int(math.floor(placement.min_y)))
    right = min(canvas_w, int(math.ceil(placement.max_x)))
    bottom = min(canvas_h, int(math.ceil(placement.max_y)))
    if right <= left or bottom <= top:
        return layer

    scale_x = placement.width / photo.width
    scale_y = placement.height / photo.height
    box = (
        min(max((left - placement.x) / scale_x, 0.0), float(photo.width)),
        min(max((top - placement.y) / scale_y, 0.0), float(photo.height)),
        min(max((right - placement.x) / scale_x, 0.0), float(photo.width)),
        min(max((bottom - placement.y) / scale_y, 0.0), float(photo.height)),
    )
    region = photo.resize((right - left, bottom - top), Image.Resampling.LANCZOS, box=box)
    layer.paste(region, (left, top))
    return layer


def apply_mask(layer: Image.Image, mask: Image.Image) -> Image.Image:
    """Multiply the alpha channel of an RGBA layer by a mask."""
    alpha = ImageChops.multiply(layer.getchannel("A"), mask)
    layer.putalpha(alpha)
    return layer


def punch_cutouts(canvas: Image.Image, outline: Outline, supersample: int = DEFAULT_SUPERSAMPLE) -> Image.Image:
    """Make every cutout of the outline fully transparent."""
    if not outline.cutouts:
        return canvas
    holes = create_outline_mask(outline.cutouts, canvas.size, supersample)
    return apply_mask(canvas, ImageOps.invert(holes))


def _path_rect(curves: List[BezierCurve]) -> Rect:
    return Outline(contour=curves).bounds()


def stroke_frame(frame: Image.Image, color: Tuple[int, int, int]) -> Image.Image:
    """Draw a 1px rounded border just inside the frame edge."""
    width, height = frame.size
    radius = min(width * FRAME_CORNER_RADIUS, min(width, height) / 2)
    ImageDraw.Draw(frame).rounded_rectangle(
        (0, 0, width - 1, height - 1), radius=int(round(radius)), outline=color + (255,), width=1
    )
    return frame


def render_snip(
    image: Image.Image,
    variant: ShapeVariant,
    rotation: int = 0,
    width: int = DEFAULT_OUTPUT_WIDTH,
    supersample: int = DEFAULT_SUPERSAMPLE,
) -> Image.Image:
    """Cut an image into a transparent snip.

    The shape is built upright in its own rectangle, the photo is aspect-filled
    into the clip region, and the finished canvas is turned clockwise by
    ``rotation`` so quarter turns swap the output width and height.

    Args:
        image: Source photo.
        variant: Shape to cut.
        rotation: Clockwise rotation in degrees (0, 90, 180, 270).
        width: Width of the upright shape in pixels.
        supersample: Anti-aliasing factor for the outline masks.

    Returns:
        RGBA image, transparent outside the shape.
    """
    variant = ShapeVariant(variant)
    if rotation not in VALID_ROTATIONS:
        raise ValueError(f"Rotation must be one of {VALID_ROTATIONS}, got {rotation}")

    size = shape_size(variant, width)
    outline = outline_for(variant, Rect.from_size(*size))
    photo = normalize_orientation(image)

    if get_shape_info(variant).composite and outline.window is not None:
        # Solid frame first, then the photo clipped to the inner window
        frame = Image.new("RGBA", size, FRAME_COLORS.get(variant, (255, 255, 255)) + (255,))
        frame = apply_mask(frame, create_outline_mask([outline.contour], size, supersample))
        if variant in FRAME_STROKES:
            frame = stroke_frame(frame, FRAME_STROKES[variant])
        window = _path_rect(outline.window)
        photo_layer = place_photo(photo, aspect_fill_rect(photo.size, window), size)
        photo_layer = apply_mask(photo_layer, create_outline_mask([outline.window], size, supersample))
        canvas = Image.alpha_composite(frame, photo_layer)
    else:
        placement = aspect_fill_rect(photo.size, Rect.from_size(*size))
        canvas = place_photo(photo, placement, size)
        canvas = apply_mask(canvas, create_outline_mask([outline.contour], size, supersample))

    canvas = punch_cutouts(canvas, outline, supersample)

    if rotation:
        canvas = canvas.rotate(-rotation, expand=True)
    return canvas


def encode_png(image: Image.Image) -> bytes:
    """Encode an image as PNG bytes."""
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def mask_image(
    image_bytes: bytes,
    variant: ShapeVariant,
    rotation: int = 0,
    width: int = DEFAULT_OUTPUT_WIDTH,
    supersample: int = DEFAULT_SUPERSAMPLE,
) -> bytes:
    """Decode a photo, cut it into a snip and return transparent PNG bytes.

    Args:
        image_bytes: Encoded source photo (JPEG, PNG, ...).
        variant: Shape to cut.
        rotation: Clockwise rotation in degrees (0, 90, 180, 270).
        width: Width of the upright shape in pixels.
        supersample: Anti-aliasing factor for the outline masks.

    Returns:
        PNG bytes with an alpha channel.

    Raises:
        ValueError: If the variant or rotation is not supported.
        GeometryError: If width is not positive.
        MaskingFailed: If the photo cannot be decoded or the snip cannot be rendered.
    """
    variant = ShapeVariant(variant)
    if rotation not in VALID_ROTATIONS:
        raise ValueError(f"Rotation must be one of {VALID_ROTATIONS}, got {rotation}")
    if width < 1:
        raise GeometryError(f"Output width must be positive, got {width}")

    try:
        with Image.open(io.BytesIO(image_bytes)) as source:
            source.load()
            snip = render_snip(source, variant, rotation=rotation, width=width, supersample=supersample)
        return encode_png(snip)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError, MemoryError) as e:
        logger.warning("Masking %s snip failed: %s", variant.value, e)
        raise MaskingFailed(f"Could not cut photo into a {variant.value} snip: {e}") from e
