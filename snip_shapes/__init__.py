"""Snip shapes - shared library for cutting photos into decorative shapes.

This package provides the shape catalog, vector outlines built from Bezier
curves for every shape, and the compositor that clips photos to those outlines
to produce transparent PNG snips.
"""

from .catalog import (
    SHAPE_CATALOG,
    VALID_ROTATIONS,
    ShapeInfo,
    ShapeVariant,
    aspect_ratio,
    canvas_size,
    get_shape_info,
    list_shapes,
    shape_size,
)
from .errors import GeometryError, MaskingFailed
from .geometry import arc_curves, outline_for, outline_polygons, rounded_rect_path, sprocket_holes
from .image_masking import (
    DEFAULT_OUTPUT_WIDTH,
    PREVIEW_OUTPUT_WIDTH,
    aspect_fill_rect,
    create_outline_mask,
    encode_png,
    mask_image,
    normalize_orientation,
    render_snip,
)
from .models import BezierCurve, Outline, Rect, subpath_points

__all__ = [
    # Models
    "BezierCurve",
    "Outline",
    "Rect",
    "subpath_points",
    # Catalog
    "SHAPE_CATALOG",
    "VALID_ROTATIONS",
    "ShapeInfo",
    "ShapeVariant",
    "aspect_ratio",
    "canvas_size",
    "get_shape_info",
    "list_shapes",
    "shape_size",
    # Errors
    "GeometryError",
    "MaskingFailed",
    # Geometry
    "arc_curves",
    "outline_for",
    "outline_polygons",
    "rounded_rect_path",
    "sprocket_holes",
    # Image masking
    "DEFAULT_OUTPUT_WIDTH",
    "PREVIEW_OUTPUT_WIDTH",
    "aspect_fill_rect",
    "create_outline_mask",
    "encode_png",
    "mask_image",
    "normalize_orientation",
    "render_snip",
]
