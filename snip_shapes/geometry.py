"""Geometric logic for generating snip outlines.

Every builder takes the target rectangle and returns a closed ``Outline``.
Proportions are fractions of the rectangle width (a few also use the height),
so the same shape drawn at preview and at full resolution differs only in
pixel count. Insets and radii are capped by the shorter side, which keeps
every outline inside its rectangle however wide or tall it is. Coordinates
follow image conventions: y grows downward and an angle of 90 degrees points
down.
"""

import math
from typing import Callable, Dict, List, Sequence, Tuple

from .catalog import ShapeVariant
from .errors import GeometryError
from .models import BezierCurve, Outline, Point, Rect, subpath_points

# Largest inset as a fraction of the shorter rect side
MAX_INSET = 0.25

# Postage stamp perforations
STAMP_PERFORATION_RADIUS = 0.025
STAMP_PERFORATION_SPACING = 0.08

CIRCLE_DIAMETER = 0.9

# Ticket
TICKET_INSET = 0.05
TICKET_CORNER_RADIUS = 0.03
TICKET_NOTCH_RADIUS = 0.06

# Luggage label
LABEL_INSET = 0.05
LABEL_POINT_DEPTH = 0.12
LABEL_CORNER_RADIUS = 0.03
LABEL_HOLE_RADIUS = 0.025

TORN_INSET = 0.08

RECTANGLE_INSET = 0.05
RECTANGLE_CORNER_RADIUS = 0.04

# Polaroid-style frame
FRAME_BORDER = 0.04
FRAME_MAX_BORDER = 0.10  # fraction of height
FRAME_BOTTOM_BORDER = 0.20  # fraction of height
FRAME_CORNER_RADIUS = 0.02

# Filmstrip
FILM_CORNER_RADIUS = 0.01
FILM_MARGIN = 0.16
FILM_WINDOW_INSET = 0.05
FILM_HOLE_WIDTH = 0.07
FILM_HOLE_HEIGHT = 0.045
FILM_HOLE_PITCH = 0.11
FILM_END_PADDING = 0.03

# Torn paper anchors as fractions of the inner rectangle: (point, control in, control out)
TORN_ANCHORS: Tuple[Tuple[Point, Point, Point], ...] = (
    ((0.50, 0.05), (0.30, 0.00), (0.80, 0.08)),
    ((0.92, 0.35), (1.02, 0.15), (0.95, 0.40)),
    ((0.95, 0.65), (1.03, 0.50), (0.90, 0.75)),
    ((0.60, 0.92), (0.85, 1.02), (0.40, 0.95)),
    ((0.12, 0.80), (0.20, 1.00), (-0.02, 0.65)),
    ((0.05, 0.50), (-0.03, 0.65), (0.02, 0.30)),
    ((0.15, 0.15), (0.00, 0.25), (0.25, -0.02)),
)


def arc_curves(center: Point, radius: float, start_angle: float, end_angle: float) -> List[BezierCurve]:
    """Approximate a circular arc with cubic Bezier curves.

    The arc sweeps linearly from ``start_angle`` to ``end_angle`` (degrees), so a
    decreasing pair sweeps the other way round. The sweep is split into pieces
    of at most 90 degrees, each using the 4/3 * tan(theta / 4) handle length.

    Args:
        center: Arc center.
        radius: Arc radius.
        start_angle: Start angle in degrees.
        end_angle: End angle in degrees.

    Returns:
        List of BezierCurve objects from the start angle to the end angle.
    """
    sweep = end_angle - start_angle
    segments = max(1, int(math.ceil(abs(sweep) / 90.0 - 1e-9)))
    step = math.radians(sweep / segments)
    handle = 4.0 / 3.0 * math.tan(step / 4.0) * radius
    cx, cy = center

    curves = []
    for i in range(segments):
        a0 = math.radians(start_angle) + i * step
        a1 = a0 + step
        p0 = (cx + radius * math.cos(a0), cy + radius * math.sin(a0))
        p3 = (cx + radius * math.cos(a1), cy + radius * math.sin(a1))
        p1 = (p0[0] - handle * math.sin(a0), p0[1] + handle * math.cos(a0))
        p2 = (p3[0] + handle * math.sin(a1), p3[1] - handle * math.cos(a1))
        curves.append(BezierCurve(p0, p1, p2, p3))
    return curves


def width_fraction(rect: Rect, fraction: float, limit: float = MAX_INSET) -> float:
    """``fraction`` of the rect width, capped at ``limit`` of its shorter side."""
    return min(rect.width * fraction, min(rect.width, rect.height) * limit)


def clamp_point(rect: Rect, point: Point) -> Point:
    return (min(max(point[0], rect.min_x), rect.max_x), min(max(point[1], rect.min_y), rect.max_y))


class PathBuilder:
    """Accumulates connected curves into one closed sub-path."""

    def __init__(self, start: Point):
        self.start = start
        self.current = start
        self.curves: List[BezierCurve] = []

    def line_to(self, point: Point) -> None:
        if _close(point, self.current):
            return
        self.curves.append(BezierCurve.line(self.current, point))
        self.current = point

    def curve_to(self, control1: Point, control2: Point, point: Point) -> None:
        self.curves.append(BezierCurve(self.current, control1, control2, point))
        self.current = point

    def arc(self, center: Point, radius: float, start_angle: float, end_angle: float) -> None:
        """Append an arc, joined to the current point by a line if needed."""
        if radius <= 0:
            return
        arc = arc_curves(center, radius, start_angle, end_angle)
        self.line_to(arc[0].p0)
        # Snap the joint so consecutive curves share the exact same point
        first = arc[0]
        arc[0] = BezierCurve(self.current, first.p1, first.p2, first.p3)
        self.curves.extend(arc)
        self.current = arc[-1].p3

    def close(self) -> List[BezierCurve]:
        """Finish the sub-path so that its end point equals its start point."""
        self.line_to(self.start)
        last = self.curves[-1]
        self.curves[-1] = BezierCurve(last.p0, last.p1, last.p2, self.start)
        self.current = self.start
        return self.curves


def _close(a: Point, b: Point) -> bool:
    return abs(a[0] - b[0]) < 1e-9 and abs(a[1] - b[1]) < 1e-9


def rectangle_path(rect: Rect) -> List[BezierCurve]:
    """Plain rectangle, clockwise from the top-left corner."""
    path = PathBuilder((rect.min_x, rect.min_y))
    path.line_to((rect.max_x, rect.min_y))
    path.line_to((rect.max_x, rect.max_y))
    path.line_to((rect.min_x, rect.max_y))
    return path.close()


def ellipse_path(center: Point, radius: float) -> List[BezierCurve]:
    """Full circle starting and ending at its top point."""
    path = PathBuilder((center[0], center[1] - radius))
    path.arc(center, radius, -90, 270)
    return path.close()


def rounded_rect_path(
    rect: Rect,
    corner_radius: float,
    notch_radius: float = 0.0,
    notch_long_sides: bool = False,
) -> List[BezierCurve]:
    """Rounded rectangle, optionally with semicircular notches in its long sides.

    Args:
        rect: Rectangle to outline.
        corner_radius: Corner radius, clamped to half the shorter side.
        notch_radius: Radius of the notches bitten into the long sides, clamped
            so the two notches never meet and never reach the corners.
        notch_long_sides: Whether to add the notches.

    Returns:
        Closed list of curves walking clockwise from the top-left corner.
    """
    short_side = min(rect.width, rect.height)
    r = min(corner_radius, short_side / 2)
    notch_radius = min(notch_radius, short_side / 4, max(rect.width, rect.height) / 2 - r)
    notch_top_bottom = notch_long_sides and notch_radius > 0 and rect.width >= rect.height
    notch_left_right = notch_long_sides and notch_radius > 0 and rect.width < rect.height

    path = PathBuilder((rect.min_x + r, rect.min_y))
    if notch_top_bottom:
        path.arc((rect.mid_x, rect.min_y), notch_radius, 180, 0)
    path.line_to((rect.max_x - r, rect.min_y))
    path.arc((rect.max_x - r, rect.min_y + r), r, -90, 0)
    if notch_left_right:
        path.arc((rect.max_x, rect.mid_y), notch_radius, 270, 90)
    path.line_to((rect.max_x, rect.max_y - r))
    path.arc((rect.max_x - r, rect.max_y - r), r, 0, 90)
    if notch_top_bottom:
        path.arc((rect.mid_x, rect.max_y), notch_radius, 0, -180)
    path.line_to((rect.min_x + r, rect.max_y))
    path.arc((rect.min_x + r, rect.max_y - r), r, 90, 180)
    if notch_left_right:
        path.arc((rect.min_x, rect.mid_y), notch_radius, 90, -90)
    path.line_to((rect.min_x, rect.min_y + r))
    path.arc((rect.min_x + r, rect.min_y + r), r, 180, 270)
    return path.close()


def stamp_outline(rect: Rect) -> Outline:
    """Postage stamp with scalloped perforations along every edge."""
    radius = width_fraction(rect, STAMP_PERFORATION_RADIUS, MAX_INSET / 2)
    spacing = rect.width * STAMP_PERFORATION_SPACING
    inner = rect.inset(radius * 2, radius * 2)

    path = PathBuilder((inner.min_x, inner.min_y))

    # Top edge, left to right
    x = inner.min_x + spacing
    while x < inner.max_x - spacing / 2:
        path.line_to((x - radius, inner.min_y))
        path.arc((x, inner.min_y), radius, 180, 360)
        x += spacing
    path.line_to((inner.max_x, inner.min_y))

    # Right edge, top to bottom
    y = inner.min_y + spacing
    while y < inner.max_y - spacing / 2:
        path.line_to((inner.max_x, y - radius))
        path.arc((inner.max_x, y), radius, 270, 450)
        y += spacing
    path.line_to((inner.max_x, inner.max_y))

    # Bottom edge, right to left
    x = inner.max_x - spacing
    while x > inner.min_x + spacing / 2:
        path.line_to((x + radius, inner.max_y))
        path.arc((x, inner.max_y), radius, 0, 180)
        x -= spacing
    path.line_to((inner.min_x, inner.max_y))

    # Left edge, bottom to top
    y = inner.max_y - spacing
    while y > inner.min_y + spacing / 2:
        path.line_to((inner.min_x, y + radius))
        path.arc((inner.min_x, y), radius, 90, 270)
        y -= spacing

    return Outline(contour=path.close())


def circle_outline(rect: Rect) -> Outline:
    diameter = min(rect.width, rect.height) * CIRCLE_DIAMETER
    return Outline(contour=ellipse_path((rect.mid_x, rect.mid_y), diameter / 2))


def ticket_outline(rect: Rect) -> Outline:
    """Rounded ticket with a notch in the middle of each long side."""
    inset = width_fraction(rect, TICKET_INSET)
    inner = rect.inset(inset, inset)
    contour = rounded_rect_path(
        inner,
        rect.width * TICKET_CORNER_RADIUS,
        notch_radius=rect.width * TICKET_NOTCH_RADIUS,
        notch_long_sides=True,
    )
    return Outline(contour=contour)


def label_outline(rect: Rect) -> Outline:
    """Luggage tag: pointed left end and a string hole near the point."""
    inset = width_fraction(rect, LABEL_INSET)
    inner = rect.inset(inset, inset)
    depth = rect.width * LABEL_POINT_DEPTH
    corner = min(rect.width * LABEL_CORNER_RADIUS, inner.height / 2)
    hole_radius = min(rect.width * LABEL_HOLE_RADIUS, inner.height / 4)

    path = PathBuilder((inner.min_x, inner.mid_y))
    path.line_to((inner.min_x + depth, inner.min_y))
    path.line_to((inner.max_x - corner, inner.min_y))
    path.arc((inner.max_x - corner, inner.min_y + corner), corner, -90, 0)
    path.line_to((inner.max_x, inner.max_y - corner))
    path.arc((inner.max_x - corner, inner.max_y - corner), corner, 0, 90)
    path.line_to((inner.min_x + depth, inner.max_y))

    hole_center = (inner.min_x + depth + hole_radius * 2, inner.mid_y)
    return Outline(contour=path.close(), cutouts=[ellipse_path(hole_center, hole_radius)])


def torn_outline(rect: Rect) -> Outline:
    """Organic torn-paper blob through fixed anchor points."""
    inset = width_fraction(rect, TORN_INSET)
    inner = rect.inset(inset, inset)

    def at(fraction: Point) -> Point:
        # Controls that overshoot the inner rect may not leave the outer one
        return clamp_point(rect, (inner.min_x + inner.width * fraction[0], inner.min_y + inner.height * fraction[1]))

    anchors = [(at(point), at(control_in), at(control_out)) for point, control_in, control_out in TORN_ANCHORS]

    path = PathBuilder(anchors[0][0])
    for i, (_, _, control_out) in enumerate(anchors):
        next_point, next_in, _ = anchors[(i + 1) % len(anchors)]
        path.curve_to(control_out, next_in, next_point)
    return Outline(contour=path.close())


def rectangle_outline(rect: Rect) -> Outline:
    inset = width_fraction(rect, RECTANGLE_INSET)
    inner = rect.inset(inset, inset)
    return Outline(contour=rounded_rect_path(inner, rect.width * RECTANGLE_CORNER_RADIUS))


def framed_photo_outline(rect: Rect) -> Outline:
    """Instant-photo frame with a thick bottom border; the window holds the photo."""
    border = width_fraction(rect, FRAME_BORDER, FRAME_MAX_BORDER)
    bottom = rect.height * FRAME_BOTTOM_BORDER
    window = Rect(
        rect.min_x + border,
        rect.min_y + border,
        rect.width - border * 2,
        rect.height - border - bottom,
    )
    return Outline(
        contour=rounded_rect_path(rect, rect.width * FRAME_CORNER_RADIUS),
        window=rectangle_path(window),
    )


def sprocket_holes(rect: Rect) -> List[Rect]:
    """Sprocket hole rectangles centered in both side margins of a filmstrip.

    Holes repeat at a fixed pitch and the column is centered vertically.
    """
    margin = rect.width * FILM_MARGIN
    hole_w = rect.width * FILM_HOLE_WIDTH
    hole_h = rect.width * FILM_HOLE_HEIGHT
    pitch = rect.width * FILM_HOLE_PITCH
    usable = rect.height - 2 * rect.width * FILM_END_PADDING

    if usable < hole_h:
        return []
    count = int((usable - hole_h) // pitch) + 1
    span = (count - 1) * pitch + hole_h
    top = rect.mid_y - span / 2

    holes = []
    for column_center in (rect.min_x + margin / 2, rect.max_x - margin / 2):
        for i in range(count):
            holes.append(Rect(column_center - hole_w / 2, top + i * pitch, hole_w, hole_h))
    return holes


def filmstrip_outline(rect: Rect) -> Outline:
    """Film frame: dark strip, photo window between the margins, punched sprockets."""
    margin = rect.width * FILM_MARGIN
    inset = width_fraction(rect, FILM_WINDOW_INSET)
    window = Rect(rect.min_x + margin, rect.min_y + inset, rect.width - 2 * margin, rect.height - 2 * inset)
    return Outline(
        contour=rounded_rect_path(rect, rect.width * FILM_CORNER_RADIUS),
        cutouts=[rectangle_path(hole) for hole in sprocket_holes(rect)],
        window=rectangle_path(window),
    )


_BUILDERS: Dict[ShapeVariant, Callable[[Rect], Outline]] = {
    ShapeVariant.STAMP: stamp_outline,
    ShapeVariant.CIRCLE: circle_outline,
    ShapeVariant.TICKET: ticket_outline,
    ShapeVariant.LABEL: label_outline,
    ShapeVariant.TORN: torn_outline,
    ShapeVariant.RECTANGLE: rectangle_outline,
    ShapeVariant.FRAMED_PHOTO: framed_photo_outline,
    ShapeVariant.FILMSTRIP: filmstrip_outline,
}


def outline_for(variant: ShapeVariant, rect: Rect) -> Outline:
    """Build the outline of a shape variant inside a rectangle.

    Args:
        variant: The shape to build.
        rect: Target rectangle; must have a positive area.

    Returns:
        The closed Outline.

    Raises:
        GeometryError: If the rectangle has zero or negative area.
    """
    if rect.is_degenerate:
        raise GeometryError(f"Cannot build a {ShapeVariant(variant).value} outline in a degenerate rect {rect}")
    return _BUILDERS[ShapeVariant(variant)](rect)


def outline_polygons(outline: Outline, points_per_curve: int = 16) -> Dict[str, Sequence[List[Point]]]:
    """Sample an outline into polygons keyed by role (contour, window, cutouts)."""
    return {
        "contour": [subpath_points(outline.contour, points_per_curve)],
        "window": [subpath_points(outline.window, points_per_curve)] if outline.window is not None else [],
        "cutouts": [subpath_points(path, points_per_curve) for path in outline.cutouts],
    }
