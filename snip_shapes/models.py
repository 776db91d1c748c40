"""Data models for snip outlines."""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

Point = Tuple[float, float]


@dataclass
class BezierCurve:
    """A cubic Bezier curve defined by 4 control points."""

    p0: Point  # Start point
    p1: Point  # Control point 1
    p2: Point  # Control point 2
    p3: Point  # End point

    @classmethod
    def line(cls, start: Point, end: Point) -> "BezierCurve":
        """Straight segment as a degenerate Bezier (control points on the line)."""
        return cls(start, start, end, end)

    def evaluate(self, t: float) -> Point:
        """Evaluate the curve at parameter t (0 to 1)."""
        t2 = t * t
        t3 = t2 * t
        mt = 1 - t
        mt2 = mt * mt
        mt3 = mt2 * mt

        x = mt3 * self.p0[0] + 3 * mt2 * t * self.p1[0] + 3 * mt * t2 * self.p2[0] + t3 * self.p3[0]
        y = mt3 * self.p0[1] + 3 * mt2 * t * self.p1[1] + 3 * mt * t2 * self.p2[1] + t3 * self.p3[1]
        return (x, y)

    def get_points(self, num_points: int = 50) -> np.ndarray:
        """Generate points along the curve."""
        t_values = np.linspace(0, 1, num_points)
        points = [self.evaluate(t) for t in t_values]
        return np.array(points)

    def control_points(self) -> List[Point]:
        """Return the four control points in order."""
        return [self.p0, self.p1, self.p2, self.p3]

    def scaled(self, factor: float) -> "BezierCurve":
        """Return a copy with every control point multiplied by factor."""
        p0, p1, p2, p3 = [(x * factor, y * factor) for x, y in self.control_points()]
        return BezierCurve(p0, p1, p2, p3)


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in image coordinates (y grows downward)."""

    x: float
    y: float
    width: float
    height: float

    @property
    def min_x(self) -> float:
        return self.x

    @property
    def min_y(self) -> float:
        return self.y

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def max_y(self) -> float:
        return self.y + self.height

    @property
    def mid_x(self) -> float:
        return self.x + self.width / 2

    @property
    def mid_y(self) -> float:
        return self.y + self.height / 2

    @property
    def is_degenerate(self) -> bool:
        return not (self.width > 0 and self.height > 0)

    def inset(self, dx: float, dy: float) -> "Rect":
        """Shrink by dx on the left and right and by dy on the top and bottom."""
        return Rect(self.x + dx, self.y + dy, self.width - 2 * dx, self.height - 2 * dy)

    def contains(self, point: Point, tolerance: float = 1e-6) -> bool:
        """Check whether a point lies inside or on the border of the rectangle."""
        px, py = point
        return (
            self.min_x - tolerance <= px <= self.max_x + tolerance
            and self.min_y - tolerance <= py <= self.max_y + tolerance
        )

    def to_tuple(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.width, self.height)

    @classmethod
    def from_size(cls, width: float, height: float) -> "Rect":
        return cls(0.0, 0.0, width, height)


def subpath_points(curves: List[BezierCurve], points_per_curve: int = 16) -> List[Point]:
    """Sample a closed run of curves into a polygon.

    The last point of each curve is skipped to avoid duplicates, and the very
    first point is appended again so the polygon closes.
    """
    points: List[Point] = []
    for curve in curves:
        # Straight segments only need their endpoints
        n = 2 if curve.p0 == curve.p1 and curve.p2 == curve.p3 else points_per_curve
        sampled = curve.get_points(n)
        points.extend((float(x), float(y)) for x, y in sampled[:-1])
    if points:
        points.append(points[0])
    return points


@dataclass
class Outline:
    """Closed vector outline of a snip shape.

    ``contour`` is the silhouette of the whole snip. ``cutouts`` are holes
    punched through it (even-odd). Composite shapes also carry a ``window``:
    the inner region the photo is clipped to, while the rest of the contour is
    painted as a frame.
    """

    contour: List[BezierCurve]
    cutouts: List[List[BezierCurve]] = field(default_factory=list)
    window: Optional[List[BezierCurve]] = None

    @property
    def is_composite(self) -> bool:
        return self.window is not None

    def subpaths(self) -> List[List[BezierCurve]]:
        """All closed sub-paths: contour, window (if any), then cutouts."""
        paths = [self.contour]
        if self.window is not None:
            paths.append(self.window)
        paths.extend(self.cutouts)
        return paths

    def is_closed(self, tolerance: float = 1e-6) -> bool:
        """Check that every sub-path is continuous and ends where it starts."""
        for curves in self.subpaths():
            if not curves:
                return False
            for current, following in zip(curves, curves[1:]):
                if not _same_point(current.p3, following.p0, tolerance):
                    return False
            if not _same_point(curves[0].p0, curves[-1].p3, tolerance):
                return False
        return True

    def bounds(self) -> Rect:
        """Bounding box of all control points (a superset of the curve extent)."""
        xs: List[float] = []
        ys: List[float] = []
        for curves in self.subpaths():
            for curve in curves:
                for x, y in curve.control_points():
                    xs.append(x)
                    ys.append(y)
        return Rect(min(xs), min(ys), max(xs) - min(xs), max(ys) - min(ys))

    def scaled(self, factor: float) -> "Outline":
        """Return the outline with every coordinate multiplied by factor."""
        return Outline(
            contour=[c.scaled(factor) for c in self.contour],
            cutouts=[[c.scaled(factor) for c in path] for path in self.cutouts],
            window=[c.scaled(factor) for c in self.window] if self.window is not None else None,
        )


def _same_point(a: Point, b: Point, tolerance: float) -> bool:
    return abs(a[0] - b[0]) <= tolerance and abs(a[1] - b[1]) <= tolerance
