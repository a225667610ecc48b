"""
Planar geometry value types for the spatial index.

Points and bounds live in the projected, dimensionless plane that the
quadtree indexes (canonically [-1, 1] x [-1, 1]). All rectangle tests are
inclusive on every edge.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Point:
    """A point in the projected plane."""

    x: float
    y: float

    def distance_squared(self, other: "Point") -> float:
        dx = self.x - other.x
        dy = self.y - other.y
        return dx * dx + dy * dy


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned rectangle with inclusive edges."""

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    def __post_init__(self):
        if self.min_x > self.max_x or self.min_y > self.max_y:
            raise ValueError(
                f"Invalid bounds: ({self.min_x}, {self.min_y}) -> "
                f"({self.max_x}, {self.max_y})"
            )

    @classmethod
    def around(cls, center: Point, radius: float) -> "Bounds":
        """Square of half-width `radius` centered on `center`."""
        return cls(
            center.x - radius,
            center.y - radius,
            center.x + radius,
            center.y + radius,
        )

    def midpoint(self) -> Point:
        return Point(
            (self.min_x + self.max_x) / 2,
            (self.min_y + self.max_y) / 2,
        )

    def contains(self, point: Point) -> bool:
        return (
            self.min_x <= point.x <= self.max_x
            and self.min_y <= point.y <= self.max_y
        )

    def intersects(self, other: "Bounds") -> bool:
        """Non-strict overlap test; rectangles sharing an edge intersect."""
        return not (
            self.max_y < other.min_y or other.max_y < self.min_y
        ) and not (
            self.max_x < other.min_x or other.max_x < self.min_x
        )

    # Child quadrants share the midpoint lines with their siblings.

    def top_right(self) -> "Bounds":
        mid = self.midpoint()
        return Bounds(mid.x, mid.y, self.max_x, self.max_y)

    def top_left(self) -> "Bounds":
        mid = self.midpoint()
        return Bounds(self.min_x, mid.y, mid.x, self.max_y)

    def bottom_right(self) -> "Bounds":
        mid = self.midpoint()
        return Bounds(mid.x, self.min_y, self.max_x, mid.y)

    def bottom_left(self) -> "Bounds":
        mid = self.midpoint()
        return Bounds(self.min_x, self.min_y, mid.x, mid.y)


# The plane every projected position falls into.
WORLD_BOUNDS = Bounds(-1.0, -1.0, 1.0, 1.0)
