"""
Web Mercator projection between geographic coordinates and the map plane.

The plane is [-1, 1] x [-1, 1]:
- x is the longitude projection; increasing x goes East
- y is the Mercator latitude projection; increasing y goes North
- (0, 0) is latitude/longitude (0, 0)

Latitudes beyond roughly +/-85.0511 degrees project outside the plane.
"""

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from quadcluster.core.geometry import Point

# Width of the projected world along x.
MAP_POINT_WIDTH = 2.0


@dataclass(frozen=True)
class LatLng:
    """Geographic coordinate in degrees."""

    latitude: float
    longitude: float


def mod(value: float, modulus: float) -> float:
    """Non-negative remainder of value / modulus."""
    truncated = math.fmod(value, modulus)
    return math.fmod(truncated + modulus, modulus)


def wrap(value: float, min_value: float, max_value: float) -> float:
    """Wrap `value` into the half-open interval [min_value, max_value)."""
    if min_value <= value < max_value:
        return value
    return mod(value - min_value, max_value - min_value) + min_value


def zoom_scale(zoom: float) -> float:
    """
    2 ** zoom, saturating at the ends of the float range.

    Returns math.inf where the power overflows and 0.0 where it underflows,
    so any finite zoom gives a usable (if degenerate) scale.
    """
    try:
        return 2.0 ** zoom
    except OverflowError:
        return math.inf


def mercator_x(longitude: float) -> float:
    return longitude / 180.0


def mercator_y(latitude: float) -> float:
    tangent = math.tan(math.radians(latitude) * 0.5 + math.pi / 4)
    if tangent <= 0:
        # South pole.
        return -math.inf
    return math.log(tangent) / math.pi


def inverse_mercator_longitude(x: float) -> float:
    return x * 180.0


def inverse_mercator_latitude(y: float) -> float:
    return math.degrees(2 * math.atan(math.exp(y * math.pi)) - math.pi / 2)


def project(position: LatLng) -> Point:
    """Project a geographic position onto the map plane."""
    return Point(mercator_x(position.longitude), mercator_y(position.latitude))


def unproject(point: Point) -> LatLng:
    """Inverse of project()."""
    return LatLng(
        inverse_mercator_latitude(point.y),
        inverse_mercator_longitude(point.x),
    )


def map_point_distance(a: Point, b: Point) -> float:
    """
    Length of the segment a -> b in the plane.

    Measured along the short path, which may cross the antimeridian: the
    segment from San Francisco to Tokyo passes north of Hawaii.
    """
    dy = a.y - b.y
    dx = a.x - b.x
    dx2 = dx * dx
    if dx2 > 1:  # |dx| > 1
        wrapped = MAP_POINT_WIDTH - abs(dx)
        dx2 = wrapped * wrapped
    return math.sqrt(dx2 + dy * dy)


def interpolate(start: Point, end: Point, fraction: float) -> Point:
    """
    Linear interpolation from `start` (fraction 0) to `end` (fraction 1).

    The smaller x is moved up a world width before blending and the result
    folded back into the plane. Points straddling the antimeridian therefore
    interpolate across it, but so do all other pairs: from x=0 to x=0.5 the
    midpoint is x=-0.75, not 0.25. The y coordinate is interpolated directly.
    """
    v = 1 - fraction
    ax = start.x
    bx = end.x
    # Shift one side up a world width so the result only needs one fold back.
    if ax < bx:
        ax += MAP_POINT_WIDTH
    else:
        bx += MAP_POINT_WIDTH
    x = ax * v + bx * fraction
    if x > 1:
        x -= MAP_POINT_WIDTH
    y = start.y * v + end.y * fraction
    return Point(x, y)


def project_array(
    latitudes: Sequence[float],
    longitudes: Sequence[float],
) -> np.ndarray:
    """
    Vectorised project() for many positions.

    Args:
        latitudes: Latitudes in degrees (N)
        longitudes: Longitudes in degrees (N)

    Returns:
        Array of projected points (N x 2), columns x and y
    """
    lat = np.radians(np.asarray(latitudes, dtype=np.float64))
    lng = np.asarray(longitudes, dtype=np.float64)

    if lat.shape != lng.shape:
        raise ValueError(
            f"Latitude/longitude length mismatch: {lat.shape} vs {lng.shape}"
        )

    xs = lng / 180.0
    with np.errstate(divide="ignore"):
        ys = np.log(np.tan(lat * 0.5 + np.pi / 4)) / np.pi
    return np.column_stack((xs, ys))
