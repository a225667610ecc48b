"""
Unit tests for the Web Mercator projection helpers.

Tests:
- Forward and inverse projection
- Wrapping and modulo helpers
- Antimeridian-aware distance and interpolation
- Vectorised projection
"""

import math

import numpy as np
import pytest

from quadcluster.core.geometry import Point
from quadcluster.core.projection import (
    LatLng,
    interpolate,
    map_point_distance,
    mod,
    project,
    project_array,
    unproject,
    wrap,
    zoom_scale,
)

# Latitude that projects onto y = 1.
MAX_MERCATOR_LATITUDE = math.degrees(2 * math.atan(math.exp(math.pi)) - math.pi / 2)


@pytest.mark.unit
class TestProjection:
    """Test suite for project/unproject."""

    def test_origin(self):
        point = project(LatLng(0.0, 0.0))
        assert point.x == pytest.approx(0.0)
        assert point.y == pytest.approx(0.0, abs=1e-12)

    def test_longitude_edges(self):
        assert project(LatLng(0.0, 180.0)).x == pytest.approx(1.0)
        assert project(LatLng(0.0, -180.0)).x == pytest.approx(-1.0)

    def test_latitude_edge(self):
        """About 85.0511 degrees is the top of the plane."""
        assert MAX_MERCATOR_LATITUDE == pytest.approx(85.0511, abs=1e-4)
        assert project(LatLng(MAX_MERCATOR_LATITUDE, 0.0)).y == pytest.approx(1.0)
        assert project(LatLng(-MAX_MERCATOR_LATITUDE, 0.0)).y == pytest.approx(-1.0)

    def test_north_is_positive_y(self):
        assert project(LatLng(10.0, 0.0)).y > 0
        assert project(LatLng(-10.0, 0.0)).y < 0

    def test_polar_latitude_outside_plane(self):
        assert project(LatLng(89.0, 0.0)).y > 1.0

    def test_south_pole(self):
        assert project(LatLng(-90.0, 0.0)).y == -math.inf
        assert project_array([-90.0], [0.0])[0, 1] == -math.inf

    @pytest.mark.parametrize("lat,lng", [(51.5, -0.12), (-33.9, 151.2), (0.0, 179.9)])
    def test_unproject_inverts_project(self, lat, lng):
        position = unproject(project(LatLng(lat, lng)))
        assert position.latitude == pytest.approx(lat)
        assert position.longitude == pytest.approx(lng)


@pytest.mark.unit
class TestZoomScale:
    """Test suite for the saturating zoom power."""

    def test_regular_zoom(self):
        assert zoom_scale(0) == 1.0
        assert zoom_scale(8.5) == pytest.approx(2.0 ** 8.5)

    def test_overflow_is_infinite(self):
        assert zoom_scale(1100.0) == math.inf

    def test_underflow_is_zero(self):
        assert zoom_scale(-1100.0) == 0.0


@pytest.mark.unit
class TestWrap:
    """Test suite for mod/wrap."""

    def test_mod_is_non_negative(self):
        assert mod(-1.0, 360.0) == pytest.approx(359.0)
        assert mod(370.0, 360.0) == pytest.approx(10.0)

    def test_wrap_in_range_unchanged(self):
        assert wrap(45.0, -180.0, 180.0) == 45.0
        assert wrap(-180.0, -180.0, 180.0) == -180.0

    def test_wrap_upper_edge(self):
        assert wrap(180.0, -180.0, 180.0) == pytest.approx(-180.0)

    def test_wrap_out_of_range(self):
        assert wrap(190.0, -180.0, 180.0) == pytest.approx(-170.0)
        assert wrap(-190.0, -180.0, 180.0) == pytest.approx(170.0)
        assert wrap(540.0, -180.0, 180.0) == pytest.approx(-180.0)


@pytest.mark.unit
class TestMapPointDistance:
    """Test suite for antimeridian-aware distance."""

    def test_plain_distance(self):
        assert map_point_distance(Point(0, 0), Point(0.3, 0.4)) == pytest.approx(0.5)

    def test_crosses_antimeridian(self):
        """Points near opposite x edges are close across the antimeridian."""
        distance = map_point_distance(Point(0.9, 0.0), Point(-0.9, 0.0))
        assert distance == pytest.approx(0.2)

    def test_symmetric(self):
        a, b = Point(0.95, 0.1), Point(-0.95, -0.1)
        assert map_point_distance(a, b) == pytest.approx(map_point_distance(b, a))


@pytest.mark.unit
class TestInterpolate:
    """Test suite for antimeridian-aware interpolation."""

    def test_endpoints(self):
        start, end = Point(0.1, 0.2), Point(0.5, 0.6)
        assert interpolate(start, end, 0.0).x == pytest.approx(start.x)
        assert interpolate(start, end, 1.0).y == pytest.approx(end.y)

    def test_midpoint_wraps(self):
        a, b = Point(-0.7, 1.0), Point(0.9, 1.0)
        assert interpolate(a, b, 0.5).x == pytest.approx((a.x + b.x - 2) / 2)

    def test_midpoint_y(self):
        a, c = Point(-0.7, 1.0), Point(-0.7, 0.0)
        assert interpolate(a, c, 0.5).y == pytest.approx(0.5)

    def test_same_side_pair_wraps(self):
        """x is always rotated before blending, so 0 -> 0.5 crosses the antimeridian too."""
        assert interpolate(Point(0.0, 0.0), Point(0.5, 0.0), 0.5).x == pytest.approx(-0.75)

    def test_crosses_antimeridian(self):
        """Halfway between x=0.9 and x=-0.9 lies on the antimeridian."""
        mid = interpolate(Point(0.9, 0.0), Point(-0.9, 0.0), 0.5)
        assert abs(mid.x) == pytest.approx(1.0)


@pytest.mark.unit
class TestProjectArray:
    """Test suite for the vectorised projection."""

    def test_matches_scalar_projection(self):
        lats = [0.0, 45.0, -30.0]
        lngs = [0.0, 90.0, -120.0]
        points = project_array(lats, lngs)

        assert points.shape == (3, 2)
        for row, (lat, lng) in zip(points, zip(lats, lngs)):
            expected = project(LatLng(lat, lng))
            assert row[0] == pytest.approx(expected.x)
            assert row[1] == pytest.approx(expected.y, abs=1e-12)

    def test_empty(self):
        assert project_array([], []).shape == (0, 2)

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            project_array(np.zeros(2), np.zeros(3))
