"""
Pytest configuration and shared fixtures for quadcluster tests.

This module provides:
- Shared test fixtures
- Item generators (fixed and randomized)
- Settings fixtures
"""

import os

import numpy as np
import pytest

from quadcluster.config.settings_loader import ConfigManager, Settings
from quadcluster.core.cluster import ClusterItem
from quadcluster.core.geometry import Point
from quadcluster.core.projection import LatLng, project, unproject

# Set test environment variables
os.environ["LOG_LEVEL"] = "DEBUG"


class PlaneItem:
    """Item positioned directly on the map plane (use with identity_projection)."""

    def __init__(self, x: float, y: float, name: str = ""):
        self.position = Point(x, y)
        self.name = name

    def __repr__(self):
        return f"PlaneItem({self.name!r}, {self.position.x}, {self.position.y})"


def identity_projection(position):
    """Projection for items whose position already is a plane Point."""
    return position


def items_around_location(center: LatLng, count: int, zoom: float, radius_points: float, rng):
    """
    Random items within `radius_points` screen points of `center` at `zoom`.

    Offsets are drawn in the positive quadrant of the plane, like scattering
    markers to the north-east of a point.
    """
    world_units = radius_points * 2.0 ** (-7 - zoom)
    origin = project(center)
    offsets = rng.random((count, 2)) * world_units
    return [
        ClusterItem(position=unproject(Point(origin.x + dx, origin.y + dy)))
        for dx, dy in offsets
    ]


# =============================================================================
# Test Data Generators
# =============================================================================

@pytest.fixture
def simple_cluster_items():
    """Four items on the corners of a 2 x 2 degree square around (0, 0)."""
    return [
        ClusterItem(position=LatLng(-1.0, -1.0), item_id="sw"),
        ClusterItem(position=LatLng(-1.0, 1.0), item_id="se"),
        ClusterItem(position=LatLng(1.0, 1.0), item_id="ne"),
        ClusterItem(position=LatLng(1.0, -1.0), item_id="nw"),
    ]


@pytest.fixture
def randomized_cluster_items():
    """
    Forty items in four tight groups (10 each), shuffled.

    Each group spans 50 screen points at zoom 10, so the groups separate into
    exactly four clusters at that zoom with the default 100 point radius.
    """
    rng = np.random.default_rng(42)
    centres = [
        LatLng(-1.0, -1.0),
        LatLng(-1.0, 1.0),
        LatLng(1.0, 1.0),
        LatLng(1.0, -1.0),
    ]

    items = []
    for centre in centres:
        items.extend(items_around_location(centre, 10, 10.0, 50.0, rng))

    order = rng.permutation(len(items))
    return [items[i] for i in order]


@pytest.fixture
def make_plane_item():
    """Factory for items positioned directly on the plane."""
    return PlaneItem


@pytest.fixture
def plane_projection():
    """Identity projection for PlaneItem positions."""
    return identity_projection


@pytest.fixture
def plane_items():
    """Items laid out directly on the plane: two close pairs and a loner."""
    return [
        PlaneItem(0.0, 0.0, "a"),
        PlaneItem(0.01, 0.0, "b"),
        PlaneItem(0.5, 0.5, "c"),
        PlaneItem(0.51, 0.5, "d"),
        PlaneItem(-0.5, -0.5, "e"),
    ]


# =============================================================================
# Configuration Fixtures
# =============================================================================

@pytest.fixture
def default_settings():
    """Built-in default settings."""
    return Settings()


@pytest.fixture
def settings_yaml(tmp_path):
    """Write a settings file and return its path."""
    path = tmp_path / "settings.yaml"
    path.write_text(
        "service:\n"
        "  name: quadcluster-test\n"
        "  environment: \"${QUADCLUSTER_TEST_ENV:testing}\"\n"
        "quadtree:\n"
        "  max_elements: 8\n"
        "  max_depth: 12\n"
        "clustering:\n"
        "  default_algorithm: grid\n"
        "  default_zoom: 5\n"
        "  algorithms:\n"
        "    distance:\n"
        "      cluster_distance_points: 40\n"
        "logging:\n"
        "  level: debug\n"
        "  format: json\n"
    )
    return path


# =============================================================================
# Cleanup
# =============================================================================

@pytest.fixture(autouse=True)
def reset_settings():
    """Drop cached settings between tests."""
    ConfigManager.reset()
    yield
    ConfigManager.reset()


# =============================================================================
# Markers
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests for individual components"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests for component interactions"
    )
