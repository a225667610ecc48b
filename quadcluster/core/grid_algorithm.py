"""
Grid-Based Clustering Algorithm.

Divides the map plane into a grid whose cells have a fixed size in screen
space, and puts every item into the cluster of its cell.

Grid clustering is ideal for:
- Very large item counts (O(n), no spatial index needed)
- Evenly spaced cluster markers
"""

import logging
import math
from typing import Dict, Iterable, List, Optional

import numpy as np

from quadcluster.core.base_clustering import BaseClusteringAlgorithm, ClusteringConfig
from quadcluster.core.cluster import ClusterItemLike, StaticCluster
from quadcluster.core.geometry import Point
from quadcluster.core.projection import unproject, zoom_scale

logger = logging.getLogger(__name__)

# Keeps clusters about 100 screen points apart.
DEFAULT_GRID_CELL_SIZE_POINTS = 100.0

# Past this many cells per axis float64 cell coordinates stop resolving
# separate cells, so larger counts are clamped.
MAX_GRID_CELLS = 2 ** 53


class GridBasedClusterAlgorithm(BaseClusteringAlgorithm):
    """
    Grid clustering implementation.

    Cluster positions are derived from the cell, not from the items, and are
    unprojected back to LatLng with the Web Mercator inverse.
    """

    def __init__(self, config: Optional[ClusteringConfig] = None):
        super().__init__(config or ClusteringConfig(algorithm_name="grid"))

        self.grid_cell_size_points = float(
            self.config.params.get("grid_cell_size_points", DEFAULT_GRID_CELL_SIZE_POINTS)
        )
        if self.grid_cell_size_points <= 0:
            raise ValueError("grid_cell_size_points must be > 0")

        self._items: List[ClusterItemLike] = []

    @property
    def items(self) -> List[ClusterItemLike]:
        return list(self._items)

    def add_items(self, items: Iterable[ClusterItemLike]) -> None:
        self._items.extend(items)

    def remove_item(self, item: ClusterItemLike) -> None:
        for index, existing in enumerate(self._items):
            if existing is item:
                del self._items[index]
                return

    def clear_items(self) -> None:
        self._items.clear()

    def cell_count(self, zoom: float) -> int:
        """Number of cells along each axis at `zoom`, between 1 and MAX_GRID_CELLS."""
        scaled = 256 * zoom_scale(zoom) / self.grid_cell_size_points
        if scaled >= MAX_GRID_CELLS:
            return MAX_GRID_CELLS
        return max(int(math.ceil(scaled)), 1)

    def clusters(self, zoom: float) -> List[StaticCluster]:
        # Insertion-ordered, so clusters come back in order of first use.
        clusters: Dict[int, StaticCluster] = {}
        num_cells = self.cell_count(zoom)

        points = self._projected_points(self._items)
        # Points are in the [-1, 1] range; cell coordinates in [0, num_cells].
        cells = num_cells * (1.0 + points) / 2.0
        finite = np.isfinite(cells).all(axis=1)

        for item, (cell_x, cell_y), is_finite in zip(self._items, cells, finite):
            if not is_finite:
                logger.warning(f"Item at {item.position!r} has no finite projection, skipping")
                continue

            col = int(cell_x)
            row = int(cell_y)
            index = num_cells * row + col

            cluster = clusters.get(index)
            if cluster is None:
                cluster = StaticCluster(self._cell_position(col, row, num_cells))
                clusters[index] = cluster
            cluster.add_item(item)

        logger.debug(
            f"Grid clustering: {num_cells}x{num_cells} cells, "
            f"{len(clusters)} clusters for {len(self._items)} items"
        )
        return list(clusters.values())

    @staticmethod
    def _cell_position(col: int, row: int, num_cells: int):
        # Scales by num_cells - 1, matching existing marker placement.
        denominator = max(num_cells - 1, 1)
        x = (col + 0.5) * 2.0 / denominator
        y = (row + 0.5) * 2.0 / denominator
        return unproject(Point(x, y))
