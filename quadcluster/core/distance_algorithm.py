"""
Non-Hierarchical Distance-Based Clustering Algorithm.

A simple clustering algorithm with O(n log n) performance. Resulting clusters
are not hierarchical.

High level algorithm:
1. Iterate over items in the order they were added (candidate clusters).
2. Create a cluster with the center of the item.
3. Add all items that are within a certain distance to the cluster.
4. Move any items out of an existing cluster if they are closer to another cluster.
5. Remove those items from the list of candidate clusters.

Clusters have the center of the first element, not the centroid of the
items within it.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Set

from quadcluster.core.base_clustering import BaseClusteringAlgorithm, ClusteringConfig
from quadcluster.core.cluster import ClusterItemLike, StaticCluster
from quadcluster.core.geometry import WORLD_BOUNDS, Bounds, Point
from quadcluster.core.projection import MAP_POINT_WIDTH, zoom_scale
from quadcluster.core.quadtree import MAX_DEPTH, MAX_ELEMENTS, PointQuadTree
from quadcluster.utils.error_handling import ClusteringInvariantError

logger = logging.getLogger(__name__)

DEFAULT_CLUSTER_DISTANCE_POINTS = 100


class ClusterQuadItem:
    """Wraps a cluster item together with its projected point for the tree."""

    __slots__ = ("cluster_item", "_point")

    def __init__(self, cluster_item: ClusterItemLike, point: Point):
        self.cluster_item = cluster_item
        self._point = point

    def point(self) -> Point:
        return self._point


class NonHierarchicalDistanceBasedAlgorithm(BaseClusteringAlgorithm):
    """
    Distance-based clustering backed by a PointQuadTree.

    Best for: Marker clustering where a cluster should sit on a real item
    Strengths: O(n log n), stable seed positions between zoom levels
    Weaknesses: Result depends on insertion order, a cluster can end up empty
    """

    def __init__(self, config: Optional[ClusteringConfig] = None):
        """
        Initialize the algorithm.

        Args:
            config: Clustering configuration. Recognised params:
                cluster_distance_points (default 100), max_elements and
                max_depth for the quad tree.
        """
        super().__init__(config or ClusteringConfig(algorithm_name="distance"))

        params = self.config.params
        self.cluster_distance_points = params.get(
            "cluster_distance_points", DEFAULT_CLUSTER_DISTANCE_POINTS
        )
        if not isinstance(self.cluster_distance_points, int) or self.cluster_distance_points < 1:
            raise ValueError(
                f"cluster_distance_points must be a positive int, "
                f"got {self.cluster_distance_points!r}"
            )

        self._quad_items: List[ClusterQuadItem] = []
        self._tree = PointQuadTree(
            bounds=WORLD_BOUNDS,
            max_elements=params.get("max_elements", MAX_ELEMENTS),
            max_depth=params.get("max_depth", MAX_DEPTH),
        )

        logger.debug(
            f"Initialized distance-based algorithm: "
            f"cluster_distance_points={self.cluster_distance_points}"
        )

    @property
    def items(self) -> List[ClusterItemLike]:
        return [quad_item.cluster_item for quad_item in self._quad_items]

    @property
    def tree(self) -> PointQuadTree:
        return self._tree

    def add_items(self, items: Iterable[ClusterItemLike]) -> None:
        for item in items:
            quad_item = ClusterQuadItem(item, self.projection(item.position))
            self._quad_items.append(quad_item)
            if not self._tree.add(quad_item):
                # Still listed and still seeds a cluster, but never a member of one.
                logger.warning(
                    f"Item at {item.position!r} projects outside the map plane "
                    f"and will not be clustered"
                )

    def remove_item(self, item: ClusterItemLike) -> None:
        for index, quad_item in enumerate(self._quad_items):
            if quad_item.cluster_item is item:
                del self._quad_items[index]
                self._tree.remove(quad_item)
                return

    def clear_items(self) -> None:
        self._quad_items.clear()
        self._tree.clear()

    def radius_at_zoom(self, zoom: float) -> float:
        """
        Plane distance covered by cluster_distance_points screen points at `zoom`.

        Saturates to 0.0 for very large zooms and to math.inf for very small ones.
        """
        return self.cluster_distance_points * MAP_POINT_WIDTH * zoom_scale(-(zoom + 8.0))

    def clusters(self, zoom: float) -> List[StaticCluster]:
        clusters: List[StaticCluster] = []
        item_to_cluster: Dict[int, StaticCluster] = {}
        item_to_cluster_distance: Dict[int, float] = {}
        processed: Set[int] = set()

        radius = self.radius_at_zoom(zoom)

        for quad_item in self._quad_items:
            item = quad_item.cluster_item
            if id(item) in processed:
                continue

            cluster = StaticCluster(item.position)
            point = quad_item.point()
            # Query items within a fixed point distance to form a cluster.
            nearby_items = self._tree.search(Bounds.around(point, radius))

            for nearby_quad_item in nearby_items:
                nearby = nearby_quad_item.cluster_item
                key = id(nearby)
                processed.add(key)
                distance_squared = point.distance_squared(nearby_quad_item.point())

                existing_distance = item_to_cluster_distance.get(key)
                if existing_distance is not None:
                    # Strict comparison: on an exact tie the later seed wins.
                    if existing_distance < distance_squared:
                        # Already belongs to a closer cluster.
                        continue
                    item_to_cluster[key].remove_item(nearby)

                item_to_cluster_distance[key] = distance_squared
                item_to_cluster[key] = cluster
                cluster.add_item(nearby)

            clusters.append(cluster)

        self._check_assignment(item_to_cluster)

        logger.debug(
            f"Computed {len(clusters)} clusters for {len(self._quad_items)} items "
            f"at zoom {zoom} (radius={radius:.3g})"
        )
        return clusters

    def _check_assignment(self, item_to_cluster: Dict[int, Any]) -> None:
        """Every indexed item must have been assigned to exactly one cluster."""
        expected = {
            id(quad_item.cluster_item)
            for quad_item in self._quad_items
            if self._tree.bounds.contains(quad_item.point())
        }
        if expected != set(item_to_cluster):
            raise ClusteringInvariantError(
                "All items should be mapped to a cluster",
                details={
                    "expected": len(expected),
                    "mapped": len(item_to_cluster),
                },
            )
