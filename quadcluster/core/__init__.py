"""
Core clustering module for quadcluster.

Exports:
- PointQuadTree: Spatial index over projected points
- NonHierarchicalDistanceBasedAlgorithm: Quadtree-backed distance clustering
- GridBasedClusterAlgorithm, SimpleClusterAlgorithm: Alternative algorithms
- ClusteringEngine: Main orchestration class
- ClusteringResult / ClusteringConfig: Result and configuration containers
- StaticCluster / ClusterItem: Cluster aggregate and item type
- Point / Bounds / LatLng: Value types
"""

from quadcluster.core.geometry import Bounds, Point, WORLD_BOUNDS
from quadcluster.core.projection import LatLng, project, unproject
from quadcluster.core.quadtree import PointQuadTree, QuadTreeItem
from quadcluster.core.cluster import ClusterItem, StaticCluster
from quadcluster.core.base_clustering import (
    BaseClusteringAlgorithm,
    ClusteringResult,
    ClusteringConfig,
)
from quadcluster.core.distance_algorithm import NonHierarchicalDistanceBasedAlgorithm
from quadcluster.core.grid_algorithm import GridBasedClusterAlgorithm
from quadcluster.core.simple_algorithm import SimpleClusterAlgorithm
from quadcluster.core.clustering_engine import ClusteringEngine

__all__ = [
    "Bounds",
    "Point",
    "WORLD_BOUNDS",
    "LatLng",
    "project",
    "unproject",
    "PointQuadTree",
    "QuadTreeItem",
    "ClusterItem",
    "StaticCluster",
    "BaseClusteringAlgorithm",
    "ClusteringResult",
    "ClusteringConfig",
    "NonHierarchicalDistanceBasedAlgorithm",
    "GridBasedClusterAlgorithm",
    "SimpleClusterAlgorithm",
    "ClusteringEngine",
]
