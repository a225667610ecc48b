"""
Base Clustering Algorithm Interface.

Defines the contract for all point clustering algorithms.
Supports pluggable algorithms with consistent API.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

import numpy as np

from quadcluster.core.cluster import ClusterItemLike, StaticCluster
from quadcluster.core.geometry import Point
from quadcluster.core.projection import project, project_array

logger = logging.getLogger(__name__)


@dataclass
class ClusteringConfig:
    """Configuration for clustering algorithms."""

    algorithm_name: str
    params: Dict[str, Any] = field(default_factory=dict)
    # Maps an item's position onto the [-1, 1] x [-1, 1] plane.
    projection: Callable[[Any], Point] = project


class ClusteringResult:
    """Results from a clustering pass."""

    def __init__(
        self,
        clusters: List[StaticCluster],
        cluster_labels: np.ndarray,
        zoom: float,
        quality_metrics: Optional[Dict[str, float]] = None,
    ):
        self.clusters = clusters
        self.cluster_labels = cluster_labels
        self.zoom = zoom
        self.quality_metrics = quality_metrics or {}

    @property
    def labels(self) -> np.ndarray:
        """Alias for cluster_labels."""
        return self.cluster_labels

    @property
    def n_clusters(self) -> int:
        """Number of clusters with at least one member."""
        return sum(1 for cluster in self.clusters if cluster.count > 0)

    @property
    def empty_cluster_count(self) -> int:
        return len(self.clusters) - self.n_clusters

    @property
    def unassigned_count(self) -> int:
        return int(np.sum(self.cluster_labels == -1))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "zoom": self.zoom,
            "n_clusters": self.n_clusters,
            "empty_cluster_count": self.empty_cluster_count,
            "unassigned_count": self.unassigned_count,
            "quality_metrics": self.quality_metrics,
            "total_items": len(self.cluster_labels),
        }


class BaseClusteringAlgorithm(ABC):
    """
    Abstract base class for clustering algorithms.

    Subclasses own the live item list and implement clusters(). Items are
    matched by identity for removal.
    """

    def __init__(self, config: ClusteringConfig):
        """
        Initialize clustering algorithm.

        Args:
            config: Clustering configuration
        """
        self.config = config
        self.name = config.algorithm_name
        self.projection = config.projection

    @abstractmethod
    def add_items(self, items: Iterable[ClusterItemLike]) -> None:
        """Append items; the same item may be added more than once."""
        pass

    @abstractmethod
    def remove_item(self, item: ClusterItemLike) -> None:
        """Remove the first entry identical to `item`."""
        pass

    @abstractmethod
    def clear_items(self) -> None:
        pass

    @property
    @abstractmethod
    def items(self) -> List[ClusterItemLike]:
        """Current items in insertion order."""
        pass

    @abstractmethod
    def clusters(self, zoom: float) -> List[StaticCluster]:
        """
        Compute clusters from scratch for the given zoom level.

        Args:
            zoom: Map zoom level; higher means smaller clusters

        Returns:
            Freshly created clusters owned by the caller
        """
        pass

    def add_item(self, item: ClusterItemLike) -> None:
        self.add_items([item])

    def result(self, zoom: float) -> ClusteringResult:
        """
        Run clusters() and package the output with labels and metrics.

        Labels follow the order of `items`; -1 marks items no cluster holds.
        """
        items = self.items
        clusters = self.clusters(zoom)

        cluster_index: Dict[int, int] = {}
        for index, cluster in enumerate(clusters):
            for member in cluster.items:
                cluster_index[id(member)] = index

        labels = np.array(
            [cluster_index.get(id(item), -1) for item in items],
            dtype=np.int32,
        )

        points = self._projected_points(items)

        quality_metrics = self._calculate_quality_metrics(points, labels)

        return ClusteringResult(
            clusters=clusters,
            cluster_labels=labels,
            zoom=zoom,
            quality_metrics=quality_metrics,
        )

    def _projected_points(self, items: List[ClusterItemLike]) -> np.ndarray:
        """Projected positions of `items` (N x 2), vectorised for Web Mercator."""
        if self.projection is project:
            return project_array(
                [item.position.latitude for item in items],
                [item.position.longitude for item in items],
            )

        points = [self.projection(item.position) for item in items]
        return np.array([[p.x, p.y] for p in points], dtype=np.float64).reshape(-1, 2)

    def _calculate_quality_metrics(
        self,
        points: np.ndarray,
        labels: np.ndarray,
    ) -> Dict[str, float]:
        """
        Calculate clustering quality metrics over projected points.

        Args:
            points: Projected points (N x 2)
            labels: Cluster labels (-1 = unassigned)

        Returns:
            Dictionary of quality metrics
        """
        from sklearn.metrics import davies_bouldin_score, silhouette_score

        metrics: Dict[str, float] = {}

        assigned_mask = labels != -1
        assigned_points = points[assigned_mask]
        assigned_labels = labels[assigned_mask]
        n_labels = len(np.unique(assigned_labels))

        if n_labels > 1 and len(assigned_points) > n_labels:
            try:
                # Silhouette score (higher is better, range: -1 to 1)
                metrics["silhouette_score"] = float(
                    silhouette_score(assigned_points, assigned_labels)
                )
                # Davies-Bouldin Index (lower is better)
                metrics["davies_bouldin_index"] = float(
                    davies_bouldin_score(assigned_points, assigned_labels)
                )
            except ValueError as e:
                logger.warning(f"Skipping quality metrics: {e}")

        if len(assigned_labels) > 0:
            sizes = np.bincount(assigned_labels)
            sizes = sizes[sizes > 0]
            metrics["mean_cluster_size"] = float(np.mean(sizes))
            metrics["max_cluster_size"] = float(np.max(sizes))

        return metrics
