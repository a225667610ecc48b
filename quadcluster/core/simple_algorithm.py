"""
Simple Clustering Algorithm.

Groups items into a fixed number of clusters (default 10) without looking at
their positions. Not for production: useful as a baseline when experimenting
with new clustering algorithms.
"""

import logging
from typing import Iterable, List, Optional

from quadcluster.core.base_clustering import BaseClusteringAlgorithm, ClusteringConfig
from quadcluster.core.cluster import ClusterItemLike, StaticCluster

logger = logging.getLogger(__name__)

DEFAULT_CLUSTER_COUNT = 10


class SimpleClusterAlgorithm(BaseClusteringAlgorithm):
    """
    Round-robin clustering.

    The first `cluster_count` items fix the cluster positions; every later
    item is dealt to the clusters in turn. The seed items themselves are not
    members of any cluster.
    """

    def __init__(self, config: Optional[ClusteringConfig] = None):
        super().__init__(config or ClusteringConfig(algorithm_name="simple"))

        self.cluster_count = self.config.params.get("cluster_count", DEFAULT_CLUSTER_COUNT)
        if self.cluster_count < 1:
            raise ValueError("cluster_count must be >= 1")

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

    def clusters(self, zoom: float) -> List[StaticCluster]:
        seeds = self._items[: self.cluster_count]
        clusters = [StaticCluster(item.position) for item in seeds]

        for offset, item in enumerate(self._items[self.cluster_count:]):
            clusters[offset % self.cluster_count].add_item(item)

        logger.debug(f"Simple clustering: {len(clusters)} clusters")
        return clusters
