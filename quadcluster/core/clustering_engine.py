"""
Clustering Engine - Orchestrates clustering operations.

Main entry point for clustering a batch of items in one call.
Manages algorithm selection, execution, and result handling.
"""

import logging
import math
from typing import Any, Dict, Iterable, Optional

from quadcluster.config.settings_loader import Settings, get_settings
from quadcluster.core.base_clustering import (
    BaseClusteringAlgorithm,
    ClusteringConfig,
    ClusteringResult,
)
from quadcluster.core.cluster import ClusterItemLike
from quadcluster.core.distance_algorithm import NonHierarchicalDistanceBasedAlgorithm
from quadcluster.core.grid_algorithm import GridBasedClusterAlgorithm
from quadcluster.core.simple_algorithm import SimpleClusterAlgorithm
from quadcluster.utils.advanced_logging import PerformanceLogger, get_logger
from quadcluster.utils.error_handling import InvalidAlgorithmError, InvalidZoomError

logger = logging.getLogger(__name__)


class ClusteringEngine:
    """
    Main clustering engine that orchestrates different algorithms.

    Provides a unified interface for all clustering operations regardless
    of the underlying algorithm. Each call builds a fresh algorithm, so no
    state is shared between calls.
    """

    # Registry of available algorithms
    ALGORITHMS = {
        "distance": NonHierarchicalDistanceBasedAlgorithm,
        "grid": GridBasedClusterAlgorithm,
        "simple": SimpleClusterAlgorithm,
    }

    def __init__(self, settings: Optional[Settings] = None):
        """
        Initialize clustering engine.

        Args:
            settings: Settings providing default algorithm and parameters
                (loaded through ConfigManager if None)
        """
        self.settings = settings or get_settings()
        logger.debug("Initialized ClusteringEngine")

    def create_algorithm(
        self,
        algorithm: Optional[str] = None,
        algorithm_params: Optional[Dict[str, Any]] = None,
        projection=None,
    ) -> BaseClusteringAlgorithm:
        """
        Instantiate an algorithm with settings defaults overlaid by `algorithm_params`.

        Raises:
            InvalidAlgorithmError: If algorithm is not supported
        """
        algorithm = (algorithm or self.settings.clustering.default_algorithm).lower()
        if algorithm not in self.ALGORITHMS:
            raise InvalidAlgorithmError(
                f"Unsupported algorithm '{algorithm}'. "
                f"Supported: {list(self.ALGORITHMS.keys())}",
                details={"algorithm": algorithm},
            )

        params = self.settings.algorithm_params(algorithm)
        params.update(algorithm_params or {})

        config = ClusteringConfig(algorithm_name=algorithm, params=params)
        if projection is not None:
            config.projection = projection

        return self.ALGORITHMS[algorithm](config)

    def cluster(
        self,
        items: Iterable[ClusterItemLike],
        zoom: float,
        algorithm: Optional[str] = None,
        algorithm_params: Optional[Dict[str, Any]] = None,
        projection=None,
    ) -> ClusteringResult:
        """
        Cluster a batch of items at one zoom level.

        Args:
            items: Items exposing a `position`
            zoom: Map zoom level
            algorithm: Algorithm name (distance/grid/simple); settings default if None
            algorithm_params: Algorithm-specific parameters
            projection: Optional position -> Point callable (Web Mercator if None)

        Returns:
            ClusteringResult with clusters, labels and metrics

        Raises:
            InvalidAlgorithmError: If algorithm is not supported
            InvalidZoomError: If zoom is not a finite number
        """
        if not isinstance(zoom, (int, float)) or not math.isfinite(zoom):
            raise InvalidZoomError(
                f"Zoom must be a finite number, got {zoom!r}",
                details={"zoom": repr(zoom)},
            )

        clusterer = self.create_algorithm(algorithm, algorithm_params, projection)
        clusterer.add_items(items)
        item_count = len(clusterer.items)

        logger.info(f"Starting {clusterer.name} clustering on {item_count} items at zoom {zoom}")

        with PerformanceLogger(
            "cluster_items",
            logger=get_logger(__name__),
            item_count=item_count,
            algorithm=clusterer.name,
            zoom=zoom,
        ) as perf:
            result = clusterer.result(zoom)
            perf.record(n_clusters=result.n_clusters, unassigned=result.unassigned_count)

        logger.info(
            f"{clusterer.name} clustering complete: {result.n_clusters} clusters, "
            f"{result.empty_cluster_count} empty, {result.unassigned_count} unassigned"
        )

        return result

    def validate_clustering_config(
        self,
        algorithm: str,
        params: Dict[str, Any],
    ) -> Dict[str, str]:
        """
        Validate clustering configuration.

        Args:
            algorithm: Algorithm name
            params: Algorithm parameters

        Returns:
            Dictionary of validation errors (empty if valid)
        """
        errors = {}

        if algorithm not in self.ALGORITHMS:
            errors["algorithm"] = f"Unsupported algorithm '{algorithm}'"
            return errors

        if algorithm == "distance":
            distance = params.get("cluster_distance_points", 100)
            if not isinstance(distance, int) or distance < 1:
                errors["cluster_distance_points"] = "Must be an int >= 1"

            if params.get("max_elements", 64) < 1:
                errors["max_elements"] = "Must be >= 1"

            if params.get("max_depth", 30) < 0:
                errors["max_depth"] = "Must be >= 0"

        elif algorithm == "grid":
            if params.get("grid_cell_size_points", 100.0) <= 0:
                errors["grid_cell_size_points"] = "Must be > 0"

        elif algorithm == "simple":
            if params.get("cluster_count", 10) < 1:
                errors["cluster_count"] = "Must be >= 1"

        return errors
