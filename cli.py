#!/usr/bin/env python3
"""
quadcluster CLI

Command-line interface for clustering map items.

Usage:
    python cli.py cluster items.json --zoom 12          # Cluster items from a JSON file
    python cli.py cluster items.json -a grid            # Use the grid algorithm
    python cli.py demo --count 40 --zoom 10             # Cluster random items around 4 centres
    python cli.py settings                              # Show effective settings

The input file is either a list of items or a request object:
    {"zoom": 12, "algorithm": "distance", "items": [
        {"id": "a", "position": {"latitude": 51.5, "longitude": -0.12}}
    ]}
"""

import argparse
import json
import sys
import uuid
from pathlib import Path
from typing import List, Optional

import numpy as np

from quadcluster.config.settings_loader import ConfigManager, Settings
from quadcluster.core.cluster import ClusterItem
from quadcluster.core.clustering_engine import ClusteringEngine
from quadcluster.core.geometry import Point
from quadcluster.core.projection import LatLng, project, unproject
from quadcluster.schemas.data_models import ClusteringRequest, ClusteringResponse
from quadcluster.utils.advanced_logging import (
    LogContext,
    configure_logging,
    get_logger,
    log_exceptions,
    timed,
)
from quadcluster.utils.error_handling import QuadClusterError, handle_exceptions

logger = get_logger(__name__)

# Centres used by the demo command.
DEMO_CENTRES = [
    LatLng(-1.0, -1.0),
    LatLng(-1.0, 1.0),
    LatLng(1.0, 1.0),
    LatLng(1.0, -1.0),
]


class QuadClusterCLI:
    """CLI for quadcluster."""

    def __init__(self, settings: Settings):
        """
        Initialize CLI.

        Args:
            settings: Effective settings
        """
        self.settings = settings
        self.engine = ClusteringEngine(settings)

    @staticmethod
    @handle_exceptions(OSError, ValueError, default_return=None)
    def load_request(path: str) -> Optional[ClusteringRequest]:
        """
        Read a request (or a bare item list) from a JSON file.

        Returns:
            The parsed request, or None if the file is unreadable or invalid
        """
        data = json.loads(Path(path).read_text())
        if isinstance(data, list):
            data = {"items": data}
        return ClusteringRequest.model_validate(data)

    def cluster(
        self,
        request: ClusteringRequest,
        zoom: Optional[float] = None,
        algorithm: Optional[str] = None,
        cluster_distance_points: Optional[int] = None,
        include_empty: bool = False,
    ) -> ClusteringResponse:
        """
        Cluster the items of a request. Command-line values override the file.
        """
        zoom = zoom if zoom is not None else request.zoom
        if zoom is None:
            zoom = self.settings.clustering.default_zoom

        algorithm = algorithm or (request.algorithm.value if request.algorithm else None)
        algorithm = algorithm or self.settings.clustering.default_algorithm

        params = request.algorithm_params()
        if cluster_distance_points is not None:
            params["cluster_distance_points"] = cluster_distance_points
        if algorithm != "distance":
            params.pop("cluster_distance_points", None)

        items = [item.to_cluster_item() for item in request.items]
        result = self.engine.cluster(items, zoom, algorithm=algorithm, algorithm_params=params)
        return ClusteringResponse.from_result(result, algorithm, include_empty=include_empty)

    @staticmethod
    @timed(operation="generate_demo_items")
    def demo_items(count: int, zoom: float, radius_points: float = 50.0, seed: int = 42) -> List[ClusterItem]:
        """
        Random items scattered within `radius_points` screen points of each demo centre.
        """
        rng = np.random.default_rng(seed)
        world_units = radius_points * 2.0 ** (-7 - zoom)

        items = []
        for centre_index, centre in enumerate(DEMO_CENTRES):
            origin = project(centre)
            offsets = rng.random((count, 2)) * world_units
            for item_index, (dx, dy) in enumerate(offsets):
                position = unproject(Point(origin.x + dx, origin.y + dy))
                items.append(ClusterItem(position=position, item_id=f"c{centre_index}-{item_index}"))

        order = rng.permutation(len(items))
        return [items[i] for i in order]


def print_summary(response: ClusteringResponse) -> None:
    """Print a human-readable clustering summary."""
    print(f"📦 {response.n_clusters} clusters for {response.total_items} items "
          f"({response.algorithm.value}, zoom {response.zoom})")
    for index, cluster in enumerate(response.clusters):
        print(f"   [{index}] ({cluster.position.latitude:.5f}, {cluster.position.longitude:.5f}) "
              f"size={cluster.size}")
    for name, value in response.quality_metrics.items():
        print(f"   {name}: {value:.4f}")


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="quadcluster CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "command",
        help="Command to execute",
        choices=["cluster", "demo", "settings"],
    )

    parser.add_argument("args", nargs="*", help="Command arguments")
    parser.add_argument("--zoom", "-z", type=float, help="Zoom level")
    parser.add_argument("--algorithm", "-a", choices=sorted(ClusteringEngine.ALGORITHMS), help="Algorithm")
    parser.add_argument("--distance", type=int, help="Cluster distance in screen points (distance algorithm)")
    parser.add_argument("--count", type=int, default=25, help="Items per centre (demo)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (demo)")
    parser.add_argument("--include-empty", action="store_true", help="Keep clusters left without members")
    parser.add_argument("--json", action="store_true", help="Print the JSON response")
    parser.add_argument("--config", help="Path to settings YAML")
    parser.add_argument("--log-level", help="Override the configured log level")

    args = parser.parse_args()

    try:
        settings = ConfigManager.load_config(args.config)
    except (FileNotFoundError, QuadClusterError) as e:
        print(f"❌ {e}", file=sys.stderr)
        sys.exit(1)

    configure_logging(
        log_level=args.log_level or settings.logging.level,
        log_format=settings.logging.format,
        log_file=settings.logging.file.path if settings.logging.file.enabled else None,
        service_name=settings.service.name,
    )

    cli = QuadClusterCLI(settings)

    with LogContext.correlation_context(uuid.uuid4().hex[:12]):
        if args.command == "settings":
            print(json.dumps(settings.model_dump(), indent=2))
            return

        if args.command == "cluster":
            if not args.args:
                print("❌ Input file required", file=sys.stderr)
                sys.exit(1)

            request = cli.load_request(args.args[0])
            if request is None:
                print(f"❌ Could not read a valid request from {args.args[0]}", file=sys.stderr)
                sys.exit(1)

        else:
            zoom = args.zoom if args.zoom is not None else settings.clustering.default_zoom
            items = cli.demo_items(args.count, zoom, seed=args.seed)
            logger.info("demo_items_generated", count=len(items))

        try:
            with log_exceptions(logger, operation=args.command):
                if args.command == "demo":
                    algorithm = args.algorithm or settings.clustering.default_algorithm
                    params = {"cluster_distance_points": args.distance} if args.distance and algorithm == "distance" else {}
                    result = cli.engine.cluster(items, zoom, algorithm=algorithm, algorithm_params=params)
                    response = ClusteringResponse.from_result(result, algorithm, include_empty=args.include_empty)
                else:
                    response = cli.cluster(
                        request,
                        zoom=args.zoom,
                        algorithm=args.algorithm,
                        cluster_distance_points=args.distance,
                        include_empty=args.include_empty,
                    )
        except QuadClusterError as e:
            print(f"❌ {e.message}", file=sys.stderr)
            sys.exit(1)

    if args.json:
        print(response.model_dump_json(indent=2))
    else:
        print_summary(response)


if __name__ == "__main__":
    main()
