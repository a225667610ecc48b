"""
data_models.py

Pydantic data models for quadcluster.
Defines the input/output schemas used by the command-line interface.

Schema Design:
- Input: items as latitude/longitude with optional marker text
- Output: one entry per cluster with its fixed position and member ids
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from quadcluster.core.base_clustering import ClusteringResult
from quadcluster.core.cluster import ClusterItem
from quadcluster.core.projection import LatLng, wrap


# =============================================================================
# ENUMS
# =============================================================================


class ClusterAlgorithm(str, Enum):
    """Supported clustering algorithms."""

    DISTANCE = "distance"
    GRID = "grid"
    SIMPLE = "simple"


# =============================================================================
# INPUT MODELS
# =============================================================================


class LatLngModel(BaseModel):
    """Geographic position in degrees."""

    latitude: float = Field(..., ge=-90.0, le=90.0, description="Latitude in degrees")
    longitude: float = Field(..., ge=-180.0, le=180.0, description="Longitude in degrees")

    def to_lat_lng(self) -> LatLng:
        return LatLng(self.latitude, self.longitude)

    @classmethod
    def from_lat_lng(cls, position: LatLng) -> "LatLngModel":
        """Build from a LatLng, wrapping the longitude into [-180, 180)."""
        return cls(
            latitude=position.latitude,
            longitude=wrap(position.longitude, -180.0, 180.0),
        )


class ClusterItemInput(BaseModel):
    """A single item to cluster."""

    id: Optional[str] = Field(None, description="Caller identifier, echoed in the output")
    position: LatLngModel = Field(..., description="Item position")
    title: Optional[str] = Field(None, description="Marker title")
    snippet: Optional[str] = Field(None, description="Marker snippet")

    def to_cluster_item(self) -> ClusterItem:
        return ClusterItem(
            position=self.position.to_lat_lng(),
            title=self.title,
            snippet=self.snippet,
            item_id=self.id,
        )


class ClusteringRequest(BaseModel):
    """A batch of items and the clustering parameters to apply."""

    items: List[ClusterItemInput] = Field(default_factory=list, description="Items to cluster")
    zoom: Optional[float] = Field(None, description="Zoom level (settings default if omitted)")
    algorithm: Optional[ClusterAlgorithm] = Field(None, description="Algorithm (settings default if omitted)")
    cluster_distance_points: Optional[int] = Field(
        None, ge=1, description="Cluster radius in screen points (distance algorithm)"
    )

    def algorithm_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        if self.cluster_distance_points is not None:
            params["cluster_distance_points"] = self.cluster_distance_points
        return params


# =============================================================================
# OUTPUT MODELS
# =============================================================================


class ClusterOutput(BaseModel):
    """One cluster of the result."""

    position: LatLngModel = Field(..., description="Fixed cluster position")
    size: int = Field(..., ge=0, description="Number of members")
    member_ids: List[Optional[str]] = Field(default_factory=list, description="Member identifiers in order")


class ClusteringResponse(BaseModel):
    """Clustering result for one request."""

    zoom: float = Field(..., description="Zoom level used")
    algorithm: ClusterAlgorithm = Field(..., description="Algorithm used")
    total_items: int = Field(..., ge=0)
    n_clusters: int = Field(..., ge=0, description="Clusters with at least one member")
    clusters: List[ClusterOutput] = Field(default_factory=list)
    quality_metrics: Dict[str, float] = Field(default_factory=dict)

    @classmethod
    def from_result(
        cls,
        result: ClusteringResult,
        algorithm: str,
        include_empty: bool = False,
    ) -> "ClusteringResponse":
        """
        Build a response from a ClusteringResult.

        Empty clusters are dropped unless `include_empty` is set.
        """
        clusters = [
            ClusterOutput(
                position=LatLngModel.from_lat_lng(cluster.position),
                size=cluster.count,
                member_ids=[getattr(item, "item_id", None) for item in cluster.items],
            )
            for cluster in result.clusters
            if include_empty or cluster.count > 0
        ]
        return cls(
            zoom=result.zoom,
            algorithm=ClusterAlgorithm(algorithm),
            total_items=len(result.cluster_labels),
            n_clusters=result.n_clusters,
            clusters=clusters,
            quality_metrics=result.quality_metrics,
        )
