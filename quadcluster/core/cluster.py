"""
Cluster items and the static cluster aggregate.

A cluster item is anything with a `position` attribute. Items are tracked by
identity: the concrete ClusterItem below compares and hashes by `id`, so two
items at the same position are never confused.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Protocol

from quadcluster.core.projection import LatLng


class ClusterItemLike(Protocol):
    """Capability required from items handed to a clustering algorithm."""

    position: Any


@dataclass(eq=False)
class ClusterItem:
    """A positioned item with optional marker text."""

    position: LatLng
    title: Optional[str] = None
    snippet: Optional[str] = None
    item_id: Optional[str] = None


class StaticCluster:
    """
    Cluster whose position is fixed when it is created.

    The position is that of the seed item and is never recomputed from the
    members.
    """

    def __init__(self, position: Any):
        self._position = position
        self._items: List[ClusterItemLike] = []

    @property
    def position(self) -> Any:
        return self._position

    @property
    def items(self) -> List[ClusterItemLike]:
        """Copy of the members, in the order they were added."""
        return list(self._items)

    @property
    def count(self) -> int:
        return len(self._items)

    def add_item(self, item: ClusterItemLike) -> None:
        self._items.append(item)

    def remove_item(self, item: ClusterItemLike) -> None:
        """Remove the first member identical to `item`; absent items are ignored."""
        for index, existing in enumerate(self._items):
            if existing is item:
                del self._items[index]
                return

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"StaticCluster(position={self._position!r}, count={self.count})"
