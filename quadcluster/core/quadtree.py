"""
Point QuadTree - spatial index over items with a 2-D point.

Each node is either a leaf holding a list of items or a branch with exactly
four children (top-right, top-left, bottom-right, bottom-left). A leaf splits
once it already holds `max_elements` items and is shallower than
`max_depth`; a branch never turns back into a leaf.

Items are matched by identity, never by value: two items at the same point
are distinct entries.

Not thread safe. Callers must serialise mutation and queries.
"""

import logging
from typing import List, Optional, Protocol

from quadcluster.core.geometry import WORLD_BOUNDS, Bounds, Point
from quadcluster.utils.error_handling import QuadTreeInvariantError

logger = logging.getLogger(__name__)

MAX_ELEMENTS = 64
MAX_DEPTH = 30


class QuadTreeItem(Protocol):
    """Anything the tree can index."""

    def point(self) -> Point:
        ...


class QuadTreeNode:
    """
    Internal quad tree node. Use PointQuadTree instead.

    Nodes do not store their own bounds; the parent passes them down on
    every call so the tree holds no redundant geometry.
    """

    __slots__ = (
        "items",
        "top_right",
        "top_left",
        "bottom_right",
        "bottom_left",
        "max_elements",
        "max_depth",
    )

    def __init__(self, max_elements: int = MAX_ELEMENTS, max_depth: int = MAX_DEPTH):
        self.items: Optional[List[QuadTreeItem]] = []
        self.top_right: Optional["QuadTreeNode"] = None
        self.top_left: Optional["QuadTreeNode"] = None
        self.bottom_right: Optional["QuadTreeNode"] = None
        self.bottom_left: Optional["QuadTreeNode"] = None
        self.max_elements = max_elements
        self.max_depth = max_depth

    @property
    def is_leaf(self) -> bool:
        return self.top_right is None

    def add(self, item: Optional[QuadTreeItem], bounds: Bounds, depth: int) -> None:
        """
        Insert an item below this node, splitting first if the leaf is full.

        Args:
            item: Item to insert. Must not be None.
            bounds: Bounds of this node
            depth: Depth of this node (root = 0)

        Raises:
            QuadTreeInvariantError: If item is None
        """
        if item is None:
            raise QuadTreeInvariantError("Invalid item argument, item must not be None")

        if self._should_split(depth):
            self._split(bounds, depth)

        if self.is_leaf:
            self.items.append(item)
            return

        point = item.point()
        child, child_bounds = self._child_for(point, bounds)
        child.add(item, child_bounds, depth + 1)

    def remove(self, item: QuadTreeItem, bounds: Bounds) -> bool:
        """
        Remove the first entry identical to `item` from this subtree.

        Returns:
            True if the item was found and removed
        """
        if not self.is_leaf:
            child, child_bounds = self._child_for(item.point(), bounds)
            return child.remove(item, child_bounds)

        for index, existing in enumerate(self.items):
            if existing is item:
                del self.items[index]
                return True
        return False

    def search(
        self,
        search_bounds: Bounds,
        bounds: Bounds,
        results: List[QuadTreeItem],
    ) -> None:
        """
        Collect items whose point lies inside `search_bounds`.

        Only children whose own bounds intersect the search area are visited,
        in top-right, top-left, bottom-right, bottom-left order.
        """
        if self.is_leaf:
            for item in self.items:
                if search_bounds.contains(item.point()):
                    results.append(item)
            return

        for child, child_bounds in (
            (self.top_right, bounds.top_right()),
            (self.top_left, bounds.top_left()),
            (self.bottom_right, bounds.bottom_right()),
            (self.bottom_left, bounds.bottom_left()),
        ):
            if child_bounds.intersects(search_bounds):
                child.search(search_bounds, child_bounds, results)

    def depth(self) -> int:
        """Height of this subtree (a lone leaf has depth 0)."""
        if self.is_leaf:
            return 0
        return 1 + max(
            child.depth()
            for child in (self.top_right, self.top_left, self.bottom_right, self.bottom_left)
        )

    def _should_split(self, depth: int) -> bool:
        return (
            self.is_leaf
            and len(self.items) >= self.max_elements
            and depth < self.max_depth
        )

    def _split(self, bounds: Bounds, depth: int) -> None:
        """Turn this leaf into a branch and push its items down one level."""
        if self.items is None:
            raise QuadTreeInvariantError("Cannot split a node that is already a branch")

        self.top_right = QuadTreeNode(self.max_elements, self.max_depth)
        self.top_left = QuadTreeNode(self.max_elements, self.max_depth)
        self.bottom_right = QuadTreeNode(self.max_elements, self.max_depth)
        self.bottom_left = QuadTreeNode(self.max_elements, self.max_depth)

        items_to_split = self.items
        self.items = None

        for item in items_to_split:
            self.add(item, bounds, depth)

    def _child_for(self, point: Point, bounds: Bounds):
        """
        Pick the child quadrant for a point.

        A point on the midpoint lines goes to the bottom and/or left child.
        """
        mid = bounds.midpoint()
        if point.y > mid.y:
            if point.x > mid.x:
                return self.top_right, bounds.top_right()
            return self.top_left, bounds.top_left()
        if point.x > mid.x:
            return self.bottom_right, bounds.bottom_right()
        return self.bottom_left, bounds.bottom_left()


class PointQuadTree:
    """
    Quad tree over a fixed, inclusive bounding rectangle.

    Supports insertion, identity-based removal and rectangular range search.
    Rejected operations (item outside the bounds, item not found) return
    False instead of raising.
    """

    def __init__(
        self,
        bounds: Bounds = WORLD_BOUNDS,
        max_elements: int = MAX_ELEMENTS,
        max_depth: int = MAX_DEPTH,
    ):
        """
        Create an empty tree.

        Args:
            bounds: Inclusive bounds; items outside are rejected
            max_elements: Items a leaf holds before it splits
            max_depth: Depth below which leaves no longer split
        """
        if max_elements < 1:
            raise ValueError("max_elements must be >= 1")
        if max_depth < 0:
            raise ValueError("max_depth must be >= 0")

        self.bounds = bounds
        self.max_elements = max_elements
        self.max_depth = max_depth
        self.count = 0
        self.root = QuadTreeNode(max_elements, max_depth)

    def add(self, item: Optional[QuadTreeItem]) -> bool:
        """
        Insert an item.

        Returns:
            False if item is None or its point is outside the tree bounds,
            True once the item has been added
        """
        if item is None or not self.bounds.contains(item.point()):
            return False

        self.root.add(item, self.bounds, 0)
        self.count += 1
        return True

    def remove(self, item: QuadTreeItem) -> bool:
        """
        Delete an item previously added.

        Returns:
            False if the item is outside the bounds or not in the tree
        """
        if not self.bounds.contains(item.point()):
            return False

        removed = self.root.remove(item, self.bounds)
        if removed:
            self.count -= 1
        return removed

    def clear(self) -> None:
        """Delete all items."""
        self.root = QuadTreeNode(self.max_elements, self.max_depth)
        self.count = 0
        logger.debug("Cleared quad tree")

    def search(self, search_bounds: Bounds) -> List[QuadTreeItem]:
        """
        Retrieve all items whose point lies within `search_bounds`.

        The order of results follows the traversal and should be treated as
        unspecified.
        """
        results: List[QuadTreeItem] = []
        self.root.search(search_bounds, self.bounds, results)
        return results

    def get_count(self) -> int:
        return self.count

    def depth(self) -> int:
        """Current height of the tree."""
        return self.root.depth()

    def __len__(self) -> int:
        return self.count
