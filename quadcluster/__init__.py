"""quadcluster - point quadtree and distance-based map marker clustering."""

__version__ = "1.0.0"
