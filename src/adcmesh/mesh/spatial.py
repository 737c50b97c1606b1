"""
Nearest-neighbour search over fixed 2D point sets.

A SearchTree wraps a scipy cKDTree built over (x, y) locations. The mesh
keeps one over node positions and one over element centroids. Trees are
never updated in place: building again discards the old tree.
"""

import logging
from typing import List, Optional, Sequence

import numpy as np
from scipy.spatial import cKDTree

from adcmesh.core.errors import MeshConfigurationError, MeshInvariantError

logger = logging.getLogger(__name__)


class SearchTree:
    """KD-tree over a set of 2D points addressed by storage position."""

    def __init__(self, name: str = "search"):
        self.name = name
        self._tree: Optional[cKDTree] = None

    @property
    def is_initialized(self) -> bool:
        return self._tree is not None

    @property
    def size(self) -> int:
        return 0 if self._tree is None else self._tree.n

    def build(self, x: Sequence[float], y: Sequence[float]) -> None:
        """Build the tree, replacing any existing one.

        Args:
            x: X coordinates of the points
            y: Y coordinates of the points

        Raises:
            MeshInvariantError: If ``x`` and ``y`` differ in length
            MeshConfigurationError: If there are no points to index
        """
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)
        if x.shape != y.shape:
            raise MeshInvariantError(f"Coordinate arrays differ in length: {x.size} and {y.size}")
        if x.size == 0:
            raise MeshConfigurationError(f"Cannot build {self.name} tree without points")

        self._tree = None
        self._tree = cKDTree(np.column_stack([x, y]))
        logger.debug(f"Built {self.name} tree over {x.size} points")

    def clear(self) -> None:
        self._tree = None

    def _require_tree(self) -> cKDTree:
        if self._tree is None:
            raise MeshInvariantError(f"The {self.name} tree has not been built")
        return self._tree

    def find_nearest(self, x: float, y: float) -> int:
        """Storage position of the point closest to ``(x, y)``."""
        _, index = self._require_tree().query([x, y], k=1)
        return int(index)

    def find_nearest_many(self, x: Sequence[float], y: Sequence[float]) -> np.ndarray:
        """Storage positions of the points closest to each query location."""
        points = np.column_stack([np.asarray(x, dtype=float).ravel(), np.asarray(y, dtype=float).ravel()])
        _, indices = self._require_tree().query(points, k=1)
        return np.asarray(indices, dtype=np.int64)

    def find_x_nearest(self, x: float, y: float, count: int) -> List[int]:
        """Storage positions of the ``count`` nearest points.

        Returns:
            Positions in increasing distance order; fewer than ``count``
            only when the tree holds fewer points
        """
        if count < 1:
            raise MeshConfigurationError("Number of neighbours must be positive")
        tree = self._require_tree()
        k = min(count, tree.n)
        _, indices = tree.query([x, y], k=k)
        return [int(i) for i in np.atleast_1d(indices)]
