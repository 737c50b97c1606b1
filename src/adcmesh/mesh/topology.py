"""
Element topology for 2D unstructured meshes.

Provides the geometry and connectivity derived from the element list:
- Centroid-angle vertex ordering for a consistent winding
- Element legs and the deduplicated mesh link (edge) table
- Node to element incidence table
- Element size, area and per-node mesh size
- Point containment tests over normalised element polygons

Raw vertex order is not consistent across file formats, so every operation
that depends on winding goes through :func:`sort_vertices_about_center`.
"""

import logging
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from adcmesh.core.errors import MeshInvariantError
from adcmesh.mesh.records import Element

logger = logging.getLogger(__name__)

EARTH_RADIUS = 6378206.4
CONTAINMENT_TOLERANCE = 1e-9


def sort_vertices_about_center(coords: np.ndarray) -> np.ndarray:
    """Order polygon vertices by their angle about the centroid.

    Args:
        coords: Vertex coordinates with shape (k, 2)

    Returns:
        Permutation of ``range(k)`` giving counter-clockwise order starting
        from the vertex with the smallest ``atan2`` angle
    """
    coords = np.asarray(coords, dtype=float)
    center = coords.mean(axis=0)
    angles = np.arctan2(coords[:, 1] - center[1], coords[:, 0] - center[0])
    return np.argsort(angles, kind="stable")


def normalize_element(element: Element, coords: np.ndarray) -> Element:
    """Return a copy of ``element`` with its vertices in centroid-angle order."""
    order = sort_vertices_about_center(coords)
    return Element(element.id, [element.nodes[i] for i in order])


def element_legs(node_ids: Sequence[int]) -> List[Tuple[int, int]]:
    """Consecutive vertex pairs around a polygon, closing pair included."""
    count = len(node_ids)
    return [(node_ids[i], node_ids[(i + 1) % count]) for i in range(count)]


def element_area(coords: np.ndarray) -> float:
    """Unsigned polygon area from the shoelace formula."""
    coords = np.asarray(coords, dtype=float)
    x, y = coords[:, 0], coords[:, 1]
    return 0.5 * abs(float(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))))


def haversine(lon1, lat1, lon2, lat2, radius: float = EARTH_RADIUS):
    """Great-circle distance between points given in degrees."""
    lon1, lat1, lon2, lat2 = map(np.radians, (lon1, lat1, lon2, lat2))
    a = np.sin((lat2 - lat1) / 2.0) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin((lon2 - lon1) / 2.0) ** 2
    return 2.0 * radius * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))


def element_size(coords: np.ndarray, geodesic: bool = False, radius: float = EARTH_RADIUS) -> float:
    """Mean leg length of a polygon.

    Args:
        coords: Vertex coordinates with shape (k, 2), any winding
        geodesic: Treat coordinates as longitude/latitude degrees
        radius: Sphere radius used when ``geodesic`` is set

    Returns:
        Average distance between consecutive normalised vertices
    """
    coords = np.asarray(coords, dtype=float)[sort_vertices_about_center(coords)]
    nxt = np.roll(coords, -1, axis=0)
    if geodesic:
        lengths = haversine(coords[:, 0], coords[:, 1], nxt[:, 0], nxt[:, 1], radius)
    else:
        lengths = np.hypot(nxt[:, 0] - coords[:, 0], nxt[:, 1] - coords[:, 1])
    return float(np.mean(lengths))


def element_contains(coords: np.ndarray, x: float, y: float, tolerance: float = CONTAINMENT_TOLERANCE) -> bool:
    """Test whether ``(x, y)`` lies inside or on the polygon given by ``coords``.

    The polygon is fanned into triangles about the query point. The point is
    inside when their areas add up to the polygon area, so vertices and edges
    count as inside.

    Args:
        coords: Vertex coordinates with shape (k, 2), any winding
        x: Query x coordinate
        y: Query y coordinate
        tolerance: Allowed area mismatch relative to the polygon area

    Returns:
        True when the point is inside the element or on its boundary
    """
    coords = np.asarray(coords, dtype=float)
    ordered = coords[sort_vertices_about_center(coords)]
    area = element_area(ordered)
    if area == 0.0:
        return False

    dx = ordered[:, 0] - x
    dy = ordered[:, 1] - y
    fan = 0.5 * np.abs(dx * np.roll(dy, -1) - dy * np.roll(dx, -1))
    return bool(abs(float(fan.sum()) - area) <= tolerance * area)


def _grouped_connectivity(mesh) -> Iterator[Tuple[int, np.ndarray, np.ndarray, np.ndarray]]:
    """Yield element blocks grouped by arity.

    Yields:
        Tuples of (arity, element positions, node identifiers (m, k),
        node storage positions (m, k))
    """
    blocks: Dict[int, List[int]] = {3: [], 4: []}
    for position, element in enumerate(mesh.elements):
        if element.n not in blocks:
            raise MeshInvariantError(f"Element {element.id} has {element.n} vertices")
        blocks[element.n].append(position)

    for arity, positions in blocks.items():
        if not positions:
            continue
        positions = np.asarray(positions, dtype=np.int64)
        ids = np.array([mesh.elements[p].nodes for p in positions], dtype=np.int64)
        yield arity, positions, ids, mesh.node_positions(ids)


def normalize_block(ids: np.ndarray, node_pos: np.ndarray, x: np.ndarray, y: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Sort a block of equal-arity elements about their centroids.

    Returns:
        The reordered node identifiers and node positions
    """
    xs, ys = x[node_pos], y[node_pos]
    cx = xs.mean(axis=1, keepdims=True)
    cy = ys.mean(axis=1, keepdims=True)
    order = np.argsort(np.arctan2(ys - cy, xs - cx), axis=1, kind="stable")
    return np.take_along_axis(ids, order, axis=1), np.take_along_axis(node_pos, order, axis=1)


def normalized_connectivity(mesh) -> List[List[int]]:
    """Node identifiers of every element in centroid-angle order."""
    x, y = mesh.x, mesh.y
    result: List[Optional[List[int]]] = [None] * mesh.num_elements
    for _, positions, ids, node_pos in _grouped_connectivity(mesh):
        sorted_ids, _ = normalize_block(ids, node_pos, x, y)
        for position, row in zip(positions, sorted_ids.tolist()):
            result[position] = row
    return result


def element_centroids(mesh) -> np.ndarray:
    """Arithmetic mean of vertex coordinates for every element, shape (E, 2)."""
    x, y = mesh.x, mesh.y
    centroids = np.zeros((mesh.num_elements, 2), dtype=float)
    for _, positions, _, node_pos in _grouped_connectivity(mesh):
        centroids[positions, 0] = x[node_pos].mean(axis=1)
        centroids[positions, 1] = y[node_pos].mean(axis=1)
    return centroids


def generate_link_table(mesh) -> np.ndarray:
    """Build the unique undirected edge set of the mesh.

    Each element is normalised, its legs are extracted and every leg is
    canonicalised as (smaller id, larger id) before deduplication.

    Returns:
        Integer array of shape (n_links, 2) with node identifiers, sorted
        lexicographically
    """
    x, y = mesh.x, mesh.y
    legs = []
    for _, _, ids, node_pos in _grouped_connectivity(mesh):
        sorted_ids, _ = normalize_block(ids, node_pos, x, y)
        pairs = np.stack([sorted_ids, np.roll(sorted_ids, -1, axis=1)], axis=-1).reshape(-1, 2)
        legs.append(np.sort(pairs, axis=1))

    if not legs:
        return np.zeros((0, 2), dtype=np.int64)

    links = np.unique(np.concatenate(legs), axis=0)
    logger.debug(f"Link table: {len(links)} unique links from {mesh.num_elements} elements")
    return links


def element_sizes(mesh, geodesic: bool = False, radius: float = EARTH_RADIUS) -> np.ndarray:
    """Mean leg length of every element, shape (E,)."""
    x, y = mesh.x, mesh.y
    sizes = np.zeros(mesh.num_elements, dtype=float)
    for _, positions, ids, node_pos in _grouped_connectivity(mesh):
        _, ordered = normalize_block(ids, node_pos, x, y)
        xs, ys = x[ordered], y[ordered]
        xn, yn = np.roll(xs, -1, axis=1), np.roll(ys, -1, axis=1)
        if geodesic:
            lengths = haversine(xs, ys, xn, yn, radius)
        else:
            lengths = np.hypot(xn - xs, yn - ys)
        sizes[positions] = lengths.mean(axis=1)
    return sizes


def max_nodes_per_element(mesh) -> int:
    """Largest element arity in the mesh, 0 for a mesh without elements."""
    return max((element.n for element in mesh.elements), default=0)


class ElementTable:
    """Node to element incidence table.

    Maps each node storage position to the storage positions of the
    elements that reference it. Built by one scan over the elements and
    never updated afterwards.
    """

    def __init__(self, mesh):
        self.mesh = mesh
        self._table: Optional[List[List[int]]] = None

    @property
    def is_built(self) -> bool:
        return self._table is not None

    def build(self) -> None:
        """Scan every element and record it against each of its nodes."""
        table: List[List[int]] = [[] for _ in range(self.mesh.num_nodes)]
        for position, element in enumerate(self.mesh.elements):
            for node_id in element.nodes:
                table[self.mesh.node_index_by_id(node_id)].append(position)
        self._table = table
        logger.debug(f"Element table built for {len(table)} nodes")

    def elements_at(self, node_position: int) -> List[int]:
        """Element positions incident to the node at ``node_position``."""
        if self._table is None:
            self.build()
        return list(self._table[node_position])

    def element_list(self, node_id: int) -> List[int]:
        """Element positions incident to the node with identifier ``node_id``."""
        return self.elements_at(self.mesh.node_index_by_id(node_id))


def compute_mesh_size(mesh, geodesic: bool = False, radius: float = EARTH_RADIUS) -> np.ndarray:
    """Average size of the elements around each node.

    Args:
        mesh: Mesh to evaluate
        geodesic: Measure legs as great-circle distances
        radius: Sphere radius used when ``geodesic`` is set

    Returns:
        Array of shape (N,) in node storage order; nodes without incident
        elements report 0.0

    Raises:
        MeshInvariantError: If a negative size is produced
    """
    sizes = element_sizes(mesh, geodesic, radius)
    table = ElementTable(mesh)
    table.build()

    mesh_size = np.zeros(mesh.num_nodes, dtype=float)
    for i in range(mesh.num_nodes):
        incident = table.elements_at(i)
        if incident:
            mesh_size[i] = sizes[incident].mean()
        if mesh_size[i] < 0.0:
            raise MeshInvariantError("Error computing mesh size table")
    return mesh_size
