"""
Unstructured 2D mesh aggregate.

The Mesh owns the node, element and boundary records read from a file and
the structures derived from them: the identifier lookups, the nodal and
elemental search trees and the node to element table. Derived structures
move through three states:

- absent: built transparently the first time they are needed
- ready: used as-is; geometry edits do not re-synchronise them
- stale: set by structural edits; using a stale structure raises
  MeshInvariantError until the matching explicit rebuild is called
"""

import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence, Union

import numpy as np

from adcmesh.core.config import MeshConfig
from adcmesh.core.errors import MeshConfigurationError, MeshInvariantError, MeshNotFoundError
from adcmesh.io import projection
from adcmesh.mesh.formats import MeshData, MeshFormat, read_mesh_data, write_mesh
from adcmesh.mesh.ordering import Ordering, build_ordering
from adcmesh.mesh.records import Boundary, Element, Node
from adcmesh.mesh.spatial import SearchTree
from adcmesh.mesh.topology import (
    ElementTable,
    compute_mesh_size,
    element_centroids,
    element_contains,
    generate_link_table,
    max_nodes_per_element,
    normalized_connectivity,
)

logger = logging.getLogger(__name__)


class StructureState(Enum):
    """Lifecycle state of a derived structure."""

    ABSENT = "absent"
    READY = "ready"
    STALE = "stale"


# Derived structure name -> method that rebuilds it after a structural edit
_REBUILD_METHODS = {
    "lookup tables": "rebuild_lookup_tables",
    "nodal search tree": "build_nodal_search_tree",
    "elemental search tree": "build_elemental_search_tree",
}


class Mesh:
    """An unstructured mesh of triangles and quadrilaterals.

    Args:
        filename: Mesh file used by :meth:`read`
        config: Mesh configuration, defaults to ``MeshConfig()``

    Example:
        >>> mesh = Mesh("fort.14")
        >>> mesh.read()
        >>> mesh.find_element(-90.1, 29.5)
    """

    def __init__(self, filename: Optional[Union[str, Path]] = None, config: Optional[MeshConfig] = None):
        self.config = config or MeshConfig()
        self.filename = str(filename) if filename is not None else None
        self.header = ""

        self.nodes: List[Node] = []
        self.elements: List[Element] = []
        self.open_boundaries: List[Boundary] = []
        self.land_boundaries: List[Boundary] = []

        self.epsg = self.config.default_epsg
        self.is_geographic = self.config.default_geographic

        self._node_ordering: Optional[Ordering] = None
        self._element_ordering: Optional[Ordering] = None
        self._nodal_tree = SearchTree("nodal")
        self._elemental_tree = SearchTree("elemental")
        self._element_table: Optional[ElementTable] = None

        self._state = {name: StructureState.ABSENT for name in _REBUILD_METHODS}

    def __repr__(self) -> str:
        return (
            f"Mesh(filename={self.filename!r}, nodes={self.num_nodes}, elements={self.num_elements}, "
            f"open_boundaries={self.num_open_boundaries}, land_boundaries={self.num_land_boundaries})"
        )

    # ------------------------------------------------------------------
    # Reading and writing
    # ------------------------------------------------------------------

    def clear(self) -> None:
        """Remove all records and derived structures."""
        self.header = ""
        self.nodes = []
        self.elements = []
        self.open_boundaries = []
        self.land_boundaries = []
        self._node_ordering = None
        self._element_ordering = None
        self._nodal_tree.clear()
        self._elemental_tree.clear()
        self._element_table = None
        for name in self._state:
            self._state[name] = StructureState.ABSENT

    def read(
        self,
        path: Optional[Union[str, Path]] = None,
        format: Optional[Union[MeshFormat, str]] = None,
    ) -> None:
        """Read the mesh from ``path`` or :attr:`filename`.

        The mesh is cleared first and only adopts the records once the whole
        file has parsed, so a failed read leaves it empty.

        Args:
            path: Mesh file; replaces :attr:`filename` when given
            format: Mesh format or format name; detected when omitted

        Raises:
            MeshConfigurationError: If no filename is set or the format is unknown
            MeshNotFoundError: If the file does not exist
            MalformedRecordError: If the file content is malformed
        """
        if path is not None:
            self.filename = str(path)
        if not self.filename:
            raise MeshConfigurationError("No filename has been specified")
        if isinstance(format, str):
            format = MeshFormat.from_name(format)

        self.clear()
        data = read_mesh_data(self.filename, format)
        self._adopt(data)

    def _adopt(self, data: MeshData) -> None:
        self.header = data.header
        self.nodes = data.nodes
        self.elements = data.elements
        self.open_boundaries = data.open_boundaries
        self.land_boundaries = data.land_boundaries

        self._node_ordering = data.node_ordering or build_ordering("node", (n.id for n in self.nodes))
        self._element_ordering = data.element_ordering or build_ordering("element", (e.id for e in self.elements))
        self._state["lookup tables"] = StructureState.READY

        if data.epsg is not None:
            self.epsg = data.epsg
        if data.is_geographic is not None:
            self.is_geographic = data.is_geographic

        logger.debug(
            f"Adopted mesh records: node ordering sequential={self._node_ordering.is_sequential}, "
            f"element ordering sequential={self._element_ordering.is_sequential}"
        )

    def write(self, path: Union[str, Path], format: Optional[Union[MeshFormat, str]] = None) -> None:
        """Write the mesh to ``path``.

        Args:
            path: Output file
            format: Mesh format or format name; inferred from ``path`` when omitted
        """
        if isinstance(format, str):
            format = MeshFormat.from_name(format)
        for boundary in self.open_boundaries + self.land_boundaries:
            boundary.validate()
        write_mesh(self, path, format)

    # ------------------------------------------------------------------
    # Sizes and record access
    # ------------------------------------------------------------------

    @property
    def num_nodes(self) -> int:
        return len(self.nodes)

    @property
    def num_elements(self) -> int:
        return len(self.elements)

    @property
    def num_open_boundaries(self) -> int:
        return len(self.open_boundaries)

    @property
    def num_land_boundaries(self) -> int:
        return len(self.land_boundaries)

    @property
    def total_open_boundary_nodes(self) -> int:
        return sum(b.length for b in self.open_boundaries)

    @property
    def total_land_boundary_nodes(self) -> int:
        return sum(b.length for b in self.land_boundaries)

    @staticmethod
    def _at(records: list, index: int, what: str):
        if not 0 <= index < len(records):
            raise MeshNotFoundError(f"{what} index {index} out of range (0..{len(records) - 1})")
        return records[index]

    def node(self, index: int) -> Node:
        """Node at storage position ``index``."""
        return self._at(self.nodes, index, "Node")

    def element(self, index: int) -> Element:
        """Element at storage position ``index``."""
        return self._at(self.elements, index, "Element")

    def open_boundary(self, index: int) -> Boundary:
        return self._at(self.open_boundaries, index, "Open boundary")

    def land_boundary(self, index: int) -> Boundary:
        return self._at(self.land_boundaries, index, "Land boundary")

    # ------------------------------------------------------------------
    # Identifier lookups
    # ------------------------------------------------------------------

    def _require(self, name: str) -> None:
        if self._state[name] is StructureState.STALE:
            raise MeshInvariantError(
                f"Cannot use the {name} after a structural edit; call {_REBUILD_METHODS[name]}() first"
            )

    def _lookups(self):
        self._require("lookup tables")
        if self._state["lookup tables"] is StructureState.ABSENT:
            self.rebuild_lookup_tables()
        return self._node_ordering, self._element_ordering

    def rebuild_lookup_tables(self) -> None:
        """Recompute the identifier orderings from the current records.

        Raises:
            MalformedRecordError: If identifiers are duplicated
        """
        self._node_ordering = build_ordering("node", (n.id for n in self.nodes))
        self._element_ordering = build_ordering("element", (e.id for e in self.elements))
        self._element_table = None
        self._state["lookup tables"] = StructureState.READY
        logger.debug("Rebuilt identifier lookup tables")

    @property
    def node_ordering_is_sequential(self) -> bool:
        return self._lookups()[0].is_sequential

    @property
    def element_ordering_is_sequential(self) -> bool:
        return self._lookups()[1].is_sequential

    def node_index_by_id(self, node_id: int) -> int:
        """Storage position of the node with identifier ``node_id``."""
        return self._lookups()[0].index_of(node_id)

    def element_index_by_id(self, element_id: int) -> int:
        """Storage position of the element with identifier ``element_id``."""
        return self._lookups()[1].index_of(element_id)

    def node_by_id(self, node_id: int) -> Node:
        return self.nodes[self.node_index_by_id(node_id)]

    def element_by_id(self, element_id: int) -> Element:
        return self.elements[self.element_index_by_id(element_id)]

    def node_positions(self, node_ids) -> np.ndarray:
        """Storage positions for an integer array of node identifiers."""
        return self._lookups()[0].positions(node_ids)

    # ------------------------------------------------------------------
    # Coordinate accessors
    # ------------------------------------------------------------------

    @property
    def x(self) -> np.ndarray:
        return np.fromiter((n.x for n in self.nodes), dtype=float, count=self.num_nodes)

    @property
    def y(self) -> np.ndarray:
        return np.fromiter((n.y for n in self.nodes), dtype=float, count=self.num_nodes)

    @property
    def z(self) -> np.ndarray:
        return np.fromiter((n.z for n in self.nodes), dtype=float, count=self.num_nodes)

    @property
    def xyz(self) -> np.ndarray:
        """Node coordinates as an (N, 3) array."""
        return np.column_stack([self.x, self.y, self.z]) if self.nodes else np.zeros((0, 3))

    def set_z(self, values: Sequence[float]) -> None:
        """Replace every node elevation, in storage order."""
        values = np.asarray(values, dtype=float).ravel()
        if values.size != self.num_nodes:
            raise MeshInvariantError(f"Expected {self.num_nodes} elevations, got {values.size}")
        for node, value in zip(self.nodes, values):
            node.z = float(value)

    def connectivity(self) -> List[List[int]]:
        """Node identifiers of every element, as stored."""
        return [list(e.nodes) for e in self.elements]

    # ------------------------------------------------------------------
    # Projection
    # ------------------------------------------------------------------

    def define_projection(self, epsg: int, is_geographic: bool) -> None:
        """Declare the coordinate system of the node coordinates."""
        self.epsg = int(epsg)
        self.is_geographic = bool(is_geographic)

    @property
    def projection(self) -> int:
        return self.epsg

    def _coordinates_moved(self) -> None:
        # Trees indexed the old coordinates; they rebuild on next use
        self._nodal_tree.clear()
        self._elemental_tree.clear()
        for name in ("nodal search tree", "elemental search tree"):
            if self._state[name] is StructureState.READY:
                self._state[name] = StructureState.ABSENT

    def _set_xy(self, x: np.ndarray, y: np.ndarray) -> None:
        for node, xi, yi in zip(self.nodes, x, y):
            node.x = float(xi)
            node.y = float(yi)
        self._coordinates_moved()

    def reproject(self, epsg: int) -> None:
        """Transform every node to the coordinate system ``epsg``.

        Raises:
            ExternalLibraryError: If the transformation fails
        """
        logger.info(f"Reprojecting mesh from EPSG:{self.epsg} to EPSG:{epsg}")
        x, y, is_geographic = projection.transform(self.x, self.y, self.epsg, epsg)
        self._set_xy(x, y)
        self.define_projection(epsg, is_geographic)

    def cpp(self, lambda0: float, phi0: float) -> None:
        """Convert geographic coordinates to the CPP projection about (lambda0, phi0)."""
        x, y = projection.cpp(self.x, self.y, lambda0, phi0, self.config.earth_radius)
        self._set_xy(x, y)
        self.is_geographic = False

    def inverse_cpp(self, lambda0: float, phi0: float) -> None:
        """Convert CPP coordinates back to longitude and latitude."""
        x, y = projection.inverse_cpp(self.x, self.y, lambda0, phi0, self.config.earth_radius)
        self._set_xy(x, y)
        self.is_geographic = True

    # ------------------------------------------------------------------
    # Search trees and queries
    # ------------------------------------------------------------------

    def build_nodal_search_tree(self) -> None:
        """Build the KD-tree over node positions."""
        self._nodal_tree.build(self.x, self.y)
        self._state["nodal search tree"] = StructureState.READY

    def build_elemental_search_tree(self) -> None:
        """Build the KD-tree over element centroids."""
        centroids = element_centroids(self)
        self._elemental_tree.build(centroids[:, 0], centroids[:, 1])
        self._state["elemental search tree"] = StructureState.READY

    def delete_nodal_search_tree(self) -> None:
        self._nodal_tree.clear()
        self._state["nodal search tree"] = StructureState.ABSENT

    def delete_elemental_search_tree(self) -> None:
        self._elemental_tree.clear()
        self._state["elemental search tree"] = StructureState.ABSENT

    @property
    def nodal_search_tree_initialized(self) -> bool:
        return self._state["nodal search tree"] is StructureState.READY

    @property
    def elemental_search_tree_initialized(self) -> bool:
        return self._state["elemental search tree"] is StructureState.READY

    def _nodal(self) -> SearchTree:
        self._require("nodal search tree")
        if self._state["nodal search tree"] is StructureState.ABSENT:
            self.build_nodal_search_tree()
        return self._nodal_tree

    def _elemental(self) -> SearchTree:
        self._require("elemental search tree")
        if self._state["elemental search tree"] is StructureState.ABSENT:
            self.build_elemental_search_tree()
        return self._elemental_tree

    def find_nearest_node(self, x: float, y: float) -> int:
        """Storage position of the node closest to ``(x, y)``."""
        return self._nodal().find_nearest(x, y)

    def find_nearest_nodes(self, x: Sequence[float], y: Sequence[float]) -> np.ndarray:
        """Storage positions of the nodes closest to each query point."""
        return self._nodal().find_nearest_many(x, y)

    def find_x_nearest_nodes(self, x: float, y: float, count: int) -> List[int]:
        """Storage positions of the ``count`` nodes closest to ``(x, y)``."""
        return self._nodal().find_x_nearest(x, y, count)

    def find_nearest_element(self, x: float, y: float) -> int:
        """Storage position of the element whose centroid is closest to ``(x, y)``."""
        return self._elemental().find_nearest(x, y)

    def find_x_nearest_elements(self, x: float, y: float, count: int) -> List[int]:
        return self._elemental().find_x_nearest(x, y, count)

    def _element_coordinates(self, element: Element) -> np.ndarray:
        positions = self.node_positions(element.nodes)
        return np.array([self.nodes[p].position for p in positions], dtype=float)

    def find_element(self, x: float, y: float, search_depth: Optional[int] = None) -> Optional[int]:
        """Locate the element containing ``(x, y)``.

        The ``search_depth`` elements with the nearest centroids are tested
        in order of distance. A point outside all of them is reported as not
        found even when a farther element would contain it.

        Args:
            x: Query x coordinate
            y: Query y coordinate
            search_depth: Number of candidates, ``config.search_depth`` by default

        Returns:
            Storage position of the first containing element, or None
        """
        depth = self.config.search_depth if search_depth is None else search_depth
        if depth < 1:
            raise MeshConfigurationError(f"Search depth must be positive, got {depth}")

        for position in self._elemental().find_x_nearest(x, y, depth):
            if element_contains(self._element_coordinates(self.elements[position]), x, y):
                return position
        return None

    # ------------------------------------------------------------------
    # Topology
    # ------------------------------------------------------------------

    def generate_link_table(self) -> np.ndarray:
        """Unique undirected links as an (n, 2) array of node identifiers."""
        return generate_link_table(self)

    def compute_mesh_size(self, geodesic: bool = False) -> np.ndarray:
        """Average incident element size at every node."""
        return compute_mesh_size(self, geodesic, self.config.earth_radius)

    def max_nodes_per_element(self) -> int:
        return max_nodes_per_element(self)

    def sort_element_vertices(self) -> None:
        """Put the vertices of every element in centroid-angle order."""
        for element, vertices in zip(self.elements, normalized_connectivity(self)):
            element.nodes = vertices

    def build_element_table(self) -> None:
        self._lookups()
        self._element_table = ElementTable(self)
        self._element_table.build()

    @property
    def element_table_initialized(self) -> bool:
        return self._element_table is not None and self._element_table.is_built

    def element_list(self, node_id: int) -> List[int]:
        """Storage positions of the elements that reference node ``node_id``."""
        if not self.element_table_initialized:
            self.build_element_table()
        return self._element_table.element_list(node_id)

    # ------------------------------------------------------------------
    # Structural edits
    # ------------------------------------------------------------------

    def _mark_stale(self, *names: str) -> None:
        # Structures never built stay absent and build from the edited records
        for name in names:
            if self._state[name] is StructureState.READY:
                self._state[name] = StructureState.STALE
        self._element_table = None

    def _node_edit(self) -> None:
        self._mark_stale("lookup tables", "nodal search tree", "elemental search tree")

    def _element_edit(self) -> None:
        self._mark_stale("lookup tables", "elemental search tree")

    def resize_mesh(
        self,
        num_nodes: int,
        num_elements: int,
        num_open_boundaries: Optional[int] = None,
        num_land_boundaries: Optional[int] = None,
    ) -> None:
        """Truncate or pad the record lists.

        Padding nodes are placed at the origin with identifier
        ``position + 1``. Padding elements reference node 0, which never
        resolves, and must be replaced with :meth:`add_element` before use.
        """
        if min(num_nodes, num_elements) < 0:
            raise MeshConfigurationError("Mesh sizes must be non-negative")

        if num_nodes != self.num_nodes:
            del self.nodes[num_nodes:]
            self.nodes.extend(Node(i + 1, 0.0, 0.0, 0.0) for i in range(len(self.nodes), num_nodes))
            self._node_edit()

        if num_elements != self.num_elements:
            del self.elements[num_elements:]
            self.elements.extend(Element(i + 1, [0, 0, 0]) for i in range(len(self.elements), num_elements))
            self._element_edit()

        if num_open_boundaries is not None:
            del self.open_boundaries[num_open_boundaries:]
            self.open_boundaries.extend(Boundary() for _ in range(len(self.open_boundaries), num_open_boundaries))
        if num_land_boundaries is not None:
            del self.land_boundaries[num_land_boundaries:]
            self.land_boundaries.extend(Boundary(code=0) for _ in range(len(self.land_boundaries), num_land_boundaries))

    def add_node(self, node: Node, index: Optional[int] = None) -> None:
        """Append ``node``, or replace the node at storage position ``index``."""
        if index is None:
            self.nodes.append(node)
        else:
            self._at(self.nodes, index, "Node")
            self.nodes[index] = node
        self._node_edit()

    def delete_node(self, index: int) -> None:
        """Remove the node at ``index``; later nodes shift down one position.

        Elements and boundaries that reference the node are left untouched.
        """
        self._at(self.nodes, index, "Node")
        del self.nodes[index]
        self._node_edit()

    def add_element(self, element: Element, index: Optional[int] = None) -> None:
        """Append ``element``, or replace the element at storage position ``index``."""
        if index is None:
            self.elements.append(element)
        else:
            self._at(self.elements, index, "Element")
            self.elements[index] = element
        self._element_edit()

    def delete_element(self, index: int) -> None:
        self._at(self.elements, index, "Element")
        del self.elements[index]
        self._element_edit()

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def to_node_shapefile(self, path: Union[str, Path]) -> None:
        from adcmesh.io.shapefiles import write_node_shapefile

        write_node_shapefile(self, path)

    def to_connectivity_shapefile(self, path: Union[str, Path]) -> None:
        from adcmesh.io.shapefiles import write_connectivity_shapefile

        write_connectivity_shapefile(self, path)

    def to_element_shapefile(self, path: Union[str, Path]) -> None:
        from adcmesh.io.shapefiles import write_element_shapefile

        write_element_shapefile(self, path)
