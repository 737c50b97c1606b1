"""
adcmesh Mesh Module

This module provides the unstructured mesh model including:
- Node, element and boundary records
- Identifier to storage position lookups
- Element topology: vertex ordering, link table, incidence, mesh size
- ADCIRC, 2dm and DFlow-FM readers and writers
- KD-tree search over nodes and element centroids
"""

from adcmesh.mesh.records import Boundary, BoundaryKind, Element, Node
from adcmesh.mesh.ordering import (
    IndexedOrdering,
    OrderingTracker,
    SequentialOrdering,
    build_ordering,
)
from adcmesh.mesh.topology import (
    ElementTable,
    compute_mesh_size,
    element_area,
    element_size,
    generate_link_table,
    sort_vertices_about_center,
)
from adcmesh.mesh.spatial import SearchTree
from .formats import (
    MeshData,
    MeshFormat,
    MeshFormatRegistry,
    detect_format,
    read_mesh_data,
    write_mesh,
)
from .mesh import Mesh, StructureState

__all__ = [
    # Records
    "Node",
    "Element",
    "Boundary",
    "BoundaryKind",
    # Identifier lookups
    "SequentialOrdering",
    "IndexedOrdering",
    "OrderingTracker",
    "build_ordering",
    # Topology
    "ElementTable",
    "compute_mesh_size",
    "element_area",
    "element_size",
    "generate_link_table",
    "sort_vertices_about_center",
    # Spatial search
    "SearchTree",
    # Formats
    "MeshData",
    "MeshFormat",
    "MeshFormatRegistry",
    "detect_format",
    "read_mesh_data",
    "write_mesh",
    # Mesh
    "Mesh",
    "StructureState",
]
