"""
Generic mesh exchange through meshio.

Converts a Mesh to and from a ``meshio.Mesh`` so that it can be written to
any format meshio supports (VTK, VTU, XDMF, Gmsh, ...). meshio is an
optional dependency.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union

import numpy as np

from adcmesh.core.errors import ExternalLibraryError, MeshInvariantError
from adcmesh.mesh.records import Element, Node

logger = logging.getLogger(__name__)

# Check for meshio availability
try:
    import meshio
    MESHIO_AVAILABLE = True
except ImportError:
    MESHIO_AVAILABLE = False
    logger.debug("meshio not available. Install with 'pip install meshio' for generic mesh export.")

_CELL_TYPES = {3: "triangle", 4: "quad"}

# Map common extensions to meshio formats
FORMAT_MAP = {
    ".vtk": "vtk",
    ".vtu": "vtu",
    ".xdmf": "xdmf",
    ".msh": "gmsh",
    ".obj": "obj",
    ".ply": "ply",
    ".stl": "stl",
}


def _require_meshio() -> None:
    if not MESHIO_AVAILABLE:
        raise ImportError("meshio is required for generic mesh export. Install it with 'pip install meshio'")


def to_meshio(mesh) -> "meshio.Mesh":
    """Convert a Mesh into a ``meshio.Mesh``.

    Points are the node coordinates in storage order with the elevation as
    the third coordinate; cells reference those storage positions. Element
    identifiers and node elevations are carried as cell and point data.

    Raises:
        ImportError: If meshio is not available
    """
    _require_meshio()

    cells = []
    element_ids = []
    for arity, cell_type in _CELL_TYPES.items():
        block = [e for e in mesh.elements if e.n == arity]
        if not block:
            continue
        ids = np.array([e.nodes for e in block], dtype=np.int64)
        cells.append((cell_type, mesh.node_positions(ids)))
        element_ids.append(np.array([e.id for e in block], dtype=np.int64))

    return meshio.Mesh(
        points=mesh.xyz,
        cells=cells,
        point_data={"elevation": mesh.z, "node_id": np.array([n.id for n in mesh.nodes], dtype=np.int64)},
        cell_data={"element_id": element_ids},
    )


def from_meshio(source: "meshio.Mesh", mesh=None):
    """Populate a Mesh from the triangle and quad cells of a ``meshio.Mesh``.

    Nodes and elements are numbered sequentially from one. Other cell
    types are skipped with a warning.

    Raises:
        ImportError: If meshio is not available
        MeshInvariantError: If the source has no triangle or quad cells
    """
    _require_meshio()
    from adcmesh.mesh.mesh import Mesh

    if mesh is None:
        mesh = Mesh()
    mesh.clear()

    points = np.asarray(source.points, dtype=float)
    z = points[:, 2] if points.shape[1] > 2 else np.zeros(len(points))
    mesh.nodes = [Node(i + 1, float(p[0]), float(p[1]), float(zi)) for i, (p, zi) in enumerate(zip(points, z))]

    elements = []
    for block in source.cells:
        if block.type not in _CELL_TYPES.values():
            logger.warning(f"Skipping {len(block.data)} {block.type} cells")
            continue
        for row in np.asarray(block.data):
            elements.append(Element(len(elements) + 1, [int(v) + 1 for v in row]))
    if not elements:
        raise MeshInvariantError("meshio mesh contains no triangle or quad cells")

    mesh.elements = elements
    mesh.header = "meshio"
    mesh.rebuild_lookup_tables()
    logger.info(f"Converted meshio mesh: {mesh.num_nodes} nodes, {mesh.num_elements} elements")
    return mesh


def export_mesh(mesh, filename: Union[str, Path], file_format: Optional[str] = None) -> None:
    """Write a Mesh in any format supported by meshio.

    Args:
        mesh: Mesh to export
        filename: Output file path
        file_format: meshio format name, inferred from the extension when omitted

    Raises:
        ImportError: If meshio is not available
        ExternalLibraryError: If meshio fails to write the file
    """
    _require_meshio()

    if file_format is None:
        file_format = FORMAT_MAP.get(os.path.splitext(str(filename))[1].lower())

    logger.info(f"Exporting mesh to {filename} using meshio")
    try:
        meshio.write(str(filename), to_meshio(mesh), file_format=file_format)
    except (OSError, ValueError, KeyError) as e:
        logger.error(f"meshio failed writing {filename}: {e}")
        raise ExternalLibraryError(f"Error exporting mesh to {filename}: {e}") from e
