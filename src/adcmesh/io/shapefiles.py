"""
ESRI shapefile export of mesh nodes, links and elements.

Geometry is written with pyshp as 3D shapes so that node elevations are
carried in the z coordinate as well as in the attribute table.
"""

import logging
from pathlib import Path
from typing import Union

import numpy as np
import shapefile

from adcmesh.core.errors import ExternalLibraryError
from adcmesh.mesh.topology import generate_link_table, normalized_connectivity

logger = logging.getLogger(__name__)

MISSING_NODE = -1
MISSING_ELEVATION = -9999.0


def _writer(path: Union[str, Path], shape_type: int) -> shapefile.Writer:
    try:
        return shapefile.Writer(str(path), shapeType=shape_type)
    except (OSError, shapefile.ShapefileException) as e:
        logger.error(f"pyshp could not create {path}: {e}")
        raise ExternalLibraryError(f"Error creating shapefile {path}: {e}") from e


def write_node_shapefile(mesh, path: Union[str, Path]) -> None:
    """Write every node as a POINTZ shape."""
    logger.info(f"Writing node shapefile {path}")
    with _writer(path, shapefile.POINTZ) as w:
        w.field("nodeid", "N", 10, 0)
        w.field("longitude", "N", 19, 10)
        w.field("latitude", "N", 19, 10)
        w.field("elevation", "N", 19, 6)
        for node in mesh.nodes:
            w.pointz(node.x, node.y, node.z)
            w.record(node.id, node.x, node.y, node.z)
    logger.info(f"Written {mesh.num_nodes} node shapes")


def write_connectivity_shapefile(mesh, path: Union[str, Path]) -> None:
    """Write every unique mesh link as a POLYLINEZ shape."""
    logger.info(f"Writing connectivity shapefile {path}")
    links = generate_link_table(mesh)
    with _writer(path, shapefile.POLYLINEZ) as w:
        w.field("node1", "N", 10, 0)
        w.field("node2", "N", 10, 0)
        w.field("znode1", "N", 19, 6)
        w.field("znode2", "N", 19, 6)
        for id1, id2 in links.tolist():
            n1 = mesh.node_by_id(id1)
            n2 = mesh.node_by_id(id2)
            w.linez([[[n1.x, n1.y, n1.z], [n2.x, n2.y, n2.z]]])
            w.record(id1, id2, n1.z, n2.z)
    logger.info(f"Written {len(links)} link shapes")


def write_element_shapefile(mesh, path: Union[str, Path]) -> None:
    """Write every element as a closed POLYGONZ shape.

    Triangles report ``-1`` and ``-9999.0`` in the fourth node and
    elevation columns.
    """
    logger.info(f"Writing element shapefile {path}")
    connectivity = normalized_connectivity(mesh)
    with _writer(path, shapefile.POLYGONZ) as w:
        w.field("elementid", "N", 10, 0)
        for i in range(1, 5):
            w.field(f"node{i}", "N", 10, 0)
        for i in range(1, 5):
            w.field(f"znode{i}", "N", 19, 6)
        w.field("zmean", "N", 19, 6)

        for element, vertices in zip(mesh.elements, connectivity):
            nodes = [mesh.node_by_id(v) for v in vertices]
            ring = [[n.x, n.y, n.z] for n in nodes]
            # Shapefile outer rings are clockwise and closed
            ring = ring[::-1]
            ring.append(ring[0])
            w.polyz([ring])

            ids = list(vertices) + [MISSING_NODE] * (4 - len(vertices))
            zs = [n.z for n in nodes] + [MISSING_ELEVATION] * (4 - len(nodes))
            zmean = float(np.mean([n.z for n in nodes]))
            w.record(element.id, *ids, *zs, zmean)
    logger.info(f"Written {mesh.num_elements} element shapes")
