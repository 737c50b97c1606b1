"""
Coordinate transforms and export sinks for meshes.
"""

from adcmesh.io.projection import cpp, inverse_cpp, is_geographic_epsg, transform
from adcmesh.io.shapefiles import (
    write_connectivity_shapefile,
    write_element_shapefile,
    write_node_shapefile,
)
from adcmesh.io.export import MESHIO_AVAILABLE, export_mesh, from_meshio, to_meshio

__all__ = [
    "transform",
    "is_geographic_epsg",
    "cpp",
    "inverse_cpp",
    "write_node_shapefile",
    "write_connectivity_shapefile",
    "write_element_shapefile",
    "MESHIO_AVAILABLE",
    "to_meshio",
    "from_meshio",
    "export_mesh",
]
