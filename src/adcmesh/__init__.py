"""
adcmesh - Unstructured 2D coastal mesh library.

Reads, writes and queries triangle/quadrilateral meshes used by coastal
circulation models, in ADCIRC ASCII, Aquaveo 2dm and DFlow-FM netCDF formats.
"""

__author__ = "adcmesh developers"

try:
    from ._version import version as __version__
except ImportError:
    __version__ = "0.1.0"

from adcmesh.core import (
    ExternalLibraryError,
    MalformedRecordError,
    MeshConfig,
    MeshConfigurationError,
    MeshError,
    MeshInvariantError,
    MeshNotFoundError,
)
from adcmesh.mesh import Boundary, Element, Mesh, MeshFormat, Node

__all__ = [
    "Mesh",
    "MeshFormat",
    "MeshConfig",
    "Node",
    "Element",
    "Boundary",
    "MeshError",
    "MeshConfigurationError",
    "MeshNotFoundError",
    "MalformedRecordError",
    "ExternalLibraryError",
    "MeshInvariantError",
]
