"""Core configuration and error types for adcmesh."""

from adcmesh.core.config import MeshConfig
from adcmesh.core.errors import (
    ExternalLibraryError,
    MalformedRecordError,
    MeshConfigurationError,
    MeshError,
    MeshInvariantError,
    MeshNotFoundError,
)

__all__ = [
    "MeshConfig",
    "MeshError",
    "MeshConfigurationError",
    "MeshNotFoundError",
    "MalformedRecordError",
    "ExternalLibraryError",
    "MeshInvariantError",
]
