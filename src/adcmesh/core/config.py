"""Configuration module for adcmesh.

This module provides the configuration class shared by the mesh, its
format writers and the spatial query engine.
"""

from dataclasses import dataclass

from adcmesh.core.errors import MeshConfigurationError


@dataclass
class MeshConfig:
    """Configuration for mesh I/O and queries.

    Attributes:
        search_depth: Number of nearest element centroids examined by
            point location before reporting not found
        default_epsg: EPSG code assigned to a freshly created or read mesh
        default_geographic: Whether the default projection is geographic
        geographic_precision: Decimal places for node coordinates written
            in a geographic projection
        projected_precision: Decimal places for node coordinates written
            in a projected coordinate system
        boundary_precision: Decimal places for weir and pipe attributes
        link_type: Value written to the DFlow-FM NetLinkType variable
        earth_radius: Sphere radius in metres for geodesic sizes and the
            carte parallelogrammatique projection
    """

    search_depth: int = 20
    default_epsg: int = 4326
    default_geographic: bool = True
    geographic_precision: int = 10
    projected_precision: int = 4
    boundary_precision: int = 3
    link_type: int = 2
    earth_radius: float = 6378206.4

    def __post_init__(self) -> None:
        """Validate the configuration after initialization."""
        if self.search_depth < 1:
            raise MeshConfigurationError("search_depth must be a positive integer")

        for name in ("geographic_precision", "projected_precision", "boundary_precision"):
            if getattr(self, name) < 0:
                raise MeshConfigurationError(f"{name} must be non-negative")

        if self.earth_radius <= 0:
            raise MeshConfigurationError("earth_radius must be positive")

    def coordinate_precision(self, geographic: bool) -> int:
        """Return the coordinate precision for the given projection type."""
        return self.geographic_precision if geographic else self.projected_precision
