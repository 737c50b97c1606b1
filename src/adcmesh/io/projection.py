"""
Coordinate transforms for mesh nodes.

Datum and projection changes are delegated to pyproj. The carte
parallelogrammatique (CPP) projection used internally by ADCIRC is a
simple equirectangular mapping and is computed directly.
"""

import logging
from typing import Tuple

import numpy as np
from pyproj import CRS, Transformer
from pyproj.exceptions import CRSError, ProjError

from adcmesh.core.errors import ExternalLibraryError

logger = logging.getLogger(__name__)

CPP_RADIUS = 6378206.4


def is_geographic_epsg(epsg: int) -> bool:
    """Whether the coordinate system ``epsg`` uses angular units."""
    try:
        return bool(CRS.from_epsg(epsg).is_geographic)
    except CRSError as e:
        logger.error(f"Unknown coordinate system EPSG:{epsg}: {e}")
        raise ExternalLibraryError(f"Unknown coordinate system EPSG:{epsg}") from e


def transform(x, y, epsg_in: int, epsg_out: int) -> Tuple[np.ndarray, np.ndarray, bool]:
    """Transform coordinates between two EPSG coordinate systems.

    Args:
        x: X coordinates (longitude for geographic systems)
        y: Y coordinates (latitude for geographic systems)
        epsg_in: Source EPSG code
        epsg_out: Target EPSG code

    Returns:
        Tuple of (x, y, is_geographic) where ``is_geographic`` describes the
        target coordinate system

    Raises:
        ExternalLibraryError: If pyproj rejects a code or produces
            non-finite output
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)

    try:
        transformer = Transformer.from_crs(f"EPSG:{epsg_in}", f"EPSG:{epsg_out}", always_xy=True)
        x_out, y_out = transformer.transform(x, y)
    except (CRSError, ProjError) as e:
        logger.error(f"pyproj failed transforming EPSG:{epsg_in} to EPSG:{epsg_out}: {e}")
        raise ExternalLibraryError(f"Error transforming EPSG:{epsg_in} to EPSG:{epsg_out}: {e}") from e

    x_out = np.asarray(x_out, dtype=float)
    y_out = np.asarray(y_out, dtype=float)
    if not (np.all(np.isfinite(x_out)) and np.all(np.isfinite(y_out))):
        logger.error(f"Transform from EPSG:{epsg_in} to EPSG:{epsg_out} produced non-finite coordinates")
        raise ExternalLibraryError(f"Transform from EPSG:{epsg_in} to EPSG:{epsg_out} produced non-finite coordinates")

    logger.debug(f"Transformed {x.size} points from EPSG:{epsg_in} to EPSG:{epsg_out}")
    return x_out, y_out, is_geographic_epsg(epsg_out)


def cpp(lon, lat, lambda0: float, phi0: float, radius: float = CPP_RADIUS) -> Tuple[np.ndarray, np.ndarray]:
    """Project longitude/latitude to CPP coordinates about (lambda0, phi0)."""
    lon = np.asarray(lon, dtype=float)
    lat = np.asarray(lat, dtype=float)
    x = radius * np.radians(lon - lambda0) * np.cos(np.radians(phi0))
    y = radius * np.radians(lat)
    return x, y


def inverse_cpp(x, y, lambda0: float, phi0: float, radius: float = CPP_RADIUS) -> Tuple[np.ndarray, np.ndarray]:
    """Recover longitude/latitude from CPP coordinates."""
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    lon = lambda0 + np.degrees(x / (radius * np.cos(np.radians(phi0))))
    lat = np.degrees(y / radius)
    return lon, lat
