"""
Mesh visualization utilities for adcmesh.

This module draws the element outlines of a mesh with matplotlib, colours
elements by mean nodal elevation and overlays the open and land boundaries.
"""

import logging
import os
from typing import Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.collections import PolyCollection

from adcmesh.mesh.records import BoundaryKind
from adcmesh.mesh.topology import normalized_connectivity

# Configure logging
logger = logging.getLogger(__name__)

_BOUNDARY_COLORS = {
    BoundaryKind.OPEN: "tab:blue",
    BoundaryKind.LAND: "tab:green",
    BoundaryKind.EXTERNAL_WEIR: "tab:orange",
    BoundaryKind.INTERNAL_WEIR: "tab:red",
    BoundaryKind.INTERNAL_WEIR_PIPE: "tab:purple",
}


def element_polygons(mesh) -> list:
    """Vertex coordinates of every element in centroid-angle order."""
    x, y = mesh.x, mesh.y
    polygons = []
    for vertices in normalized_connectivity(mesh):
        positions = mesh.node_positions(vertices)
        polygons.append(np.column_stack([x[positions], y[positions]]))
    return polygons


def plot_mesh(
    mesh,
    ax: Optional[plt.Axes] = None,
    show_elevation: bool = True,
    show_boundaries: bool = True,
    edge_color: str = "k",
    line_width: float = 0.3,
    cmap: str = "viridis",
) -> plt.Axes:
    """Draw a mesh on a matplotlib axes.

    Args:
        mesh: Mesh to draw
        ax: Axes to draw on; a new figure is created when omitted
        show_elevation: Fill elements with their mean nodal elevation
        show_boundaries: Overlay open and land boundaries
        edge_color: Element outline colour
        line_width: Element outline width
        cmap: Colormap used for elevations

    Returns:
        The axes drawn on
    """
    if ax is None:
        _, ax = plt.subplots(figsize=(10, 8))

    polygons = element_polygons(mesh)
    collection = PolyCollection(polygons, edgecolors=edge_color, linewidths=line_width)
    ax.add_collection(collection)
    if show_elevation and polygons:
        z = mesh.z
        zmean = [float(z[mesh.node_positions(e.nodes)].mean()) for e in mesh.elements]
        collection.set_array(np.asarray(zmean))
        collection.set_cmap(cmap)
        plt.colorbar(collection, ax=ax, label="Elevation")
    else:
        collection.set_facecolor("none")

    if show_boundaries:
        for boundary in mesh.open_boundaries + mesh.land_boundaries:
            _plot_boundary(ax, mesh, boundary)

    if mesh.num_nodes:
        ax.set_xlim(float(mesh.x.min()), float(mesh.x.max()))
        ax.set_ylim(float(mesh.y.min()), float(mesh.y.max()))
    ax.set_aspect("equal" if not mesh.is_geographic else "auto")
    ax.set_xlabel("Longitude" if mesh.is_geographic else "X")
    ax.set_ylabel("Latitude" if mesh.is_geographic else "Y")
    ax.set_title(mesh.header or "Mesh")

    logger.debug(f"Plotted {len(polygons)} elements")
    return ax


def _plot_boundary(ax: plt.Axes, mesh, boundary) -> None:
    color = _BOUNDARY_COLORS[boundary.kind]
    positions = mesh.node_positions(boundary.node1)
    ax.plot(mesh.x[positions], mesh.y[positions], color=color, linewidth=1.5)
    if boundary.has_paired_nodes:
        paired = mesh.node_positions(boundary.node2)
        ax.plot(mesh.x[paired], mesh.y[paired], color=color, linewidth=1.5, linestyle="--")


def visualize_mesh(
    mesh,
    save_path: Optional[str] = None,
    fig_size: Tuple[int, int] = (10, 8),
    dpi: int = 300,
    show: bool = True,
    **kwargs,
) -> None:
    """Plot a mesh and optionally save the figure.

    Args:
        mesh: Mesh to draw
        save_path: Optional path to save the figure
        fig_size: Size of the figure as (width, height) in inches
        dpi: Resolution of the saved figure
        show: Whether to display the figure
        **kwargs: Passed on to :func:`plot_mesh`

    Raises:
        IOError: If the figure cannot be saved to the specified path
    """
    fig, ax = plt.subplots(figsize=fig_size)
    plot_mesh(mesh, ax=ax, **kwargs)
    plt.tight_layout()

    # Save figure if path is provided
    if save_path:
        try:
            save_dir = os.path.dirname(os.path.abspath(save_path))
            if save_dir and not os.path.exists(save_dir):
                os.makedirs(save_dir, exist_ok=True)
                logger.info(f"Created directory: {save_dir}")

            fig.savefig(save_path, dpi=dpi, bbox_inches="tight")
            logger.info(f"Saved visualization to {save_path}")
        except OSError as e:
            logger.error(f"Error saving visualization: {e}")
            raise IOError(f"Error saving visualization: {e}") from e

    if show:
        plt.show()
    else:
        plt.close(fig)
