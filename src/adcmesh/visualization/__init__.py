"""Visualization utilities for adcmesh."""

from adcmesh.visualization.mesh_viz import element_polygons, plot_mesh, visualize_mesh

__all__ = ["element_polygons", "plot_mesh", "visualize_mesh"]
