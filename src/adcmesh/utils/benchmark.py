"""
Benchmark utilities for adcmesh.

This module measures search tree construction and query throughput on a
loaded mesh: nearest node, nearest element and point location.
"""

import logging
import time
from typing import Optional, Tuple

import numpy as np

# Configure logging
logger = logging.getLogger(__name__)


def generate_query_points(
    bounds: Tuple[float, float, float, float], num_points: int, seed: Optional[int] = None
) -> Tuple[np.ndarray, np.ndarray]:
    """Generate uniformly distributed query points inside a bounding box.

    Args:
        bounds: (xmin, ymin, xmax, ymax)
        num_points: Number of points to generate
        seed: Random seed for reproducibility

    Returns:
        Tuple of x and y coordinate arrays
    """
    rng = np.random.default_rng(seed)
    xmin, ymin, xmax, ymax = bounds
    return rng.uniform(xmin, xmax, num_points), rng.uniform(ymin, ymax, num_points)


def benchmark_search(mesh, num_queries: int = 1000, seed: Optional[int] = None) -> dict:
    """Time search tree builds and queries on ``mesh``.

    Existing trees are discarded so that build times are measured from
    scratch.

    Args:
        mesh: Mesh with at least one element
        num_queries: Number of random query points
        seed: Random seed for reproducibility

    Returns:
        Dictionary of benchmark results including timings and the number
        of query points located inside an element
    """
    results = {"num_nodes": mesh.num_nodes, "num_elements": mesh.num_elements, "num_queries": num_queries}

    mesh.delete_nodal_search_tree()
    mesh.delete_elemental_search_tree()

    start_time = time.perf_counter()
    mesh.build_nodal_search_tree()
    results["nodal_build_time"] = time.perf_counter() - start_time

    start_time = time.perf_counter()
    mesh.build_elemental_search_tree()
    results["elemental_build_time"] = time.perf_counter() - start_time

    x, y = mesh.x, mesh.y
    qx, qy = generate_query_points((x.min(), y.min(), x.max(), y.max()), num_queries, seed)

    start_time = time.perf_counter()
    mesh.find_nearest_nodes(qx, qy)
    results["nearest_node_time"] = time.perf_counter() - start_time

    start_time = time.perf_counter()
    for xi, yi in zip(qx, qy):
        mesh.find_nearest_element(xi, yi)
    results["nearest_element_time"] = time.perf_counter() - start_time

    start_time = time.perf_counter()
    located = sum(1 for xi, yi in zip(qx, qy) if mesh.find_element(xi, yi) is not None)
    results["locate_time"] = time.perf_counter() - start_time
    results["located"] = located

    return results


def log_benchmark_results(results: dict) -> None:
    """Log the output of :func:`benchmark_search`."""
    logger.info("Benchmark results:")
    logger.info(f"  Mesh: {results['num_nodes']} nodes, {results['num_elements']} elements")
    logger.info(f"  Nodal tree build: {results['nodal_build_time']:.4f} seconds")
    logger.info(f"  Elemental tree build: {results['elemental_build_time']:.4f} seconds")
    logger.info(f"  {results['num_queries']} nearest node queries: {results['nearest_node_time']:.4f} seconds")
    logger.info(f"  {results['num_queries']} nearest element queries: {results['nearest_element_time']:.4f} seconds")
    logger.info(
        f"  {results['num_queries']} point locations: {results['locate_time']:.4f} seconds "
        f"({results['located']} inside the mesh)"
    )
