#!/usr/bin/env python
"""
Test suite for element topology: vertex ordering, links, incidence and size.
"""

import math
import os
import sys
import unittest

import numpy as np

# Add source directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from adcmesh.mesh.records import Element, Node
from adcmesh.mesh.topology import (
    ElementTable,
    compute_mesh_size,
    element_area,
    element_centroids,
    element_contains,
    element_legs,
    element_size,
    generate_link_table,
    haversine,
    normalized_connectivity,
    sort_vertices_about_center,
)
from mesh_samples import grid_mesh, two_triangle_mesh


class TestVertexOrdering(unittest.TestCase):
    """Test centroid-angle vertex ordering."""

    def test_clockwise_square_is_reordered(self):
        coords = np.array([[0.0, 0.0], [0.0, 1.0], [1.0, 1.0], [1.0, 0.0]])
        order = sort_vertices_about_center(coords)
        np.testing.assert_array_equal(order, [0, 3, 2, 1])

    def test_ordering_is_idempotent(self):
        rng = np.random.default_rng(3)
        for _ in range(20):
            coords = rng.uniform(-10.0, 10.0, size=(4, 2))
            once = coords[sort_vertices_about_center(coords)]
            np.testing.assert_array_equal(sort_vertices_about_center(once), np.arange(4))

    def test_normalized_connectivity(self):
        mesh = two_triangle_mesh()
        mesh.elements[0] = Element(1, [3, 2, 1])
        self.assertEqual(normalized_connectivity(mesh), [[1, 2, 3], [1, 3, 4]])

    def test_sort_element_vertices_is_stable_on_repeat(self):
        mesh = grid_mesh(2, 2, quads=True)
        mesh.sort_element_vertices()
        first = mesh.connectivity()
        mesh.sort_element_vertices()
        self.assertEqual(mesh.connectivity(), first)


class TestGeometry(unittest.TestCase):
    """Test per-element geometric measures."""

    def test_legs(self):
        self.assertEqual(element_legs([1, 2, 3]), [(1, 2), (2, 3), (3, 1)])

    def test_area(self):
        square = np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0]])
        self.assertAlmostEqual(element_area(square), 1.0)
        self.assertAlmostEqual(element_area(square[::-1]), 1.0)

    def test_size(self):
        triangle = np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0]])
        self.assertAlmostEqual(element_size(triangle), (2.0 + math.sqrt(2.0)) / 3.0)

    def test_geodesic_size(self):
        # One degree of longitude along the equator
        distance = haversine(0.0, 0.0, 1.0, 0.0)
        self.assertAlmostEqual(float(distance), 6378206.4 * math.radians(1.0), places=3)

    def test_contains(self):
        triangle = np.array([[0.0, 0.0], [1.0, 1.0], [1.0, 0.0]])
        self.assertTrue(element_contains(triangle, 0.75, 0.25))
        self.assertFalse(element_contains(triangle, 0.25, 0.75))

    def test_contains_boundary(self):
        triangle = np.array([[0.0, 0.0], [1.0, 1.0], [1.0, 0.0]])
        for x, y in [(0.0, 0.0), (1.0, 1.0), (1.0, 0.0), (0.5, 0.0), (1.0, 0.5), (0.5, 0.5)]:
            self.assertTrue(element_contains(triangle, x, y), (x, y))
        self.assertFalse(element_contains(triangle, 0.5, -1.0e-6))
        self.assertFalse(element_contains(triangle, 1.5, 0.0))

    def test_contains_degenerate(self):
        line = np.array([[0.0, 0.0], [1.0, 0.0], [2.0, 0.0]])
        self.assertFalse(element_contains(line, 1.0, 0.0))

    def test_centroids(self):
        centroids = element_centroids(two_triangle_mesh())
        np.testing.assert_allclose(centroids, [[2.0 / 3.0, 1.0 / 3.0], [1.0 / 3.0, 2.0 / 3.0]])


class TestLinkTable(unittest.TestCase):
    """Test the deduplicated edge table."""

    def test_two_triangles_share_one_edge(self):
        links = generate_link_table(two_triangle_mesh())
        self.assertEqual(links.shape, (5, 2))
        self.assertEqual(
            [tuple(row) for row in links.tolist()],
            [(1, 2), (1, 3), (1, 4), (2, 3), (3, 4)],
        )

    def test_links_are_canonical(self):
        links = generate_link_table(grid_mesh(3, 2))
        self.assertTrue(np.all(links[:, 0] < links[:, 1]))
        self.assertEqual(len({tuple(row) for row in links.tolist()}), len(links))
        # Horizontal, vertical and diagonal edges of a 3x2 triangulated grid
        self.assertEqual(len(links), 3 * 3 + 4 * 2 + 3 * 2)

    def test_mixed_mesh(self):
        mesh = two_triangle_mesh()
        mesh.nodes.append(Node(5, 2.0, 0.0, 0.0))
        mesh.nodes.append(Node(6, 2.0, 1.0, 0.0))
        mesh.elements.append(Element(3, [2, 5, 6, 3]))
        self.assertEqual(len(generate_link_table(mesh)), 8)

    def test_empty_mesh(self):
        mesh = two_triangle_mesh()
        mesh.elements = []
        self.assertEqual(generate_link_table(mesh).shape, (0, 2))


class TestElementTable(unittest.TestCase):
    """Test node to element incidence."""

    def test_incidence(self):
        mesh = two_triangle_mesh()
        table = ElementTable(mesh)
        self.assertFalse(table.is_built)
        table.build()
        self.assertTrue(table.is_built)
        self.assertEqual(table.element_list(1), [0, 1])
        self.assertEqual(table.element_list(2), [0])
        self.assertEqual(table.element_list(4), [1])

    def test_every_reference_is_recorded(self):
        mesh = grid_mesh(3, 3)
        table = ElementTable(mesh)
        for position, element in enumerate(mesh.elements):
            for node_id in element.nodes:
                self.assertIn(position, table.element_list(node_id))

    def test_mesh_element_list(self):
        mesh = grid_mesh(2, 2, quads=True)
        # Centre node of a 2x2 quad grid touches all four cells
        self.assertEqual(sorted(mesh.element_list(5)), [0, 1, 2, 3])


class TestMeshSize(unittest.TestCase):
    """Test per-node mesh size."""

    def test_mesh_size(self):
        mesh = two_triangle_mesh()
        size = compute_mesh_size(mesh)
        expected = (2.0 + math.sqrt(2.0)) / 3.0
        np.testing.assert_allclose(size, [expected] * 4)

    def test_isolated_node_is_zero(self):
        mesh = two_triangle_mesh()
        mesh.nodes.append(Node(5, 5.0, 5.0, 0.0))
        size = mesh.compute_mesh_size()
        self.assertEqual(size[4], 0.0)
        self.assertTrue(np.all(size[:4] > 0.0))


if __name__ == '__main__':
    unittest.main()
