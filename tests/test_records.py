#!/usr/bin/env python
"""
Test suite for node, element and boundary records.
"""

import os
import sys
import unittest

# Add source directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))

from adcmesh.core.errors import MalformedRecordError, MeshInvariantError
from adcmesh.mesh.records import Boundary, BoundaryKind, Element, Node


class TestNode(unittest.TestCase):
    """Test node line parsing and formatting."""

    def test_adcirc_geographic_format(self):
        node = Node(12, -90.5, 29.25, -3.5)
        line = node.to_adcirc_string(geographic=True)
        self.assertEqual(line, f"{12:11d}   {-90.5:14.10f}   {29.25:14.10f}  {-3.5:14.10f}")

    def test_adcirc_projected_format(self):
        line = Node(3, 1000.0, 2000.0, 5.0).to_adcirc_string(geographic=False)
        self.assertEqual(line, "          3        1000.0000        2000.0000          5.0000")

    def test_from_adcirc_string(self):
        node = Node.from_adcirc_string("  7   -90.1   29.5   1.0D+01  extra")
        self.assertEqual(node, Node(7, -90.1, 29.5, 10.0))

    def test_from_adcirc_string_too_few_fields(self):
        with self.assertRaises(MalformedRecordError):
            Node.from_adcirc_string("7 -90.1 29.5")

    def test_from_adcirc_string_bad_number(self):
        with self.assertRaises(MalformedRecordError):
            Node.from_adcirc_string("7 abc 29.5 1.0")

    def test_2dm_round_trip(self):
        node = Node(4, 2.0, 1.0, 4.0)
        self.assertEqual(Node.from_2dm_string(node.to_2dm_string()), node)

    def test_from_2dm_wrong_card(self):
        with self.assertRaises(MalformedRecordError):
            Node.from_2dm_string("NX 1 0.0 0.0 0.0")


class TestElement(unittest.TestCase):
    """Test element construction and serialisation."""

    def test_arity_is_checked(self):
        with self.assertRaises(MeshInvariantError):
            Element(1, [1, 2])
        with self.assertRaises(MeshInvariantError):
            Element(1, [1, 2, 3, 4, 5])

    def test_legs_include_closing_pair(self):
        self.assertEqual(Element(1, [1, 2, 3]).legs(), [(1, 2), (2, 3), (3, 1)])
        self.assertEqual(Element(1, [1, 2, 3, 4]).legs(), [(1, 2), (2, 3), (3, 4), (4, 1)])

    def test_adcirc_format(self):
        self.assertEqual(
            Element(5, [1, 2, 3]).to_adcirc_string(),
            "          5   3           1           2           3",
        )

    def test_from_adcirc_string(self):
        element = Element.from_adcirc_string("2 4 1 2 3 4")
        self.assertEqual(element.id, 2)
        self.assertEqual(element.nodes, [1, 2, 3, 4])
        self.assertEqual(element.n, 4)

    def test_from_adcirc_string_bad_count(self):
        with self.assertRaises(MeshInvariantError):
            Element.from_adcirc_string("2 5 1 2 3 4 5")

    def test_from_adcirc_string_missing_vertex(self):
        with self.assertRaises(MalformedRecordError):
            Element.from_adcirc_string("2 4 1 2 3")

    def test_2dm_cards(self):
        self.assertEqual(Element(1, [1, 2, 3]).to_2dm_string(), "E3T 1 1 2 3 1")
        self.assertEqual(Element(2, [1, 2, 3, 4]).to_2dm_string(), "E4Q 2 1 2 3 4 1")
        self.assertEqual(Element.from_2dm_string("E4Q 2 1 2 3 4 7").nodes, [1, 2, 3, 4])


class TestBoundary(unittest.TestCase):
    """Test boundary kinds and node line handling."""

    def test_kind_from_code(self):
        self.assertEqual(BoundaryKind.from_code(-1), BoundaryKind.OPEN)
        for code in (0, 1, 2, 10, 20, 52):
            self.assertEqual(BoundaryKind.from_code(code), BoundaryKind.LAND)
        for code in (3, 13, 23):
            self.assertEqual(BoundaryKind.from_code(code), BoundaryKind.EXTERNAL_WEIR)
        for code in (4, 24):
            self.assertEqual(BoundaryKind.from_code(code), BoundaryKind.INTERNAL_WEIR)
        for code in (5, 25):
            self.assertEqual(BoundaryKind.from_code(code), BoundaryKind.INTERNAL_WEIR_PIPE)

    def test_negative_land_code(self):
        with self.assertRaises(MalformedRecordError):
            BoundaryKind.from_code(-5)

    def test_external_weir_line(self):
        boundary = Boundary(code=13)
        boundary.append_node_line("9 1.5 0.75")
        self.assertEqual(boundary.node1, [9])
        self.assertEqual(boundary.crest_elevation, [1.5])
        self.assertEqual(boundary.supercritical_coefficient, [0.75])
        self.assertEqual(boundary.subcritical_coefficient, [])
        boundary.validate()

    def test_internal_weir_pipe_line(self):
        boundary = Boundary(code=25)
        boundary.append_node_line("5 6 2.5 0.8 0.9 0.1 0.5 0.2")
        self.assertEqual(boundary.node2, [6])
        self.assertEqual(boundary.pipe_diameter, [0.2])
        self.assertEqual(boundary.node_ids(), [5, 6])
        self.assertEqual(
            boundary.node_string(0),
            "          5           6       2.500       0.800       0.900       0.100       0.500       0.200",
        )

    def test_internal_weir_line_too_short(self):
        boundary = Boundary(code=4)
        with self.assertRaises(MalformedRecordError):
            boundary.append_node_line("4 5 2.0 0.8")

    def test_header_strings(self):
        self.assertEqual(Boundary(node1=[1, 2]).header_string(), "2")
        self.assertEqual(Boundary(code=20, node1=[1, 2, 3]).header_string(), "3 20")

    def test_validate_rejects_mismatched_attributes(self):
        boundary = Boundary(code=0, node1=[1, 2], crest_elevation=[1.0, 1.0])
        with self.assertRaises(MeshInvariantError):
            boundary.validate()

        boundary = Boundary(code=4, node1=[1, 2], node2=[3])
        with self.assertRaises(MeshInvariantError):
            boundary.validate()


if __name__ == '__main__':
    unittest.main()
