#!/usr/bin/env python
"""
Test suite for identifier to storage position lookups.
"""

import os
import sys
import unittest

import numpy as np

# Add source directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))

from adcmesh.core.errors import MalformedRecordError, MeshNotFoundError
from adcmesh.mesh.ordering import (
    IndexedOrdering,
    OrderingTracker,
    SequentialOrdering,
    build_ordering,
)


class TestOrdering(unittest.TestCase):
    """Test the sequential and indexed identifier orderings."""

    def test_sequential_detected(self):
        ordering = build_ordering("node", [1, 2, 3, 4])
        self.assertIsInstance(ordering, SequentialOrdering)
        self.assertTrue(ordering.is_sequential)
        self.assertEqual(ordering.index_of(3), 2)
        self.assertEqual(len(ordering), 4)

    def test_sequential_out_of_range(self):
        ordering = SequentialOrdering("node", 4)
        for identifier in (0, 5, -1):
            with self.assertRaises(MeshNotFoundError):
                ordering.index_of(identifier)
        self.assertFalse(ordering.contains(5))

    def test_sparse_identifiers_use_lookup(self):
        ordering = build_ordering("node", [40, 10, 30, 20])
        self.assertIsInstance(ordering, IndexedOrdering)
        self.assertFalse(ordering.is_sequential)
        self.assertEqual(ordering.index_of(40), 0)
        self.assertEqual(ordering.index_of(20), 3)
        with self.assertRaises(MeshNotFoundError):
            ordering.index_of(2)

    def test_out_of_place_identifier_breaks_sequence(self):
        tracker = OrderingTracker("element")
        for identifier in (1, 2, 4, 3):
            tracker.observe(identifier)
        ordering = tracker.finalize([1, 2, 4, 3])
        self.assertFalse(ordering.is_sequential)
        self.assertEqual(ordering.index_of(4), 2)

    def test_duplicate_identifiers(self):
        with self.assertRaises(MalformedRecordError):
            build_ordering("node", [1, 2, 2])

    def test_vectorised_positions(self):
        sequential = SequentialOrdering("node", 5)
        np.testing.assert_array_equal(sequential.positions([[1, 5], [3, 2]]), [[0, 4], [2, 1]])

        indexed = build_ordering("node", [40, 10, 30, 20])
        np.testing.assert_array_equal(indexed.positions([20, 40, 30]), [3, 0, 2])
        self.assertEqual(indexed.positions([]).size, 0)

    def test_vectorised_positions_missing(self):
        with self.assertRaises(MeshNotFoundError):
            SequentialOrdering("node", 3).positions([1, 4])
        with self.assertRaises(MeshNotFoundError):
            build_ordering("node", [40, 10]).positions([10, 11])


if __name__ == '__main__':
    unittest.main()
