#!/usr/bin/env python
"""
Test suite for reading and writing ADCIRC ASCII meshes.
"""

import os
import sys
import tempfile
import unittest

# Add source directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from adcmesh.core.errors import (
    MalformedRecordError,
    MeshConfigurationError,
    MeshInvariantError,
    MeshNotFoundError,
)
from adcmesh.mesh.formats import MeshFormat
from adcmesh.mesh.mesh import Mesh
from adcmesh.mesh.records import BoundaryKind
from mesh_samples import (
    ADCIRC_MISSING_LAND,
    ADCIRC_NO_BOUNDARIES,
    ADCIRC_SAMPLE,
    ADCIRC_SPARSE_IDS,
    ADCIRC_TRUNCATED,
    ADCIRC_UNKNOWN_NODE,
    write_sample,
)


class TestAdcircRead(unittest.TestCase):
    """Test the ADCIRC reader."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.path = write_sample(self.temp_dir.name, "fort.14", ADCIRC_SAMPLE)
        self.mesh = Mesh(self.path)
        self.mesh.read()

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_counts(self):
        mesh = self.mesh
        self.assertEqual(mesh.header, "sample adcirc mesh")
        self.assertEqual(mesh.num_nodes, 9)
        self.assertEqual(mesh.num_elements, 8)
        self.assertEqual(mesh.num_open_boundaries, 1)
        self.assertEqual(mesh.num_land_boundaries, 5)
        self.assertEqual(mesh.total_open_boundary_nodes, 3)
        self.assertEqual(mesh.total_land_boundary_nodes, 10)
        self.assertTrue(mesh.node_ordering_is_sequential)
        self.assertTrue(mesh.element_ordering_is_sequential)

    def test_records(self):
        node = self.mesh.node_by_id(6)
        self.assertEqual((node.x, node.y, node.z), (2.0, 1.0, -6.0))
        self.assertEqual(self.mesh.element_by_id(4).nodes, [2, 6, 5])
        self.assertEqual(self.mesh.open_boundary(0).node1, [1, 2, 3])

    def test_boundary_kinds(self):
        kinds = [b.kind for b in self.mesh.land_boundaries]
        self.assertEqual(kinds, [
            BoundaryKind.LAND,
            BoundaryKind.EXTERNAL_WEIR,
            BoundaryKind.INTERNAL_WEIR,
            BoundaryKind.INTERNAL_WEIR_PIPE,
            BoundaryKind.LAND,
        ])

    def test_boundary_attributes(self):
        weir = self.mesh.land_boundary(1)
        self.assertEqual(weir.node1, [9, 8])
        self.assertEqual(weir.crest_elevation, [1.5, 1.5])
        self.assertEqual(weir.supercritical_coefficient, [1.0, 1.0])

        internal = self.mesh.land_boundary(2)
        self.assertEqual((internal.node1, internal.node2), ([4], [5]))
        self.assertEqual(internal.subcritical_coefficient, [0.8])

        pipe = self.mesh.land_boundary(3)
        self.assertEqual(pipe.node2, [6])
        self.assertEqual(pipe.pipe_height, [0.1])
        self.assertEqual(pipe.pipe_coefficient, [0.5])
        self.assertEqual(pipe.pipe_diameter, [0.2])
        for boundary in self.mesh.land_boundaries:
            boundary.validate()

    def test_round_trip(self):
        out_path = os.path.join(self.temp_dir.name, "copy.grd")
        self.mesh.write(out_path)

        copy = Mesh(out_path)
        copy.read()
        self.assertEqual(copy.header, self.mesh.header)
        self.assertEqual(copy.nodes, self.mesh.nodes)
        self.assertEqual(copy.elements, self.mesh.elements)
        self.assertEqual(copy.open_boundaries, self.mesh.open_boundaries)
        self.assertEqual(copy.land_boundaries, self.mesh.land_boundaries)

    def test_header_whitespace_preserved(self):
        self.mesh.header = "  hdr with spaces  "
        out_path = os.path.join(self.temp_dir.name, "spaced.14")
        self.mesh.write(out_path)

        copy = Mesh()
        copy.read(out_path)
        self.assertEqual(copy.header, "  hdr with spaces  ")
        self.assertEqual(copy.filename, out_path)

    def test_read_path_argument(self):
        mesh = Mesh()
        mesh.read(self.path, MeshFormat.ADCIRC)
        self.assertEqual(mesh.filename, self.path)
        self.assertEqual(mesh.num_nodes, 9)

    def test_written_layout(self):
        out_path = os.path.join(self.temp_dir.name, "layout.14")
        self.mesh.write(out_path)
        with open(out_path) as f:
            lines = f.read().splitlines()

        self.assertEqual(lines[0], "sample adcirc mesh")
        self.assertEqual(lines[1], "          8           9")
        self.assertEqual(lines[2], self.mesh.nodes[0].to_adcirc_string(True))
        self.assertTrue(lines[2].endswith("-1.0000000000"))
        # Open section: count, total, then the boundary length
        self.assertEqual(lines[19:22], ["1", "3", "3"])
        self.assertIn("3 0", lines)
        self.assertIn("1 5", lines)

    def test_projected_precision(self):
        self.mesh.define_projection(32615, False)
        out_path = os.path.join(self.temp_dir.name, "projected.14")
        self.mesh.write(out_path)
        with open(out_path) as f:
            lines = f.read().splitlines()
        self.assertTrue(lines[2].endswith("-1.0000"))
        self.assertFalse(lines[2].endswith("00000-1.0000"))


class TestAdcircIdentifiers(unittest.TestCase):
    """Test sparse identifiers and node references."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_sparse_identifiers(self):
        mesh = Mesh(write_sample(self.temp_dir.name, "sparse.14", ADCIRC_SPARSE_IDS))
        mesh.read()
        self.assertFalse(mesh.node_ordering_is_sequential)
        self.assertFalse(mesh.element_ordering_is_sequential)
        self.assertEqual(mesh.node_by_id(30).position, (1.0, 1.0))
        self.assertEqual(mesh.node_index_by_id(20), 3)
        self.assertEqual(mesh.element_index_by_id(3), 1)
        with self.assertRaises(MeshNotFoundError):
            mesh.node_by_id(2)
        with self.assertRaises(MeshNotFoundError):
            mesh.element_by_id(1)

    def test_sparse_identifiers_spatial(self):
        mesh = Mesh(write_sample(self.temp_dir.name, "sparse.14", ADCIRC_SPARSE_IDS))
        mesh.read()
        self.assertEqual(mesh.find_element(0.75, 0.25), 0)
        self.assertEqual(mesh.find_element(0.25, 0.75), 1)
        self.assertEqual(len(mesh.generate_link_table()), 5)

    def test_sparse_round_trip(self):
        mesh = Mesh(write_sample(self.temp_dir.name, "sparse.14", ADCIRC_SPARSE_IDS))
        mesh.read()
        out_path = os.path.join(self.temp_dir.name, "sparse_copy.14")
        mesh.write(out_path)
        copy = Mesh(out_path)
        copy.read()
        self.assertEqual([n.id for n in copy.nodes], [40, 10, 30, 20])
        self.assertEqual(copy.connectivity(), [[40, 10, 30], [40, 30, 20]])

    def test_unknown_node_reference(self):
        mesh = Mesh(write_sample(self.temp_dir.name, "bad.14", ADCIRC_UNKNOWN_NODE))
        with self.assertRaises(MalformedRecordError) as ctx:
            mesh.read()
        self.assertIn("bad.14", str(ctx.exception))

    def test_duplicate_identifiers(self):
        content = ADCIRC_NO_BOUNDARIES.replace("3 1.0 1.0 0.0", "2 1.0 1.0 0.0")
        mesh = Mesh(write_sample(self.temp_dir.name, "dup.14", content))
        with self.assertRaises(MalformedRecordError):
            mesh.read()


class TestAdcircErrors(unittest.TestCase):
    """Test the error taxonomy of the ADCIRC reader."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_truncated_file(self):
        mesh = Mesh(write_sample(self.temp_dir.name, "truncated.14", ADCIRC_TRUNCATED))
        with self.assertRaises(MalformedRecordError):
            mesh.read()

    def test_failed_read_leaves_mesh_empty(self):
        mesh = Mesh(write_sample(self.temp_dir.name, "good.14", ADCIRC_SAMPLE))
        mesh.read()
        self.assertEqual(mesh.num_nodes, 9)

        mesh.filename = write_sample(self.temp_dir.name, "truncated.14", ADCIRC_TRUNCATED)
        with self.assertRaises(MalformedRecordError):
            mesh.read()
        self.assertEqual(mesh.num_nodes, 0)
        self.assertEqual(mesh.num_elements, 0)
        self.assertEqual(mesh.num_open_boundaries, 0)
        self.assertEqual(mesh.num_land_boundaries, 0)
        self.assertEqual(mesh.header, "")

    def test_missing_boundaries_accepted(self):
        mesh = Mesh(write_sample(self.temp_dir.name, "plain.14", ADCIRC_NO_BOUNDARIES))
        mesh.read()
        self.assertEqual(mesh.num_elements, 2)
        self.assertEqual(mesh.num_open_boundaries, 0)
        self.assertEqual(mesh.num_land_boundaries, 0)

    def test_missing_land_section(self):
        mesh = Mesh(write_sample(self.temp_dir.name, "noland.14", ADCIRC_MISSING_LAND))
        with self.assertRaises(MalformedRecordError):
            mesh.read()

    def test_bad_element_arity(self):
        content = ADCIRC_NO_BOUNDARIES.replace("2 3 1 3 4", "2 5 1 3 4 2 1")
        mesh = Mesh(write_sample(self.temp_dir.name, "arity.14", content))
        with self.assertRaises(MeshInvariantError):
            mesh.read()

    def test_bad_number(self):
        content = ADCIRC_NO_BOUNDARIES.replace("2 1.0 0.0 0.0", "2 1.0 zero 0.0")
        mesh = Mesh(write_sample(self.temp_dir.name, "number.14", content))
        with self.assertRaises(MalformedRecordError) as ctx:
            mesh.read()
        self.assertIn("line 4", str(ctx.exception))

    def test_missing_file(self):
        mesh = Mesh(os.path.join(self.temp_dir.name, "missing.14"))
        with self.assertRaises(MeshNotFoundError):
            mesh.read()

    def test_no_filename(self):
        with self.assertRaises(MeshConfigurationError):
            Mesh().read()

    def test_undetectable_format(self):
        mesh = Mesh(write_sample(self.temp_dir.name, "mesh.txt", ADCIRC_SAMPLE))
        with self.assertRaises(MeshConfigurationError):
            mesh.read()

    def test_explicit_format(self):
        mesh = Mesh(write_sample(self.temp_dir.name, "mesh.txt", ADCIRC_SAMPLE))
        mesh.read(format=MeshFormat.ADCIRC)
        self.assertEqual(mesh.num_nodes, 9)

        mesh.read(format="adcirc")
        self.assertEqual(mesh.num_elements, 8)

        with self.assertRaises(MeshConfigurationError):
            mesh.read(format="gmsh")

    def test_unknown_output_extension(self):
        mesh = Mesh(write_sample(self.temp_dir.name, "fort.14", ADCIRC_SAMPLE))
        mesh.read()
        with self.assertRaises(MeshConfigurationError):
            mesh.write(os.path.join(self.temp_dir.name, "out.vtk"))


if __name__ == '__main__':
    unittest.main()
