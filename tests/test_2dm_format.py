#!/usr/bin/env python
"""
Test suite for reading and writing Aquaveo 2dm meshes.
"""

import os
import sys
import tempfile
import unittest

# Add source directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from adcmesh.core.errors import MalformedRecordError, MeshInvariantError
from adcmesh.mesh.formats import MeshFormat, detect_format
from adcmesh.mesh.mesh import Mesh
from mesh_samples import ADCIRC_SAMPLE, TWODM_SAMPLE, write_sample


class TestTwoDM(unittest.TestCase):
    """Test the 2dm reader and writer."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.path = write_sample(self.temp_dir.name, "sample.2dm", TWODM_SAMPLE)

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_read(self):
        mesh = Mesh(self.path)
        mesh.read()
        self.assertEqual(mesh.header, "two dm test")
        self.assertEqual(mesh.num_nodes, 5)
        self.assertEqual(mesh.num_elements, 2)
        self.assertEqual(mesh.element(0).nodes, [1, 2, 3])
        self.assertEqual(mesh.element(1).nodes, [2, 4, 5, 3])
        self.assertEqual(mesh.node_by_id(4).position, (2.0, 0.0))
        self.assertEqual(mesh.num_open_boundaries, 0)
        self.assertEqual(mesh.num_land_boundaries, 0)

    def test_round_trip(self):
        mesh = Mesh(self.path)
        mesh.read()
        out_path = os.path.join(self.temp_dir.name, "copy.2dm")
        mesh.write(out_path)

        with open(out_path) as f:
            lines = f.read().splitlines()
        self.assertEqual(lines[0], "MESH2D")
        self.assertEqual(lines[1], 'MESHNAME "two dm test"')
        self.assertEqual(lines[2], "E3T 1 1 2 3 1")
        self.assertEqual(lines[3], "E4Q 2 2 4 5 3 1")
        self.assertTrue(lines[4].startswith("ND 1 "))

        copy = Mesh(out_path)
        copy.read()
        self.assertEqual(copy.header, mesh.header)
        self.assertEqual(copy.nodes, mesh.nodes)
        self.assertEqual(copy.elements, mesh.elements)

    def test_boundaries_are_dropped(self):
        mesh = Mesh(write_sample(self.temp_dir.name, "fort.14", ADCIRC_SAMPLE))
        mesh.read()
        out_path = os.path.join(self.temp_dir.name, "converted.2dm")
        mesh.write(out_path)

        copy = Mesh(out_path)
        copy.read()
        self.assertEqual(copy.num_nodes, 9)
        self.assertEqual(copy.num_elements, 8)
        self.assertEqual(copy.num_open_boundaries, 0)
        self.assertEqual(copy.num_land_boundaries, 0)

    def test_default_meshname(self):
        content = "\n".join(line for line in TWODM_SAMPLE.splitlines() if not line.startswith("MESHNAME"))
        mesh = Mesh(write_sample(self.temp_dir.name, "noname.2dm", content))
        mesh.read()
        self.assertEqual(mesh.header, "Mesh")

    def test_unsupported_element_card(self):
        content = TWODM_SAMPLE + "E6T 3 1 2 3 4 5 1 1\n"
        mesh = Mesh(write_sample(self.temp_dir.name, "e6t.2dm", content))
        with self.assertRaises(MeshInvariantError):
            mesh.read()

    def test_unknown_node_reference(self):
        content = TWODM_SAMPLE.replace("E3T 1 1 2 3 1", "E3T 1 1 2 9 1")
        mesh = Mesh(write_sample(self.temp_dir.name, "badref.2dm", content))
        with self.assertRaises(MalformedRecordError) as ctx:
            mesh.read()
        self.assertIn("line 3", str(ctx.exception))

    def test_content_detection(self):
        path = write_sample(self.temp_dir.name, "mesh.dat", TWODM_SAMPLE)
        self.assertEqual(detect_format(path), MeshFormat.TWODM)
        mesh = Mesh(path)
        mesh.read()
        self.assertEqual(mesh.num_elements, 2)


if __name__ == '__main__':
    unittest.main()
