# tests/test_io.py
import os
import tempfile
import unittest

import numpy as np

from distnet.config import EdgeListFileConfig, RmatConfig
from distnet.core.partition import EdgeList
from distnet.errors import ConfigurationError
from distnet.io import generate_rmat, karate, load_dataset, read_edgelist, write_edgelist


class TestEdgeListFiles(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmpdir = self._tmp.name

    def tearDown(self):
        self._tmp.cleanup()

    def _write(self, name, text):
        path = os.path.join(self.tmpdir, name)
        with open(path, "w") as f:
            f.write(text)
        return path

    def test_roundtrip_with_weights(self):
        edges = EdgeList([0, 1, 7], [1, 2, 0], weight=[0.5, 1.25, 2.0])
        path = os.path.join(self.tmpdir, "g.txt")
        self.assertEqual(write_edgelist(edges, path), 3)
        back = read_edgelist(path)
        np.testing.assert_array_equal(back.src, edges.src)
        np.testing.assert_array_equal(back.dst, edges.dst)
        np.testing.assert_allclose(back.weight, edges.weight)

    def test_comments_and_blank_lines(self):
        path = self._write("g.txt", "# header\n0 1\n\n% other comment\n1   2\n\t2 0\n")
        edges = read_edgelist(path)
        self.assertEqual(list(zip(edges.src.tolist(), edges.dst.tolist())), [(0, 1), (1, 2), (2, 0)])
        self.assertIsNone(edges.weight)

    def test_weight_selection(self):
        path = self._write("w.txt", "0 1 0.5\n1 2 1.5\n")
        self.assertIsNone(read_edgelist(path, weighted=False).weight)
        self.assertEqual(read_edgelist(path).weight.dtype, np.float32)
        plain = self._write("p.txt", "0 1\n")
        with self.assertRaises(ConfigurationError):
            read_edgelist(plain, weighted=True)

    def test_undirected(self):
        path = self._write("u.txt", "0 1\n1 1\n")
        edges = read_edgelist(path, undirected=True)
        self.assertEqual(edges.num_edges, 3)

    def test_matrix_market(self):
        text = "%%MatrixMarket matrix coordinate pattern symmetric\n% comment\n3 3 2\n2 1\n3 1\n"
        edges = read_edgelist(self._write("g.mtx", text))
        pairs = set(zip(edges.src.tolist(), edges.dst.tolist()))
        self.assertEqual(pairs, {(1, 0), (0, 1), (2, 0), (0, 2)})

    def test_malformed(self):
        with self.assertRaises(ConfigurationError):
            read_edgelist(self._write("r.txt", "0 1\n1 2 3 4\n"))
        with self.assertRaises(ConfigurationError):
            read_edgelist(self._write("n.txt", "0 x\n"))
        with self.assertRaises(ConfigurationError):
            read_edgelist(os.path.join(self.tmpdir, "missing.txt"))

    def test_empty_file(self):
        edges = read_edgelist(self._write("e.txt", ""))
        self.assertEqual(edges.num_edges, 0)

    def test_load_from_config(self):
        path = self._write("c.txt", "; skipped\n4 5\n")
        edges = load_dataset(EdgeListFileConfig(path, comment=";"))
        self.assertEqual(edges.src.tolist(), [4])


class TestRmat(unittest.TestCase):

    def test_shape_and_cleanup(self):
        edges = generate_rmat(scale=8, edge_factor=8, seed=11)
        n = 2 ** 8
        self.assertEqual(edges.num_vertices, n)
        self.assertLessEqual(edges.num_edges, 8 * n)
        self.assertGreater(edges.num_edges, n)
        self.assertFalse((edges.src == edges.dst).any())
        keys = edges.src * n + edges.dst
        self.assertEqual(np.unique(keys).size, keys.size)

    def test_seeded(self):
        a = generate_rmat(RmatConfig(scale=6, seed=5))
        b = generate_rmat(RmatConfig(scale=6, seed=5))
        c = generate_rmat(RmatConfig(scale=6, seed=6))
        np.testing.assert_array_equal(a.src, b.src)
        np.testing.assert_array_equal(a.dst, b.dst)
        self.assertFalse(a.num_edges == c.num_edges and np.array_equal(a.src, c.src))

    def test_undirected_is_symmetric(self):
        edges = generate_rmat(RmatConfig(scale=6, edge_factor=4, undirected=True, weighted=True))
        pairs = set(zip(edges.src.tolist(), edges.dst.tolist()))
        self.assertTrue(all((d, s) in pairs for s, d in pairs))
        self.assertEqual(edges.weight.size, edges.num_edges)

    def test_skew(self):
        edges = generate_rmat(RmatConfig(scale=10, edge_factor=8, seed=0))
        deg = np.bincount(edges.src, minlength=2 ** 10)
        self.assertGreater(deg.max(), 10 * np.median(deg))

    def test_bad_parameters(self):
        with self.assertRaises(ConfigurationError):
            RmatConfig(scale=0)
        with self.assertRaises(ConfigurationError):
            RmatConfig(a=0.6, b=0.3, c=0.3)
        with self.assertRaises(ConfigurationError):
            RmatConfig(edge_factor=0)


class TestDatasets(unittest.TestCase):

    def test_karate(self):
        edges = karate()
        self.assertEqual(edges.num_vertices, 34)
        self.assertEqual(edges.num_edges, 156)
        self.assertIs(edges.tag, None)

    def test_unknown(self):
        self.assertEqual(load_dataset("karate").num_edges, 156)
        with self.assertRaises(ConfigurationError):
            load_dataset("les-miserables")


if __name__ == "__main__":
    unittest.main()
