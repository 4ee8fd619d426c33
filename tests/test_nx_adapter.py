import unittest

import networkx as nx
import numpy as np

from distnet.adapters.networkx import from_nx, to_nx
from distnet.core.partition import EdgeList


class TestNetworkXAdapter(unittest.TestCase):

    def test_undirected_graph_is_symmetrized(self):
        G = nx.path_graph(3)
        edges = from_nx(G)
        self.assertEqual(edges.num_edges, 4)
        self.assertEqual(edges.num_vertices, 3)

    def test_string_labels(self):
        G = nx.DiGraph()
        G.add_edge("A", "B", weight=2.0)
        G.add_edge("B", "C", weight=3.0)
        edges = from_nx(G)
        self.assertEqual(edges.src.tolist(), [0, 1])
        self.assertEqual(edges.dst.tolist(), [1, 2])
        self.assertEqual(edges.weight.tolist(), [2.0, 3.0])

    def test_partial_attribute_dropped(self):
        G = nx.DiGraph()
        G.add_edge(0, 1, weight=1.0)
        G.add_edge(1, 2)
        self.assertIsNone(from_nx(G).weight)
        self.assertIsNone(from_nx(G, weight=None).weight)

    def test_roundtrip(self):
        edges = EdgeList([0, 0, 2], [1, 1, 0], weight=[1.0, 2.0, 3.0], tag=[1, 0, 1], vertices=[0, 1, 2, 5])
        G = to_nx(edges)
        self.assertIsInstance(G, nx.MultiDiGraph)
        self.assertIn(5, G.nodes)
        self.assertEqual(G.number_of_edges(), 3)
        self.assertEqual(G.edges[0, 1, 1]["weight"], 2.0)

        back = from_nx(G)
        np.testing.assert_array_equal(np.sort(back.vertex_labels()), [0, 1, 2, 5])
        self.assertEqual(
            sorted(zip(back.src.tolist(), back.dst.tolist(), back.weight.tolist(), back.tag.tolist())),
            sorted(zip(edges.src.tolist(), edges.dst.tolist(), edges.weight.tolist(), edges.tag.tolist())),
        )

    def test_karate(self):
        edges = from_nx(nx.karate_club_graph(), weight=None)
        self.assertEqual(edges.num_edges, 2 * nx.karate_club_graph().number_of_edges())


if __name__ == "__main__":
    unittest.main()
