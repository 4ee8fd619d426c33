import unittest

import numpy as np

from distnet.core.partition import partition_graph
from distnet.core.properties import PropertyArray, bucket_property, generate, vertex_property_table
from distnet.core.structure import PropertyKind
from distnet.errors import ConfigurationError
from distnet.io.datasets import karate
from distnet.transport.local import run_local


class TestPropertyArray(unittest.TestCase):

    def test_lexicographic_less(self):
        a = PropertyArray([np.array([1, 1, 2, 0], dtype=np.int32), np.array([0.5, 0.2, 0.1, 9.0], dtype=np.float32)])
        b = PropertyArray([np.array([1, 1, 1, 1], dtype=np.int32), np.array([0.6, 0.2, 0.0, 0.0], dtype=np.float32)])
        self.assertEqual(a.less(b).tolist(), [True, False, False, True])
        self.assertEqual(b.less(a).tolist(), [False, False, True, False])

    def test_scalar_less_is_strict(self):
        a = PropertyArray([np.array([1, 2, 3])])
        b = PropertyArray([np.array([2, 2, 2])])
        self.assertEqual(a.less(b).tolist(), [True, False, False])

    def test_item_take_put(self):
        pair = PropertyArray([np.array([3, 4], dtype=np.int32), np.array([0.5, 1.5], dtype=np.float32)])
        self.assertEqual(pair.item(1), (4, 1.5))
        self.assertEqual(list(pair.take([1, 1, 0])), [(4, 1.5), (4, 1.5), (3, 0.5)])
        table = PropertyArray.empty(3, pair.dtypes)
        table.put([2, 0], pair)
        self.assertEqual(list(table), [(4, 1.5), (0, 0.0), (3, 0.5)])
        scalar = PropertyArray([np.array([7, 8])])
        self.assertEqual(scalar.item(0), 7)
        self.assertIsInstance(scalar.item(0), int)

    def test_shape_checks(self):
        with self.assertRaises(ConfigurationError):
            PropertyArray([])
        with self.assertRaises(ConfigurationError):
            PropertyArray([np.zeros(2), np.zeros(3)])
        with self.assertRaises(ValueError):
            PropertyArray([np.zeros(2, dtype=np.int32)]).less(PropertyArray([np.zeros(2, dtype=np.int64)]))

    def test_concat_and_equals(self):
        a = PropertyArray([np.array([1, 2])])
        b = PropertyArray([np.array([3])])
        c = PropertyArray.concat([a, b])
        self.assertTrue(c.equals(PropertyArray([np.array([1, 2, 3])])))
        self.assertFalse(c.equals(a))


class TestGeneration(unittest.TestCase):

    def test_bucket_range_and_dtype(self):
        labels = np.arange(1000)
        scalar = generate(bucket_property(5), labels)
        self.assertEqual(scalar.dtypes, (np.dtype(np.int32),))
        self.assertTrue(((scalar.fields[0] >= 0) & (scalar.fields[0] < 5)).all())
        self.assertEqual(len(np.unique(scalar.fields[0])), 5)
        pair = generate(bucket_property(5, PropertyKind.PAIR), labels)
        self.assertEqual(pair.dtypes, (np.dtype(np.int32), np.dtype(np.float32)))
        np.testing.assert_array_equal(pair.fields[0], scalar.fields[0])

    def test_pure_function_of_id(self):
        seed = bucket_property(7)
        a = generate(seed, np.array([5, 9, 11]))
        b = generate(seed, np.array([11, 5]))
        self.assertEqual(a.item(0), b.item(1))
        self.assertEqual(a.item(2), b.item(0))

    def test_single_bucket_is_constant(self):
        p = generate(bucket_property(1), np.arange(20))
        self.assertTrue((p.fields[0] == 0).all())

    def test_invalid(self):
        with self.assertRaises(ConfigurationError):
            bucket_property(0)
        with self.assertRaises(ValueError):
            bucket_property(3, "triple")
        with self.assertRaises(ConfigurationError):
            generate(lambda labels: [labels[:-1]], np.arange(4))

    def test_table_independent_of_node_count(self):
        edges = karate()

        def body(ctx):
            g = partition_graph(ctx, edges)
            table = vertex_property_table(ctx, g, 5)
            return dict(zip(g.local_labels.tolist(), table.fields[0].tolist()))

        reference = {}
        for part in run_local(body, 1):
            reference.update(part)
        for size in (2, 4, 7):
            merged = {}
            for part in run_local(body, size):
                merged.update(part)
            self.assertEqual(merged, reference)


if __name__ == "__main__":
    unittest.main()
