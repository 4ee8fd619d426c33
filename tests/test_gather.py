import unittest

import numpy as np
import polars as pl

from distnet.core.partition import partition_graph
from distnet.errors import CommunicationError
from distnet.ops.gather import gather_output, unrenumber_output
from distnet.transport.local import run_local

from helpers import small_edges


def _frame(rank, rows):
    return pl.DataFrame(
        {
            "src": np.full(rows, rank, dtype=np.int64),
            "dst": np.arange(rows, dtype=np.int64),
        }
    )


class TestGatherOutput(unittest.TestCase):

    def test_concatenates_on_root(self):
        def body(ctx):
            return gather_output(ctx, _frame(ctx.rank, ctx.rank + 1), root=2)

        out = run_local(body, 3)
        self.assertIsNone(out[0])
        self.assertIsNone(out[1])
        self.assertEqual(out[2].height, 1 + 2 + 3)
        self.assertEqual(sorted(out[2]["src"].to_list()), [0, 1, 1, 2, 2, 2])

    def test_empty_buffers(self):
        def body(ctx):
            return gather_output(ctx, _frame(ctx.rank, 0))

        root = run_local(body, 4)[0]
        self.assertEqual(root.height, 0)
        self.assertEqual(root.columns, ["src", "dst"])

    def test_schema_disagreement(self):
        def body(ctx):
            df = _frame(ctx.rank, 2)
            if ctx.rank == 1:
                df = df.with_columns(pl.col("dst").cast(pl.Int32))
            return gather_output(ctx, df)

        with self.assertRaises(CommunicationError):
            run_local(body, 3)

    def test_history(self):
        def body(ctx):
            gather_output(ctx, _frame(ctx.rank, 1))
            return [e.get("label") for e in ctx.history if e["op"] in ("allgather", "gather")]

        labels = run_local(body, 2)[1]
        self.assertEqual(labels, ["gather.schema", "gather.src", "gather.dst", None])


class TestUnrenumber(unittest.TestCase):

    def test_original_ids(self):
        edges = small_edges()

        def body(ctx):
            g = partition_graph(ctx, edges, vertex_dtype=np.int32, edge_dtype=np.int32)
            internal = pl.DataFrame({"src": g.src, "dst": g.dst, "payload": np.ones(g.num_local_edges, dtype=np.int32)})
            out = unrenumber_output(ctx, g, internal)
            return out, edges.src[g.edge_ids], edges.dst[g.edge_ids]

        for out, src, dst in run_local(body, 3):
            self.assertEqual(out.schema["src"], pl.Int64)
            self.assertEqual(out.schema["payload"], pl.Int32)
            np.testing.assert_array_equal(out["src"].to_numpy(), src)
            np.testing.assert_array_equal(out["dst"].to_numpy(), dst)


if __name__ == "__main__":
    unittest.main()
