"""Reference oracle and canonical comparator.

The root node rebuilds an unpartitioned copy of the graph and of the vertex
property table from every node's slice, reruns the operator on a one-node
context, and compares the two outputs after sorting both under the same total
order.
"""
from __future__ import annotations

import logging

import numpy as np
import polars as pl

from ..core.context import ClusterContext
from ..core.partition import EdgeList, GraphPartition, build_renumber_map, extract_partition, gather_labels
from ..core.properties import PropertyArray, bucket_property, generate
from ..errors import VerificationError
from ..ops.gather import unrenumber_output
from ..ops.propagate import propagate
from ..ops.transform import NO_EDGE_PROPERTY, edge_property_view, run
from ..transport.local import solo_transport
from ..utils.validation import canonical_sort, first_difference

__all__ = [
    "reconstruct",
    "reference_output",
    "check_property_table",
    "compare_outputs",
]

logger = logging.getLogger(__name__)


def reconstruct(ctx, graph: GraphPartition, table: PropertyArray, root: int = 0):
    """Single-node graph and property table equal to the union of all partitions. Collective.

    Returns
    -------
    tuple[GraphPartition, PropertyArray] or None
        On ``root``: the rebuilt one-partition graph (same id widths as
        ``graph``) and its property table, taken from the distributed tables
        rather than regenerated. ``None`` elsewhere.
    """
    labels = gather_labels(ctx, graph)
    piece = {
        "src": labels[graph.src.astype(np.int64)],
        "dst": labels[graph.dst.astype(np.int64)],
        "edge_ids": graph.edge_ids.astype(np.int64),
        "weight": graph.weight,
        "tag": graph.tag,
        "labels": graph.local_labels,
        "props": table,
    }
    pieces = ctx.gather(piece, root=root, label="oracle.reconstruct")
    if ctx.rank != root:
        return None

    def cat(name):
        parts = [p[name] for p in pieces]
        return None if parts[0] is None else np.concatenate(parts)

    # raw edge-list order
    order = np.argsort(cat("edge_ids"), kind="stable")

    def pick(a):
        return None if a is None else a[order]

    vertex_labels = cat("labels")
    edges = EdgeList(
        pick(cat("src")),
        pick(cat("dst")),
        weight=pick(cat("weight")),
        tag=pick(cat("tag")),
        vertices=vertex_labels,
    )
    rmap = build_renumber_map(vertex_labels, 1)
    single = extract_partition(edges, rmap, 0, vertex_dtype=graph.vertex_dtype, edge_dtype=graph.edge_dtype)

    props = PropertyArray.concat([p["props"] for p in pieces])
    single_table = PropertyArray.empty(single.num_local_vertices, props.dtypes)
    single_table.put(rmap.to_internal(vertex_labels), props)
    ctx.log_event("oracle.reconstruct", vertices=single.num_vertices, edges=single.num_local_edges)
    return single, single_table


def check_property_table(single: GraphPartition, table: PropertyArray, bucket_count: int, kind) -> None:
    """The rebuilt table must match regeneration from original ids."""
    expected = generate(bucket_property(bucket_count, kind), single.local_labels)
    if not table.equals(expected):
        raise VerificationError("reconstructed vertex properties differ from regenerated ones")


def reference_output(single: GraphPartition, table: PropertyArray, operator, use_edge_property: bool = False) -> pl.DataFrame:
    """Run propagation and the operator on one node; original ids in the result."""
    with ClusterContext(solo_transport(), history=False) as solo:
        src_cache, dst_cache = propagate(solo, single, table)
        view = edge_property_view(single) if use_edge_property else NO_EDGE_PROPERTY
        out = run(solo, single, src_cache, dst_cache, view, operator)
        return unrenumber_output(solo, single, out, labels=single.local_labels)


def compare_outputs(distributed: pl.DataFrame, reference: pl.DataFrame, combination=None) -> pl.DataFrame:
    """Assert multiset equality via canonical sort; returns the canonical frame.

    Raises
    ------
    VerificationError
        On differing schemas, lengths or contents.
    """
    a = canonical_sort(distributed)
    b = canonical_sort(reference)
    if a.columns != b.columns or a.dtypes != b.dtypes:
        raise VerificationError(
            f"output schemas differ: {list(zip(a.columns, a.dtypes))} vs {list(zip(b.columns, b.dtypes))}",
            combination,
            first_difference(a, b),
        )
    if a.height != b.height:
        raise VerificationError(
            f"distributed run produced {a.height} records, reference {b.height}",
            combination,
            first_difference(a, b),
        )
    if not a.equals(b):
        raise VerificationError("distributed and reference records differ", combination, first_difference(a, b))
    logger.debug("canonical outputs match: %d records", a.height)
    return a
