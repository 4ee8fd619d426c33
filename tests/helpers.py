# tests/helpers.py
"""Shared fixtures for the unit tests: tiny graphs, a brute-force expected
output and a full distributed pipeline returning the gathered buffer."""

import numpy as np

from distnet.core.partition import EdgeList, partition_graph
from distnet.core.properties import bucket_property, generate, vertex_property_table
from distnet.core.records import make_key, output_schema, payload_for, records_to_frame
from distnet.core.structure import KeyKind, PayloadKind, PropertyKind
from distnet.ops.gather import gather_output, unrenumber_output
from distnet.ops.propagate import propagate
from distnet.ops.transform import NO_EDGE_PROPERTY, ReferenceOperator, edge_property_view, run
from distnet.utils.validation import canonical_sort


def small_edges(tagged=False, weighted=False):
    """Ten vertices (9 is isolated), a few cycles and a repeated edge."""
    src = [0, 1, 2, 3, 4, 5, 6, 7, 8, 0, 2, 5, 5, 7]
    dst = [1, 2, 0, 4, 5, 3, 7, 8, 6, 5, 7, 0, 0, 1]
    weight = np.linspace(0.0, 1.0, len(src)) if weighted else None
    tag = [(s + d) % 3 for s, d in zip(src, dst)] if tagged else None
    return EdgeList(src, dst, weight=weight, tag=tag, vertices=np.arange(10))


def expected_output(edges, bucket_count, key_kind=KeyKind.PLAIN, payload_kind=PayloadKind.NONE, kind=PropertyKind.SCALAR):
    """Reference output computed edge by edge over original ids."""
    labels = edges.vertex_labels()
    props = generate(bucket_property(bucket_count, kind), labels)
    payload = payload_for(payload_kind)
    rows = []
    for i in range(edges.num_edges):
        s, d = int(edges.src[i]), int(edges.dst[i])
        sp = props.item(int(np.searchsorted(labels, s)))
        dp = props.item(int(np.searchsorted(labels, d)))
        if sp < dp:
            tag = None if edges.tag is None else edges.tag[i]
            rows.append((*make_key(key_kind, s, tag), d, *payload))
    return canonical_sort(records_to_frame(rows, output_schema(key_kind, payload_kind, np.int64)))


def pipeline(
    ctx,
    edges,
    *,
    bucket_count=5,
    key_kind=KeyKind.PLAIN,
    payload_kind=PayloadKind.NONE,
    vertex_dtype=np.int64,
    edge_dtype=np.int64,
    kind=PropertyKind.SCALAR,
    use_edge_property=False,
    operator=None,
    root=0,
):
    """Partition, propagate, transform and gather; the canonical buffer on ``root``."""
    graph = partition_graph(ctx, edges, vertex_dtype=vertex_dtype, edge_dtype=edge_dtype)
    table = vertex_property_table(ctx, graph, bucket_count, kind)
    src_cache, dst_cache = propagate(ctx, graph, table)
    view = edge_property_view(graph) if use_edge_property else NO_EDGE_PROPERTY
    op = operator if operator is not None else ReferenceOperator(key_kind, payload_kind)
    out = run(ctx, graph, src_cache, dst_cache, view, op)
    gathered = gather_output(ctx, unrenumber_output(ctx, graph, out), root=root)
    return None if gathered is None else canonical_sort(gathered)
