"""Property propagation: materialize endpoint properties onto every local edge.

Destinations are always owned locally. Sources owned by another node are
fetched in one request/reply round of ``alltoall``: each node asks every owner
for the distinct remote sources its edges reference, owners answer from their
own tables, and the answers are scattered back onto the edges.
"""
from __future__ import annotations

import logging

import numpy as np

from ..core.properties import PropertyArray
from ..errors import CommunicationError, ConfigurationError

__all__ = ["propagate"]

logger = logging.getLogger(__name__)


def propagate(ctx, graph, table: PropertyArray) -> tuple[PropertyArray, PropertyArray]:
    """Per-edge (source property, destination property) caches. Collective.

    Parameters
    ----------
    ctx : ClusterContext
    graph : GraphPartition
        This node's partition.
    table : PropertyArray
        This node's vertex property table, indexed by local vertex offset.

    Returns
    -------
    tuple[PropertyArray, PropertyArray]
        ``(src_cache, dst_cache)``, one entry per local edge in local edge
        order. Both are complete on every node when this returns.

    Notes
    -----
    Reads only; calling it again on the same inputs yields equal caches.
    """
    if len(table) != graph.num_local_vertices:
        raise ConfigurationError(
            f"property table has {len(table)} rows, rank {ctx.rank} owns {graph.num_local_vertices} vertices"
        )
    n = graph.num_local_edges
    dst_cache = table.take(graph.local_index(graph.dst))

    src_cache = PropertyArray.empty(n, table.dtypes)
    owner = graph.owner_of(graph.src)
    local = np.flatnonzero(owner == ctx.rank)
    src_cache.put(local, table.take(graph.local_index(graph.src[local])))

    remote = np.flatnonzero(owner != ctx.rank)
    requests, scatter = [], []
    for r in range(ctx.size):
        if r == ctx.rank:
            requests.append(np.empty(0, dtype=graph.vertex_dtype))
            scatter.append((np.empty(0, dtype=np.int64), np.empty(0, dtype=np.int64)))
            continue
        sel = remote[owner[remote] == r]
        wanted, inverse = np.unique(graph.src[sel], return_inverse=True)
        requests.append(wanted)
        scatter.append((sel, inverse.reshape(-1)))

    incoming = ctx.alltoall(requests, label="propagate.request")
    replies = [table.take(graph.local_index(ids)) for ids in incoming]
    received = ctx.alltoall(replies, label="propagate.reply")

    for r, (sel, inverse) in enumerate(scatter):
        if len(received[r]) != len(requests[r]):
            raise CommunicationError(
                f"rank {r} answered {len(received[r])} properties for {len(requests[r])} requested vertices"
            )
        if sel.size:
            src_cache.put(sel, received[r].take(inverse))

    ctx.barrier(label="propagate.done")
    ctx.log_event(
        "propagate",
        local_edges=n,
        remote_sources=int(sum(len(q) for q in requests)),
        served=int(sum(len(q) for q in incoming)),
    )
    logger.debug(
        "rank %d: propagated %d edges, %d remote sources", ctx.rank, n, int(remote.size)
    )
    return src_cache, dst_cache
