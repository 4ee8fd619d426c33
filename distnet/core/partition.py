"""
Partitioned graph store.

Vertices are assigned to nodes by a hash of their original id and renumbered so
that every node owns one contiguous range of internal ids; the ranges are
described by ``vertex_partition_offsets`` (``size + 1`` boundaries). Edges live
on the node that owns their destination, sorted by (dst, src), so the local
store doubles as a CSC structure over the local destination range.

Public entry points:
- build_renumber_map(vertex_labels, size) -> RenumberMap
- split_edges(edges, size, **options) -> list[GraphPartition]
- partition_graph(ctx, edges, **options) -> GraphPartition (this node's slice)
- gather_labels(ctx, graph) -> internal id -> original id, for every vertex

Design notes:
- Every node builds the renumbering map from the full raw edge list, so the map
  is identical everywhere without communication; `GraphPartition.validate`
  still cross-checks it with one allgather.
- Only the owned slice of the map (``local_labels``) is kept per node.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np
import polars as pl
import scipy.sparse as sp

from ..errors import CommunicationError, ConfigurationError
from ..utils.hashing import bucket
from ..utils.validation import obj_canonicalized_hash
from .structure import DST, EDGE_DTYPES, SRC, TAG, TAG_DTYPE, VERTEX_DTYPES, WEIGHT, WEIGHT_DTYPE

__all__ = [
    "EdgeList",
    "RenumberMap",
    "GraphPartition",
    "build_renumber_map",
    "check_partition_offsets",
    "extract_partition",
    "split_edges",
    "partition_graph",
    "gather_labels",
]

logger = logging.getLogger(__name__)

# ---------------------------
# Raw edge list
# ---------------------------


def _as_ids(values, name: str) -> np.ndarray:
    arr = np.asarray(values)
    if arr.ndim != 1:
        raise ConfigurationError(f"'{name}' must be one-dimensional, got shape {arr.shape}")
    if arr.size == 0:
        return arr.astype(np.int64)
    if not np.issubdtype(arr.dtype, np.integer):
        raise ConfigurationError(f"'{name}' must hold integer vertex ids, got {arr.dtype}")
    arr = arr.astype(np.int64, copy=False)
    if arr.min() < 0:
        raise ConfigurationError(f"'{name}' holds negative vertex ids")
    return arr


@dataclass(eq=False)
class EdgeList:
    """Unpartitioned edge sequence over original vertex ids.

    Parameters
    ----------
    src, dst : array-like of int
        Endpoints, one entry per edge.
    weight : array-like of float, optional
        Edge property, stored as float32.
    tag : array-like of int, optional
        Key tag of each edge's source, used by tagged keys.
    vertices : array-like of int, optional
        Full vertex set, including isolated vertices. Defaults to the
        endpoints.
    """

    src: np.ndarray
    dst: np.ndarray
    weight: np.ndarray | None = None
    tag: np.ndarray | None = None
    vertices: np.ndarray | None = None

    def __post_init__(self):
        self.src = _as_ids(self.src, SRC)
        self.dst = _as_ids(self.dst, DST)
        if self.src.shape != self.dst.shape:
            raise ConfigurationError(
                f"src and dst lengths differ ({self.src.size} != {self.dst.size})"
            )
        if self.weight is not None:
            self.weight = np.asarray(self.weight, dtype=WEIGHT_DTYPE)
            if self.weight.shape != self.src.shape:
                raise ConfigurationError("weight length does not match the edge count")
        if self.tag is not None:
            self.tag = _as_ids(self.tag, TAG).astype(TAG_DTYPE)
            if self.tag.shape != self.src.shape:
                raise ConfigurationError("tag length does not match the edge count")
        if self.vertices is not None:
            self.vertices = np.unique(_as_ids(self.vertices, "vertices"))
            if not (np.isin(self.src, self.vertices).all() and np.isin(self.dst, self.vertices).all()):
                raise ConfigurationError("edges reference vertices missing from the vertex set")

    def __len__(self) -> int:
        return int(self.src.size)

    def __repr__(self) -> str:
        return f"<EdgeList | V={self.num_vertices} · E={self.num_edges}>"

    @property
    def num_edges(self) -> int:
        return int(self.src.size)

    @property
    def num_vertices(self) -> int:
        return int(self.vertex_labels().size)

    def vertex_labels(self) -> np.ndarray:
        """Sorted original ids of every vertex."""
        if self.vertices is not None:
            return self.vertices
        return np.unique(np.concatenate([self.src, self.dst]))

    def with_tags(self, tag_count: int) -> "EdgeList":
        """Copy with ``tag = (src + dst) % tag_count`` where no tags exist yet."""
        if self.tag is not None:
            return self
        if tag_count < 1:
            raise ConfigurationError(f"Expected tag_count >= 1, got {tag_count}")
        return EdgeList(
            self.src,
            self.dst,
            weight=self.weight,
            tag=(self.src + self.dst) % tag_count,
            vertices=self.vertices,
        )

    def symmetrize(self) -> "EdgeList":
        """Add the reverse of every non-loop edge (undirected input)."""
        fwd = self.src != self.dst

        def cat(a, b):
            return None if a is None else np.concatenate([a, b[fwd]])

        return EdgeList(
            np.concatenate([self.src, self.dst[fwd]]),
            np.concatenate([self.dst, self.src[fwd]]),
            weight=cat(self.weight, self.weight),
            tag=cat(self.tag, self.tag),
            vertices=self.vertices,
        )

    def to_frame(self) -> pl.DataFrame:
        cols = {SRC: self.src, DST: self.dst}
        if self.weight is not None:
            cols[WEIGHT] = self.weight
        if self.tag is not None:
            cols[TAG] = self.tag
        return pl.DataFrame(cols)

    @classmethod
    def from_frame(cls, df: pl.DataFrame, vertices=None) -> "EdgeList":
        if SRC not in df.columns or DST not in df.columns:
            raise ConfigurationError(f"edge frame needs '{SRC}' and '{DST}' columns, got {df.columns}")
        return cls(
            df[SRC].to_numpy(),
            df[DST].to_numpy(),
            weight=df[WEIGHT].to_numpy() if WEIGHT in df.columns else None,
            tag=df[TAG].to_numpy() if TAG in df.columns else None,
            vertices=vertices,
        )


# ---------------------------
# Renumbering
# ---------------------------


def check_partition_offsets(offsets, size: int, num_vertices: int | None = None) -> np.ndarray:
    """Validate partition boundaries; fatal on any inconsistency."""
    offsets = np.asarray(offsets)
    if offsets.ndim != 1 or offsets.size != size + 1:
        raise ConfigurationError(f"expected {size + 1} partition boundaries, got {offsets.size}")
    if offsets.size and offsets[0] != 0:
        raise ConfigurationError(f"first partition boundary must be 0, got {offsets[0]}")
    if np.any(np.diff(offsets) < 0):
        raise ConfigurationError(f"partition boundaries are not monotone: {offsets.tolist()}")
    if num_vertices is not None and offsets[-1] != num_vertices:
        raise ConfigurationError(
            f"last partition boundary {offsets[-1]} does not match vertex count {num_vertices}"
        )
    return offsets.astype(np.int64, copy=False)


@dataclass(frozen=True, eq=False)
class RenumberMap:
    """Bijection between original vertex ids and internal contiguous ids.

    ``labels[i]`` is the original id of internal vertex ``i``; node ``r`` owns
    internal ids ``[offsets[r], offsets[r + 1])``.
    """

    vertex_partition_offsets: np.ndarray
    labels: np.ndarray
    _sorter: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        check_partition_offsets(self.vertex_partition_offsets, self.size, self.labels.size)
        sorter = np.argsort(self.labels, kind="stable")
        if sorter.size > 1 and np.any(self.labels[sorter][1:] == self.labels[sorter][:-1]):
            raise ConfigurationError("renumbering map labels are not unique")
        object.__setattr__(self, "_sorter", sorter)

    @property
    def size(self) -> int:
        return int(len(self.vertex_partition_offsets) - 1)

    @property
    def num_vertices(self) -> int:
        return int(self.labels.size)

    def owner_of(self, internal_ids) -> np.ndarray:
        return np.searchsorted(self.vertex_partition_offsets, internal_ids, side="right") - 1

    def local_labels(self, rank: int) -> np.ndarray:
        lo, hi = self.vertex_partition_offsets[rank], self.vertex_partition_offsets[rank + 1]
        return self.labels[lo:hi]

    def to_internal(self, original_ids) -> np.ndarray:
        ids = np.asarray(original_ids, dtype=np.int64)
        if ids.size == 0:
            return ids
        pos = np.searchsorted(self.labels, ids, sorter=self._sorter)
        pos = np.minimum(pos, self.labels.size - 1)
        internal = self._sorter[pos]
        bad = self.labels[internal] != ids
        if bad.any():
            raise ConfigurationError(f"vertex {int(ids[bad][0])} is not in the renumbering map")
        return internal.astype(np.int64)

    def to_external(self, internal_ids) -> np.ndarray:
        return self.labels[np.asarray(internal_ids, dtype=np.int64)]


def build_renumber_map(vertex_labels, size: int) -> RenumberMap:
    """Assign each vertex to ``hash(id) % size`` and number owners contiguously.

    Within a node, vertices are ordered by original id. The result depends only
    on the vertex set and ``size``.
    """
    if size < 1:
        raise ConfigurationError(f"Expected size >= 1, got {size}")
    labels = np.unique(np.asarray(vertex_labels, dtype=np.int64))
    owner = bucket(labels, size, rounds=2)
    order = np.lexsort((labels, owner))
    counts = np.bincount(owner, minlength=size)
    offsets = np.concatenate([[0], np.cumsum(counts)]).astype(np.int64)
    return RenumberMap(offsets, labels[order])


# ---------------------------
# Per-node store
# ---------------------------


def _check_width(count: int, dtype, what: str):
    dt = np.dtype(dtype)
    if count > np.iinfo(dt).max:
        raise ConfigurationError(f"{count} {what} do not fit a {dt} id")


@dataclass(eq=False)
class GraphPartition:
    """One node's slice of the graph.

    Holds the edges whose destination this node owns, in internal ids, sorted
    by (dst, src). ``local_offsets`` are CSC offsets over the local destination
    range; ``edge_ids`` are the positions of the edges in the raw edge list.
    """

    rank: int
    size: int
    vertex_partition_offsets: np.ndarray
    local_labels: np.ndarray
    src: np.ndarray
    dst: np.ndarray
    edge_ids: np.ndarray
    weight: np.ndarray | None = None
    tag: np.ndarray | None = None
    local_offsets: np.ndarray = field(init=False, repr=False)

    def __post_init__(self):
        if not (0 <= self.rank < self.size):
            raise ConfigurationError(f"Expected 0 <= rank < {self.size}, got {self.rank}")
        self.vertex_partition_offsets = check_partition_offsets(self.vertex_partition_offsets, self.size)
        if self.src.dtype not in VERTEX_DTYPES or self.dst.dtype != self.src.dtype:
            raise ConfigurationError(f"unsupported vertex id dtype {self.src.dtype}/{self.dst.dtype}")
        if self.edge_ids.dtype not in EDGE_DTYPES:
            raise ConfigurationError(f"unsupported edge id dtype {self.edge_ids.dtype}")
        first, last = self.local_vertex_range
        if self.local_labels.size != last - first:
            raise ConfigurationError(
                f"rank {self.rank} owns {last - first} vertices but holds {self.local_labels.size} labels"
            )
        n = self.src.size
        for name in ("dst", "edge_ids", "weight", "tag"):
            arr = getattr(self, name)
            if arr is not None and arr.size != n:
                raise ConfigurationError(f"'{name}' has {arr.size} entries, expected {n}")
        if n:
            if self.dst.min() < first or self.dst.max() >= last:
                raise ConfigurationError(f"rank {self.rank} holds edges whose destination it does not own")
            if self.src.min() < 0 or self.src.max() >= self.num_vertices:
                raise ConfigurationError("source ids fall outside the partition boundaries")
            if np.any(np.diff(self.dst) < 0):
                raise ConfigurationError("local edges must be sorted by destination")
        _check_width(self.num_vertices - 1, self.src.dtype, "vertices")
        _check_width(n, self.edge_ids.dtype, "edges")
        bounds = np.arange(first, last + 1, dtype=np.int64)
        self.local_offsets = np.searchsorted(self.dst, bounds, side="left").astype(self.edge_ids.dtype)

    def __repr__(self) -> str:
        return (
            f"<GraphPartition {self.rank}/{self.size} | V_local={self.num_local_vertices} · "
            f"E_local={self.num_local_edges} · V={self.num_vertices}>"
        )

    @property
    def vertex_dtype(self) -> np.dtype:
        return self.src.dtype

    @property
    def edge_dtype(self) -> np.dtype:
        return self.edge_ids.dtype

    @property
    def num_vertices(self) -> int:
        return int(self.vertex_partition_offsets[-1])

    @property
    def num_local_vertices(self) -> int:
        return int(self.local_labels.size)

    @property
    def num_local_edges(self) -> int:
        return int(self.src.size)

    @property
    def local_vertex_range(self) -> tuple[int, int]:
        return int(self.vertex_partition_offsets[self.rank]), int(self.vertex_partition_offsets[self.rank + 1])

    def owner_of(self, internal_ids) -> np.ndarray:
        """Node that owns each internal id (one binary search over ``size + 1`` bounds)."""
        return np.searchsorted(self.vertex_partition_offsets, internal_ids, side="right") - 1

    def is_local(self, internal_ids) -> np.ndarray:
        first, last = self.local_vertex_range
        ids = np.asarray(internal_ids)
        return (ids >= first) & (ids < last)

    def local_index(self, internal_ids) -> np.ndarray:
        """Offsets of owned vertices into this node's vertex-indexed arrays."""
        ids = np.asarray(internal_ids, dtype=np.int64)
        if ids.size and not self.is_local(ids).all():
            raise ConfigurationError(f"rank {self.rank} asked for the local offset of a remote vertex")
        return ids - self.local_vertex_range[0]

    def in_degrees(self) -> np.ndarray:
        return np.diff(self.local_offsets)

    def adjacency(self) -> sp.csc_matrix:
        """Edge-count matrix, rows = all sources, columns = local destinations."""
        first, _ = self.local_vertex_range
        data = np.ones(self.num_local_edges, dtype=np.int64)
        shape = (self.num_vertices, self.num_local_vertices)
        return sp.csc_matrix(
            (data, self.src.astype(np.int64), self.local_offsets.astype(np.int64)), shape=shape
        )

    def metadata(self) -> dict:
        return {
            "size": self.size,
            "num_vertices": self.num_vertices,
            "offsets": obj_canonicalized_hash(self.vertex_partition_offsets.astype(np.int64)),
            "vertex_dtype": str(self.vertex_dtype),
            "edge_dtype": str(self.edge_dtype),
        }

    def validate(self, ctx) -> int:
        """Cross-check partition metadata on every node; returns the global edge count.

        Raises
        ------
        ConfigurationError
            If this partition does not belong to ``ctx``'s node or the nodes
            disagree on boundaries, vertex count or id widths.
        """
        if self.size != ctx.size or self.rank != ctx.rank:
            raise ConfigurationError(
                f"partition {self.rank}/{self.size} used on node {ctx.rank}/{ctx.size}"
            )
        everyone = ctx.allgather((self.metadata(), self.num_local_edges), label="partition.validate")
        mine = self.metadata()
        for r, (meta, _) in enumerate(everyone):
            if meta != mine:
                raise ConfigurationError(f"node {r} disagrees on partition metadata: {meta} != {mine}")
        return int(sum(n for _, n in everyone))


def extract_partition(
    edges: EdgeList,
    rmap: RenumberMap,
    rank: int,
    *,
    vertex_dtype=np.int64,
    edge_dtype=np.int64,
) -> GraphPartition:
    """Cut node ``rank``'s slice out of the raw edge list."""
    vdt, edt = np.dtype(vertex_dtype), np.dtype(edge_dtype)
    if vdt not in VERTEX_DTYPES:
        raise ConfigurationError(f"unsupported vertex id dtype {vdt}")
    if edt not in EDGE_DTYPES:
        raise ConfigurationError(f"unsupported edge id dtype {edt}")
    _check_width(rmap.num_vertices - 1, vdt, "vertices")
    _check_width(edges.num_edges, edt, "edges")

    src_i = rmap.to_internal(edges.src)
    dst_i = rmap.to_internal(edges.dst)
    first, last = rmap.vertex_partition_offsets[rank], rmap.vertex_partition_offsets[rank + 1]
    eidx = np.flatnonzero((dst_i >= first) & (dst_i < last))
    eidx = eidx[np.lexsort((src_i[eidx], dst_i[eidx]))]
    return GraphPartition(
        rank=rank,
        size=rmap.size,
        vertex_partition_offsets=rmap.vertex_partition_offsets,
        local_labels=rmap.local_labels(rank),
        src=src_i[eidx].astype(vdt),
        dst=dst_i[eidx].astype(vdt),
        edge_ids=eidx.astype(edt),
        weight=None if edges.weight is None else edges.weight[eidx],
        tag=None if edges.tag is None else edges.tag[eidx],
    )


def split_edges(edges: EdgeList, size: int, **options) -> list[GraphPartition]:
    """Every node's partition, computed in one place (tests and tooling)."""
    rmap = build_renumber_map(edges.vertex_labels(), size)
    return [extract_partition(edges, rmap, r, **options) for r in range(size)]


def partition_graph(ctx, edges: EdgeList, *, vertex_dtype=np.int64, edge_dtype=np.int64) -> GraphPartition:
    """Build and cross-validate this node's partition. Collective."""
    rmap = build_renumber_map(edges.vertex_labels(), ctx.size)
    graph = extract_partition(edges, rmap, ctx.rank, vertex_dtype=vertex_dtype, edge_dtype=edge_dtype)
    total = graph.validate(ctx)
    if total != edges.num_edges:
        raise ConfigurationError(f"partitions hold {total} edges, input has {edges.num_edges}")
    ctx.log_event(
        "partition",
        num_vertices=graph.num_vertices,
        local_vertices=graph.num_local_vertices,
        local_edges=graph.num_local_edges,
        vertex_dtype=graph.vertex_dtype,
        edge_dtype=graph.edge_dtype,
    )
    logger.debug("rank %d: %r", ctx.rank, graph)
    return graph


def gather_labels(ctx, graph: GraphPartition) -> np.ndarray:
    """Full internal -> original id table, assembled from every node's slice. Collective."""
    parts = ctx.allgather(graph.local_labels, label="renumber.labels")
    labels = np.concatenate(parts) if parts else np.empty(0, dtype=np.int64)
    if labels.size != graph.num_vertices:
        raise CommunicationError(
            f"gathered {labels.size} renumbering labels, expected {graph.num_vertices}"
        )
    return labels
