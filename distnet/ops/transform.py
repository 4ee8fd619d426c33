"""Edge transform-filter operator runtime.

For every local edge the runtime hands the operator the edge's key (plain
source id or tagged source), its destination, both endpoint properties and the
edge property, and keeps the records of the edges the operator did not filter
out. Operators may also offer a vectorized ``evaluate`` over whole columns;
the runtime prefers it and falls back to per-edge calls spread over a thread
pool. Output order within a node is whatever the compaction produced.
"""
from __future__ import annotations

import logging
import warnings
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass

import numpy as np
import polars as pl

from ..core.properties import PropertyArray
from ..core.records import make_key, output_schema, payload_for, records_to_frame
from ..core.structure import DST, PAYLOAD, SRC, TAG, KeyKind, PayloadKind
from ..errors import ConfigurationError, OperatorError

__all__ = [
    "EdgeBatch",
    "EdgeOperator",
    "EdgePropertyView",
    "NO_EDGE_PROPERTY",
    "ReferenceOperator",
    "edge_property_view",
    "run",
]

logger = logging.getLogger(__name__)

# per-edge Python calls above this many edges get a performance warning
PER_EDGE_WARN_THRESHOLD = 1_000_000


class EdgePropertyView:
    """Per-edge property values, or nothing at all.

    ``NO_EDGE_PROPERTY`` is the typed no-op view: operators receive ``None``
    for every edge.
    """

    __slots__ = ("values",)

    def __init__(self, values: np.ndarray | None = None):
        self.values = None if values is None else np.asarray(values)

    def __repr__(self) -> str:
        if self.values is None:
            return "<EdgePropertyView none>"
        return f"<EdgePropertyView {self.values.dtype}[{self.values.size}]>"

    @property
    def present(self) -> bool:
        return self.values is not None

    def get(self, i: int):
        return None if self.values is None else self.values[i].item()


NO_EDGE_PROPERTY = EdgePropertyView()


def edge_property_view(graph) -> EdgePropertyView:
    """View over the partition's edge weights, or the no-op view."""
    return NO_EDGE_PROPERTY if graph.weight is None else EdgePropertyView(graph.weight)


@dataclass(eq=False)
class EdgeBatch:
    """Column-wise operator inputs for all local edges."""

    src: np.ndarray
    tag: np.ndarray | None
    dst: np.ndarray
    src_props: PropertyArray
    dst_props: PropertyArray
    edge_props: np.ndarray | None

    def __len__(self) -> int:
        return int(self.src.size)


class EdgeOperator:
    """Base class for edge operators.

    Subclasses set ``key_kind`` and ``payload_kind`` and implement
    ``__call__(key, dst, src_prop, dst_prop, edge_prop)``, returning either
    ``None`` (edge filtered out) or a record ``(*key, dst, *payload)``. The
    call must be deterministic and free of side effects.
    """

    key_kind = KeyKind.PLAIN
    payload_kind = PayloadKind.NONE

    def __call__(self, key, dst, src_prop, dst_prop, edge_prop):
        raise NotImplementedError

    def evaluate(self, batch: EdgeBatch) -> dict[str, np.ndarray] | None:
        """Vectorized variant returning compacted output columns, or ``None``."""
        return None

    def schema(self, vertex_dtype=np.int64) -> dict[str, np.dtype]:
        return output_schema(self.key_kind, self.payload_kind, vertex_dtype)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} key={self.key_kind.value} payload={self.payload_kind.value}>"


class ReferenceOperator(EdgeOperator):
    """Keep an edge iff its source property is strictly less than its destination's.

    Ties are filtered out. The payload is the constant ``()``, ``(1,)`` or
    ``(1.0, 1)`` depending on ``payload_kind``.
    """

    def __init__(self, key_kind=KeyKind.PLAIN, payload_kind=PayloadKind.NONE):
        self.key_kind = KeyKind(key_kind)
        self.payload_kind = PayloadKind(payload_kind)
        self._payload = payload_for(self.payload_kind)

    def __call__(self, key, dst, src_prop, dst_prop, edge_prop=None):
        if src_prop < dst_prop:
            return (*key, dst, *self._payload)
        return None

    def evaluate(self, batch):
        keep = batch.src_props.less(batch.dst_props)
        n = int(keep.sum())
        cols = {SRC: batch.src[keep]}
        if self.key_kind is KeyKind.TAGGED:
            cols[TAG] = batch.tag[keep]
        cols[DST] = batch.dst[keep]
        if self.payload_kind is PayloadKind.SCALAR:
            cols[PAYLOAD] = np.full(n, self._payload[0])
        elif self.payload_kind is PayloadKind.PAIR:
            cols[f"{PAYLOAD}_0"] = np.full(n, self._payload[0])
            cols[f"{PAYLOAD}_1"] = np.full(n, self._payload[1])
        return cols


def _frame_from_columns(cols: dict, schema: dict) -> pl.DataFrame:
    if list(cols) != list(schema):
        raise OperatorError(f"operator produced columns {list(cols)}, expected {list(schema)}")
    lengths = {len(v) for v in cols.values()}
    if len(lengths) > 1:
        raise OperatorError(f"operator produced ragged columns: {sorted(lengths)}")
    return pl.DataFrame({name: np.asarray(cols[name]).astype(dt, copy=False) for name, dt in schema.items()})


def _apply_chunk(operator, batch: EdgeBatch, view: EdgePropertyView, lo: int, hi: int) -> list:
    out = []
    tagged = operator.key_kind is KeyKind.TAGGED
    for i in range(lo, hi):
        key = make_key(operator.key_kind, batch.src[i], batch.tag[i] if tagged else None)
        rec = operator(key, int(batch.dst[i]), batch.src_props.item(i), batch.dst_props.item(i), view.get(i))
        if rec is not None:
            out.append(rec)
    return out


def _run_per_edge(ctx, operator, batch, view, schema) -> pl.DataFrame:
    n = len(batch)
    if n >= PER_EDGE_WARN_THRESHOLD:
        warnings.warn(
            f"{type(operator).__name__} has no vectorized path; calling it on {n} edges one by one",
            RuntimeWarning,
            stacklevel=3,
        )
    bounds = np.linspace(0, n, num=max(1, min(ctx.workers, n)) + 1, dtype=np.int64)
    records = []
    with ThreadPoolExecutor(max_workers=ctx.workers) as pool:
        futures = [
            pool.submit(_apply_chunk, operator, batch, view, int(lo), int(hi))
            for lo, hi in zip(bounds[:-1], bounds[1:])
        ]
        for fut in as_completed(futures):
            records.extend(fut.result())
    return records_to_frame(records, schema)


def run(ctx, graph, src_cache, dst_cache, edge_props: EdgePropertyView, operator: EdgeOperator) -> pl.DataFrame:
    """Apply ``operator`` to every local edge and compact the kept records.

    Parameters
    ----------
    ctx : ClusterContext
    graph : GraphPartition
    src_cache, dst_cache : PropertyArray
        Output of :func:`~distnet.ops.propagate.propagate` for ``graph``.
    edge_props : EdgePropertyView
        Edge property view, ``NO_EDGE_PROPERTY`` for none.
    operator : EdgeOperator

    Returns
    -------
    polars.DataFrame
        One row per kept edge, columns per ``operator.schema``; ids are
        internal ids.
    """
    n = graph.num_local_edges
    if len(src_cache) != n or len(dst_cache) != n:
        raise ConfigurationError(
            f"property caches hold {len(src_cache)}/{len(dst_cache)} entries for {n} local edges"
        )
    if edge_props.present and edge_props.values.size != n:
        raise ConfigurationError(f"edge property view has {edge_props.values.size} entries for {n} edges")
    if operator.key_kind is KeyKind.TAGGED and graph.tag is None:
        raise ConfigurationError("tagged keys need a tagged edge list (see EdgeList.with_tags)")

    schema = operator.schema(graph.vertex_dtype)
    batch = EdgeBatch(
        src=graph.src,
        tag=graph.tag,
        dst=graph.dst,
        src_props=src_cache,
        dst_props=dst_cache,
        edge_props=edge_props.values,
    )
    cols = operator.evaluate(batch)
    if cols is not None:
        out = _frame_from_columns(cols, schema)
        path = "vectorized"
    else:
        out = _run_per_edge(ctx, operator, batch, edge_props, schema)
        path = "per_edge"

    ctx.log_event("transform", operator=repr(operator), path=path, local_edges=n, kept=out.height)
    logger.debug("rank %d: %s kept %d of %d edges (%s)", ctx.rank, operator, out.height, n, path)
    return out
