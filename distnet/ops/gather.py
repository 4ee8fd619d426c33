"""Distributed result gatherer.

Concatenates every node's output buffer onto one root node, one ``gather``
per column. Rows keep no particular cross-node order.
"""
from __future__ import annotations

import logging

import numpy as np
import polars as pl

from ..core.partition import gather_labels
from ..core.structure import DST, SRC
from ..errors import CommunicationError

__all__ = ["gather_output", "unrenumber_output"]

logger = logging.getLogger(__name__)


def unrenumber_output(ctx, graph, df: pl.DataFrame, labels: np.ndarray | None = None) -> pl.DataFrame:
    """Map the ``src``/``dst`` columns of ``df`` from internal to original ids.

    Collective unless the full ``labels`` table (see
    :func:`~distnet.core.partition.gather_labels`) is passed in. Original ids
    are returned as int64 whatever the internal width was.
    """
    if labels is None:
        labels = gather_labels(ctx, graph)
    cols = []
    for name in df.columns:
        if name in (SRC, DST):
            cols.append(pl.Series(name, labels[df[name].to_numpy().astype(np.int64)], dtype=pl.Int64))
        else:
            cols.append(df[name])
    return pl.DataFrame(cols)


def gather_output(ctx, local: pl.DataFrame, root: int = 0) -> pl.DataFrame | None:
    """Concatenate all nodes' buffers on ``root``. Collective.

    Returns
    -------
    polars.DataFrame or None
        The aggregated buffer on ``root``; ``None`` elsewhere.

    Raises
    ------
    CommunicationError
        If nodes disagree on the column schema or a gathered column's length
        differs from what its sender announced.
    """
    announce = (list(local.columns), [str(dt) for dt in local.dtypes], local.height)
    everyone = ctx.allgather(announce, label="gather.schema")
    for r, (cols, dts, _) in enumerate(everyone):
        if cols != announce[0] or dts != announce[1]:
            raise CommunicationError(
                f"node {r} sends columns {list(zip(cols, dts))}, "
                f"node {ctx.rank} sends {list(zip(announce[0], announce[1]))}"
            )

    columns = {}
    for name in local.columns:
        got = ctx.gather(local[name].to_numpy(), root=root, label=f"gather.{name}")
        if ctx.rank == root:
            for r, arr in enumerate(got):
                if len(arr) != everyone[r][2]:
                    raise CommunicationError(
                        f"column '{name}' from node {r} has {len(arr)} rows, announced {everyone[r][2]}"
                    )
            columns[name] = np.concatenate(got)

    ctx.log_event("gather", root=root, local_rows=local.height, total_rows=sum(h for _, _, h in everyone))
    if ctx.rank != root:
        return None
    out = pl.DataFrame(columns) if columns else pl.DataFrame()
    logger.debug("gathered %d rows from %d nodes", out.height, ctx.size)
    return out
