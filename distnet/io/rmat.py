"""R-MAT synthetic graph generator (recursive quadrant sampling)."""
from __future__ import annotations

import numpy as np

from ..config import RmatConfig
from ..core.partition import EdgeList

__all__ = ["generate_rmat"]


def generate_rmat(config: RmatConfig | None = None, **kwargs) -> EdgeList:
    """Generate an R-MAT edge list over ``2 ** scale`` vertices.

    Each of the ``edge_factor * 2 ** scale`` edges picks, bit by bit, one of
    the four adjacency quadrants with probabilities ``a, b, c, d``. Self loops
    are dropped first, then undirected graphs are symmetrized, then duplicate
    (src, dst) pairs are dropped, keeping first occurrences.
    """
    cfg = config if config is not None else RmatConfig(**kwargs)
    rng = np.random.default_rng(cfg.seed)
    n = 1 << cfg.scale
    m = cfg.edge_factor * n

    ab = cfg.a + cfg.b
    a_norm = cfg.a / ab
    c_norm = cfg.c / (cfg.c + cfg.d) if (cfg.c + cfg.d) > 0 else 0.0
    src = np.zeros(m, dtype=np.int64)
    dst = np.zeros(m, dtype=np.int64)
    for level in range(cfg.scale):
        bit = np.int64(1 << (cfg.scale - 1 - level))
        r1 = rng.random(m)
        r2 = rng.random(m)
        src_bit = r1 > ab
        dst_bit = np.where(src_bit, r2 > c_norm, r2 > a_norm)
        src += src_bit * bit
        dst += dst_bit * bit
    weight = rng.random(m, dtype=np.float32) if cfg.weighted else None

    if cfg.remove_self_loops:
        keep = src != dst
        src, dst = src[keep], dst[keep]
        weight = None if weight is None else weight[keep]
    edges = EdgeList(src, dst, weight=weight, vertices=np.arange(n, dtype=np.int64))
    if cfg.undirected:
        edges = edges.symmetrize()
    if cfg.remove_multi_edges:
        _, first = np.unique(edges.src * n + edges.dst, return_index=True)
        keep = np.sort(first)
        edges = EdgeList(
            edges.src[keep],
            edges.dst[keep],
            weight=None if edges.weight is None else edges.weight[keep],
            vertices=edges.vertices,
        )
    return edges
