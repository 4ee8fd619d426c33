"""NetworkX interop for raw (unpartitioned) edge lists."""
from __future__ import annotations

import networkx as nx
import numpy as np

from ..core.partition import EdgeList
from ..core.structure import TAG, WEIGHT

__all__ = ["to_nx", "from_nx"]


def to_nx(edges: EdgeList) -> nx.MultiDiGraph:
    """Export to a MultiDiGraph keyed by edge position.

    Every vertex (isolated ones included) becomes a node; ``weight`` and
    ``tag`` become edge attributes when present.
    """
    G = nx.MultiDiGraph()
    G.add_nodes_from(int(v) for v in edges.vertex_labels())
    for i in range(edges.num_edges):
        attrs = {}
        if edges.weight is not None:
            attrs[WEIGHT] = float(edges.weight[i])
        if edges.tag is not None:
            attrs[TAG] = int(edges.tag[i])
        G.add_edge(int(edges.src[i]), int(edges.dst[i]), key=i, **attrs)
    return G


def from_nx(G: nx.Graph, *, weight: str | None = WEIGHT, tag: str | None = TAG) -> EdgeList:
    """Import any NetworkX graph.

    Parameters
    ----------
    G : networkx.Graph
        Undirected graphs are symmetrized. Non-integer node labels are
        replaced by consecutive integers in node order.
    weight, tag : str or None
        Edge attribute names to carry over; an attribute is kept only if every
        edge has it. ``None`` drops it.
    """
    if not all(isinstance(n, (int, np.integer)) and not isinstance(n, bool) for n in G.nodes()):
        G = nx.convert_node_labels_to_integers(G, ordering="default")
    data = list(G.edges(data=True))
    src = np.fromiter((u for u, _, _ in data), dtype=np.int64, count=len(data))
    dst = np.fromiter((v for _, v, _ in data), dtype=np.int64, count=len(data))

    def column(name, dtype):
        if name is None or not data or not all(name in d for _, _, d in data):
            return None
        return np.asarray([d[name] for _, _, d in data], dtype=dtype)

    edges = EdgeList(
        src,
        dst,
        weight=column(weight, np.float32),
        tag=column(tag, np.int32),
        vertices=np.fromiter((int(n) for n in G.nodes()), dtype=np.int64, count=G.number_of_nodes()),
    )
    if not G.is_directed():
        edges = edges.symmetrize()
    return edges
