"""Named datasets and config-driven loading."""
from __future__ import annotations

import networkx as nx

from ..adapters.networkx import from_nx
from ..config import EdgeListFileConfig, RmatConfig
from ..core.partition import EdgeList
from ..errors import ConfigurationError
from .edgelist import read_edgelist
from .rmat import generate_rmat

__all__ = ["karate", "load_dataset"]


def karate() -> EdgeList:
    """Zachary's karate club: 34 vertices, 78 undirected / 156 directed edges."""
    return from_nx(nx.karate_club_graph(), weight=None)


def load_dataset(config) -> EdgeList:
    if isinstance(config, RmatConfig):
        return generate_rmat(config)
    if isinstance(config, EdgeListFileConfig):
        return read_edgelist(
            config.path, weighted=config.weighted, undirected=config.undirected, comment=config.comment
        )
    if config == "karate":
        return karate()
    raise ConfigurationError(f"unknown dataset configuration {config!r}")
