from .networkx import from_nx, to_nx

__all__ = ["from_nx", "to_nx"]
