from .datasets import karate, load_dataset
from .edgelist import read_edgelist, write_edgelist
from .rmat import generate_rmat

__all__ = ["generate_rmat", "karate", "load_dataset", "read_edgelist", "write_edgelist"]
