from .context import ClusterContext
from .partition import EdgeList, GraphPartition, RenumberMap, build_renumber_map, partition_graph, split_edges
from .properties import PropertyArray, bucket_property, generate, vertex_property_table
from .structure import KeyKind, PayloadKind, PropertyKind

__all__ = [
    "ClusterContext",
    "EdgeList",
    "GraphPartition",
    "KeyKind",
    "PayloadKind",
    "PropertyArray",
    "PropertyKind",
    "RenumberMap",
    "build_renumber_map",
    "bucket_property",
    "generate",
    "partition_graph",
    "split_edges",
    "vertex_property_table",
]
