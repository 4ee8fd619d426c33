from enum import Enum

import numpy as np


class KeyKind(str, Enum):
    """Shape of the key handed to an edge operator.

    Attributes:
        PLAIN: The key is the bare source vertex id
        TAGGED: The key is a (source vertex id, tag) pair
    """

    PLAIN = "plain"
    TAGGED = "tagged"


class PayloadKind(str, Enum):
    """Shape of the payload appended to every output record.

    Attributes:
        NONE: No payload, records are (key fields, destination)
        SCALAR: A single int32 payload field
        PAIR: A (float32, int32) payload pair
    """

    NONE = "none"
    SCALAR = "scalar"
    PAIR = "pair"


class PropertyKind(str, Enum):
    """Shape of a vertex property value.

    Attributes:
        SCALAR: One int32 value per vertex
        PAIR: An (int32, float32) tuple per vertex, ordered lexicographically
    """

    SCALAR = "scalar"
    PAIR = "pair"


# column names shared by edge lists, partitions and output buffers
SRC = "src"
DST = "dst"
TAG = "tag"
WEIGHT = "weight"
PAYLOAD = "payload"

TAG_DTYPE = np.dtype(np.int32)
WEIGHT_DTYPE = np.dtype(np.float32)

VERTEX_DTYPES = (np.dtype(np.int32), np.dtype(np.int64))
EDGE_DTYPES = (np.dtype(np.int32), np.dtype(np.int64))

"""
Vertex and edge id widths are numpy integer dtypes; every per-edge column is a
numpy array and every output buffer is a polars DataFrame with one column per
record field.
"""
