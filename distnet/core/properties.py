"""Vertex property table.

A property value is either a scalar or a fixed-arity tuple; both are stored
column-wise in a :class:`PropertyArray` (one numpy array per field) and ordered
lexicographically over the fields, so a scalar is just the arity-1 case.
"""
from __future__ import annotations

from collections.abc import Callable, Sequence

import numpy as np

from ..errors import ConfigurationError
from ..utils.hashing import bucket
from .structure import PropertyKind

__all__ = [
    "PropertyArray",
    "generate",
    "bucket_property",
    "vertex_property_table",
]


class PropertyArray:
    """Column-wise property values with a total, lexicographic order.

    Parameters
    ----------
    fields : sequence of np.ndarray
        One equally long 1-D array per tuple field.
    """

    __slots__ = ("fields",)

    def __init__(self, fields: Sequence[np.ndarray]):
        fields = tuple(np.asarray(f) for f in fields)
        if not fields:
            raise ConfigurationError("a property needs at least one field")
        n = fields[0].shape
        if any(f.ndim != 1 or f.shape != n for f in fields):
            raise ConfigurationError("property fields must be 1-D and equally long")
        self.fields = fields

    def __len__(self) -> int:
        return int(self.fields[0].size)

    def __repr__(self) -> str:
        dts = ", ".join(str(f.dtype) for f in self.fields)
        return f"<PropertyArray n={len(self)} ({dts})>"

    def __iter__(self):
        for i in range(len(self)):
            yield self.item(i)

    @property
    def arity(self) -> int:
        return len(self.fields)

    @property
    def dtypes(self) -> tuple[np.dtype, ...]:
        return tuple(f.dtype for f in self.fields)

    def item(self, i: int):
        """Python value at ``i``: a scalar for arity 1, a tuple otherwise."""
        if self.arity == 1:
            return self.fields[0][i].item()
        return tuple(f[i].item() for f in self.fields)

    def take(self, indices) -> "PropertyArray":
        idx = np.asarray(indices, dtype=np.int64)
        return PropertyArray([f[idx] for f in self.fields])

    def put(self, indices, values: "PropertyArray") -> None:
        self._check_compatible(values)
        idx = np.asarray(indices, dtype=np.int64)
        for dst, src in zip(self.fields, values.fields):
            dst[idx] = src

    def less(self, other: "PropertyArray") -> np.ndarray:
        """Element-wise ``self < other`` under lexicographic field order."""
        self._check_compatible(other)
        if len(self) != len(other):
            raise ValueError(f"length mismatch: {len(self)} != {len(other)}")
        lt = np.zeros(len(self), dtype=bool)
        eq = np.ones(len(self), dtype=bool)
        for a, b in zip(self.fields, other.fields):
            lt |= eq & (a < b)
            eq &= a == b
        return lt

    def equals(self, other: "PropertyArray") -> bool:
        if self.dtypes != other.dtypes or len(self) != len(other):
            return False
        return all(np.array_equal(a, b) for a, b in zip(self.fields, other.fields))

    def _check_compatible(self, other):
        if self.dtypes != other.dtypes:
            raise ValueError(f"property shapes differ: {self.dtypes} vs {other.dtypes}")

    @classmethod
    def empty(cls, n: int, dtypes) -> "PropertyArray":
        return cls([np.zeros(n, dtype=dt) for dt in dtypes])

    @classmethod
    def concat(cls, parts: Sequence["PropertyArray"]) -> "PropertyArray":
        if not parts:
            raise ValueError("nothing to concatenate")
        arity = parts[0].arity
        return cls([np.concatenate([p.fields[k] for p in parts]) for k in range(arity)])


def generate(seed_function: Callable[[np.ndarray], Sequence[np.ndarray]], labels) -> PropertyArray:
    """Property value for every vertex in ``labels`` (original ids).

    ``seed_function`` must be a pure, vectorized function of the original id
    so every node and every node count produce the same value for a vertex.
    """
    labels = np.asarray(labels, dtype=np.int64)
    values = seed_function(labels)
    if isinstance(values, np.ndarray):
        values = [values]
    out = PropertyArray(values)
    if len(out) != labels.size:
        raise ConfigurationError(
            f"seed function returned {len(out)} values for {labels.size} vertices"
        )
    return out


def bucket_property(bucket_count: int, kind=PropertyKind.SCALAR):
    """Seed function hashing a vertex id into ``bucket_count`` buckets.

    Scalar properties are the int32 bucket; pair properties append a float32
    field from an independent hash so ties on the first field sometimes break.
    """
    if bucket_count < 1:
        raise ConfigurationError(f"Expected bucket_count >= 1, got {bucket_count}")
    kind = PropertyKind(kind)

    def seed(labels: np.ndarray):
        first = bucket(labels, bucket_count).astype(np.int32)
        if kind is PropertyKind.SCALAR:
            return [first]
        second = bucket(labels, bucket_count, rounds=3).astype(np.float32)
        return [first, second]

    return seed


def vertex_property_table(ctx, graph, bucket_count: int, kind=PropertyKind.SCALAR) -> PropertyArray:
    """This node's property table, indexed by local vertex offset."""
    table = generate(bucket_property(bucket_count, kind), graph.local_labels)
    ctx.log_event("properties.generate", n=len(table), bucket_count=bucket_count, kind=kind)
    return table
