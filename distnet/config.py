"""Run configuration.

Plain dataclasses; every value is checked in ``__post_init__`` and a bad one
raises :class:`~distnet.errors.ConfigurationError` before any computation.
"""
from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from .core.structure import EDGE_DTYPES, VERTEX_DTYPES, KeyKind, PayloadKind, PropertyKind
from .errors import ConfigurationError

__all__ = ["SuiteConfig", "RmatConfig", "EdgeListFileConfig", "Combination"]


@dataclass(frozen=True)
class Combination:
    key_kind: KeyKind
    payload_kind: PayloadKind
    vertex_dtype: np.dtype
    edge_dtype: np.dtype

    def as_dict(self) -> dict:
        return {
            "key": self.key_kind.value,
            "payload": self.payload_kind.value,
            "vertex": str(self.vertex_dtype),
            "edge": str(self.edge_dtype),
        }

    def __str__(self) -> str:
        return f"{self.key_kind.value}/{self.payload_kind.value}/{self.vertex_dtype}/{self.edge_dtype}"


def _enum_tuple(values, enum, what):
    try:
        out = tuple(enum(v) for v in values)
    except ValueError as e:
        raise ConfigurationError(f"invalid {what}: {e}") from None
    if not out:
        raise ConfigurationError(f"at least one {what} is required")
    return out


def _dtype_tuple(values, allowed, what):
    out = []
    for v in values:
        try:
            dt = np.dtype(v)
        except TypeError as e:
            raise ConfigurationError(f"invalid {what} {v!r}: {e}") from None
        if dt not in allowed:
            raise ConfigurationError(f"unsupported {what} {dt}; expected one of {[str(a) for a in allowed]}")
        out.append(dt)
    if not out:
        raise ConfigurationError(f"at least one {what} is required")
    return tuple(out)


@dataclass
class SuiteConfig:
    """What the verification harness runs.

    Parameters
    ----------
    bucket_count : int, default 5
        Distinct property values derivable from a vertex id.
    check_correctness : bool, default True
        Run the single-node oracle; ``False`` is a throughput-only pass.
    key_kinds, payload_kinds : sequence
        Key and payload shapes to sweep.
    vertex_dtypes, edge_dtypes : sequence
        Id widths to sweep. Combinations with an edge width narrower than the
        vertex width are skipped.
    property_kind : PropertyKind, default SCALAR
    tag_count : int, default 2
        Tags per source vertex for tagged keys when the input carries none.
    use_edge_property : bool, default False
        Hand edge weights to the operator instead of the no-op view.
    root : int, default 0
        Node that gathers results and runs the oracle.
    """

    bucket_count: int = 5
    check_correctness: bool = True
    key_kinds: tuple = (KeyKind.PLAIN, KeyKind.TAGGED)
    payload_kinds: tuple = (PayloadKind.NONE, PayloadKind.SCALAR, PayloadKind.PAIR)
    vertex_dtypes: tuple = ("int32", "int64")
    edge_dtypes: tuple = ("int32", "int64")
    property_kind: PropertyKind = PropertyKind.SCALAR
    tag_count: int = 2
    use_edge_property: bool = False
    root: int = 0

    def __post_init__(self):
        if int(self.bucket_count) < 1:
            raise ConfigurationError(f"Expected bucket_count >= 1, got {self.bucket_count}")
        if int(self.tag_count) < 1:
            raise ConfigurationError(f"Expected tag_count >= 1, got {self.tag_count}")
        if int(self.root) < 0:
            raise ConfigurationError(f"Expected root >= 0, got {self.root}")
        self.key_kinds = _enum_tuple(self.key_kinds, KeyKind, "key kind")
        self.payload_kinds = _enum_tuple(self.payload_kinds, PayloadKind, "payload kind")
        self.vertex_dtypes = _dtype_tuple(self.vertex_dtypes, VERTEX_DTYPES, "vertex id width")
        self.edge_dtypes = _dtype_tuple(self.edge_dtypes, EDGE_DTYPES, "edge id width")
        try:
            self.property_kind = PropertyKind(self.property_kind)
        except ValueError as e:
            raise ConfigurationError(f"invalid property kind: {e}") from None
        if not self.combinations():
            raise ConfigurationError("no supported (vertex width, edge width) pair configured")

    @property
    def needs_tags(self) -> bool:
        return KeyKind.TAGGED in self.key_kinds

    def combinations(self) -> list[Combination]:
        return [
            Combination(k, p, v, e)
            for k, p, v, e in itertools.product(
                self.key_kinds, self.payload_kinds, self.vertex_dtypes, self.edge_dtypes
            )
            if e.itemsize >= v.itemsize
        ]


@dataclass
class RmatConfig:
    """R-MAT generator parameters (Graph500 defaults)."""

    scale: int = 10
    edge_factor: int = 16
    a: float = 0.57
    b: float = 0.19
    c: float = 0.19
    seed: int | None = 0
    undirected: bool = False
    remove_self_loops: bool = True
    remove_multi_edges: bool = True
    weighted: bool = False

    def __post_init__(self):
        if not (1 <= int(self.scale) <= 40):
            raise ConfigurationError(f"Expected 1 <= scale <= 40, got {self.scale}")
        if int(self.edge_factor) < 1:
            raise ConfigurationError(f"Expected edge_factor >= 1, got {self.edge_factor}")
        probs = (self.a, self.b, self.c)
        if any(p < 0 for p in probs) or sum(probs) > 1.0 + 1e-12:
            raise ConfigurationError(f"R-MAT probabilities must be >= 0 and sum to <= 1, got {probs}")
        if self.a + self.b <= 0 or self.a + self.b >= 1:
            raise ConfigurationError("a + b must lie strictly between 0 and 1")

    @property
    def d(self) -> float:
        return 1.0 - self.a - self.b - self.c


@dataclass
class EdgeListFileConfig:
    """Whitespace-separated edge-list file: ``src dst [weight]`` per line."""

    path: Path = field(default_factory=Path)
    weighted: bool | None = None
    undirected: bool = False
    comment: str = "#"

    def __post_init__(self):
        self.path = Path(self.path)
        if not self.comment:
            raise ConfigurationError("comment prefix must not be empty")
