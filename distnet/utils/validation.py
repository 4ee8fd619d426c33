import hashlib
import json
from enum import Enum

import numpy as np
import polars as pl


def jsonify(x):
    """Make event fields JSON-safe & compact."""
    if isinstance(x, Enum):
        return x.value
    if x is None or isinstance(x, (bool, int, float, str)):
        return x
    if isinstance(x, (set, frozenset)):
        return sorted(jsonify(v) for v in x)
    if isinstance(x, (list, tuple)):
        return [jsonify(v) for v in x]
    if isinstance(x, dict):
        return {str(k): jsonify(v) for k, v in x.items()}
    if isinstance(x, np.generic):
        return x.item()
    if isinstance(x, np.dtype):
        return str(x)
    if isinstance(x, np.ndarray):
        return f"<<ndarray {x.dtype}[{x.size}]>>"
    if isinstance(x, pl.DataFrame):
        return f"<<DataFrame {x.height}x{x.width}>>"
    return f"<<{type(x).__name__}>>"


def canonicalize(obj):
    """Recursively convert an object into a JSON-serializable structure
    that is independent of internal ordering.
    """
    if isinstance(obj, dict):
        return {str(key): canonicalize(obj[key]) for key in sorted(obj.keys(), key=lambda x: str(x))}
    elif isinstance(obj, (list, tuple)):
        return [canonicalize(item) for item in obj]
    elif isinstance(obj, np.ndarray):
        return [str(obj.dtype), obj.tolist()]
    elif isinstance(obj, np.generic):
        return obj.item()
    elif isinstance(obj, set):
        return sorted([canonicalize(item) for item in obj], key=lambda x: json.dumps(x, sort_keys=True))
    elif isinstance(obj, (int, float, str, bool)) or obj is None:
        return obj
    else:
        return str(obj)


def obj_canonicalized_hash(obj) -> str:
    # 'sort_keys=True' ensures consistent key order,
    # and separators remove unnecessary whitespace.
    obj_serialized = json.dumps(canonicalize(obj), sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(obj_serialized).hexdigest()


def canonical_sort(df: pl.DataFrame) -> pl.DataFrame:
    """Sort rows lexicographically over all columns in declared order."""
    if df.width == 0 or df.height < 2:
        return df
    return df.sort(by=df.columns, maintain_order=True)


def first_difference(a: pl.DataFrame, b: pl.DataFrame, limit: int = 5) -> dict:
    """Summarize how two canonicalized frames differ (lengths, schemas, first rows)."""
    out = {"len_a": a.height, "len_b": b.height}
    if a.columns != b.columns:
        out["columns_a"] = a.columns
        out["columns_b"] = b.columns
        return out
    n = min(a.height, b.height)
    if n:
        ne = np.zeros(n, dtype=bool)
        for c in a.columns:
            ne |= a[c].head(n).to_numpy() != b[c].head(n).to_numpy()
        idx = np.flatnonzero(ne)
        if idx.size:
            first = int(idx[0])
            out["first_mismatch_row"] = first
            out["rows_a"] = a.slice(first, limit).rows()
            out["rows_b"] = b.slice(first, limit).rows()
    return out
