"""Key and payload variants and the output-record schema they imply.

An output record is ``(*key_fields, dst, *payload_fields)``. Its shape is fixed
by the (key kind, payload kind) pair, so the schema below is the single place
that knows the column names and dtypes of an output buffer.
"""
from __future__ import annotations

from typing import NamedTuple

import numpy as np
import polars as pl

from ..errors import OperatorError
from .structure import DST, PAYLOAD, SRC, TAG, TAG_DTYPE, KeyKind, PayloadKind

__all__ = [
    "PlainKey",
    "TaggedKey",
    "make_key",
    "payload_for",
    "output_schema",
    "empty_output",
    "records_to_frame",
]


class PlainKey(NamedTuple):
    vertex: int


class TaggedKey(NamedTuple):
    vertex: int
    tag: int


def make_key(kind, vertex, tag=None):
    """Build the key variant for ``kind``; ``tag`` is required for tagged keys."""
    if KeyKind(kind) is KeyKind.TAGGED:
        if tag is None:
            raise OperatorError("tagged keys need a tag")
        return TaggedKey(int(vertex), int(tag))
    return PlainKey(int(vertex))


_PAYLOADS = {
    PayloadKind.NONE: (),
    PayloadKind.SCALAR: (1,),
    PayloadKind.PAIR: (1.0, 1),
}

_PAYLOAD_DTYPES = {
    PayloadKind.NONE: [],
    PayloadKind.SCALAR: [(PAYLOAD, np.dtype(np.int32))],
    PayloadKind.PAIR: [(f"{PAYLOAD}_0", np.dtype(np.float32)), (f"{PAYLOAD}_1", np.dtype(np.int32))],
}


def payload_for(kind) -> tuple:
    """Constant payload fields emitted by the reference operator."""
    return _PAYLOADS[PayloadKind(kind)]


def output_schema(key_kind, payload_kind, vertex_dtype=np.int64) -> dict[str, np.dtype]:
    """Ordered ``{column: dtype}`` for the given key/payload shape.

    The column order is the declared field order used for canonical sorting.
    """
    vdt = np.dtype(vertex_dtype)
    schema = {SRC: vdt}
    if KeyKind(key_kind) is KeyKind.TAGGED:
        schema[TAG] = TAG_DTYPE
    schema[DST] = vdt
    for name, dt in _PAYLOAD_DTYPES[PayloadKind(payload_kind)]:
        schema[name] = dt
    return schema


def empty_output(schema: dict[str, np.dtype]) -> pl.DataFrame:
    return pl.DataFrame({name: np.empty(0, dtype=dt) for name, dt in schema.items()})


def records_to_frame(records, schema: dict[str, np.dtype]) -> pl.DataFrame:
    """Compact a list of record tuples into a columnar buffer.

    Raises
    ------
    OperatorError
        If any record's arity differs from the schema or a field does not
        convert to its column dtype.
    """
    if not records:
        return empty_output(schema)
    arity = len(schema)
    for rec in records:
        if len(rec) != arity:
            raise OperatorError(
                f"operator returned a {len(rec)}-field record, expected {arity} "
                f"({', '.join(schema)})"
            )
    columns = {}
    for i, (name, dt) in enumerate(schema.items()):
        try:
            columns[name] = np.fromiter((rec[i] for rec in records), dtype=dt, count=len(records))
        except (TypeError, ValueError) as e:
            raise OperatorError(f"operator returned a value for column '{name}' that is not {dt}: {e}") from e
    return pl.DataFrame(columns)
