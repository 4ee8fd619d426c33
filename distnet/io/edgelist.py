"""
Edge-list file IO through Polars (the stdlib `csv` module is not used).

Reads whitespace-separated ``src dst [weight]`` lines. Lines starting with the
comment prefix (``#`` by default) or ``%`` are skipped. A Matrix Market header
(``%%MatrixMarket``) switches to 1-based ids, drops the size line and, for
``symmetric`` files, symmetrizes the edges.

Public entry points:
- read_edgelist(path, weighted=None, undirected=False, comment="#") -> EdgeList
- write_edgelist(edges, path) -> int (rows written)
"""
from __future__ import annotations

from pathlib import Path

import polars as pl

from ..core.partition import EdgeList
from ..core.structure import DST, SRC, WEIGHT
from ..errors import ConfigurationError

__all__ = ["read_edgelist", "write_edgelist"]

_LINE = "line"


def _read_lines(path: Path) -> pl.Series:
    if path.stat().st_size == 0:
        return pl.Series(_LINE, [], dtype=pl.String)
    df = pl.read_csv(
        path,
        has_header=False,
        new_columns=[_LINE],
        separator="\x1f",
        quote_char=None,
        infer_schema_length=0,
    )
    return df.get_column(_LINE).str.strip_chars()


def read_edgelist(path, weighted: bool | None = None, undirected: bool = False, comment: str = "#") -> EdgeList:
    """Load an edge list.

    Parameters
    ----------
    path : str or Path
    weighted : bool, optional
        Require (True) or ignore (False) a third weight column. ``None``
        takes weights when every line has three fields.
    undirected : bool, default False
        Add the reverse of every edge.
    comment : str, default "#"

    Raises
    ------
    ConfigurationError
        On missing files, ragged lines or non-numeric fields.
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(f"edge list file not found: {path}")
    lines = _read_lines(path)
    if lines.len() == 0:
        return EdgeList([], [])

    matrix_market = bool(lines[0].startswith("%%MatrixMarket"))
    symmetric = matrix_market and "symmetric" in lines[0].lower()
    keep = (lines.str.len_chars() > 0) & ~lines.str.starts_with("%") & ~lines.str.starts_with(comment)
    lines = lines.filter(keep)
    if matrix_market and lines.len():
        lines = lines.slice(1)  # "rows cols nnz"

    tokens = pl.DataFrame({"tok": lines.str.extract_all(r"\S+")})
    widths = tokens.get_column("tok").list.len().unique().to_list()
    if tokens.height and (len(widths) != 1 or widths[0] not in (2, 3)):
        raise ConfigurationError(f"{path}: expected 2 or 3 fields per line, found widths {sorted(widths)}")
    has_weight = bool(tokens.height) and widths[0] == 3
    if weighted and not has_weight:
        raise ConfigurationError(f"{path}: weights requested but lines have no weight column")
    take_weight = has_weight if weighted is None else bool(weighted)

    exprs = [
        pl.col("tok").list.get(0).cast(pl.Int64).alias(SRC),
        pl.col("tok").list.get(1).cast(pl.Int64).alias(DST),
    ]
    if take_weight:
        exprs.append(pl.col("tok").list.get(2).cast(pl.Float32).alias(WEIGHT))
    try:
        df = tokens.select(exprs)
    except pl.exceptions.PolarsError as e:
        raise ConfigurationError(f"{path}: malformed edge list: {e}") from e

    if matrix_market:
        df = df.with_columns(pl.col(SRC) - 1, pl.col(DST) - 1)
    edges = EdgeList.from_frame(df)
    if undirected or symmetric:
        edges = edges.symmetrize()
    return edges


def write_edgelist(edges: EdgeList, path) -> int:
    df = edges.to_frame()
    df = df.select([c for c in (SRC, DST, WEIGHT) if c in df.columns])
    df.write_csv(path, separator=" ", include_header=False)
    return df.height
