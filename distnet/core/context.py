"""Explicit per-node context threaded through every component call.

A :class:`ClusterContext` owns the node's transport, its worker budget for
local data-parallel passes and an in-memory event history. Components never
reach for a global handle; the top-level driver creates one context per node
and closes it when the run is over.
"""
from __future__ import annotations

import logging
import os
import time
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from ..utils.validation import jsonify

if TYPE_CHECKING:
    from ..transport.base import ClusterTransport

__all__ = ["ClusterContext"]

logger = logging.getLogger(__name__)


class ClusterContext:
    """Per-node handle: rank, size, collectives and event history.

    Parameters
    ----------
    transport : ClusterTransport
        Collective backend for this node.
    history : bool, default True
        Record events in memory (see :meth:`log_event`).
    workers : int, optional
        Thread budget for local per-edge passes. Defaults to the CPU count,
        capped at 8.

    Notes
    -----
    Every collective goes through the context so it lands in the history with
    a label; the history of a run is therefore a trace of the barriers the
    node went through, in order.
    """

    def __init__(self, transport: "ClusterTransport", *, history: bool = True, workers: int | None = None):
        self.transport = transport
        self.workers = int(workers) if workers else min(8, os.cpu_count() or 1)
        self._closed = False

        # History
        self._history_enabled = bool(history)
        self._history: list[dict] = []
        self._version = 0
        self._history_clock0 = time.perf_counter_ns()

    def __repr__(self) -> str:
        return f"<ClusterContext rank={self.rank}/{self.size} transport={self.transport.name}>"

    def __enter__(self) -> "ClusterContext":
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is not None and not self._closed and self.size > 1:
            self.abort(exc)
        self.close()
        return False

    def abort(self, exc: BaseException | None = None) -> None:
        """Abort the run on every node. Not a collective; peers fail in their next one."""
        if exc is not None:
            logger.error("rank %d aborting the run: %r", self.rank, exc)
        self.log_event("abort", error=None if exc is None else repr(exc))
        self.transport.abort()

    def close(self) -> None:
        """Release the transport. Not a collective; safe after a failure."""
        if self._closed:
            return
        self._closed = True
        self.log_event("close")
        self.transport.close()

    @property
    def rank(self) -> int:
        return self.transport.rank

    @property
    def size(self) -> int:
        return self.transport.size

    def is_root(self, root: int = 0) -> bool:
        return self.rank == root

    # Collectives

    def _ensure_open(self):
        if self._closed:
            raise RuntimeError("ClusterContext is closed")

    def barrier(self, label: str | None = None) -> None:
        self._ensure_open()
        self.transport.barrier()
        self.log_event("barrier", label=label)

    def allgather(self, obj: Any, label: str | None = None) -> list:
        self._ensure_open()
        out = self.transport.allgather(obj)
        self.log_event("allgather", label=label)
        return out

    def gather(self, obj: Any, root: int = 0, label: str | None = None) -> list | None:
        self._ensure_open()
        out = self.transport.gather(obj, root=root)
        self.log_event("gather", label=label, root=root)
        return out

    def bcast(self, obj: Any, root: int = 0, label: str | None = None) -> Any:
        self._ensure_open()
        out = self.transport.bcast(obj, root=root)
        self.log_event("bcast", label=label, root=root)
        return out

    def alltoall(self, objs: list, label: str | None = None) -> list:
        self._ensure_open()
        out = self.transport.alltoall(objs)
        self.log_event("alltoall", label=label)
        return out

    # History

    @property
    def history(self) -> list[dict]:
        return list(self._history)

    def _utcnow_iso(self) -> str:
        return datetime.now(UTC).isoformat(timespec="microseconds").replace("+00:00", "Z")

    def log_event(self, op: str, **fields):
        if not self._history_enabled:
            return
        self._version += 1
        evt = {
            "version": self._version,
            "ts_utc": self._utcnow_iso(),  # ISO-8601 with Z
            "mono_ns": time.perf_counter_ns() - self._history_clock0,
            "op": op,
            "rank": self.transport.rank,
        }
        for k, v in fields.items():
            evt[k] = jsonify(v)
        self._history.append(evt)

    def enable_history(self, flag: bool = True):
        """Enable or disable in-memory event logging."""
        self._history_enabled = bool(flag)

    def clear_history(self):
        self._history.clear()

    def mark(self, label: str):
        """Insert a manual marker into the history (``op='mark'``)."""
        self.log_event("mark", label=label)
