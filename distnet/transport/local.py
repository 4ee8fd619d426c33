"""In-process transport: N logical nodes as threads sharing one rendezvous.

Every payload is pickled on the way in and unpickled on the way out, so a
rank never holds a reference to another rank's buffers and anything that
would not survive an MPI transfer fails here too.

Public entry points:
- run_local(fn, size, **options) -> list of per-rank results
- solo_transport() -> size-1 transport for single-node runs
"""
from __future__ import annotations

import logging
import pickle
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable

from ..errors import CommunicationError
from .base import ClusterTransport

__all__ = ["LocalTransport", "Rendezvous", "run_local", "solo_transport"]

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120.0


def _copy(obj):
    return pickle.loads(pickle.dumps(obj, protocol=pickle.HIGHEST_PROTOCOL))


class Rendezvous:
    """Shared slots plus a reusable barrier for ``size`` threads."""

    def __init__(self, size: int, timeout: float | None = DEFAULT_TIMEOUT):
        if size <= 0:
            raise CommunicationError(f"Expected size > 0, got {size}")
        self.size = size
        self.timeout = timeout
        self._barrier = threading.Barrier(size, timeout=timeout)
        self._slots: list[Any] = [None] * size

    def wait(self) -> None:
        try:
            self._barrier.wait()
        except threading.BrokenBarrierError as e:
            raise CommunicationError(
                "collective aborted: a peer failed or the barrier timed out"
            ) from e

    def exchange(self, rank: int, obj: Any) -> list:
        """Deposit ``obj`` for ``rank`` and return every rank's deposit."""
        self._slots[rank] = obj
        self.wait()
        out = list(self._slots)
        # second phase keeps a fast rank from overwriting slots still being read
        self.wait()
        return out

    def abort(self) -> None:
        self._barrier.abort()

    @property
    def broken(self) -> bool:
        return self._barrier.broken


class LocalTransport(ClusterTransport):
    name = "local"

    def __init__(self, rendezvous: Rendezvous | None = None, rank: int = 0):
        self._rv = rendezvous if rendezvous is not None else Rendezvous(1)
        if not (0 <= rank < self._rv.size):
            raise CommunicationError(f"Expected 0 <= rank < {self._rv.size}, got {rank}")
        self._rank = rank

    @property
    def rank(self) -> int:
        return self._rank

    @property
    def size(self) -> int:
        return self._rv.size

    def _check_root(self, root):
        if not (0 <= root < self.size):
            raise CommunicationError(f"root {root} out of range for size {self.size}")

    def barrier(self) -> None:
        self._rv.wait()

    def allgather(self, obj):
        return [_copy(o) for o in self._rv.exchange(self._rank, _copy(obj))]

    def gather(self, obj, root=0):
        self._check_root(root)
        got = self._rv.exchange(self._rank, _copy(obj))
        if self._rank != root:
            return None
        return [_copy(o) for o in got]

    def bcast(self, obj, root=0):
        self._check_root(root)
        got = self._rv.exchange(self._rank, _copy(obj) if self._rank == root else None)
        return _copy(got[root])

    def alltoall(self, objs):
        if len(objs) != self.size:
            raise CommunicationError(
                f"alltoall expects {self.size} payloads, rank {self._rank} sent {len(objs)}"
            )
        got = self._rv.exchange(self._rank, [_copy(o) for o in objs])
        return [_copy(got[src][self._rank]) for src in range(self.size)]

    def abort(self) -> None:
        self._rv.abort()


def solo_transport() -> LocalTransport:
    """A one-node transport; collectives return immediately."""
    return LocalTransport(Rendezvous(1), 0)


def run_local(
    fn: Callable[..., Any],
    size: int,
    *args,
    timeout: float | None = DEFAULT_TIMEOUT,
    history: bool = True,
    **kwargs,
) -> list:
    """Run ``fn(ctx, *args, **kwargs)`` on ``size`` in-process nodes.

    Parameters
    ----------
    fn : callable
        Per-node body. Receives a :class:`~distnet.core.context.ClusterContext`.
    size : int
        Number of logical nodes.
    timeout : float, optional
        Seconds a collective may wait for its peers before the run is
        declared stalled.
    history : bool, default True
        Enable the per-context event history.

    Returns
    -------
    list
        ``fn``'s return value for every rank, in rank order.

    Raises
    ------
    Exception
        The exception of the first rank that failed. Peers that only
        failed because the collective was aborted are not reported.
    """
    from ..core.context import ClusterContext

    rv = Rendezvous(size, timeout=timeout)
    first_failure: list[tuple[int, BaseException]] = []
    lock = threading.Lock()

    def body(rank):
        with ClusterContext(LocalTransport(rv, rank), history=history) as ctx:
            try:
                return fn(ctx, *args, **kwargs)
            except BaseException as e:
                with lock:
                    if not first_failure and not rv.broken:
                        first_failure.append((rank, e))
                raise

    with ThreadPoolExecutor(max_workers=size, thread_name_prefix="distnet-node") as pool:
        futures = [pool.submit(body, r) for r in range(size)]
        errors = [f.exception() for f in futures]

    failed = [(r, e) for r, e in enumerate(errors) if e is not None]
    if failed:
        rank, err = first_failure[0] if first_failure else failed[0]
        logger.debug("local run failed on rank %d of %d: %r", rank, size, err)
        raise err
    return [f.result() for f in futures]
