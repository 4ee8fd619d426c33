"""mpi4py-backed transport for real multi-node runs.

Launch with ``mpirun -n <P> python -m ...``; every rank builds its own
``ClusterContext(MPITransport())``.
"""
from __future__ import annotations

try:
    from mpi4py import MPI
except ImportError:
    MPI = None

from ..errors import CommunicationError
from .base import ClusterTransport

__all__ = ["MPITransport"]


class MPITransport(ClusterTransport):
    name = "mpi"

    def __init__(self, comm=None):
        if MPI is None:
            raise ModuleNotFoundError(
                "Optional dependency 'mpi4py' is not installed. "
                "Install with: pip install distnet[mpi]"
            )
        self._comm = comm if comm is not None else MPI.COMM_WORLD

    @property
    def rank(self) -> int:
        return self._comm.Get_rank()

    @property
    def size(self) -> int:
        return self._comm.Get_size()

    def _call(self, fn, *args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except MPI.Exception as e:
            raise CommunicationError(f"MPI collective failed: {e}") from e

    def barrier(self) -> None:
        self._call(self._comm.barrier)

    def allgather(self, obj):
        return self._call(self._comm.allgather, obj)

    def gather(self, obj, root=0):
        return self._call(self._comm.gather, obj, root=root)

    def bcast(self, obj, root=0):
        return self._call(self._comm.bcast, obj, root=root)

    def alltoall(self, objs):
        if len(objs) != self.size:
            raise CommunicationError(
                f"alltoall expects {self.size} payloads, rank {self.rank} sent {len(objs)}"
            )
        return self._call(self._comm.alltoall, objs)

    def abort(self) -> None:
        self._comm.Abort(1)
