from abc import ABC, abstractmethod
from typing import Any


class ClusterTransport(ABC):
    """Collective communication between the nodes of one run.

    The method set mirrors the pickle-based object API of mpi4py communicators:
    every call is a collective and must be entered by every rank, in the same
    order. Point-to-point messaging is deliberately absent.
    """

    name = "abstract"

    @property
    @abstractmethod
    def rank(self) -> int:
        pass

    @property
    @abstractmethod
    def size(self) -> int:
        pass

    @abstractmethod
    def barrier(self) -> None:
        pass

    @abstractmethod
    def allgather(self, obj: Any) -> list:
        pass

    @abstractmethod
    def gather(self, obj: Any, root: int = 0) -> list | None:
        pass

    @abstractmethod
    def bcast(self, obj: Any, root: int = 0) -> Any:
        pass

    @abstractmethod
    def alltoall(self, objs: list) -> list:
        pass

    def abort(self) -> None:
        """Tear down the run so peers blocked in a collective fail instead of waiting.

        Default: nothing to tear down (single-process backends).
        """

    def close(self) -> None:
        """Release backend resources. Default: nothing to release."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} rank={self.rank}/{self.size}>"
