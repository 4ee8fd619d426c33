from importlib import import_module, util

from .base import ClusterTransport
from .local import LocalTransport, run_local, solo_transport

__all__ = [
    "ClusterTransport",
    "LocalTransport",
    "available_transports",
    "load_transport",
    "run_local",
    "solo_transport",
]

# name -> (import name of the backing library, submodule, class_name)
_BACKENDS = {
    "local": ("threading", ".local", "LocalTransport"),
    "mpi": ("mpi4py", ".mpi", "MPITransport"),
}


def _is_installed(modname: str) -> bool:
    return util.find_spec(modname) is not None


def available_transports() -> dict:
    return {name: _is_installed(mod) for name, (mod, _, _) in _BACKENDS.items()}


def load_transport(name: str, *args, **kwargs) -> ClusterTransport:
    if name not in _BACKENDS:
        raise ValueError(f"Unknown transport '{name}'")
    modname, submod, cls = _BACKENDS[name]
    if not _is_installed(modname):
        raise ModuleNotFoundError(
            f"Optional transport '{name}' is not installed. "
            f"Install with `pip install distnet[{name}]`."
        )
    mod = import_module(__name__ + submod)
    return getattr(mod, cls)(*args, **kwargs)
