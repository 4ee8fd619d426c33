import numpy as np

_GOLDEN = np.uint64(0x9E3779B97F4A7C15)
_M1 = np.uint64(0xBF58476D1CE4E5B9)
_M2 = np.uint64(0x94D049BB133111EB)


def splitmix64(ids) -> np.ndarray:
    """Vectorized SplitMix64 finalizer over non-negative integer ids.

    Pure function of the id value: the same id hashes the same on every node
    and for every id width.
    """
    z = np.asarray(ids).astype(np.uint64, copy=True)
    with np.errstate(over="ignore"):
        z += _GOLDEN
        z = (z ^ (z >> np.uint64(30))) * _M1
        z = (z ^ (z >> np.uint64(27))) * _M2
        z ^= z >> np.uint64(31)
    return z


def bucket(ids, count: int, rounds: int = 1) -> np.ndarray:
    """``splitmix64`` applied ``rounds`` times, reduced modulo ``count``."""
    h = np.asarray(ids)
    for _ in range(rounds):
        h = splitmix64(h)
    return (h % np.uint64(count)).astype(np.int64)
