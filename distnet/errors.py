"""Exception hierarchy.

Configuration and communication errors are fatal: nothing in the package
retries them. Verification errors are raised per combination and are caught
by the harness so the remaining combinations still run.
"""
from __future__ import annotations

__all__ = [
    "DistnetError",
    "ConfigurationError",
    "CommunicationError",
    "OperatorError",
    "VerificationError",
]


class DistnetError(Exception):
    """Base class for every error raised by distnet."""


class ConfigurationError(DistnetError, ValueError):
    """Inconsistent partition boundaries, node counts or input datasets."""


class CommunicationError(DistnetError, RuntimeError):
    """A collective could not complete (broken peer, size mismatch)."""


class OperatorError(DistnetError, TypeError):
    """An edge operator returned a record that does not fit the output schema."""


class VerificationError(DistnetError, AssertionError):
    """Distributed and reference outputs differ after canonicalization.

    Parameters
    ----------
    message : str
        Human-readable summary.
    combination : dict, optional
        The (key kind, payload kind, vertex width, edge width) that failed.
    details : dict, optional
        Lengths and the first differing rows, when available.
    """

    def __init__(self, message, combination=None, details=None):
        super().__init__(message)
        self.combination = dict(combination or {})
        self.details = dict(details or {})

    def __str__(self):
        base = super().__str__()
        if self.combination:
            combo = ", ".join(f"{k}={v}" for k, v in self.combination.items())
            base = f"{base} [{combo}]"
        return base
