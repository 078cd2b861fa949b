"""Exception hierarchy for mlpnet."""

from __future__ import annotations


class NetworkError(Exception):
    """Base class for every error raised by mlpnet."""


class ConfigurationError(NetworkError, ValueError):
    """Invalid topology, input dimensionality, strategy pairing or hyperparameter."""


class PersistenceError(NetworkError):
    """A network snapshot is unsupported or corrupt.

    Ordinary I/O failures (missing files, permissions) are not wrapped and
    surface as :class:`OSError`.
    """


__all__ = ["NetworkError", "ConfigurationError", "PersistenceError"]
