"""Failure types raised by the storage backends."""

from __future__ import annotations

from typing import Optional


class StorageError(Exception):
    """Base class for every storage backend failure."""


class PersistenceError(StorageError):
    """A relational write or read failed; the enclosing unit was rolled back."""


class UpstreamError(StorageError):
    """The external metrics store was unreachable or answered with a failure."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class StorageStartupError(StorageError):
    """Storage could not be initialized; the service must not start."""
