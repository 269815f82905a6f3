"""Custom exception hierarchy for vinsync."""

from __future__ import annotations


class VinSyncError(Exception):
    """Base exception for all vinsync errors."""


class VinConfigError(VinSyncError):
    """Invalid or missing configuration."""


class VinValidationError(VinSyncError, ValueError):
    """Batch or lookup input rejected before touching the store.

    Raised for an empty batch, records missing a VIN/plate/owner, and blank
    lookup identifiers.
    """


class VinStoreError(VinSyncError):
    """Store-level failure (network, timeout, protocol error)."""

    def __init__(
        self,
        message: str,
        *,
        operation: str = "",
    ) -> None:
        self.operation = operation
        super().__init__(message)


class VinConnectionError(VinStoreError):
    """The store could not be reached at startup.

    Only raised when the service runs with ``fail_fast=True``; otherwise the
    failed ping is logged and the service starts degraded.
    """
