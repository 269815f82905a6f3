"""vinsync - Async VIN/plate association reconciliation over Redis."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("vinsync")
except PackageNotFoundError:
    __version__ = "0+local"
from vinsync.config import VinSyncConfig
from vinsync.exceptions import (
    VinConfigError,
    VinConnectionError,
    VinStoreError,
    VinSyncError,
    VinValidationError,
)
from vinsync.models import (
    BatchOutcome,
    Disposition,
    ProcessingContext,
    VinEntry,
    VinRecord,
    parse_records,
)
from vinsync.reconcile import BatchCoordinator, RetryPolicy, classify
from vinsync.service import VinService
from vinsync.store import InMemoryAssociationStore, Keyspace, RedisAssociationStore

__all__ = [
    "__version__",
    "BatchCoordinator",
    "BatchOutcome",
    "Disposition",
    "InMemoryAssociationStore",
    "Keyspace",
    "ProcessingContext",
    "RedisAssociationStore",
    "RetryPolicy",
    "VinConfigError",
    "VinConnectionError",
    "VinEntry",
    "VinRecord",
    "VinService",
    "VinStoreError",
    "VinSyncConfig",
    "VinSyncError",
    "VinValidationError",
    "classify",
    "parse_records",
]
