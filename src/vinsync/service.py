"""High-level async service for VIN/plate reconciliation."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from vinsync._redact import redact_url
from vinsync.config import VinSyncConfig
from vinsync.exceptions import VinConnectionError, VinStoreError, VinSyncError, VinValidationError
from vinsync.models.outcome import BatchOutcome
from vinsync.models.record import VinEntry, VinRecord
from vinsync.reconcile.coordinator import BatchCoordinator
from vinsync.reconcile.mutator import Sleep
from vinsync.store.base import AssociationStore
from vinsync.store.keys import Keyspace
from vinsync.store.operations import HashGetAll, StringGet
from vinsync.store.redis_store import RedisAssociationStore

_logger = logging.getLogger(__name__)


def _require_id(value: str, name: str) -> str:
    stripped = value.strip() if isinstance(value, str) else ""
    if not stripped:
        raise VinValidationError(f"{name} cannot be empty")
    return stripped


class VinService:
    """Async service owning the store handle.

    Usage::

        async with VinService(VinSyncConfig.from_env()) as service:
            outcome = await service.process_batch(records)

    The store handle is created once on enter (unless one is injected) and
    passed to every component; nothing is kept in module-level state.
    """

    def __init__(
        self,
        config: VinSyncConfig,
        *,
        store: AssociationStore | None = None,
        sleep: Sleep | None = None,
    ) -> None:
        self._config = config
        self._external_store = store is not None
        self._store = store
        self._keys = Keyspace(config.key_prefix)
        self._sleep = sleep
        self._coordinator: BatchCoordinator | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> VinService:
        if self._store is None:
            self._store = RedisAssociationStore.from_config(self._config)
        coordinator_kwargs: dict[str, Any] = {
            "policies": self._config.retry_policies(),
            "strict_error_accounting": self._config.strict_error_accounting,
        }
        if self._sleep is not None:
            coordinator_kwargs["sleep"] = self._sleep
        self._coordinator = BatchCoordinator(self._store, self._keys, **coordinator_kwargs)

        try:
            await self._store.ping()
        except VinStoreError as exc:
            if self._config.fail_fast:
                await self._release_store()
                raise VinConnectionError(
                    f"Store at {redact_url(self._config.redis_url)} unreachable: {exc}",
                    operation="ping",
                ) from exc
            _logger.warning(
                "Store at %s unreachable at startup; continuing degraded: %s",
                redact_url(self._config.redis_url),
                exc,
            )
        else:
            _logger.info("Connected to store at %s", redact_url(self._config.redis_url))
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self._release_store()

    async def _release_store(self) -> None:
        self._coordinator = None
        if not self._external_store and self._store is not None:
            await self._store.aclose()
            self._store = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_store(self) -> AssociationStore:
        if self._store is None:
            raise VinSyncError("Service not initialized. Use 'async with VinService(...) as service:'")
        return self._store

    def _require_coordinator(self) -> BatchCoordinator:
        if self._coordinator is None:
            raise VinSyncError("Service not initialized. Use 'async with VinService(...) as service:'")
        return self._coordinator

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def process_batch(self, records: Sequence[VinRecord], batch_tag: str | None = None) -> BatchOutcome:
        """Reconcile a batch of feed records.

        Raises
        ------
        VinValidationError
            If *records* is empty.
        """
        if not records:
            raise VinValidationError("Records list cannot be empty")
        return await self._require_coordinator().process(records, batch_tag)

    async def get_by_vin(self, vin: str) -> VinEntry | None:
        """Look up a chassis entry by VIN."""
        vin = _require_id(vin, "VIN")
        store = self._require_store()
        (fields,) = await store.read_many([HashGetAll(self._keys.chassis(vin))])
        if not fields:
            return None
        return VinEntry.from_hash(vin, fields)

    async def get_by_plate(self, plate: str) -> VinEntry | None:
        """Look up the chassis entry currently holding *plate*."""
        plate = _require_id(plate, "Plate")
        store = self._require_store()
        (vin,) = await store.read_many([StringGet(self._keys.plate(plate))])
        if not vin:
            return None
        return await self.get_by_vin(vin)

    async def clear_all(self) -> int:
        """Delete every chassis, plate and batch key under the prefix."""
        store = self._require_store()
        _logger.warning("Clearing all VIN data under prefix %r", self._keys.prefix)
        deleted = await store.delete_matching(self._keys.wipe_patterns())
        _logger.info("Deleted %d VIN keys", deleted)
        return deleted
