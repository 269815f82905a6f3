"""Conditional mutator.

Turns a classified record into a guarded transaction and commits it,
retrying with linear backoff when another writer got there first.  Every
retry re-reads the record's current state, so the guard of attempt ``n + 1``
is derived from what the store holds after attempt ``n`` lost the race.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from datetime import UTC, datetime

from vinsync._constants import FIELD_BATCH_TAG, FIELD_LAST_MODIFIED, FIELD_OWNER, FIELD_PLATE
from vinsync._redact import redact_for_log
from vinsync.exceptions import VinStoreError
from vinsync.models.context import Disposition, ProcessingContext
from vinsync.reconcile.reader import BulkStateReader
from vinsync.reconcile.retry import RetryPolicy
from vinsync.store.base import AssociationStore
from vinsync.store.keys import Keyspace
from vinsync.store.operations import (
    ConditionalTransaction,
    Delete,
    HashDelete,
    HashFieldEquals,
    HashSet,
    KeyAbsent,
    SetAdd,
    StringEquals,
    StringSet,
    Write,
)

_logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ConditionalMutator:
    """Applies the store mutation implied by each disposition."""

    def __init__(
        self,
        store: AssociationStore,
        keyspace: Keyspace,
        reader: BulkStateReader,
        *,
        policies: Mapping[Disposition, RetryPolicy],
        clock: Callable[[], datetime] = _utcnow,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._store = store
        self._keys = keyspace
        self._reader = reader
        self._policies = dict(policies)
        self._clock = clock
        self._sleep = sleep

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def build_transaction(self, context: ProcessingContext, batch_tag: str) -> ConditionalTransaction | None:
        """Guards and writes for *context*; ``None`` when nothing must change."""
        record = context.record
        chassis_key = self._keys.chassis(record.vin)
        plate_key = self._keys.plate(record.plate)

        if context.disposition is Disposition.UNCHANGED:
            return None

        if context.disposition is Disposition.NEW:
            return ConditionalTransaction(
                guards=(KeyAbsent(chassis_key), KeyAbsent(plate_key)),
                writes=(
                    HashSet(
                        chassis_key,
                        {
                            FIELD_PLATE: record.plate,
                            FIELD_OWNER: record.owner,
                            FIELD_LAST_MODIFIED: record.last_modified.isoformat(),
                            FIELD_BATCH_TAG: batch_tag,
                        },
                    ),
                    StringSet(plate_key, record.vin),
                    SetAdd(self._keys.batch(batch_tag), record.vin),
                ),
            )

        now = self._clock().isoformat()

        if context.disposition is Disposition.PLATE_CHANGED:
            writes: list[Write] = []
            if context.observed_plate:
                writes.append(Delete(self._keys.plate(context.observed_plate)))
            writes.append(StringSet(plate_key, record.vin))
            writes.append(HashSet(chassis_key, {FIELD_PLATE: record.plate, FIELD_LAST_MODIFIED: now}))
            return ConditionalTransaction(
                guards=(HashFieldEquals(chassis_key, FIELD_PLATE, context.observed_plate),),
                writes=tuple(writes),
            )

        if context.disposition is Disposition.VIN_REASSIGNED:
            previous_vin = context.observed_vin
            if previous_vin is None:
                raise ValueError(f"Reassignment of plate {record.plate} has no observed chassis")
            return ConditionalTransaction(
                guards=(StringEquals(plate_key, previous_vin),),
                writes=(
                    HashDelete(self._keys.chassis(previous_vin), (FIELD_PLATE,)),
                    StringSet(plate_key, record.vin),
                    HashSet(
                        chassis_key,
                        {FIELD_PLATE: record.plate, FIELD_OWNER: record.owner, FIELD_LAST_MODIFIED: now},
                    ),
                ),
            )

        raise ValueError(f"Unknown disposition: {context.disposition!r}")

    # ------------------------------------------------------------------
    # Commit with retry
    # ------------------------------------------------------------------

    async def apply(self, context: ProcessingContext, batch_tag: str) -> bool:
        """Commit the mutation for one record.

        Returns ``False`` once the disposition's attempts are exhausted.
        """
        if context.disposition is Disposition.UNCHANGED:
            return True
        policy = self._policies[context.disposition]
        record = context.record
        current = context

        for attempt in range(1, policy.max_attempts + 1):
            try:
                if attempt > 1:
                    current = await self._reader.refresh(record)
                transaction = self.build_transaction(current, batch_tag)
                if transaction is None:
                    _logger.debug("Chassis %s converged to its target state (attempt %d)", record.vin, attempt)
                    return True
                if await self._store.commit(transaction):
                    self._log_committed(current)
                    return True
                _logger.debug(
                    "Commit rejected for chassis %s (attempt %d/%d), retrying",
                    record.vin,
                    attempt,
                    policy.max_attempts,
                )
            except VinStoreError:
                _logger.warning(
                    "Store error for chassis %s (attempt %d/%d)",
                    record.vin,
                    attempt,
                    policy.max_attempts,
                    exc_info=True,
                )
            if attempt < policy.max_attempts:
                await self._sleep(policy.delay_for(attempt))

        return False

    async def apply_group(
        self,
        disposition: Disposition,
        contexts: Sequence[ProcessingContext],
        batch_tag: str,
    ) -> list[str]:
        """Apply every context of one disposition group, one at a time.

        Returns the VINs whose retries were exhausted.
        """
        _logger.info("Processing %d %s records", len(contexts), disposition.value)
        failed: list[str] = []
        for context in contexts:
            if await self.apply(context, batch_tag):
                continue
            failed.append(context.record.vin)
            if disposition is Disposition.VIN_REASSIGNED:
                _logger.error(
                    "Failed to reassign plate %s to chassis %s after retries",
                    context.record.plate,
                    context.record.vin,
                )
            else:
                _logger.error(
                    "Failed to apply %s for chassis %s after retries (concurrent modification)",
                    disposition.value,
                    context.record.vin,
                )
        _logger.info(
            "Applied %d/%d %s records",
            len(contexts) - len(failed),
            len(contexts),
            disposition.value,
        )
        return failed

    def _log_committed(self, context: ProcessingContext) -> None:
        record = context.record
        if context.disposition is Disposition.VIN_REASSIGNED:
            _logger.warning(
                "Plate %s reassigned from chassis %s to %s",
                record.plate,
                context.observed_vin,
                record.vin,
            )
        elif context.disposition is Disposition.PLATE_CHANGED:
            _logger.debug(
                "Plate change for chassis %s: %s -> %s",
                record.vin,
                context.observed_plate,
                record.plate,
            )
        else:
            _logger.debug(
                "Inserted chassis %s: %s",
                record.vin,
                redact_for_log(record.model_dump(mode="json")),
            )
