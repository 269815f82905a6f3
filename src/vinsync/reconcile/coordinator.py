"""Batch coordinator.

Orchestrates one reconciliation run: bulk read, classification, grouping by
disposition and the guarded mutations, and aggregates the result into a
:class:`BatchOutcome`.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections.abc import Callable, Mapping, Sequence
from datetime import UTC, datetime, timedelta

from vinsync._constants import BATCH_TAG_TIME_FORMAT
from vinsync.exceptions import VinValidationError
from vinsync.models.context import Disposition, ProcessingContext
from vinsync.models.outcome import BatchOutcome
from vinsync.models.record import VinRecord
from vinsync.reconcile.mutator import ConditionalMutator, Sleep
from vinsync.reconcile.reader import BulkStateReader
from vinsync.reconcile.retry import RetryPolicy
from vinsync.store.base import AssociationStore
from vinsync.store.keys import Keyspace

_logger = logging.getLogger(__name__)

# Groups are mutated in this order; UNCHANGED records are only counted.
MUTATION_ORDER: tuple[Disposition, ...] = (
    Disposition.NEW,
    Disposition.PLATE_CHANGED,
    Disposition.VIN_REASSIGNED,
)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def generate_batch_tag(now: datetime | None = None) -> str:
    """Timestamp plus a random component, unique per call."""
    moment = now or _utcnow()
    return f"{moment.strftime(BATCH_TAG_TIME_FORMAT)}_{uuid.uuid4().hex}"


def validate_batch(records: Sequence[VinRecord] | None) -> list[VinRecord]:
    """Reject an empty batch before anything touches the store."""
    if not records:
        raise VinValidationError("Records list cannot be empty")
    return list(records)


class BatchCoordinator:
    """Runs the read → classify → group → mutate pipeline for one batch."""

    def __init__(
        self,
        store: AssociationStore,
        keyspace: Keyspace,
        *,
        policies: Mapping[Disposition, RetryPolicy],
        strict_error_accounting: bool = True,
        clock: Callable[[], datetime] = _utcnow,
        monotonic: Callable[[], float] = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._clock = clock
        self._monotonic = monotonic
        self._strict = strict_error_accounting
        self._reader = BulkStateReader(store, keyspace)
        self._mutator = ConditionalMutator(
            store,
            keyspace,
            self._reader,
            policies=policies,
            clock=clock,
            sleep=sleep,
        )

    async def process(self, records: Sequence[VinRecord], batch_tag: str | None = None) -> BatchOutcome:
        """Reconcile *records* against the store.

        Raises
        ------
        VinValidationError
            If *records* is empty.  Every other failure is captured in the
            returned outcome instead of being raised.
        """
        batch = validate_batch(records)
        tag = batch_tag or generate_batch_tag(self._clock())
        outcome = BatchOutcome(batch_tag=tag, total_records=len(batch))
        started = self._monotonic()

        _logger.info("Processing batch %s with %d records", tag, len(batch))

        try:
            contexts = await self._reader.read(batch)

            grouped: dict[Disposition, list[ProcessingContext]] = {}
            for context in contexts:
                grouped.setdefault(context.disposition, []).append(context)

            unchanged = grouped.get(Disposition.UNCHANGED, [])
            outcome.unchanged = len(unchanged)
            if unchanged:
                _logger.debug("%d records unchanged", len(unchanged))

            for disposition in MUTATION_ORDER:
                group = grouped.get(disposition)
                if not group:
                    continue
                failed = await self._mutator.apply_group(disposition, group, tag)
                outcome.add(disposition, len(group))
                self._record_failures(outcome, disposition, failed)
        except Exception as exc:
            _logger.exception("Error processing batch %s", tag)
            outcome.record_error(str(exc) or type(exc).__name__)

        outcome.processing_time = timedelta(seconds=self._monotonic() - started)
        _logger.info(
            "Batch %s completed in %.1fms: %d new, %d plate changed, %d reassigned, %d unchanged, %d errors",
            tag,
            outcome.processing_time.total_seconds() * 1000,
            outcome.new,
            outcome.plate_changed,
            outcome.vin_reassigned,
            outcome.unchanged,
            outcome.errors,
        )
        return outcome

    def _record_failures(self, outcome: BatchOutcome, disposition: Disposition, failed: list[str]) -> None:
        if not failed:
            return
        outcome.failed_records.extend(failed)
        if not self._strict:
            return
        for vin in failed:
            outcome.record_error(f"{disposition.value} for chassis {vin} not applied after retries")
