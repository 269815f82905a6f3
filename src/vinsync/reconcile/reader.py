"""Bulk state reader.

Fetches the stored chassis hash and plate pointer for every record of a batch
in a single pipelined round trip and classifies each record against it.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from vinsync._constants import FIELD_PLATE
from vinsync.models.context import Disposition, ProcessingContext
from vinsync.models.record import VinRecord
from vinsync.reconcile.policy import classify
from vinsync.store.base import AssociationStore
from vinsync.store.keys import Keyspace
from vinsync.store.operations import HashGetAll, Read, StringGet

_logger = logging.getLogger(__name__)


def build_context(record: VinRecord, chassis_hash: Mapping[str, str] | None, plate_vin: str | None) -> ProcessingContext:
    """Classify *record* against the raw values read from the store."""
    fields = chassis_hash or {}
    vin_exists = bool(fields)
    plate_exists = plate_vin is not None
    stored_plate = fields.get(FIELD_PLATE)

    disposition = classify(
        vin_exists=vin_exists,
        plate_exists=plate_exists,
        stored_plate=stored_plate,
        stored_vin=plate_vin,
        record=record,
    )
    return ProcessingContext(
        record=record,
        disposition=disposition,
        observed_plate=stored_plate,
        observed_vin=plate_vin,
        vin_exists=vin_exists,
        plate_exists=plate_exists,
    )


class BulkStateReader:
    """Reads current association state for a batch of records."""

    def __init__(self, store: AssociationStore, keyspace: Keyspace) -> None:
        self._store = store
        self._keys = keyspace

    async def read(self, records: Sequence[VinRecord]) -> list[ProcessingContext]:
        """Return one classified context per record, in input order.

        Store failures propagate; a batch cannot be classified from partial
        reads.
        """
        if not records:
            return []

        reads: list[Read] = []
        for record in records:
            reads.append(HashGetAll(self._keys.chassis(record.vin)))
            reads.append(StringGet(self._keys.plate(record.plate)))

        _logger.debug("Bulk fetching state for %d records", len(records))
        results = await self._store.read_many(reads)

        contexts: list[ProcessingContext] = []
        for index, record in enumerate(records):
            chassis_hash: Any = results[2 * index]
            plate_vin: Any = results[2 * index + 1]
            context = build_context(record, chassis_hash, plate_vin)
            if (
                context.disposition is Disposition.PLATE_CHANGED
                and context.plate_exists
                and context.observed_vin != record.vin
            ):
                _logger.warning(
                    "Cross-linked plate %s: chassis %s claims it but it points at %s",
                    record.plate,
                    record.vin,
                    context.observed_vin,
                )
            contexts.append(context)

        _logger.debug(
            "Classification complete: %d new, %d plate changed, %d reassigned, %d unchanged",
            sum(1 for c in contexts if c.disposition is Disposition.NEW),
            sum(1 for c in contexts if c.disposition is Disposition.PLATE_CHANGED),
            sum(1 for c in contexts if c.disposition is Disposition.VIN_REASSIGNED),
            sum(1 for c in contexts if c.disposition is Disposition.UNCHANGED),
        )
        return contexts

    async def refresh(self, record: VinRecord) -> ProcessingContext:
        """Re-read and re-classify a single record."""
        contexts = await self.read([record])
        return contexts[0]
