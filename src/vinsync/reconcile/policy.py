"""Deterministic classification policy.

This module intentionally contains *no* store access.  The bulk reader is
responsible for fetching current state; this function only decides what the
state means for one incoming record.
"""

from __future__ import annotations

from vinsync.models.context import Disposition
from vinsync.models.record import VinRecord


def classify(
    *,
    vin_exists: bool,
    plate_exists: bool,
    stored_plate: str | None,
    stored_vin: str | None,
    record: VinRecord,
) -> Disposition:
    """Decide how *record* relates to the stored association.

    Policy, first match wins:
    - neither the chassis key nor the plate key exists: NEW
    - both exist and point at each other as the record says: UNCHANGED
    - the chassis exists with a different plate: PLATE_CHANGED, even when
      the record's plate already belongs to another chassis
    - the plate exists and points at a different chassis: VIN_REASSIGNED
    - anything else (partial state): NEW
    """
    if not vin_exists and not plate_exists:
        return Disposition.NEW

    if vin_exists and plate_exists and stored_plate == record.plate and stored_vin == record.vin:
        return Disposition.UNCHANGED

    if vin_exists and stored_plate != record.plate:
        return Disposition.PLATE_CHANGED

    if plate_exists and stored_vin != record.vin:
        return Disposition.VIN_REASSIGNED

    return Disposition.NEW
