"""Per-record classification state for one batch run."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from vinsync.models.record import VinRecord


class Disposition(StrEnum):
    NEW = "new"
    UNCHANGED = "unchanged"
    PLATE_CHANGED = "plate_changed"
    VIN_REASSIGNED = "vin_reassigned"


@dataclass(slots=True)
class ProcessingContext:
    """A record together with the state observed for it at read time.

    ``observed_plate`` and ``observed_vin`` are the optimistic-lock witnesses:
    the mutator only commits if the store still holds these values.
    """

    record: VinRecord
    disposition: Disposition
    observed_plate: str | None = None
    observed_vin: str | None = None
    vin_exists: bool = False
    plate_exists: bool = False
