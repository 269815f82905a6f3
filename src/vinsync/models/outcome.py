"""Batch outcome returned to callers."""

from __future__ import annotations

from datetime import timedelta

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from vinsync.models.context import Disposition


class BatchOutcome(BaseModel):
    """Counts, timing and errors for one ``process_batch`` call.

    Per-disposition counts reflect the classification made by the bulk read,
    not whether every commit in the group succeeded; records that exhausted
    their retries are listed in ``failed_records``.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )

    batch_tag: str
    total_records: int = 0
    new: int = 0
    unchanged: int = 0
    plate_changed: int = 0
    vin_reassigned: int = 0
    errors: int = 0
    error_messages: list[str] = Field(default_factory=list)
    failed_records: list[str] = Field(default_factory=list)
    processing_time: timedelta = timedelta(0)

    @field_serializer("processing_time")
    def _serialize_processing_time(self, value: timedelta) -> float:
        return value.total_seconds()

    def count(self, disposition: Disposition) -> int:
        return int(getattr(self, disposition.value))

    def add(self, disposition: Disposition, amount: int) -> None:
        setattr(self, disposition.value, self.count(disposition) + amount)

    def record_error(self, message: str) -> None:
        self.errors += 1
        self.error_messages.append(message)
