"""Data models for records, classification contexts and batch outcomes."""

from vinsync.models.context import Disposition, ProcessingContext
from vinsync.models.outcome import BatchOutcome
from vinsync.models.record import VinEntry, VinRecord, parse_records

__all__ = [
    "BatchOutcome",
    "Disposition",
    "ProcessingContext",
    "VinEntry",
    "VinRecord",
    "parse_records",
]
