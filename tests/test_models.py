from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError

from vinsync.exceptions import VinValidationError
from vinsync.models import BatchOutcome, Disposition, VinEntry, VinRecord, parse_records


def test_record_accepts_camel_case_payload() -> None:
    record = VinRecord.model_validate(
        {
            "vin": " T1 ",
            "plate": "AA111BB",
            "owner": "Rossi",
            "lastModified": "2026-01-01T10:00:00",
            "batchTag": "feed-1",
        }
    )
    assert record.vin == "T1"
    assert record.last_modified == datetime(2026, 1, 1, 10, 0, tzinfo=UTC)
    assert record.batch_tag == "feed-1"


def test_record_accepts_legacy_feed_names() -> None:
    record = VinRecord.model_validate({"telaio": "T1", "targa": "AA111BB", "cliente": "Rossi", "batchId": "b"})
    assert (record.vin, record.plate, record.owner, record.batch_tag) == ("T1", "AA111BB", "Rossi", "b")


@pytest.mark.parametrize("missing", ["vin", "plate", "owner"])
def test_record_requires_structural_fields(missing: str) -> None:
    payload = {"vin": "T1", "plate": "AA111BB", "owner": "Rossi"}
    payload[missing] = "   "
    with pytest.raises(ValidationError):
        VinRecord.model_validate(payload)


def test_record_is_frozen() -> None:
    record = VinRecord(vin="T1", plate="AA111BB", owner="Rossi")
    with pytest.raises(ValidationError):
        record.plate = "CC222DD"  # type: ignore[misc]


def test_parse_records_wraps_validation_errors() -> None:
    with pytest.raises(VinValidationError):
        parse_records([{"vin": "T1"}])
    with pytest.raises(VinValidationError):
        parse_records({"vin": "T1"})


def test_parse_records_returns_records_in_order() -> None:
    records = parse_records(
        [
            {"vin": "T1", "plate": "AA111BB", "owner": "Rossi"},
            {"vin": "T2", "plate": "CC222DD", "owner": "Bianchi"},
        ]
    )
    assert [r.vin for r in records] == ["T1", "T2"]


def test_entry_from_hash_handles_cleared_plate() -> None:
    entry = VinEntry.from_hash("T1", {"owner": "Rossi", "last_modified": "2026-01-01T10:00:00+00:00"})
    assert entry.plate is None
    assert entry.owner == "Rossi"
    assert entry.last_modified == datetime(2026, 1, 1, 10, 0, tzinfo=UTC)


def test_entry_from_hash_ignores_unparseable_timestamp() -> None:
    entry = VinEntry.from_hash("T1", {"plate": "AA111BB", "last_modified": "yesterday"})
    assert entry.last_modified is None
    assert entry.plate == "AA111BB"


def test_outcome_serializes_camel_case_and_seconds() -> None:
    outcome = BatchOutcome(batch_tag="b1", total_records=2)
    outcome.add(Disposition.PLATE_CHANGED, 2)
    outcome.record_error("boom")
    outcome.processing_time = timedelta(milliseconds=1500)

    dumped = outcome.model_dump(mode="json", by_alias=True)
    assert dumped["batchTag"] == "b1"
    assert dumped["plateChanged"] == 2
    assert dumped["errors"] == 1
    assert dumped["errorMessages"] == ["boom"]
    assert dumped["processingTime"] == 1.5
    assert outcome.count(Disposition.PLATE_CHANGED) == 2
