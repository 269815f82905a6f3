from __future__ import annotations

import itertools

import pytest

from vinsync.models.context import Disposition
from vinsync.models.record import VinRecord
from vinsync.reconcile.policy import classify


def _record(vin: str = "T1", plate: str = "AA111BB") -> VinRecord:
    return VinRecord(vin=vin, plate=plate, owner="Rossi")


def test_nothing_stored_is_new() -> None:
    assert (
        classify(vin_exists=False, plate_exists=False, stored_plate=None, stored_vin=None, record=_record())
        is Disposition.NEW
    )


def test_matching_pair_is_unchanged() -> None:
    assert (
        classify(vin_exists=True, plate_exists=True, stored_plate="AA111BB", stored_vin="T1", record=_record())
        is Disposition.UNCHANGED
    )


def test_chassis_with_other_plate_is_plate_changed() -> None:
    assert (
        classify(vin_exists=True, plate_exists=False, stored_plate="AA111BB", stored_vin=None, record=_record(plate="CC222DD"))
        is Disposition.PLATE_CHANGED
    )


def test_plate_on_other_chassis_is_vin_reassigned() -> None:
    assert (
        classify(vin_exists=False, plate_exists=True, stored_plate=None, stored_vin="T1", record=_record(vin="T2"))
        is Disposition.VIN_REASSIGNED
    )


def test_plate_changed_wins_over_reassignment_on_cross_link() -> None:
    # T1 currently holds AA111BB; the record's plate CC222DD belongs to T9.
    disposition = classify(
        vin_exists=True,
        plate_exists=True,
        stored_plate="AA111BB",
        stored_vin="T9",
        record=_record(vin="T1", plate="CC222DD"),
    )
    assert disposition is Disposition.PLATE_CHANGED


def test_chassis_with_same_plate_but_pointer_elsewhere_is_reassigned() -> None:
    disposition = classify(
        vin_exists=True,
        plate_exists=True,
        stored_plate="AA111BB",
        stored_vin="T9",
        record=_record(vin="T1", plate="AA111BB"),
    )
    assert disposition is Disposition.VIN_REASSIGNED


def test_partial_state_falls_back_to_new() -> None:
    # Plate pointer already names the record's chassis but the chassis hash is gone.
    disposition = classify(
        vin_exists=False,
        plate_exists=True,
        stored_plate=None,
        stored_vin="T1",
        record=_record(vin="T1"),
    )
    assert disposition is Disposition.NEW


def test_chassis_without_plate_field_is_plate_changed() -> None:
    disposition = classify(vin_exists=True, plate_exists=False, stored_plate=None, stored_vin=None, record=_record())
    assert disposition is Disposition.PLATE_CHANGED


@pytest.mark.parametrize(
    ("vin_exists", "plate_exists", "stored_plate", "stored_vin"),
    list(itertools.product([False, True], [False, True], [None, "AA111BB", "ZZ999ZZ"], [None, "T1", "T9"])),
)
def test_classify_is_total_and_deterministic(
    vin_exists: bool,
    plate_exists: bool,
    stored_plate: str | None,
    stored_vin: str | None,
) -> None:
    record = _record()
    first = classify(
        vin_exists=vin_exists,
        plate_exists=plate_exists,
        stored_plate=stored_plate,
        stored_vin=stored_vin,
        record=record,
    )
    second = classify(
        vin_exists=vin_exists,
        plate_exists=plate_exists,
        stored_plate=stored_plate,
        stored_vin=stored_vin,
        record=record,
    )
    assert first is second
    assert first in set(Disposition)
    if not vin_exists and not plate_exists:
        assert first is Disposition.NEW
    if vin_exists and stored_plate != record.plate:
        assert first is Disposition.PLATE_CHANGED
