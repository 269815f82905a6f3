"""Incoming feed records and stored chassis entries."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from vinsync._constants import FIELD_BATCH_TAG, FIELD_LAST_MODIFIED, FIELD_OWNER, FIELD_PLATE
from vinsync.exceptions import VinValidationError


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _ensure_tz_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class VinRecord(BaseModel):
    """One line of the external feed: a chassis, its plate and its owner.

    Only structural presence is checked here; the feed is untrusted and
    business rules (plate formats, VIN checksums) are not applied.  Both the
    JSON API names (``vin``, ``plate``, ``lastModified``) and the legacy
    feed names (``telaio``, ``targa``, ``cliente``, ``batchId``) are accepted.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    vin: str = Field(..., validation_alias=AliasChoices("vin", "telaio", "chassis"))
    """Vehicle Identification Number (chassis id)."""
    plate: str = Field(..., validation_alias=AliasChoices("plate", "targa"))
    """License plate currently assigned to the chassis."""
    owner: str = Field(..., validation_alias=AliasChoices("owner", "cliente"))
    """Owner label as supplied by the feed."""
    last_modified: datetime = Field(
        default_factory=_utcnow,
        validation_alias=AliasChoices("lastModified", "last_modified"),
    )
    """When the feed last touched this record."""
    batch_tag: str | None = Field(
        default=None,
        validation_alias=AliasChoices("batchTag", "batch_tag", "batchId"),
    )
    """Ingestion run the record arrived with, if the feed supplied one."""

    @field_validator("vin", "plate", "owner")
    @classmethod
    def _require_non_blank(cls, value: str) -> str:
        if not value:
            raise ValueError("must be non-empty")
        return value

    @field_validator("last_modified")
    @classmethod
    def _aware_last_modified(cls, value: datetime) -> datetime:
        return _ensure_tz_aware(value)


class VinEntry(BaseModel):
    """A chassis entry as currently held by the store.

    ``plate`` is ``None`` when the plate was reassigned to another chassis
    and this one has not received a new plate yet.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    vin: str
    plate: str | None = None
    owner: str | None = None
    last_modified: datetime | None = None
    batch_tag: str | None = None

    @classmethod
    def from_hash(cls, vin: str, fields: Mapping[str, str]) -> VinEntry:
        """Build an entry from the raw chassis hash."""
        last_modified: datetime | None = None
        raw_ts = fields.get(FIELD_LAST_MODIFIED)
        if raw_ts:
            try:
                last_modified = _ensure_tz_aware(datetime.fromisoformat(raw_ts))
            except ValueError:
                last_modified = None
        return cls(
            vin=vin,
            plate=fields.get(FIELD_PLATE) or None,
            owner=fields.get(FIELD_OWNER) or None,
            last_modified=last_modified,
            batch_tag=fields.get(FIELD_BATCH_TAG) or None,
        )


_RECORD_LIST = TypeAdapter(list[VinRecord])


def parse_records(payload: Any) -> list[VinRecord]:
    """Validate a decoded JSON payload into a list of records.

    Raises
    ------
    VinValidationError
        If the payload is not a list or any record is structurally invalid.
    """
    if not isinstance(payload, list):
        raise VinValidationError("Records payload must be a JSON array")
    try:
        return _RECORD_LIST.validate_python(payload)
    except ValidationError as exc:
        raise VinValidationError(f"Malformed records: {exc.error_count()} validation error(s)") from exc
