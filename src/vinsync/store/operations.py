"""Store-neutral read, guard and write operations.

Components describe what they want to read or commit with these small value
objects; each store implementation translates them into its own commands.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field


# ---------------------------------------------------------------------------
# Reads (dispatched together through ``AssociationStore.read_many``)
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class HashGetAll:
    """All fields of a hash; an absent key reads as ``{}``."""

    key: str


@dataclass(frozen=True, slots=True)
class StringGet:
    """A string value; an absent key reads as ``None``."""

    key: str


Read = HashGetAll | StringGet


# ---------------------------------------------------------------------------
# Guards (preconditions checked atomically with the writes)
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class KeyAbsent:
    key: str


@dataclass(frozen=True, slots=True)
class HashFieldEquals:
    """Hash field holds *value*; ``None`` means the field must be absent."""

    key: str
    field: str
    value: str | None


@dataclass(frozen=True, slots=True)
class StringEquals:
    key: str
    value: str


Guard = KeyAbsent | HashFieldEquals | StringEquals


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class HashSet:
    key: str
    mapping: Mapping[str, str]


@dataclass(frozen=True, slots=True)
class HashDelete:
    key: str
    fields: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class StringSet:
    key: str
    value: str


@dataclass(frozen=True, slots=True)
class Delete:
    key: str


@dataclass(frozen=True, slots=True)
class SetAdd:
    key: str
    member: str


Write = HashSet | HashDelete | StringSet | Delete | SetAdd


@dataclass(frozen=True, slots=True)
class ConditionalTransaction:
    """Writes that commit together only if every guard still holds."""

    guards: tuple[Guard, ...] = field(default_factory=tuple)
    writes: tuple[Write, ...] = field(default_factory=tuple)

    @property
    def watched_keys(self) -> tuple[str, ...]:
        """Keys whose state decides the guards, de-duplicated in order."""
        return tuple(dict.fromkeys(guard.key for guard in self.guards))
