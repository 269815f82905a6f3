"""Key naming for the association namespace."""

from __future__ import annotations

from dataclasses import dataclass

from vinsync._constants import DEFAULT_KEY_PREFIX


@dataclass(frozen=True, slots=True)
class Keyspace:
    """Builds prefixed keys.

    ``<prefix>:chassis:<vin>`` holds the chassis hash, ``<prefix>:plate:<plate>``
    the reverse pointer and ``<prefix>:batch:<tag>`` the VINs created by one
    ingestion run.
    """

    prefix: str = DEFAULT_KEY_PREFIX

    def chassis(self, vin: str) -> str:
        return f"{self.prefix}:chassis:{vin}"

    def plate(self, plate: str) -> str:
        return f"{self.prefix}:plate:{plate}"

    def batch(self, batch_tag: str) -> str:
        return f"{self.prefix}:batch:{batch_tag}"

    def wipe_patterns(self) -> tuple[str, ...]:
        return (
            f"{self.prefix}:chassis:*",
            f"{self.prefix}:plate:*",
            f"{self.prefix}:batch:*",
        )
