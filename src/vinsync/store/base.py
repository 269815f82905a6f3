"""Structural store interface used by the reconciliation engine.

Having a protocol here makes it easy to pass the in-memory store or test
doubles while keeping the production implementation
(`RedisAssociationStore`) concrete.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol

from vinsync.store.operations import ConditionalTransaction, Read


class AssociationStore(Protocol):
    async def read_many(self, reads: Sequence[Read]) -> list[Any]:
        """Dispatch *reads* in one round trip, results in the same order."""
        ...

    async def commit(self, transaction: ConditionalTransaction) -> bool:
        """Apply the writes atomically if all guards hold.

        Returns ``False`` when a guard no longer holds at commit time; in
        that case nothing was written.
        """
        ...

    async def delete_matching(self, patterns: Sequence[str]) -> int:
        """Delete every key matching one of the glob *patterns*."""
        ...

    async def ping(self) -> None:
        ...

    async def aclose(self) -> None:
        ...
