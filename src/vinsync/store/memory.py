"""Deterministic in-memory association store.

Implements the same read/guard/write semantics as the Redis store inside a
single process.  Guard evaluation and writes happen without yielding to the
event loop, so a commit is atomic with respect to other coroutines.
"""

from __future__ import annotations

import asyncio
import copy
import fnmatch
from collections.abc import Sequence
from typing import Any

from vinsync.store.operations import (
    ConditionalTransaction,
    Delete,
    Guard,
    HashDelete,
    HashFieldEquals,
    HashGetAll,
    HashSet,
    KeyAbsent,
    Read,
    SetAdd,
    StringEquals,
    StringGet,
    StringSet,
    Write,
)


class InMemoryAssociationStore:
    """Dict-backed store with Redis-like key semantics.

    A hash whose last field is deleted disappears, like in Redis.  The
    ``read_round_trips`` and ``commits`` counters expose how often the engine
    talked to the store.
    """

    def __init__(self) -> None:
        self._hashes: dict[str, dict[str, str]] = {}
        self._strings: dict[str, str] = {}
        self._sets: dict[str, set[str]] = {}
        self.read_round_trips = 0
        self.commits = 0
        self.closed = False

    # ------------------------------------------------------------------
    # AssociationStore
    # ------------------------------------------------------------------

    async def read_many(self, reads: Sequence[Read]) -> list[Any]:
        self.read_round_trips += 1
        await asyncio.sleep(0)
        return [self._read(read) for read in reads]

    async def commit(self, transaction: ConditionalTransaction) -> bool:
        await asyncio.sleep(0)
        self.commits += 1
        if not all(self._guard_holds(guard) for guard in transaction.guards):
            return False
        for write in transaction.writes:
            self._apply(write)
        return True

    async def delete_matching(self, patterns: Sequence[str]) -> int:
        await asyncio.sleep(0)
        doomed = [key for key in self.keys() if any(fnmatch.fnmatchcase(key, p) for p in patterns)]
        for key in doomed:
            self._drop(key)
        return len(doomed)

    async def ping(self) -> None:
        await asyncio.sleep(0)

    async def aclose(self) -> None:
        self.closed = True

    # ------------------------------------------------------------------
    # Direct inspection helpers
    # ------------------------------------------------------------------

    def keys(self) -> list[str]:
        return sorted(set(self._hashes) | set(self._strings) | set(self._sets))

    def exists(self, key: str) -> bool:
        return key in self._hashes or key in self._strings or key in self._sets

    def hash(self, key: str) -> dict[str, str]:
        return copy.deepcopy(self._hashes.get(key, {}))

    def string(self, key: str) -> str | None:
        return self._strings.get(key)

    def members(self, key: str) -> set[str]:
        return set(self._sets.get(key, set()))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _read(self, read: Read) -> Any:
        if isinstance(read, HashGetAll):
            return self.hash(read.key)
        if isinstance(read, StringGet):
            return self.string(read.key)
        raise TypeError(f"Unsupported read: {read!r}")

    def _guard_holds(self, guard: Guard) -> bool:
        if isinstance(guard, KeyAbsent):
            return not self.exists(guard.key)
        if isinstance(guard, HashFieldEquals):
            return self._hashes.get(guard.key, {}).get(guard.field) == guard.value
        if isinstance(guard, StringEquals):
            return self._strings.get(guard.key) == guard.value
        raise TypeError(f"Unsupported guard: {guard!r}")

    def _drop(self, key: str) -> None:
        self._hashes.pop(key, None)
        self._strings.pop(key, None)
        self._sets.pop(key, None)

    def _apply(self, write: Write) -> None:
        if isinstance(write, HashSet):
            self._hashes.setdefault(write.key, {}).update(write.mapping)
        elif isinstance(write, HashDelete):
            fields = self._hashes.get(write.key)
            if fields is None:
                return
            for name in write.fields:
                fields.pop(name, None)
            if not fields:
                del self._hashes[write.key]
        elif isinstance(write, StringSet):
            self._strings[write.key] = write.value
        elif isinstance(write, Delete):
            self._drop(write.key)
        elif isinstance(write, SetAdd):
            self._sets.setdefault(write.key, set()).add(write.member)
        else:
            raise TypeError(f"Unsupported write: {write!r}")
