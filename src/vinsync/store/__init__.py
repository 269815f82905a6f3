"""Store layer.

The reconciliation engine only talks to :class:`AssociationStore`; the Redis
and in-memory implementations translate its read, guard and write operations
into concrete commands.
"""

from vinsync.store.base import AssociationStore
from vinsync.store.keys import Keyspace
from vinsync.store.memory import InMemoryAssociationStore
from vinsync.store.redis_store import RedisAssociationStore

__all__ = [
    "AssociationStore",
    "InMemoryAssociationStore",
    "Keyspace",
    "RedisAssociationStore",
]
