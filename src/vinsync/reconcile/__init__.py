"""Reconciliation engine.

This package is the single place where incoming feed records are compared
with stored chassis/plate associations and turned into guarded store
mutations.
"""

from vinsync.reconcile.coordinator import BatchCoordinator, generate_batch_tag, validate_batch
from vinsync.reconcile.mutator import ConditionalMutator
from vinsync.reconcile.policy import classify
from vinsync.reconcile.reader import BulkStateReader
from vinsync.reconcile.retry import RetryPolicy

__all__ = [
    "BatchCoordinator",
    "BulkStateReader",
    "ConditionalMutator",
    "RetryPolicy",
    "classify",
    "generate_batch_tag",
    "validate_batch",
]
