"""Document store interface and backends.

``evshop.store.firestore`` is imported on demand so the memory backend works
without touching Google Cloud configuration.
"""

from evshop.store.base import SERVER_TIMESTAMP, Document, DocumentStore, SnapshotHandler, Subscription, WriteBatch
from evshop.store.memory import MemoryDocumentStore

__all__ = [
    "Document",
    "DocumentStore",
    "MemoryDocumentStore",
    "SERVER_TIMESTAMP",
    "SnapshotHandler",
    "Subscription",
    "WriteBatch",
]
