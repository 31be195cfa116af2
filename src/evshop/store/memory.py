"""In-process document store.

Implements the :class:`~evshop.store.base.DocumentStore` contract without a
network: documents live in dictionaries, snapshots are delivered on the next
event loop iteration, and batches are applied to a staged copy that is only
swapped in once every operation succeeded. Used by demo mode and the tests.
"""

from __future__ import annotations

import asyncio
import copy
import logging
import secrets
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any

from evshop.exceptions import BatchCommitError, StoreError
from evshop.store.base import SERVER_TIMESTAMP, Document, SnapshotHandler

_logger = logging.getLogger(__name__)

_Collections = dict[str, dict[str, dict[str, Any]]]


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _new_id() -> str:
    # Same length as Firestore auto ids.
    return secrets.token_hex(10)


class _MemorySubscription:
    def __init__(self, store: MemoryDocumentStore, collection: str, handler: SnapshotHandler) -> None:
        self._store = store
        self.collection = collection
        self._handler = handler
        self.active = True

    def deliver(self, snapshot: tuple[Document, ...]) -> None:
        if self.active:
            self._handler(snapshot)

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self._store._remove_subscription(self)


class _MemoryBatch:
    def __init__(self, store: MemoryDocumentStore) -> None:
        self._store = store
        self._ops: list[tuple[str, str]] = []
        self._committed = False

    def delete(self, collection: str, doc_id: str) -> None:
        if self._committed:
            raise StoreError("Batch already committed", collection=collection, doc_id=doc_id)
        self._ops.append((collection, doc_id))

    async def commit(self) -> None:
        if self._committed:
            raise StoreError("Batch already committed")
        self._committed = True
        self._store._commit_deletes(self._ops)


class MemoryDocumentStore:
    """Dictionary-backed document store with live snapshots."""

    def __init__(
        self,
        *,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = _new_id,
    ) -> None:
        self._clock = clock
        self._id_factory = id_factory
        self._collections: _Collections = {}
        self._subscriptions: dict[str, list[_MemorySubscription]] = {}

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def _snapshot(self, collection: str) -> tuple[Document, ...]:
        docs = self._collections.get(collection, {})
        return tuple(Document(id=doc_id, data=copy.deepcopy(docs[doc_id])) for doc_id in sorted(docs))

    def _notify(self, collection: str) -> None:
        subscriptions = self._subscriptions.get(collection)
        if not subscriptions:
            return
        loop = asyncio.get_running_loop()
        snapshot = self._snapshot(collection)
        _logger.debug("Scheduling snapshot collection=%s documents=%d", collection, len(snapshot))
        for subscription in list(subscriptions):
            loop.call_soon(subscription.deliver, snapshot)

    def _remove_subscription(self, subscription: _MemorySubscription) -> None:
        subscriptions = self._subscriptions.get(subscription.collection, [])
        if subscription in subscriptions:
            subscriptions.remove(subscription)

    def on_collection_changed(self, collection: str, handler: SnapshotHandler) -> _MemorySubscription:
        """Subscribe to *collection*; the initial snapshot arrives on the next loop iteration."""
        loop = asyncio.get_running_loop()
        subscription = _MemorySubscription(self, collection, handler)
        self._subscriptions.setdefault(collection, []).append(subscription)
        loop.call_soon(subscription.deliver, self._snapshot(collection))
        return subscription

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _materialize(self, data: Mapping[str, Any]) -> dict[str, Any]:
        now = self._clock()
        return {key: (now if value is SERVER_TIMESTAMP else copy.deepcopy(value)) for key, value in data.items()}

    def seed(self, collection: str, data: Mapping[str, Any], *, doc_id: str | None = None) -> str:
        """Insert a document without notifying subscribers (for initial data)."""
        new_id = doc_id or self._id_factory()
        self._collections.setdefault(collection, {})[new_id] = self._materialize(data)
        return new_id

    async def add(self, collection: str, data: Mapping[str, Any]) -> str:
        doc_id = self._id_factory()
        self._collections.setdefault(collection, {})[doc_id] = self._materialize(data)
        _logger.debug("Added document collection=%s id=%s", collection, doc_id)
        self._notify(collection)
        return doc_id

    async def update(self, collection: str, doc_id: str, data: Mapping[str, Any]) -> None:
        docs = self._collections.get(collection, {})
        if doc_id not in docs:
            raise StoreError(f"No document to update: {collection}/{doc_id}", collection=collection, doc_id=doc_id)
        docs[doc_id].update(self._materialize(data))
        _logger.debug("Updated document collection=%s id=%s", collection, doc_id)
        self._notify(collection)

    async def delete(self, collection: str, doc_id: str) -> None:
        # Deleting a missing document succeeds, as in Firestore.
        removed = self._collections.get(collection, {}).pop(doc_id, None)
        _logger.debug("Deleted document collection=%s id=%s existed=%s", collection, doc_id, removed is not None)
        self._notify(collection)

    async def find_by_field(self, collection: str, field_name: str, value: Any) -> list[Document]:
        return [doc for doc in self._snapshot(collection) if doc.data.get(field_name) == value]

    def batch(self) -> _MemoryBatch:
        return _MemoryBatch(self)

    def _apply_delete(self, staged: _Collections, collection: str, doc_id: str) -> None:
        staged.setdefault(collection, {}).pop(doc_id, None)

    def _commit_deletes(self, ops: list[tuple[str, str]]) -> None:
        touched = {collection for collection, _ in ops}
        staged: _Collections = {name: dict(self._collections.get(name, {})) for name in touched}
        try:
            for collection, doc_id in ops:
                self._apply_delete(staged, collection, doc_id)
        except Exception as exc:
            raise BatchCommitError(f"Batch of {len(ops)} operations rejected: {exc}") from exc
        self._collections.update(staged)
        _logger.debug("Committed batch operations=%d collections=%s", len(ops), sorted(touched))
        for collection in sorted(touched):
            self._notify(collection)
