"""Live mirrors of the customer and maintenance collections.

``ShopSync`` keeps one in-memory list per collection. Each list is replaced
wholesale by every snapshot the store pushes; writes go straight to the store
and are never applied locally, so the mirrors only ever show committed data.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import ValidationError

from evshop._constants import CLIENTS_COLLECTION, RECORDS_COLLECTION
from evshop.config import ShopConfig
from evshop.exceptions import DocumentNotFoundError
from evshop.models.customer import CustomerRecord
from evshop.models.forms import CustomerDraft, MaintenanceDraft
from evshop.models.maintenance import MaintenanceRecord
from evshop.store.base import SERVER_TIMESTAMP, Document, DocumentStore, Subscription

_logger = logging.getLogger(__name__)

T = TypeVar("T", CustomerRecord, MaintenanceRecord)


@dataclass(frozen=True, slots=True)
class Mirror(Generic[T]):
    """Current contents of one collection and whether a snapshot arrived yet."""

    items: tuple[T, ...] = ()
    loaded: bool = False


def _parse_documents(
    documents: tuple[Document, ...],
    factory: Callable[[str, dict[str, Any]], T],
    collection: str,
) -> tuple[T, ...]:
    parsed: list[T] = []
    for doc in documents:
        try:
            parsed.append(factory(doc.id, dict(doc.data)))
        except ValidationError:
            _logger.warning("Skipping malformed document %s/%s", collection, doc.id, exc_info=True)
    return tuple(parsed)


class ShopSync:
    """Subscribes to both collections and issues writes to the store.

    Usage::

        sync = ShopSync(store)
        sync.start()
        await sync.wait_loaded()
        clients = sync.clients
    """

    def __init__(
        self,
        store: DocumentStore,
        *,
        clients_collection: str = CLIENTS_COLLECTION,
        records_collection: str = RECORDS_COLLECTION,
    ) -> None:
        self._store = store
        self.clients_collection = clients_collection
        self.records_collection = records_collection
        self._clients: Mirror[CustomerRecord] = Mirror()
        self._records: Mirror[MaintenanceRecord] = Mirror()
        self._subscriptions: list[Subscription] = []
        self._listeners: list[Callable[[], None]] = []
        self._loaded_event: asyncio.Event | None = None

    @classmethod
    def from_config(cls, store: DocumentStore, config: ShopConfig) -> ShopSync:
        return cls(
            store,
            clients_collection=config.clients_collection,
            records_collection=config.records_collection,
        )

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Open both live subscriptions. Calling twice is a no-op."""
        if self._subscriptions:
            return
        _logger.debug(
            "Subscribing collections clients=%s records=%s",
            self.clients_collection,
            self.records_collection,
        )
        self._subscriptions.append(self._store.on_collection_changed(self.clients_collection, self._on_clients))
        self._subscriptions.append(self._store.on_collection_changed(self.records_collection, self._on_records))

    def stop(self) -> None:
        """Close the subscriptions; the mirrors keep their last contents."""
        subscriptions = self._subscriptions
        self._subscriptions = []
        for subscription in subscriptions:
            subscription.unsubscribe()

    def add_listener(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Call *callback* after every mirror replacement; returns a remover."""
        self._listeners.append(callback)

        def _remove() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(callback)

        return _remove

    def _on_clients(self, documents: tuple[Document, ...]) -> None:
        items = _parse_documents(documents, CustomerRecord.from_document, self.clients_collection)
        self._clients = Mirror(items=items, loaded=True)
        _logger.debug("Clients mirror replaced count=%d", len(items))
        self._changed()

    def _on_records(self, documents: tuple[Document, ...]) -> None:
        items = _parse_documents(documents, MaintenanceRecord.from_document, self.records_collection)
        self._records = Mirror(items=items, loaded=True)
        _logger.debug("Maintenance mirror replaced count=%d", len(items))
        self._changed()

    def _changed(self) -> None:
        if not self.is_loading and self._loaded_event is not None:
            self._loaded_event.set()
        for callback in list(self._listeners):
            try:
                callback()
            except Exception:
                _logger.debug("Mirror listener failed", exc_info=True)

    async def wait_loaded(self, timeout: float | None = None) -> None:
        """Wait until both collections delivered their first snapshot."""
        if not self.is_loading:
            return
        if self._loaded_event is None:
            self._loaded_event = asyncio.Event()
        await asyncio.wait_for(self._loaded_event.wait(), timeout)

    # ------------------------------------------------------------------
    # Mirrors
    # ------------------------------------------------------------------

    @property
    def clients(self) -> tuple[CustomerRecord, ...]:
        return self._clients.items

    @property
    def records(self) -> tuple[MaintenanceRecord, ...]:
        return self._records.items

    @property
    def clients_loaded(self) -> bool:
        return self._clients.loaded

    @property
    def records_loaded(self) -> bool:
        return self._records.loaded

    @property
    def is_loading(self) -> bool:
        """True until both collections have been loaded at least once."""
        return not self._clients.loaded or not self._records.loaded

    def find_client(self, client_id: str) -> CustomerRecord:
        for client in self._clients.items:
            if client.id == client_id:
                return client
        raise DocumentNotFoundError(self.clients_collection, client_id)

    def find_record(self, record_id: str) -> MaintenanceRecord:
        for record in self._records.items:
            if record.id == record_id:
                return record
        raise DocumentNotFoundError(self.records_collection, record_id)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create_client(self, draft: CustomerDraft) -> str:
        """Create a customer document stamped with the store's commit time."""
        data = {**draft.to_fields(), "createdAt": SERVER_TIMESTAMP}
        doc_id = await self._store.add(self.clients_collection, data)
        _logger.debug("Created client id=%s", doc_id)
        return doc_id

    async def update_client(
        self,
        client_id: str,
        draft: CustomerDraft,
        *,
        created_at: datetime | None = None,
    ) -> None:
        """Overwrite every customer field except identity. Last writer wins."""
        data = draft.to_fields()
        if created_at is not None:
            data["createdAt"] = created_at
        await self._store.update(self.clients_collection, client_id, data)
        _logger.debug("Updated client id=%s", client_id)

    async def create_record(self, draft: MaintenanceDraft) -> str:
        doc_id = await self._store.add(self.records_collection, draft.to_fields())
        _logger.debug("Created maintenance record id=%s vin=%s", doc_id, draft.vin)
        return doc_id

    async def update_record(self, record_id: str, draft: MaintenanceDraft) -> None:
        await self._store.update(self.records_collection, record_id, draft.to_fields())
        _logger.debug("Updated maintenance record id=%s", record_id)

    async def delete_record(self, record_id: str) -> None:
        await self._store.delete(self.records_collection, record_id)
        _logger.debug("Deleted maintenance record id=%s", record_id)

    async def delete_client_cascade(self, client: CustomerRecord) -> int:
        """Delete a customer and every maintenance record sharing its VIN.

        All deletions go into one batch: either the customer and all of its
        records disappear together, or nothing is deleted and
        :class:`~evshop.exceptions.BatchCommitError` is raised.

        Returns the number of maintenance records deleted.
        """
        related: list[Document] = []
        if client.vin:
            related = await self._store.find_by_field(self.records_collection, "vin", client.vin)

        batch = self._store.batch()
        for doc in related:
            batch.delete(self.records_collection, doc.id)
        batch.delete(self.clients_collection, client.id)
        await batch.commit()
        _logger.debug("Deleted client id=%s with %d maintenance records", client.id, len(related))
        return len(related)
