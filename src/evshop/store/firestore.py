"""Cloud Firestore adapter for the document store interface."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from google.api_core import exceptions as google_exceptions
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter
from google.oauth2 import service_account

from evshop.config import ShopConfig
from evshop.exceptions import BatchCommitError, StoreError
from evshop.store.base import SERVER_TIMESTAMP, Document, SnapshotHandler

_logger = logging.getLogger(__name__)


def _encode(data: Mapping[str, Any]) -> dict[str, Any]:
    """Translate store-neutral sentinels into Firestore ones."""
    return {key: (firestore.SERVER_TIMESTAMP if value is SERVER_TIMESTAMP else value) for key, value in data.items()}


def _to_document(snapshot: Any) -> Document:
    return Document(id=snapshot.id, data=snapshot.to_dict() or {})


class _WatchSubscription:
    """Wraps a Firestore ``Watch`` so it satisfies ``Subscription``."""

    def __init__(self, watch: Any, collection: str) -> None:
        self._watch = watch
        self._collection = collection

    def unsubscribe(self) -> None:
        watch = self._watch
        self._watch = None
        if watch is None:
            return
        _logger.debug("Firestore listener stop collection=%s", self._collection)
        watch.unsubscribe()


class _FirestoreBatch:
    def __init__(self, client: Any) -> None:
        self._client = client
        self._batch = client.batch()
        self._size = 0

    def delete(self, collection: str, doc_id: str) -> None:
        self._batch.delete(self._client.collection(collection).document(doc_id))
        self._size += 1

    async def commit(self) -> None:
        try:
            await self._batch.commit()
        except google_exceptions.GoogleAPIError as exc:
            raise BatchCommitError(f"Batch of {self._size} operations rejected: {exc}") from exc
        _logger.debug("Firestore batch committed operations=%d", self._size)


class FirestoreDocumentStore:
    """Document store backed by Cloud Firestore.

    Writes and queries use ``firestore.AsyncClient``. Live subscriptions use
    the synchronous client's ``on_snapshot`` listener, whose callbacks run on
    a background thread; every snapshot is handed to the event loop with
    ``call_soon_threadsafe`` so handlers never run concurrently with the
    rest of the application.
    """

    def __init__(
        self,
        *,
        client: Any,
        async_client: Any,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._client = client
        self._async_client = async_client
        self._loop = loop

    @classmethod
    def from_config(cls, config: ShopConfig) -> FirestoreDocumentStore:
        """Create both Firestore clients from application configuration."""
        kwargs: dict[str, Any] = {}
        if config.firestore_project:
            kwargs["project"] = config.firestore_project
        if config.firestore_database:
            kwargs["database"] = config.firestore_database
        if config.credentials_file:
            kwargs["credentials"] = service_account.Credentials.from_service_account_file(config.credentials_file)
        return cls(client=firestore.Client(**kwargs), async_client=firestore.AsyncClient(**kwargs))

    def on_collection_changed(self, collection: str, handler: SnapshotHandler) -> _WatchSubscription:
        loop = self._loop or asyncio.get_running_loop()

        def _on_snapshot(col_snapshot: Any, _changes: Any, _read_time: Any) -> None:
            try:
                documents = tuple(_to_document(snap) for snap in col_snapshot)
            except Exception:
                _logger.warning("Failed to decode snapshot for collection=%s", collection, exc_info=True)
                return
            _logger.debug("Firestore snapshot collection=%s documents=%d", collection, len(documents))
            loop.call_soon_threadsafe(handler, documents)

        _logger.debug("Firestore listener start collection=%s", collection)
        watch = self._client.collection(collection).on_snapshot(_on_snapshot)
        return _WatchSubscription(watch, collection)

    async def add(self, collection: str, data: Mapping[str, Any]) -> str:
        try:
            _, ref = await self._async_client.collection(collection).add(_encode(data))
        except google_exceptions.GoogleAPIError as exc:
            raise StoreError(f"Create in {collection} failed: {exc}", collection=collection) from exc
        return str(ref.id)

    async def update(self, collection: str, doc_id: str, data: Mapping[str, Any]) -> None:
        try:
            await self._async_client.collection(collection).document(doc_id).update(_encode(data))
        except google_exceptions.GoogleAPIError as exc:
            raise StoreError(
                f"Update of {collection}/{doc_id} failed: {exc}",
                collection=collection,
                doc_id=doc_id,
            ) from exc

    async def delete(self, collection: str, doc_id: str) -> None:
        try:
            await self._async_client.collection(collection).document(doc_id).delete()
        except google_exceptions.GoogleAPIError as exc:
            raise StoreError(
                f"Delete of {collection}/{doc_id} failed: {exc}",
                collection=collection,
                doc_id=doc_id,
            ) from exc

    async def find_by_field(self, collection: str, field_name: str, value: Any) -> list[Document]:
        query = self._async_client.collection(collection).where(filter=FieldFilter(field_name, "==", value))
        try:
            snapshots = await query.get()
        except google_exceptions.GoogleAPIError as exc:
            raise StoreError(f"Query on {collection}.{field_name} failed: {exc}", collection=collection) from exc
        return [_to_document(snap) for snap in snapshots]

    def batch(self) -> _FirestoreBatch:
        return _FirestoreBatch(self._async_client)
