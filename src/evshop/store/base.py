"""Document store interface consumed by the sync layer.

The shop never owns persistence: a managed document database stores the
customer and maintenance collections, pushes full snapshots on every change
and commits multi-document batches atomically. This module describes the
slice of that contract the application uses, so the production adapter and
the in-process backend are interchangeable.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol


class _ServerTimestamp:
    """Marker replaced by the store's commit time when a write is applied."""

    _instance: _ServerTimestamp | None = None

    def __new__(cls) -> _ServerTimestamp:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


@dataclass(frozen=True)
class Document:
    """Immutable snapshot of one stored document."""

    id: str
    data: Mapping[str, Any] = field(default_factory=dict)


SnapshotHandler = Callable[[tuple[Document, ...]], None]
"""Receives the full current contents of a collection."""


class Subscription(Protocol):
    """Handle for a live collection subscription."""

    def unsubscribe(self) -> None:
        ...


class WriteBatch(Protocol):
    """Atomic multi-document write."""

    def delete(self, collection: str, doc_id: str) -> None:
        ...

    async def commit(self) -> None:
        ...


class DocumentStore(Protocol):
    """Structural interface of the external document database.

    Implementations must deliver snapshots on the event loop thread, as a
    full tuple of documents (never a delta), starting with an initial
    snapshot right after subscribing.
    """

    def on_collection_changed(self, collection: str, handler: SnapshotHandler) -> Subscription:
        ...

    async def add(self, collection: str, data: Mapping[str, Any]) -> str:
        ...

    async def update(self, collection: str, doc_id: str, data: Mapping[str, Any]) -> None:
        ...

    async def delete(self, collection: str, doc_id: str) -> None:
        ...

    async def find_by_field(self, collection: str, field_name: str, value: Any) -> list[Document]:
        ...

    def batch(self) -> WriteBatch:
        ...
