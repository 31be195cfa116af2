"""Custom exception hierarchy for evshop."""

from __future__ import annotations


class ShopError(Exception):
    """Base exception for all evshop errors."""


class ShopConfigError(ShopError):
    """Invalid or missing configuration."""


class StoreError(ShopError):
    """Document store operation failed (network, permission, rejected write)."""

    def __init__(
        self,
        message: str,
        *,
        collection: str = "",
        doc_id: str = "",
    ) -> None:
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(message)


class BatchCommitError(StoreError):
    """An atomic batch was rejected; none of its operations were applied."""


class DocumentNotFoundError(ShopError):
    """An action referenced a document id that is not in the local mirror."""

    def __init__(self, collection: str, doc_id: str) -> None:
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"No document {doc_id!r} in {collection!r}")
