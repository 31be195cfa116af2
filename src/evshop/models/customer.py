"""Customer record model."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from evshop.models._base import DocText, DocTimestamp, ShopBaseModel


class CustomerRecord(ShopBaseModel):
    """A customer of the shop and the vehicle they bring in.

    ``vin`` is the join key into maintenance records. The store does not
    enforce it; records follow the customer by value match only.
    """

    id: str = Field(default="")
    """Store-assigned document id."""
    name: DocText = None
    """Customer name."""
    phone: DocText = None
    """Mobile number (``09`` + 8 digits when entered through the form)."""
    license_plate: DocText = None
    """License plate."""
    vin: DocText = None
    """Vehicle identification number."""
    memo: DocText = None
    """Free-text notes."""
    created_at: DocTimestamp = None
    """Creation time stamped by the store."""

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> CustomerRecord:
        """Build a record from a stored document."""
        return cls.model_validate({**data, "id": doc_id})
