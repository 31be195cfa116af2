"""Form drafts and client-side validation.

Drafts are the buffers behind the create/edit forms. They are immutable;
editing a field produces a new draft (see ``evshop.state.ui``). Validation is
local and synchronous and never reaches the store.
"""

from __future__ import annotations

from typing import Any, Self

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from evshop._constants import (
    ITEM_REQUIRED_MESSAGE,
    NAME_REQUIRED_MESSAGE,
    PHONE_FORMAT_MESSAGE,
    PHONE_PATTERN,
)
from evshop.models.customer import CustomerRecord
from evshop.models.maintenance import MaintenanceRecord, coerce_price


class _DraftModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def with_changes(self, /, **fields: Any) -> Self:
        """Return a copy with *fields* replaced; names may be snake_case or camelCase."""
        data = self.model_dump(by_alias=True)
        for name, value in fields.items():
            info = type(self).model_fields.get(name)
            data[info.alias if info is not None and info.alias else name] = value
        return self.model_validate(data)


class CustomerDraft(_DraftModel):
    """Editable customer fields."""

    name: str = ""
    phone: str = ""
    license_plate: str = ""
    vin: str = ""
    memo: str = ""

    @classmethod
    def from_record(cls, record: CustomerRecord) -> CustomerDraft:
        return cls(
            name=record.name or "",
            phone=record.phone or "",
            license_plate=record.license_plate or "",
            vin=record.vin or "",
            memo=record.memo or "",
        )

    def to_fields(self) -> dict[str, Any]:
        """Document fields keyed the way the store holds them."""
        return {
            "name": self.name,
            "phone": self.phone,
            "licensePlate": self.license_plate,
            "vin": self.vin,
            "memo": self.memo,
        }


class MaintenanceDraft(_DraftModel):
    """Editable maintenance record fields.

    ``price`` holds the raw form input; it is coerced only when the draft is
    turned into document fields.
    """

    vin: str = ""
    date: str = ""
    item: str = ""
    price: str | int | float = ""

    @classmethod
    def from_record(cls, record: MaintenanceRecord) -> MaintenanceDraft:
        return cls(
            vin=record.vin or "",
            date=record.date or "",
            item=record.item or "",
            price=record.price,
        )

    def to_fields(self) -> dict[str, Any]:
        return {
            "vin": self.vin,
            "date": self.date,
            "item": self.item,
            "price": coerce_price(self.price),
        }


def is_valid_phone(phone: str) -> bool:
    """Whether *phone* is ``09`` followed by exactly eight digits."""
    return PHONE_PATTERN.fullmatch(phone) is not None


def validate_customer(draft: CustomerDraft) -> dict[str, str]:
    """Return per-field error messages for a customer draft.

    The phone rule applies to whatever the field holds, so an empty phone
    is reported as malformed as well.
    """
    errors: dict[str, str] = {}
    if not draft.name.strip():
        errors["name"] = NAME_REQUIRED_MESSAGE
    if not is_valid_phone(draft.phone):
        errors["phone"] = PHONE_FORMAT_MESSAGE
    return errors


def validate_maintenance(draft: MaintenanceDraft) -> dict[str, str]:
    """Return per-field error messages for a maintenance draft."""
    errors: dict[str, str] = {}
    if not draft.item.strip():
        errors["item"] = ITEM_REQUIRED_MESSAGE
    return errors
