"""Data models for shop documents and forms."""

from evshop.models._base import DocTimestamp, ShopBaseModel, parse_timestamp
from evshop.models.customer import CustomerRecord
from evshop.models.forms import (
    CustomerDraft,
    MaintenanceDraft,
    is_valid_phone,
    validate_customer,
    validate_maintenance,
)
from evshop.models.maintenance import MaintenanceRecord, coerce_price

__all__ = [
    "CustomerDraft",
    "CustomerRecord",
    "DocTimestamp",
    "MaintenanceDraft",
    "MaintenanceRecord",
    "ShopBaseModel",
    "coerce_price",
    "is_valid_phone",
    "parse_timestamp",
    "validate_customer",
    "validate_maintenance",
]
