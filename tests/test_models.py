"""Tests for document models and their coercions."""

from __future__ import annotations

from datetime import UTC, date, datetime

import pytest
from pydantic import ValidationError

from evshop.models.customer import CustomerRecord
from evshop.models.maintenance import MaintenanceRecord, coerce_price

# ------------------------------------------------------------------
# CustomerRecord
# ------------------------------------------------------------------


class TestCustomerRecord:
    SAMPLE_DOCUMENT: dict = {
        "name": "王小明",
        "phone": "0912345678",
        "licensePlate": "EAA-1234",
        "vin": "ABC123",
        "memo": "VIP",
        "createdAt": datetime(2024, 1, 5, 9, 30, tzinfo=UTC),
    }

    def test_camel_case_keys_map_to_fields(self) -> None:
        client = CustomerRecord.from_document("c1", self.SAMPLE_DOCUMENT)
        assert client.id == "c1"
        assert client.name == "王小明"
        assert client.license_plate == "EAA-1234"
        assert client.vin == "ABC123"
        assert client.created_at == datetime(2024, 1, 5, 9, 30, tzinfo=UTC)

    def test_missing_fields_are_none(self) -> None:
        client = CustomerRecord.from_document("c2", {"name": "Alice"})
        assert client.phone is None
        assert client.license_plate is None
        assert client.vin is None
        assert client.created_at is None

    def test_to_document_uses_aliases_and_drops_id(self) -> None:
        client = CustomerRecord.from_document("c1", self.SAMPLE_DOCUMENT)
        doc = client.to_document()
        assert "id" not in doc
        assert doc["licensePlate"] == "EAA-1234"
        assert doc["createdAt"] == self.SAMPLE_DOCUMENT["createdAt"]

    def test_models_are_frozen(self) -> None:
        client = CustomerRecord.from_document("c1", self.SAMPLE_DOCUMENT)
        with pytest.raises(ValidationError):
            client.name = "changed"  # type: ignore[misc]

    def test_numeric_phone_is_stringified(self) -> None:
        client = CustomerRecord.from_document("c3", {"phone": 912345678})
        assert client.phone == "912345678"


class TestTimestampCoercion:
    def test_epoch_seconds(self) -> None:
        client = CustomerRecord.from_document("c", {"createdAt": 1_704_067_200})
        assert client.created_at == datetime(2024, 1, 1, tzinfo=UTC)

    def test_epoch_milliseconds(self) -> None:
        client = CustomerRecord.from_document("c", {"createdAt": 1_704_067_200_000})
        assert client.created_at == datetime(2024, 1, 1, tzinfo=UTC)

    def test_iso_string_with_z_suffix(self) -> None:
        client = CustomerRecord.from_document("c", {"createdAt": "2024-01-01T00:00:00Z"})
        assert client.created_at == datetime(2024, 1, 1, tzinfo=UTC)

    def test_exported_timestamp_map(self) -> None:
        client = CustomerRecord.from_document("c", {"createdAt": {"seconds": 1_704_067_200, "nanoseconds": 0}})
        assert client.created_at == datetime(2024, 1, 1, tzinfo=UTC)

    def test_naive_datetime_is_treated_as_utc(self) -> None:
        client = CustomerRecord.from_document("c", {"createdAt": datetime(2024, 1, 1)})
        assert client.created_at is not None
        assert client.created_at.tzinfo is UTC

    def test_garbage_string_is_none(self) -> None:
        client = CustomerRecord.from_document("c", {"createdAt": "not a date"})
        assert client.created_at is None


# ------------------------------------------------------------------
# MaintenanceRecord
# ------------------------------------------------------------------


class TestMaintenanceRecord:
    def test_parses_document(self) -> None:
        record = MaintenanceRecord.from_document(
            "m1",
            {"vin": "ABC123", "date": "2024-02-01", "item": "輪胎換位", "price": 600},
        )
        assert record.id == "m1"
        assert record.vin == "ABC123"
        assert record.date == "2024-02-01"
        assert record.price == 600

    def test_price_string_is_coerced(self) -> None:
        record = MaintenanceRecord.from_document("m1", {"price": "150"})
        assert record.price == 150
        assert isinstance(record.price, int)

    def test_non_numeric_price_is_zero(self) -> None:
        record = MaintenanceRecord.from_document("m1", {"price": "free"})
        assert record.price == 0

    def test_missing_price_defaults_to_zero(self) -> None:
        assert MaintenanceRecord.from_document("m1", {}).price == 0

    def test_date_objects_become_iso_text(self) -> None:
        record = MaintenanceRecord.from_document("m1", {"date": date(2024, 3, 4)})
        assert record.date == "2024-03-04"
        record = MaintenanceRecord.from_document("m2", {"date": datetime(2024, 3, 4, 10, 0, tzinfo=UTC)})
        assert record.date == "2024-03-04"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("150", 150),
        (" 99 ", 99),
        ("12.5", 12.5),
        ("abc", 0),
        ("", 0),
        (None, 0),
        ("-20", 0),
        ("nan", 0),
        ("inf", 0),
        ("1_000", 0),
        ("١٥٠", 0),
        ("１５０", 0),
        ("1,000", 0),
        ("1e3", 1000),
        (True, 0),
        (300.0, 300),
    ],
)
def test_coerce_price(raw: object, expected: float) -> None:
    assert coerce_price(raw) == expected
