"""Sample data for the memory backend."""

from __future__ import annotations

from datetime import UTC, datetime

from evshop.store.memory import MemoryDocumentStore

DEMO_CLIENTS: tuple[dict[str, object], ...] = (
    {
        "name": "王小明",
        "phone": "0912345678",
        "licensePlate": "EAA-1234",
        "vin": "LGXCE4CB0N0000001",
        "memo": "每半年回廠檢查",
        "createdAt": datetime(2024, 1, 5, 9, 30, tzinfo=UTC),
    },
    {
        "name": "陳美玲",
        "phone": "0922333444",
        "licensePlate": "EBB-5678",
        "vin": "LGXCE4CB0N0000002",
        "memo": "",
        "createdAt": datetime(2024, 2, 12, 14, 0, tzinfo=UTC),
    },
    {
        "name": "林志豪",
        "phone": "0933555666",
        "licensePlate": "ECC-9012",
        "vin": "LGXCE4CB0N0000003",
        "memo": "公司車",
        "createdAt": datetime(2024, 3, 20, 11, 15, tzinfo=UTC),
    },
)

DEMO_RECORDS: tuple[dict[str, object], ...] = (
    {"vin": "LGXCE4CB0N0000001", "date": "2024-01-05", "item": "電池健康檢測", "price": 800},
    {"vin": "LGXCE4CB0N0000001", "date": "2024-07-02", "item": "冷卻液更換", "price": 2400},
    {"vin": "LGXCE4CB0N0000001", "date": "2025-01-10", "item": "輪胎換位", "price": 600},
    {"vin": "LGXCE4CB0N0000001", "date": "2025-07-15", "item": "煞車來令片更換", "price": 3200},
    {"vin": "LGXCE4CB0N0000002", "date": "2024-02-12", "item": "冷氣濾網更換", "price": 450},
)


def seed_demo_data(store: MemoryDocumentStore, *, clients_collection: str, records_collection: str) -> None:
    for client in DEMO_CLIENTS:
        store.seed(clients_collection, client)
    for record in DEMO_RECORDS:
        store.seed(records_collection, record)
