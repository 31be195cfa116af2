"""Tests for the collection mirrors and store writes."""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime
from typing import Any

import pytest

from evshop.config import ShopConfig
from evshop.exceptions import BatchCommitError, DocumentNotFoundError
from evshop.models.forms import CustomerDraft, MaintenanceDraft
from evshop.store.base import Document
from evshop.store.memory import MemoryDocumentStore
from evshop.sync import ShopSync

_NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


async def _settle() -> None:
    for _ in range(3):
        await asyncio.sleep(0)


def _store() -> MemoryDocumentStore:
    counter = iter(range(1, 1000))
    return MemoryDocumentStore(clock=lambda: _NOW, id_factory=lambda: f"doc{next(counter)}")


class _FailingStore(MemoryDocumentStore):
    """Rejects any batch touching the ``clients`` collection."""

    def _apply_delete(self, staged: Any, collection: str, doc_id: str) -> None:
        if collection == "clients":
            raise RuntimeError("permission denied")
        super()._apply_delete(staged, collection, doc_id)


def _seed_shop(store: MemoryDocumentStore) -> None:
    store.seed("clients", {"name": "王小明", "phone": "0912345678", "vin": "ABC123"}, doc_id="c1")
    store.seed("clients", {"name": "陳美玲", "phone": "0922333444", "vin": "XYZ789"}, doc_id="c2")
    store.seed("maintenanceRecords", {"vin": "ABC123", "date": "2024-01-01", "item": "檢查", "price": 800}, doc_id="r1")
    store.seed("maintenanceRecords", {"vin": "ABC123", "date": "2024-02-01", "item": "輪胎", "price": 600}, doc_id="r2")
    store.seed("maintenanceRecords", {"vin": "XYZ789", "date": "2024-03-01", "item": "煞車", "price": 900}, doc_id="r3")


# ------------------------------------------------------------------
# Loading
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_loading_until_both_collections_arrive() -> None:
    sync = ShopSync(_store())
    assert sync.is_loading

    sync.start()
    assert sync.is_loading
    await _settle()

    assert sync.clients_loaded
    assert sync.records_loaded
    assert not sync.is_loading
    assert sync.clients == ()


def test_loading_flag_waits_for_the_slower_collection() -> None:
    sync = ShopSync(_store())
    sync._on_clients(())  # noqa: SLF001
    assert sync.clients_loaded
    assert sync.is_loading
    sync._on_records(())  # noqa: SLF001
    assert not sync.is_loading


@pytest.mark.asyncio
async def test_wait_loaded() -> None:
    store = _store()
    _seed_shop(store)
    sync = ShopSync(store)
    sync.start()
    await sync.wait_loaded(timeout=1.0)
    assert {c.id for c in sync.clients} == {"c1", "c2"}
    assert len(sync.records) == 3
    await sync.wait_loaded(timeout=1.0)


@pytest.mark.asyncio
async def test_wait_loaded_times_out_without_snapshots() -> None:
    sync = ShopSync(_store())
    with pytest.raises(TimeoutError):
        await sync.wait_loaded(timeout=0.01)


@pytest.mark.asyncio
async def test_start_is_idempotent() -> None:
    store = _store()
    sync = ShopSync(store)
    calls: list[None] = []
    sync.add_listener(lambda: calls.append(None))
    sync.start()
    sync.start()
    await _settle()
    assert len(calls) == 2


def test_from_config_uses_collection_names() -> None:
    config = ShopConfig(backend="memory", clients_collection="c", records_collection="r")
    sync = ShopSync.from_config(_store(), config)
    assert sync.clients_collection == "c"
    assert sync.records_collection == "r"


# ------------------------------------------------------------------
# Mirrors
# ------------------------------------------------------------------


def test_snapshot_replaces_mirror_wholesale() -> None:
    sync = ShopSync(_store())
    sync._on_clients((Document("a", {"name": "A"}), Document("b", {"name": "B"})))  # noqa: SLF001
    sync._on_clients((Document("c", {"name": "C"}),))  # noqa: SLF001
    assert [c.id for c in sync.clients] == ["c"]


def test_malformed_documents_are_skipped(caplog: pytest.LogCaptureFixture) -> None:
    sync = ShopSync(_store())
    with caplog.at_level(logging.WARNING, logger="evshop.sync"):
        sync._on_clients(  # noqa: SLF001
            (
                Document("ok", {"name": "A"}),
                Document("bad", {"name": "B", "createdAt": {"seconds": "soon"}}),
            )
        )
    assert [c.id for c in sync.clients] == ["ok"]
    assert "clients/bad" in caplog.text


def test_listener_remover() -> None:
    sync = ShopSync(_store())
    calls: list[None] = []
    remove = sync.add_listener(lambda: calls.append(None))
    sync._on_records(())  # noqa: SLF001
    remove()
    remove()
    sync._on_records(())  # noqa: SLF001
    assert len(calls) == 1


def test_find_unknown_ids() -> None:
    sync = ShopSync(_store())
    with pytest.raises(DocumentNotFoundError):
        sync.find_client("nope")
    with pytest.raises(DocumentNotFoundError):
        sync.find_record("nope")


@pytest.mark.asyncio
async def test_stop_keeps_last_contents() -> None:
    store = _store()
    _seed_shop(store)
    sync = ShopSync(store)
    sync.start()
    await _settle()
    sync.stop()

    await store.add("clients", {"name": "late"})
    await _settle()
    assert len(sync.clients) == 2


# ------------------------------------------------------------------
# Writes
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_created_client_appears_only_through_a_snapshot() -> None:
    sync = ShopSync(_store())
    sync.start()
    await _settle()

    doc_id = await sync.create_client(CustomerDraft(name="Alice", phone="0912345678"))
    assert sync.clients == ()

    await _settle()
    client = sync.find_client(doc_id)
    assert client.name == "Alice"
    assert client.created_at == _NOW


@pytest.mark.asyncio
async def test_update_client_overwrites_fields_and_keeps_created_at() -> None:
    store = _store()
    sync = ShopSync(store)
    sync.start()
    doc_id = await sync.create_client(CustomerDraft(name="Alice", phone="0912345678", memo="x"))
    await _settle()

    created = sync.find_client(doc_id).created_at
    await sync.update_client(doc_id, CustomerDraft(name="Alicia", phone="0987654321"), created_at=created)
    await _settle()

    client = sync.find_client(doc_id)
    assert client.name == "Alicia"
    assert client.memo == ""
    assert client.created_at == created


@pytest.mark.asyncio
async def test_record_writes() -> None:
    sync = ShopSync(_store())
    sync.start()
    doc_id = await sync.create_record(MaintenanceDraft(vin="V1", date="2024-01-01", item="檢查", price="150"))
    await _settle()
    assert sync.find_record(doc_id).price == 150

    await sync.update_record(doc_id, MaintenanceDraft(vin="V1", date="2024-01-02", item="檢查", price="abc"))
    await _settle()
    record = sync.find_record(doc_id)
    assert (record.date, record.price) == ("2024-01-02", 0)

    await sync.delete_record(doc_id)
    await _settle()
    assert sync.records == ()


# ------------------------------------------------------------------
# Cascade delete
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_cascade_removes_client_and_matching_records() -> None:
    store = _store()
    _seed_shop(store)
    sync = ShopSync(store)
    sync.start()
    await _settle()

    deleted = await sync.delete_client_cascade(sync.find_client("c1"))
    await _settle()

    assert deleted == 2
    assert [c.id for c in sync.clients] == ["c2"]
    assert [r.id for r in sync.records] == ["r3"]


@pytest.mark.asyncio
async def test_cascade_without_vin_deletes_only_the_client() -> None:
    store = _store()
    _seed_shop(store)
    store.seed("clients", {"name": "no vin"}, doc_id="c3")
    store.seed("maintenanceRecords", {"vin": "", "item": "orphan"}, doc_id="r4")
    sync = ShopSync(store)
    sync.start()
    await _settle()

    deleted = await sync.delete_client_cascade(sync.find_client("c3"))
    await _settle()

    assert deleted == 0
    assert {c.id for c in sync.clients} == {"c1", "c2"}
    assert len(sync.records) == 4


@pytest.mark.asyncio
async def test_failed_cascade_leaves_everything_in_place() -> None:
    store = _FailingStore(clock=lambda: _NOW)
    _seed_shop(store)
    sync = ShopSync(store)
    sync.start()
    await _settle()

    with pytest.raises(BatchCommitError):
        await sync.delete_client_cascade(sync.find_client("c1"))
    await _settle()

    assert {c.id for c in sync.clients} == {"c1", "c2"}
    assert {r.id for r in sync.records} == {"r1", "r2", "r3"}
