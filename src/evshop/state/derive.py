"""Pure derivations from the mirrored collections and the view state.

Nothing here caches or mutates: each call recomputes its result from the
tuples it is given, so the rendered page is always a function of
``(clients, records, ViewState)``.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from evshop._constants import LATEST_RECORDS_LIMIT
from evshop.models.customer import CustomerRecord
from evshop.models.maintenance import MaintenanceRecord
from evshop.state.collation import TextCollator, default_collator
from evshop.state.ui import SortDirection, SortKey, ViewState, clamp_page

_SEARCH_FIELDS = ("name", "phone", "license_plate", "vin")

_SORT_ATTRIBUTES: dict[SortKey, str] = {
    SortKey.NAME: "name",
    SortKey.PHONE: "phone",
    SortKey.LICENSE_PLATE: "license_plate",
    SortKey.VIN: "vin",
    SortKey.CREATED_AT: "created_at",
}


def filter_clients(clients: Iterable[CustomerRecord], query: str) -> tuple[CustomerRecord, ...]:
    """Customers whose name, phone, plate or VIN contains *query*, ignoring case."""
    if not query:
        return tuple(clients)
    needle = query.lower()
    return tuple(
        client
        for client in clients
        if any(needle in value.lower() for value in (getattr(client, name) for name in _SEARCH_FIELDS) if value)
    )


def _sort_value(client: CustomerRecord, key: SortKey, collator: TextCollator) -> Any:
    value = getattr(client, _SORT_ATTRIBUTES[key])
    if value is None:
        return None
    if key == SortKey.CREATED_AT:
        return value.timestamp()
    return collator.sort_key(value)


def sort_clients(
    clients: Iterable[CustomerRecord],
    key: SortKey,
    direction: SortDirection,
    collator: TextCollator | None = None,
) -> tuple[CustomerRecord, ...]:
    """Order customers by *key*; customers missing the value always come last."""
    collator = collator or default_collator()
    defined: list[tuple[Any, CustomerRecord]] = []
    missing: list[CustomerRecord] = []
    for client in clients:
        value = _sort_value(client, key, collator)
        if value is None:
            missing.append(client)
        else:
            defined.append((value, client))
    defined.sort(key=lambda pair: pair[0], reverse=direction == SortDirection.DESC)
    return tuple(client for _, client in defined) + tuple(missing)


def total_pages(count: int, page_size: int) -> int:
    return math.ceil(count / page_size)


def paginate(items: Sequence[Any], page: int, page_size: int) -> tuple[Any, ...]:
    """Slice ``items[(page - 1) * page_size : page * page_size]``."""
    start = (page - 1) * page_size
    return tuple(items[start : start + page_size])


def records_for_vin(records: Iterable[MaintenanceRecord], vin: str | None) -> tuple[MaintenanceRecord, ...]:
    """Every record of *vin*, newest date first; undated records last."""
    if not vin:
        return ()
    matching = [record for record in records if record.vin == vin]
    dated = sorted((r for r in matching if r.date), key=lambda r: r.date or "", reverse=True)
    return tuple(dated) + tuple(r for r in matching if not r.date)


def latest_records(
    records: Iterable[MaintenanceRecord],
    vin: str | None,
    limit: int = LATEST_RECORDS_LIMIT,
) -> tuple[MaintenanceRecord, ...]:
    """The *limit* most recent records of *vin*, for the inline summary."""
    return records_for_vin(records, vin)[:limit]


class _PageModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class ClientRow(_PageModel):
    client: CustomerRecord
    latest_records: tuple[MaintenanceRecord, ...] = ()


class ClientPage(_PageModel):
    rows: tuple[ClientRow, ...] = ()
    page: int = 1
    page_size: int
    total_count: int = 0
    total_pages: int = 0


def visible_clients(
    clients: Iterable[CustomerRecord],
    state: ViewState,
    collator: TextCollator | None = None,
) -> tuple[CustomerRecord, ...]:
    """Filtered and sorted customers, before pagination."""
    return sort_clients(filter_clients(clients, state.query), state.sort_key, state.sort_direction, collator)


def build_client_page(
    clients: Iterable[CustomerRecord],
    records: Sequence[MaintenanceRecord],
    state: ViewState,
    collator: TextCollator | None = None,
) -> ClientPage:
    """The page of customers the table shows, each with its latest records.

    A page past the end (the list shrank since it was selected) shows the
    last page instead.
    """
    visible = visible_clients(clients, state, collator)
    pages = total_pages(len(visible), state.page_size)
    page = clamp_page(state, pages).page
    rows = tuple(
        ClientRow(client=client, latest_records=latest_records(records, client.vin))
        for client in paginate(visible, page, state.page_size)
    )
    return ClientPage(
        rows=rows,
        page=page,
        page_size=state.page_size,
        total_count=len(visible),
        total_pages=pages,
    )
