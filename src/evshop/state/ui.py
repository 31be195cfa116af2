"""Transient UI state and the functions that update it.

``ViewState`` is immutable. Every user action maps to one function here that
takes the current state and returns the next one; nothing mutates a state in
place.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from evshop._constants import DEFAULT_PAGE_SIZE, PAGE_SIZE_OPTIONS
from evshop.models.customer import CustomerRecord
from evshop.models.forms import CustomerDraft, MaintenanceDraft, validate_customer, validate_maintenance
from evshop.models.maintenance import MaintenanceRecord


class SortKey(StrEnum):
    NAME = "name"
    PHONE = "phone"
    LICENSE_PLATE = "licensePlate"
    VIN = "vin"
    CREATED_AT = "createdAt"


class SortDirection(StrEnum):
    ASC = "asc"
    DESC = "desc"


class FormMode(StrEnum):
    CREATE = "create"
    EDIT = "edit"


class _StateModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
    )


class ClientForm(_StateModel):
    """An open customer form."""

    mode: FormMode
    target_id: str | None = None
    created_at: datetime | None = None
    """Creation time of the edited customer, written back on overwrite."""
    draft: CustomerDraft = Field(default_factory=CustomerDraft)
    errors: dict[str, str] = Field(default_factory=dict)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def can_submit(self) -> bool:
        return not self.errors


class RecordForm(_StateModel):
    """An open maintenance record form."""

    mode: FormMode
    target_id: str | None = None
    draft: MaintenanceDraft = Field(default_factory=MaintenanceDraft)
    errors: dict[str, str] = Field(default_factory=dict)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def can_submit(self) -> bool:
        return not self.errors


class ViewState(_StateModel):
    """Everything the customer page shows besides the mirrored data."""

    query: str = ""
    sort_key: SortKey = SortKey.CREATED_AT
    sort_direction: SortDirection = SortDirection.DESC
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    client_form: ClientForm | None = None
    record_form: RecordForm | None = None
    records_modal_vin: str | None = None


def _update(state: ViewState, **changes: Any) -> ViewState:
    return state.model_copy(update=changes)


# ---------------------------------------------------------------------------
# Search, sort, pagination
# ---------------------------------------------------------------------------


def set_query(state: ViewState, query: str) -> ViewState:
    """Change the search query and return to the first page."""
    return _update(state, query=query, page=1)


def set_page_size(state: ViewState, page_size: int) -> ViewState:
    """Change the page size and return to the first page."""
    if page_size not in PAGE_SIZE_OPTIONS:
        raise ValueError(f"page_size must be one of {PAGE_SIZE_OPTIONS}, got {page_size}")
    return _update(state, page_size=page_size, page=1)


def toggle_sort(state: ViewState, key: SortKey) -> ViewState:
    """Sort header click: same key flips direction, a new key sorts ascending."""
    if state.sort_key == key:
        direction = SortDirection.DESC if state.sort_direction == SortDirection.ASC else SortDirection.ASC
        return _update(state, sort_direction=direction)
    return _update(state, sort_key=key, sort_direction=SortDirection.ASC)


def go_to_page(state: ViewState, page: int, total_pages: int) -> ViewState:
    """Move to *page*; pages outside ``[1, total_pages]`` leave the state unchanged."""
    if page < 1 or page > total_pages:
        return state
    return _update(state, page=page)


def clamp_page(state: ViewState, total_pages: int) -> ViewState:
    """Pull the page back to the last one after the customer list shrank."""
    last = max(total_pages, 1)
    if state.page <= last:
        return state
    return _update(state, page=last)


# ---------------------------------------------------------------------------
# Customer form
# ---------------------------------------------------------------------------


def open_client_form(state: ViewState, client: CustomerRecord | None = None) -> ViewState:
    """Open an empty create form, or an edit form pre-filled from *client*."""
    if client is None:
        draft = CustomerDraft()
        form = ClientForm(mode=FormMode.CREATE, draft=draft, errors=validate_customer(draft))
    else:
        draft = CustomerDraft.from_record(client)
        form = ClientForm(
            mode=FormMode.EDIT,
            target_id=client.id,
            created_at=client.created_at,
            draft=draft,
            errors=validate_customer(draft),
        )
    return _update(state, client_form=form)


def edit_client_form(state: ViewState, /, **fields: Any) -> ViewState:
    """Change draft fields of the open customer form and revalidate."""
    form = state.client_form
    if form is None:
        raise ValueError("No customer form is open")
    draft = form.draft.with_changes(**fields)
    return _update(state, client_form=form.model_copy(update={"draft": draft, "errors": validate_customer(draft)}))


def close_client_form(state: ViewState) -> ViewState:
    return _update(state, client_form=None)


# ---------------------------------------------------------------------------
# Maintenance record form
# ---------------------------------------------------------------------------


def open_record_form(
    state: ViewState,
    *,
    vin: str | None = None,
    record: MaintenanceRecord | None = None,
    today: date | None = None,
) -> ViewState:
    """Open a create form for *vin*, or an edit form pre-filled from *record*."""
    if record is not None:
        draft = MaintenanceDraft.from_record(record)
        form = RecordForm(
            mode=FormMode.EDIT,
            target_id=record.id,
            draft=draft,
            errors=validate_maintenance(draft),
        )
    else:
        if not vin:
            raise ValueError("A VIN is required to add a maintenance record")
        draft = MaintenanceDraft(vin=vin, date=(today or date.today()).isoformat())
        form = RecordForm(mode=FormMode.CREATE, draft=draft, errors=validate_maintenance(draft))
    return _update(state, record_form=form)


def edit_record_form(state: ViewState, /, **fields: Any) -> ViewState:
    """Change draft fields of the open maintenance form and revalidate."""
    form = state.record_form
    if form is None:
        raise ValueError("No maintenance form is open")
    draft = form.draft.with_changes(**fields)
    return _update(state, record_form=form.model_copy(update={"draft": draft, "errors": validate_maintenance(draft)}))


def close_record_form(state: ViewState) -> ViewState:
    return _update(state, record_form=None)


# ---------------------------------------------------------------------------
# Full history modal
# ---------------------------------------------------------------------------


def open_records_modal(state: ViewState, vin: str) -> ViewState:
    return _update(state, records_modal_vin=vin)


def close_records_modal(state: ViewState) -> ViewState:
    return _update(state, records_modal_vin=None)
