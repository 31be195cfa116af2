"""Presentation boundary of the customer admin page.

``ShopAdmin`` owns the application state: the :class:`ShopSync` mirrors and
the current :class:`ViewState`. Each user action is one method. Pure view
state changes are synchronous; actions that write to the store are
coroutines. Confirmation prompts and error messages go through a
:class:`Dialogs` implementation supplied by the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from evshop._constants import (
    CONFIRM_DELETE_CLIENT_MESSAGE,
    CONFIRM_DELETE_RECORD_MESSAGE,
    DELETE_FAILED_MESSAGE,
    PAGE_SIZE_OPTIONS,
)
from evshop.exceptions import StoreError
from evshop.models.customer import CustomerRecord
from evshop.models.maintenance import MaintenanceRecord
from evshop.state import ui
from evshop.state.collation import TextCollator
from evshop.state.derive import ClientPage, build_client_page, records_for_vin, total_pages, visible_clients
from evshop.state.ui import ClientForm, FormMode, RecordForm, SortDirection, SortKey, ViewState
from evshop.sync import ShopSync

_logger = logging.getLogger(__name__)


class Dialogs(Protocol):
    """Blocking user interaction: yes/no prompts and notices."""

    def confirm(self, message: str) -> bool:
        ...

    def alert(self, message: str) -> None:
        ...


class _ViewModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class RecordsModal(_ViewModel):
    """Full maintenance history of one vehicle."""

    vin: str
    client: CustomerRecord | None = None
    records: tuple[MaintenanceRecord, ...] = ()


class AdminView(_ViewModel):
    """Everything needed to draw the admin page."""

    is_loading: bool
    query: str
    sort_key: SortKey
    sort_direction: SortDirection
    page_size_options: tuple[int, ...] = PAGE_SIZE_OPTIONS
    clients: ClientPage
    client_form: ClientForm | None = None
    record_form: RecordForm | None = None
    records_modal: RecordsModal | None = None

    def to_json(self) -> dict[str, Any]:
        """JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


class ShopAdmin:
    """Customer admin page controller."""

    def __init__(
        self,
        sync: ShopSync,
        *,
        state: ViewState | None = None,
        collator: TextCollator | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._sync = sync
        self._state = state or ViewState()
        self._collator = collator
        self._today = today
        sync.add_listener(self._on_mirror_changed)

    @property
    def sync(self) -> ShopSync:
        return self._sync

    @property
    def state(self) -> ViewState:
        return self._state

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self) -> AdminView:
        state = self._state
        modal: RecordsModal | None = None
        if state.records_modal_vin is not None:
            vin = state.records_modal_vin
            owner = next((c for c in self._sync.clients if c.vin == vin), None)
            modal = RecordsModal(vin=vin, client=owner, records=records_for_vin(self._sync.records, vin))
        return AdminView(
            is_loading=self._sync.is_loading,
            query=state.query,
            sort_key=state.sort_key,
            sort_direction=state.sort_direction,
            clients=self.client_page(),
            client_form=state.client_form,
            record_form=state.record_form,
            records_modal=modal,
        )

    def client_page(self) -> ClientPage:
        return build_client_page(self._sync.clients, self._sync.records, self._state, self._collator)

    def total_pages(self) -> int:
        count = len(visible_clients(self._sync.clients, self._state, self._collator))
        return total_pages(count, self._state.page_size)

    def _on_mirror_changed(self) -> None:
        self._state = ui.clamp_page(self._state, self.total_pages())

    # ------------------------------------------------------------------
    # Search, sort, pagination
    # ------------------------------------------------------------------

    def search(self, query: str) -> None:
        self._state = ui.set_query(self._state, query)

    def select_page_size(self, page_size: int) -> None:
        self._state = ui.set_page_size(self._state, page_size)

    def click_sort(self, key: SortKey | str) -> None:
        self._state = ui.toggle_sort(self._state, SortKey(key))

    def go_to_page(self, page: int) -> None:
        self._state = ui.go_to_page(self._state, page, self.total_pages())

    def next_page(self) -> None:
        self.go_to_page(self._state.page + 1)

    def previous_page(self) -> None:
        self.go_to_page(self._state.page - 1)

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------

    def open_new_client(self) -> None:
        self._state = ui.open_client_form(self._state)

    def open_edit_client(self, client_id: str) -> None:
        self._state = ui.open_client_form(self._state, self._sync.find_client(client_id))

    def edit_client(self, /, **fields: Any) -> None:
        self._state = ui.edit_client_form(self._state, **fields)

    def cancel_client_form(self) -> None:
        self._state = ui.close_client_form(self._state)

    async def submit_client_form(self) -> bool:
        """Persist the open customer form.

        Returns ``False`` without writing when no form is open or the draft
        has validation errors; the form then stays open. The form closes
        once the store accepted the write. Store failures propagate.
        """
        form = self._state.client_form
        if form is None or not form.can_submit:
            return False
        if form.mode == FormMode.CREATE:
            await self._sync.create_client(form.draft)
        else:
            assert form.target_id is not None  # noqa: S101
            await self._sync.update_client(form.target_id, form.draft, created_at=form.created_at)
        if self._state.client_form is form:
            self._state = ui.close_client_form(self._state)
        return True

    async def delete_client(self, client_id: str, dialogs: Dialogs) -> bool:
        """Delete a customer and all of its maintenance records after confirmation.

        A store failure is logged and reported with a single alert; nothing
        is deleted in that case and no retry happens.
        """
        client = self._sync.find_client(client_id)
        if not dialogs.confirm(CONFIRM_DELETE_CLIENT_MESSAGE):
            return False
        try:
            await self._sync.delete_client_cascade(client)
        except StoreError:
            _logger.error("Failed to delete client id=%s vin=%s", client.id, client.vin, exc_info=True)
            dialogs.alert(DELETE_FAILED_MESSAGE)
            return False
        return True

    # ------------------------------------------------------------------
    # Maintenance records
    # ------------------------------------------------------------------

    def open_new_record(self, vin: str) -> None:
        self._state = ui.open_record_form(self._state, vin=vin, today=self._today())

    def open_edit_record(self, record_id: str) -> None:
        self._state = ui.open_record_form(self._state, record=self._sync.find_record(record_id))

    def edit_record(self, /, **fields: Any) -> None:
        self._state = ui.edit_record_form(self._state, **fields)

    def cancel_record_form(self) -> None:
        self._state = ui.close_record_form(self._state)

    async def submit_record_form(self) -> bool:
        """Persist the open maintenance form; same rules as :meth:`submit_client_form`."""
        form = self._state.record_form
        if form is None or not form.can_submit:
            return False
        if form.mode == FormMode.CREATE:
            await self._sync.create_record(form.draft)
        else:
            assert form.target_id is not None  # noqa: S101
            await self._sync.update_record(form.target_id, form.draft)
        if self._state.record_form is form:
            self._state = ui.close_record_form(self._state)
        return True

    async def delete_record(self, record_id: str, dialogs: Dialogs) -> bool:
        self._sync.find_record(record_id)
        if not dialogs.confirm(CONFIRM_DELETE_RECORD_MESSAGE):
            return False
        await self._sync.delete_record(record_id)
        return True

    def open_records(self, vin: str) -> None:
        self._state = ui.open_records_modal(self._state, vin)

    def close_records(self) -> None:
        self._state = ui.close_records_modal(self._state)
