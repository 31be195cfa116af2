"""Tests for view state transitions."""

from __future__ import annotations

from datetime import UTC, date, datetime

import pytest
from pydantic import ValidationError

from evshop._constants import NAME_REQUIRED_MESSAGE, PHONE_FORMAT_MESSAGE
from evshop.models.customer import CustomerRecord
from evshop.models.maintenance import MaintenanceRecord
from evshop.state import ui
from evshop.state.ui import FormMode, SortDirection, SortKey, ViewState


def test_default_state() -> None:
    state = ViewState()
    assert state.query == ""
    assert state.page == 1
    assert state.page_size == 10
    assert state.sort_key is SortKey.CREATED_AT
    assert state.sort_direction is SortDirection.DESC


class TestSort:
    def test_same_key_twice_restores_direction(self) -> None:
        state = ui.toggle_sort(ViewState(), SortKey.NAME)
        assert (state.sort_key, state.sort_direction) == (SortKey.NAME, SortDirection.ASC)
        flipped = ui.toggle_sort(state, SortKey.NAME)
        assert flipped.sort_direction is SortDirection.DESC
        assert ui.toggle_sort(flipped, SortKey.NAME) == state

    def test_new_key_starts_ascending(self) -> None:
        state = ViewState(sort_key=SortKey.NAME, sort_direction=SortDirection.DESC)
        state = ui.toggle_sort(state, SortKey.VIN)
        assert (state.sort_key, state.sort_direction) == (SortKey.VIN, SortDirection.ASC)

    def test_sort_keeps_current_page(self) -> None:
        state = ViewState(page=3)
        assert ui.toggle_sort(state, SortKey.PHONE).page == 3


class TestPaging:
    def test_query_change_resets_page(self) -> None:
        state = ui.set_query(ViewState(page=4), "王")
        assert state.query == "王"
        assert state.page == 1

    def test_page_size_change_resets_page(self) -> None:
        state = ui.set_page_size(ViewState(page=2), 20)
        assert state.page_size == 20
        assert state.page == 1

    def test_unknown_page_size_rejected(self) -> None:
        with pytest.raises(ValueError):
            ui.set_page_size(ViewState(), 7)

    def test_go_to_page_within_range(self) -> None:
        assert ui.go_to_page(ViewState(), 3, total_pages=3).page == 3

    @pytest.mark.parametrize("page", [0, -1, 4])
    def test_go_to_page_outside_range_is_ignored(self, page: int) -> None:
        state = ViewState(page=2)
        assert ui.go_to_page(state, page, total_pages=3) is state

    def test_no_pages_means_no_navigation(self) -> None:
        state = ViewState()
        assert ui.go_to_page(state, 1, total_pages=0) is state

    def test_clamp_page_after_list_shrinks(self) -> None:
        assert ui.clamp_page(ViewState(page=5), total_pages=3).page == 3
        assert ui.clamp_page(ViewState(page=5), total_pages=0).page == 1
        state = ViewState(page=2)
        assert ui.clamp_page(state, total_pages=3) is state


def test_transitions_do_not_mutate_input() -> None:
    state = ViewState()
    ui.set_query(state, "abc")
    ui.open_client_form(state)
    assert state == ViewState()


class TestClientForm:
    def test_new_form_is_invalid_until_filled(self) -> None:
        state = ui.open_client_form(ViewState())
        form = state.client_form
        assert form is not None
        assert form.mode is FormMode.CREATE
        assert form.errors == {"name": NAME_REQUIRED_MESSAGE, "phone": PHONE_FORMAT_MESSAGE}
        assert not form.can_submit

        state = ui.edit_client_form(state, name="王小明", phone="0912345678")
        assert state.client_form is not None
        assert state.client_form.errors == {}
        assert state.client_form.can_submit

    def test_edit_form_prefills_from_record(self) -> None:
        created = datetime(2024, 1, 1, tzinfo=UTC)
        client = CustomerRecord(id="c1", name="Alice", phone="0912345678", vin="V1", created_at=created)
        form = ui.open_client_form(ViewState(), client).client_form
        assert form is not None
        assert form.mode is FormMode.EDIT
        assert form.target_id == "c1"
        assert form.created_at == created
        assert form.draft.name == "Alice"
        assert form.draft.license_plate == ""
        assert form.can_submit

    def test_editing_without_open_form_fails(self) -> None:
        with pytest.raises(ValueError):
            ui.edit_client_form(ViewState(), name="x")

    @pytest.mark.parametrize("name", ["self", "state", "email"])
    def test_unknown_field_names_are_rejected(self, name: str) -> None:
        state = ui.open_client_form(ViewState())
        with pytest.raises(ValidationError):
            ui.edit_client_form(state, **{name: "x"})

    def test_close(self) -> None:
        state = ui.close_client_form(ui.open_client_form(ViewState()))
        assert state.client_form is None


class TestRecordForm:
    def test_new_form_defaults_date_to_today(self) -> None:
        state = ui.open_record_form(ViewState(), vin="V1", today=date(2024, 5, 6))
        form = state.record_form
        assert form is not None
        assert form.mode is FormMode.CREATE
        assert form.draft.vin == "V1"
        assert form.draft.date == "2024-05-06"
        assert not form.can_submit

    def test_new_form_requires_vin(self) -> None:
        with pytest.raises(ValueError):
            ui.open_record_form(ViewState(), vin="")

    def test_edit_form_prefills_from_record(self) -> None:
        record = MaintenanceRecord(id="m1", vin="V1", date="2024-01-01", item="檢查", price=800)
        form = ui.open_record_form(ViewState(), record=record).record_form
        assert form is not None
        assert form.mode is FormMode.EDIT
        assert form.target_id == "m1"
        assert form.draft.price == 800
        assert form.can_submit

    def test_edit_revalidates(self) -> None:
        state = ui.open_record_form(ViewState(), vin="V1", today=date(2024, 1, 1))
        state = ui.edit_record_form(state, item="輪胎換位", price="600")
        assert state.record_form is not None
        assert state.record_form.can_submit
        state = ui.edit_record_form(state, item=" ")
        assert state.record_form is not None
        assert not state.record_form.can_submit


def test_records_modal_open_close() -> None:
    state = ui.open_records_modal(ViewState(), "V1")
    assert state.records_modal_vin == "V1"
    assert ui.close_records_modal(state).records_modal_vin is None
