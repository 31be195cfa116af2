"""View-state layer.

Derives what the customer page shows from the two mirrored collections plus
an immutable ``ViewState``. All functions are pure.
"""

from evshop.state.derive import (
    ClientPage,
    ClientRow,
    build_client_page,
    filter_clients,
    latest_records,
    paginate,
    records_for_vin,
    sort_clients,
    total_pages,
    visible_clients,
)
from evshop.state.ui import ClientForm, FormMode, RecordForm, SortDirection, SortKey, ViewState

__all__ = [
    "ClientForm",
    "ClientPage",
    "ClientRow",
    "FormMode",
    "RecordForm",
    "SortDirection",
    "SortKey",
    "ViewState",
    "build_client_page",
    "filter_clients",
    "latest_records",
    "paginate",
    "records_for_vin",
    "sort_clients",
    "total_pages",
    "visible_clients",
]
