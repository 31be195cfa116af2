"""evshop - Customer and maintenance admin for an electric-vehicle service shop."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("evshop-admin")
except PackageNotFoundError:
    __version__ = "0+local"
from evshop.admin import AdminView, Dialogs, RecordsModal, ShopAdmin
from evshop.config import ShopConfig
from evshop.exceptions import (
    BatchCommitError,
    DocumentNotFoundError,
    ShopConfigError,
    ShopError,
    StoreError,
)
from evshop.models import (
    CustomerDraft,
    CustomerRecord,
    MaintenanceDraft,
    MaintenanceRecord,
)
from evshop.state import SortDirection, SortKey, ViewState
from evshop.store import Document, DocumentStore, MemoryDocumentStore
from evshop.sync import ShopSync

__all__ = [
    "__version__",
    "AdminView",
    "BatchCommitError",
    "CustomerDraft",
    "CustomerRecord",
    "Dialogs",
    "Document",
    "DocumentNotFoundError",
    "DocumentStore",
    "MaintenanceDraft",
    "MaintenanceRecord",
    "MemoryDocumentStore",
    "RecordsModal",
    "ShopAdmin",
    "ShopConfig",
    "ShopConfigError",
    "ShopError",
    "ShopSync",
    "SortDirection",
    "SortKey",
    "StoreError",
    "ViewState",
]
