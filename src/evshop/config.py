"""Application configuration for evshop."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from evshop._constants import CLIENTS_COLLECTION, DEFAULT_PAGE_SIZE, PAGE_SIZE_OPTIONS, RECORDS_COLLECTION
from evshop.exceptions import ShopConfigError

BACKENDS = frozenset({"firestore", "memory"})


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise ShopConfigError(f"{name} must be an integer, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class ShopConfig:
    """Application configuration.

    Parameters
    ----------
    backend : str
        Document store backend, ``"firestore"`` or ``"memory"``.
    firestore_project : str or None
        Google Cloud project id. ``None`` lets the client library infer it
        from the environment.
    firestore_database : str or None
        Firestore database id. ``None`` selects the ``(default)`` database.
    credentials_file : str or None
        Path to a service account JSON key. ``None`` uses application
        default credentials.
    clients_collection : str
        Collection holding customer documents.
    records_collection : str
        Collection holding maintenance record documents.
    default_page_size : int
        Initial customer table page size; must be one of
        ``PAGE_SIZE_OPTIONS``.
    host : str
        Bind address of the web surface.
    port : int
        Bind port of the web surface.
    log_level : str
        Root logging level name.
    demo_data : bool
        Seed the memory backend with sample customers and records.
    """

    backend: str = "firestore"
    firestore_project: str | None = None
    firestore_database: str | None = None
    credentials_file: str | None = None
    clients_collection: str = CLIENTS_COLLECTION
    records_collection: str = RECORDS_COLLECTION
    default_page_size: int = DEFAULT_PAGE_SIZE
    host: str = "127.0.0.1"
    port: int = 8080
    log_level: str = "INFO"
    demo_data: bool = False

    def __post_init__(self) -> None:
        if self.backend not in BACKENDS:
            raise ShopConfigError(f"Unknown backend {self.backend!r}; expected one of {sorted(BACKENDS)}")
        if self.default_page_size not in PAGE_SIZE_OPTIONS:
            raise ShopConfigError(
                f"default_page_size must be one of {PAGE_SIZE_OPTIONS}, got {self.default_page_size}"
            )
        if not self.clients_collection or not self.records_collection:
            raise ShopConfigError("Collection names must be non-empty")

    @classmethod
    def from_env(cls, **overrides: Any) -> ShopConfig:
        """Create configuration from environment variables.

        Reads the ``EVSHOP_*`` variables. Explicit keyword arguments
        override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "EVSHOP_BACKEND": "backend",
            "EVSHOP_FIRESTORE_PROJECT": "firestore_project",
            "EVSHOP_FIRESTORE_DATABASE": "firestore_database",
            "EVSHOP_CREDENTIALS_FILE": "credentials_file",
            "EVSHOP_CLIENTS_COLLECTION": "clients_collection",
            "EVSHOP_RECORDS_COLLECTION": "records_collection",
            "EVSHOP_HOST": "host",
            "EVSHOP_LOG_LEVEL": "log_level",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        page_size_env = env.get("EVSHOP_DEFAULT_PAGE_SIZE")
        if page_size_env is not None and "default_page_size" not in overrides:
            config_kwargs["default_page_size"] = _env_int("EVSHOP_DEFAULT_PAGE_SIZE", page_size_env)

        port_env = env.get("EVSHOP_PORT")
        if port_env is not None and "port" not in overrides:
            config_kwargs["port"] = _env_int("EVSHOP_PORT", port_env)

        if "demo_data" not in overrides:
            config_kwargs["demo_data"] = _env_bool(env.get("EVSHOP_DEMO_DATA"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
