"""Base model and shared coercions for stored documents.

Every document model inherits from :class:`ShopBaseModel` which provides:

* ``alias_generator=to_camel`` so the camelCase document keys written by
  the shop front-end (``licensePlate``, ``createdAt``) map automatically to
  snake_case fields.
* ``to_document()`` producing the store payload (every field except the
  store-assigned ``id``).

Timestamps pass through :func:`parse_timestamp`, which accepts every shape a
creation time has been observed in: Firestore datetimes, epoch seconds or
milliseconds, ISO-8601 strings and exported ``{"seconds", "nanoseconds"}``
maps.
"""

from __future__ import annotations

import math
from datetime import UTC, date, datetime
from typing import Annotated, Any, ClassVar

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel

# Threshold to distinguish seconds from milliseconds.
_MS_THRESHOLD = 1_000_000_000_000


def parse_timestamp(value: Any) -> datetime | None:
    """Convert a stored timestamp to an aware UTC datetime.

    Returns ``None`` when the value is missing or cannot be interpreted.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value
    if isinstance(value, dict) and "seconds" in value:
        seconds = float(value.get("seconds") or 0)
        nanos = float(value.get("nanoseconds") or 0)
        return datetime.fromtimestamp(seconds + nanos / 1e9, tz=UTC)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        ts = float(value)
        if ts >= _MS_THRESHOLD:
            ts /= 1000
        return datetime.fromtimestamp(ts, tz=UTC)
    return None


def coerce_text(value: Any) -> str | None:
    """Stringify scalar document values; ``None`` stays ``None``."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return str(value).lower()
    return str(value)


def coerce_date_text(value: Any) -> str | None:
    """Normalise a calendar date to ``YYYY-MM-DD`` text."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return coerce_text(value)


DocTimestamp = Annotated[datetime | None, BeforeValidator(parse_timestamp)]
"""Annotated type that coerces stored timestamps to UTC datetimes."""

DocText = Annotated[str | None, BeforeValidator(coerce_text)]
"""Annotated type for free-text document fields."""


class ShopBaseModel(BaseModel):
    """Base for documents mirrored from the store."""

    _DOCUMENT_EXCLUDE: ClassVar[frozenset[str]] = frozenset({"id"})

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_document(self) -> dict[str, Any]:
        """Return the store payload for this model (identity excluded)."""
        return self.model_dump(by_alias=True, exclude=set(self._DOCUMENT_EXCLUDE))
