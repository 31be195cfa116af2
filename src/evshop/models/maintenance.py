"""Maintenance record model."""

from __future__ import annotations

import math
import re
from typing import Annotated, Any

from pydantic import BeforeValidator, Field

from evshop.models._base import DocText, ShopBaseModel, coerce_date_text

# Plain decimal notation only: no digit separators, no non-ASCII digits.
_DECIMAL_PATTERN = re.compile(r"[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?")


def coerce_price(value: Any) -> int | float:
    """Coerce form or document input to a non-negative price.

    Numeric strings parse (``"150"`` -> ``150``). Anything non-numeric,
    non-finite or negative becomes ``0``. Integral values are returned as
    ``int``.
    """
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, str):
        text = value.strip()
        if _DECIMAL_PATTERN.fullmatch(text) is None:
            return 0
        number = float(text)
    elif isinstance(value, (int, float)):
        number = float(value)
    else:
        return 0
    if not math.isfinite(number) or number < 0:
        return 0
    if number.is_integer():
        return int(number)
    return number


class MaintenanceRecord(ShopBaseModel):
    """A single maintenance line item for a vehicle."""

    id: str = Field(default="")
    """Store-assigned document id."""
    vin: DocText = None
    """VIN of the serviced vehicle."""
    date: Annotated[str | None, BeforeValidator(coerce_date_text)] = None
    """Service date (``YYYY-MM-DD``)."""
    item: DocText = None
    """Description of the work done."""
    price: Annotated[int | float, BeforeValidator(coerce_price)] = 0
    """Charged price."""

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> MaintenanceRecord:
        """Build a record from a stored document."""
        return cls.model_validate({**data, "id": doc_id})
