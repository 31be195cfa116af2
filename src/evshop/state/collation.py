"""Locale-aware ordering for text columns."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Protocol

import icu

#: Customer names and plates are ordered the way the shop's staff read them.
COLLATION_LOCALE = "zh_Hant_TW"


class TextCollator(Protocol):
    """Anything that maps a string to a comparable sort key."""

    def sort_key(self, string: str) -> Any:
        ...


class IcuCollator:
    """ICU collator for one locale; sort keys are ``bytes``."""

    def __init__(self, locale: str = COLLATION_LOCALE) -> None:
        self.locale = locale
        self._collator = icu.Collator.createInstance(icu.Locale(locale))

    def sort_key(self, string: str) -> bytes:
        return self._collator.getSortKey(string)


@lru_cache(maxsize=1)
def default_collator() -> TextCollator:
    """Shared Traditional Chinese (Taiwan) collator.

    Han characters order by stroke count, Latin text case-insensitively.
    Building the collator loads ICU data, so it happens once per process,
    on first use.
    """
    return IcuCollator()
