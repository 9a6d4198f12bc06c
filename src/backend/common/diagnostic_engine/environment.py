from __future__ import annotations

import math
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional


def coerce_number(value: Any) -> Optional[float]:
    """Return a finite float, or None for absent/non-numeric input."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip().replace(",", "")
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


class ValueEnvironment(Mapping[str, Optional[float]]):
    """Per-run KPI values with case-insensitive lookup.

    Canonical ids are kept as given; a lowercase index is built once so lookups
    never re-fold case. Values that are blank, non-numeric, NaN or infinite are
    stored as absent (None).
    """

    __slots__ = ("_values", "_index")

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        canonical: dict[str, Optional[float]] = {}
        index: dict[str, str] = {}
        for key, raw in (values or {}).items():
            kpi_id = str(key).strip()
            if not kpi_id:
                continue
            folded = kpi_id.lower()
            # Later duplicates (by case) replace earlier ones under the first spelling.
            canonical_id = index.setdefault(folded, kpi_id)
            canonical[canonical_id] = coerce_number(raw)
        self._values = MappingProxyType(canonical)
        self._index = MappingProxyType(index)

    def canonical_id(self, kpi_id: str) -> Optional[str]:
        return self._index.get(str(kpi_id).strip().lower())

    def get_value(self, kpi_id: str) -> Optional[float]:
        canonical = self.canonical_id(kpi_id)
        if canonical is None:
            return None
        return self._values[canonical]

    def has_value(self, kpi_id: str) -> bool:
        return self.get_value(kpi_id) is not None

    def present(self) -> dict[str, float]:
        return {k: v for k, v in self._values.items() if v is not None}

    def __getitem__(self, kpi_id: str) -> Optional[float]:
        canonical = self.canonical_id(kpi_id)
        if canonical is None:
            raise KeyError(kpi_id)
        return self._values[canonical]

    def __contains__(self, kpi_id: object) -> bool:
        return isinstance(kpi_id, str) and self.canonical_id(kpi_id) is not None

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"ValueEnvironment({dict(self._values)!r})"
