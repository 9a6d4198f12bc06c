from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Iterable, List, Mapping, Optional, TypeVar

from common.diagnostic_engine.environment import coerce_number
from common.diagnostic_engine.models import ConfigWarning

T = TypeVar("T")

_TRUE = {"true", "yes", "y", "1", "x", "active", "on"}
_FALSE = {"false", "no", "n", "0", "inactive", "off"}


@dataclass
class RowLoad(Generic[T]):
    """Parsed models plus the warnings raised by rows that were degraded or dropped."""

    items: List[T] = field(default_factory=list)
    warnings: List[ConfigWarning] = field(default_factory=list)

    def warn(self, source: str, ref: str, message: str) -> None:
        self.warnings.append(ConfigWarning(source=source, ref=ref, message=message))


def _norm_key(key: Any) -> str:
    return str(key).strip().lower().replace("_", "").replace(" ", "").replace("-", "")


class Row:
    """Case/underscore-insensitive view over one flat config row.

    `kpi_id`, `kpiId` and `KPI ID` all address the same column.
    """

    def __init__(self, raw: Mapping[str, Any], position: int):
        if not isinstance(raw, Mapping):
            raise ValueError("Config rows must be mappings of column name to value.")
        self._raw = {_norm_key(k): v for k, v in raw.items()}
        self.position = position

    def text(self, *names: str, default: str = "") -> str:
        for name in names:
            value = self._raw.get(_norm_key(name))
            if value is not None and str(value).strip():
                return str(value).strip()
        return default

    def number(self, *names: str) -> Optional[float]:
        return coerce_number(self.text(*names))

    def has(self, *names: str) -> bool:
        return bool(self.text(*names))

    def flag(self, *names: str, default: bool = True) -> bool:
        text = self.text(*names).lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
        return default

    def items(self, *names: str, sep: str = ",") -> List[str]:
        text = self.text(*names)
        return [part.strip() for part in text.split(sep) if part.strip()]

    def numbered(self, stem: str) -> List[str]:
        """Values of `<stem>_1`, `<stem>_2`, ... in column order."""
        prefix = _norm_key(stem)
        found = []
        for key, value in self._raw.items():
            suffix = key[len(prefix):]
            if key.startswith(prefix) and suffix.isdigit() and value is not None and str(value).strip():
                found.append((int(suffix), str(value).strip()))
        return [value for _, value in sorted(found)]


def iter_rows(rows: Iterable[Mapping[str, Any]]) -> Iterable[Row]:
    for position, raw in enumerate(rows, start=1):
        yield Row(raw, position)
