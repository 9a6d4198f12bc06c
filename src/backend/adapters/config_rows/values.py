from __future__ import annotations

from typing import Any, Iterable, Mapping, Union

from common.diagnostic_engine.environment import ValueEnvironment

from .rows import iter_rows

_ABSENT = {"", "n/a", "na", "none", "null", "-", "--"}


def _clean(value: Any) -> Any:
    if isinstance(value, str):
        text = value.strip()
        if text.lower() in _ABSENT:
            return None
        return text.replace("$", "").replace("%", "")
    return value


def value_environment_from_rows(
    rows: Union[Mapping[str, Any], Iterable[Mapping[str, Any]]],
) -> ValueEnvironment:
    """
    Build a ValueEnvironment from either a flat mapping ({"revenue": "1200"})
    or rows shaped like {"kpi_id": "revenue", "value": "1200"}.

    Blank, "n/a" and non-numeric values become absent. "$" and "%" are
    stripped so sheet-formatted values still parse.
    """
    if isinstance(rows, Mapping):
        return ValueEnvironment({key: _clean(value) for key, value in rows.items()})

    values: dict[str, Any] = {}
    for row in iter_rows(rows):
        kpi_id = row.text("kpi_id", "id")
        if kpi_id:
            values[kpi_id] = _clean(row.text("value"))
    return ValueEnvironment(values)
