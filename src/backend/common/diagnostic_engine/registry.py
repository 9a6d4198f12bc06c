from __future__ import annotations

from typing import Dict, Iterable, Optional, Type

from .check import FormulaCheck


class CheckRegistry:
    def __init__(self):
        self._checks: Dict[str, FormulaCheck] = {}
        self._primary: Dict[str, Type[FormulaCheck]] = {}

    def register(self, check_cls: Type[FormulaCheck]) -> None:
        prefix = getattr(check_cls, "prefix", None)
        if not prefix:
            raise ValueError("Check class missing prefix")
        keys = [name.upper() for name in (prefix, *check_cls.aliases)]
        for key in keys:
            if key in self._checks:
                raise ValueError(f"Duplicate formula prefix registered: {key}")
        instance = check_cls()
        for key in keys:
            self._checks[key] = instance
        self._primary[prefix.upper()] = check_cls

    def lookup(self, prefix: str) -> Optional[FormulaCheck]:
        return self._checks.get(prefix.strip().upper())

    def get(self, prefix: str) -> Type[FormulaCheck]:
        return self._primary[prefix.upper()]

    def ids(self) -> Iterable[str]:
        return self._primary.keys()


registry = CheckRegistry()


def register_check(check_cls: Type[FormulaCheck]) -> Type[FormulaCheck]:
    registry.register(check_cls)
    return check_cls
