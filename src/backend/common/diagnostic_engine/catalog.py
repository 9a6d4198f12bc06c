from __future__ import annotations

import argparse
import json
from typing import Any, List

import yaml
from pydantic import BaseModel, Field

from .registry import registry

# Ensure built-in checks are imported/registered when generating a catalog.
from . import checks as _builtin_checks  # noqa: F401


class CheckCatalogEntry(BaseModel):
    prefix: str
    aliases: List[str] = Field(default_factory=list)
    arguments: List[str] = Field(default_factory=list)
    argument_kinds: List[str] = Field(default_factory=list)
    syntax: str
    description: str = ""

    module: str
    class_name: str


def build_catalog() -> List[CheckCatalogEntry]:
    entries: List[CheckCatalogEntry] = []
    for prefix in registry.ids():
        check_cls = registry.get(prefix)
        arg_names = list(check_cls.arg_names)
        entries.append(
            CheckCatalogEntry(
                prefix=prefix,
                aliases=list(check_cls.aliases),
                arguments=arg_names,
                argument_kinds=list(check_cls.arg_kinds),
                syntax=":".join([prefix, *(f"<{name}>" for name in arg_names)]),
                description=check_cls.description,
                module=check_cls.__module__,
                class_name=check_cls.__name__,
            )
        )

    entries.sort(key=lambda e: e.prefix)
    return entries


def _dump_json(catalog: list[dict[str, Any]]) -> str:
    return json.dumps(catalog, indent=2, sort_keys=True)


def _dump_yaml(catalog: list[dict[str, Any]]) -> str:
    return yaml.safe_dump(catalog, sort_keys=True)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="List the validation formula types the engine understands.")
    parser.add_argument(
        "--format",
        choices=("yaml", "json"),
        default="yaml",
        help="Output format (default: yaml).",
    )
    args = parser.parse_args(argv)

    catalog = [e.model_dump() for e in build_catalog()]
    if args.format == "json":
        print(_dump_json(catalog))
    else:
        print(_dump_yaml(catalog))


if __name__ == "__main__":
    main()
