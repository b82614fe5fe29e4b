"""Ordering, prefix and path helpers plus JSON (de)serialisation of unit maps."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple

from .models import Diagnostic, DiagnosticKind, Unit


def sorted_ids(units: Mapping[str, Unit]) -> List[str]:
    """Return mapping keys in byte-wise lexicographic order."""
    return sorted(units)


def iter_sorted(units: Mapping[str, Unit]) -> Iterable[Unit]:
    for key in sorted_ids(units):
        yield units[key]


def rooted(unit_id: str, prefixes: Sequence[str]) -> bool:
    """Return True when ``unit_id`` equals or lives under one of ``prefixes``.

    Matching respects segment boundaries: ``a/b`` roots ``a/b/c`` but not
    ``a/bc``.
    """
    for prefix in prefixes:
        if unit_id == prefix or unit_id.startswith(prefix + "/"):
            return True
    return False


def maybe_relative(path: str, relative_to: str) -> Tuple[str, bool]:
    """Relativise ``path`` against ``relative_to`` when it is equal or nested.

    Returns the (possibly unchanged) path and whether it was relativised. A
    path equal to ``relative_to`` becomes ``"."``; ``"/"`` relativises every
    absolute path.
    """
    if relative_to == "/":
        if path.startswith("/"):
            return path.lstrip("/") or ".", True
        return path, False
    if path == relative_to:
        return ".", True
    if path.startswith(relative_to + "/"):
        return path[len(relative_to) + 1 :], True
    return path, False


def drop_trailing_slash(value: str) -> str:
    return value.rstrip("/")


def dump_units(units: Mapping[str, Unit]) -> Dict[str, Dict[str, Any]]:
    """Return a JSON-ready structure describing ``units``."""
    payload: Dict[str, Dict[str, Any]] = {}
    for unit in iter_sorted(units):
        payload[unit.id] = {
            "id": unit.id,
            "directory": unit.directory,
            "source_files": list(unit.source_files),
            "dependencies": sorted_ids(unit.dependencies),
            "diagnostics": [
                {"kind": diag.kind.value, "message": diag.message}
                for diag in unit.diagnostics
            ],
        }
    return payload


def load_units(payload: Mapping[str, Any]) -> Dict[str, Unit]:
    """Rebuild a unit map from :func:`dump_units` output (``--output json`` dumps).

    Dependencies that are not themselves part of the payload are dropped, as
    they were never part of the dumped graph.
    """
    if not isinstance(payload, Mapping):
        raise ValueError("unit payload must be a mapping")

    units: Dict[str, Unit] = {}
    for key, raw in payload.items():
        if not isinstance(raw, Mapping):
            raise ValueError(f"unit entry {key!r} must be a mapping")
        diagnostics = [
            Diagnostic(kind=DiagnosticKind(item["kind"]), message=str(item["message"]))
            for item in raw.get("diagnostics", [])
        ]
        units[key] = Unit(
            id=str(raw.get("id", key)),
            source_files=[str(path) for path in raw.get("source_files", [])],
            diagnostics=diagnostics,
        )

    for key, raw in payload.items():
        unit = units[key]
        for dep_id in raw.get("dependencies", []):
            dep = units.get(dep_id)
            if dep is not None:
                unit.dependencies[dep_id] = dep
    return units


__all__ = [
    "drop_trailing_slash",
    "dump_units",
    "iter_sorted",
    "load_units",
    "maybe_relative",
    "rooted",
    "sorted_ids",
]
