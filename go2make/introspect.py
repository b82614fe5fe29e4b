"""Package introspection via ``go list``."""

from __future__ import annotations

import json
import posixpath
import subprocess
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from .logging import get_logger
from .models import Diagnostic, DiagnosticKind, Unit

logger = get_logger("introspect")

Runner = Callable[..., str]

# go list reports these for packages that legitimately have no sources to
# build, e.g. when build tags exclude every file.
_IGNORABLE_MARKERS = (
    "build constraints exclude all Go files",
    "no Go files in",
    "no non-test Go files in",
)

# Pseudo-imports that never correspond to a listed package.
_PSEUDO_IMPORTS = {"C"}


class IntrospectionError(RuntimeError):
    """Raised when the unit graph cannot be produced at all."""


def classify(message: str) -> DiagnosticKind:
    if any(marker in message for marker in _IGNORABLE_MARKERS):
        return DiagnosticKind.IGNORABLE
    return DiagnosticKind.FATAL


class GoListIntrospector:
    """Loads the unit graph for a set of target patterns with ``go list``."""

    def __init__(
        self,
        *,
        runner: Runner | None = None,
        go: str = "go",
        cwd: Path | None = None,
    ) -> None:
        self._runner = runner or self._default_runner
        self.go = go
        self.cwd = cwd or Path.cwd()

    def command(self, targets: Sequence[str], tags: Sequence[str] = (), *, deps: bool = False) -> List[str]:
        args = [self.go, "list", "-e", "-json"]
        if deps:
            args.append("-deps")
        args.extend(["-tags", ",".join(tags)])
        args.extend(targets)
        return args

    def load(self, targets: Sequence[str], tags: Sequence[str] = (), *, deps: bool = False) -> List[Unit]:
        """Return the root units matched by ``targets``.

        With ``deps`` the returned units link to fully listed dependencies;
        otherwise dependencies are placeholders carrying only their id.
        """
        args = self.command(targets, tags, deps=deps)
        logger.debug("running %s", " ".join(args))
        try:
            output = self._runner(args, cwd=self.cwd)
        except FileNotFoundError as exc:
            raise IntrospectionError(f"{self.go} executable not found") from exc
        except subprocess.CalledProcessError as exc:
            detail = (exc.stderr or "").strip() or f"exit status {exc.returncode}"
            raise IntrospectionError(f"{' '.join(args)}: {detail}") from exc
        records = list(decode_stream(output))
        return build_units(records)

    @staticmethod
    def _default_runner(args: Iterable[str], *, cwd: Path) -> str:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd),
            check=True,
            text=True,
            capture_output=True,
        )
        return completed.stdout


def decode_stream(text: str) -> Iterable[Dict[str, Any]]:
    """Yield each JSON object from ``go list -json``'s concatenated output."""
    decoder = json.JSONDecoder()
    index = 0
    length = len(text)
    while True:
        while index < length and text[index].isspace():
            index += 1
        if index >= length:
            return
        try:
            record, index = decoder.raw_decode(text, index)
        except json.JSONDecodeError as exc:
            raise IntrospectionError(f"failed to decode go list output: {exc}") from exc
        if not isinstance(record, dict):
            raise IntrospectionError("go list output must contain JSON objects")
        yield record


def build_units(records: Sequence[Dict[str, Any]]) -> List[Unit]:
    """Build interned units from go list records and return the root ones.

    Roots are records not marked ``DepOnly``; every import path maps to a
    single :class:`Unit` instance.
    """
    units: Dict[str, Unit] = {}
    roots: List[Unit] = []
    for record in records:
        import_path = record.get("ImportPath")
        if not isinstance(import_path, str) or not import_path:
            raise IntrospectionError("go list record without ImportPath")
        unit = units.get(import_path)
        if unit is None:
            unit = Unit(id=import_path)
            units[import_path] = unit
        unit.source_files = _source_files(record)
        unit.diagnostics = _diagnostics(record)
        if not record.get("DepOnly"):
            roots.append(unit)

    for record in records:
        unit = units[record["ImportPath"]]
        for dep_id in record.get("Imports") or []:
            if dep_id in _PSEUDO_IMPORTS:
                continue
            dep = units.get(dep_id)
            if dep is None:
                dep = Unit(id=dep_id)
                units[dep_id] = dep
            unit.dependencies[dep_id] = dep
    return roots


def _source_files(record: Dict[str, Any]) -> List[str]:
    directory: Optional[str] = record.get("Dir")
    files = (record.get("GoFiles") or []) + (record.get("CgoFiles") or [])
    if not directory:
        return list(files)
    return [posixpath.join(directory, name) for name in files]


def _diagnostics(record: Dict[str, Any]) -> List[Diagnostic]:
    error = record.get("Error")
    if not isinstance(error, dict):
        return []
    message = str(error.get("Err", "")).strip()
    pos = error.get("Pos")
    if pos:
        message = f"{pos}: {message}"
    return [Diagnostic(kind=classify(message), message=message)]


__all__ = [
    "GoListIntrospector",
    "IntrospectionError",
    "build_units",
    "classify",
    "decode_stream",
]
