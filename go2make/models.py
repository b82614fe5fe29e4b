"""Core data models shared across go2make components."""

from __future__ import annotations

import enum
import posixpath
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


class DiagnosticKind(str, enum.Enum):
    """How the visitor treats a diagnostic reported for a unit."""

    IGNORABLE = "ignorable"
    FATAL = "fatal"


@dataclass(frozen=True)
class Diagnostic:
    """A single problem reported by introspection for one unit."""

    kind: DiagnosticKind
    message: str

    @property
    def fatal(self) -> bool:
        return self.kind is DiagnosticKind.FATAL


@dataclass(eq=False)
class Unit:
    """A compilation unit (a Go package) and its direct dependencies.

    Units compare by identity: two references to the same id within one run
    are expected to be the same object, which the introspector guarantees by
    interning units by id.
    """

    id: str
    source_files: List[str] = field(default_factory=list)
    dependencies: Dict[str, "Unit"] = field(default_factory=dict)
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def directory(self) -> Optional[str]:
        if not self.source_files:
            return None
        return posixpath.dirname(self.source_files[0])

    def __repr__(self) -> str:
        return f"Unit({self.id!r})"


@dataclass(frozen=True)
class Rule:
    """A build rule emitted for the downstream build tool."""

    target: str
    prerequisites: Tuple[str, ...] = ()
    recipe: Tuple[str, ...] = ()


__all__ = ["Diagnostic", "DiagnosticKind", "Rule", "Unit"]
