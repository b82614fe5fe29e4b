"""Graph visitor: filters, deduplicates and optionally expands the unit graph."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Sequence

from .graph import iter_sorted, rooted
from .logging import get_logger
from .models import Diagnostic, Unit

logger = get_logger("visitor")


@dataclass
class VisitResult:
    """Retained units keyed by id plus the fatal diagnostics encountered."""

    retained: Dict[str, Unit] = field(default_factory=dict)
    errors: List[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class GraphVisitor:
    """Walks units from the given roots and builds the retained set.

    Within one root's closure, errors from sibling dependencies are
    accumulated. Across roots, errors are accumulated as well unless
    ``fail_fast`` is set, in which case the first root that yields errors
    stops the walk and only its errors are reported.
    """

    def __init__(
        self,
        roots: Sequence[str] = (),
        prune: Sequence[str] = (),
        *,
        imports: bool = False,
        ignore_errors: bool = False,
        fail_fast: bool = False,
    ) -> None:
        self.roots = list(roots)
        self.prune = list(prune)
        self.imports = imports
        self.ignore_errors = ignore_errors
        self.fail_fast = fail_fast

    def visit(self, units: Iterable[Unit]) -> VisitResult:
        """Visit each root unit in order and return the retained set."""
        result = VisitResult()
        for unit in units:
            errors = self.visit_unit(unit, result.retained)
            if not errors:
                continue
            if self.fail_fast:
                result.errors = errors
                return result
            result.errors.extend(errors)
        return result

    def visit_unit(self, unit: Unit, retained: Dict[str, Unit]) -> List[Diagnostic]:
        """Visit ``unit`` (and its imports when enabled), committing into ``retained``.

        Returns the fatal diagnostics found; an empty list means success.
        Imports are walked depth-first with an explicit stack of sorted
        dependency iterators, so long import chains never hit the
        interpreter's recursion limit.
        """
        errors: List[Diagnostic] = []
        stack: List[Iterator[Unit]] = []
        if self._commit(unit, retained, errors):
            self._push_imports(unit, stack)
        while stack:
            dep = next(stack[-1], None)
            if dep is None:
                stack.pop()
                continue
            if self._commit(dep, retained, errors):
                self._push_imports(dep, stack)
        return errors

    def _commit(self, unit: Unit, retained: Dict[str, Unit], errors: List[Diagnostic]) -> bool:
        """Filter and commit a single unit; fatal diagnostics land in ``errors``."""
        logger.debug("visiting unit %s", unit.id)
        seen = retained.get(unit.id)
        if seen is not None:
            if seen is not unit:
                logger.debug("  %s was already visited as a different instance", unit.id)
            else:
                logger.debug("  %s was already visited", unit.id)
            return False

        if self.roots and not rooted(unit.id, self.roots):
            logger.debug("  %s is not under an allowed root", unit.id)
            return False

        if self.prune and rooted(unit.id, self.prune):
            logger.debug("  %s pruned", unit.id)
            return False

        fatal = self._fatal_diagnostics(unit)
        if fatal:
            errors.extend(fatal)
            return False

        logger.debug("  %s is new", unit.id)
        retained[unit.id] = unit
        return True

    def _push_imports(self, unit: Unit, stack: List[Iterator[Unit]]) -> None:
        if not self.imports or not unit.dependencies:
            return
        logger.debug("  %s has %d imports", unit.id, len(unit.dependencies))
        stack.append(iter(list(iter_sorted(unit.dependencies))))

    def _fatal_diagnostics(self, unit: Unit) -> List[Diagnostic]:
        if not unit.diagnostics:
            return []
        logger.debug("  %s has errors:", unit.id)
        fatal: List[Diagnostic] = []
        for diag in unit.diagnostics:
            logger.debug("    %r", diag.message)
            if not diag.fatal or self.ignore_errors:
                logger.debug("    ignoring error")
                continue
            fatal.append(diag)
        return fatal


__all__ = ["GraphVisitor", "VisitResult"]
