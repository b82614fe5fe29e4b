"""Rule emitter: turns retained units into incremental build rules."""

from __future__ import annotations

from typing import List, Mapping, Tuple

from .graph import iter_sorted, maybe_relative, sorted_ids
from .models import Rule, Unit

MKDIR = "@mkdir -p $(@D)"
TOUCH = "@touch $@"
TOUCH_RECIPE: Tuple[str, ...] = (MKDIR, TOUCH)


def file_set_recipe(source_glob: str) -> Tuple[str, ...]:
    """Recipe that rewrites ``$@`` only when the sorted file listing changes."""
    return (
        MKDIR,
        f"@ls $</{source_glob} | LC_ALL=C sort > $@.tmp",
        "@if ! cmp -s $@.tmp $@; then \\\n    cat $@.tmp > $@; \\\nfi",
        "@rm -f $@.tmp",
    )


class RuleEmitter:
    """Emits file-set, unit and path-alias rules for each retained unit.

    * ``<state_dir>/by-unit/<id>/_files`` depends on the unit's directory and
      is evaluated whenever the directory changes, but its content (and so
      its timestamp) only moves when the set of source files changes.
    * ``<state_dir>/by-unit/<id>/_unit`` depends on the file set, the source
      files and the unit rules of retained dependencies. It is a marker file
      rather than a directory so that creating nested state directories does
      not look like a source change.
    * ``<state_dir>/by-path/<dir>/_unit`` aliases the unit rule by its path
      below ``relative_to``.
    """

    def __init__(self, state_dir: str, relative_to: str, *, source_glob: str = "*.go") -> None:
        if not state_dir:
            raise ValueError("state_dir must not be empty")
        if not relative_to:
            raise ValueError("relative_to must not be empty")
        self.state_dir = state_dir
        self.relative_to = relative_to
        self.source_glob = source_glob

    def files_target(self, unit_id: str) -> str:
        return f"{self.state_dir}/by-unit/{unit_id}/_files"

    def unit_target(self, unit_id: str) -> str:
        return f"{self.state_dir}/by-unit/{unit_id}/_unit"

    def path_target(self, rel_dir: str) -> str:
        return f"{self.state_dir}/by-path/{rel_dir}/_unit"

    def emit(self, retained: Mapping[str, Unit]) -> List[Rule]:
        rules: List[Rule] = []
        for unit in iter_sorted(retained):
            rules.extend(self.emit_unit(unit, retained))
        return rules

    def emit_unit(self, unit: Unit, retained: Mapping[str, Unit]) -> List[Rule]:
        rules: List[Rule] = []
        directory = unit.directory
        rel_dir, is_rel = "", False
        prerequisites: List[str] = []

        if directory is not None:
            rel_dir, is_rel = maybe_relative(directory, self.relative_to)
            files_target = self.files_target(unit.id)
            rules.append(
                Rule(
                    target=files_target,
                    prerequisites=(directory,),
                    recipe=file_set_recipe(self.source_glob),
                )
            )
            prerequisites.append(files_target)

        for path in unit.source_files:
            prerequisites.append(maybe_relative(path, self.relative_to)[0])

        for dep_id in sorted_ids(unit.dependencies):
            if dep_id in retained:
                prerequisites.append(self.unit_target(dep_id))

        unit_target = self.unit_target(unit.id)
        rules.append(Rule(target=unit_target, prerequisites=tuple(prerequisites), recipe=TOUCH_RECIPE))

        if is_rel:
            rules.append(
                Rule(target=self.path_target(rel_dir), prerequisites=(unit_target,), recipe=TOUCH_RECIPE)
            )
        return rules


__all__ = ["RuleEmitter", "file_set_recipe"]
