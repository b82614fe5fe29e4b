"""Output serializers for emitted rules and retained units."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Mapping, Sequence

from jinja2 import Environment, FileSystemLoader

from .graph import dump_units
from .models import Rule, Unit

OUTPUT_FORMATS = ("make", "json")


class MakeRenderer:
    """Renders rules in Make syntax from the bundled jinja2 template."""

    TEMPLATE_NAME = "make.j2"

    def __init__(self, templates_dir: Path | None = None) -> None:
        self.templates_dir = templates_dir
        self._env = self._create_env(templates_dir)

    def render(self, rules: Sequence[Rule]) -> str:
        template = self._env.get_template(self.TEMPLATE_NAME)
        return template.render(rules=rules, tab="\t")

    @staticmethod
    def _create_env(templates_dir: Path | None) -> Environment:
        directories = []
        if templates_dir:
            directories.append(str(templates_dir))
        directories.append(str(Path(__file__).with_name("templates")))
        loader = FileSystemLoader(directories)
        return Environment(
            loader=loader,
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )


def render_json(units: Mapping[str, Unit]) -> str:
    return json.dumps(dump_units(units), indent=2, sort_keys=True) + "\n"


__all__ = ["MakeRenderer", "OUTPUT_FORMATS", "render_json"]
