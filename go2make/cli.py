"""CLI entrypoint for go2make."""

from __future__ import annotations

import argparse
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from .config import CONFIG_FILENAME, ConfigError, Go2MakeConfig, load_config
from .emitter import RuleEmitter
from .fsutil import write_if_changed
from .graph import drop_trailing_slash
from .introspect import GoListIntrospector, IntrospectionError
from .logging import configure_logging, get_logger
from .models import Diagnostic
from .render import OUTPUT_FORMATS, MakeRenderer, render_json
from .visitor import GraphVisitor

logger = get_logger("cli")

_DESCRIPTION = """\
%(prog)s calculates all of the dependencies of a set of Go packages and
emits a Makefile (unless otherwise specified) which can be used to track
dependencies.

Package specifications may be simple (e.g. 'example.com/txt/color') or
recursive (e.g. 'example.com/txt/...'), and may be Go package names or
relative file paths (e.g. './...').
"""

_EPILOG = """\
Example output:
  .go2make/by-unit/example.com/txt/color/_unit: .go2make/by-unit/example.com/txt/color/_files \\
    color/color.go \\
    .go2make/by-unit/bytes/_unit \\
    .go2make/by-unit/example.com/pretty/_unit
  \t@mkdir -p $(@D)
  \t@touch $@

  .go2make/by-path/color/_unit: .go2make/by-unit/example.com/txt/color/_unit
  \t@mkdir -p $(@D)
  \t@touch $@

User Makefiles can include the generated output and trigger actions when the
Go packages need to be rebuilt. The 'by-unit/.../_unit' rules are named by the
Go package path (e.g. example.com/txt/color). The 'by-path/.../_unit' rules
are named by the package directory relative to --relative-to, when the
package lives below it.
"""


@dataclass
class Settings:
    """Fully resolved settings for one run."""

    targets: List[str]
    roots: List[str]
    prune: List[str]
    tags: List[str]
    imports: bool
    relative_to: str
    state_dir: str
    output: str
    ignore_errors: bool
    fail_fast: bool
    source_glob: str
    output_file: Optional[Path] = None


class UsageError(ConfigError):
    """A configuration error that also warrants printing usage."""


class VisitFailed(RuntimeError):
    """Raised when visiting the unit graph yields fatal diagnostics."""

    def __init__(self, errors: Sequence[Diagnostic]) -> None:
        super().__init__(f"{len(errors)} error(s) processing packages")
        self.errors = list(errors)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="go2make",
        usage="%(prog)s [FLAG...] <PKG...>",
        description=_DESCRIPTION,
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("targets", nargs="*", metavar="PKG", help="Package patterns to load (default: .).")
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        default=False,
        help="Enable debugging output.",
    )
    parser.add_argument(
        "-D",
        "--debug-time",
        action="store_true",
        default=False,
        help="Enable debugging output with timestamps.",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Output format (mainly for debugging): one of make | json.",
    )
    parser.add_argument(
        "--output-file",
        type=Path,
        default=None,
        help="Write output to this file, leaving it untouched when unchanged.",
    )
    parser.add_argument(
        "--root",
        action="append",
        default=None,
        help="Only process packages under specific prefixes (may be specified multiple times).",
    )
    parser.add_argument(
        "--prune",
        action="append",
        default=None,
        help="Package prefixes to prune (recursive, may be specified multiple times).",
    )
    parser.add_argument(
        "--tag",
        action="append",
        default=None,
        help="Build tags to pass to Go (see 'go help build', may be specified multiple times).",
    )
    parser.add_argument(
        "--relative-to",
        default=None,
        help="Emit by-path rules for packages relative to this path (default: .).",
    )
    parser.add_argument(
        "--imports",
        action="store_true",
        default=None,
        help="Process all imports of all packages, recursively.",
    )
    parser.add_argument(
        "--state-dir",
        default=None,
        help="Directory in which to store state used by make (default: .go2make).",
    )
    parser.add_argument(
        "--ignore-errors",
        action="store_true",
        default=None,
        help="Treat package errors as ignorable and keep the affected packages.",
    )
    parser.add_argument(
        "--fail-fast",
        action="store_true",
        default=None,
        help="Stop at the first root package whose dependencies report errors.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"Path to a configuration file (default: ./{CONFIG_FILENAME} when present).",
    )
    return parser


def _split(values: Optional[Sequence[str]]) -> Optional[List[str]]:
    if values is None:
        return None
    out: List[str] = []
    for value in values:
        out.extend(part for part in value.split(",") if part)
    return out


def resolve_settings(args: argparse.Namespace, config: Go2MakeConfig) -> Settings:
    """Merge parsed arguments over file configuration and validate the result."""
    output = args.output if args.output is not None else config.output
    if output not in OUTPUT_FORMATS:
        raise UsageError(f"unknown output format {output!r}")

    relative_to = args.relative_to if args.relative_to is not None else config.relative_to
    if relative_to == "":
        raise ConfigError("--relative-to must be defined")

    state_dir = drop_trailing_slash(args.state_dir if args.state_dir is not None else config.state_dir)
    if state_dir == "":
        raise ConfigError("--state-dir must be defined")

    roots = _split(args.root)
    prune = _split(args.prune)
    tags = _split(args.tag)

    return Settings(
        targets=list(args.targets) or ["."],
        roots=[drop_trailing_slash(item) for item in (roots if roots is not None else config.roots)],
        prune=[drop_trailing_slash(item) for item in (prune if prune is not None else config.prune)],
        tags=tags if tags is not None else list(config.tags),
        imports=bool(args.imports if args.imports is not None else config.imports),
        relative_to=drop_trailing_slash(os.path.abspath(relative_to)) or "/",
        state_dir=state_dir,
        output=output,
        ignore_errors=bool(args.ignore_errors if args.ignore_errors is not None else config.ignore_errors),
        fail_fast=bool(args.fail_fast if args.fail_fast is not None else config.fail_fast),
        source_glob=config.source_glob,
        output_file=args.output_file,
    )


def generate(settings: Settings, introspector: GoListIntrospector) -> str:
    """Load, visit and render the unit graph described by ``settings``."""
    logger.debug("targets: %s", settings.targets)
    logger.debug("roots: %s", settings.roots)
    logger.debug("prune: %s", settings.prune)
    logger.debug("tags: %s", settings.tags)
    logger.debug("relative-to: %s", settings.relative_to)

    units = introspector.load(settings.targets, settings.tags, deps=settings.imports)

    visitor = GraphVisitor(
        settings.roots,
        settings.prune,
        imports=settings.imports,
        ignore_errors=settings.ignore_errors,
        fail_fast=settings.fail_fast,
    )
    result = visitor.visit(units)
    if not result.ok:
        raise VisitFailed(result.errors)

    if settings.output == "json":
        return render_json(result.retained)

    emitter = RuleEmitter(settings.state_dir, settings.relative_to, source_glob=settings.source_glob)
    return MakeRenderer().render(emitter.emit(result.retained))


def main(argv: list[str] | None = None, *, introspector: GoListIntrospector | None = None) -> None:
    """CLI entrypoint for go2make."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(debug=bool(args.debug), timed=bool(args.debug_time))

    try:
        if args.config is not None and not args.config.exists():
            raise ConfigError(f"config file not found: {args.config}")
        config = load_config(args.config if args.config is not None else Path.cwd() / CONFIG_FILENAME)
        if config.path is not None:
            logger.debug("config: %s", config.path)
        settings = resolve_settings(args, config)
    except ConfigError as exc:
        if isinstance(exc, UsageError):
            parser.print_usage(sys.stderr)
        parser.exit(1, f"error: {exc}\n")

    try:
        text = generate(settings, introspector or GoListIntrospector())
    except IntrospectionError as exc:
        parser.exit(1, f"error loading packages: {exc}\n")
    except VisitFailed as exc:
        lines = "".join(f"  {error.message}\n" for error in exc.errors)
        parser.exit(1, f"error processing packages:\n{lines}")

    if settings.output_file is not None:
        if write_if_changed(settings.output_file, text):
            logger.debug("wrote %s", settings.output_file)
        else:
            logger.debug("%s unchanged", settings.output_file)
        return
    sys.stdout.write(text)


if __name__ == "__main__":
    main(sys.argv[1:])
