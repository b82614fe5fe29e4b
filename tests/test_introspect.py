"""Tests for go list based introspection."""

from __future__ import annotations

import json
import subprocess
from pathlib import Path

import pytest

from go2make.introspect import (
    GoListIntrospector,
    IntrospectionError,
    build_units,
    classify,
    decode_stream,
)
from go2make.models import DiagnosticKind


def _stream(*records: dict) -> str:
    return "".join(json.dumps(record, indent="\t") + "\n" for record in records)


def test_command_includes_tags_and_deps() -> None:
    introspector = GoListIntrospector(runner=lambda args, cwd: "")

    assert introspector.command(["./..."], ["foo", "bar"], deps=True) == [
        "go",
        "list",
        "-e",
        "-json",
        "-deps",
        "-tags",
        "foo,bar",
        "./...",
    ]
    assert introspector.command(["."]) == ["go", "list", "-e", "-json", "-tags", "", "."]


def test_decode_stream_reads_concatenated_objects() -> None:
    text = _stream({"ImportPath": "a"}, {"ImportPath": "b"})

    assert [record["ImportPath"] for record in decode_stream(text)] == ["a", "b"]


def test_decode_stream_rejects_garbage() -> None:
    with pytest.raises(IntrospectionError):
        list(decode_stream('{"ImportPath": "a"} not-json'))


def test_load_builds_interned_units(tmp_path: Path) -> None:
    calls: list[tuple[list[str], Path]] = []
    output = _stream(
        {
            "ImportPath": "example.com/mod/p1",
            "Dir": "/src/p1",
            "GoFiles": ["file1.go"],
            "DepOnly": True,
        },
        {
            "ImportPath": "example.com/mod/p2",
            "Dir": "/src/p2",
            "GoFiles": ["b.go", "a.go"],
            "Imports": ["C", "example.com/mod/p1"],
        },
        {
            "ImportPath": "example.com/mod/p3",
            "Dir": "/src/p3",
            "GoFiles": ["file3.go"],
            "Imports": ["example.com/mod/p1", "example.com/mod/p2"],
        },
    )

    def runner(args, cwd):  # type: ignore[no-untyped-def]
        calls.append((list(args), Path(cwd)))
        return output

    units = GoListIntrospector(runner=runner, cwd=tmp_path).load(["./..."], deps=True)

    assert calls == [(["go", "list", "-e", "-json", "-deps", "-tags", "", "./..."], tmp_path)]
    assert [unit.id for unit in units] == ["example.com/mod/p2", "example.com/mod/p3"]
    p2, p3 = units
    assert p2.source_files == ["/src/p2/b.go", "/src/p2/a.go"]
    assert p2.directory == "/src/p2"
    assert list(p2.dependencies) == ["example.com/mod/p1"]
    assert p3.dependencies["example.com/mod/p2"] is p2
    assert p3.dependencies["example.com/mod/p1"] is p2.dependencies["example.com/mod/p1"]


def test_unlisted_imports_become_placeholder_units() -> None:
    units = build_units([{"ImportPath": "app", "Dir": "/src/app", "GoFiles": ["main.go"], "Imports": ["fmt"]}])

    fmt = units[0].dependencies["fmt"]
    assert fmt.source_files == []
    assert fmt.directory is None


def test_package_errors_are_classified() -> None:
    units = build_units(
        [
            {
                "ImportPath": "example.com/mod/tagged",
                "Dir": "/src/tagged",
                "Error": {"Err": "build constraints exclude all Go files in /src/tagged"},
            },
            {
                "ImportPath": "example.com/mod/broken",
                "Dir": "/src/broken",
                "GoFiles": ["x.go"],
                "Error": {"Pos": "x.go:3:1", "Err": "expected 'package', found 'func'"},
            },
        ]
    )

    tagged, broken = units
    assert [diag.kind for diag in tagged.diagnostics] == [DiagnosticKind.IGNORABLE]
    assert broken.diagnostics[0].kind is DiagnosticKind.FATAL
    assert broken.diagnostics[0].message == "x.go:3:1: expected 'package', found 'func'"


@pytest.mark.parametrize(
    "message, kind",
    [
        ("no Go files in /src/empty", DiagnosticKind.IGNORABLE),
        ("no non-test Go files in /src/only_tests", DiagnosticKind.IGNORABLE),
        ("import cycle not allowed", DiagnosticKind.FATAL),
    ],
)
def test_classify(message: str, kind: DiagnosticKind) -> None:
    assert classify(message) is kind


def test_runner_failure_is_an_introspection_error() -> None:
    def runner(args, cwd):  # type: ignore[no-untyped-def]
        raise subprocess.CalledProcessError(1, list(args), stderr="malformed import path\n")

    with pytest.raises(IntrospectionError, match="malformed import path"):
        GoListIntrospector(runner=runner).load(["bad//path"])


def test_missing_go_binary_is_an_introspection_error() -> None:
    def runner(args, cwd):  # type: ignore[no-untyped-def]
        raise FileNotFoundError(args[0])

    with pytest.raises(IntrospectionError, match="not found"):
        GoListIntrospector(runner=runner, go="go-missing").load(["."])


def test_cgo_files_are_source_files() -> None:
    units = build_units(
        [
            {"ImportPath": "c", "Dir": "/src/c", "GoFiles": ["a.go"], "CgoFiles": ["b.go"]},
            {"ImportPath": "cgoonly", "Dir": "/src/cgoonly", "CgoFiles": ["only.go"]},
        ]
    )

    assert units[0].source_files == ["/src/c/a.go", "/src/c/b.go"]
    assert units[1].source_files == ["/src/cgoonly/only.go"]
    assert units[1].directory == "/src/cgoonly"
