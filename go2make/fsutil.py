"""Filesystem helpers."""

from __future__ import annotations

import os
from pathlib import Path


def write_if_changed(path: Path, content: str | bytes) -> bool:
    """Replace ``path`` with ``content`` only when the bytes differ.

    The content is staged in a sibling ``.tmp`` file, compared against the
    current target and moved into place when different. The staging file is
    always removed. Returns True when the target was (re)written, so an
    unchanged target keeps its modification time.
    """
    data = content.encode("utf-8") if isinstance(content, str) else content
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        tmp_path.write_bytes(data)
        try:
            current = path.read_bytes()
        except FileNotFoundError:
            current = None
        if current == data:
            return False
        os.replace(tmp_path, path)
        return True
    finally:
        tmp_path.unlink(missing_ok=True)


__all__ = ["write_if_changed"]
