"""Source positions for JSON pointers, used to annotate lint output."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Optional

SourceMap = Dict[str, Dict[str, int]]


@dataclass(frozen=True)
class SourceLocation:
    file_path: Optional[Path] = None
    json_path: Optional[str] = None
    line: Optional[int] = None  # 1-based
    column: Optional[int] = None  # 1-based

    def in_file(self, file_path: Path) -> "SourceLocation":
        return replace(self, file_path=file_path)


def _parent_pointer(pointer: str) -> str:
    return pointer.rsplit("/", 1)[0]


def lookup_source(source_map: Optional[SourceMap], json_path: Optional[str]) -> SourceLocation:
    """Find the closest recorded location for a JSON pointer.

    Pointers naming an absent member (e.g. a missing required field) fall back
    to the nearest enclosing value.
    """
    if json_path is None or not source_map:
        return SourceLocation(json_path=json_path)

    pointer = json_path
    while pointer not in source_map and pointer:
        pointer = _parent_pointer(pointer)
    entry = source_map.get(pointer)
    if entry is None:
        return SourceLocation(json_path=json_path)
    return SourceLocation(json_path=json_path, line=entry.get("line"), column=entry.get("column"))


def _display_path(path: Path) -> str:
    try:
        return os.path.relpath(path)
    except ValueError:
        # different drive on Windows
        return str(path)


def format_source(loc: Optional[SourceLocation]) -> str:
    """Render ``file:line:column`` plus the pointer, e.g. `` (a.gltf:3:5 at /nodes/0)``."""
    if loc is None:
        return ""

    where = ""
    if loc.file_path is not None:
        where = _display_path(loc.file_path)
        if loc.line is not None:
            where += f":{loc.line}"
            if loc.column is not None:
                where += f":{loc.column}"
    pointer = f"at {loc.json_path}" if loc.json_path else ""

    text = " ".join(p for p in (where, pointer) if p)
    return f" ({text})" if text else ""
