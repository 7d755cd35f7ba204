"""Tests for JSON pointer to line/column mapping"""

from pathlib import Path

import pytest

from gltf_loader.exceptions import MalformedDocumentError
from gltf_loader.file_io.source_location import SourceLocation, format_source, lookup_source
from gltf_loader.parsing.json_source import build_source_map, load_json_with_source


TEXT = '{\n  "asset": {"version": "2.0"},\n  "nodes": [\n    {"name": "a/b"},\n    {"mesh": 2}\n  ]\n}\n'


def test_build_source_map():
    source_map = build_source_map(TEXT)

    assert source_map[""] == {"line": 1, "column": 1}
    assert source_map["/asset/version"]["line"] == 2
    assert source_map["/nodes/1/mesh"]["line"] == 5
    assert source_map["/nodes/0/name"]["line"] == 4


def test_build_source_map_tab_indented():
    source_map = build_source_map('{\n\t"asset": {"version": "2.0"},\n\t"nodes": [{"mesh": 3}]\n}')

    assert source_map["/asset"] == {"line": 2, "column": 11}
    assert source_map["/nodes/0/mesh"] == {"line": 3, "column": 21}


def test_load_json_with_source():
    data, source_map = load_json_with_source(TEXT.encode("utf-8"))

    assert data["nodes"][1] == {"mesh": 2}
    assert "/nodes/1" in source_map


def test_load_json_with_source_rejects_truncated():
    with pytest.raises(MalformedDocumentError):
        load_json_with_source(b'{"nodes": [')


def test_lookup_falls_back_to_enclosing_object():
    source_map = build_source_map(TEXT)

    loc = lookup_source(source_map, "/nodes/1/camera")
    assert loc.json_path == "/nodes/1/camera"
    assert loc.line == 5


def test_lookup_without_map():
    assert lookup_source({}, "/nodes/0") == SourceLocation(json_path="/nodes/0")
    assert lookup_source(None, None) == SourceLocation()


def test_format_source():
    loc = SourceLocation(file_path=Path("model.gltf"), json_path="/nodes/0", line=3, column=5)

    text = format_source(loc)
    assert "model.gltf:3:5" in text
    assert "at /nodes/0" in text
    assert format_source(None) == ""


def test_format_source_pointer_only():
    assert format_source(SourceLocation(json_path="/asset")) == " (at /asset)"
    assert format_source(SourceLocation()) == ""
