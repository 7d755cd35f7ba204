"""Shared builders for glTF payloads."""

import json

import pytest


POSITION_ACCESSOR = {"componentType": 5126, "count": 3, "type": "VEC3"}
IDENTITY_MATRIX = [1, 0, 0, 0, 0, 1, 0, 0, 0, 0, 1, 0, 0, 0, 0, 1]


def gltf(**sections):
    """Return a decoded glTF document with ``asset`` filled in."""
    doc = {"asset": {"version": "2.0"}}
    doc.update(sections)
    return doc


def payload(**sections) -> bytes:
    return json.dumps(gltf(**sections)).encode("utf-8")


@pytest.fixture
def make_payload():
    return payload


@pytest.fixture
def write_gltf(tmp_path):
    """Write a document to ``tmp_path`` and return its path."""

    def _write(name, doc, indent=2):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(doc, indent=indent), encoding="utf-8")
        return path

    return _write
