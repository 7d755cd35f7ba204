"""Tests for the gltf-lint command line"""

import base64
import json
import struct

import pytest

from gltf_loader.config import LoaderConfig
from gltf_loader.linter import DocumentLinter, lint_files
from gltf_loader.linter.run_lint import find_gltf_files, main

from conftest import gltf


GOOD = gltf(scenes=[{"nodes": [0]}], nodes=[{"children": [1]}, {}])
DANGLING = gltf(nodes=[{"mesh": 4}])


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("LOG_LEVEL", "PRINT_LEVEL", "MAX_INPUT_BYTES", "RESOLVE_URIS", "STRICT", "IGNORE"):
        monkeypatch.delenv(f"GLTF_LOADER_{name}", raising=False)


def _run(argv):
    with pytest.raises(SystemExit) as excinfo:
        main(argv)
    return excinfo.value.code


def _sparse_gltf(indices):
    data = struct.pack("<3H", *indices) + struct.pack("<3f", 1.0, 2.0, 3.0)
    return gltf(
        buffers=[{
            "byteLength": len(data),
            "uri": "data:application/octet-stream;base64," + base64.b64encode(data).decode("ascii"),
        }],
        bufferViews=[
            {"buffer": 0, "byteLength": 6},
            {"buffer": 0, "byteOffset": 6, "byteLength": 12},
        ],
        accessors=[{
            "componentType": 5126, "count": 4, "type": "SCALAR",
            "sparse": {
                "count": 3,
                "indices": {"bufferView": 0, "componentType": 5123},
                "values": {"bufferView": 1},
            },
        }],
    )


def test_clean_file_succeeds(write_gltf, capsys):
    path = write_gltf("scene.gltf", GOOD)

    assert _run([str(path)]) == 0
    assert "Lint succeeded with no errors." in capsys.readouterr().out


def test_errors_reported_with_location(write_gltf, capsys):
    path = write_gltf("broken.gltf", DANGLING)

    assert _run([str(path)]) == 1
    out = capsys.readouterr().out
    assert "[DanglingReference]" in out
    # "mesh": 4 sits on the seventh line of the indented file
    assert "ERROR:7:" in out


def test_malformed_file(capsys, tmp_path):
    path = tmp_path / "truncated.gltf"
    path.write_text('{"asset": {"version": "2.0"', encoding="utf-8")

    assert _run([str(path)]) == 1
    assert "[MalformedDocument]" in capsys.readouterr().out


def test_json_output(write_gltf, capsys):
    write_gltf("models/a.gltf", GOOD)
    write_gltf("models/nested/b.gltf", DANGLING)

    assert _run([str(write_gltf("models/c.gltf", GOOD).parent), "--format", "json"]) == 1
    output = json.loads(capsys.readouterr().out)
    assert output["files"] == 3
    assert output["errors"] == 1
    [failing] = [r for r in output["results"] if r["errors"]]
    assert failing["file"].endswith("b.gltf")
    assert failing["errors"][0]["kind"] == "DanglingReference"
    assert failing["errors"][0]["json_path"] == "/nodes/0/mesh"


def test_github_actions_output(write_gltf, capsys):
    path = write_gltf("broken.gltf", DANGLING)

    assert _run([str(path), "--format", "github-actions"]) == 1
    assert capsys.readouterr().out.startswith(f"::error file={path},line=7::")


def test_ignore_suppresses_kind(write_gltf):
    path = write_gltf("broken.gltf", DANGLING)
    assert _run([str(path), "--ignore", "DanglingReference"]) == 0


def test_unknown_ignore_kind_is_configuration_error(write_gltf, capsys):
    path = write_gltf("scene.gltf", GOOD)

    assert _run([str(path), "--ignore", "Whatever"]) == 2
    assert "Configuration error" in capsys.readouterr().err


def test_config_file(write_gltf, tmp_path):
    path = write_gltf("broken.gltf", DANGLING)
    config = tmp_path / "lint.yaml"
    config.write_text("ignore: [DanglingReference]\n", encoding="utf-8")

    assert _run([str(path), "--config", str(config)]) == 0


def test_no_files_found(tmp_path, capsys):
    assert _run([str(tmp_path)]) == 1
    assert "No .gltf files found." in capsys.readouterr().err


def test_sparse_indices_checked_through_data_uri(write_gltf, capsys):
    path = write_gltf("sparse.gltf", _sparse_gltf((2, 1, 3)))

    assert _run([str(path)]) == 1
    assert "[NonMonotonicSparseIndices]" in capsys.readouterr().out


def test_no_resolve_uris_downgrades_to_warning(write_gltf, capsys):
    path = write_gltf("sparse.gltf", _sparse_gltf((2, 1, 3)))

    assert _run([str(path), "--no-resolve-uris"]) == 0
    assert "[SparseIndicesUnavailable]" in capsys.readouterr().out


def test_unresolved_buffer_is_warning(write_gltf):
    path = write_gltf("scene.gltf", gltf(buffers=[{"byteLength": 4, "uri": "missing.bin"}]))

    [result] = lint_files([path])
    assert result.errors == []
    assert [w["kind"] for w in result.warnings] == ["UnresolvedUri"]


def test_size_limit(write_gltf):
    path = write_gltf("scene.gltf", GOOD)

    [result] = lint_files([path], LoaderConfig(max_input_bytes=8))
    assert "byte limit" in result.errors[0]["message"]


def test_unexpected_failure_becomes_error(write_gltf, monkeypatch):
    path = write_gltf("scene.gltf", GOOD)

    def explode(self, file_path, result):
        raise RuntimeError("boom")

    monkeypatch.setattr(DocumentLinter, "lint", explode)
    [result] = lint_files([path])
    assert result.errors == [{"message": "Unexpected error during linting: boom"}]


def test_find_gltf_files(write_gltf, tmp_path, capsys):
    a = write_gltf("a.gltf", GOOD)
    b = write_gltf("deep/b.gltf", GOOD)
    other = tmp_path / "notes.txt"
    other.write_text("x", encoding="utf-8")

    assert find_gltf_files([str(tmp_path)]) == sorted([a, b])
    assert find_gltf_files([str(other), str(tmp_path / "missing")]) == []
    assert "Warning" in capsys.readouterr().err
