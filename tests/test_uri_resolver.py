"""Tests for buffer URI resolution"""

import base64

import pytest

from gltf_loader import parse
from gltf_loader.exceptions import UriResolutionError
from gltf_loader.file_io.uri_resolver import UriResolver, decode_data_uri, uri_to_path

from conftest import payload


def test_decode_base64_data_uri():
    encoded = base64.b64encode(b"\x01\x02\x03").decode("ascii")
    assert decode_data_uri(f"data:application/octet-stream;base64,{encoded}") == b"\x01\x02\x03"


def test_decode_plain_data_uri():
    assert decode_data_uri("data:,hello%20world") == b"hello world"


@pytest.mark.parametrize("uri", ["data:application/octet-stream;base64", "data:;base64,@@@"])
def test_decode_data_uri_rejects(uri):
    with pytest.raises(UriResolutionError):
        decode_data_uri(uri)


def test_uri_to_path(tmp_path):
    assert uri_to_path("sub/mesh%20a.bin", tmp_path) == tmp_path / "sub" / "mesh a.bin"
    with pytest.raises(UriResolutionError):
        uri_to_path("https://example.com/a.bin", tmp_path)


def test_fetch_relative_file(tmp_path):
    (tmp_path / "mesh.bin").write_bytes(b"abcd")
    assert UriResolver(tmp_path).fetch("mesh.bin") == b"abcd"


def test_fetch_limits(tmp_path):
    (tmp_path / "big.bin").write_bytes(b"x" * 32)
    resolver = UriResolver(tmp_path, max_bytes=16)

    with pytest.raises(UriResolutionError):
        resolver.fetch("big.bin")
    with pytest.raises(UriResolutionError):
        resolver.fetch("missing.bin")


def test_resolve_buffers(tmp_path):
    (tmp_path / "ok.bin").write_bytes(b"\x00" * 8)
    (tmp_path / "short.bin").write_bytes(b"\x00" * 2)
    inline = base64.b64encode(b"\x00" * 4).decode("ascii")
    doc = parse(payload(buffers=[
        {"byteLength": 8, "uri": "ok.bin"},
        {"byteLength": 8, "uri": "short.bin"},
        {"byteLength": 4, "uri": f"data:application/octet-stream;base64,{inline}"},
        {"byteLength": 4},
        {"byteLength": 4, "uri": "gone.bin"},
    ]))

    buffers, failures = UriResolver(tmp_path).resolve_buffers(doc)

    assert sorted(buffers) == [0, 2]
    assert len(failures) == 2
    assert failures[0].startswith("buffer 1:")
    assert failures[1].startswith("buffer 4:")
