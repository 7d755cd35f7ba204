"""Tests for parsing payloads into Documents"""

import dataclasses
import logging

import pytest

from gltf_loader import MalformedDocumentError, Stage, load, parse
from gltf_loader.models.document import (
    BufferViewImage,
    OrthographicCamera,
    PerspectiveCamera,
    UriImage,
)
from gltf_loader.models.enums import (
    AccessorType,
    AlphaMode,
    ComponentType,
    Interpolation,
    PrimitiveMode,
    WrapMode,
)
from gltf_loader.report import IssueKind

from conftest import IDENTITY_MATRIX, POSITION_ACCESSOR, payload


def _issues(data):
    with pytest.raises(MalformedDocumentError) as excinfo:
        parse(data)
    return excinfo.value.issues


def test_minimal_document():
    """Only asset.version is required"""
    doc = parse(b'{"asset": {"version": "2.0"}}')

    assert doc.asset.version == "2.0"
    assert doc.scene is None
    assert doc.nodes == ()
    assert doc.default_scene() is None


def test_str_payload_and_bom_accepted():
    doc = parse("\ufeff{\"asset\": {\"version\": \"2.0\", \"generator\": \"test\"}}".encode("utf-8"))
    assert doc.asset.generator == "test"

    doc = parse('{"asset": {"version": "2.0"}}')
    assert doc.asset.version == "2.0"


def test_defaults_applied():
    """Missing optional fields take their documented defaults"""
    doc = parse(payload(
        accessors=[POSITION_ACCESSOR],
        samplers=[{}],
        materials=[{}],
        meshes=[{"primitives": [{"attributes": {"POSITION": 0}}]}],
        animations=[{
            "channels": [{"sampler": 0, "target": {"path": "translation"}}],
            "samplers": [{"input": 0, "output": 0}],
        }],
    ))

    accessor = doc.accessors[0]
    assert accessor.component_type is ComponentType.FLOAT
    assert accessor.type is AccessorType.VEC3
    assert accessor.normalized is False
    assert accessor.byte_offset == 0
    assert accessor.element_size == 12

    sampler = doc.samplers[0]
    assert sampler.wrap_s is WrapMode.REPEAT
    assert sampler.wrap_t is WrapMode.REPEAT
    assert sampler.mag_filter is None

    material = doc.materials[0]
    assert material.alpha_mode is AlphaMode.OPAQUE
    assert material.alpha_cutoff == 0.5
    assert material.double_sided is False
    assert material.emissive_factor == (0.0, 0.0, 0.0)
    assert material.pbr_metallic_roughness.base_color_factor == (1.0, 1.0, 1.0, 1.0)
    assert material.texture_infos() == ()

    assert doc.meshes[0].primitives[0].mode is PrimitiveMode.TRIANGLES
    assert doc.animations[0].samplers[0].interpolation is Interpolation.LINEAR


def test_node_transform_fields_stay_unset():
    doc = parse(payload(nodes=[{}, {"matrix": IDENTITY_MATRIX}]))

    plain, with_matrix = doc.nodes
    assert plain.translation is None and plain.rotation is None and plain.scale is None
    assert plain.local_trs() == ((0.0, 0.0, 0.0), (0.0, 0.0, 0.0, 1.0), (1.0, 1.0, 1.0))
    assert not with_matrix.has_trs
    assert len(with_matrix.matrix) == 16


def test_document_is_immutable():
    doc = parse(payload(nodes=[{"extras": {"tags": ["a", "b"]}}]))

    with pytest.raises(dataclasses.FrozenInstanceError):
        doc.scene = 0
    with pytest.raises(TypeError):
        doc.nodes[0].extras["tags"] = []
    assert doc.nodes[0].extras["tags"] == ("a", "b")


def test_extensions_preserved_opaquely():
    doc = parse(payload(
        extensionsUsed=["EXT_custom"],
        nodes=[{"extensions": {"EXT_custom": {"level": 3, "flags": [1, 2]}}}],
    ))

    assert doc.extensions_used == ("EXT_custom",)
    assert doc.nodes[0].extensions["EXT_custom"]["level"] == 3
    assert doc.nodes[0].extensions["EXT_custom"]["flags"] == (1, 2)


def test_truncated_payload_aborts_with_single_issue():
    issues = _issues(b'{"asset": {"vers')

    assert len(issues) == 1
    assert issues[0].kind == IssueKind.MALFORMED_DOCUMENT
    assert issues[0].stage == "parse"


def test_non_utf8_payload_is_malformed():
    issues = _issues(b'{"asset": {"version": "\xff"}}')
    assert len(issues) == 1


def _nested_extras(depth):
    return b'{"asset":{"version":"2.0"},"extras":' + b"[" * depth + b"]" * depth + b"}"


@pytest.mark.parametrize("depth", [300, 100000])
def test_deeply_nested_payload_is_malformed(depth):
    issues = _issues(_nested_extras(depth))

    assert len(issues) == 1
    assert issues[0].kind == IssueKind.MALFORMED_DOCUMENT
    assert "nesting too deep" in issues[0].message


def test_deeply_nested_payload_stops_pipeline():
    result = load(_nested_extras(100000))

    assert result.stage is Stage.UNPARSED
    assert [i.kind for i in result.errors] == [IssueKind.MALFORMED_DOCUMENT]


def test_moderately_nested_extras_accepted():
    doc = parse(_nested_extras(50))
    assert doc.extras is not None


def test_structural_issues_are_collected():
    """Every missing required field is reported, not only the first"""
    issues = _issues(payload(
        accessors=[{"componentType": 5126, "type": "VEC3"}],
        meshes=[{"primitives": [{"attributes": {"NORMAL": 0}}]}],
    ))

    paths = {i.json_path for i in issues}
    assert "/accessors/0" in paths
    assert "/meshes/0/primitives/0/attributes" in paths
    assert all(i.kind == IssueKind.MALFORMED_DOCUMENT for i in issues)


def test_missing_asset_version():
    issues = _issues(b'{"asset": {}}')
    assert issues[0].json_path == "/asset"
    assert "version" in issues[0].message


def test_wrong_tuple_length_is_malformed():
    issues = _issues(payload(nodes=[{"translation": [1, 2]}]))
    assert issues[0].json_path == "/nodes/0/translation"


def test_unrecognized_enum_values_are_collected():
    issues = _issues(payload(
        accessors=[{"componentType": 9999, "count": 1, "type": "VEC7"}],
        samplers=[{"wrapS": 1}],
    ))

    assert {i.kind for i in issues} == {IssueKind.UNRECOGNIZED_ENUM_VALUE}
    assert {i.json_path for i in issues} == {
        "/accessors/0/componentType",
        "/accessors/0/type",
        "/samplers/0/wrapS",
    }


def test_sparse_index_component_type_restricted():
    issues = _issues(payload(
        bufferViews=[{"buffer": 0, "byteLength": 4}],
        buffers=[{"byteLength": 4}],
        accessors=[{
            "componentType": 5126, "count": 2, "type": "SCALAR",
            "sparse": {
                "count": 1,
                "indices": {"bufferView": 0, "componentType": 5126},
                "values": {"bufferView": 0},
            },
        }],
    ))

    assert issues[0].kind == IssueKind.UNRECOGNIZED_ENUM_VALUE
    assert issues[0].json_path == "/accessors/0/sparse/indices/componentType"


def test_image_variants():
    doc = parse(payload(
        bufferViews=[{"buffer": 0, "byteLength": 4}],
        buffers=[{"byteLength": 4}],
        images=[{"uri": "albedo.png"}, {"bufferView": 0, "mimeType": "image/png"}],
    ))

    uri_image, view_image = doc.images
    assert isinstance(uri_image, UriImage)
    assert uri_image.mime_type is None
    assert isinstance(view_image, BufferViewImage)
    assert view_image.buffer_view == 0


@pytest.mark.parametrize("image", [
    {"uri": "a.png", "bufferView": 0, "mimeType": "image/png"},
    {"bufferView": 0},
    {"name": "nothing"},
])
def test_invalid_image_forms(image):
    issues = _issues(payload(
        bufferViews=[{"buffer": 0, "byteLength": 4}],
        buffers=[{"byteLength": 4}],
        images=[image],
    ))

    assert len(issues) == 1
    assert issues[0].entity_kind == "image"
    assert issues[0].json_path == "/images/0"


def test_camera_variants():
    doc = parse(payload(cameras=[
        {"type": "perspective", "perspective": {"yfov": 0.8, "znear": 0.1}},
        {"type": "orthographic", "orthographic": {"xmag": 1, "ymag": 1, "zfar": 100, "znear": 0}},
    ]))

    perspective, orthographic = doc.cameras
    assert isinstance(perspective, PerspectiveCamera)
    assert perspective.zfar is None
    assert isinstance(orthographic, OrthographicCamera)
    assert orthographic.zfar == 100


@pytest.mark.parametrize("camera", [
    {"type": "perspective"},
    {"type": "perspective", "perspective": {"yfov": 1, "znear": 1},
     "orthographic": {"xmag": 1, "ymag": 1, "zfar": 2, "znear": 1}},
])
def test_invalid_camera_forms(camera):
    issues = _issues(payload(cameras=[camera]))
    assert issues[0].entity_kind == "camera"


def test_default_scene_requires_nodes():
    issues = _issues(payload(scene=0, scenes=[{}]))
    assert issues[0].json_path == "/scenes/0"

    doc = parse(payload(scenes=[{"name": "unused"}]))
    assert doc.scenes[0].nodes == ()


def test_negative_index_left_to_resolver():
    doc = parse(payload(nodes=[{"mesh": -1}]))
    assert doc.nodes[0].mesh == -1


def test_incompatible_major_version():
    issues = _issues(b'{"asset": {"version": "3.0"}}')
    assert issues[0].json_path == "/asset/version"


def test_min_version_newer_than_supported():
    issues = _issues(b'{"asset": {"version": "2.1", "minVersion": "2.1"}}')
    assert "2.1" in issues[0].message


def test_newer_minor_version_warns(caplog):
    with caplog.at_level(logging.WARNING):
        doc = parse(b'{"asset": {"version": "2.1"}}')

    assert doc.asset.version == "2.1"
    assert any("newer minor version" in r.getMessage() for r in caplog.records)


def test_newer_minor_version_rejected_in_strict_mode():
    with pytest.raises(MalformedDocumentError):
        parse(b'{"asset": {"version": "2.1"}}', strict_mode=True)
