# Copyright 2026 TIER IV, inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Document serialization and payload canonicalization.

Both directions produce the same canonical form: keys sorted, no
whitespace, documented defaults written out, unknown non-extension members
dropped. ``serialize(parse(data)) == canonicalize(data)`` holds for any
well-formed payload.
"""

import copy
import json
from enum import Enum
from typing import Any, Dict, Optional, Union

from .models.document import (
    Accessor,
    Animation,
    BufferViewImage,
    Document,
    Material,
    Mesh,
    Node,
    OrthographicCamera,
    PerspectiveCamera,
    TextureInfo,
    NormalTextureInfo,
    OcclusionTextureInfo,
    thaw_json,
)
from .models.json_schema_loader import load_schema
from .parsing.json_source import load_json

JsonObject = Dict[str, Any]


def _dump(data: Any) -> bytes:
    return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def _put(out: JsonObject, key: str, value: Any) -> None:
    """Set key unless value is None; enums become their wire values."""
    if value is None:
        return
    if isinstance(value, Enum):
        value = value.value
    elif isinstance(value, tuple):
        value = [v.value if isinstance(v, Enum) else v for v in value]
    out[key] = value


def _bag(out: JsonObject, record: Any) -> JsonObject:
    if record.extensions is not None:
        out["extensions"] = thaw_json(record.extensions)
    if record.extras is not None:
        out["extras"] = thaw_json(record.extras)
    return out


# --------------------------------------------------------------- serialize

def _texture_info(info: Optional[TextureInfo]) -> Optional[JsonObject]:
    if info is None:
        return None
    out: JsonObject = {"index": info.index, "texCoord": info.tex_coord}
    if isinstance(info, NormalTextureInfo):
        out["scale"] = info.scale
    elif isinstance(info, OcclusionTextureInfo):
        out["strength"] = info.strength
    return _bag(out, info)


def _accessor(accessor: Accessor) -> JsonObject:
    out: JsonObject = {
        "componentType": accessor.component_type.value,
        "count": accessor.count,
        "type": accessor.type.value,
        "byteOffset": accessor.byte_offset,
        "normalized": accessor.normalized,
    }
    _put(out, "bufferView", accessor.buffer_view)
    _put(out, "max", accessor.max)
    _put(out, "min", accessor.min)
    _put(out, "name", accessor.name)
    if accessor.sparse is not None:
        sparse = accessor.sparse
        out["sparse"] = _bag({
            "count": sparse.count,
            "indices": _bag({
                "bufferView": sparse.indices.buffer_view,
                "byteOffset": sparse.indices.byte_offset,
                "componentType": sparse.indices.component_type.value,
            }, sparse.indices),
            "values": _bag({
                "bufferView": sparse.values.buffer_view,
                "byteOffset": sparse.values.byte_offset,
            }, sparse.values),
        }, sparse)
    return _bag(out, accessor)


def _material(material: Material) -> JsonObject:
    pbr = material.pbr_metallic_roughness
    pbr_out: JsonObject = {
        "baseColorFactor": list(pbr.base_color_factor),
        "metallicFactor": pbr.metallic_factor,
        "roughnessFactor": pbr.roughness_factor,
    }
    _put(pbr_out, "baseColorTexture", _texture_info(pbr.base_color_texture))
    _put(pbr_out, "metallicRoughnessTexture", _texture_info(pbr.metallic_roughness_texture))
    out: JsonObject = {
        "pbrMetallicRoughness": _bag(pbr_out, pbr),
        "emissiveFactor": list(material.emissive_factor),
        "alphaMode": material.alpha_mode.value,
        "alphaCutoff": material.alpha_cutoff,
        "doubleSided": material.double_sided,
    }
    _put(out, "normalTexture", _texture_info(material.normal_texture))
    _put(out, "occlusionTexture", _texture_info(material.occlusion_texture))
    _put(out, "emissiveTexture", _texture_info(material.emissive_texture))
    _put(out, "name", material.name)
    return _bag(out, material)


def _camera(camera: Union[PerspectiveCamera, OrthographicCamera]) -> JsonObject:
    projection: JsonObject = {"znear": camera.znear}
    if isinstance(camera, PerspectiveCamera):
        projection["yfov"] = camera.yfov
        _put(projection, "aspectRatio", camera.aspect_ratio)
        _put(projection, "zfar", camera.zfar)
    else:
        projection.update(xmag=camera.xmag, ymag=camera.ymag, zfar=camera.zfar)
    _put(projection, "extensions", thaw_json(camera.projection_extensions))
    _put(projection, "extras", thaw_json(camera.projection_extras))
    out: JsonObject = {"type": camera.type.value, camera.type.value: projection}
    _put(out, "name", camera.name)
    return _bag(out, camera)


def _mesh(mesh: Mesh) -> JsonObject:
    primitives = []
    for primitive in mesh.primitives:
        p: JsonObject = {
            "attributes": dict(primitive.attributes),
            "mode": primitive.mode.value,
        }
        _put(p, "indices", primitive.indices)
        _put(p, "material", primitive.material)
        if primitive.targets is not None:
            p["targets"] = [dict(t) for t in primitive.targets]
        primitives.append(_bag(p, primitive))
    out: JsonObject = {"primitives": primitives}
    _put(out, "weights", mesh.weights)
    _put(out, "name", mesh.name)
    return _bag(out, mesh)


def _node(node: Node) -> JsonObject:
    out: JsonObject = {}
    if node.children:
        out["children"] = list(node.children)
    for key, value in (
        ("camera", node.camera),
        ("skin", node.skin),
        ("matrix", node.matrix),
        ("mesh", node.mesh),
        ("rotation", node.rotation),
        ("scale", node.scale),
        ("translation", node.translation),
        ("weights", node.weights),
        ("name", node.name),
    ):
        _put(out, key, value)
    return _bag(out, node)


def _animation(animation: Animation) -> JsonObject:
    channels = []
    for channel in animation.channels:
        target: JsonObject = {"path": channel.target.path.value}
        _put(target, "node", channel.target.node)
        channels.append(_bag({"sampler": channel.sampler, "target": _bag(target, channel.target)}, channel))
    samplers = [
        _bag({"input": s.input, "output": s.output, "interpolation": s.interpolation.value}, s)
        for s in animation.samplers
    ]
    out: JsonObject = {"channels": channels, "samplers": samplers}
    _put(out, "name", animation.name)
    return _bag(out, animation)


def to_json(document: Document) -> JsonObject:
    """Convert a Document back into plain JSON data."""
    asset: JsonObject = {"version": document.asset.version}
    _put(asset, "generator", document.asset.generator)
    _put(asset, "copyright", document.asset.copyright)
    _put(asset, "minVersion", document.asset.min_version)

    out: JsonObject = {"asset": _bag(asset, document.asset)}
    _put(out, "scene", document.scene)
    if document.extensions_used:
        out["extensionsUsed"] = list(document.extensions_used)
    if document.extensions_required:
        out["extensionsRequired"] = list(document.extensions_required)

    arrays = {
        "accessors": [_accessor(a) for a in document.accessors],
        "animations": [_animation(a) for a in document.animations],
        "buffers": [
            _bag({k: v for k, v in (("byteLength", b.byte_length), ("uri", b.uri), ("name", b.name)) if v is not None}, b)
            for b in document.buffers
        ],
        "bufferViews": [],
        "cameras": [_camera(c) for c in document.cameras],
        "images": [],
        "materials": [_material(m) for m in document.materials],
        "meshes": [_mesh(m) for m in document.meshes],
        "nodes": [_node(n) for n in document.nodes],
        "samplers": [],
        "scenes": [],
        "skins": [],
        "textures": [],
    }
    for view in document.buffer_views:
        v: JsonObject = {"buffer": view.buffer, "byteLength": view.byte_length, "byteOffset": view.byte_offset}
        _put(v, "byteStride", view.byte_stride)
        _put(v, "target", view.target)
        _put(v, "name", view.name)
        arrays["bufferViews"].append(_bag(v, view))
    for image in document.images:
        i: JsonObject = {}
        if isinstance(image, BufferViewImage):
            i["bufferView"] = image.buffer_view
        else:
            i["uri"] = image.uri
        _put(i, "mimeType", image.mime_type)
        _put(i, "name", image.name)
        arrays["images"].append(_bag(i, image))
    for sampler in document.samplers:
        s: JsonObject = {"wrapS": sampler.wrap_s.value, "wrapT": sampler.wrap_t.value}
        _put(s, "magFilter", sampler.mag_filter)
        _put(s, "minFilter", sampler.min_filter)
        _put(s, "name", sampler.name)
        arrays["samplers"].append(_bag(s, sampler))
    for scene in document.scenes:
        sc: JsonObject = {"nodes": list(scene.nodes)}
        _put(sc, "name", scene.name)
        arrays["scenes"].append(_bag(sc, scene))
    for skin in document.skins:
        sk: JsonObject = {"joints": list(skin.joints)}
        _put(sk, "inverseBindMatrices", skin.inverse_bind_matrices)
        _put(sk, "skeleton", skin.skeleton)
        _put(sk, "name", skin.name)
        arrays["skins"].append(_bag(sk, skin))
    for texture in document.textures:
        t: JsonObject = {}
        _put(t, "sampler", texture.sampler)
        _put(t, "source", texture.source)
        _put(t, "name", texture.name)
        arrays["textures"].append(_bag(t, texture))

    for key, items in arrays.items():
        if items:
            out[key] = items
    return _bag(out, document)


def serialize(document: Document) -> bytes:
    """Serialize a Document to canonical JSON bytes."""
    return _dump(to_json(document))


# ------------------------------------------------------------ canonicalize

class _Canonicalizer:
    """Applies the packaged schema's ``properties`` and ``default`` keywords."""

    PASS_THROUGH = ("extensions", "extras")

    def __init__(self, schema: dict):
        self.schema = schema

    def _resolve(self, node: dict) -> dict:
        while "$ref" in node:
            ref = node["$ref"]
            if not ref.startswith("#/"):
                raise ValueError(f"Unsupported schema reference: {ref}")
            target = self.schema
            for part in ref[2:].split("/"):
                target = target[part]
            # sibling keywords of $ref (e.g. default) stay with the referrer
            node = {**target, **{k: v for k, v in node.items() if k != "$ref"}}
        return node

    def apply(self, value: Any, node: dict) -> Any:
        node = self._resolve(node)
        if isinstance(value, dict):
            properties = node.get("properties")
            if properties is None:
                additional = node.get("additionalProperties")
                if isinstance(additional, dict):
                    return {k: self.apply(v, additional) for k, v in value.items()}
                return value
            out = {}
            for key, sub in properties.items():
                if key in self.PASS_THROUGH:
                    if value.get(key) is not None:
                        out[key] = value[key]
                    continue
                if key in value:
                    if value[key] is not None:
                        out[key] = self.apply(value[key], sub)
                    continue
                default = self._resolve(sub).get("default")
                if default is not None:
                    out[key] = self.apply(copy.deepcopy(default), sub)
            return out
        if isinstance(value, list) and "items" in node:
            return [self.apply(v, node["items"]) for v in value]
        if isinstance(value, float) and node.get("type") == "integer" and value.is_integer():
            return int(value)
        return value


def canonicalize(data: Union[bytes, bytearray, memoryview, str]) -> bytes:
    """Normalize a raw payload to the canonical serialized form.

    Does not validate; callers are expected to pass well-formed documents.
    """
    raw = load_json(data)
    schema = load_schema()
    return _dump(_Canonicalizer(schema).apply(raw, schema))
