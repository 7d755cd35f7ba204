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

"""Turns a glTF JSON payload into a :class:`Document`."""

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Type, TypeVar, Union

from ..exceptions import MalformedDocumentError
from ..models.document import (
    Accessor,
    AccessorSparse,
    Animation,
    AnimationChannel,
    AnimationChannelTarget,
    AnimationSampler,
    Asset,
    Buffer,
    BufferView,
    BufferViewImage,
    Camera,
    Document,
    Image,
    Material,
    Mesh,
    MeshPrimitive,
    Node,
    NormalTextureInfo,
    OcclusionTextureInfo,
    OrthographicCamera,
    PbrMetallicRoughness,
    PerspectiveCamera,
    Sampler,
    Scene,
    Skin,
    SparseIndices,
    SparseValues,
    Texture,
    TextureInfo,
    UriImage,
    freeze_json,
)
from ..models.enums import (
    AccessorType,
    AlphaMode,
    BufferViewTarget,
    CameraType,
    ComponentType,
    ImageMimeType,
    Interpolation,
    MagFilter,
    MinFilter,
    PrimitiveMode,
    SPARSE_INDEX_COMPONENT_TYPES,
    TargetPath,
    WrapMode,
)
from ..models.json_schema_loader import validate_structure
from ..report import PARSE_STAGE, Issue, IssueKind
from ..utils.format_version import check_asset_version
from .json_source import load_json

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)
T = TypeVar("T")

Payload = Union[bytes, bytearray, memoryview, str]


def _int(value: Any) -> Optional[int]:
    # JSON Schema "integer" also admits 2.0
    return None if value is None else int(value)


def _indices(values: Optional[List[Any]]) -> Tuple[int, ...]:
    return tuple(int(v) for v in values) if values else ()


def _numbers(values: Optional[List[Any]]) -> Optional[Tuple[float, ...]]:
    return None if values is None else tuple(values)


def _attribute_map(raw: Dict[str, Any]) -> Dict[str, int]:
    return freeze_json({name: int(idx) for name, idx in raw.items()})


class DocumentParser:
    """Parser for glTF JSON documents.

    The parse runs in three passes. The payload is decoded; the decoded
    value is checked against the packaged JSON Schema; the typed records are
    built. The first pass aborts immediately on broken JSON, the other two
    collect every problem they find before raising.
    """

    def __init__(self, strict_mode: bool = False):
        self.strict_mode = strict_mode
        self._issues: List[Issue] = []

    def parse(self, data: Payload) -> Document:
        raw = load_json(data)
        return self.parse_json(raw)

    def parse_json(self, raw: Any) -> Document:
        """Build a Document from an already decoded JSON value."""
        self._issues = []

        structural = validate_structure(raw)
        if structural:
            logger.debug(f"Structural validation found {len(structural)} issue(s)")
            raise MalformedDocumentError(structural)

        self._check_version(raw["asset"])
        if self._issues:
            raise MalformedDocumentError(self._issues)

        document = self._build_document(raw)
        if self._issues:
            raise MalformedDocumentError(self._issues)

        logger.debug(
            f"Parsed document: {len(document.nodes)} nodes, {len(document.meshes)} meshes, "
            f"{len(document.accessors)} accessors"
        )
        return document

    # ------------------------------------------------------------------ utils

    def _error(self, message: str, json_path: str, kind: str = IssueKind.MALFORMED_DOCUMENT,
               entity_kind: Optional[str] = None, entity_index: Optional[int] = None) -> None:
        self._issues.append(
            Issue(
                stage=PARSE_STAGE,
                kind=kind,
                message=f"{json_path}: {message}",
                entity_kind=entity_kind,
                entity_index=entity_index,
                json_path=json_path,
            )
        )

    def _enum(self, enum_cls: Type[E], value: Any, json_path: str,
              entity_kind: Optional[str] = None, entity_index: Optional[int] = None) -> Optional[E]:
        if value is None:
            return None
        try:
            return enum_cls(value)
        except ValueError:
            allowed = ", ".join(repr(m.value) for m in enum_cls)
            self._error(
                f"Unrecognized {enum_cls.__name__} value {value!r}. Valid values: {allowed}",
                json_path,
                kind=IssueKind.UNRECOGNIZED_ENUM_VALUE,
                entity_kind=entity_kind,
                entity_index=entity_index,
            )
            return None

    @staticmethod
    def _bag(raw: Dict[str, Any]) -> Dict[str, Any]:
        """extensions/extras pass-through, frozen."""
        return {
            "extensions": freeze_json(raw["extensions"]) if "extensions" in raw else None,
            "extras": freeze_json(raw.get("extras")),
        }

    def _each(self, raw: Dict[str, Any], key: str, build: Callable[[Dict[str, Any], int, str], T]) -> Tuple[T, ...]:
        return tuple(build(item, i, f"/{key}/{i}") for i, item in enumerate(raw.get(key, ())))

    def _check_version(self, raw_asset: Dict[str, Any]) -> None:
        result = check_asset_version(raw_asset["version"], raw_asset.get("minVersion"))
        if not result.compatible:
            self._error(result.message, "/asset/version")
        elif result.minor_newer:
            if self.strict_mode:
                self._error(result.message, "/asset/version")
            else:
                logger.warning(result.message)

    # --------------------------------------------------------------- document

    def _build_document(self, raw: Dict[str, Any]) -> Document:
        asset_raw = raw["asset"]
        asset = Asset(
            version=asset_raw["version"],
            generator=asset_raw.get("generator"),
            copyright=asset_raw.get("copyright"),
            min_version=asset_raw.get("minVersion"),
            **self._bag(asset_raw),
        )

        default_scene = _int(raw.get("scene"))
        scenes_raw = raw.get("scenes", [])
        if default_scene is not None and 0 <= default_scene < len(scenes_raw):
            if "nodes" not in scenes_raw[default_scene]:
                self._error(
                    "Missing required field 'nodes' on the default scene",
                    f"/scenes/{default_scene}",
                    entity_kind="scene",
                    entity_index=default_scene,
                )

        return Document(
            asset=asset,
            accessors=self._each(raw, "accessors", self._build_accessor),
            animations=self._each(raw, "animations", self._build_animation),
            buffers=self._each(raw, "buffers", self._build_buffer),
            buffer_views=self._each(raw, "bufferViews", self._build_buffer_view),
            cameras=self._each(raw, "cameras", self._build_camera),
            images=self._each(raw, "images", self._build_image),
            materials=self._each(raw, "materials", self._build_material),
            meshes=self._each(raw, "meshes", self._build_mesh),
            nodes=self._each(raw, "nodes", self._build_node),
            samplers=self._each(raw, "samplers", self._build_sampler),
            scene=default_scene,
            scenes=self._each(raw, "scenes", self._build_scene),
            skins=self._each(raw, "skins", self._build_skin),
            textures=self._each(raw, "textures", self._build_texture),
            extensions_used=tuple(raw.get("extensionsUsed", ())),
            extensions_required=tuple(raw.get("extensionsRequired", ())),
            **self._bag(raw),
        )

    # -------------------------------------------------------------- accessors

    def _build_accessor(self, raw: Dict[str, Any], idx: int, path: str) -> Accessor:
        sparse = None
        if "sparse" in raw:
            sparse = self._build_sparse(raw["sparse"], idx, f"{path}/sparse")
        return Accessor(
            component_type=self._enum(ComponentType, raw["componentType"], f"{path}/componentType", "accessor", idx),
            count=_int(raw["count"]),
            type=self._enum(AccessorType, raw["type"], f"{path}/type", "accessor", idx),
            buffer_view=_int(raw.get("bufferView")),
            byte_offset=_int(raw.get("byteOffset", 0)),
            normalized=raw.get("normalized", False),
            max=_numbers(raw.get("max")),
            min=_numbers(raw.get("min")),
            sparse=sparse,
            name=raw.get("name"),
            **self._bag(raw),
        )

    def _build_sparse(self, raw: Dict[str, Any], idx: int, path: str) -> AccessorSparse:
        indices_raw = raw["indices"]
        component_type = self._enum(
            ComponentType, indices_raw["componentType"], f"{path}/indices/componentType", "accessor", idx
        )
        if component_type is not None and component_type not in SPARSE_INDEX_COMPONENT_TYPES:
            allowed = ", ".join(repr(int(c)) for c in SPARSE_INDEX_COMPONENT_TYPES)
            self._error(
                f"Sparse indices componentType must be one of {allowed}, got {int(component_type)}",
                f"{path}/indices/componentType",
                kind=IssueKind.UNRECOGNIZED_ENUM_VALUE,
                entity_kind="accessor",
                entity_index=idx,
            )
        values_raw = raw["values"]
        return AccessorSparse(
            count=_int(raw["count"]),
            indices=SparseIndices(
                buffer_view=_int(indices_raw["bufferView"]),
                component_type=component_type,
                byte_offset=_int(indices_raw.get("byteOffset", 0)),
                **self._bag(indices_raw),
            ),
            values=SparseValues(
                buffer_view=_int(values_raw["bufferView"]),
                byte_offset=_int(values_raw.get("byteOffset", 0)),
                **self._bag(values_raw),
            ),
            **self._bag(raw),
        )

    # ---------------------------------------------------------------- buffers

    def _build_buffer(self, raw: Dict[str, Any], idx: int, path: str) -> Buffer:
        return Buffer(
            byte_length=_int(raw["byteLength"]),
            uri=raw.get("uri"),
            name=raw.get("name"),
            **self._bag(raw),
        )

    def _build_buffer_view(self, raw: Dict[str, Any], idx: int, path: str) -> BufferView:
        return BufferView(
            buffer=_int(raw["buffer"]),
            byte_length=_int(raw["byteLength"]),
            byte_offset=_int(raw.get("byteOffset", 0)),
            byte_stride=_int(raw.get("byteStride")),
            target=self._enum(BufferViewTarget, raw.get("target"), f"{path}/target", "bufferView", idx),
            name=raw.get("name"),
            **self._bag(raw),
        )

    # ------------------------------------------------------ images / textures

    def _build_image(self, raw: Dict[str, Any], idx: int, path: str) -> Optional[Image]:
        uri = raw.get("uri")
        buffer_view = _int(raw.get("bufferView"))
        mime_type = self._enum(ImageMimeType, raw.get("mimeType"), f"{path}/mimeType", "image", idx)

        if uri is not None and buffer_view is not None:
            self._error("Image must not define both 'uri' and 'bufferView'", path, entity_kind="image", entity_index=idx)
            return None
        if uri is not None:
            return UriImage(uri=uri, mime_type=mime_type, name=raw.get("name"), **self._bag(raw))
        if buffer_view is not None:
            if "mimeType" not in raw:
                self._error(
                    "Missing required field 'mimeType' (required when 'bufferView' is defined)",
                    path, entity_kind="image", entity_index=idx,
                )
                return None
            return BufferViewImage(
                buffer_view=buffer_view, mime_type=mime_type, name=raw.get("name"), **self._bag(raw)
            )
        self._error("Image must define either 'uri' or 'bufferView'", path, entity_kind="image", entity_index=idx)
        return None

    def _build_sampler(self, raw: Dict[str, Any], idx: int, path: str) -> Sampler:
        return Sampler(
            mag_filter=self._enum(MagFilter, raw.get("magFilter"), f"{path}/magFilter", "sampler", idx),
            min_filter=self._enum(MinFilter, raw.get("minFilter"), f"{path}/minFilter", "sampler", idx),
            wrap_s=self._enum(WrapMode, raw.get("wrapS", WrapMode.REPEAT.value), f"{path}/wrapS", "sampler", idx),
            wrap_t=self._enum(WrapMode, raw.get("wrapT", WrapMode.REPEAT.value), f"{path}/wrapT", "sampler", idx),
            name=raw.get("name"),
            **self._bag(raw),
        )

    def _build_texture(self, raw: Dict[str, Any], idx: int, path: str) -> Texture:
        return Texture(
            sampler=_int(raw.get("sampler")),
            source=_int(raw.get("source")),
            name=raw.get("name"),
            **self._bag(raw),
        )

    # -------------------------------------------------------------- materials

    def _texture_info(self, raw: Optional[Dict[str, Any]], cls: Type[TextureInfo] = TextureInfo) -> Optional[TextureInfo]:
        if raw is None:
            return None
        kwargs: Dict[str, Any] = {
            "index": _int(raw["index"]),
            "tex_coord": _int(raw.get("texCoord", 0)),
        }
        if cls is NormalTextureInfo:
            kwargs["scale"] = raw.get("scale", 1.0)
        elif cls is OcclusionTextureInfo:
            kwargs["strength"] = raw.get("strength", 1.0)
        return cls(**kwargs, **self._bag(raw))

    def _build_material(self, raw: Dict[str, Any], idx: int, path: str) -> Material:
        pbr_raw = raw.get("pbrMetallicRoughness", {})
        pbr = PbrMetallicRoughness(
            base_color_factor=tuple(pbr_raw.get("baseColorFactor", (1.0, 1.0, 1.0, 1.0))),
            base_color_texture=self._texture_info(pbr_raw.get("baseColorTexture")),
            metallic_factor=pbr_raw.get("metallicFactor", 1.0),
            roughness_factor=pbr_raw.get("roughnessFactor", 1.0),
            metallic_roughness_texture=self._texture_info(pbr_raw.get("metallicRoughnessTexture")),
            **self._bag(pbr_raw),
        )
        return Material(
            pbr_metallic_roughness=pbr,
            normal_texture=self._texture_info(raw.get("normalTexture"), NormalTextureInfo),
            occlusion_texture=self._texture_info(raw.get("occlusionTexture"), OcclusionTextureInfo),
            emissive_texture=self._texture_info(raw.get("emissiveTexture")),
            emissive_factor=tuple(raw.get("emissiveFactor", (0.0, 0.0, 0.0))),
            alpha_mode=self._enum(AlphaMode, raw.get("alphaMode", AlphaMode.OPAQUE.value), f"{path}/alphaMode", "material", idx),
            alpha_cutoff=raw.get("alphaCutoff", 0.5),
            double_sided=raw.get("doubleSided", False),
            name=raw.get("name"),
            **self._bag(raw),
        )

    # ---------------------------------------------------------------- cameras

    def _build_camera(self, raw: Dict[str, Any], idx: int, path: str) -> Optional[Camera]:
        camera_type = self._enum(CameraType, raw["type"], f"{path}/type", "camera", idx)
        if camera_type is None:
            return None

        member = camera_type.value
        other = (
            CameraType.ORTHOGRAPHIC if camera_type is CameraType.PERSPECTIVE else CameraType.PERSPECTIVE
        ).value
        if other in raw:
            self._error(
                f"Camera of type '{member}' must not define '{other}'", path,
                entity_kind="camera", entity_index=idx,
            )
            return None
        if member not in raw:
            self._error(
                f"Missing required field '{member}' for camera of type '{member}'", path,
                entity_kind="camera", entity_index=idx,
            )
            return None

        projection = raw[member]
        common = {
            "name": raw.get("name"),
            "projection_extensions": freeze_json(projection["extensions"]) if "extensions" in projection else None,
            "projection_extras": freeze_json(projection.get("extras")),
            **self._bag(raw),
        }
        if camera_type is CameraType.PERSPECTIVE:
            return PerspectiveCamera(
                yfov=projection["yfov"],
                znear=projection["znear"],
                aspect_ratio=projection.get("aspectRatio"),
                zfar=projection.get("zfar"),
                **common,
            )
        return OrthographicCamera(
            xmag=projection["xmag"],
            ymag=projection["ymag"],
            zfar=projection["zfar"],
            znear=projection["znear"],
            **common,
        )

    # ----------------------------------------------------------------- meshes

    def _build_primitive(self, raw: Dict[str, Any], mesh_idx: int, path: str) -> MeshPrimitive:
        targets = None
        if "targets" in raw:
            targets = tuple(_attribute_map(t) for t in raw["targets"])
        return MeshPrimitive(
            attributes=_attribute_map(raw["attributes"]),
            indices=_int(raw.get("indices")),
            material=_int(raw.get("material")),
            mode=self._enum(PrimitiveMode, raw.get("mode", PrimitiveMode.TRIANGLES.value), f"{path}/mode", "mesh", mesh_idx),
            targets=targets,
            **self._bag(raw),
        )

    def _build_mesh(self, raw: Dict[str, Any], idx: int, path: str) -> Mesh:
        primitives = tuple(
            self._build_primitive(p, idx, f"{path}/primitives/{j}")
            for j, p in enumerate(raw["primitives"])
        )
        return Mesh(
            primitives=primitives,
            weights=_numbers(raw.get("weights")),
            name=raw.get("name"),
            **self._bag(raw),
        )

    def _build_skin(self, raw: Dict[str, Any], idx: int, path: str) -> Skin:
        return Skin(
            joints=_indices(raw["joints"]),
            inverse_bind_matrices=_int(raw.get("inverseBindMatrices")),
            skeleton=_int(raw.get("skeleton")),
            name=raw.get("name"),
            **self._bag(raw),
        )

    # ---------------------------------------------------------------- nodes

    def _build_node(self, raw: Dict[str, Any], idx: int, path: str) -> Node:
        return Node(
            camera=_int(raw.get("camera")),
            children=_indices(raw.get("children")),
            skin=_int(raw.get("skin")),
            matrix=_numbers(raw.get("matrix")),
            mesh=_int(raw.get("mesh")),
            rotation=_numbers(raw.get("rotation")),
            scale=_numbers(raw.get("scale")),
            translation=_numbers(raw.get("translation")),
            weights=_numbers(raw.get("weights")),
            name=raw.get("name"),
            **self._bag(raw),
        )

    def _build_scene(self, raw: Dict[str, Any], idx: int, path: str) -> Scene:
        return Scene(nodes=_indices(raw.get("nodes")), name=raw.get("name"), **self._bag(raw))

    # -------------------------------------------------------------- animation

    def _build_animation(self, raw: Dict[str, Any], idx: int, path: str) -> Animation:
        channels = []
        for j, channel_raw in enumerate(raw["channels"]):
            target_raw = channel_raw["target"]
            target = AnimationChannelTarget(
                path=self._enum(TargetPath, target_raw["path"], f"{path}/channels/{j}/target/path", "animation", idx),
                node=_int(target_raw.get("node")),
                **self._bag(target_raw),
            )
            channels.append(
                AnimationChannel(sampler=_int(channel_raw["sampler"]), target=target, **self._bag(channel_raw))
            )
        samplers = []
        for j, sampler_raw in enumerate(raw["samplers"]):
            samplers.append(
                AnimationSampler(
                    input=_int(sampler_raw["input"]),
                    output=_int(sampler_raw["output"]),
                    interpolation=self._enum(
                        Interpolation,
                        sampler_raw.get("interpolation", Interpolation.LINEAR.value),
                        f"{path}/samplers/{j}/interpolation",
                        "animation",
                        idx,
                    ),
                    **self._bag(sampler_raw),
                )
            )
        return Animation(
            channels=tuple(channels),
            samplers=tuple(samplers),
            name=raw.get("name"),
            **self._bag(raw),
        )


def parse(data: Payload, strict_mode: bool = False) -> Document:
    """Parse a glTF JSON payload into an immutable Document.

    Raises:
        MalformedDocumentError: The payload is not JSON, violates the
            document structure, declares an unknown enum value or an
            unsupported asset version.
    """
    return DocumentParser(strict_mode=strict_mode).parse(data)
