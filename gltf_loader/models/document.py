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

"""In-memory model of a glTF 2.0 document.

Every record is a frozen dataclass and every sequence is a tuple, so a
:class:`Document` can be shared between threads once it is built. Index
fields keep the raw integers found in the payload; whether they point at an
existing element is decided by the reference resolver, not here.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple, Union

from .enums import (
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
    TargetPath,
    WrapMode,
)


JsonValue = Any
Vector3 = Tuple[float, float, float]
Vector4 = Tuple[float, float, float, float]
Matrix4 = Tuple[float, ...]

IDENTITY_TRANSLATION: Vector3 = (0.0, 0.0, 0.0)
IDENTITY_ROTATION: Vector4 = (0.0, 0.0, 0.0, 1.0)
IDENTITY_SCALE: Vector3 = (1.0, 1.0, 1.0)


def freeze_json(value: JsonValue) -> JsonValue:
    """Return a read-only copy of a decoded JSON value."""
    if isinstance(value, dict):
        return MappingProxyType({k: freeze_json(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze_json(v) for v in value)
    return value


def thaw_json(value: JsonValue) -> JsonValue:
    """Inverse of :func:`freeze_json`: plain dicts and lists again."""
    if isinstance(value, Mapping):
        return {k: thaw_json(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [thaw_json(v) for v in value]
    return value


@dataclass(frozen=True)
class Asset:
    version: str
    generator: Optional[str] = None
    copyright: Optional[str] = None
    min_version: Optional[str] = None
    extensions: Optional[Mapping[str, JsonValue]] = None
    extras: JsonValue = None


# ----------------------------- Buffers -----------------------------------

@dataclass(frozen=True)
class Buffer:
    byte_length: int
    uri: Optional[str] = None
    name: Optional[str] = None
    extensions: Optional[Mapping[str, JsonValue]] = None
    extras: JsonValue = None


@dataclass(frozen=True)
class BufferView:
    buffer: int
    byte_length: int
    byte_offset: int = 0
    byte_stride: Optional[int] = None
    target: Optional[BufferViewTarget] = None
    name: Optional[str] = None
    extensions: Optional[Mapping[str, JsonValue]] = None
    extras: JsonValue = None


# ----------------------------- Accessors ---------------------------------

@dataclass(frozen=True)
class SparseIndices:
    buffer_view: int
    component_type: ComponentType
    byte_offset: int = 0
    extensions: Optional[Mapping[str, JsonValue]] = None
    extras: JsonValue = None


@dataclass(frozen=True)
class SparseValues:
    buffer_view: int
    byte_offset: int = 0
    extensions: Optional[Mapping[str, JsonValue]] = None
    extras: JsonValue = None


@dataclass(frozen=True)
class AccessorSparse:
    count: int
    indices: SparseIndices
    values: SparseValues
    extensions: Optional[Mapping[str, JsonValue]] = None
    extras: JsonValue = None


@dataclass(frozen=True)
class Accessor:
    component_type: ComponentType
    count: int
    type: AccessorType
    buffer_view: Optional[int] = None
    byte_offset: int = 0
    normalized: bool = False
    max: Optional[Tuple[float, ...]] = None
    min: Optional[Tuple[float, ...]] = None
    sparse: Optional[AccessorSparse] = None
    name: Optional[str] = None
    extensions: Optional[Mapping[str, JsonValue]] = None
    extras: JsonValue = None

    @property
    def element_size(self) -> int:
        """Size in bytes of one tightly packed element."""
        return self.component_type.byte_size * self.type.component_count


# ------------------------- Images and textures ---------------------------

@dataclass(frozen=True)
class UriImage:
    uri: str
    mime_type: Optional[ImageMimeType] = None
    name: Optional[str] = None
    extensions: Optional[Mapping[str, JsonValue]] = None
    extras: JsonValue = None


@dataclass(frozen=True)
class BufferViewImage:
    buffer_view: int
    mime_type: ImageMimeType
    name: Optional[str] = None
    extensions: Optional[Mapping[str, JsonValue]] = None
    extras: JsonValue = None


Image = Union[UriImage, BufferViewImage]


@dataclass(frozen=True)
class Sampler:
    mag_filter: Optional[MagFilter] = None
    min_filter: Optional[MinFilter] = None
    wrap_s: WrapMode = WrapMode.REPEAT
    wrap_t: WrapMode = WrapMode.REPEAT
    name: Optional[str] = None
    extensions: Optional[Mapping[str, JsonValue]] = None
    extras: JsonValue = None


@dataclass(frozen=True)
class Texture:
    sampler: Optional[int] = None
    source: Optional[int] = None
    name: Optional[str] = None
    extensions: Optional[Mapping[str, JsonValue]] = None
    extras: JsonValue = None


# ------------------------------ Materials --------------------------------

@dataclass(frozen=True)
class TextureInfo:
    index: int
    tex_coord: int = 0
    extensions: Optional[Mapping[str, JsonValue]] = None
    extras: JsonValue = None


@dataclass(frozen=True)
class NormalTextureInfo(TextureInfo):
    scale: float = 1.0


@dataclass(frozen=True)
class OcclusionTextureInfo(TextureInfo):
    strength: float = 1.0


@dataclass(frozen=True)
class PbrMetallicRoughness:
    base_color_factor: Vector4 = (1.0, 1.0, 1.0, 1.0)
    base_color_texture: Optional[TextureInfo] = None
    metallic_factor: float = 1.0
    roughness_factor: float = 1.0
    metallic_roughness_texture: Optional[TextureInfo] = None
    extensions: Optional[Mapping[str, JsonValue]] = None
    extras: JsonValue = None


@dataclass(frozen=True)
class Material:
    pbr_metallic_roughness: PbrMetallicRoughness = PbrMetallicRoughness()
    normal_texture: Optional[NormalTextureInfo] = None
    occlusion_texture: Optional[OcclusionTextureInfo] = None
    emissive_texture: Optional[TextureInfo] = None
    emissive_factor: Vector3 = (0.0, 0.0, 0.0)
    alpha_mode: AlphaMode = AlphaMode.OPAQUE
    alpha_cutoff: float = 0.5
    double_sided: bool = False
    name: Optional[str] = None
    extensions: Optional[Mapping[str, JsonValue]] = None
    extras: JsonValue = None

    def texture_infos(self) -> Tuple[Tuple[str, TextureInfo], ...]:
        """(field name, info) for every texture slot that is populated."""
        pbr = self.pbr_metallic_roughness
        slots = (
            ("pbrMetallicRoughness.baseColorTexture", pbr.base_color_texture),
            ("pbrMetallicRoughness.metallicRoughnessTexture", pbr.metallic_roughness_texture),
            ("normalTexture", self.normal_texture),
            ("occlusionTexture", self.occlusion_texture),
            ("emissiveTexture", self.emissive_texture),
        )
        return tuple((name, info) for name, info in slots if info is not None)


# ------------------------------- Cameras ---------------------------------

@dataclass(frozen=True)
class PerspectiveCamera:
    yfov: float
    znear: float
    aspect_ratio: Optional[float] = None
    zfar: Optional[float] = None
    name: Optional[str] = None
    extensions: Optional[Mapping[str, JsonValue]] = None
    extras: JsonValue = None
    projection_extensions: Optional[Mapping[str, JsonValue]] = None
    projection_extras: JsonValue = None

    type = CameraType.PERSPECTIVE


@dataclass(frozen=True)
class OrthographicCamera:
    xmag: float
    ymag: float
    zfar: float
    znear: float
    name: Optional[str] = None
    extensions: Optional[Mapping[str, JsonValue]] = None
    extras: JsonValue = None
    projection_extensions: Optional[Mapping[str, JsonValue]] = None
    projection_extras: JsonValue = None

    type = CameraType.ORTHOGRAPHIC


Camera = Union[PerspectiveCamera, OrthographicCamera]


# -------------------------------- Meshes ---------------------------------

@dataclass(frozen=True)
class MeshPrimitive:
    attributes: Mapping[str, int]
    indices: Optional[int] = None
    material: Optional[int] = None
    mode: PrimitiveMode = PrimitiveMode.TRIANGLES
    targets: Optional[Tuple[Mapping[str, int], ...]] = None
    extensions: Optional[Mapping[str, JsonValue]] = None
    extras: JsonValue = None

    @property
    def target_count(self) -> int:
        return len(self.targets) if self.targets else 0


@dataclass(frozen=True)
class Mesh:
    primitives: Tuple[MeshPrimitive, ...]
    weights: Optional[Tuple[float, ...]] = None
    name: Optional[str] = None
    extensions: Optional[Mapping[str, JsonValue]] = None
    extras: JsonValue = None

    @property
    def morph_target_count(self) -> int:
        """Morph target count of the first primitive (all should agree)."""
        return self.primitives[0].target_count if self.primitives else 0


@dataclass(frozen=True)
class Skin:
    joints: Tuple[int, ...]
    inverse_bind_matrices: Optional[int] = None
    skeleton: Optional[int] = None
    name: Optional[str] = None
    extensions: Optional[Mapping[str, JsonValue]] = None
    extras: JsonValue = None


# ------------------------------ Hierarchy --------------------------------

@dataclass(frozen=True)
class Node:
    camera: Optional[int] = None
    children: Tuple[int, ...] = ()
    skin: Optional[int] = None
    matrix: Optional[Matrix4] = None
    mesh: Optional[int] = None
    rotation: Optional[Vector4] = None
    scale: Optional[Vector3] = None
    translation: Optional[Vector3] = None
    weights: Optional[Tuple[float, ...]] = None
    name: Optional[str] = None
    extensions: Optional[Mapping[str, JsonValue]] = None
    extras: JsonValue = None

    @property
    def has_trs(self) -> bool:
        return any(v is not None for v in (self.translation, self.rotation, self.scale))

    def local_trs(self) -> Tuple[Vector3, Vector4, Vector3]:
        """Translation, rotation and scale with glTF defaults filled in."""
        return (
            self.translation if self.translation is not None else IDENTITY_TRANSLATION,
            self.rotation if self.rotation is not None else IDENTITY_ROTATION,
            self.scale if self.scale is not None else IDENTITY_SCALE,
        )


@dataclass(frozen=True)
class Scene:
    nodes: Tuple[int, ...] = ()
    name: Optional[str] = None
    extensions: Optional[Mapping[str, JsonValue]] = None
    extras: JsonValue = None


# ------------------------------ Animation --------------------------------

@dataclass(frozen=True)
class AnimationChannelTarget:
    path: TargetPath
    node: Optional[int] = None
    extensions: Optional[Mapping[str, JsonValue]] = None
    extras: JsonValue = None


@dataclass(frozen=True)
class AnimationChannel:
    sampler: int
    target: AnimationChannelTarget
    extensions: Optional[Mapping[str, JsonValue]] = None
    extras: JsonValue = None


@dataclass(frozen=True)
class AnimationSampler:
    input: int
    output: int
    interpolation: Interpolation = Interpolation.LINEAR
    extensions: Optional[Mapping[str, JsonValue]] = None
    extras: JsonValue = None


@dataclass(frozen=True)
class Animation:
    channels: Tuple[AnimationChannel, ...]
    samplers: Tuple[AnimationSampler, ...]
    name: Optional[str] = None
    extensions: Optional[Mapping[str, JsonValue]] = None
    extras: JsonValue = None


# ------------------------------- Document --------------------------------

@dataclass(frozen=True)
class Document:
    """Root of a glTF asset."""

    asset: Asset
    accessors: Tuple[Accessor, ...] = ()
    animations: Tuple[Animation, ...] = ()
    buffers: Tuple[Buffer, ...] = ()
    buffer_views: Tuple[BufferView, ...] = ()
    cameras: Tuple[Camera, ...] = ()
    images: Tuple[Image, ...] = ()
    materials: Tuple[Material, ...] = ()
    meshes: Tuple[Mesh, ...] = ()
    nodes: Tuple[Node, ...] = ()
    samplers: Tuple[Sampler, ...] = ()
    scene: Optional[int] = None
    scenes: Tuple[Scene, ...] = ()
    skins: Tuple[Skin, ...] = ()
    textures: Tuple[Texture, ...] = ()
    extensions_used: Tuple[str, ...] = ()
    extensions_required: Tuple[str, ...] = ()
    extensions: Optional[Mapping[str, JsonValue]] = None
    extras: JsonValue = None

    def default_scene(self) -> Optional[Scene]:
        if self.scene is None or not 0 <= self.scene < len(self.scenes):
            return None
        return self.scenes[self.scene]
