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

"""Closed enumerations of the glTF 2.0 wire format."""

from enum import Enum, IntEnum


class ComponentType(IntEnum):
    BYTE = 5120
    UNSIGNED_BYTE = 5121
    SHORT = 5122
    UNSIGNED_SHORT = 5123
    UNSIGNED_INT = 5125
    FLOAT = 5126

    @property
    def byte_size(self) -> int:
        return _COMPONENT_SIZES[self]

    @property
    def struct_format(self) -> str:
        return _COMPONENT_FORMATS[self]


_COMPONENT_SIZES = {
    ComponentType.BYTE: 1,
    ComponentType.UNSIGNED_BYTE: 1,
    ComponentType.SHORT: 2,
    ComponentType.UNSIGNED_SHORT: 2,
    ComponentType.UNSIGNED_INT: 4,
    ComponentType.FLOAT: 4,
}

_COMPONENT_FORMATS = {
    ComponentType.BYTE: "b",
    ComponentType.UNSIGNED_BYTE: "B",
    ComponentType.SHORT: "h",
    ComponentType.UNSIGNED_SHORT: "H",
    ComponentType.UNSIGNED_INT: "I",
    ComponentType.FLOAT: "f",
}

# Component types allowed for sparse indices
SPARSE_INDEX_COMPONENT_TYPES = (
    ComponentType.UNSIGNED_BYTE,
    ComponentType.UNSIGNED_SHORT,
    ComponentType.UNSIGNED_INT,
)


class AccessorType(str, Enum):
    SCALAR = "SCALAR"
    VEC2 = "VEC2"
    VEC3 = "VEC3"
    VEC4 = "VEC4"
    MAT2 = "MAT2"
    MAT3 = "MAT3"
    MAT4 = "MAT4"

    @property
    def component_count(self) -> int:
        return _ACCESSOR_TYPE_COMPONENTS[self]


_ACCESSOR_TYPE_COMPONENTS = {
    AccessorType.SCALAR: 1,
    AccessorType.VEC2: 2,
    AccessorType.VEC3: 3,
    AccessorType.VEC4: 4,
    AccessorType.MAT2: 4,
    AccessorType.MAT3: 9,
    AccessorType.MAT4: 16,
}


class BufferViewTarget(IntEnum):
    ARRAY_BUFFER = 34962
    ELEMENT_ARRAY_BUFFER = 34963


class MagFilter(IntEnum):
    NEAREST = 9728
    LINEAR = 9729


class MinFilter(IntEnum):
    NEAREST = 9728
    LINEAR = 9729
    NEAREST_MIPMAP_NEAREST = 9984
    LINEAR_MIPMAP_NEAREST = 9985
    NEAREST_MIPMAP_LINEAR = 9986
    LINEAR_MIPMAP_LINEAR = 9987


class WrapMode(IntEnum):
    CLAMP_TO_EDGE = 33071
    MIRRORED_REPEAT = 33648
    REPEAT = 10497


class AlphaMode(str, Enum):
    OPAQUE = "OPAQUE"
    MASK = "MASK"
    BLEND = "BLEND"


class PrimitiveMode(IntEnum):
    POINTS = 0
    LINES = 1
    LINE_LOOP = 2
    LINE_STRIP = 3
    TRIANGLES = 4
    TRIANGLE_STRIP = 5
    TRIANGLE_FAN = 6


class Interpolation(str, Enum):
    LINEAR = "LINEAR"
    STEP = "STEP"
    CUBICSPLINE = "CUBICSPLINE"


class TargetPath(str, Enum):
    TRANSLATION = "translation"
    ROTATION = "rotation"
    SCALE = "scale"
    WEIGHTS = "weights"


class ImageMimeType(str, Enum):
    JPEG = "image/jpeg"
    PNG = "image/png"


class CameraType(str, Enum):
    PERSPECTIVE = "perspective"
    ORTHOGRAPHIC = "orthographic"
