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

"""Decoding of sparse accessor indices from buffer bytes."""

import struct
from typing import Mapping, Optional, Tuple

from ..models.document import AccessorSparse, Document

BufferData = Mapping[int, bytes]


def read_sparse_indices(
    document: Document,
    sparse: AccessorSparse,
    buffers: Optional[BufferData],
) -> Optional[Tuple[int, ...]]:
    """Return the ``sparse.count`` indices, or None when the bytes are unavailable.

    Assumes references were already checked. Indices are little-endian and
    tightly packed, as the format requires for sparse index buffer views.
    """
    if not buffers:
        return None

    view = document.buffer_views[sparse.indices.buffer_view]
    data = buffers.get(view.buffer)
    if data is None:
        return None

    component = sparse.indices.component_type
    start = view.byte_offset + sparse.indices.byte_offset
    size = component.byte_size * sparse.count
    if sparse.indices.byte_offset + size > view.byte_length or start + size > len(data):
        return None

    fmt = f"<{sparse.count}{component.struct_format}"
    return struct.unpack_from(fmt, data, start)


def first_non_increasing(indices: Tuple[int, ...]) -> Optional[int]:
    """Position of the first index that is not greater than its predecessor."""
    for position in range(1, len(indices)):
        if indices[position] <= indices[position - 1]:
            return position
    return None
