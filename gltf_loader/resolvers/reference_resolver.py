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

"""Index reference checking for parsed documents."""

import logging
from types import MappingProxyType
from typing import Iterable, Optional, Sequence

from ..models.document import BufferViewImage, Document
from ..report import IssueKind, ReferenceReport
from .node_hierarchy import build_hierarchy

logger = logging.getLogger(__name__)


class ReferenceResolver:
    """Walks every index field of a Document and checks its bounds.

    All violations are collected in one pass; nothing stops at the first
    dangling reference.
    """

    def __init__(self, document: Document):
        self.document = document
        self.report = ReferenceReport(document)

    def resolve(self) -> ReferenceReport:
        self._check_document()
        self._check_scenes()
        self._check_nodes()
        self._check_skins()
        self._check_meshes()
        self._check_accessors()
        self._check_buffer_views()
        self._check_images()
        self._check_textures()
        self._check_materials()
        self._check_animations()

        hierarchy = build_hierarchy(self.document)
        self.report.errors.extend(hierarchy.issues)
        self.report.parents = MappingProxyType(dict(hierarchy.parents))

        logger.debug(
            f"Reference check finished with {len(self.report.errors)} error(s)"
        )
        return self.report

    def _check(
        self,
        entity_kind: str,
        entity_index: Optional[int],
        field_name: str,
        value: Optional[int],
        target: Sequence,
        target_kind: str,
        json_path: str,
    ) -> None:
        if value is None:
            return
        if 0 <= value < len(target):
            return
        owner = entity_kind if entity_index is None else f"{entity_kind} {entity_index}"
        if target:
            bounds = f"valid range is 0..{len(target) - 1}"
        else:
            bounds = f"the document has no {target_kind}"
        self.report.add_error(
            IssueKind.DANGLING_REFERENCE,
            f"{owner}: '{field_name}' references {target_kind} {value}, but {bounds}",
            entity_kind=entity_kind,
            entity_index=entity_index,
            field_name=field_name,
            referenced_index=value,
            json_path=json_path,
        )

    def _check_all(
        self,
        entity_kind: str,
        entity_index: int,
        field_name: str,
        values: Iterable[int],
        target: Sequence,
        target_kind: str,
        json_path: str,
    ) -> None:
        for position, value in enumerate(values):
            self._check(
                entity_kind, entity_index, f"{field_name}[{position}]", value,
                target, target_kind, f"{json_path}/{position}",
            )

    # ------------------------------------------------------------- entities

    def _check_document(self) -> None:
        doc = self.document
        self._check("document", None, "scene", doc.scene, doc.scenes, "scenes", "/scene")

    def _check_scenes(self) -> None:
        doc = self.document
        for i, scene in enumerate(doc.scenes):
            self._check_all("scene", i, "nodes", scene.nodes, doc.nodes, "nodes", f"/scenes/{i}/nodes")

    def _check_nodes(self) -> None:
        doc = self.document
        for i, node in enumerate(doc.nodes):
            path = f"/nodes/{i}"
            self._check("node", i, "camera", node.camera, doc.cameras, "cameras", f"{path}/camera")
            self._check("node", i, "mesh", node.mesh, doc.meshes, "meshes", f"{path}/mesh")
            self._check("node", i, "skin", node.skin, doc.skins, "skins", f"{path}/skin")
            self._check_all("node", i, "children", node.children, doc.nodes, "nodes", f"{path}/children")

    def _check_skins(self) -> None:
        doc = self.document
        for i, skin in enumerate(doc.skins):
            path = f"/skins/{i}"
            self._check(
                "skin", i, "inverseBindMatrices", skin.inverse_bind_matrices,
                doc.accessors, "accessors", f"{path}/inverseBindMatrices",
            )
            self._check("skin", i, "skeleton", skin.skeleton, doc.nodes, "nodes", f"{path}/skeleton")
            self._check_all("skin", i, "joints", skin.joints, doc.nodes, "nodes", f"{path}/joints")

    def _check_meshes(self) -> None:
        doc = self.document
        for i, mesh in enumerate(doc.meshes):
            for j, primitive in enumerate(mesh.primitives):
                prefix = f"primitives[{j}]"
                path = f"/meshes/{i}/primitives/{j}"
                for name, accessor in primitive.attributes.items():
                    self._check(
                        "mesh", i, f"{prefix}.attributes.{name}", accessor,
                        doc.accessors, "accessors", f"{path}/attributes/{name}",
                    )
                self._check(
                    "mesh", i, f"{prefix}.indices", primitive.indices,
                    doc.accessors, "accessors", f"{path}/indices",
                )
                self._check(
                    "mesh", i, f"{prefix}.material", primitive.material,
                    doc.materials, "materials", f"{path}/material",
                )
                for k, target in enumerate(primitive.targets or ()):
                    for name, accessor in target.items():
                        self._check(
                            "mesh", i, f"{prefix}.targets[{k}].{name}", accessor,
                            doc.accessors, "accessors", f"{path}/targets/{k}/{name}",
                        )

    def _check_accessors(self) -> None:
        doc = self.document
        for i, accessor in enumerate(doc.accessors):
            path = f"/accessors/{i}"
            self._check(
                "accessor", i, "bufferView", accessor.buffer_view,
                doc.buffer_views, "bufferViews", f"{path}/bufferView",
            )
            if accessor.sparse is not None:
                self._check(
                    "accessor", i, "sparse.indices.bufferView", accessor.sparse.indices.buffer_view,
                    doc.buffer_views, "bufferViews", f"{path}/sparse/indices/bufferView",
                )
                self._check(
                    "accessor", i, "sparse.values.bufferView", accessor.sparse.values.buffer_view,
                    doc.buffer_views, "bufferViews", f"{path}/sparse/values/bufferView",
                )

    def _check_buffer_views(self) -> None:
        doc = self.document
        for i, view in enumerate(doc.buffer_views):
            self._check("bufferView", i, "buffer", view.buffer, doc.buffers, "buffers", f"/bufferViews/{i}/buffer")

    def _check_images(self) -> None:
        doc = self.document
        for i, image in enumerate(doc.images):
            if isinstance(image, BufferViewImage):
                self._check(
                    "image", i, "bufferView", image.buffer_view,
                    doc.buffer_views, "bufferViews", f"/images/{i}/bufferView",
                )

    def _check_textures(self) -> None:
        doc = self.document
        for i, texture in enumerate(doc.textures):
            path = f"/textures/{i}"
            self._check("texture", i, "sampler", texture.sampler, doc.samplers, "samplers", f"{path}/sampler")
            self._check("texture", i, "source", texture.source, doc.images, "images", f"{path}/source")

    def _check_materials(self) -> None:
        doc = self.document
        for i, material in enumerate(doc.materials):
            for field_name, info in material.texture_infos():
                pointer = field_name.replace(".", "/")
                self._check(
                    "material", i, f"{field_name}.index", info.index,
                    doc.textures, "textures", f"/materials/{i}/{pointer}/index",
                )

    def _check_animations(self) -> None:
        doc = self.document
        for i, animation in enumerate(doc.animations):
            path = f"/animations/{i}"
            for j, channel in enumerate(animation.channels):
                self._check(
                    "animation", i, f"channels[{j}].sampler", channel.sampler,
                    animation.samplers, "animation samplers", f"{path}/channels/{j}/sampler",
                )
                self._check(
                    "animation", i, f"channels[{j}].target.node", channel.target.node,
                    doc.nodes, "nodes", f"{path}/channels/{j}/target/node",
                )
            for j, sampler in enumerate(animation.samplers):
                self._check(
                    "animation", i, f"samplers[{j}].input", sampler.input,
                    doc.accessors, "accessors", f"{path}/samplers/{j}/input",
                )
                self._check(
                    "animation", i, f"samplers[{j}].output", sampler.output,
                    doc.accessors, "accessors", f"{path}/samplers/{j}/output",
                )


def check_references(document: Document) -> ReferenceReport:
    """Check every index reference and the node hierarchy of a Document."""
    return ReferenceResolver(document).resolve()
