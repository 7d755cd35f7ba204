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

"""Semantic checks that the document structure alone cannot express.

Every check assumes the reference stage succeeded, so indices are used
without bounds checks.
"""

import logging
from typing import Callable, Optional, Tuple

from ..exceptions import StageOrderError
from ..models.document import Document
from ..models.enums import AccessorType, ComponentType
from ..report import IssueKind, ReferenceReport, ValidationReport
from .sparse import BufferData, first_non_increasing, read_sparse_indices

logger = logging.getLogger(__name__)

SKINNING_ATTRIBUTES = ("JOINTS_0", "WEIGHTS_0")

MIN_BYTE_STRIDE = 4
MAX_BYTE_STRIDE = 252


class ValidationContext:
    """What a semantic check gets to see."""

    def __init__(self, document: Document, report: ValidationReport, buffers: Optional[BufferData]):
        self.document = document
        self.report = report
        self.buffers = buffers


SemanticCheck = Callable[[ValidationContext], None]


def check_node_transforms(ctx: ValidationContext) -> None:
    for i, node in enumerate(ctx.document.nodes):
        if node.matrix is not None and node.has_trs:
            declared = [
                name for name, value in (
                    ("translation", node.translation),
                    ("rotation", node.rotation),
                    ("scale", node.scale),
                ) if value is not None
            ]
            ctx.report.add_error(
                IssueKind.CONFLICTING_TRANSFORM,
                f"node {i}: 'matrix' must not be combined with {', '.join(repr(d) for d in declared)}",
                entity_kind="node",
                entity_index=i,
                field_name="matrix",
                json_path=f"/nodes/{i}/matrix",
            )


def check_skinning_attributes(ctx: ValidationContext) -> None:
    doc = ctx.document
    for i, node in enumerate(doc.nodes):
        if node.skin is None or node.mesh is None:
            continue
        for j, primitive in enumerate(doc.meshes[node.mesh].primitives):
            missing = [a for a in SKINNING_ATTRIBUTES if a not in primitive.attributes]
            if missing:
                ctx.report.add_error(
                    IssueKind.MISSING_SKINNING_ATTRIBUTES,
                    f"node {i} uses skin {node.skin}, but primitive {j} of mesh {node.mesh} "
                    f"lacks {', '.join(missing)}",
                    entity_kind="node",
                    entity_index=i,
                    field_name=f"mesh.primitives[{j}].attributes",
                    json_path=f"/meshes/{node.mesh}/primitives/{j}/attributes",
                )


def check_skin_joint_counts(ctx: ValidationContext) -> None:
    doc = ctx.document
    for i, skin in enumerate(doc.skins):
        if skin.inverse_bind_matrices is None:
            continue
        accessor = doc.accessors[skin.inverse_bind_matrices]
        if accessor.count != len(skin.joints):
            ctx.report.add_error(
                IssueKind.SKIN_JOINT_COUNT_MISMATCH,
                f"skin {i} has {len(skin.joints)} joints, but inverseBindMatrices accessor "
                f"{skin.inverse_bind_matrices} has count {accessor.count}",
                entity_kind="skin",
                entity_index=i,
                field_name="joints",
                referenced_index=skin.inverse_bind_matrices,
                json_path=f"/skins/{i}/joints",
            )


def check_morph_targets(ctx: ValidationContext) -> None:
    doc = ctx.document
    for i, mesh in enumerate(doc.meshes):
        counts = [p.target_count for p in mesh.primitives]
        if len(set(counts)) > 1:
            ctx.report.add_error(
                IssueKind.INCONSISTENT_MORPH_TARGETS,
                f"mesh {i}: primitives declare different morph target counts {counts}",
                entity_kind="mesh",
                entity_index=i,
                field_name="primitives",
                json_path=f"/meshes/{i}/primitives",
            )
        if mesh.weights is not None and len(mesh.weights) != mesh.morph_target_count:
            ctx.report.add_error(
                IssueKind.MORPH_WEIGHT_COUNT_MISMATCH,
                f"mesh {i} has {len(mesh.weights)} weights but {mesh.morph_target_count} morph targets",
                entity_kind="mesh",
                entity_index=i,
                field_name="weights",
                json_path=f"/meshes/{i}/weights",
            )

    for i, node in enumerate(doc.nodes):
        if node.weights is None:
            continue
        if node.mesh is None:
            ctx.report.add_error(
                IssueKind.MORPH_WEIGHT_COUNT_MISMATCH,
                f"node {i} declares {len(node.weights)} morph weights but has no mesh",
                entity_kind="node",
                entity_index=i,
                field_name="weights",
                json_path=f"/nodes/{i}/weights",
            )
            continue
        expected = doc.meshes[node.mesh].morph_target_count
        if len(node.weights) != expected:
            ctx.report.add_error(
                IssueKind.MORPH_WEIGHT_COUNT_MISMATCH,
                f"node {i} has {len(node.weights)} weights but mesh {node.mesh} has {expected} morph targets",
                entity_kind="node",
                entity_index=i,
                field_name="weights",
                referenced_index=node.mesh,
                json_path=f"/nodes/{i}/weights",
            )


def check_accessor_bounds(ctx: ValidationContext) -> None:
    for i, accessor in enumerate(ctx.document.accessors):
        expected = accessor.type.component_count
        for field_name, bound in (("min", accessor.min), ("max", accessor.max)):
            if bound is not None and len(bound) != expected:
                ctx.report.add_error(
                    IssueKind.ACCESSOR_BOUNDS_MISMATCH,
                    f"accessor {i}: '{field_name}' has {len(bound)} components, "
                    f"type {accessor.type.value} requires {expected}",
                    entity_kind="accessor",
                    entity_index=i,
                    field_name=field_name,
                    json_path=f"/accessors/{i}/{field_name}",
                )


def check_sparse_accessors(ctx: ValidationContext) -> None:
    doc = ctx.document
    for i, accessor in enumerate(doc.accessors):
        sparse = accessor.sparse
        if sparse is None:
            continue
        path = f"/accessors/{i}/sparse"
        if sparse.count > accessor.count:
            ctx.report.add_error(
                IssueKind.SPARSE_INDEX_OUT_OF_RANGE,
                f"accessor {i}: sparse.count {sparse.count} exceeds accessor count {accessor.count}",
                entity_kind="accessor",
                entity_index=i,
                field_name="sparse.count",
                json_path=f"{path}/count",
            )

        indices = read_sparse_indices(doc, sparse, ctx.buffers)
        if indices is None:
            ctx.report.add_warning(
                IssueKind.SPARSE_INDICES_UNAVAILABLE,
                f"accessor {i}: sparse indices could not be read, ordering not verified",
                entity_kind="accessor",
                entity_index=i,
                field_name="sparse.indices",
                json_path=f"{path}/indices",
            )
            continue

        position = first_non_increasing(indices)
        if position is not None:
            ctx.report.add_error(
                IssueKind.NON_MONOTONIC_SPARSE_INDICES,
                f"accessor {i}: sparse indices must strictly increase, but index {indices[position]} "
                f"at position {position} follows {indices[position - 1]}",
                entity_kind="accessor",
                entity_index=i,
                field_name="sparse.indices",
                json_path=f"{path}/indices",
            )
        out_of_range = [v for v in indices if v >= accessor.count]
        if out_of_range:
            ctx.report.add_error(
                IssueKind.SPARSE_INDEX_OUT_OF_RANGE,
                f"accessor {i}: sparse indices {out_of_range} are not below accessor count {accessor.count}",
                entity_kind="accessor",
                entity_index=i,
                field_name="sparse.indices",
                json_path=f"{path}/indices",
            )


def check_data_ranges(ctx: ValidationContext) -> None:
    doc = ctx.document
    for i, view in enumerate(doc.buffer_views):
        buffer = doc.buffers[view.buffer]
        end = view.byte_offset + view.byte_length
        if end > buffer.byte_length:
            ctx.report.add_error(
                IssueKind.DATA_RANGE_OVERFLOW,
                f"bufferView {i} ends at byte {end}, past the end of buffer {view.buffer} "
                f"({buffer.byte_length} bytes)",
                entity_kind="bufferView",
                entity_index=i,
                field_name="byteLength",
                referenced_index=view.buffer,
                json_path=f"/bufferViews/{i}/byteLength",
            )

    for i, accessor in enumerate(doc.accessors):
        if accessor.buffer_view is None:
            continue
        view = doc.buffer_views[accessor.buffer_view]
        stride = view.byte_stride or accessor.element_size
        end = accessor.byte_offset + stride * (accessor.count - 1) + accessor.element_size
        if end > view.byte_length:
            ctx.report.add_error(
                IssueKind.DATA_RANGE_OVERFLOW,
                f"accessor {i} needs {end} bytes of bufferView {accessor.buffer_view}, "
                f"which is {view.byte_length} bytes long",
                entity_kind="accessor",
                entity_index=i,
                field_name="count",
                referenced_index=accessor.buffer_view,
                json_path=f"/accessors/{i}",
            )


def check_byte_strides(ctx: ValidationContext) -> None:
    for i, view in enumerate(ctx.document.buffer_views):
        stride = view.byte_stride
        if stride is None:
            continue
        if not MIN_BYTE_STRIDE <= stride <= MAX_BYTE_STRIDE or stride % 4:
            ctx.report.add_error(
                IssueKind.INVALID_BYTE_STRIDE,
                f"bufferView {i}: byteStride {stride} must be a multiple of 4 "
                f"between {MIN_BYTE_STRIDE} and {MAX_BYTE_STRIDE}",
                entity_kind="bufferView",
                entity_index=i,
                field_name="byteStride",
                json_path=f"/bufferViews/{i}/byteStride",
            )


def check_animation_samplers(ctx: ValidationContext) -> None:
    doc = ctx.document
    for i, animation in enumerate(doc.animations):
        for j, sampler in enumerate(animation.samplers):
            accessor = doc.accessors[sampler.input]
            if accessor.type is not AccessorType.SCALAR or accessor.component_type is not ComponentType.FLOAT:
                ctx.report.add_error(
                    IssueKind.INVALID_ANIMATION_SAMPLER,
                    f"animation {i}: sampler {j} input accessor {sampler.input} must be "
                    f"SCALAR FLOAT, got {accessor.type.value} {accessor.component_type.name}",
                    entity_kind="animation",
                    entity_index=i,
                    field_name=f"samplers[{j}].input",
                    referenced_index=sampler.input,
                    json_path=f"/animations/{i}/samplers/{j}/input",
                )


def check_required_extensions(ctx: ValidationContext) -> None:
    doc = ctx.document
    used = set(doc.extensions_used)
    for position, name in enumerate(doc.extensions_required):
        if name not in used:
            ctx.report.add_error(
                IssueKind.UNDECLARED_REQUIRED_EXTENSION,
                f"extension '{name}' is required but not listed in extensionsUsed",
                entity_kind="document",
                field_name=f"extensionsRequired[{position}]",
                json_path=f"/extensionsRequired/{position}",
            )


SEMANTIC_CHECKS: Tuple[SemanticCheck, ...] = (
    check_node_transforms,
    check_skinning_attributes,
    check_skin_joint_counts,
    check_morph_targets,
    check_accessor_bounds,
    check_sparse_accessors,
    check_data_ranges,
    check_byte_strides,
    check_animation_samplers,
    check_required_extensions,
)


def get_semantic_checks() -> Tuple[SemanticCheck, ...]:
    return SEMANTIC_CHECKS


def validate(
    document: Document,
    reference_report: ReferenceReport,
    buffers: Optional[BufferData] = None,
) -> ValidationReport:
    """Run every semantic check and collect all of their issues.

    Args:
        document: A parsed document
        reference_report: The successful reference report for ``document``
        buffers: Optional buffer bytes keyed by buffer index, used to read
            sparse indices. For binary containers the BIN chunk is index 0.

    Raises:
        StageOrderError: ``reference_report`` belongs to another document or
            has errors.
    """
    if reference_report.document is not document:
        raise StageOrderError("Reference report was produced for a different document")
    if not reference_report.ok:
        raise StageOrderError(
            f"Cannot validate a document with {len(reference_report.errors)} unresolved reference error(s)"
        )

    report = ValidationReport(document)
    ctx = ValidationContext(document, report, buffers)
    for check in get_semantic_checks():
        check(ctx)

    logger.debug(
        f"Validation finished with {len(report.errors)} error(s) and {len(report.warnings)} warning(s)"
    )
    return report
