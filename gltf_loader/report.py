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

"""Issue records and per-stage reports."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Tuple

if TYPE_CHECKING:
    from .models.document import Document


class Stage(str, Enum):
    """Pipeline states a document moves through."""

    UNPARSED = "unparsed"
    PARSED = "parsed"
    REFERENCE_CHECKED = "reference_checked"
    VALIDATED = "validated"


class IssueKind:
    """Issue kind identifiers."""

    MALFORMED_DOCUMENT = "MalformedDocument"
    UNRECOGNIZED_ENUM_VALUE = "UnrecognizedEnumValue"
    DANGLING_REFERENCE = "DanglingReference"
    INVALID_HIERARCHY = "InvalidHierarchy"
    CONFLICTING_TRANSFORM = "ConflictingTransform"
    MISSING_SKINNING_ATTRIBUTES = "MissingSkinningAttributes"
    NON_MONOTONIC_SPARSE_INDICES = "NonMonotonicSparseIndices"
    SPARSE_INDEX_OUT_OF_RANGE = "SparseIndexOutOfRange"
    SPARSE_INDICES_UNAVAILABLE = "SparseIndicesUnavailable"
    SKIN_JOINT_COUNT_MISMATCH = "SkinJointCountMismatch"
    MORPH_WEIGHT_COUNT_MISMATCH = "MorphWeightCountMismatch"
    INCONSISTENT_MORPH_TARGETS = "InconsistentMorphTargets"
    ACCESSOR_BOUNDS_MISMATCH = "AccessorBoundsMismatch"
    DATA_RANGE_OVERFLOW = "DataRangeOverflow"
    INVALID_BYTE_STRIDE = "InvalidByteStride"
    INVALID_ANIMATION_SAMPLER = "InvalidAnimationSampler"
    UNDECLARED_REQUIRED_EXTENSION = "UndeclaredRequiredExtension"
    UNRESOLVED_URI = "UnresolvedUri"

    @classmethod
    def get_all_kinds(cls) -> List[str]:
        return [
            value for key, value in vars(cls).items()
            if key.isupper() and isinstance(value, str)
        ]


# Stage labels used in issue records
PARSE_STAGE = "parse"
REFERENCE_STAGE = "references"
VALIDATE_STAGE = "validate"


@dataclass(frozen=True)
class Issue:
    """A single diagnostic produced by one of the loader stages."""

    stage: str
    kind: str
    message: str
    entity_kind: Optional[str] = None
    entity_index: Optional[int] = None
    field_name: Optional[str] = None
    referenced_index: Optional[Any] = None
    nodes: Tuple[int, ...] = ()
    json_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "stage": self.stage,
            "kind": self.kind,
            "entity_kind": self.entity_kind,
            "entity_index": self.entity_index,
            "message": self.message,
        }
        if self.field_name is not None:
            data["field_name"] = self.field_name
        if self.referenced_index is not None:
            data["referenced_index"] = self.referenced_index
        if self.nodes:
            data["nodes"] = list(self.nodes)
        if self.json_path is not None:
            data["json_path"] = self.json_path
        return data


class StageReport:
    """Errors and warnings collected by one stage for one document."""

    stage: str = ""

    def __init__(self, document: "Document"):
        self.document = document
        self.errors: List[Issue] = []
        self.warnings: List[Issue] = []

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def issues(self) -> List[Issue]:
        return self.errors + self.warnings

    def add_error(self, kind: str, message: str, **details: Any) -> Issue:
        issue = Issue(stage=self.stage, kind=kind, message=message, **details)
        self.errors.append(issue)
        return issue

    def add_warning(self, kind: str, message: str, **details: Any) -> Issue:
        issue = Issue(stage=self.stage, kind=kind, message=message, **details)
        self.warnings.append(issue)
        return issue

    def errors_of(self, kind: str) -> List[Issue]:
        return [e for e in self.errors if e.kind == kind]

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(errors={len(self.errors)}, "
            f"warnings={len(self.warnings)})"
        )


class ReferenceReport(StageReport):
    """Result of reference resolution.

    Besides the issues, holds the node-parent map discovered while walking
    ``children`` so later stages do not have to rebuild it.
    """

    stage = REFERENCE_STAGE

    def __init__(self, document: "Document"):
        super().__init__(document)
        self.parents: Mapping[int, int] = {}


class ValidationReport(StageReport):
    """Result of cross-field validation."""

    stage = VALIDATE_STAGE


@dataclass
class LoadResult:
    """Outcome of running every stage on one payload."""

    stage: Stage
    document: Optional["Document"] = None
    errors: List[Issue] = field(default_factory=list)
    warnings: List[Issue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.stage is Stage.VALIDATED and not self.errors
