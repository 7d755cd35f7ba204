"""glTF 2.0 document loader and validator."""

# glTF version implemented by this loader
GLTF_VERSION = "2.0"

from .exceptions import (  # noqa: E402
    GltfLoaderError,
    MalformedDocumentError,
    StageOrderError,
)
from .models.document import Document  # noqa: E402
from .parsing.document_parser import parse  # noqa: E402
from .pipeline import load  # noqa: E402
from .report import Issue, IssueKind, LoadResult, ReferenceReport, Stage, ValidationReport  # noqa: E402
from .resolvers.reference_resolver import check_references  # noqa: E402
from .serialization import canonicalize, serialize  # noqa: E402
from .validation.cross_field_validator import validate  # noqa: E402

__all__ = [
    "GLTF_VERSION",
    "Document",
    "GltfLoaderError",
    "Issue",
    "IssueKind",
    "LoadResult",
    "MalformedDocumentError",
    "ReferenceReport",
    "Stage",
    "StageOrderError",
    "ValidationReport",
    "canonicalize",
    "check_references",
    "load",
    "parse",
    "serialize",
    "validate",
]
