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

"""JSON Schema loader for glTF document structure validation."""

import json
import threading
from pathlib import Path
from typing import Any, Dict, List

from jsonschema import Draft202012Validator

from ..report import PARSE_STAGE, Issue, IssueKind


# Schema cache to avoid reloading files
_SCHEMA_CACHE: Dict[str, dict] = {}
_VALIDATOR_CACHE: Dict[str, Draft202012Validator] = {}
_CACHE_LOCK = threading.Lock()

SCHEMA_FILE_NAME = "gltf.schema.json"


def get_schema_path(version: str) -> Path:
    """Get the path to the packaged JSON Schema for a glTF version.

    Args:
        version: glTF major.minor version string (e.g., "2.0")

    Returns:
        Path to the schema file
    """
    schema_dir = Path(__file__).parent.parent / "schema"
    return schema_dir / version / SCHEMA_FILE_NAME


def load_schema(version: str = "2.0") -> dict:
    """Load the JSON Schema for the given glTF version.

    Raises:
        FileNotFoundError: If the schema file doesn't exist
        json.JSONDecodeError: If the schema file is invalid JSON
    """
    with _CACHE_LOCK:
        if version in _SCHEMA_CACHE:
            return _SCHEMA_CACHE[version]

        schema_path = get_schema_path(version)
        if not schema_path.exists():
            raise FileNotFoundError(
                f"Schema file not found for glTF version {version}: {schema_path}"
            )

        try:
            with open(schema_path, "r", encoding="utf-8") as f:
                schema = json.load(f)
        except json.JSONDecodeError as e:
            raise json.JSONDecodeError(
                f"Invalid JSON in schema file {schema_path}: {e.msg}",
                e.doc,
                e.pos,
            ) from e

        _SCHEMA_CACHE[version] = schema
        return schema


def get_validator(version: str = "2.0") -> Draft202012Validator:
    """Return a (cached) validator for the packaged schema."""
    schema = load_schema(version)
    with _CACHE_LOCK:
        validator = _VALIDATOR_CACHE.get(version)
        if validator is None:
            Draft202012Validator.check_schema(schema)
            validator = Draft202012Validator(schema)
            _VALIDATOR_CACHE[version] = validator
        return validator


def json_pointer(parts) -> str:
    return "".join(
        "/" + str(p).replace("~", "~0").replace("/", "~1") for p in parts
    )


def validate_structure(data: Any, version: str = "2.0") -> List[Issue]:
    """Validate decoded JSON against the structural schema.

    Every violation is returned, ordered by location in the document.
    """
    validator = get_validator(version)
    issues: List[Issue] = []
    errors = sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.absolute_path])
    for error in errors:
        path = json_pointer(error.absolute_path)
        location = path or "/"
        issues.append(
            Issue(
                stage=PARSE_STAGE,
                kind=IssueKind.MALFORMED_DOCUMENT,
                message=f"{location}: {error.message}",
                json_path=path,
            )
        )
    return issues


def clear_cache() -> None:
    """Clear the schema cache. Useful for testing."""
    with _CACHE_LOCK:
        _SCHEMA_CACHE.clear()
        _VALIDATOR_CACHE.clear()
