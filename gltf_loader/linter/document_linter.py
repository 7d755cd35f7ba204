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

"""Runs every loader stage on a .gltf file and reports with source locations."""

import logging
from pathlib import Path
from typing import Iterable, Optional

from ..config import LoaderConfig
from ..exceptions import MalformedDocumentError
from ..file_io.source_location import format_source, lookup_source
from ..file_io.uri_resolver import UriResolver
from ..parsing.document_parser import DocumentParser
from ..parsing.json_source import SourceMap, load_json_with_source
from ..report import Issue, IssueKind
from ..resolvers.reference_resolver import check_references
from ..validation.cross_field_validator import validate
from .report import LintResult

logger = logging.getLogger(__name__)


class DocumentLinter:
    """Linter for glTF JSON documents."""

    def __init__(self, config: Optional[LoaderConfig] = None):
        self.config = config or LoaderConfig()

    def _report(self, result: LintResult, issues: Iterable[Issue], source_map: Optional[SourceMap],
                warning: bool = False) -> None:
        for issue in issues:
            if issue.kind in self.config.ignore:
                continue
            loc = lookup_source(source_map, issue.json_path)
            logger.debug(f"{issue.kind}: {issue.message}{format_source(loc.in_file(result.file_path))}")
            add = result.add_warning if warning else result.add_error
            add(
                issue.message,
                kind=issue.kind,
                line=loc.line,
                column=loc.column,
                json_path=issue.json_path,
            )

    def lint(self, file_path: Path, result: LintResult):
        """Lint one glTF file.

        Args:
            file_path: Path to the file to lint
            result: LintResult to add errors/warnings to
        """
        try:
            size = file_path.stat().st_size
        except OSError as e:
            result.add_error(f"Cannot access file: {e}")
            return
        if size > self.config.max_input_bytes:
            result.add_error(
                f"File is {size} bytes, larger than the {self.config.max_input_bytes} byte limit"
            )
            return

        try:
            raw, source_map = load_json_with_source(file_path.read_bytes())
        except MalformedDocumentError as e:
            self._report(result, e.issues, None)
            return
        try:
            document = DocumentParser(strict_mode=self.config.strict_mode).parse_json(raw)
        except MalformedDocumentError as e:
            self._report(result, e.issues, source_map)
            return

        references = check_references(document)
        self._report(result, references.errors, source_map)
        self._report(result, references.warnings, source_map, warning=True)
        if not references.ok:
            return

        buffers = {}
        if self.config.resolve_uris:
            resolver = UriResolver(file_path.parent, max_bytes=self.config.max_input_bytes)
            buffers, failures = resolver.resolve_buffers(document)
            if IssueKind.UNRESOLVED_URI not in self.config.ignore:
                for failure in failures:
                    result.add_warning(failure, kind=IssueKind.UNRESOLVED_URI)

        validation = validate(document, references, buffers=buffers)
        self._report(result, validation.errors, source_map)
        self._report(result, validation.warnings, source_map, warning=True)
        logger.debug(f"{file_path}: {len(result.errors)} error(s), {len(result.warnings)} warning(s)")
