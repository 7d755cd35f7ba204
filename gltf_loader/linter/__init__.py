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

"""Command-line linter for glTF 2.0 JSON documents."""

import logging
from pathlib import Path
from typing import List, Optional

from ..config import LoaderConfig
from .document_linter import DocumentLinter
from .report import LintResult

__all__ = ['lint_files', 'LintResult', 'DocumentLinter']

logger = logging.getLogger(__name__)


def lint_files(file_paths: List[Path], config: Optional[LoaderConfig] = None) -> List[LintResult]:
    """Lint a list of .gltf files.

    Args:
        file_paths: List of file paths to lint
        config: Linter settings; defaults are used when omitted

    Returns:
        List of LintResult objects, one per file
    """
    results = []
    document_linter = DocumentLinter(config)

    for file_path in file_paths:
        result = LintResult(file_path)
        try:
            document_linter.lint(file_path, result)
        except Exception as e:
            logger.exception(f"Unexpected error while linting {file_path}")
            result.add_error(f"Unexpected error during linting: {str(e)}")
        results.append(result)

    return results
