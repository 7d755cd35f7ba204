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

"""Error reporting for the linter."""

from pathlib import Path
from typing import List, Dict, Any, Optional


class LintResult:
    """Container for linting results for a single file."""

    def __init__(self, file_path: Path):
        """Initialize lint result.

        Args:
            file_path: Path to the file being linted
        """
        self.file_path = file_path
        self.errors: List[Dict[str, Any]] = []
        self.warnings: List[Dict[str, Any]] = []

    @staticmethod
    def _entry(
        message: str,
        kind: Optional[str],
        line: Optional[int],
        column: Optional[int],
        json_path: Optional[str],
    ) -> Dict[str, Any]:
        entry: Dict[str, Any] = {'message': message}
        if kind is not None:
            entry['kind'] = kind
        if line is not None:
            entry['line'] = line
        if column is not None:
            entry['column'] = column
        if json_path is not None:
            entry['json_path'] = json_path
        return entry

    def add_error(
        self,
        message: str,
        kind: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
        json_path: Optional[str] = None,
    ):
        """Add an error message.

        Args:
            message: Error message
            kind: Optional issue kind (e.g. 'DanglingReference')
            line: Optional line number where error occurred
        """
        self.errors.append(self._entry(message, kind, line, column, json_path))

    def add_warning(
        self,
        message: str,
        kind: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
        json_path: Optional[str] = None,
    ):
        """Add a warning message."""
        self.warnings.append(self._entry(message, kind, line, column, json_path))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'file': str(self.file_path),
            'errors': self.errors,
            'warnings': self.warnings,
        }
