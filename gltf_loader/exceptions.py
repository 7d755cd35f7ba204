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

"""Custom exceptions for the glTF document loader."""

from typing import TYPE_CHECKING, Sequence, Tuple

if TYPE_CHECKING:
    from .report import Issue


class GltfLoaderError(Exception):
    """Base exception for glTF loader related errors."""
    pass


class MalformedDocumentError(GltfLoaderError):
    """Exception raised when a payload cannot be turned into a Document.

    Carries every structural issue found before parsing was abandoned.
    """

    def __init__(self, issues: Sequence["Issue"]):
        self.issues: Tuple["Issue", ...] = tuple(issues)
        if len(self.issues) == 1:
            message = self.issues[0].message
        else:
            details = "\n".join(f"  - {i.message}" for i in self.issues)
            message = f"{len(self.issues)} structural issues found:\n{details}"
        super().__init__(message)


class AssetVersionError(GltfLoaderError):
    """Exception raised when asset.version or asset.minVersion is unusable."""
    pass


class StageOrderError(GltfLoaderError):
    """Exception raised when a stage is invoked without its predecessor's success."""
    pass


class UriResolutionError(GltfLoaderError):
    """Exception raised when a buffer or image URI cannot be fetched."""
    pass


class ConfigurationError(GltfLoaderError):
    """Exception raised for invalid loader configuration."""
    pass
