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

"""Asset version utilities.

``asset.version`` declares the glTF version a document targets, in the form
``MAJOR.MINOR``; ``asset.minVersion`` optionally declares the oldest version
a loader must implement to read it.

Compatibility rule:
  * **Major** of ``version`` must match exactly.
  * **Minor** of ``version`` newer than the loader → warning only.
  * ``minVersion`` newer than the loader → incompatible.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from .. import GLTF_VERSION
from ..exceptions import AssetVersionError


_VERSION_RE = re.compile(r"^(0|[1-9]\d*)\.(0|[1-9]\d*)$")


@dataclass(frozen=True, order=True)
class AssetVersion:
    """A parsed glTF asset version (major, minor)."""

    major: int
    minor: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"


def parse_asset_version(raw: str) -> AssetVersion:
    """Parse a version string like ``2.0``.

    Raises:
        AssetVersionError: If the string cannot be parsed.
    """
    if not isinstance(raw, str):
        raise AssetVersionError(
            f"Asset version must be a string, got {type(raw).__name__}: {raw!r}"
        )

    m = _VERSION_RE.match(raw)
    if m is None:
        raise AssetVersionError(
            f"Invalid asset version string: '{raw}'. "
            "Expected 'MAJOR.MINOR' (e.g. '2.0')."
        )
    return AssetVersion(int(m.group(1)), int(m.group(2)))


def get_supported_version() -> AssetVersion:
    """Return the glTF version implemented by this loader."""
    return parse_asset_version(GLTF_VERSION)


@dataclass(frozen=True)
class VersionCheckResult:
    """Result of an asset version compatibility check."""

    compatible: bool
    message: str
    file_version: Optional[AssetVersion] = None
    supported_version: Optional[AssetVersion] = None
    minor_newer: bool = False


def check_asset_version(raw_version: str, raw_min_version: Optional[str] = None) -> VersionCheckResult:
    """Check whether a document's asset versions can be loaded.

    Returns:
        A :class:`VersionCheckResult`.
    """
    supported = get_supported_version()

    try:
        file_ver = parse_asset_version(raw_version)
    except AssetVersionError as exc:
        return VersionCheckResult(compatible=False, message=str(exc), supported_version=supported)

    if file_ver.major != supported.major:
        return VersionCheckResult(
            compatible=False,
            message=(
                f"Incompatible asset version: document declares {file_ver} "
                f"but this loader supports major version {supported.major} "
                f"(supported: {supported})."
            ),
            file_version=file_ver,
            supported_version=supported,
        )

    if raw_min_version is not None:
        try:
            min_ver = parse_asset_version(raw_min_version)
        except AssetVersionError as exc:
            return VersionCheckResult(
                compatible=False,
                message=f"asset.minVersion: {exc}",
                file_version=file_ver,
                supported_version=supported,
            )
        if min_ver > file_ver:
            return VersionCheckResult(
                compatible=False,
                message=f"asset.minVersion {min_ver} is greater than asset.version {file_ver}.",
                file_version=file_ver,
                supported_version=supported,
            )
        if min_ver > supported:
            return VersionCheckResult(
                compatible=False,
                message=(
                    f"Document requires at least glTF {min_ver} "
                    f"but this loader supports {supported}."
                ),
                file_version=file_ver,
                supported_version=supported,
            )

    if file_ver.minor > supported.minor:
        return VersionCheckResult(
            compatible=True,
            minor_newer=True,
            message=(
                f"Asset version {file_ver} has a newer minor version than "
                f"the supported {supported}. "
                f"Features introduced after {supported} are ignored."
            ),
            file_version=file_ver,
            supported_version=supported,
        )

    return VersionCheckResult(
        compatible=True,
        message=f"Asset version {file_ver} is compatible (supported: {supported}).",
        file_version=file_ver,
        supported_version=supported,
    )
