"""Tests for asset version checks"""

import pytest

from gltf_loader.exceptions import AssetVersionError
from gltf_loader.utils.format_version import (
    AssetVersion,
    check_asset_version,
    get_supported_version,
    parse_asset_version,
)


def test_parse_asset_version():
    assert parse_asset_version("2.0") == AssetVersion(2, 0)
    assert parse_asset_version("10.12") == AssetVersion(10, 12)
    assert str(AssetVersion(2, 1)) == "2.1"


@pytest.mark.parametrize("raw", ["2", "2.0.0", "v2.0", "02.0", "", 2.0])
def test_parse_asset_version_rejects(raw):
    with pytest.raises(AssetVersionError):
        parse_asset_version(raw)


def test_versions_are_ordered():
    assert AssetVersion(2, 0) < AssetVersion(2, 1) < AssetVersion(3, 0)


def test_supported_version():
    assert get_supported_version() == AssetVersion(2, 0)


def test_same_version_compatible():
    result = check_asset_version("2.0")
    assert result.compatible
    assert not result.minor_newer


def test_major_mismatch_incompatible():
    assert not check_asset_version("1.0").compatible
    assert not check_asset_version("3.0").compatible


def test_newer_minor_is_compatible_with_flag():
    result = check_asset_version("2.5")
    assert result.compatible
    assert result.minor_newer


def test_min_version_rules():
    assert check_asset_version("2.0", "2.0").compatible
    assert not check_asset_version("2.0", "2.1").compatible
    assert not check_asset_version("2.2", "2.1").compatible
    assert not check_asset_version("2.0", "two").compatible
