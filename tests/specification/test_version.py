"""Tests for runtime version parsing and ordering."""

import pytest

from k0s_orchestrator.specification import is_valid_version, parse_version


class TestParseVersion:
    def test_components(self):
        version = parse_version("v1.30.2-rc.1+k0s.0")
        assert (version.major, version.minor, version.patch) == (1, 30, 2)
        assert version.prerelease == "rc.1"
        assert version.build == "k0s.0"

    def test_str_adds_leading_v(self):
        assert str(parse_version("1.30.2+k0s.0")) == "v1.30.2+k0s.0"

    def test_invalid(self):
        with pytest.raises(ValueError, match="not a valid semantic version"):
            parse_version("1.30")

    @pytest.mark.parametrize(
        "text,valid",
        [("v1.30.2+k0s.0", True), ("1.0.0", True), ("1.0.0-alpha", True), ("01.0.0", False), ("v1", False), ("", False)],
    )
    def test_is_valid_version(self, text, valid):
        assert is_valid_version(text) is valid


class TestOrdering:
    def test_build_metadata_is_ignored(self):
        assert parse_version("v1.30.2+k0s.0") == parse_version("v1.30.2+k0s.1")

    def test_prerelease_sorts_before_release(self):
        assert parse_version("v1.30.2-rc.1") < parse_version("v1.30.2")

    def test_numeric_prerelease_identifiers_compare_numerically(self):
        assert parse_version("v1.0.0-rc.2") < parse_version("v1.0.0-rc.10")

    def test_core_version_ordering(self):
        versions = ["v1.31.0", "v1.29.9", "v1.30.10", "v1.30.2"]
        assert [str(v) for v in sorted(parse_version(v) for v in versions)] == ["v1.29.9", "v1.30.2", "v1.30.10", "v1.31.0"]
