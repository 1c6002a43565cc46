"""
Unit tests for semantic version parsing and precedence.
"""

import pytest

from dotnetkit.core.exceptions import InvalidVersionError
from dotnetkit.core.version import SemanticVersion


class TestParse:
    """Test SemanticVersion.parse."""

    def test_parse_release(self):
        """Test parsing a plain release version."""
        v = SemanticVersion.parse("9.0.100")
        assert (v.major, v.minor, v.patch) == (9, 0, 100)
        assert v.prerelease == ()
        assert not v.is_prerelease

    def test_parse_prerelease(self):
        """Test parsing a prerelease version."""
        v = SemanticVersion.parse("10.0.100-rc.2.25502.107")
        assert v.prerelease == ("rc", "2", "25502", "107")
        assert v.is_prerelease

    def test_parse_build_metadata(self):
        """Test build metadata is kept but does not affect equality."""
        v = SemanticVersion.parse("9.0.100+commit.abc")
        assert v.build == ("commit", "abc")
        assert v == SemanticVersion.parse("9.0.100")

    def test_parse_strips_whitespace(self):
        """Test surrounding whitespace is ignored."""
        assert SemanticVersion.parse("  8.0.415 ") == SemanticVersion(8, 0, 415)

    @pytest.mark.parametrize(
        "text", ["", "9", "9.0", "9.0.x", "v9.0.100", "09.0.100", "9.0.100-", "9.0.1.2"]
    )
    def test_parse_invalid(self, text):
        """Test malformed versions raise InvalidVersionError."""
        with pytest.raises(InvalidVersionError):
            SemanticVersion.parse(text)

    def test_parse_non_string(self):
        """Test non-string input raises InvalidVersionError."""
        with pytest.raises(InvalidVersionError):
            SemanticVersion.parse(None)

    def test_try_parse(self):
        """Test try_parse returns None instead of raising."""
        assert SemanticVersion.try_parse("not-a-version") is None
        assert SemanticVersion.try_parse("8.0.100") == SemanticVersion(8, 0, 100)


class TestPrecedence:
    """Test SemVer 2.0 precedence ordering."""

    def test_numeric_components(self):
        """Test major, minor and patch compare numerically."""
        assert SemanticVersion.parse("9.0.100") < SemanticVersion.parse("10.0.100")
        assert SemanticVersion.parse("9.0.99") < SemanticVersion.parse("9.0.100")
        assert SemanticVersion.parse("8.1.100") > SemanticVersion.parse("8.0.415")

    def test_prerelease_before_release(self):
        """Test a prerelease sorts before its release."""
        assert SemanticVersion.parse("10.0.100-rc.1") < SemanticVersion.parse("10.0.100")

    def test_prerelease_identifiers(self):
        """Test prerelease identifiers follow SemVer ordering."""
        ordered = [
            "1.0.0-alpha",
            "1.0.0-alpha.1",
            "1.0.0-alpha.beta",
            "1.0.0-beta",
            "1.0.0-beta.2",
            "1.0.0-beta.11",
            "1.0.0-rc.1",
            "1.0.0",
        ]
        versions = [SemanticVersion.parse(v) for v in ordered]
        assert sorted(reversed(versions)) == versions

    def test_sorting_descending(self):
        """Test sorting a mixed list descending."""
        versions = [SemanticVersion.parse(v) for v in ["8.0.100", "9.0.306", "9.0.111"]]
        assert [str(v) for v in sorted(versions, reverse=True)] == [
            "9.0.306",
            "9.0.111",
            "8.0.100",
        ]

    def test_hash_matches_equality(self):
        """Test equal versions hash equally (usable as set members)."""
        assert len({SemanticVersion.parse("9.0.100"), SemanticVersion.parse("9.0.100+x")}) == 1

    def test_compare_with_other_type(self):
        """Test comparison with a non-version is not equal."""
        assert SemanticVersion.parse("9.0.100") != "9.0.100"


class TestProperties:
    """Test helper properties and formatting."""

    @pytest.mark.parametrize(
        "text,band", [("9.0.100", 1), ("9.0.199", 1), ("9.0.304", 3), ("8.0.415", 4)]
    )
    def test_feature_band(self, text, band):
        """Test feature band is the hundreds digit of the patch."""
        assert SemanticVersion.parse(text).feature_band == band

    def test_str_round_trip(self):
        """Test str() gives the canonical form."""
        text = "10.0.100-rc.2.25502.107+build.5"
        assert str(SemanticVersion.parse(text)) == text

    def test_repr(self):
        """Test repr includes the version."""
        assert repr(SemanticVersion(9, 0, 100)) == "SemanticVersion('9.0.100')"
