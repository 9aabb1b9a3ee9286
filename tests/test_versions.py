"""Tests for convbump.versions."""

from __future__ import annotations

import pytest

from convbump.bump import Bump
from convbump.errors import InvalidVersion
from convbump.versions import (
    bump_pre_release_sequence,
    carry_pre_release,
    compare,
    compare_main,
    increment,
    is_pre_release,
    is_valid_version,
    parse_version,
    reset_pre_release_sequence,
    strip_pre_release,
)


class TestParseVersion:
    def test_full_semver(self) -> None:
        v = parse_version("1.2.3")
        assert v.major == 1
        assert v.minor == 2
        assert v.patch == 3

    def test_pre_release(self) -> None:
        v = parse_version("1.2.3-rc.4")
        assert v.prerelease == "rc.4"

    def test_rejects_partial_version(self) -> None:
        with pytest.raises(InvalidVersion):
            parse_version("1.2")

    def test_invalid_version_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            parse_version("not-a-version")

    def test_is_valid_version(self) -> None:
        assert is_valid_version("0.0.0")
        assert not is_valid_version("v1.0.0")


class TestPreReleaseHelpers:
    def test_is_pre_release(self) -> None:
        assert is_pre_release("1.0.0-alpha.1")
        assert not is_pre_release("1.0.0")
        assert not is_pre_release("1.0.0+build.5")

    def test_strip_pre_release(self) -> None:
        assert str(strip_pre_release("1.3.0-rc.5")) == "1.3.0"
        assert str(strip_pre_release("1.3.0+build")) == "1.3.0"

    def test_carry_pre_release(self) -> None:
        assert str(carry_pre_release("1.3.0", "1.2.3-rc.2")) == "1.3.0-rc.2"

    def test_bump_sequence_increments_every_number(self) -> None:
        new = bump_pre_release_sequence("1.2.3-rc.1.beta.2")
        assert str(new) == "1.2.3-rc.2.beta.3"

    def test_bump_sequence_without_number(self) -> None:
        assert str(bump_pre_release_sequence("1.2.3-rc")) == "1.2.3-rc"

    def test_reset_sequence(self) -> None:
        assert str(reset_pre_release_sequence("1.3.0-rc.7", 1)) == "1.3.0-rc.1"


class TestIncrement:
    @pytest.mark.parametrize(
        ("bump", "expected"),
        [
            (Bump.NONE, "1.2.3"),
            (Bump.PATCH, "1.2.4"),
            (Bump.MINOR, "1.3.0"),
            (Bump.MAJOR, "2.0.0"),
        ],
    )
    def test_stable(self, bump: Bump, expected: str) -> None:
        assert str(increment("1.2.3", bump)) == expected

    def test_uses_stable_part(self) -> None:
        assert str(increment("1.2.3-rc.1", Bump.MINOR)) == "1.3.0"

    def test_invalid_base(self) -> None:
        with pytest.raises(InvalidVersion):
            increment("1.x", Bump.PATCH)


class TestCompare:
    def test_pre_release_sorts_before_release(self) -> None:
        assert compare("1.0.0-rc.1", "1.0.0") < 0

    def test_equal(self) -> None:
        assert compare("1.0.0", "1.0.0") == 0

    def test_compare_main_ignores_pre_release(self) -> None:
        assert compare_main("1.3.0-rc.1", "1.3.0") == 0
        assert compare_main("1.3.0-rc.1", "1.2.9") > 0
