"""Tests for convbump.bump."""

from __future__ import annotations

import pytest

from convbump.bump import DEFAULT_BUMPS, Bump, BumpTable


class TestBump:
    def test_ordering(self) -> None:
        assert Bump.NONE < Bump.PATCH < Bump.MINOR < Bump.MAJOR

    def test_str(self) -> None:
        assert str(Bump.MINOR) == "minor"

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, Bump.NONE),
            ("none", Bump.NONE),
            ("Patch", Bump.PATCH),
            (" major ", Bump.MAJOR),
            (2, Bump.MINOR),
            (Bump.MAJOR, Bump.MAJOR),
        ],
    )
    def test_parse(self, value: object, expected: Bump) -> None:
        assert Bump.parse(value) is expected

    def test_parse_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unknown bump"):
            Bump.parse("huge")


class TestBumpTable:
    def test_defaults(self) -> None:
        table = BumpTable()
        assert table.lookup("feat") is Bump.MINOR
        assert table.lookup("fix") is Bump.PATCH
        assert table.lookup("breaking") is Bump.MAJOR

    def test_known_type_without_bump(self) -> None:
        table = BumpTable()
        assert table.lookup("chore") is Bump.NONE
        assert "chore" in table

    def test_unknown_type(self) -> None:
        table = BumpTable()
        assert table.lookup("wip") is None
        assert "wip" not in table

    def test_overrides(self) -> None:
        table = BumpTable({"chore": Bump.PATCH, "wip": Bump.NONE})
        assert table.lookup("chore") is Bump.PATCH
        assert table.lookup("wip") is Bump.NONE

    def test_overrides_do_not_leak_into_defaults(self) -> None:
        BumpTable({"feat": Bump.MAJOR})
        assert DEFAULT_BUMPS["feat"] is Bump.MINOR
