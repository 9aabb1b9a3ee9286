"""Tests for convbump.models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from convbump.bump import Bump
from convbump.models import (
    Commit,
    Dependency,
    Package,
    Promotion,
    StickyState,
    VersioningPlan,
    VersionUpdate,
    Workspace,
)


class TestPackage:
    def test_create_with_required_fields(self) -> None:
        pkg = Package(name="foo", version="1.0.0")
        assert pkg.path == "."
        assert pkg.dependencies == []
        assert not pkg.is_pre_release

    def test_pre_release(self) -> None:
        assert Package(name="foo", version="1.0.0-rc.0").is_pre_release

    def test_rejects_invalid_version(self) -> None:
        with pytest.raises(ValidationError):
            Package(name="foo", version="1.0")

    def test_dependencies(self) -> None:
        pkg = Package(
            name="foo",
            version="1.0.0",
            dependencies=[Dependency(name="bar", version_range=">=1.0", is_peer=True)],
        )
        assert pkg.dependencies[0].is_peer


class TestWorkspace:
    def test_get_and_names(self) -> None:
        ws = Workspace(
            path="/repo",
            packages=[
                Package(name="a", version="1.0.0"),
                Package(name="b", version="1.0.0"),
            ],
        )
        assert ws.names == ["a", "b"]
        assert ws.get("b").name == "b"
        assert ws.get("missing") is None

    def test_rejects_duplicate_names(self) -> None:
        with pytest.raises(ValidationError, match="Duplicate"):
            Workspace(
                path="/repo",
                packages=[
                    Package(name="a", version="1.0.0"),
                    Package(name="a", version="2.0.0", path="other"),
                ],
            )


class TestCommit:
    def test_is_frozen(self) -> None:
        commit = Commit(hash="abc", type="feat", header="feat: x")
        with pytest.raises(ValidationError):
            commit.type = "fix"


class TestPromotion:
    def test_from_string(self) -> None:
        promotion = Promotion.model_validate("minor")
        assert promotion.bump is Bump.MINOR
        assert not promotion.override

    def test_from_table(self) -> None:
        promotion = Promotion.model_validate({"bump": "major", "override": True})
        assert promotion.bump is Bump.MAJOR
        assert promotion.override

    def test_rejects_unknown_bump(self) -> None:
        with pytest.raises(ValidationError):
            Promotion.model_validate("giant")


class TestStickyState:
    def test_alias(self) -> None:
        state = StickyState.model_validate({"pre-releases": {"a": "1.2.3"}})
        assert state.pre_releases == {"a": "1.2.3"}

    def test_by_name(self) -> None:
        state = StickyState(pre_releases={"a": "1.2.3"})
        assert state.pre_releases == {"a": "1.2.3"}

    def test_rejects_invalid_origin(self) -> None:
        with pytest.raises(ValidationError):
            StickyState(pre_releases={"a": "one"})


class TestVersioningPlan:
    def test_get(self) -> None:
        update = VersionUpdate(
            name="a", old_version="1.0.0", new_version="1.0.1", bump=Bump.PATCH
        )
        plan = VersioningPlan(updates=[update])
        assert plan.get("a") is update
        assert plan.get("b") is None

    def test_changed(self) -> None:
        assert VersionUpdate(name="a", old_version="1.0.0", new_version="1.0.1").changed
        assert not VersionUpdate(
            name="a", old_version="1.0.0", new_version="1.0.0"
        ).changed
