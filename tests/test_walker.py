"""Tests for autoinclude.walker."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from autoinclude.errors import InvalidRootError
from autoinclude.models import Rejection, RejectionReason, RootSpec
from autoinclude.walker import TreeWalker, build_ignore_rule, compile_rules, is_excluded
from tests._fixtures.tree_builder import TreeBuilder


def _walk(spec: RootSpec, walker: TreeWalker | None = None) -> tuple[list[str], list[Rejection]]:
    rejected: list[Rejection] = []
    walker = walker or TreeWalker()
    relative = [
        candidate.path.relative_to(spec.path).as_posix()
        for candidate in walker.walk(spec, rejected.append)
    ]
    return relative, rejected


def test_walk_is_depth_first_with_sorted_siblings(tree_builder: TreeBuilder) -> None:
    for relative in ("b/y", "a/z", "a/c", "c"):
        tree_builder.directory(relative)

    order, rejected = _walk(tree_builder.spec())

    assert order == [".", "a", "a/c", "a/z", "b", "b/y", "c"]
    assert rejected == []


def test_walk_reports_depth_from_root(tree_builder: TreeBuilder) -> None:
    tree_builder.directory("libs/core/api")

    depths = {
        candidate.path.relative_to(tree_builder.path()).as_posix(): candidate.depth
        for candidate in TreeWalker().walk(tree_builder.spec())
    }

    assert depths == {".": 0, "libs": 1, "libs/core": 2, "libs/core/api": 3}


def test_walk_prunes_default_exclusions(tree_builder: TreeBuilder) -> None:
    tree_builder.module("build")
    tree_builder.directory(".git/objects")
    tree_builder.directory("app/build/classes")
    tree_builder.directory("app/src")

    order, rejected = _walk(tree_builder.spec())

    assert order == [".", "app", "app/src"]
    excluded = {r.path.relative_to(tree_builder.path()).as_posix() for r in rejected}
    assert excluded == {".git", "build", "app/build"}
    assert all(r.reason is RejectionReason.EXCLUDED for r in rejected)


def test_buildsrc_is_only_excluded_at_the_root(tree_builder: TreeBuilder) -> None:
    tree_builder.directory("buildSrc/src")
    tree_builder.directory("tools/buildSrc")

    order, _ = _walk(tree_builder.spec())

    assert "buildSrc" not in order
    assert "tools/buildSrc" in order


def test_custom_exclusions_extend_the_defaults(tree_builder: TreeBuilder) -> None:
    tree_builder.directory("libs/legacy/old")
    tree_builder.directory("libs/current")
    tree_builder.directory("sandbox")
    tree_builder.directory("build")
    spec = RootSpec(
        path=tree_builder.root,
        excludes=(*tree_builder.spec().excludes, "libs/legacy", "sand*/"),
    )

    order, rejected = _walk(spec)

    assert order == [".", "libs", "libs/current"]
    assert {r.path.name for r in rejected} == {"legacy", "sandbox", "build"}


def test_negated_pattern_reincludes_a_default_exclusion(tree_builder: TreeBuilder) -> None:
    tree_builder.directory("build")
    spec = RootSpec(path=tree_builder.root, excludes=(*tree_builder.spec().excludes, "!build/"))

    order, _ = _walk(spec)

    assert "build" in order


def test_max_depth_zero_emits_only_the_root(tree_builder: TreeBuilder) -> None:
    tree_builder.directory("a/b")

    order, rejected = _walk(tree_builder.spec(max_depth=0))

    assert order == ["."]
    assert rejected == []


def test_max_depth_limits_descent(tree_builder: TreeBuilder) -> None:
    tree_builder.directory("a/b/c")

    order, _ = _walk(tree_builder.spec(max_depth=2))

    assert order == [".", "a", "a/b"]


def test_negative_max_depth_is_rejected(tree_builder: TreeBuilder) -> None:
    with pytest.raises(ValueError):
        tree_builder.spec(max_depth=-1)


def test_missing_root_raises_invalid_root(tmp_path: Path) -> None:
    spec = RootSpec(path=tmp_path / "missing")

    with pytest.raises(InvalidRootError) as excinfo:
        list(TreeWalker().walk(spec))

    assert str((tmp_path / "missing").resolve()) in str(excinfo.value)


def test_file_root_raises_invalid_root(tmp_path: Path) -> None:
    target = tmp_path / "settings.gradle"
    target.write_text("", encoding="utf-8")

    with pytest.raises(InvalidRootError, match="not a directory"):
        list(TreeWalker().walk(RootSpec(path=target)))


def test_symlink_cycle_is_recorded_and_walk_terminates(tree_builder: TreeBuilder) -> None:
    tree_builder.directory("a/b")
    os.symlink(tree_builder.root / "a", tree_builder.root / "a" / "b" / "loop")

    order, rejected = _walk(tree_builder.spec())

    assert order == [".", "a", "a/b"]
    assert len(rejected) == 1
    assert rejected[0].reason is RejectionReason.SYMLINK_CYCLE
    assert rejected[0].path.name == "loop"


def test_link_back_into_root_is_not_walked_twice(tree_builder: TreeBuilder) -> None:
    tree_builder.directory("shared/util")
    tree_builder.directory("app")
    os.symlink(tree_builder.root / "shared", tree_builder.root / "app" / "shared-link")

    order, rejected = _walk(tree_builder.spec())

    assert order == [".", "app", "shared", "shared/util"]
    assert [r.reason for r in rejected] == [RejectionReason.ALREADY_VISITED]


def test_link_outside_root_is_followed_once(tmp_path: Path, tree_builder: TreeBuilder) -> None:
    outside = tmp_path / "vendor"
    (outside / "lib").mkdir(parents=True)
    tree_builder.directory("a")
    tree_builder.directory("b")
    os.symlink(outside, tree_builder.root / "a" / "vendor")
    os.symlink(outside, tree_builder.root / "b" / "vendor")

    order, rejected = _walk(tree_builder.spec())

    assert order == [".", "a", "a/vendor", "a/vendor/lib", "b"]
    assert [r.reason for r in rejected] == [RejectionReason.ALREADY_VISITED]


def test_symlinks_are_skipped_when_following_is_disabled(
    tmp_path: Path, tree_builder: TreeBuilder
) -> None:
    outside = tmp_path / "vendor"
    outside.mkdir()
    os.symlink(outside, tree_builder.root / "vendor")

    order, rejected = _walk(tree_builder.spec(), TreeWalker(follow_symlinks=False))

    assert order == ["."]
    assert [r.reason for r in rejected] == [RejectionReason.SYMLINK]


def test_unreadable_directory_is_recorded_and_siblings_continue(
    tree_builder: TreeBuilder, monkeypatch: pytest.MonkeyPatch
) -> None:
    tree_builder.directory("locked/inner")
    tree_builder.directory("open")
    locked = tree_builder.path("locked")
    real_scandir = os.scandir

    def _guarded_scandir(path="."):
        if Path(path) == locked:
            raise PermissionError(13, "Permission denied", str(path))
        return real_scandir(path)

    monkeypatch.setattr(os, "scandir", _guarded_scandir)

    order, rejected = _walk(tree_builder.spec())

    assert order == [".", "open"]
    assert len(rejected) == 1
    assert rejected[0].path == locked
    assert rejected[0].reason is RejectionReason.PERMISSION_DENIED


def test_gitignore_rules_apply_when_enabled(tree_builder: TreeBuilder) -> None:
    tree_builder.write({".gitignore": "generated/\n# comment\n"})
    tree_builder.directory("generated")
    tree_builder.directory("src")

    default_order, _ = _walk(tree_builder.spec())
    gitignore_order, _ = _walk(tree_builder.spec(), TreeWalker(respect_gitignore=True))

    assert "generated" in default_order
    assert gitignore_order == [".", "src"]


def test_ignore_rule_parsing() -> None:
    anchored = build_ignore_rule("/buildSrc/")
    assert anchored is not None
    assert anchored.anchored and anchored.directory_only
    assert anchored.matches("buildSrc")
    assert not anchored.matches("tools/buildSrc")

    assert build_ignore_rule("   ") is None
    assert build_ignore_rule("# note") is None

    negated = build_ignore_rule("!out")
    assert negated is not None and negated.negate

    rules = compile_rules(["out/", "!out/"])
    assert not is_excluded("out", rules)
    assert is_excluded("app/out", compile_rules(["out"]))


def test_any_depth_patterns_match_from_every_segment() -> None:
    single = build_ignore_rule("**/generated/")
    assert single is not None and not single.anchored
    assert single.matches("generated")
    assert single.matches("app/generated")

    nested = build_ignore_rule("**/src/gen")
    assert nested is not None and nested.anchored and nested.any_depth
    assert nested.matches("src/gen")
    assert nested.matches("app/src/gen")
    assert not nested.matches("app/gen")

    rooted = build_ignore_rule("src/gen")
    assert rooted is not None
    assert rooted.matches("src/gen")
    assert not rooted.matches("app/src/gen")


def test_any_depth_exclusion_prunes_top_level_directory(tree_builder: TreeBuilder) -> None:
    tree_builder.directory("generated/api")
    tree_builder.directory("app/generated")
    tree_builder.directory("app/src")
    spec = RootSpec(path=tree_builder.root, excludes=("**/generated",))

    order, rejected = _walk(spec)

    assert order == [".", "app", "app/src"]
    assert {r.path.relative_to(tree_builder.path()).as_posix() for r in rejected} == {
        "generated",
        "app/generated",
    }
