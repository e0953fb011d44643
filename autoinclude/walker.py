"""Directory traversal that yields module candidates."""

from __future__ import annotations

import os
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, Set

from .errors import InvalidRootError
from .logging import get_logger
from .models import CandidateDirectory, Rejection, RejectionReason, RootSpec

RejectionSink = Callable[[Rejection], None]


@dataclass(frozen=True)
class IgnoreRule:
    """A gitignore-style exclusion pattern evaluated against root-relative paths.

    Unanchored patterns match any single path segment. Anchored patterns (a
    leading ``/`` or a ``/`` inside the pattern) match the path from the root,
    or from any segment when the pattern began with ``**/``. A match also
    covers everything below the matched directory.
    """

    pattern: str
    negate: bool = False
    directory_only: bool = False
    anchored: bool = False
    any_depth: bool = False

    def matches(self, rel_path: str, is_dir: bool = True) -> bool:
        if self.directory_only and not is_dir:
            return False
        segments = rel_path.split("/")
        if not self.anchored:
            return any(fnmatchcase(segment, self.pattern) for segment in segments)
        starts = range(len(segments)) if self.any_depth else range(1)
        return any(self._matches_prefix("/".join(segments[start:])) for start in starts)

    def _matches_prefix(self, path: str) -> bool:
        return fnmatchcase(path, self.pattern) or path.startswith(f"{self.pattern}/")


def build_ignore_rule(line: str) -> Optional[IgnoreRule]:
    """Parse one exclusion pattern; blank lines and comments yield ``None``."""
    text = line.strip()
    if not text or text.startswith("#"):
        return None

    negate = text.startswith("!")
    text = text.removeprefix("!")
    directory_only = text.endswith("/")
    text = text.rstrip("/")

    any_depth = text.startswith("**/")
    if any_depth:
        text = text.removeprefix("**/")
        anchored = "/" in text
    else:
        anchored = "/" in text
        text = text.lstrip("/")

    if not text:
        return None
    return IgnoreRule(
        pattern=text,
        negate=negate,
        directory_only=directory_only,
        anchored=anchored,
        any_depth=any_depth,
    )


def compile_rules(patterns: Iterable[str]) -> List[IgnoreRule]:
    rules: List[IgnoreRule] = []
    for pattern in patterns:
        rule = build_ignore_rule(pattern)
        if rule is not None:
            rules.append(rule)
    return rules


def parse_gitignore(path: Path) -> List[IgnoreRule]:
    if not path.is_file():
        return []
    return compile_rules(path.read_text(encoding="utf-8").splitlines())


def is_excluded(rel_path: str, rules: Sequence[IgnoreRule]) -> bool:
    """Return True when the last matching rule excludes ``rel_path``."""
    excluded = False
    for rule in rules:
        if rule.matches(rel_path, True):
            excluded = not rule.negate
    return excluded


def _discard(_: Rejection) -> None:
    return None


class TreeWalker:
    """Depth-first, pre-order walk of a root with siblings in name order.

    Excluded directories are pruned before they are emitted. A directory is
    emitted only once its entries have been listed, so unreadable directories
    surface as rejections rather than candidates. Directory symlinks pointing
    back inside the root are never followed: the real directory is walked on
    its own, and a link to an ancestor is a cycle.
    """

    def __init__(self, *, follow_symlinks: bool = True, respect_gitignore: bool = False) -> None:
        self.follow_symlinks = follow_symlinks
        self.respect_gitignore = respect_gitignore
        self.logger = get_logger("walker")

    def validate_root(self, root: RootSpec) -> None:
        if not root.path.exists():
            raise InvalidRootError(root.path, "does not exist")
        if not root.path.is_dir():
            raise InvalidRootError(root.path, "is not a directory")

    def rules_for(self, root: RootSpec) -> List[IgnoreRule]:
        rules = compile_rules(root.excludes)
        if self.respect_gitignore:
            rules.extend(parse_gitignore(root.path / ".gitignore"))
        return rules

    def walk(
        self, root: RootSpec, on_reject: RejectionSink | None = None
    ) -> Iterator[CandidateDirectory]:
        """Yield candidates lazily; skipped directories are passed to ``on_reject``."""
        self.validate_root(root)
        record = on_reject or _discard
        rules = self.rules_for(root)
        root_path = root.path
        visited: Set[Path] = {root_path}

        def _on_error(exc: OSError) -> None:
            failed = Path(exc.filename) if exc.filename else root_path
            reason = (
                RejectionReason.PERMISSION_DENIED
                if isinstance(exc, PermissionError)
                else RejectionReason.UNREADABLE
            )
            self.logger.debug("Cannot list %s: %s", failed, exc)
            record(Rejection(failed, reason, exc.strerror or str(exc)))

        for dirpath, dirnames, _ in os.walk(
            root_path, topdown=True, onerror=_on_error, followlinks=self.follow_symlinks
        ):
            current = Path(dirpath)
            rel_parts = current.relative_to(root_path).parts
            depth = len(rel_parts)

            if root.max_depth is not None and depth >= root.max_depth:
                dirnames[:] = []
            else:
                dirnames[:] = self._filter_children(
                    current, rel_parts, sorted(dirnames), rules, visited, record
                )

            yield CandidateDirectory(path=current, depth=depth, root=root)

    def _filter_children(
        self,
        current: Path,
        rel_parts: tuple[str, ...],
        names: Sequence[str],
        rules: Sequence[IgnoreRule],
        visited: Set[Path],
        record: RejectionSink,
    ) -> List[str]:
        kept: List[str] = []
        current_real = current.resolve()
        for name in names:
            child = current / name
            rel_path = "/".join((*rel_parts, name))
            if is_excluded(rel_path, rules):
                self.logger.debug("Pruned excluded directory %s", rel_path)
                record(Rejection(child, RejectionReason.EXCLUDED, "matches an exclusion pattern"))
                continue
            if child.is_symlink():
                rejection = self._check_link(child, current_real, visited)
                if rejection is not None:
                    self.logger.debug("Skipped link %s (%s)", rel_path, rejection.reason.value)
                    record(rejection)
                    continue
            kept.append(name)
        return kept

    def _check_link(
        self, link: Path, current_real: Path, visited: Set[Path]
    ) -> Optional[Rejection]:
        if not self.follow_symlinks:
            return Rejection(link, RejectionReason.SYMLINK, "symbolic links are not followed")

        target = link.resolve()
        if current_real.is_relative_to(target):
            return Rejection(link, RejectionReason.SYMLINK_CYCLE, f"points back to {target}")
        if any(target.is_relative_to(seen) for seen in visited):
            return Rejection(link, RejectionReason.ALREADY_VISITED, f"{target} is walked directly")
        visited.add(target)
        return None


__all__ = [
    "IgnoreRule",
    "TreeWalker",
    "build_ignore_rule",
    "compile_rules",
    "is_excluded",
    "parse_gitignore",
]
