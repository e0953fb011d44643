"""Core data models shared across the discovery stages."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Tuple

from .constants import DEFAULT_EXCLUDES, DEFAULT_MARKERS, MODULE_PATH_DELIMITER


@dataclass(frozen=True)
class RootSpec:
    """A directory where discovery begins, with its per-root settings."""

    path: Path
    excludes: Tuple[str, ...] = DEFAULT_EXCLUDES
    max_depth: Optional[int] = None
    markers: Tuple[str, ...] = DEFAULT_MARKERS
    implicit_module_depth: Optional[int] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", Path(self.path).expanduser().resolve())
        object.__setattr__(self, "excludes", tuple(self.excludes))
        object.__setattr__(self, "markers", tuple(self.markers))
        if self.max_depth is not None and self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if self.implicit_module_depth is not None and self.implicit_module_depth < 1:
            raise ValueError(
                f"implicit_module_depth must be at least 1, got {self.implicit_module_depth}"
            )
        if not self.markers:
            raise ValueError("At least one marker file name is required")


@dataclass(frozen=True)
class CandidateDirectory:
    """A directory emitted by the walker for classification."""

    path: Path
    depth: int
    root: RootSpec

    @property
    def relative_parts(self) -> Tuple[str, ...]:
        return self.path.relative_to(self.root.path).parts


@dataclass(frozen=True)
class ModuleDescriptor:
    """A candidate directory accepted as a buildable module."""

    logical_path: str
    directory: Path
    root: RootSpec
    marker: Optional[str] = None

    @property
    def project_path(self) -> str:
        """Return the host's absolute notation, e.g. ``:libs:a``."""
        return f"{MODULE_PATH_DELIMITER}{self.logical_path}"


class RejectionReason(str, Enum):
    """Why a directory was not registered as a module."""

    EXCLUDED = "excluded"
    NO_MARKER = "no-marker"
    OPTED_OUT = "opted-out"
    INVALID_MARKER = "invalid-marker"
    PERMISSION_DENIED = "permission-denied"
    SYMLINK_CYCLE = "symlink-cycle"
    ALREADY_VISITED = "already-visited"
    SYMLINK = "symlink"
    ROOT_DIRECTORY = "root-directory"
    INVALID_NAME = "invalid-name"
    NESTED_MODULE = "nested-module"
    UNREADABLE = "unreadable"


@dataclass(frozen=True)
class Rejection:
    """A skipped directory and the reason it was skipped."""

    path: Path
    reason: RejectionReason
    detail: str = ""


@dataclass(frozen=True)
class DiscoveryResult:
    """Outcome of one discovery pass.

    ``discovered`` counts every directory the walker reached, including the
    ones it pruned, so it always equals ``accepted`` plus ``rejected``.
    """

    accepted: Tuple[ModuleDescriptor, ...] = ()
    rejected: Tuple[Rejection, ...] = ()
    discovered: int = 0
    roots: Tuple[RootSpec, ...] = field(default=())

    @property
    def logical_paths(self) -> Tuple[str, ...]:
        return tuple(module.logical_path for module in self.accepted)

    def rejections_by_reason(self) -> Dict[RejectionReason, int]:
        return dict(Counter(rejection.reason for rejection in self.rejected))

    def rejection_for(self, path: Path) -> Optional[Rejection]:
        target = Path(path)
        for rejection in self.rejected:
            if rejection.path == target:
                return rejection
        return None

    def summary(self) -> str:
        """Return the stable one-line diagnostic summary."""
        return (
            f"discovered={self.discovered} "
            f"accepted={len(self.accepted)} "
            f"rejected={len(self.rejected)}"
        )
