"""Exception types raised during a discovery pass."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence


class DiscoveryError(RuntimeError):
    """Base class for failures that abort or downgrade discovery work."""


class InvalidRootError(DiscoveryError):
    """Raised when a discovery root is missing or not a directory."""

    def __init__(self, path: Path, problem: str) -> None:
        self.path = path
        self.problem = problem
        super().__init__(f"Discovery root {problem}: {path}")


class InvalidMarkerError(DiscoveryError):
    """Raised when a marker file exists but cannot be accepted."""

    def __init__(self, marker: Path, problem: str) -> None:
        self.marker = marker
        self.problem = problem
        super().__init__(f"Invalid marker {marker}: {problem}")


class DuplicateModuleError(DiscoveryError):
    """Raised when two directories map onto the same logical module path."""

    def __init__(self, logical_path: str, directories: Sequence[Path]) -> None:
        self.logical_path = logical_path
        self.directories = tuple(directories)
        joined = " and ".join(str(directory) for directory in self.directories)
        super().__init__(f"Module path '{logical_path}' is produced by both {joined}")


__all__ = [
    "DiscoveryError",
    "DuplicateModuleError",
    "InvalidMarkerError",
    "InvalidRootError",
]
