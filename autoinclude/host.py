"""The host orchestrator's project-inclusion interface."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Protocol, Tuple


class ModuleHost(Protocol):
    """Anything able to include a project directory under a logical module path."""

    def include(self, directory: Path, logical_path: str) -> None:
        ...


@dataclass
class RecordingHost:
    """Keeps every include call in order; used by the CLI and by tests."""

    included: List[Tuple[str, Path]] = field(default_factory=list)

    def include(self, directory: Path, logical_path: str) -> None:
        self.included.append((logical_path, Path(directory)))

    @property
    def logical_paths(self) -> List[str]:
        return [logical_path for logical_path, _ in self.included]


class CallbackHost:
    """Adapts a plain ``callback(directory, logical_path)`` to :class:`ModuleHost`."""

    def __init__(self, callback: Callable[[Path, str], object]) -> None:
        self._callback = callback

    def include(self, directory: Path, logical_path: str) -> None:
        self._callback(directory, logical_path)


__all__ = ["CallbackHost", "ModuleHost", "RecordingHost"]
