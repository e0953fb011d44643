"""Decides which candidate directories are modules and names them."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, Union

from .constants import DEFAULT_OPT_OUT_MARKER, MODULE_PATH_DELIMITER
from .errors import InvalidMarkerError
from .logging import get_logger
from .models import CandidateDirectory, ModuleDescriptor, Rejection, RejectionReason

Classification = Union[ModuleDescriptor, Rejection]


def to_logical_path(root: Path, directory: Path) -> str:
    """Join the root-relative segments of ``directory`` with the module delimiter."""
    return MODULE_PATH_DELIMITER.join(Path(directory).relative_to(root).parts)


def to_directory(root: Path, logical_path: str) -> Path:
    """Inverse of :func:`to_logical_path`."""
    segments = [segment for segment in logical_path.split(MODULE_PATH_DELIMITER) if segment]
    return Path(root).joinpath(*segments)


class ModuleClassifier:
    """Accepts directories holding a marker file, or matching the structural rule."""

    def __init__(
        self,
        *,
        opt_out_marker: Optional[str] = DEFAULT_OPT_OUT_MARKER,
        allow_empty_markers: bool = False,
    ) -> None:
        self.opt_out_marker = opt_out_marker
        self.allow_empty_markers = allow_empty_markers
        self.logger = get_logger("classifier")

    def classify(self, candidate: CandidateDirectory) -> Classification:
        """Return a descriptor for a module, otherwise the rejection explaining why not."""
        if candidate.depth == 0:
            return Rejection(candidate.path, RejectionReason.ROOT_DIRECTORY, "root is the host project")

        parts = candidate.relative_parts
        clashing = [part for part in parts if MODULE_PATH_DELIMITER in part]
        if clashing:
            return Rejection(
                candidate.path,
                RejectionReason.INVALID_NAME,
                f"directory name '{clashing[0]}' contains '{MODULE_PATH_DELIMITER}'",
            )

        try:
            if self._has_opt_out(candidate.path):
                return Rejection(
                    candidate.path,
                    RejectionReason.OPTED_OUT,
                    f"contains {self.opt_out_marker}",
                )
            marker = self._find_marker(candidate)
        except InvalidMarkerError as exc:
            self.logger.warning("%s", exc)
            return Rejection(candidate.path, RejectionReason.INVALID_MARKER, exc.problem)
        except PermissionError as exc:
            return Rejection(
                candidate.path,
                RejectionReason.PERMISSION_DENIED,
                exc.strerror or str(exc),
            )

        if marker is None and candidate.root.implicit_module_depth != candidate.depth:
            return Rejection(candidate.path, RejectionReason.NO_MARKER)

        descriptor = ModuleDescriptor(
            logical_path=to_logical_path(candidate.root.path, candidate.path),
            directory=candidate.path,
            root=candidate.root,
            marker=marker,
        )
        self.logger.debug(
            "Accepted %s as %s (%s)",
            candidate.path,
            descriptor.logical_path,
            marker or "structural rule",
        )
        return descriptor

    def validate_marker(self, marker_path: Path) -> None:
        """Raise :class:`InvalidMarkerError` unless the marker is a non-empty text file."""
        if not marker_path.is_file():
            raise InvalidMarkerError(marker_path, "is not a regular file")
        try:
            content = marker_path.read_bytes().decode("utf-8")
        except PermissionError:
            raise
        except UnicodeDecodeError as exc:
            raise InvalidMarkerError(marker_path, "is not UTF-8 text") from exc
        except OSError as exc:
            raise InvalidMarkerError(marker_path, f"cannot be read ({exc.strerror})") from exc
        if not self.allow_empty_markers and not content.strip():
            raise InvalidMarkerError(marker_path, "is empty")

    def _has_opt_out(self, directory: Path) -> bool:
        if not self.opt_out_marker:
            return False
        return (directory / self.opt_out_marker).is_file()

    def _find_marker(self, candidate: CandidateDirectory) -> Optional[str]:
        for name in candidate.root.markers:
            marker_path = candidate.path / name
            if not os.path.lexists(marker_path):
                continue
            self.validate_marker(marker_path)
            return name
        return None


__all__ = ["Classification", "ModuleClassifier", "to_directory", "to_logical_path"]
