"""Registration of accepted modules with the host orchestrator."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List

from .errors import DuplicateModuleError
from .host import ModuleHost
from .logging import get_logger
from .models import DiscoveryResult, ModuleDescriptor


def find_duplicate(modules: Iterable[ModuleDescriptor]) -> DuplicateModuleError | None:
    """Return an error for the first logical path claimed by two directories."""
    claimed: Dict[str, Path] = {}
    for module in modules:
        previous = claimed.get(module.logical_path)
        if previous is not None:
            return DuplicateModuleError(module.logical_path, (previous, module.directory))
        claimed[module.logical_path] = module.directory
    return None


class Registrar:
    """Includes each accepted module exactly once, in discovery order."""

    def __init__(self, host: ModuleHost) -> None:
        self.host = host
        self.logger = get_logger("registrar")

    def register(self, result: DiscoveryResult) -> List[ModuleDescriptor]:
        """Register ``result.accepted`` with the host and return what was included.

        The whole pass is checked for duplicate logical paths before the first
        include call, so a conflict leaves the host untouched.
        """
        duplicate = find_duplicate(result.accepted)
        if duplicate is not None:
            self.logger.error("%s; no modules were registered", duplicate)
            raise duplicate

        registered: List[ModuleDescriptor] = []
        for module in result.accepted:
            self.host.include(module.directory, module.logical_path)
            registered.append(module)
            self.logger.debug("Included %s from %s", module.project_path, module.directory)

        self.logger.info("Auto-include %s", result.summary())
        return registered


__all__ = ["Registrar", "find_duplicate"]
