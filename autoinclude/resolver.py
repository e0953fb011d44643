"""Discovery pass: walk roots, classify candidates, register modules."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence

from .classifier import ModuleClassifier
from .constants import NESTED_MODULE_POLICIES, NESTED_OUTERMOST, NESTED_SEPARATE
from .host import ModuleHost
from .logging import get_logger
from .models import DiscoveryResult, ModuleDescriptor, Rejection, RejectionReason, RootSpec
from .registrar import Registrar
from .walker import TreeWalker

if TYPE_CHECKING:
    from .config import AutoIncludeConfig


class AutoIncludeResolver:
    """Runs the walker, classifier, and registrar over one or more roots."""

    def __init__(
        self,
        walker: TreeWalker | None = None,
        classifier: ModuleClassifier | None = None,
        *,
        nested_modules: str = NESTED_SEPARATE,
    ) -> None:
        if nested_modules not in NESTED_MODULE_POLICIES:
            choices = ", ".join(NESTED_MODULE_POLICIES)
            raise ValueError(f"nested_modules must be one of {choices}, got '{nested_modules}'")
        self.walker = walker or TreeWalker()
        self.classifier = classifier or ModuleClassifier()
        self.nested_modules = nested_modules
        self.logger = get_logger("resolver")

    @classmethod
    def from_config(cls, config: AutoIncludeConfig) -> AutoIncludeResolver:
        return cls(
            walker=TreeWalker(
                follow_symlinks=config.follow_symlinks,
                respect_gitignore=config.respect_gitignore,
            ),
            classifier=ModuleClassifier(
                opt_out_marker=config.opt_out_marker,
                allow_empty_markers=config.allow_empty_markers,
            ),
            nested_modules=config.nested_modules,
        )

    def discover(self, roots: Sequence[RootSpec]) -> DiscoveryResult:
        """Classify every candidate under ``roots`` without registering anything."""
        for root in roots:
            self.walker.validate_root(root)
        roots = self._distinct_roots(roots)

        accepted: List[ModuleDescriptor] = []
        rejected: List[Rejection] = []
        claimed: Dict[Path, ModuleDescriptor] = {}
        discovered = 0

        def _pruned(rejection: Rejection) -> None:
            nonlocal discovered
            discovered += 1
            rejected.append(rejection)

        for root in roots:
            self.logger.debug("Walking %s", root.path)
            module_dirs: List[Path] = []
            for candidate in self.walker.walk(root, _pruned):
                discovered += 1
                outcome = self.classifier.classify(candidate)
                if isinstance(outcome, Rejection):
                    rejected.append(outcome)
                    continue
                canonical = outcome.directory.resolve()
                owner = claimed.get(canonical)
                if owner is not None:
                    # Overlapping roots reach the same directory more than once.
                    self.logger.debug(
                        "Skipped %s, already accepted as %s", outcome.directory, owner.project_path
                    )
                    rejected.append(
                        Rejection(
                            outcome.directory,
                            RejectionReason.ALREADY_VISITED,
                            f"already accepted as {owner.project_path} under {owner.root.path}",
                        )
                    )
                    continue
                enclosing = self._enclosing_module(outcome, module_dirs)
                if enclosing is not None:
                    rejected.append(
                        Rejection(
                            outcome.directory,
                            RejectionReason.NESTED_MODULE,
                            f"inside module {enclosing}",
                        )
                    )
                    continue
                module_dirs.append(outcome.directory)
                claimed[canonical] = outcome
                accepted.append(outcome)

        return DiscoveryResult(
            accepted=tuple(accepted),
            rejected=tuple(rejected),
            discovered=discovered,
            roots=tuple(roots),
        )

    def run(self, roots: Sequence[RootSpec], host: ModuleHost) -> DiscoveryResult:
        """Perform a full pass and include the accepted modules in ``host``."""
        result = self.discover(roots)
        Registrar(host).register(result)
        return result

    def _distinct_roots(self, roots: Sequence[RootSpec]) -> List[RootSpec]:
        distinct: List[RootSpec] = []
        seen: set[Path] = set()
        for root in roots:
            if root.path in seen:
                self.logger.warning("Ignoring repeated root %s", root.path)
                continue
            seen.add(root.path)
            distinct.append(root)
        return distinct

    def _enclosing_module(
        self, module: ModuleDescriptor, module_dirs: Sequence[Path]
    ) -> Optional[Path]:
        if self.nested_modules != NESTED_OUTERMOST:
            return None
        for directory in module_dirs:
            if module.directory.is_relative_to(directory):
                return directory
        return None


__all__ = ["AutoIncludeResolver"]
