"""Discover build modules from directory markers and register them with a host."""

from .classifier import ModuleClassifier, to_directory, to_logical_path
from .config import AutoIncludeConfig, ConfigError, RootConfig, load_config
from .errors import DiscoveryError, DuplicateModuleError, InvalidMarkerError, InvalidRootError
from .host import CallbackHost, ModuleHost, RecordingHost
from .models import (
    CandidateDirectory,
    DiscoveryResult,
    ModuleDescriptor,
    Rejection,
    RejectionReason,
    RootSpec,
)
from .registrar import Registrar
from .render import render_settings
from .resolver import AutoIncludeResolver
from .walker import TreeWalker

__all__ = [
    "AutoIncludeConfig",
    "AutoIncludeResolver",
    "CallbackHost",
    "CandidateDirectory",
    "ConfigError",
    "DiscoveryError",
    "DiscoveryResult",
    "DuplicateModuleError",
    "InvalidMarkerError",
    "InvalidRootError",
    "ModuleClassifier",
    "ModuleDescriptor",
    "ModuleHost",
    "RecordingHost",
    "Registrar",
    "Rejection",
    "RejectionReason",
    "RootConfig",
    "RootSpec",
    "TreeWalker",
    "load_config",
    "render_settings",
    "to_directory",
    "to_logical_path",
]
