"""Configuration loading for autoinclude (.autoinclude.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple

import yaml

from .constants import (
    CONFIG_FILENAME,
    DEFAULT_EXCLUDES,
    DEFAULT_MARKERS,
    DEFAULT_OPT_OUT_MARKER,
    NESTED_MODULE_POLICIES,
    NESTED_SEPARATE,
)
from .models import RootSpec


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed or is invalid."""


@dataclass
class RootConfig:
    """One entry under ``roots``; unset fields inherit the top-level values."""

    path: Path
    exclude: List[str] = field(default_factory=list)
    markers: List[str] = field(default_factory=list)
    max_depth: Optional[int] = None
    implicit_module_depth: Optional[int] = None


@dataclass
class AutoIncludeConfig:
    """Represents the settings defined in .autoinclude.yml."""

    root: Path
    roots: List[RootConfig] = field(default_factory=list)
    markers: List[str] = field(default_factory=lambda: list(DEFAULT_MARKERS))
    opt_out_marker: Optional[str] = DEFAULT_OPT_OUT_MARKER
    exclude: List[str] = field(default_factory=list)
    use_default_excludes: bool = True
    max_depth: Optional[int] = None
    implicit_module_depth: Optional[int] = None
    nested_modules: str = NESTED_SEPARATE
    allow_empty_markers: bool = False
    follow_symlinks: bool = True
    respect_gitignore: bool = False

    def root_specs(self) -> Tuple[RootSpec, ...]:
        """Resolve the configured roots into immutable specs, in configured order."""
        entries = self.roots or [RootConfig(path=self.root)]
        base_excludes = list(DEFAULT_EXCLUDES) if self.use_default_excludes else []
        base_excludes.extend(self.exclude)

        specs: List[RootSpec] = []
        for entry in entries:
            path = entry.path if entry.path.is_absolute() else self.root / entry.path
            max_depth = entry.max_depth if entry.max_depth is not None else self.max_depth
            implicit = (
                entry.implicit_module_depth
                if entry.implicit_module_depth is not None
                else self.implicit_module_depth
            )
            specs.append(
                RootSpec(
                    path=path,
                    excludes=tuple(base_excludes + entry.exclude),
                    max_depth=max_depth,
                    markers=tuple(entry.markers or self.markers),
                    implicit_module_depth=implicit,
                )
            )
        return tuple(specs)


def load_config(config_path: Path) -> AutoIncludeConfig:
    """Load configuration from disk; a missing file yields the defaults."""
    config_file = _resolve_config_path(Path(config_path))
    root = config_file.parent.resolve()

    if not config_file.exists():
        return AutoIncludeConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = AutoIncludeConfig(root=root)

    markers = _as_str_list(data.get("markers"), "markers")
    if markers:
        config.markers = markers
    if "opt_out_marker" in data:
        config.opt_out_marker = _as_str(data.get("opt_out_marker")) or None
    config.exclude = _as_str_list(data.get("exclude"), "exclude")
    config.use_default_excludes = _as_bool(
        data.get("use_default_excludes"), "use_default_excludes", default=True
    )
    config.max_depth = _as_depth(data.get("max_depth"), "max_depth", minimum=0)
    config.implicit_module_depth = _as_depth(
        data.get("implicit_module_depth"), "implicit_module_depth", minimum=1
    )
    config.nested_modules = _as_choice(
        data.get("nested_modules"), "nested_modules", NESTED_MODULE_POLICIES, NESTED_SEPARATE
    )
    config.allow_empty_markers = _as_bool(
        data.get("allow_empty_markers"), "allow_empty_markers", default=False
    )
    config.follow_symlinks = _as_bool(data.get("follow_symlinks"), "follow_symlinks", default=True)
    config.respect_gitignore = _as_bool(
        data.get("respect_gitignore"), "respect_gitignore", default=False
    )
    config.roots = _parse_roots(data.get("roots"))

    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.is_file():
        return config_path.resolve()
    # A missing config file is fine; a missing settings directory is not.
    if config_path.name == CONFIG_FILENAME and config_path.parent.is_dir():
        return config_path.resolve()
    raise ConfigError(f"Settings directory does not exist: {config_path}")


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _parse_roots(value: Any) -> List[RootConfig]:
    if value is None:
        return []
    if isinstance(value, (str, dict)):
        value = [value]
    if not isinstance(value, list):
        raise ConfigError("'roots' must be a list of paths or mappings")

    roots: List[RootConfig] = []
    for index, item in enumerate(value):
        if isinstance(item, str):
            roots.append(RootConfig(path=Path(item).expanduser()))
            continue
        if not isinstance(item, dict) or not _as_str(item.get("path")):
            raise ConfigError(f"roots[{index}] must be a path or a mapping with a 'path' key")
        roots.append(
            RootConfig(
                path=Path(str(item["path"])).expanduser(),
                exclude=_as_str_list(item.get("exclude"), f"roots[{index}].exclude"),
                markers=_as_str_list(item.get("markers"), f"roots[{index}].markers"),
                max_depth=_as_depth(item.get("max_depth"), f"roots[{index}].max_depth", minimum=0),
                implicit_module_depth=_as_depth(
                    item.get("implicit_module_depth"),
                    f"roots[{index}].implicit_module_depth",
                    minimum=1,
                ),
            )
        )
    return roots


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_bool(value: Any, key: str, *, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    raise ConfigError(f"'{key}' must be a boolean, got {value!r}")


def _as_depth(value: Any, key: str, *, minimum: int) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ConfigError(f"'{key}' must be an integer")
    try:
        depth = int(value)
    except ValueError as exc:
        raise ConfigError(f"'{key}' must be an integer, got {value!r}") from exc
    if depth < minimum:
        raise ConfigError(f"'{key}' must be at least {minimum}, got {depth}")
    return depth


def _as_choice(value: Any, key: str, choices: Sequence[str], default: str) -> str:
    if value is None:
        return default
    choice = str(value).strip().lower()
    if choice not in choices:
        raise ConfigError(f"'{key}' must be one of {', '.join(choices)}, got {value!r}")
    return choice


def _as_str_list(value: Any, key: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise ConfigError(f"'{key}' must be a string or a list of strings")
    items: List[str] = []
    for item in value:
        if isinstance(item, bool) or not isinstance(item, (str, int, float)):
            raise ConfigError(f"'{key}' entries must be strings, got {item!r}")
        items.append(str(item))
    return items
