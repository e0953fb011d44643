"""Renders accepted modules as a settings-script include block."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from .classifier import to_directory
from .models import ModuleDescriptor

DSL_TEMPLATES = {
    "kotlin": "settings.gradle.kts.j2",
    "groovy": "settings.gradle.j2",
}


@dataclass(frozen=True)
class IncludeLine:
    """One ``include`` statement and, when needed, its directory override."""

    project_path: str
    project_dir: Optional[str] = None


def include_lines(modules: Iterable[ModuleDescriptor], settings_dir: Path) -> List[IncludeLine]:
    """Map modules to include statements in registration order.

    The host maps ``:a:b`` to ``<settings_dir>/a/b`` on its own; any other
    location (modules under a secondary root) needs an explicit project dir.
    """
    settings_dir = Path(settings_dir).resolve()
    lines: List[IncludeLine] = []
    for module in modules:
        if module.directory == to_directory(settings_dir, module.logical_path):
            lines.append(IncludeLine(project_path=module.project_path))
            continue
        relative = Path(os.path.relpath(module.directory, settings_dir)).as_posix()
        lines.append(IncludeLine(project_path=module.project_path, project_dir=relative))
    return lines


def render_settings(
    modules: Iterable[ModuleDescriptor], settings_dir: Path, *, dsl: str = "kotlin"
) -> str:
    """Render an include block for a ``settings.gradle(.kts)`` script."""
    template_name = DSL_TEMPLATES.get(dsl)
    if template_name is None:
        choices = ", ".join(DSL_TEMPLATES)
        raise ValueError(f"Unsupported settings DSL '{dsl}'; expected one of {choices}")
    template = _create_env().get_template(template_name)
    return template.render(lines=include_lines(modules, settings_dir))


def _kotlin_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("$", "\\$")
    return f'"{escaped}"'


def _groovy_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def _create_env() -> Environment:
    loader = FileSystemLoader(str(Path(__file__).with_name("templates")))
    env = Environment(
        loader=loader,
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )
    env.filters["kotlin_string"] = _kotlin_string
    env.filters["groovy_string"] = _groovy_string
    return env


__all__ = ["DSL_TEMPLATES", "IncludeLine", "include_lines", "render_settings"]
