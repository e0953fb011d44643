"""Shared defaults for module discovery."""

from __future__ import annotations

MODULE_PATH_DELIMITER = ":"

DEFAULT_MARKERS: tuple[str, ...] = (
    "build.gradle",
    "build.gradle.kts",
)

DEFAULT_OPT_OUT_MARKER = ".nobuild"

CONFIG_FILENAME = ".autoinclude.yml"

DEFAULT_EXCLUDES: tuple[str, ...] = (
    # version control
    ".git/",
    ".hg/",
    ".svn/",
    ".bzr/",
    # build output
    "build/",
    "out/",
    "target/",
    "dist/",
    ".gradle/",
    "node_modules/",
    "__pycache__/",
    # IDE state
    ".idea/",
    ".vscode/",
    # the host's own build logic lives beside the settings script
    "/buildSrc/",
)

NESTED_SEPARATE = "separate"
NESTED_OUTERMOST = "outermost"
NESTED_MODULE_POLICIES: tuple[str, ...] = (NESTED_SEPARATE, NESTED_OUTERMOST)
