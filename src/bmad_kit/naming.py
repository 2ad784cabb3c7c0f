"""Naming utilities for externally visible command names.

This module provides pure functions mapping a component's path relative to
the installed root to the command name an integration target exposes. All
functions are pure (no I/O) and total: malformed input yields a defined,
if unhelpful, name.
"""

from pathlib import PurePosixPath

COMMAND_PREFIX = "bmad"
CORE_MODULE = "core"

# Directory under a module that only classifies its components
KIND_DIRECTORIES = frozenset({"skills", "tasks", "agents", "workflows"})

# Descriptor files name their parent directory rather than themselves
DESCRIPTOR_FILENAMES = frozenset({"SKILL.md", "workflow.yaml", "workflow.md"})

DEFAULT_EXTENSION = ".md"


def _path_segments(relative_path: str) -> list[str]:
    normalized = relative_path.replace("\\", "/")
    return [segment for segment in normalized.split("/") if segment and segment != "."]


def command_name_for_path(relative_path: str) -> str:
    """Map a component path to its dash-joined command file name.

    - Drops the kind directory (skills, tasks, agents, workflows) directly
      under the module; deeper segments keep their names
    - Drops descriptor filenames (SKILL.md, workflow.yaml, workflow.md),
      naming the component after its directory instead
    - Elides the leading `core` module, which owns the unprefixed namespace
    - Dash-joins what remains behind the `bmad-` prefix
    - Keeps the extension of the final artifact name (`.md` for descriptors)

    Args:
        relative_path: Path relative to the installed root, either separator

    Returns:
        Command file name such as "bmad-shard-doc.md"

    Examples:
        >>> command_name_for_path("core/skills/shard-doc/SKILL.md")
        "bmad-shard-doc.md"
        >>> command_name_for_path("core/tasks/shard-doc.md")
        "bmad-shard-doc.md"
        >>> command_name_for_path("bmm/workflows/prd/workflow.yaml")
        "bmad-bmm-prd.md"
    """
    segments = _path_segments(relative_path)
    extension = DEFAULT_EXTENSION

    if segments:
        final = segments[-1]
        if final in DESCRIPTOR_FILENAMES:
            segments = segments[:-1]
        else:
            final_path = PurePosixPath(final)
            if final_path.suffix:
                extension = final_path.suffix
                segments = [*segments[:-1], final_path.stem]

    if len(segments) > 1 and segments[1] in KIND_DIRECTORIES:
        segments = [segments[0], *segments[2:]]

    if segments and segments[0] == CORE_MODULE:
        segments = segments[1:]

    return f"{COMMAND_PREFIX}-{'-'.join(segments)}{extension}"


def command_stem(relative_path: str) -> str:
    """Return the command name without its file extension.

    This is the name a user types, e.g. "bmad-shard-doc".
    """
    return PurePosixPath(command_name_for_path(relative_path)).stem
