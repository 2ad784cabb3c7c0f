"""Selection of the artifacts an integration target receives."""

from collections.abc import Sequence
from typing import Protocol

from bmad_kit.naming import command_stem


class HasRelativePath(Protocol):
    @property
    def relative_path(self) -> str: ...


type Artifact = str | HasRelativePath


def artifact_path(artifact: Artifact) -> str:
    if isinstance(artifact, str):
        return artifact
    return artifact.relative_path


def filter_task_artifacts[A: Artifact](
    task_artifacts: Sequence[A], native_skill_artifacts: Sequence[Artifact]
) -> list[A]:
    """Drop tasks superseded by a native skill with the same command name.

    Command names come from `command_name_for_path`; they are compared
    without extension so a legacy `.xml` task collides with its `.md` skill.
    Surviving tasks keep their order and identity.

    Example:
        >>> filter_task_artifacts(
        ...     ["core/tasks/shard-doc.md", "core/tasks/help.md"],
        ...     ["core/skills/shard-doc/SKILL.md"],
        ... )
        ["core/tasks/help.md"]
    """
    skill_names = {command_stem(artifact_path(skill)) for skill in native_skill_artifacts}
    return [
        task for task in task_artifacts if command_stem(artifact_path(task)) not in skill_names
    ]
