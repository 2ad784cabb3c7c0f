"""Tests for task artifact deduplication."""

from bmad_kit.models.component import DiscoveredComponent
from bmad_kit.operations.dedup import filter_task_artifacts


def test_task_superseded_by_native_skill_is_dropped() -> None:
    result = filter_task_artifacts(
        ["core/tasks/shard-doc.md", "core/tasks/help.md"],
        ["core/skills/shard-doc/SKILL.md"],
    )

    assert result == ["core/tasks/help.md"]


def test_legacy_xml_task_collides_with_skill() -> None:
    result = filter_task_artifacts(
        ["core/tasks/index-docs.xml"],
        ["core/skills/index-docs/SKILL.md"],
    )

    assert result == []


def test_order_is_preserved() -> None:
    tasks = ["core/tasks/c.md", "core/tasks/a.md", "core/tasks/b.md"]

    assert filter_task_artifacts(tasks, []) == tasks


def test_skills_in_other_modules_do_not_collide() -> None:
    result = filter_task_artifacts(
        ["core/tasks/review.md"],
        ["bmm/skills/review/SKILL.md"],
    )

    assert result == ["core/tasks/review.md"]


def test_component_records_are_returned_unchanged() -> None:
    help_task = DiscoveredComponent(
        name="help", kind="task", module="core", relative_path="core/tasks/help.md"
    )
    shard_task = DiscoveredComponent(
        name="shard-doc", kind="task", module="core", relative_path="core/tasks/shard-doc.md"
    )
    shard_skill = DiscoveredComponent(
        name="shard-doc",
        kind="skill",
        module="core",
        relative_path="core/skills/shard-doc/SKILL.md",
    )

    result = filter_task_artifacts([shard_task, help_task], [shard_skill])

    assert result == [help_task]
    assert result[0] is help_task
