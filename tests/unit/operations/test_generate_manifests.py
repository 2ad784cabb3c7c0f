"""Tests for manifest generation."""

import hashlib
import shutil
from pathlib import Path

import pytest
import yaml

from bmad_kit.errors import ManifestWriteError
from bmad_kit.io.csv_io import read_csv
from bmad_kit.models.installation import InstallationManifest
from bmad_kit.models.component import DiscoveredComponent
from bmad_kit.operations.manifest import (
    ManifestOptions,
    build_manifest_contents,
    generate_manifests,
)
from tests.test_utils.install_tree import (
    write_compiled_agent,
    write_skill,
    write_task,
    write_workflow,
)


def _installed_root(tmp_path: Path) -> Path:
    root = tmp_path / "bmad"
    write_skill(root, "core", "shard-doc", description="Split large documents")
    write_task(root, "core", "help")
    write_compiled_agent(root, "bmm", "pm")
    write_workflow(root, "bmm", "prd")
    return root


def _manifest_bytes(root: Path) -> dict[str, bytes]:
    return {p.name: p.read_bytes() for p in sorted((root / "_cfg").iterdir()) if p.is_file()}


def test_writes_one_manifest_per_kind(tmp_path: Path) -> None:
    root = _installed_root(tmp_path)

    stats = generate_manifests(root)

    cfg = root / "_cfg"
    for filename in (
        "skill-manifest.csv",
        "task-manifest.csv",
        "agent-manifest.csv",
        "workflow-manifest.csv",
        "files-manifest.csv",
    ):
        assert (cfg / filename).is_file()
    assert stats.counts == {"skill": 1, "task": 1, "agent": 1, "workflow": 1}
    assert stats.total == 4


def test_csv_layout(tmp_path: Path) -> None:
    root = _installed_root(tmp_path)

    generate_manifests(root)

    lines = (root / "_cfg" / "skill-manifest.csv").read_text(encoding="utf-8").splitlines()
    assert lines == [
        '"name","displayName","description","module","path","standalone"',
        '"shard-doc","shard-doc","Split large documents","core",'
        '"core/skills/shard-doc/SKILL.md","true"',
    ]


def test_agent_manifest_carries_persona_columns(tmp_path: Path) -> None:
    root = _installed_root(tmp_path)

    generate_manifests(root)

    _header, rows = read_csv(root / "_cfg" / "agent-manifest.csv")
    assert rows == [
        {
            "name": "pm",
            "displayName": "John",
            "title": "Product Manager",
            "icon": "📋",
            "role": "Investigative Product Strategist",
            "identity": "",
            "communicationStyle": "",
            "principles": "",
            "module": "bmm",
            "path": "bmm/agents/pm.md",
        }
    ]


def test_files_manifest_hashes_content(tmp_path: Path) -> None:
    root = _installed_root(tmp_path)

    generate_manifests(root)

    _header, rows = read_csv(root / "_cfg" / "files-manifest.csv")
    by_path = {row["path"]: row for row in rows}
    skill_path = root / "core" / "skills" / "shard-doc" / "SKILL.md"
    expected = hashlib.sha256(skill_path.read_bytes()).hexdigest()
    assert by_path["core/skills/shard-doc/SKILL.md"]["hash"] == expected


def test_regeneration_is_byte_identical(tmp_path: Path) -> None:
    root = _installed_root(tmp_path)

    generate_manifests(root)
    first = _manifest_bytes(root)
    generate_manifests(root)

    assert _manifest_bytes(root) == first


def test_previous_manifest_content_is_ignored(tmp_path: Path) -> None:
    root = _installed_root(tmp_path)
    cfg = root / "_cfg"
    cfg.mkdir()
    (cfg / "skill-manifest.csv").write_text(
        '"name","displayName","description","module","path","standalone"\n'
        '"old-skill","old-skill","","core","core/skills/old-skill/SKILL.md","true"\n',
        encoding="utf-8",
    )

    generate_manifests(root)

    content = (cfg / "skill-manifest.csv").read_text(encoding="utf-8")
    assert "old-skill" not in content
    assert '"shard-doc"' in content


def test_removed_component_disappears(tmp_path: Path) -> None:
    root = _installed_root(tmp_path)
    generate_manifests(root)

    shutil.rmtree(root / "core" / "skills" / "shard-doc")
    stats = generate_manifests(root)

    assert stats.count("skill") == 0
    assert "shard-doc" not in (root / "_cfg" / "skill-manifest.csv").read_text(encoding="utf-8")


def test_installation_record_is_written_with_selection(tmp_path: Path) -> None:
    root = _installed_root(tmp_path)
    installation = InstallationManifest.fresh([], [], "1.0.0", "2025-01-01T12:00:00+00:00")

    generate_manifests(
        root, ["core", "bmm"], ["claude-code"], ManifestOptions(installation=installation)
    )

    data = yaml.safe_load((root / "_cfg" / "manifest.yaml").read_text(encoding="utf-8"))
    assert data == {
        "installation": {
            "version": "1.0.0",
            "installDate": "2025-01-01T12:00:00+00:00",
            "lastUpdated": "2025-01-01T12:00:00+00:00",
        },
        "modules": ["core", "bmm"],
        "ides": ["claude-code"],
    }


def test_without_installation_record_manifest_yaml_is_untouched(tmp_path: Path) -> None:
    root = _installed_root(tmp_path)
    cfg = root / "_cfg"
    cfg.mkdir()
    (cfg / "manifest.yaml").write_text("modules: [core]\n", encoding="utf-8")

    generate_manifests(root)

    assert (cfg / "manifest.yaml").read_text(encoding="utf-8") == "modules: [core]\n"


def test_failed_write_publishes_nothing(tmp_path: Path) -> None:
    root = _installed_root(tmp_path)
    cfg = root / "_cfg"
    cfg.mkdir()
    stale = '"name"\n"stale"\n'
    (cfg / "skill-manifest.csv").write_text(stale, encoding="utf-8")
    # A directory where a manifest file must go
    (cfg / "workflow-manifest.csv").mkdir()

    with pytest.raises(ManifestWriteError):
        generate_manifests(root)

    assert (cfg / "skill-manifest.csv").read_text(encoding="utf-8") == stale
    assert not (cfg / "task-manifest.csv").exists()
    assert list(cfg.glob(".*.tmp")) == []


def test_unwritable_config_location_raises(tmp_path: Path) -> None:
    root = _installed_root(tmp_path)
    (root / "_cfg").write_text("not a directory", encoding="utf-8")

    with pytest.raises(ManifestWriteError):
        generate_manifests(root)


def test_module_restriction_limits_rows(tmp_path: Path) -> None:
    root = _installed_root(tmp_path)

    stats = generate_manifests(root, ["core"])

    assert stats.counts == {"skill": 1, "task": 1, "agent": 0, "workflow": 0}


def test_rows_are_sorted_across_modules(tmp_path: Path) -> None:
    def skill(module: str, name: str, path: str) -> DiscoveredComponent:
        return DiscoveredComponent(name=name, kind="skill", module=module, relative_path=path)

    components = [
        skill("core", "shard-doc", "core/skills/shard-doc/SKILL.md"),
        skill("bmm", "review", "bmm/skills/review/SKILL.md"),
        skill("cis", "brainstorm", "cis/skills/brainstorm/SKILL.md"),
        skill("bmm", "document", "bmm/skills/zz/document/SKILL.md"),
        skill("core", "help", "core/skills/help/SKILL.md"),
        skill("bmm", "document", "bmm/skills/document/SKILL.md"),
    ]

    contents = build_manifest_contents(
        tmp_path, components, ManifestOptions(include_files_manifest=False), None, None
    )

    manifest = tmp_path / "skill-manifest.csv"
    manifest.write_text(contents["skill-manifest.csv"], encoding="utf-8")
    _header, rows = read_csv(manifest)
    assert [(row["module"], row["name"], row["path"]) for row in rows] == [
        ("bmm", "document", "bmm/skills/document/SKILL.md"),
        ("bmm", "document", "bmm/skills/zz/document/SKILL.md"),
        ("bmm", "review", "bmm/skills/review/SKILL.md"),
        ("cis", "brainstorm", "cis/skills/brainstorm/SKILL.md"),
        ("core", "help", "core/skills/help/SKILL.md"),
        ("core", "shard-doc", "core/skills/shard-doc/SKILL.md"),
    ]
