"""Tests for the Installer orchestration."""

from datetime import UTC, datetime
from pathlib import Path

import pytest
import yaml

from bmad_kit.context import BmadContext
from bmad_kit.errors import ManifestWriteError
from bmad_kit.integrations.ide.fake import FakeIdeSetup
from bmad_kit.integrations.time.fake import FakeTime
from bmad_kit.io.csv_io import read_csv
from bmad_kit.operations import install as install_module
from bmad_kit.operations.install import Installer, InstallRequest
from tests.test_utils.install_tree import (
    agent_document,
    write_agent_definition,
    write_installation_manifest,
    write_skill,
    write_task,
)


def test_existing_installation_selects_modules_and_targets(tmp_path: Path) -> None:
    installed_root = tmp_path / "bmad"
    write_installation_manifest(installed_root, ["core"], ["cursor"])
    (installed_root / "core").mkdir()
    ide_setup = FakeIdeSetup()
    ctx = BmadContext.for_test(project_root=tmp_path, ide_setup=ide_setup)

    result = Installer(ctx).compile_agents()

    assert result.fresh_install is False
    assert result.agent_count == 0
    assert result.task_count == 0
    assert [call.target for call in ide_setup.calls] == ["cursor"]
    assert ide_setup.calls[0].options.selected_modules == ["core"]


def test_request_is_ignored_when_installation_exists(tmp_path: Path) -> None:
    installed_root = tmp_path / "bmad"
    write_installation_manifest(installed_root, ["core"], [])
    ctx = BmadContext.for_test(project_root=tmp_path)

    result = Installer(ctx).compile_agents(InstallRequest(modules=["bmm"], ides=["cursor"]))

    assert result.installation.modules == ["core"]
    assert result.installation.ides == []


def test_fresh_install_records_selection(tmp_path: Path) -> None:
    now = datetime(2025, 3, 4, 5, 6, 7, tzinfo=UTC)
    time = FakeTime(now)
    ctx = BmadContext.for_test(project_root=tmp_path, time=time)

    result = Installer(ctx).compile_agents(
        InstallRequest(modules=["bmm", "core"], ides=["claude-code"])
    )

    assert result.fresh_install is True
    assert time.now_calls == 1
    data = yaml.safe_load((tmp_path / "bmad" / "_cfg" / "manifest.yaml").read_text("utf-8"))
    assert data["modules"] == ["core", "bmm"]
    assert data["ides"] == ["claude-code"]
    assert data["installation"]["installDate"] == now.isoformat()
    assert data["installation"]["lastUpdated"] == now.isoformat()


def test_one_broken_agent_does_not_stop_the_others(tmp_path: Path) -> None:
    source_root = tmp_path / "src"
    write_agent_definition(source_root, "core", "analyst")
    write_agent_definition(source_root, "core", "pm")
    (source_root / "core" / "agents" / "broken.agent.yaml").write_text(
        "agent: [unclosed\n", encoding="utf-8"
    )
    ctx = BmadContext.for_test(project_root=tmp_path, source_root=source_root)

    result = Installer(ctx).compile_agents()

    assert [c.identifier for c in result.compiled] == ["analyst", "pm"]
    assert [f.name for f in result.failed] == ["broken"]
    assert result.success is False
    agents_dir = tmp_path / "bmad" / "core" / "agents"
    assert sorted(p.name for p in agents_dir.iterdir()) == ["analyst.md", "pm.md"]

    _header, rows = read_csv(tmp_path / "bmad" / "_cfg" / "agent-manifest.csv")
    assert [row["name"] for row in rows] == ["analyst", "pm"]


def test_agent_with_non_string_keys_does_not_stop_the_others(tmp_path: Path) -> None:
    source_root = tmp_path / "src"
    write_agent_definition(source_root, "core", "analyst")
    write_agent_definition(source_root, "core", "pm")
    (source_root / "core" / "agents" / "odd.agent.yaml").write_text(
        "agent:\n  metadata:\n    id: odd\n  persona:\n    1: numbered\n", encoding="utf-8"
    )
    ctx = BmadContext.for_test(project_root=tmp_path, source_root=source_root)

    result = Installer(ctx).compile_agents()

    assert [c.identifier for c in result.compiled] == ["analyst", "pm"]
    assert [f.name for f in result.failed] == ["odd"]
    assert (tmp_path / "bmad" / "_cfg" / "agent-manifest.csv").is_file()


def test_unexpected_compile_error_is_collected(tmp_path: Path, monkeypatch) -> None:
    source_root = tmp_path / "src"
    write_agent_definition(source_root, "core", "analyst")
    write_agent_definition(source_root, "core", "pm")
    real_compile = install_module.compile_definition

    def failing_compile(definition_path, overlay_path, output_path, options=None):
        if definition_path.name == "pm.agent.yaml":
            raise RuntimeError("renderer bug")
        return real_compile(definition_path, overlay_path, output_path, options)

    monkeypatch.setattr(install_module, "compile_definition", failing_compile)
    ctx = BmadContext.for_test(project_root=tmp_path, source_root=source_root)

    result = Installer(ctx).compile_agents()

    assert [c.identifier for c in result.compiled] == ["analyst"]
    assert [(f.name, f.reason) for f in result.failed] == [("pm", "RuntimeError: renderer bug")]


def test_overlay_from_config_directory_is_applied(tmp_path: Path) -> None:
    source_root = tmp_path / "src"
    write_agent_definition(source_root, "core", "pm")
    overlays_dir = tmp_path / "bmad" / "_cfg" / "agents"
    overlays_dir.mkdir(parents=True)
    (overlays_dir / "core-pm.customize.yaml").write_text(
        yaml.safe_dump({"agent": {"metadata": {"name": "Sarah"}}}), encoding="utf-8"
    )
    ctx = BmadContext.for_test(project_root=tmp_path, source_root=source_root)

    result = Installer(ctx).compile_agents()

    assert result.success
    content = (tmp_path / "bmad" / "core" / "agents" / "pm.md").read_text(encoding="utf-8")
    assert 'name="Sarah"' in content


def test_project_root_placeholder_is_resolved(tmp_path: Path) -> None:
    source_root = tmp_path / "src"
    write_agent_definition(source_root, "core", "pm")
    ctx = BmadContext.for_test(project_root=tmp_path, source_root=source_root)

    Installer(ctx).compile_agents()

    content = (tmp_path / "bmad" / "core" / "agents" / "pm.md").read_text(encoding="utf-8")
    assert "{project-root}" not in content
    assert tmp_path.as_posix() in content


def test_quoted_agent_attributes_survive_compile_and_discovery(tmp_path: Path) -> None:
    source_root = tmp_path / "src"
    document = agent_document("pm", name="O'Brien", title='The "PM"')
    write_agent_definition(source_root, "core", "pm", document)
    ctx = BmadContext.for_test(project_root=tmp_path, source_root=source_root)

    Installer(ctx).compile_agents()

    _header, rows = read_csv(tmp_path / "bmad" / "_cfg" / "agent-manifest.csv")
    assert [(row["displayName"], row["title"]) for row in rows] == [("O'Brien", 'The "PM"')]


def test_targets_receive_deduplicated_artifacts(tmp_path: Path) -> None:
    installed_root = tmp_path / "bmad"
    write_skill(installed_root, "core", "shard-doc")
    write_task(installed_root, "core", "shard-doc")
    write_task(installed_root, "core", "help")
    ide_setup = FakeIdeSetup()
    ctx = BmadContext.for_test(project_root=tmp_path, ide_setup=ide_setup)

    Installer(ctx).compile_agents(InstallRequest(modules=["core"], ides=["claude-code"]))

    paths = [a.relative_path for a in ide_setup.calls[0].options.artifacts]
    assert paths == ["core/skills/shard-doc/SKILL.md", "core/tasks/help.md"]


def test_failing_target_is_reported_without_aborting(tmp_path: Path) -> None:
    ide_setup = FakeIdeSetup(failing_targets={"unknown-ide"})
    ctx = BmadContext.for_test(project_root=tmp_path, ide_setup=ide_setup)

    result = Installer(ctx).compile_agents(
        InstallRequest(modules=["core"], ides=["unknown-ide", "cursor"])
    )

    assert [f.target for f in result.ide_failures] == ["unknown-ide"]
    assert [r.target for r in result.ide_results] == ["cursor"]
    assert result.success is False


def _run_install(tmp_path: Path, source_root: Path, request: InstallRequest) -> dict[str, bytes]:
    ctx = BmadContext.for_test(project_root=tmp_path, source_root=source_root)
    Installer(ctx).compile_agents(request)
    cfg = tmp_path / "bmad" / "_cfg"
    return {p.name: p.read_bytes() for p in cfg.iterdir() if p.is_file()}


def test_rerun_regenerates_identical_manifests(tmp_path: Path) -> None:
    source_root = tmp_path / "src"
    write_agent_definition(source_root, "core", "pm")
    write_skill(tmp_path / "bmad", "core", "shard-doc")
    request = InstallRequest(modules=["core"])

    first = _run_install(tmp_path, source_root, request)
    second = _run_install(tmp_path, source_root, request)

    assert second == first


def test_manifest_write_failure_aborts_the_run(tmp_path: Path) -> None:
    installed_root = tmp_path / "bmad"
    installed_root.mkdir()
    (installed_root / "_cfg").write_text("not a directory", encoding="utf-8")
    ide_setup = FakeIdeSetup()
    ctx = BmadContext.for_test(project_root=tmp_path, ide_setup=ide_setup)

    with pytest.raises(ManifestWriteError):
        Installer(ctx).compile_agents(InstallRequest(modules=["core"], ides=["cursor"]))

    assert ide_setup.calls == []


def test_duplicate_output_paths_are_reported(tmp_path: Path) -> None:
    source_root = tmp_path / "src"
    write_agent_definition(source_root, "core", "pm")
    ctx = BmadContext.for_test(project_root=tmp_path, source_root=source_root)
    installer = Installer(ctx)
    jobs = installer.find_agent_jobs(["core"])

    compiled, failed = installer.compile_agent_jobs([jobs[0], jobs[0]])

    assert len(compiled) == 1
    assert len(failed) == 1
    assert "already produced" in failed[0].reason
