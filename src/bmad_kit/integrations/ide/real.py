"""Production IDE setup writing one command stub per artifact."""

import logging
from pathlib import Path

from bmad_kit.integrations.ide.abc import IdeSetup, IdeSetupOptions, IdeSetupResult
from bmad_kit.io.atomic import write_text_atomic
from bmad_kit.io.frontmatter_io import render_with_frontmatter
from bmad_kit.models.component import DiscoveredComponent
from bmad_kit.naming import COMMAND_PREFIX, command_stem

logger = logging.getLogger(__name__)

# Where each supported target reads command files from, relative to the project
TARGET_COMMAND_DIRS: dict[str, str] = {
    "claude-code": ".claude/commands",
    "cursor": ".cursor/commands",
    "gemini": ".gemini/commands",
    "github-copilot": ".github/prompts",
    "windsurf": ".windsurf/workflows",
}


def get_command_dir(target: str, project_root: Path) -> Path:
    """Return the command directory of a target.

    Raises:
        ValueError: If the target is unknown
    """
    if target not in TARGET_COMMAND_DIRS:
        known = ", ".join(sorted(TARGET_COMMAND_DIRS))
        raise ValueError(f"Unknown integration target: {target} (known: {known})")
    return project_root / TARGET_COMMAND_DIRS[target]


def render_command_stub(
    component: DiscoveredComponent, project_root: Path, installed_root: Path
) -> str:
    """Render the stub that points a target at an installed component."""
    installed_path = installed_root / component.relative_path
    try:
        location = "{project-root}/" + installed_path.relative_to(project_root).as_posix()
    except ValueError:
        location = installed_path.as_posix()

    if component.kind == "agent":
        instruction = (
            f"Load the full agent file from @{location} and activate it, "
            "following every activation step it contains."
        )
    else:
        instruction = f"Load and follow the instructions in @{location} exactly."

    metadata: dict[str, object] = {"description": component.description or component.name}
    return render_with_frontmatter(metadata, instruction)


class CommandDirectoryIdeSetup(IdeSetup):
    """Writes `bmad-*.md` command files into the target's command directory.

    The directory's previous `bmad-*` files are regenerated wholesale: stubs
    for components no longer in the artifact set are removed.
    """

    def setup(
        self,
        target: str,
        project_root: Path,
        installed_root: Path,
        options: IdeSetupOptions,
    ) -> IdeSetupResult:
        command_dir = get_command_dir(target, project_root)

        wanted: dict[Path, str] = {}
        for component in options.artifacts:
            if component.module not in options.selected_modules:
                continue
            path = command_dir / f"{command_stem(component.relative_path)}.md"
            wanted.setdefault(path, render_command_stub(component, project_root, installed_root))

        removed: list[Path] = []
        if command_dir.is_dir():
            for existing in sorted(command_dir.glob(f"{COMMAND_PREFIX}-*.md")):
                if existing not in wanted:
                    existing.unlink()
                    removed.append(existing)

        written = []
        for path, content in sorted(wanted.items()):
            write_text_atomic(path, content)
            written.append(path)

        logger.debug(
            "Set up %s: %d command(s) written, %d removed", target, len(written), len(removed)
        )
        return IdeSetupResult(target=target, written=written, removed=removed)
