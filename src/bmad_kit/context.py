"""Application context with dependency injection.

BmadContext holds every dependency and the installation state of one
invocation. It is created once at the CLI entry point (or by a test via
for_test) and passed explicitly to the installer; nothing reads global state.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from bmad_kit.integrations.ide.abc import IdeSetup
from bmad_kit.integrations.time.abc import Time
from bmad_kit.io.installation import load_installation_manifest
from bmad_kit.models.installation import InstallationManifest

DEFAULT_INSTALL_DIRNAME = "bmad"


def default_max_workers() -> int:
    return max(1, os.cpu_count() or 1)


@dataclass(frozen=True)
class BmadContext:
    """Immutable context holding all dependencies for bmad-kit operations.

    Attributes:
        project_root: Project the install belongs to
        installed_root: Root of installed components (`<project>/bmad`)
        source_root: Directory of module sources holding agent definitions,
            or None when only manifests are regenerated
        variables: User-supplied placeholder values
        installation: Installation manifest loaded at startup (None: fresh)
        ide_setup: Integration target setup step
        time: Clock for installation timestamps
        max_workers: Upper bound on concurrent agent compiles
        debug: Debug flag for error handling (full stack traces)
    """

    project_root: Path
    installed_root: Path
    source_root: Path | None
    variables: Mapping[str, str]
    installation: InstallationManifest | None
    ide_setup: IdeSetup
    time: Time
    max_workers: int = field(default_factory=default_max_workers)
    debug: bool = False

    def computed_variables(self) -> dict[str, str]:
        """Placeholders every compile can resolve, before user values."""
        return {
            "project-root": self.project_root.as_posix(),
            "bmad_folder": self.installed_root.name,
        }

    @staticmethod
    def for_test(
        project_root: Path | None = None,
        installed_root: Path | None = None,
        source_root: Path | None = None,
        variables: Mapping[str, str] | None = None,
        installation: InstallationManifest | None = None,
        ide_setup: IdeSetup | None = None,
        time: Time | None = None,
        max_workers: int = 2,
        debug: bool = False,
    ) -> "BmadContext":
        """Create test context with optional pre-configured implementations.

        Uses fakes by default. When installed_root is omitted it defaults to
        `<project_root>/bmad`. When installation is omitted it is detected
        from disk like create_context does (None if there is no manifest).

        Example:
            >>> from bmad_kit.integrations.ide.fake import FakeIdeSetup
            >>> ide_setup = FakeIdeSetup()
            >>> ctx = BmadContext.for_test(project_root=tmp_path, ide_setup=ide_setup)
        """
        from bmad_kit.integrations.ide.fake import FakeIdeSetup
        from bmad_kit.integrations.time.fake import FakeTime

        resolved_project_root = project_root if project_root is not None else Path("/fake/project")
        resolved_installed_root = (
            installed_root
            if installed_root is not None
            else resolved_project_root / DEFAULT_INSTALL_DIRNAME
        )

        return BmadContext(
            project_root=resolved_project_root,
            installed_root=resolved_installed_root,
            source_root=source_root,
            variables=dict(variables) if variables is not None else {},
            installation=(
                installation
                if installation is not None
                else load_installation_manifest(resolved_installed_root)
            ),
            ide_setup=ide_setup if ide_setup is not None else FakeIdeSetup(),
            time=time if time is not None else FakeTime(),
            max_workers=max_workers,
            debug=debug,
        )


def create_context(
    *,
    project_root: Path,
    source_root: Path | None,
    variables: Mapping[str, str],
    debug: bool,
    installed_root: Path | None = None,
) -> BmadContext:
    """Create production context with real implementations.

    Loads the installation manifest exactly once; every later component
    receives it through the context.

    Raises:
        ValueError: If an existing installation manifest is malformed
    """
    from bmad_kit.integrations.ide.real import CommandDirectoryIdeSetup
    from bmad_kit.integrations.time.real import RealTime

    resolved_installed_root = (
        installed_root if installed_root is not None else project_root / DEFAULT_INSTALL_DIRNAME
    )

    return BmadContext(
        project_root=project_root,
        installed_root=resolved_installed_root,
        source_root=source_root,
        variables=dict(variables),
        installation=load_installation_manifest(resolved_installed_root),
        ide_setup=CommandDirectoryIdeSetup(),
        time=RealTime(),
        debug=debug,
    )
