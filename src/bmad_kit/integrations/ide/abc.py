"""Integration target setup abstraction.

An integration target (IDE or tool) receives the filtered artifact set of
an install. Formatting the artifacts for a given target is the setup
implementation's concern; bmad-kit only decides which artifacts it gets.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

from bmad_kit.models.component import DiscoveredComponent


@dataclass(frozen=True)
class IdeSetupOptions:
    """Options handed to a target's setup step.

    Attributes:
        selected_modules: Modules of the install, in selection order
        artifacts: Components the target should expose, already deduplicated
    """

    selected_modules: list[str]
    artifacts: list[DiscoveredComponent] = field(default_factory=list)


@dataclass(frozen=True)
class IdeSetupResult:
    target: str
    written: list[Path] = field(default_factory=list)
    removed: list[Path] = field(default_factory=list)


class IdeSetup(ABC):
    """Abstract setup step for integration targets."""

    @abstractmethod
    def setup(
        self,
        target: str,
        project_root: Path,
        installed_root: Path,
        options: IdeSetupOptions,
    ) -> IdeSetupResult:
        """Install the artifact set for one target.

        Args:
            target: Integration target identifier (e.g. "claude-code")
            project_root: Project directory the target lives in
            installed_root: Root of the installed components
            options: Selected modules and filtered artifacts

        Returns:
            IdeSetupResult describing what changed

        Raises:
            ValueError: If the target is unknown
        """
        ...
