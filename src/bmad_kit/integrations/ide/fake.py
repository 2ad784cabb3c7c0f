"""Fake IdeSetup implementation for testing.

FakeIdeSetup records every setup() call without touching the filesystem.
"""

from dataclasses import dataclass
from pathlib import Path

from bmad_kit.integrations.ide.abc import IdeSetup, IdeSetupOptions, IdeSetupResult


@dataclass(frozen=True)
class SetupCall:
    target: str
    project_root: Path
    installed_root: Path
    options: IdeSetupOptions


class FakeIdeSetup(IdeSetup):
    """In-memory fake that tracks setup calls.

    This class has NO public setup methods. All state is provided via constructor
    or captured during execution.
    """

    def __init__(self, failing_targets: set[str] | None = None) -> None:
        """Create FakeIdeSetup.

        Args:
            failing_targets: Targets for which setup() raises ValueError
        """
        self._failing_targets = failing_targets or set()
        self._calls: list[SetupCall] = []

    @property
    def calls(self) -> list[SetupCall]:
        """Read-only access to tracked setup calls for test assertions."""
        return self._calls

    def setup(
        self,
        target: str,
        project_root: Path,
        installed_root: Path,
        options: IdeSetupOptions,
    ) -> IdeSetupResult:
        self._calls.append(SetupCall(target, project_root, installed_root, options))
        if target in self._failing_targets:
            raise ValueError(f"Unknown integration target: {target}")
        return IdeSetupResult(target=target)
