"""Discovered component records."""

from dataclasses import dataclass, field

from bmad_kit.models.definition import ComponentKind


@dataclass(frozen=True)
class DiscoveredComponent:
    """A component found on disk during a discovery pass.

    Produced fresh on every pass and never mutated. `relative_path` is
    POSIX-style and relative to the installed root, so it is stable across
    platforms and suitable for manifests.
    """

    name: str
    kind: ComponentKind
    module: str
    relative_path: str
    standalone: bool = False
    display_name: str = ""
    description: str = ""
    # Kind-specific columns (agent title, icon, persona fields)
    extra: dict[str, str] = field(default_factory=dict)

    @property
    def sort_key(self) -> tuple[str, str, str]:
        return (self.module, self.name, self.relative_path)
