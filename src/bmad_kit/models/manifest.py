"""Manifest generation result models."""

from dataclasses import dataclass, field
from pathlib import Path

from bmad_kit.models.definition import ComponentKind


@dataclass(frozen=True)
class ManifestStats:
    """Summary of one manifest generation call."""

    counts: dict[ComponentKind, int]
    files: int
    manifest_paths: list[Path] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def count(self, kind: ComponentKind) -> int:
        return self.counts.get(kind, 0)
