"""Component definition models."""

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

ComponentKind = Literal["agent", "task", "skill", "workflow"]

COMPONENT_KINDS: tuple[ComponentKind, ...] = ("skill", "task", "agent", "workflow")

# Closed set of variants a definition tree is built from
type Scalar = str | int | float | bool | None
type TreeValue = Scalar | list[TreeValue] | dict[str, TreeValue]
type Tree = dict[str, TreeValue]


@dataclass(frozen=True)
class ComponentDefinition:
    """A loaded definition: kind, identity and its nested attribute tree.

    The tree is the raw document body under the kind's root key (for an
    agent, the mapping under `agent:`).
    """

    kind: ComponentKind
    identifier: str
    title: str
    tree: Mapping[str, TreeValue]
    source_path: Path

    @property
    def metadata(self) -> Mapping[str, TreeValue]:
        metadata = self.tree.get("metadata")
        if isinstance(metadata, dict):
            return metadata
        return {}
