"""Definition and overlay YAML loading."""

from pathlib import Path

import yaml

from bmad_kit.errors import DefinitionLoadError, OverlayLoadError
from bmad_kit.models.definition import (
    COMPONENT_KINDS,
    ComponentDefinition,
    ComponentKind,
    TreeValue,
)

AGENT_SUFFIX = ".agent.yaml"


def _read_yaml_mapping(path: Path) -> dict[str, TreeValue]:
    """Read a YAML document that must be a mapping.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the document is not valid YAML or not a mapping
    """
    if not path.is_file():
        raise FileNotFoundError(f"{path} does not exist")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"invalid YAML: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"expected a mapping at top level, got {type(data).__name__}")
    return data


def _detect_kind(data: dict[str, TreeValue]) -> ComponentKind | None:
    for kind in COMPONENT_KINDS:
        if isinstance(data.get(kind), dict):
            return kind
    return None


def _non_string_key(value: TreeValue, trail: str) -> str | None:
    """Return the location of the first mapping key that is not a string."""
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                return f"{trail}.{key!r}" if trail else repr(key)
            found = _non_string_key(item, f"{trail}.{key}" if trail else key)
            if found is not None:
                return found
    elif isinstance(value, list):
        for n, item in enumerate(value):
            found = _non_string_key(item, f"{trail}[{n}]")
            if found is not None:
                return found
    return None


def definition_stem(path: Path) -> str:
    """Return the component identifier implied by a definition filename.

    `pm.agent.yaml` -> `pm`, `shard-doc.yaml` -> `shard-doc`.
    """
    if path.name.endswith(AGENT_SUFFIX):
        return path.name[: -len(AGENT_SUFFIX)]
    return path.stem


def load_document(path: Path) -> dict[str, TreeValue]:
    """Load a base definition document as a raw tree.

    Raises:
        DefinitionLoadError: If the file is absent or not a YAML mapping
    """
    try:
        return _read_yaml_mapping(path)
    except (FileNotFoundError, ValueError) as e:
        raise DefinitionLoadError(path, str(e)) from e


def load_overlay(path: Path) -> dict[str, TreeValue]:
    """Load a customization overlay.

    An empty overlay file is a valid overlay that changes nothing.

    Raises:
        OverlayLoadError: If the file is absent or not a YAML mapping
    """
    try:
        return _read_yaml_mapping(path)
    except (FileNotFoundError, ValueError) as e:
        raise OverlayLoadError(path, str(e)) from e


def definition_from_document(document: dict[str, TreeValue], path: Path) -> ComponentDefinition:
    """Build a ComponentDefinition from an already loaded (or merged) tree.

    Raises:
        DefinitionLoadError: If the document has no known root key
            or a mapping key that is not a string
    """
    kind = _detect_kind(document)
    if kind is None:
        expected = ", ".join(COMPONENT_KINDS)
        raise DefinitionLoadError(path, f"missing root key (one of: {expected})")

    bad_key = _non_string_key(document, "")
    if bad_key is not None:
        raise DefinitionLoadError(path, f"mapping keys must be strings (at {bad_key})")

    tree = document[kind]
    assert isinstance(tree, dict)
    metadata = tree.get("metadata")
    metadata = metadata if isinstance(metadata, dict) else {}

    identifier = str(metadata.get("id") or metadata.get("name") or definition_stem(path))
    title = str(metadata.get("title") or metadata.get("name") or identifier)

    return ComponentDefinition(
        kind=kind,
        identifier=identifier,
        title=title,
        tree=tree,
        source_path=path,
    )
