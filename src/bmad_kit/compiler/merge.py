"""Recursive merge of customization overlays onto base definitions."""

import copy
from collections.abc import Mapping

from bmad_kit.models.definition import Tree, TreeValue


def _is_mapping(value: TreeValue) -> bool:
    return isinstance(value, Mapping)


def merge_value(base: TreeValue, overlay: TreeValue) -> TreeValue:
    """Merge one overlay value onto one base value.

    Mapping onto Mapping recurses. Any other combination (scalar, sequence,
    or a type change) replaces the base value wholesale.
    """
    if _is_mapping(base) and _is_mapping(overlay):
        assert isinstance(base, Mapping) and isinstance(overlay, Mapping)
        return deep_merge(base, overlay)
    return copy.deepcopy(overlay)


def deep_merge(base: Mapping[str, TreeValue], overlay: Mapping[str, TreeValue]) -> Tree:
    """Return base with overlay applied. Neither input is mutated.

    - Keys only in base are preserved untouched
    - Keys only in overlay are added
    - Keys in both: mappings recurse, everything else is replaced

    Key order follows base, then overlay-only keys in overlay order. Merge
    results do not depend on the order of sibling keys.

    Example:
        >>> deep_merge({"persona": {"role": "PM", "style": "a"}}, {"persona": {"style": "b"}})
        {"persona": {"role": "PM", "style": "b"}}
    """
    merged: Tree = {key: copy.deepcopy(value) for key, value in base.items()}
    for key, overlay_value in overlay.items():
        if key in merged:
            merged[key] = merge_value(merged[key], overlay_value)
        else:
            merged[key] = copy.deepcopy(overlay_value)
    return merged
