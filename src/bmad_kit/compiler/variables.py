"""Placeholder substitution over definition trees."""

import re
from collections.abc import Mapping

from bmad_kit.models.definition import TreeValue

PLACEHOLDER_PATTERN = re.compile(r"\{([A-Za-z_][A-Za-z0-9_.:-]*)\}")


def resolve_string(text: str, table: Mapping[str, str]) -> str:
    """Substitute every `{name}` found in table. Unknown names stay verbatim.

    Substitution is a single pass, so values containing placeholders are not
    expanded again.
    """

    def replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name in table:
            return table[name]
        return match.group(0)

    return PLACEHOLDER_PATTERN.sub(replace, text)


def resolve_variables(value: TreeValue, table: Mapping[str, str]) -> TreeValue:
    """Resolve placeholders in every string leaf of a tree.

    Mapping keys are left untouched. Returns a new tree.
    """
    if isinstance(value, str):
        return resolve_string(value, table)
    if isinstance(value, list):
        return [resolve_variables(item, table) for item in value]
    if isinstance(value, dict):
        return {key: resolve_variables(item, table) for key, item in value.items()}
    return value


def find_placeholders(value: TreeValue) -> set[str]:
    """Return every placeholder name still present in a tree."""
    if isinstance(value, str):
        return set(PLACEHOLDER_PATTERN.findall(value))
    if isinstance(value, list):
        found: set[str] = set()
        for item in value:
            found |= find_placeholders(item)
        return found
    if isinstance(value, dict):
        found = set()
        for item in value.values():
            found |= find_placeholders(item)
        return found
    return set()
