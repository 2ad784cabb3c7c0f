"""Rendering of merged definition trees into tagged-section artifacts.

An agent renders as markdown: frontmatter, an activation preamble, and a
fenced XML block whose root `<agent>` tag always contains `<persona>` and
`<menu>` sections, empty or not. Other kinds render a root tag named after
the kind with one section per top-level attribute.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from xml.sax.saxutils import escape, quoteattr

from bmad_kit.io.frontmatter_io import render_with_frontmatter
from bmad_kit.models.definition import ComponentDefinition, TreeValue

INDENT = "  "

PERSONA_FIELDS = ("role", "identity", "communication_style", "principles")
MENU_ATTRIBUTE_ORDER = ("workflow", "exec", "tmpl", "data", "action", "validate-workflow")
ROOT_ATTRIBUTE_ORDER = ("id", "name", "title", "icon")

HELP_TRIGGER = "*help"
EXIT_TRIGGER = "*exit"

ACTIVATION_PREAMBLE = (
    "You must fully embody this agent's persona and follow all activation "
    "instructions exactly as specified. NEVER break character until given an exit command."
)

DEFAULT_ACTIVATION_STEPS = (
    "Load persona from this current agent file (already in context)",
    "Show greeting using the agent name, then display the numbered list of all menu items",
    "STOP and WAIT for user input - do NOT execute menu items automatically",
)

_TAG_UNSAFE = re.compile(r"[^A-Za-z0-9_.-]+")


@dataclass(frozen=True)
class BuildMetadata:
    """Provenance recorded in a compiled artifact when requested."""

    source_label: str
    source_hash: str
    overlay_hash: str | None


def _tag_name(key: object) -> str:
    name = _TAG_UNSAFE.sub("_", str(key)).strip("_")
    if not name or not name[0].isalpha():
        name = f"x_{name}"
    return name


def _text(value: TreeValue) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return escape(str(value))


def _render_element(tag: str, value: TreeValue, depth: int) -> list[str]:
    pad = INDENT * depth
    tag = _tag_name(tag)
    if isinstance(value, Mapping):
        if not value:
            return [f"{pad}<{tag} />"]
        lines = [f"{pad}<{tag}>"]
        for key, item in value.items():
            lines.extend(_render_element(str(key), item, depth + 1))
        lines.append(f"{pad}</{tag}>")
        return lines
    if isinstance(value, list):
        if not value:
            return [f"{pad}<{tag} />"]
        lines = [f"{pad}<{tag}>"]
        for item in value:
            lines.extend(_render_element("item", item, depth + 1))
        lines.append(f"{pad}</{tag}>")
        return lines
    return [f"{pad}<{tag}>{_text(value)}</{tag}>"]


def _attributes(values: Mapping[str, TreeValue], order: tuple[str, ...]) -> str:
    keys = [key for key in order if key in values]
    keys.extend(sorted((key for key in values if key not in order), key=str))
    parts = []
    for key in keys:
        value = values[key]
        if value is None or isinstance(value, (dict, list)):
            continue
        parts.append(f"{_tag_name(key)}={quoteattr(str(value))}")
    return "".join(f" {part}" for part in parts)


def _normalize_trigger(trigger: str) -> str:
    trigger = trigger.strip()
    if trigger.startswith("*"):
        return trigger
    return f"*{trigger}"


def _menu_items(menu: TreeValue, inject_defaults: bool) -> list[dict[str, TreeValue]]:
    items: list[dict[str, TreeValue]] = []
    if isinstance(menu, list):
        for entry in menu:
            if isinstance(entry, Mapping) and entry.get("trigger"):
                items.append(dict(entry))

    if not inject_defaults:
        return items

    triggers = {_normalize_trigger(str(item["trigger"])) for item in items}
    if HELP_TRIGGER not in triggers:
        items.insert(0, {"trigger": HELP_TRIGGER, "description": "Show numbered menu"})
    if EXIT_TRIGGER not in triggers:
        items.append({"trigger": EXIT_TRIGGER, "description": "Exit with confirmation"})
    return items


def _render_menu(menu: TreeValue, inject_defaults: bool) -> list[str]:
    items = _menu_items(menu, inject_defaults)
    if not items:
        return ["<menu>", "</menu>"]
    lines = ["<menu>"]
    for item in items:
        attributes = {
            key: value for key, value in item.items() if key not in ("trigger", "description")
        }
        cmd = quoteattr(_normalize_trigger(str(item["trigger"])))
        attrs = _attributes(attributes, MENU_ATTRIBUTE_ORDER)
        lines.append(f"{INDENT}<item cmd={cmd}{attrs}>{_text(item.get('description'))}</item>")
    lines.append("</menu>")
    return lines


def _render_persona(persona: TreeValue) -> list[str]:
    if not isinstance(persona, Mapping) or not persona:
        return ["<persona>", "</persona>"]
    keys = [key for key in PERSONA_FIELDS if key in persona]
    keys.extend(key for key in persona if key not in PERSONA_FIELDS)
    lines = ["<persona>"]
    for key in keys:
        value = persona[key]
        if isinstance(value, list) and all(not isinstance(v, (dict, list)) for v in value):
            # Principles and similar lists read better as one paragraph
            value = " ".join(_text(v).strip() for v in value if v is not None)
            lines.append(f"{INDENT}<{_tag_name(key)}>{value}</{_tag_name(key)}>")
            continue
        lines.extend(_render_element(key, value, 1))
    lines.append("</persona>")
    return lines


def _render_activation(critical_actions: TreeValue) -> list[str]:
    steps = list(DEFAULT_ACTIVATION_STEPS[:1])
    if isinstance(critical_actions, list):
        steps.extend(str(action) for action in critical_actions if action is not None)
    steps.extend(DEFAULT_ACTIVATION_STEPS[1:])
    lines = ['<activation critical="MANDATORY">']
    for n, step in enumerate(steps, start=1):
        lines.append(f'{INDENT}<step n="{n}">{escape(step)}</step>')
    lines.append("</activation>")
    return lines


def _metadata_comment(metadata: BuildMetadata | None) -> list[str]:
    if metadata is None:
        return []
    parts = [f"source: {metadata.source_label}", f"sha256: {metadata.source_hash}"]
    if metadata.overlay_hash is not None:
        parts.append(f"overlay-sha256: {metadata.overlay_hash}")
    # "--" may not appear inside an XML comment
    return [f"<!-- Compiled by bmad-kit | {' | '.join(parts).replace('--', '-')} -->"]


def render_agent(
    definition: ComponentDefinition,
    inject_default_menu: bool,
    metadata: BuildMetadata | None,
) -> str:
    """Render an agent definition to markdown with an embedded XML block."""
    tree = definition.tree
    root_values = {key: value for key, value in definition.metadata.items() if key != "module"}
    root_values.setdefault("id", definition.identifier)
    root_values.setdefault("title", definition.title)

    xml_lines = [*_metadata_comment(metadata)]
    xml_lines.append(f"<agent{_attributes(root_values, ROOT_ATTRIBUTE_ORDER)}>")
    xml_lines.extend(_render_activation(tree.get("critical_actions")))
    xml_lines.extend(_render_persona(tree.get("persona")))
    prompts = tree.get("prompts")
    if isinstance(prompts, list) and prompts:
        xml_lines.extend(_render_element("prompts", prompts, 0))
    xml_lines.extend(_render_menu(tree.get("menu"), inject_default_menu))
    xml_lines.append("</agent>")

    body = "\n".join([ACTIVATION_PREAMBLE, "", "```xml", *xml_lines, "```"])
    front = {
        "name": definition.identifier,
        "description": definition.title,
    }
    return render_with_frontmatter(front, body)


def render_generic(definition: ComponentDefinition, metadata: BuildMetadata | None) -> str:
    """Render a task, skill or workflow definition as a single tagged block."""
    root_values = {key: value for key, value in definition.metadata.items() if key != "module"}
    root_values.setdefault("id", definition.identifier)

    lines = [*_metadata_comment(metadata)]
    lines.append(f"<{definition.kind}{_attributes(root_values, ROOT_ATTRIBUTE_ORDER)}>")
    for key, value in definition.tree.items():
        if key == "metadata":
            continue
        lines.extend(_render_element(key, value, 1))
    lines.append(f"</{definition.kind}>")

    body = "\n".join(["```xml", *lines, "```"])
    front = {"name": definition.identifier, "description": definition.title}
    return render_with_frontmatter(front, body)


def render_definition(
    definition: ComponentDefinition,
    inject_default_menu: bool,
    metadata: BuildMetadata | None,
) -> str:
    if definition.kind == "agent":
        return render_agent(definition, inject_default_menu, metadata)
    return render_generic(definition, metadata)
