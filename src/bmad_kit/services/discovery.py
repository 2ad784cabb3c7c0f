"""Filesystem discovery of installed components.

Walks `<installed_root>/<module>/{skills,tasks,agents,workflows}` and yields
one DiscoveredComponent per valid component. Traversal is lexicographic by
path, so consumers see a reproducible order. Unreadable entries and symlink
loops are logged and skipped; directories missing their descriptor file are
not yet components and are silently excluded.
"""

import logging
import re
from collections.abc import Iterator
from pathlib import Path
from xml.sax.saxutils import unescape

import yaml

from bmad_kit.errors import DiscoveryIOError
from bmad_kit.io.frontmatter_io import read_frontmatter
from bmad_kit.models.component import DiscoveredComponent

logger = logging.getLogger(__name__)

SKILL_DESCRIPTOR = "SKILL.md"
WORKFLOW_DESCRIPTORS = ("workflow.yaml", "workflow.md")
TASK_SUFFIXES = (".md", ".xml")

# quoteattr switches to single quotes for values containing a double quote
_ATTRIBUTE_PATTERN = re.compile(r"""([A-Za-z_][\w.-]*)=(?:"([^"]*)"|'([^']*)')""")
_ATTRIBUTE_ENTITIES = {"&quot;": '"', "&apos;": "'", "&#10;": "\n", "&#13;": "\r", "&#9;": "\t"}
_PERSONA_FIELDS = {
    "role": "role",
    "identity": "identity",
    "communication_style": "communicationStyle",
    "principles": "principles",
}


def _is_true(value: object) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "yes", "1")


def _tag_attributes(content: str, tag: str) -> dict[str, str]:
    match = re.search(rf"<{tag}\b([^>]*)>", content)
    if match is None:
        return {}
    return {
        key: unescape(double or single, _ATTRIBUTE_ENTITIES)
        for key, double, single in _ATTRIBUTE_PATTERN.findall(match.group(1))
    }


def _section_text(content: str, tag: str) -> str:
    match = re.search(rf"<{tag}>(.*?)</{tag}>", content, re.DOTALL)
    if match is None:
        return ""
    return " ".join(unescape(match.group(1)).split())


class ComponentDiscovery:
    """Discovers installed components under one installed root.

    Iterating the instance runs a fresh discovery pass each time, so the
    sequence is restartable and always reflects the current filesystem.
    """

    def __init__(self, installed_root: Path, modules: list[str] | None = None) -> None:
        """Initialize discovery.

        Args:
            installed_root: Directory holding one subdirectory per module
            modules: Restrict the scan to these modules (None scans all)
        """
        self._root = installed_root
        self._modules = modules

    def __iter__(self) -> Iterator[DiscoveredComponent]:
        return self.discover()

    def list_modules(self) -> list[str]:
        """Return module directory names present on disk, sorted."""
        found = []
        for entry in self._sorted_entries(self._root):
            if entry.name.startswith(("_", ".")):
                continue
            if entry.is_dir():
                found.append(entry.name)
        if self._modules is None:
            return found
        wanted = set(self._modules)
        return [name for name in found if name in wanted]

    def discover(self) -> Iterator[DiscoveredComponent]:
        """Yield every component in module, kind, path order."""
        if not self._root.is_dir():
            logger.debug("Installed root %s does not exist", self._root)
            return

        for module in self.list_modules():
            module_dir = self._root / module
            yield from self._discover_skills(module, module_dir / "skills")
            yield from self._discover_tasks(module, module_dir / "tasks")
            yield from self._discover_agents(module, module_dir / "agents")
            yield from self._discover_workflows(module, module_dir / "workflows")

    # Traversal helpers

    def _warn(self, path: Path, reason: str) -> None:
        logger.warning("%s", DiscoveryIOError(path, reason))

    def _sorted_entries(self, directory: Path) -> list[Path]:
        try:
            return sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError as e:
            self._warn(directory, e.strerror or str(e))
            return []

    def _walk(self, top: Path, stop_at: tuple[str, ...] = ()) -> Iterator[Path]:
        """Yield directories under top (inclusive), depth first, sorted.

        Directories containing any filename in stop_at are yielded but not
        descended into. Each real directory is visited at most once.
        """
        if not top.is_dir():
            return
        visited: set[Path] = set()
        stack = [top]
        while stack:
            directory = stack.pop()
            try:
                real = directory.resolve(strict=True)
            except (OSError, RuntimeError) as e:
                self._warn(directory, str(e))
                continue
            if real in visited:
                self._warn(directory, "symlink loop")
                continue
            visited.add(real)
            yield directory

            if any((directory / name).is_file() for name in stop_at):
                continue
            children = [entry for entry in self._sorted_entries(directory) if entry.is_dir()]
            stack.extend(reversed(children))

    def _files(self, top: Path, suffixes: tuple[str, ...]) -> Iterator[Path]:
        for directory in self._walk(top):
            for entry in self._sorted_entries(directory):
                if entry.is_file() and entry.suffix in suffixes:
                    yield entry

    def _relative(self, path: Path) -> str:
        return path.relative_to(self._root).as_posix()

    def _frontmatter(self, path: Path) -> dict[str, object] | None:
        try:
            return read_frontmatter(path)
        except OSError as e:
            self._warn(path, e.strerror or str(e))
            return None
        except ValueError as e:
            # Still an installed component, only its metadata is unusable
            self._warn(path, str(e))
            return {}

    # Per-kind discovery

    def _discover_skills(self, module: str, skills_dir: Path) -> Iterator[DiscoveredComponent]:
        for directory in self._walk(skills_dir, stop_at=(SKILL_DESCRIPTOR,)):
            descriptor = directory / SKILL_DESCRIPTOR
            if directory == skills_dir or not descriptor.is_file():
                continue
            metadata = self._frontmatter(descriptor)
            if metadata is None:
                continue
            name = str(metadata.get("name") or directory.name)
            yield DiscoveredComponent(
                name=name,
                kind="skill",
                module=module,
                relative_path=self._relative(descriptor),
                standalone=_is_true(metadata.get("standalone", True)),
                display_name=str(metadata.get("displayName") or name),
                description=str(metadata.get("description") or ""),
            )

    def _discover_tasks(self, module: str, tasks_dir: Path) -> Iterator[DiscoveredComponent]:
        for task_file in self._files(tasks_dir, TASK_SUFFIXES):
            if task_file.suffix == ".xml":
                attributes = self._xml_attributes(task_file, "task")
                if attributes is None:
                    continue
                metadata: dict[str, object] = dict(attributes)
            else:
                loaded = self._frontmatter(task_file)
                if loaded is None:
                    continue
                metadata = loaded
            name = task_file.stem
            yield DiscoveredComponent(
                name=name,
                kind="task",
                module=module,
                relative_path=self._relative(task_file),
                standalone=_is_true(metadata.get("standalone", False)),
                display_name=str(metadata.get("displayName") or metadata.get("name") or name),
                description=str(metadata.get("description") or ""),
            )

    def _discover_agents(self, module: str, agents_dir: Path) -> Iterator[DiscoveredComponent]:
        for agent_file in self._files(agents_dir, (".md",)):
            try:
                content = agent_file.read_text(encoding="utf-8")
            except OSError as e:
                self._warn(agent_file, e.strerror or str(e))
                continue
            attributes = _tag_attributes(content, "agent")
            if not attributes:
                # Not a compiled agent (README or notes)
                continue
            extra = {
                "title": attributes.get("title", ""),
                "icon": attributes.get("icon", ""),
            }
            for tag, column in _PERSONA_FIELDS.items():
                extra[column] = _section_text(content, tag)
            yield DiscoveredComponent(
                name=agent_file.stem,
                kind="agent",
                module=module,
                relative_path=self._relative(agent_file),
                display_name=attributes.get("name", agent_file.stem),
                description=attributes.get("title", ""),
                extra=extra,
            )

    def _discover_workflows(
        self, module: str, workflows_dir: Path
    ) -> Iterator[DiscoveredComponent]:
        for directory in self._walk(workflows_dir, stop_at=WORKFLOW_DESCRIPTORS):
            descriptor = next(
                (directory / name for name in WORKFLOW_DESCRIPTORS if (directory / name).is_file()),
                None,
            )
            if descriptor is None:
                continue
            metadata = self._workflow_metadata(descriptor)
            if metadata is None:
                continue
            yield DiscoveredComponent(
                name=str(metadata.get("name") or directory.name),
                kind="workflow",
                module=module,
                relative_path=self._relative(descriptor),
                standalone=_is_true(metadata.get("standalone", False)),
                display_name=str(metadata.get("name") or directory.name),
                description=" ".join(str(metadata.get("description") or "").split()),
            )

    def _workflow_metadata(self, descriptor: Path) -> dict[str, object] | None:
        if descriptor.suffix == ".md":
            return self._frontmatter(descriptor)
        try:
            data = yaml.safe_load(descriptor.read_text(encoding="utf-8"))
        except OSError as e:
            self._warn(descriptor, e.strerror or str(e))
            return None
        except yaml.YAMLError as e:
            self._warn(descriptor, f"invalid YAML: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _xml_attributes(self, path: Path, tag: str) -> dict[str, str] | None:
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            self._warn(path, e.strerror or str(e))
            return None
        return _tag_attributes(content, tag)
