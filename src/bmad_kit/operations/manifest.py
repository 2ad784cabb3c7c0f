"""Manifest generation from discovered components.

Every call regenerates each manifest from the current filesystem alone; the
previous manifest content is never read. Output is staged in full before
anything is published, so a failing call leaves the previous manifests in
place (no partial commit).
"""

import hashlib
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from bmad_kit.errors import ManifestWriteError
from bmad_kit.io.atomic import commit_staged, discard_staged, stage_text
from bmad_kit.io.csv_io import render_csv
from bmad_kit.io.installation import (
    INSTALLATION_MANIFEST_FILENAME,
    get_config_dir,
    render_installation_manifest,
)
from bmad_kit.models.component import DiscoveredComponent
from bmad_kit.models.definition import COMPONENT_KINDS, ComponentKind
from bmad_kit.models.installation import InstallationManifest
from bmad_kit.models.manifest import ManifestStats
from bmad_kit.services.discovery import ComponentDiscovery

logger = logging.getLogger(__name__)

FILES_MANIFEST_FILENAME = "files-manifest.csv"
FILES_MANIFEST_HEADER = ("type", "name", "module", "path", "hash")


@dataclass(frozen=True)
class ManifestSchema:
    """Filename, header and row builder for one component kind."""

    filename: str
    header: tuple[str, ...]
    row: Callable[[DiscoveredComponent], tuple[str, ...]]


def _flag(value: bool) -> str:
    return "true" if value else "false"


MANIFEST_SCHEMAS: dict[ComponentKind, ManifestSchema] = {
    "skill": ManifestSchema(
        filename="skill-manifest.csv",
        header=("name", "displayName", "description", "module", "path", "standalone"),
        row=lambda c: (
            c.name,
            c.display_name,
            c.description,
            c.module,
            c.relative_path,
            _flag(c.standalone),
        ),
    ),
    "task": ManifestSchema(
        filename="task-manifest.csv",
        header=("name", "displayName", "description", "module", "path", "standalone"),
        row=lambda c: (
            c.name,
            c.display_name,
            c.description,
            c.module,
            c.relative_path,
            _flag(c.standalone),
        ),
    ),
    "agent": ManifestSchema(
        filename="agent-manifest.csv",
        header=(
            "name",
            "displayName",
            "title",
            "icon",
            "role",
            "identity",
            "communicationStyle",
            "principles",
            "module",
            "path",
        ),
        row=lambda c: (
            c.name,
            c.display_name,
            c.extra.get("title", ""),
            c.extra.get("icon", ""),
            c.extra.get("role", ""),
            c.extra.get("identity", ""),
            c.extra.get("communicationStyle", ""),
            c.extra.get("principles", ""),
            c.module,
            c.relative_path,
        ),
    ),
    "workflow": ManifestSchema(
        filename="workflow-manifest.csv",
        header=("name", "description", "module", "path", "standalone"),
        row=lambda c: (c.name, c.description, c.module, c.relative_path, _flag(c.standalone)),
    ),
}


@dataclass(frozen=True)
class ManifestOptions:
    """Options for manifest generation.

    Attributes:
        installation: Installation record to write as _cfg/manifest.yaml,
            with its modules and ides replaced by the call's lists. None
            leaves manifest.yaml untouched.
        include_files_manifest: Also write files-manifest.csv with hashes
    """

    installation: InstallationManifest | None = None
    include_files_manifest: bool = True


def _file_hash(installed_root: Path, component: DiscoveredComponent) -> str:
    path = installed_root / component.relative_path
    try:
        return hashlib.sha256(path.read_bytes()).hexdigest()
    except OSError as e:
        # Removed between discovery and hashing: leave the row truthful but unhashed
        logger.warning("Cannot hash %s: %s", path, e)
        return ""


def build_manifest_contents(
    installed_root: Path,
    components: Sequence[DiscoveredComponent],
    options: ManifestOptions,
    modules: list[str] | None,
    targets: list[str] | None,
) -> dict[str, str]:
    """Render every manifest file in memory, keyed by filename."""
    ordered = sorted(components, key=lambda c: c.sort_key)
    contents: dict[str, str] = {}

    for kind in COMPONENT_KINDS:
        schema = MANIFEST_SCHEMAS[kind]
        rows = [schema.row(c) for c in ordered if c.kind == kind]
        contents[schema.filename] = render_csv(schema.header, rows)

    if options.include_files_manifest:
        file_rows = [
            (c.kind, c.name, c.module, c.relative_path, _file_hash(installed_root, c))
            for c in sorted(ordered, key=lambda c: c.relative_path)
        ]
        contents[FILES_MANIFEST_FILENAME] = render_csv(FILES_MANIFEST_HEADER, file_rows)

    if options.installation is not None:
        installation = options.installation.model_copy(
            update={
                "modules": list(modules) if modules is not None else options.installation.modules,
                "ides": list(targets) if targets is not None else options.installation.ides,
            }
        )
        contents[INSTALLATION_MANIFEST_FILENAME] = render_installation_manifest(installation)

    return contents


def write_manifests(config_dir: Path, contents: dict[str, str]) -> list[Path]:
    """Stage every manifest, then publish them all.

    Raises:
        ManifestWriteError: If the directory or any file cannot be written.
            No file of this call is published when staging fails.
    """
    try:
        config_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ManifestWriteError(config_dir, e.strerror or str(e)) from e

    staged: list[tuple[Path, Path]] = []
    try:
        for filename, content in contents.items():
            destination = config_dir / filename
            if destination.is_dir():
                raise ManifestWriteError(destination, "Is a directory")
            try:
                staged.append((stage_text(destination, content), destination))
            except OSError as e:
                raise ManifestWriteError(destination, e.strerror or str(e)) from e
    except BaseException:
        discard_staged(staged)
        raise

    try:
        commit_staged(staged)
    except OSError as e:
        discard_staged(staged)
        raise ManifestWriteError(config_dir, e.strerror or str(e)) from e

    return [destination for _temp, destination in staged]


def generate_manifests(
    installed_root: Path,
    modules: list[str] | None = None,
    targets: list[str] | None = None,
    options: ManifestOptions | None = None,
) -> ManifestStats:
    """Regenerate all manifests under `<installed_root>/_cfg` from disk.

    Args:
        installed_root: Root of the installed components
        modules: Modules to scan and record (None scans every module on disk)
        targets: Integration targets to record in manifest.yaml
        options: Generation options

    Returns:
        ManifestStats with per-kind counts and written paths

    Raises:
        ManifestWriteError: If any manifest cannot be written (nothing published)
    """
    if options is None:
        options = ManifestOptions()

    components = list(ComponentDiscovery(installed_root, modules))
    contents = build_manifest_contents(installed_root, components, options, modules, targets)
    written = write_manifests(get_config_dir(installed_root), contents)

    counts: dict[ComponentKind, int] = {kind: 0 for kind in COMPONENT_KINDS}
    for component in components:
        counts[component.kind] += 1

    logger.debug(
        "Generated manifests: %s",
        ", ".join(f"{kind}={count}" for kind, count in counts.items()),
    )
    return ManifestStats(counts=counts, files=len(components), manifest_paths=written)
