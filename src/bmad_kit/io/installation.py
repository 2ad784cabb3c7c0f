"""Installation manifest I/O for _cfg/manifest.yaml."""

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from bmad_kit.io.atomic import write_text_atomic
from bmad_kit.models.installation import InstallationManifest

logger = logging.getLogger(__name__)

CONFIG_DIRNAME = "_cfg"
INSTALLATION_MANIFEST_FILENAME = "manifest.yaml"


def get_config_dir(installed_root: Path) -> Path:
    """Get the _cfg directory holding every manifest of an install."""
    return installed_root / CONFIG_DIRNAME


def get_installation_manifest_path(installed_root: Path) -> Path:
    return get_config_dir(installed_root) / INSTALLATION_MANIFEST_FILENAME


def load_installation_manifest(installed_root: Path) -> InstallationManifest | None:
    """Load _cfg/manifest.yaml from an installed root.

    Returns None if the file doesn't exist, which callers treat as a fresh
    install.

    Raises:
        ValueError: If the file exists but is not a valid installation manifest
    """
    manifest_path = get_installation_manifest_path(installed_root)
    if not manifest_path.exists():
        logger.debug("No installation manifest at %s", manifest_path)
        return None

    try:
        data = yaml.safe_load(manifest_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid installation manifest {manifest_path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Invalid installation manifest {manifest_path}: expected a mapping")

    # Older installs carry no installation block
    data.setdefault("installation", {"version": "unknown"})

    try:
        return InstallationManifest.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid installation manifest {manifest_path}: {e}") from e


def render_installation_manifest(manifest: InstallationManifest) -> str:
    """Render the manifest as YAML with a stable key order."""
    return yaml.safe_dump(
        manifest.to_yaml_data(),
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
    )


def save_installation_manifest(installed_root: Path, manifest: InstallationManifest) -> Path:
    """Write _cfg/manifest.yaml atomically and return its path."""
    manifest_path = get_installation_manifest_path(installed_root)
    write_text_atomic(manifest_path, render_installation_manifest(manifest))
    return manifest_path
