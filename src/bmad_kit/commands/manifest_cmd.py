"""Manifest command regenerating manifests from an installed root."""

from pathlib import Path

import click

from bmad_kit.io.installation import load_installation_manifest
from bmad_kit.operations.manifest import ManifestOptions, generate_manifests
from bmad_kit.output import format_manifest_stats, user_output


@click.command(name="manifest")
@click.argument("installed_root", type=click.Path(path_type=Path, file_okay=False, exists=True))
@click.option("--module", "modules", multiple=True, help="Restrict to module (repeatable)")
def manifest_cmd(installed_root: Path, modules: tuple[str, ...]) -> None:
    """Regenerate every manifest under INSTALLED_ROOT/_cfg from disk.

    The existing installation record (manifest.yaml) is left as it is.
    """
    stats = generate_manifests(
        installed_root,
        list(modules) if modules else None,
        None,
        ManifestOptions(installation=None),
    )
    user_output(format_manifest_stats(stats))

    installation = load_installation_manifest(installed_root)
    if installation is None:
        user_output("  No installation record found (manifest.yaml)")
