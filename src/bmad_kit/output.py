"""Output utilities for CLI commands.

user_output writes human-facing messages to stderr. The install report is
a rich Panel that separates compiled agents from failed ones.
"""

import logging
import os

import click
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from bmad_kit.error_boundary import DEBUG_ENV_VAR
from bmad_kit.models.manifest import ManifestStats
from bmad_kit.operations.install import InstallResult


def configure_logging(debug: bool) -> None:
    """Enable debug logging for --debug or the BMAD_KIT_DEBUG environment variable."""
    if debug or os.environ.get(DEBUG_ENV_VAR):
        logging.basicConfig(level=logging.DEBUG, format="[DEBUG %(name)s:%(lineno)d] %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING, format="Warning: %(message)s")


def user_output(message: str) -> None:
    click.echo(message, err=True)


def format_manifest_stats(stats: ManifestStats) -> str:
    counts = ", ".join(f"{count} {kind}(s)" for kind, count in stats.counts.items())
    return f"Manifests regenerated: {counts}"


def format_install_report(result: InstallResult) -> Panel:
    """Format the final summary box of an install run.

    Example:
        >>> console.print(format_install_report(result))
    """
    lines: list[Text] = []

    if result.success:
        lines.append(Text("✅ Status: Success", style="green"))
    else:
        lines.append(Text("❌ Status: Completed with failures", style="red"))

    mode = "fresh install" if result.fresh_install else "update"
    lines.append(Text(f"Modules: {', '.join(result.installation.modules)} ({mode})"))
    if result.installation.ides:
        lines.append(Text(f"Targets: {', '.join(result.installation.ides)}"))

    lines.append(Text(""))
    lines.append(Text(f"Compiled agents: {len(result.compiled)}", style="bold"))
    for compiled in result.compiled:
        lines.append(Text(f"  ✓ {compiled.identifier} → {compiled.output_path}", style="dim"))

    if result.failed:
        lines.append(Text(f"Failed agents: {len(result.failed)}", style="red bold"))
        for failure in result.failed:
            lines.append(
                Text(f"  ✗ {failure.module}/{failure.name}: {failure.reason}", style="red")
            )

    lines.append(Text(""))
    lines.append(Text(format_manifest_stats(result.manifest_stats)))
    lines.append(Text(f"Help entries: {len(result.help_catalog.rows)}"))

    for ide_result in result.ide_results:
        lines.append(
            Text(f"  {ide_result.target}: {len(ide_result.written)} command(s)", style="dim")
        )
    for target_failure in result.ide_failures:
        lines.append(Text(f"  ✗ {target_failure.target}: {target_failure.reason}", style="red"))

    content = Text("\n").join(lines)
    title = "Install Complete" if result.success else "Install Finished With Errors"
    return Panel(
        content, title=title, border_style="green" if result.success else "red", padding=(1, 2)
    )


def print_install_report(result: InstallResult, console: Console | None = None) -> None:
    if console is None:
        console = Console(stderr=True)
    console.print(format_install_report(result))
