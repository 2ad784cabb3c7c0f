"""Install command compiling agents and synchronizing manifests."""

from pathlib import Path

import click

from bmad_kit.commands.options import parse_variables, var_option
from bmad_kit.context import create_context
from bmad_kit.operations.install import Installer, InstallRequest
from bmad_kit.output import print_install_report


@click.command(name="install")
@click.argument(
    "project_dir",
    type=click.Path(path_type=Path, file_okay=False),
    default=".",
)
@click.option(
    "--source",
    "source_root",
    type=click.Path(path_type=Path, file_okay=False, exists=True),
    default=None,
    help="Module sources holding <module>/agents/*.agent.yaml",
)
@click.option("--module", "modules", multiple=True, help="Module to install (fresh installs)")
@click.option("--ide", "ides", multiple=True, help="Integration target (fresh installs)")
@click.option("--no-metadata", is_flag=True, help="Omit source hashes from compiled agents")
@var_option
@click.pass_context
def install_cmd(
    ctx: click.Context,
    project_dir: Path,
    source_root: Path | None,
    modules: tuple[str, ...],
    ides: tuple[str, ...],
    no_metadata: bool,
    variables: tuple[str, ...],
) -> None:
    """Install or rebuild PROJECT_DIR/bmad.

    This command is idempotent: re-running it recompiles agents and
    regenerates every manifest from what is on disk. An existing
    installation keeps its recorded modules and targets.

    Examples:

        bmad-kit install . --source src/modules --module core --module bmm --ide claude-code

        bmad-kit install . --source src/modules
    """
    debug = bool(ctx.obj and ctx.obj.get("debug"))
    bmad_ctx = create_context(
        project_root=project_dir.resolve(),
        source_root=source_root.resolve() if source_root is not None else None,
        variables=parse_variables(variables),
        debug=debug,
    )

    request = InstallRequest(
        modules=list(modules) or None,
        ides=list(ides) or None,
        include_metadata=not no_metadata,
    )
    result = Installer(bmad_ctx).compile_agents(request)
    print_install_report(result)

    if not result.success:
        raise SystemExit(1)
