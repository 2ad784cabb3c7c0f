import os

import click

from bmad_kit.commands.compile_cmd import compile_cmd
from bmad_kit.commands.install_cmd import install_cmd
from bmad_kit.commands.manifest_cmd import manifest_cmd
from bmad_kit.error_boundary import DEBUG_ENV_VAR, cli_error_boundary
from bmad_kit.output import configure_logging, user_output
from bmad_kit.version import __version__

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])


@click.group(invoke_without_command=True, context_settings=CONTEXT_SETTINGS)
@click.version_option(version=__version__)
@click.option("--debug", is_flag=True, help="Show debug logging and full stack traces")
@click.pass_context
def cli(ctx: click.Context, debug: bool) -> None:
    """Compile BMAD definitions and keep install manifests in sync."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    if debug:
        os.environ[DEBUG_ENV_VAR] = "1"
    configure_logging(debug)

    if ctx.invoked_subcommand is None:
        user_output(ctx.get_help())


cli.add_command(compile_cmd)
cli.add_command(install_cmd)
cli.add_command(manifest_cmd)


def main() -> None:
    """Entry point with error boundary."""
    cli_error_boundary(cli)()


if __name__ == "__main__":
    main()
