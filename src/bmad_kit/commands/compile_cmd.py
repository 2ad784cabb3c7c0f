"""Compile command for a single definition."""

from pathlib import Path

import click

from bmad_kit.commands.options import parse_variables, var_option
from bmad_kit.compiler.builder import CompileOptions, compile_definition
from bmad_kit.output import user_output


@click.command(name="compile")
@click.argument("definition", type=click.Path(path_type=Path, dir_okay=False))
@click.argument("output", type=click.Path(path_type=Path, dir_okay=False))
@click.option(
    "--overlay",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Customization overlay merged onto the definition",
)
@click.option("--no-metadata", is_flag=True, help="Omit source hashes from the artifact")
@var_option
def compile_cmd(
    definition: Path,
    output: Path,
    overlay: Path | None,
    no_metadata: bool,
    variables: tuple[str, ...],
) -> None:
    """Compile one DEFINITION (with an optional overlay) into OUTPUT.

    Examples:

        bmad-kit compile src/core/agents/pm.agent.yaml bmad/core/agents/pm.md

        bmad-kit compile pm.agent.yaml pm.md --overlay pm.customize.yaml --var user_name=Ada
    """
    options = CompileOptions(
        variables=parse_variables(variables),
        include_metadata=not no_metadata,
    )
    result = compile_definition(definition, overlay, output, options)

    user_output(f"✓ Compiled {result.kind} '{result.identifier}' → {result.output_path}")
    if result.unresolved:
        user_output(f"  Runtime placeholders left: {', '.join(sorted(result.unresolved))}")
