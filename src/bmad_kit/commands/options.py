"""Shared click options and parsing helpers."""

import click


def parse_variables(pairs: tuple[str, ...]) -> dict[str, str]:
    """Parse repeated `--var key=value` options.

    Raises:
        click.BadParameter: If an entry has no `=` or an empty key
    """
    variables = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"'{pair}' (expected key=value)", param_hint="--var")
        variables[key.strip()] = value
    return variables


var_option = click.option(
    "--var",
    "variables",
    multiple=True,
    metavar="KEY=VALUE",
    help="Placeholder value, e.g. --var user_name=Ada (repeatable)",
)
