"""imcdatasets CLI — top-level Click group."""

from __future__ import annotations

import click


@click.group(invoke_without_command=True)
@click.version_option(package_name="imcdatasets")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging and full tracebacks on errors.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """imcdatasets — example imaging mass cytometry datasets."""
    from imcdatasets.cli import utils

    utils.verbose = verbose
    utils.configure_logging(debug=verbose)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


def _register_commands() -> None:
    """Register all subcommands. Imports are deferred so startup stays light."""
    from imcdatasets.cli.build import build
    from imcdatasets.cli.list_cmd import list_cmd
    from imcdatasets.cli.verify import verify

    cli.add_command(build)
    cli.add_command(list_cmd)
    cli.add_command(verify)


_register_commands()
