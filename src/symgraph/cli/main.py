"""symgraph CLI - symg command."""

import click

from symgraph.cli.extract import extract_command
from symgraph.cli.languages import languages_command
from symgraph.config import load_config
from symgraph.core.errors import SymgraphError
from symgraph.core.logging import configure_logging


@click.group()
@click.version_option(package_name="symgraph", prog_name="symg")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """symgraph - Symbol graphs from source files, no compiler required."""
    try:
        config = load_config()
    except SymgraphError as e:
        raise click.ClickException(e.message) from e

    logging_config = config.logging
    if verbose:
        logging_config = logging_config.model_copy(update={"level": "DEBUG"})
    configure_logging(config=logging_config)

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config"] = config


cli.add_command(extract_command, name="extract")
cli.add_command(languages_command, name="languages")


if __name__ == "__main__":
    cli()
