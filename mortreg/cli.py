"""CLI entrypoint for mortreg."""

import logging
import sys
from pathlib import Path

import click

from . import __version__
from .config import CONFIG_FILENAME, load_settings


def _identity_options(func):
    func = click.option(
        "--role",
        "-r",
        envvar="MORTREG_ROLE",
        default=None,
        help="Caller role attribute: regulator, pl, sl (or primary-lender / secondary-lender)",
    )(func)
    func = click.option(
        "--user",
        "-u",
        envvar="MORTREG_USER",
        default=None,
        help="Caller username attribute",
    )(func)
    return func


@click.group()
@click.version_option(__version__, prog_name="mortreg")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help=f"Path to config file (defaults to ./{CONFIG_FILENAME})",
)
@click.option("--verbose", is_flag=True, help="Log registry activity to stderr")
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, verbose: bool) -> None:
    """mortreg - Mortgage ownership registry on an append-only ledger.

    Bootstrap a registry, originate and transfer mortgages, and inspect
    the ledger history.
    """
    ctx.ensure_object(dict)
    if verbose:
        from rich.logging import RichHandler

        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(show_path=False)],
        )

    path = config_path or Path.cwd() / CONFIG_FILENAME
    try:
        ctx.obj["settings"] = load_settings(path)
    except ValueError as e:
        raise click.ClickException(f"Invalid config {path}: {e}")


@cli.command()
@click.argument("pairs", nargs=-1)
@click.pass_context
def init(ctx: click.Context, pairs: tuple[str, ...]) -> None:
    """Initialize an empty registry.

    PAIRS is a flat list of NAME CREDENTIAL pairs seeded as identity
    credentials.

    Examples:

        mortreg init

        mortreg init alice alice-ecert bob bob-ecert
    """
    from .commands.registry_cmd import run_init

    sys.exit(run_init(ctx.obj["settings"], pairs))


@cli.command()
@click.argument("function")
@click.argument("args", nargs=-1)
@_identity_options
@click.pass_context
def invoke(ctx: click.Context, function: str, args: tuple[str, ...], user: str | None, role: str | None) -> None:
    """Run a state-changing function.

    Functions: create_mortgage MORTGAGE_ID, pl_to_sl RECIPIENT MORTGAGE_ID, ping

    Examples:

        mortreg invoke -u alice -r pl create_mortgage M1

        mortreg invoke -u alice -r pl pl_to_sl bob M1
    """
    from .commands.registry_cmd import run_invoke

    sys.exit(run_invoke(ctx.obj["settings"], function, args, user=user, role=role))


@cli.command()
@click.argument("function")
@click.argument("args", nargs=-1)
@_identity_options
@click.option("--json", "output_json", is_flag=True, help="Print get_mortgages as JSON instead of a table")
@click.pass_context
def query(
    ctx: click.Context,
    function: str,
    args: tuple[str, ...],
    user: str | None,
    role: str | None,
    output_json: bool,
) -> None:
    """Run a read-only function.

    Functions: get_mortgage_details MORTGAGE_ID, check_unique_mortgage MORTGAGE_ID,
    get_mortgages, get_ecert NAME, ping

    Examples:

        mortreg query -u alice -r pl get_mortgages

        mortreg query -u alice -r pl get_mortgage_details M1
    """
    from .commands.registry_cmd import run_query

    sys.exit(run_query(ctx.obj["settings"], function, args, user=user, role=role, output_json=output_json))


@cli.command()
def functions() -> None:
    """List callable functions per surface."""
    from .dispatch import Surface, list_functions

    for surface in Surface:
        click.echo(f"{surface.value}:")
        for spec in list_functions(surface):
            click.echo(f"  {spec.usage}")


@cli.command()
@click.option("--key", default=None, help="Only show writes to this key")
@click.option("--limit", type=click.IntRange(min=1), default=None, help="Show only the most recent N entries")
@click.pass_context
def history(ctx: click.Context, key: str | None, limit: int | None) -> None:
    """Show committed ledger entries."""
    from .commands.registry_cmd import run_history

    sys.exit(run_history(ctx.obj["settings"], key=key, limit=limit))


@cli.command()
@click.option("--last", "last_n", type=click.IntRange(min=1), default=None, help="Show only the last N entries")
@click.pass_context
def audit(ctx: click.Context, last_n: int | None) -> None:
    """Show the invocation audit log."""
    from .commands.registry_cmd import run_audit

    sys.exit(run_audit(ctx.obj["settings"], last_n=last_n))


def main() -> None:
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()
