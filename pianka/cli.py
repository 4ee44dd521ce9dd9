"""
Command-line interface for Pianka.

Main entry point for the Pianka CLI application.
"""
import sys
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

import click
import typer
from rich.console import Console
from typer.core import TyperGroup

from pianka import __version__, commands
from pianka.cache import COMPOSER_LOCATION_KEY, COMPOSER_NAME_KEY, ConfigCache
from pianka.config import ComposerConfig, Config, load_config
from pianka.connection import ConnectionStringError
from pianka.fetchers.base import FetchError
from pianka.session import ComposerSession
from pianka.utils import configure_logging, set_verbose_commands, terminate_on_signals


def _usage_error_classes() -> Tuple[type, ...]:
    """UsageError classes of the click that Typer is built on.

    Recent Typer releases bundle their own copy of click, whose exceptions
    do not derive from the installed click package.
    """
    classes = {click.UsageError}
    for base in TyperGroup.__mro__:
        error = getattr(sys.modules.get(base.__module__), "UsageError", None)
        if isinstance(error, type) and issubclass(error, Exception):
            classes.add(error)
    return tuple(classes)


USAGE_ERRORS = _usage_error_classes()


class ComposerGroup(TyperGroup):
    """Command group that reports every usage error with exit status 1."""

    def make_context(self, info_name, args, parent=None, **extra):
        try:
            return super().make_context(info_name, args, parent=parent, **extra)
        except USAGE_ERRORS as e:
            e.exit_code = 1
            raise

    def invoke(self, ctx):
        try:
            return super().invoke(ctx)
        except USAGE_ERRORS as e:
            e.exit_code = 1
            raise


app = typer.Typer(
    name="pianka",
    help="Help manage Cloud Composer instances.\n\n"
    "The environment name and location are remembered, so they only need "
    "to be given once.",
    cls=ComposerGroup,
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)

# Commands forwarding their arguments stop option parsing at the first
# positional argument and pass unknown options through.
PASSTHROUGH_SETTINGS = {"ignore_unknown_options": True, "allow_interspersed_args": False}

err_console = Console(stderr=True)


@dataclass
class AppState:
    """Global options threaded from the callback to the commands."""

    composer_name: Optional[str] = None
    composer_location: Optional[str] = None
    verbose: bool = False


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"Pianka version {__version__}")
        raise typer.Exit()


def _print_error(message: str) -> None:
    err_console.print(f"Error: {message}", style="red", markup=False, highlight=False)


def _resolve_target(state: AppState) -> Tuple[Config, ComposerConfig]:
    """Combine flags with the cache, and remember the result.

    Exits with status 1, leaving the cache untouched, when the name or the
    location is still unknown.
    """
    config = load_config()
    cache = ConfigCache(config.cache_dir)
    target = ComposerConfig(
        composer_name=state.composer_name or cache.load(COMPOSER_NAME_KEY),
        composer_location=state.composer_location or cache.load(COMPOSER_LOCATION_KEY),
        verbose=state.verbose,
    )

    if not target.is_complete:
        typer.echo("The configuration of the environment is unknown.", err=True)
        typer.echo(
            'Execute this program with "--composer-name" and "--composer-location" flags '
            "to set the current environment.",
            err=True,
        )
        typer.echo("The values will be saved and subsequent starts will not require configuration.", err=True)
        raise typer.Exit(1)

    cache.save(COMPOSER_NAME_KEY, target.composer_name)
    cache.save(COMPOSER_LOCATION_KEY, target.composer_location)
    return config, target


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    composer_name: Optional[str] = typer.Option(
        None, "--composer-name", "-C", help="Composer instance used to run the operations on. Defaults to the cached value."
    ),
    composer_location: Optional[str] = typer.Option(
        None, "--composer-location", "-L", help="Composer location. Defaults to the cached value."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Add even more verbosity when running the script."),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show the version and exit."
    ),
) -> None:
    configure_logging(verbose)
    set_verbose_commands(verbose)
    if verbose:
        typer.echo("Verbosity turned on", err=True)

    state = AppState(composer_name=composer_name, composer_location=composer_location, verbose=verbose)

    # Subcommands resolve the environment in _dispatch, after their own
    # options (including --help) have been parsed.
    if ctx.invoked_subcommand is None:
        _resolve_target(state)
        typer.echo("You must provide at least one command.", err=True)
        typer.echo(ctx.get_help())
        raise typer.Exit(1)

    ctx.obj = state


def _dispatch(ctx: typer.Context, action: Callable[[ComposerSession], int]) -> None:
    """Run a verb inside a session and turn its outcome into an exit status."""
    config, target = _resolve_target(ctx.obj)
    try:
        with terminate_on_signals(), ComposerSession(target, config) as session:
            exit_code = action(session)
    except FetchError as e:
        _print_error(str(e))
        raise typer.Exit(e.exit_code) from e
    except ConnectionStringError as e:
        _print_error(f"{e}. Is the worker configured with a database?")
        raise typer.Exit(1) from e

    if exit_code < 0:
        # Child killed by a signal.
        exit_code = 128 - exit_code
    if exit_code:
        raise typer.Exit(exit_code)


@app.command()
def shell(ctx: typer.Context) -> None:
    """
    Open shell access to Airflow's worker.

    This allows you to test commands in the context of the Airflow instance.
    """
    _dispatch(ctx, commands.shell)


@app.command()
def info(ctx: typer.Context) -> None:
    """Print basic information about the environment."""
    _dispatch(ctx, commands.info)


@app.command(context_settings=PASSTHROUGH_SETTINGS)
def run(
    ctx: typer.Context,
    args: List[str] = typer.Argument(..., help="Command to run on the worker"),
    interactive: bool = typer.Option(False, "--interactive", "-i", help="Keep stdin open for the command"),
) -> None:
    """
    Run arbitrary command on the Airflow worker.

    To list current running processes: pianka run -- ps -aux

    To list DAGs: pianka run -- airflow list_dags
    """
    _dispatch(ctx, lambda session: commands.run(session, args, interactive=interactive))


@app.command(context_settings=PASSTHROUGH_SETTINGS)
def mysql(
    ctx: typer.Context,
    args: Optional[List[str]] = typer.Argument(None, help="Additional arguments for the mysql client"),
) -> None:
    """
    Start the MySQL console.

    Additional parameters are passed to the mysql client.
    To execute a query: pianka mysql -- --execute="SELECT 123"
    """
    _dispatch(ctx, lambda session: commands.mysql(session, args or []))


@app.command()
def mysqltunnel(
    ctx: typer.Context,
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Local port of the tunnel"),
) -> None:
    """
    Start the tunnel to MySQL database.

    This allows you to connect to the database with any tool, including your IDE.
    """
    _dispatch(ctx, lambda session: commands.mysqltunnel(session, port))


@app.command(context_settings=PASSTHROUGH_SETTINGS)
def mysqldump(
    ctx: typer.Context,
    args: Optional[List[str]] = typer.Argument(None, help="Additional arguments for mysqldump"),
) -> None:
    """
    Dump database or selected table(s).

    Additional parameters are passed to mysqldump. To dump the "connection"
    table: pianka mysqldump -- --column-statistics=0 connection > connection.sql

    Reference: https://dev.mysql.com/doc/refman/8.0/en/mysqldump.html
    """
    _dispatch(ctx, lambda session: commands.mysqldump(session, args or []))


@app.command("help")
def help_command(ctx: typer.Context) -> None:
    """Print help."""
    typer.echo(ctx.parent.get_help())


def main() -> None:
    app()
