"""Main CLI entry point."""

import logging
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from kee import __version__, config
from kee.aws_config import AwsConfigStore
from kee.errors import KeeError
from kee.registry import RegistryStore
from kee.runner import CommandRunner
from kee.session import SessionController, ask_confirm

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="kee",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode=None,
)


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def get_controller() -> SessionController:
    """Wire the stores, the command runner and the prompt together."""
    return SessionController(
        aws_config=AwsConfigStore(config.get_aws_config_path()),
        registry_store=RegistryStore(config.get_registry_path()),
        runner=CommandRunner(),
        console=console,
        confirm=ask_confirm,
    )


def run(action, *args, **kwargs):
    """Run a controller action, turning fatal errors into exit code 1."""
    try:
        return action(get_controller(), *args, **kwargs)
    except (KeeError, OSError) as e:
        err_console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)


def version_callback(value: bool):
    if value:
        console.print(f"kee {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
    version: Optional[bool] = typer.Option(
        None, "--version", callback=version_callback, is_eager=True, help="Show the version and exit"
    ),
):
    """
    kee - AWS CLI session manager.

    \b
    Examples:
      kee add myaccount      Add a new AWS account
      kee use myaccount      Use an account (starts a sub-shell)
      kee ls                 List all configured accounts
      kee current            Show the current active account
      kee rm myaccount       Remove an account configuration
    """
    setup_logging(verbose)


@app.command("add")
def add(profile_name: str = typer.Argument(..., metavar="PROFILE_NAME")):
    """Add a new AWS account through the AWS SSO wizard."""
    run(SessionController.add, profile_name)


@app.command("use")
def use(profile_name: str = typer.Argument(..., metavar="PROFILE_NAME")):
    """Use an account: log in if needed and start a sub-shell."""
    run(SessionController.use, profile_name)


@app.command("ls")
def list_accounts(
    names: bool = typer.Option(False, "--names", help="Print only account names"),
):
    """List all configured accounts."""
    run(SessionController.list, names_only=names)


app.command("list", hidden=True)(list_accounts)


@app.command("current")
def current():
    """Show the current active account."""
    run(SessionController.current)


@app.command("rm")
def remove(profile_name: str = typer.Argument(..., metavar="PROFILE_NAME")):
    """Remove an account and its AWS profile."""
    run(SessionController.remove, profile_name)


app.command("remove", hidden=True)(remove)


if __name__ == "__main__":
    app()
