"""Session controller: the add / use / ls / current / rm commands."""

import logging
import os
import sys
from typing import Callable, Mapping, Optional

from InquirerPy import inquirer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from kee import config
from kee.aws_config import AwsConfigStore
from kee.errors import KeeError
from kee.registry import Registry, RegistryStore
from kee.runner import CommandRunner

logger = logging.getLogger(__name__)

KEE_ART = r"""
    ██╗  ██╗███████╗███████╗
    ██║ ██╔╝██╔════╝██╔════╝
    █████╔╝ █████╗  █████╗
    ██╔═██╗ ██╔══╝  ██╔══╝
    ██║  ██╗███████╗███████╗
    ╚═╝  ╚═╝╚══════╝╚══════╝

    AWS CLI session manager"""

AWS_CLI = "aws"

SSO_WIZARD_STEPS = [
    "Enter your SSO start URL",
    "Enter your SSO region",
    "Authenticate in your browser",
    "Select your AWS account",
    "Select your role",
    "Choose your default region",
    "Choose your output format (recommend: json)",
]


def hlt(text: str) -> str:
    """Bold a user supplied value for rich output."""
    return f"[bold]{escape(text)}[/bold]"


def ask_confirm(message: str) -> bool:
    """y/N question, defaulting to no."""
    return bool(inquirer.confirm(message=message, default=False).execute())


class SessionController:
    """
    Orchestrates the kee commands.

    The registry is reloaded from disk at the start of every command and
    saved after every mutation. The AWS config file is only touched through
    ``aws_config``; external commands only through ``runner``.
    """

    def __init__(
        self,
        aws_config: AwsConfigStore,
        registry_store: RegistryStore,
        runner: Optional[CommandRunner] = None,
        console: Optional[Console] = None,
        confirm: Callable[[str], bool] = ask_confirm,
        environ: Optional[Mapping[str, str]] = None,
        windows: Optional[bool] = None,
    ):
        self.aws_config = aws_config
        self.registry_store = registry_store
        self.runner = runner or CommandRunner()
        self.console = console or Console()
        self.confirm = confirm
        self.environ = os.environ if environ is None else environ
        self.windows = sys.platform == "win32" if windows is None else windows

    def add(self, nickname: str) -> bool:
        """Run the AWS SSO wizard for ``nickname`` and register the result."""
        self._print_sso_guidance(nickname)

        status = self.runner.run_interactive(AWS_CLI, ["configure", "sso", "--profile", nickname])
        if status != 0:
            self.console.print("[red]❌ SSO configuration failed.[/red]")
            return False

        self.console.print(
            f"[dim]Note: you can ignore the AWS CLI example above. {hlt('kee')} will handle "
            "profiles for you.[/dim]"
        )

        self.aws_config.reformat()
        info = self.aws_config.read_profile(nickname)
        if info is None:
            self.console.print("[red]❌ Could not read profile information.[/red]")
            return False

        registry = self.registry_store.load()
        registry.add(nickname, info)
        self.registry_store.save(registry)

        if self.check_credentials(info.profile_name):
            self.console.print("\n[green]✓ The account was added and is working correctly.[/green]")
        else:
            self.console.print(
                "\n[yellow]⚠ The profile was created but credentials may need a refresh.[/yellow]"
            )
            self.console.print(f"Try: {hlt(f'aws sso login --profile {info.profile_name}')}")

        return True

    def _print_sso_guidance(self, nickname: str) -> None:
        self.console.print("\nStarting SSO configuration...")
        self.console.print("[dim](This will open your browser to complete authentication.)[/dim]")
        self.console.print("\nFollow the prompts:")
        for number, step in enumerate(SSO_WIZARD_STEPS, start=1):
            self.console.print(f"  {hlt(f'{number}.')} {step}")
        self.console.print(
            f"\n{hlt('Tip:')} When prompted for 'session name', use: {hlt(nickname)}\n"
        )

    def use(self, nickname: str) -> bool:
        """Authenticate ``nickname`` and open a sub-shell scoped to it."""
        if self.environ.get(config.ACTIVE_SESSION_VAR):
            current = self.environ.get(config.CURRENT_ACCOUNT_VAR, "unknown")
            self.console.print(f"\nYou already are in a kee session for: {hlt(current)}")
            self.console.print(f"Exit the current session first by typing '{hlt('exit')}'")
            return False

        registry = self.registry_store.load()

        if registry.get(nickname) is None:
            added, proceed = self._offer_add(nickname, registry)
            if not proceed:
                return added
            registry = self.registry_store.load()

        info = registry.get(nickname)
        if not self.check_credentials(info.profile_name):
            self.console.print("Credentials expired or not available. Attempting SSO login...")
            if not self.sso_login(info.profile_name):
                self.console.print(
                    f"[red]❌ Failed to authenticate.[/red] Please run '{hlt('aws sso login')}' manually."
                )
                return False

        registry.set_current(nickname)
        self.registry_store.save(registry)
        try:
            self.start_subshell(nickname, info.profile_name)
        finally:
            # Pick up adds/removes made from inside the sub-shell
            registry = self.registry_store.load()
            registry.set_current(None)
            self.registry_store.save(registry)

        return True

    def _offer_add(self, nickname: str, registry: Registry) -> tuple[bool, bool]:
        """
        Offer to add an unknown nickname.

        Returns:
            (added, proceed): whether the account got registered, and
            whether the caller should go on into a session with it
        """
        self.console.print(f"\nAccount '{hlt(nickname)}' not found.")
        if not registry.is_empty():
            self.console.print("Available accounts:")
            for name in sorted(registry.names()):
                self.console.print(f"  • {hlt(name)}")

        if not self.confirm(f"Would you like to add account '{nickname}' now?"):
            return False, False

        if not self.add(nickname):
            self.console.print(f"[red]❌ Failed to add account '{escape(nickname)}'.[/red]")
            return False, False

        if not self.confirm(f"Would you like to use account '{nickname}' now?"):
            self.console.print(
                f"\nAccount '{hlt(nickname)}' is ready to use. "
                f"Run '{hlt(f'kee use {nickname}')}' when needed."
            )
            return True, False

        return True, True

    def list(self, names_only: bool = False) -> None:
        registry = self.registry_store.load()

        if names_only:
            for name in sorted(registry.names()):
                self.console.print(name, markup=False, highlight=False)
            return

        if registry.is_empty():
            self.console.print(
                f"\nNo accounts configured. Use '{hlt('kee add <account_name>')}' to add an account."
            )
            return

        table = Table(title="🔐 kee accounts", header_style="bold cyan")
        table.add_column("Account", style="cyan")
        table.add_column("Account ID", style="dim")
        table.add_column("Role", style="green")
        table.add_column("Status")

        for name, info in sorted(registry.list()):
            status = "(current session)" if name == registry.current_profile else ""
            table.add_row(escape(name), info.sso_account_id, escape(info.sso_role_name), status)

        self.console.print(table)

    def current(self) -> Optional[str]:
        """Report the active session, preferring the live sub-shell environment."""
        live = self.environ.get(config.CURRENT_ACCOUNT_VAR)
        if live:
            self.console.print(f"\nCurrent session: {hlt(live)}")
            self.console.print(f"Type '{hlt('exit')}' to return to your main shell.")
            return live

        registry = self.registry_store.load()
        if registry.current_profile:
            self.console.print(f"\nCurrent account: {hlt(registry.current_profile)}")
        else:
            self.console.print("\nNo account is currently active.")
        return registry.current_profile

    def remove(self, nickname: str) -> bool:
        """
        Forget ``nickname`` and delete its AWS config sections.

        The registry is saved before the AWS config is edited; a failure on
        the AWS side is only reported.
        """
        registry = self.registry_store.load()
        if registry.get(nickname) is None:
            self.console.print(f"\nAccount '{hlt(nickname)}' not found.")
            return False

        if not self.confirm(f"Are you sure you want to remove account '{nickname}'?"):
            return False

        info = registry.remove(nickname)
        self.registry_store.save(registry)

        try:
            self.aws_config.remove_profile(info.profile_name)
            if info.session_name:
                self.aws_config.remove_sso_session(info.session_name)
        except (KeeError, OSError) as e:
            logger.debug("Removing %s from the AWS config failed", nickname, exc_info=True)
            self.console.print(f"[green]✓ Account '{escape(nickname)}' removed from kee.[/green]")
            self.console.print(
                f"[yellow]⚠ Warning: could not remove AWS profile "
                f"'{escape(info.profile_name)}': {escape(str(e))}[/yellow]"
            )
            self.console.print(
                f"You may want to remove it manually from {escape(str(self.aws_config.path))}"
            )
            return True

        if info.session_name:
            self.console.print(
                f"[green]✓ Account '{escape(nickname)}', AWS profile "
                f"'{escape(info.profile_name)}' and SSO session "
                f"'{escape(info.session_name)}' removed.[/green]"
            )
        else:
            self.console.print(
                f"[green]✓ Account '{escape(nickname)}' and AWS profile "
                f"'{escape(info.profile_name)}' removed.[/green]"
            )
        return True

    def check_credentials(self, profile_name: str) -> bool:
        """True if ``aws sts get-caller-identity`` succeeds for the profile."""
        status, _ = self.runner.run_captured(
            AWS_CLI,
            ["sts", "get-caller-identity", "--profile", profile_name],
            env={"AWS_CLI_AUTO_PROMPT": "off", "AWS_PAGER": ""},
        )
        return status == 0

    def sso_login(self, profile_name: str) -> bool:
        status = self.runner.run_interactive(AWS_CLI, ["sso", "login", "--profile", profile_name])
        return status == 0

    def get_shell(self) -> str:
        if self.windows:
            return self.environ.get("COMSPEC") or config.DEFAULT_WINDOWS_SHELL
        return self.environ.get("SHELL") or config.DEFAULT_POSIX_SHELL

    def subshell_env(self, nickname: str, profile_name: str) -> dict:
        env = {
            config.AWS_PROFILE_VAR: profile_name,
            config.CURRENT_ACCOUNT_VAR: nickname,
            config.ACTIVE_SESSION_VAR: "1",
        }
        if not self.windows:
            env[config.PROMPT_VAR] = config.format_prompt(
                nickname, self.environ.get(config.PROMPT_VAR)
            )
        return env

    def start_subshell(self, nickname: str, profile_name: str) -> None:
        """Block in an interactive shell carrying the session variables."""
        shell = self.get_shell()

        self.console.print(
            Panel(
                f"{escape(KEE_ART)}\n\n"
                f"Session: {hlt(nickname)}\n\n"
                "Starting a sub-shell for this session...\n"
                f"Type '{hlt('exit')}' to return to your main shell.",
                border_style="cyan",
            )
        )

        self.runner.run_interactive(shell, [], env=self.subshell_env(nickname, profile_name))

        self.console.print(f"\n{hlt(nickname)}: session ended.")
