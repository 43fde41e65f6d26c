# ABOUTME: Interactive shell command for stackshell
# ABOUTME: Reads lines in a loop and dispatches them as built-in commands or API calls

"""Shell command - Interactive command loop against the active profile."""

import questionary
from cleo.commands.command import Command
from cleo.helpers import option
from rich import box
from rich.console import Console
from rich.panel import Panel

from stackshell.cli.utils.session import execute_line, load_registry, open_session
from stackshell.client import RequestsApiInvoker
from stackshell.dispatch import Dispatcher


def read_line(profile_name: str) -> str | None:
    """Prompt for one line; None on Ctrl-C or end of input."""
    return questionary.text(f"({profile_name}) >", qmark="").ask()


class ShellCommand(Command):
    """
    Start the interactive shell

    Every line is resolved against the built-in commands and the APIs
    cached for the active profile.
    """

    name = "shell"
    description = "Start the interactive shell"

    options = [
        option("profile", "p", description="Profile to use instead of the active one", flag=False),
    ]

    def handle(self) -> int:
        """Execute the shell command."""
        console = Console()

        try:
            session = open_session(self.option("profile"), has_shell=True, console=console)
        except (ValueError, FileNotFoundError) as e:
            console.print(f"\n[red]Error: {e}[/red]\n")
            return 1

        registry = load_registry(session)
        dispatcher = Dispatcher(registry, RequestsApiInvoker(session), session)

        console.print(
            Panel(
                f"Profile: [cyan]{session.profile_name}[/cyan]  URL: [cyan]{session.profile.url}[/cyan]\n"
                "Type [cyan]help[/cyan] for available commands, [cyan]exit[/cyan] to quit.",
                title="stackshell",
                box=box.ROUNDED,
            )
        )
        if not registry.apis():
            console.print("[yellow]No APIs cached for this profile.[/yellow] Run [cyan]stackshell sync[/cyan] first.")

        while not session.exit_requested:
            line = read_line(session.profile_name)
            if line is None:
                break
            execute_line(dispatcher, line)

        return 0
