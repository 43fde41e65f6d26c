# ABOUTME: One-shot API command for stackshell
# ABOUTME: Runs a single API call non-interactively, e.g. from scripts

"""Api command - Run one API call and exit."""

from cleo.commands.command import Command
from cleo.helpers import argument, option
from rich.console import Console

from stackshell.cli.utils.session import execute_line, load_registry, open_session
from stackshell.client import RequestsApiInvoker
from stackshell.dispatch import Dispatcher


class ApiCommand(Command):
    """
    Run a single API call

    Arguments are the API name (optionally split into verb and noun) followed
    by key=value parameters, exactly as typed in the shell. Put -- before the
    tokens when they include -h or anything else starting with a dash, or
    cleo reads it as one of its own options.
    """

    name = "api"
    description = "Run a single API call, e.g. 'api list zones id=...'"
    help = (
        "Runs one API against the active profile and exits.\n\n"
        "Use <comment>--</comment> to pass dash-prefixed tokens through to the API, e.g.\n"
        "  <info>stackshell api -- listZones -h</info>  shows the API help for listZones"
    )

    arguments = [
        argument("tokens", description="API name followed by key=value parameters", multiple=True),
    ]
    options = [
        option("profile", "p", description="Profile to use instead of the active one", flag=False),
    ]

    def handle(self) -> int:
        """Execute the api command."""
        console = Console()

        try:
            session = open_session(self.option("profile"), has_shell=False, console=console)
        except (ValueError, FileNotFoundError) as e:
            console.print(f"\n[red]Error: {e}[/red]\n")
            return 1

        dispatcher = Dispatcher(load_registry(session), RequestsApiInvoker(session), session)
        return execute_line(dispatcher, list(self.argument("tokens")))
