# ABOUTME: Sync command for stackshell
# ABOUTME: Discovers the server's APIs and caches them for the active profile

"""Sync command - Refresh the cached API list."""

import requests
from cleo.commands.command import Command
from cleo.helpers import option
from rich.console import Console

from stackshell.cli.utils.session import open_session, sync_api_cache
from stackshell.client import RequestsApiInvoker
from stackshell.errors import StackShellError


class SyncCommand(Command):
    """Discover and cache the APIs offered by the server."""

    name = "sync"
    description = "Discover APIs from the server and cache them for the profile"

    options = [
        option("profile", "p", description="Profile to use instead of the active one", flag=False),
    ]

    def handle(self) -> int:
        """Execute the sync command."""
        console = Console()

        try:
            session = open_session(self.option("profile"), console=console)
            with console.status("[yellow]Discovering APIs...[/yellow]"):
                count = sync_api_cache(session, RequestsApiInvoker(session))
        except (ValueError, FileNotFoundError, StackShellError, requests.RequestException) as e:
            console.print(f"\n[red]Error syncing APIs: {e}[/red]\n")
            return 1

        console.print(f"[green]✓ Discovered {count} APIs for profile {session.profile_name}[/green]")
        return 0
