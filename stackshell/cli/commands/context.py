# ABOUTME: Context management commands for server profiles
# ABOUTME: Implements list, current, use, show and add subcommands

"""Context command - Manage server profile contexts."""

from cleo.commands.command import Command
from cleo.helpers import argument, option
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from stackshell.config import Config, Profile
from stackshell.errors import InvalidApiCache
from stackshell.registry import load_api_cache
from stackshell.validators import ProfileValidator


def _api_count(config: Config, name: str) -> str:
    """Number of cached APIs for display, or a hint that the profile was never synced."""
    cache = config.api_cache_path(name)
    if not cache.exists():
        return "not synced"
    try:
        return str(len(load_api_cache(cache)))
    except InvalidApiCache:
        return "unreadable"


class ContextListCommand(Command):
    """List all saved server profiles."""

    name = "context list"
    description = "List all saved server profiles"

    def handle(self) -> int:
        """Execute the context list command."""
        console = Console()

        try:
            config = Config.load()
            names = config.list_profiles()
        except OSError as e:
            console.print(f"\n[red]Error listing profiles: {e}[/red]\n")
            return 1

        if not names:
            console.print("\n[yellow]No profiles found.[/yellow]")
            console.print("Run [cyan]stackshell context add <name> --url <url>[/cyan] to create one.\n")
            return 0

        table = Table(title="Server Profiles", box=box.ROUNDED, show_header=True, header_style="bold cyan")
        table.add_column("", width=1)
        table.add_column("Profile", style="cyan", no_wrap=True)
        table.add_column("URL")
        table.add_column("Output")
        table.add_column("APIs", justify="right")

        for name in names:
            profile = config.get_profile(name)
            marker = "★" if name == config.active_profile else ""
            if profile is None:
                table.add_row(marker, name, "[red](unreadable)[/red]", "", "")
                continue
            table.add_row(marker, name, profile.url, profile.output, _api_count(config, name))

        console.print()
        console.print(table)
        if not config.active_profile:
            console.print("\n[yellow]No active profile set.[/yellow] Use [cyan]stackshell context use <profile>[/cyan].")
        console.print()
        return 0


class ContextCurrentCommand(Command):
    """Print the active profile and the server it points at."""

    name = "context current"
    description = "Show the currently active server profile"

    def handle(self) -> int:
        """Execute the context current command."""
        console = Console()
        config = Config.load()

        if not config.active_profile:
            console.print("\n[yellow]No active profile set.[/yellow]")
            console.print("Use [cyan]stackshell context use <profile>[/cyan] to set one.\n")
            return 0

        profile = config.get_profile()
        if profile is None:
            console.print(f"\n[red]Active profile '{config.active_profile}' cannot be loaded.[/red]\n")
            return 1

        console.print(f"\n[green]Active profile:[/green] {profile.name} ({profile.url})\n", highlight=False)
        return 0


class ContextUseCommand(Command):
    """Make another saved profile the active one."""

    name = "context use"
    description = "Switch to a different server profile"
    arguments = [argument("profile", description="Name of the profile to activate", optional=False)]

    def handle(self) -> int:
        """Execute the context use command."""
        console = Console()
        profile_name = self.argument("profile")
        config = Config.load()

        if not config.set_active_profile(profile_name):
            console.print(f"\n[red]Error: Profile '{profile_name}' not found.[/red]")
            available = config.list_profiles()
            if available:
                console.print(f"Available profiles: {', '.join(available)}\n")
            return 1

        console.print(f"\n[green]✓ Switched to profile:[/green] {profile_name}")
        if not config.api_cache_path(profile_name).exists():
            console.print("[yellow]No APIs cached yet.[/yellow] Run [cyan]stackshell sync[/cyan] to discover them.")
        console.print()
        return 0


class ContextShowCommand(Command):
    """Show detailed information about a profile."""

    name = "context show"
    description = "Show detailed information about a server profile"
    arguments = [
        argument("profile", description="Name of the profile to show (default: active profile)", optional=True)
    ]

    def handle(self) -> int:
        """Execute the context show command."""
        console = Console()
        profile_name = self.argument("profile")

        try:
            config = Config.load()

            if not profile_name:
                profile_name = config.active_profile
                if not profile_name:
                    console.print("\n[red]No active profile set and no profile specified.[/red]\n")
                    return 1

            try:
                profile = config.load_profile(profile_name)
            except FileNotFoundError:
                console.print(f"\n[red]Error: Profile '{profile_name}' not found.[/red]")
                console.print("\nUse [cyan]stackshell context list[/cyan] to see all profiles.\n")
                return 1

            console.print()
            console.print(
                Panel(
                    f"[cyan]{profile_name}[/cyan]",
                    title="Profile Configuration",
                    subtitle="Active" if profile_name == config.active_profile else "Inactive",
                    box=box.ROUNDED,
                )
            )

            console.print("\n[bold cyan]Server:[/bold cyan]")
            console.print(f"  URL:        {profile.url}")
            console.print(f"  Username:   {profile.username}")
            console.print(f"  Domain:     {profile.domain}")
            console.print(f"  API Key:    {profile.api_key or '(not set)'}")
            console.print(f"  Verify SSL: {'✓ enabled' if profile.verify_ssl else '✗ disabled'}")

            console.print("\n[bold cyan]Shell:[/bold cyan]")
            console.print(f"  Output:  {profile.output}")
            console.print(f"  Timeout: {profile.timeout}s")
            console.print(f"  APIs:    {_api_count(config, profile_name)}")

            result = ProfileValidator.validate_profile(profile.to_dict())
            console.print(f"\n{result}")
            for warning in result.warnings:
                console.print(f"  [yellow]⚠ {warning}[/yellow]")
            for error in result.errors:
                console.print(f"  [red]✗ {error}[/red]")

            console.print()
            return 0

        except Exception as e:
            console.print(f"\n[red]Error: {e}[/red]\n")
            return 1


class ContextAddCommand(Command):
    """Create or update a profile."""

    name = "context add"
    description = "Create or update a server profile"
    arguments = [argument("profile", description="Name of the profile", optional=False)]
    options = [
        option("url", description="API endpoint URL", flag=False, default="http://localhost:8080/client/api"),
        option("api-key", description="API key", flag=False, default=""),
        option("secret-key", description="Secret key", flag=False, default=""),
        option("output", description="Output format (json or text)", flag=False, default="json"),
        option("insecure", description="Skip TLS certificate verification", flag=True),
    ]

    def handle(self) -> int:
        """Execute the context add command."""
        console = Console()

        profile = Profile(
            name=self.argument("profile"),
            url=self.option("url"),
            api_key=self.option("api-key"),
            secret_key=self.option("secret-key"),
            output=self.option("output"),
            verify_ssl=not self.option("insecure"),
        )

        result = ProfileValidator.validate_profile(profile.to_dict())
        if not result:
            console.print(f"\n[red]{result}[/red]")
            for error in result.errors:
                console.print(f"  [red]✗ {error}[/red]")
            return 1

        try:
            config = Config.load()
            config.save_profile(profile)
        except Exception as e:
            console.print(f"\n[red]Error saving profile: {e}[/red]\n")
            return 1

        for warning in result.warnings:
            console.print(f"[yellow]⚠ {warning}[/yellow]")
        console.print(f"\n[green]✓ Saved profile:[/green] {profile.name}\n")
        return 0
