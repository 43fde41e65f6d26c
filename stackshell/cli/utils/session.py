# ABOUTME: Session helpers shared by the shell, api and sync commands
# ABOUTME: Opens the active profile, builds the command registry, and runs one line with error reporting

"""Session utilities for CLI commands."""

import json
import shlex

import requests
from rich.console import Console
from rich.markup import escape

from stackshell.client import ApiInvoker
from stackshell.config import Config, Profile, Session, debug_print
from stackshell.dispatch import Dispatcher, build_registry
from stackshell.errors import InvalidApiCache, StackShellError, is_cancellation
from stackshell.registry import Registry, commands_from_api_list, load_api_cache

DEFAULT_PROFILE = "localcloud"


def open_session(profile_name: str | None = None, has_shell: bool = False, console: Console | None = None) -> Session:
    """Load configuration and the requested (or active) profile into a session.

    Falls back to an unsaved default profile when nothing is configured yet.

    Raises:
        FileNotFoundError: If ``profile_name`` names a profile that does not exist.
    """
    config = Config.load()
    console = console or Console()

    if profile_name or config.active_profile:
        profile = config.load_profile(profile_name)
    else:
        console.print(
            f"[yellow]No profile configured, using '{DEFAULT_PROFILE}' defaults.[/yellow] "
            "Run [cyan]stackshell context add[/cyan] to create one."
        )
        profile = Profile(name=DEFAULT_PROFILE)

    debug_print("Opened session for profile", profile.name, "shell:", has_shell)
    return Session(config=config, profile=profile, has_shell=has_shell, console=console)


def load_registry(session: Session) -> Registry:
    """Build the registry from built-ins and the profile's API cache.

    An unreadable cache is reported and treated as empty so the shell still starts.
    """
    try:
        apis = load_api_cache(session.config.api_cache_path(session.profile_name))
    except InvalidApiCache as e:
        session.console.print(f"[yellow]Warning: {escape(e.message)}[/yellow]")
        apis = []
    return build_registry(apis)


def sync_api_cache(session: Session, invoker: ApiInvoker) -> int:
    """Discover the server's APIs and store them in the profile's cache.

    Returns:
        Number of APIs discovered.
    """
    response = invoker.invoke(None, "listApis", ["listall=true"], False)
    apis = commands_from_api_list(response)

    cache_path = session.config.api_cache_path(session.profile_name)
    cache_path.parent.mkdir(parents=True, exist_ok=True)
    with open(cache_path, "w") as f:
        json.dump(response, f, indent=2)

    debug_print(f"Wrote {len(apis)} APIs to {cache_path}")
    return len(apis)


def execute_line(dispatcher: Dispatcher, tokens: list[str] | str) -> int:
    """Run one command, reporting errors instead of raising them.

    Ctrl-C sets the session's cancel flag and abandons the command silently.
    """
    session = dispatcher.session
    console = session.console

    if isinstance(tokens, str):
        try:
            tokens = shlex.split(tokens)
        except ValueError as e:
            console.print(f"[red]Could not parse input: {escape(str(e))}[/red]")
            return 1
    if not tokens:
        return 0

    session.cancel.clear()
    try:
        return dispatcher.execute(tokens)
    except KeyboardInterrupt:
        session.cancel.set()
        for handle in session.spinners.active:
            session.spinners.stop(handle)
        return 0
    except StackShellError as e:
        if is_cancellation(e):
            return 0
        console.print(f"[red]{escape(e.message)}[/red]")
        return 1
    except requests.RequestException as e:
        console.print(f"[red]Request failed: {escape(str(e))}[/red]")
        return 1
