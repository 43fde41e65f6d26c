# ABOUTME: Command dispatch for the interactive shell and one-shot API calls
# ABOUTME: Resolves tokens, validates arguments, invokes APIs, renders results, and routes upload responses

"""Dispatch of resolved commands and response routing."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from rich import box
from rich.markup import escape
from rich.table import Table

from stackshell.config import Session, debug_print
from stackshell.errors import (
    ApiError,
    InvalidApiCache,
    InvalidSubCommandValue,
    MissingRequiredArgs,
    UnknownCommand,
    is_cancellation,
)
from stackshell.output import render_response
from stackshell.registry import Command, Registry, RegistryBuilder, Resolution, load_api_cache
from stackshell.uploader import UploadOrchestrator
from stackshell.validators import hint_keys, missing_required_args

# Compared case-insensitively against the API name
UPLOAD_APIS = frozenset(
    {
        "getuploadparamsforiso",
        "getuploadparamsforvolume",
        "getuploadparamsfortemplate",
    }
)


@dataclass
class Request:
    """One invocation of a resolved command."""

    command: Command
    args: list[str]
    session: Session
    registry: Registry
    name: str = ""


class Dispatcher:
    """Turns typed tokens into command handler and API calls."""

    def __init__(
        self,
        registry: Registry,
        invoker: Any,
        session: Session,
        orchestrator_factory: Callable[[Session], UploadOrchestrator] = UploadOrchestrator,
    ):
        self.registry = registry
        self.invoker = invoker
        self.session = session
        self.orchestrator_factory = orchestrator_factory

    @property
    def console(self):
        return self.session.console

    def execute(self, tokens: list[str]) -> int:
        """Resolve and run one line of input.

        Raises:
            UnknownCommand: If the tokens do not name a command or API.
            MissingRequiredArgs: If a required API parameter is absent.
        """
        resolution = self.registry.resolve(tokens)
        if resolution.wants_help:
            show_help(self.session, resolution)
            return 0

        request = Request(
            command=resolution.command,
            args=resolution.args,
            session=self.session,
            registry=self.registry,
            name=resolution.name,
        )
        handler = resolution.command.handler or self.handle_api
        profile_name = self.session.profile_name
        status = handler(request) or 0

        # A profile switch brings its own API cache
        if self.session.profile_name != profile_name:
            self.registry = build_registry(load_api_cache(self.session.config.api_cache_path(self.session.profile_name)))
            debug_print(f"Reloaded {len(self.registry.apis())} APIs for profile {self.session.profile_name}")
        return status

    def handle_api(self, request: Request) -> int:
        """Validate, invoke and render a discovered API."""
        api = request.command

        missing = missing_required_args(api, request.args)
        if missing:
            raise MissingRequiredArgs(missing)

        try:
            response = self.invoker.invoke(request, api.name, request.args, api.is_async)
        except Exception as e:
            if is_cancellation(e):
                debug_print(f"{api.name} cancelled")
                return 0
            if isinstance(e, ApiError) and e.response:
                render_response(self.console, e.response, output=self.session.profile.output)
            raise

        if response:
            render_response(
                self.console,
                response,
                hint_keys(request.args, "filter="),
                hint_keys(request.args, "exclude="),
                output=self.session.profile.output,
            )
            self.route_response(request, response)
        return 0

    def route_response(self, request: Request, response: dict[str, Any]) -> None:
        """Hand upload credentials to the upload flow when the shell is interactive."""
        if not self.session.has_shell:
            return
        api_name = request.command.name.lower()
        if api_name not in UPLOAD_APIS:
            return
        debug_print(f"{request.command.name} returned upload parameters, prompting for files")
        self.orchestrator_factory(self.session).run(request.command.name, response)


def show_help(session: Session, resolution: Resolution) -> None:
    """Print help for one resolved command or API."""
    console = session.console
    command = resolution.command
    if command is None:
        raise UnknownCommand(f"unknown command or API requested: {resolution.name}")

    console.print(f"\n[bold cyan]{escape(command.name)}[/bold cyan]: {escape(command.help)}")
    if command.is_api:
        console.print(f"  async: {'yes' if command.is_async else 'no'}")
        if command.required_names:
            console.print(f"  required: {escape(', '.join(command.required_names))}")
    for sub_command, options in command.sub_commands.items():
        choices = f" ({escape(', '.join(options))})" if options else ""
        console.print(f"  {escape(command.name)} {escape(sub_command)}{choices}")
    console.print()


def validate_sub_command(command: Command, args: list[str]) -> tuple[str, str]:
    """Split sub-command arguments and check the value against its option set.

    Raises:
        InvalidSubCommandValue: If the sub-command restricts values and ``value``
            is not one of them, or the sub-command is not known.
    """
    sub_command = args[0]
    value = " ".join(args[1:]).strip()
    if sub_command not in command.sub_commands:
        raise InvalidSubCommandValue(sub_command, list(command.sub_commands))
    options = command.sub_commands[sub_command]
    if options and value not in options:
        raise InvalidSubCommandValue(sub_command, options)
    return sub_command, value


def _handle_help(request: Request) -> int:
    session = request.session
    if request.args:
        show_help(session, request.registry.resolve(request.args))
        return 0

    table = Table(title="Shell Commands", box=box.ROUNDED, show_header=True, header_style="bold cyan")
    table.add_column("Command", style="cyan", no_wrap=True)
    table.add_column("Description")
    for command in request.registry.builtins():
        table.add_row(command.name, command.help)
    session.console.print(table)
    session.console.print(
        f"\n{len(request.registry.apis())} APIs available. Type [cyan]<api> -h[/cyan] for help on one.\n"
    )
    return 0


def _handle_switch(request: Request) -> int:
    session = request.session
    console = session.console
    if not request.args:
        console.print(f"Please provide one of the sub-commands: {', '.join(request.command.sub_commands)}")
        return 0
    _, value = validate_sub_command(request.command, request.args)
    if not value:
        console.print("Usage: switch profile <name>")
        return 0
    debug_print("Switch command received: profile values:", value)
    # Read the target cache first so a bad one leaves the session on the current profile
    try:
        apis = load_api_cache(session.config.api_cache_path(session.config.load_profile(value).name))
        profile = session.switch_profile(value)
    except (ValueError, FileNotFoundError, InvalidApiCache) as e:
        console.print(f"[red]Failed to switch to server profile: {escape(value)} due to: {escape(str(e))}[/red]")
        return 1

    console.print(
        f"Loaded server profile: {escape(profile.name)}\n"
        f"Url:        {escape(profile.url)}\n"
        f"Username:   {escape(profile.username)}\n"
        f"Domain:     {escape(profile.domain)}\n"
        f"API Key:    {escape(profile.api_key)}\n"
        f"Total APIs: {len(apis)}\n",
        highlight=False,
    )
    return 0


def _handle_set(request: Request) -> int:
    session = request.session
    if not request.args:
        session.console.print(f"Please provide one of the sub-commands: {', '.join(request.command.sub_commands)}")
        return 0

    sub_command, value = validate_sub_command(request.command, request.args)
    if sub_command == "output":
        session.profile.output = value
        session.console.print(f"Output format set to {value} for this session")
    return 0


def _handle_exit(request: Request) -> int:
    request.session.exit_requested = True
    return 0


BUILTIN_COMMANDS = (
    Command(name="help", help="Shows help for commands and APIs", handler=_handle_help),
    Command(
        name="switch",
        help="Switches profile",
        sub_commands={"profile": ()},
        handler=_handle_switch,
    ),
    Command(
        name="set",
        help="Changes a setting for this session",
        sub_commands={"output": ("json", "text")},
        handler=_handle_set,
    ),
    Command(name="exit", help="Exits the shell", handler=_handle_exit),
    Command(name="quit", help="Exits the shell", handler=_handle_exit),
)


def build_registry(apis: list[Command]) -> Registry:
    """Freeze built-in commands and discovered APIs into one registry."""
    return RegistryBuilder().add_all(apis).add_all(BUILTIN_COMMANDS).build()
