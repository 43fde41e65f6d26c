# ABOUTME: Command registry and resolver for the interactive shell
# ABOUTME: Holds built-in commands plus APIs discovered from the server and maps typed tokens onto them

"""Command registry and token resolution."""

import json
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

from stackshell.config import debug_print
from stackshell.errors import InvalidApiCache, UnknownCommand

HELP_FLAG = "-h"


@dataclass(frozen=True)
class Command:
    """A built-in shell command or a discovered API."""

    name: str
    help: str = ""
    sub_commands: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    required_args: tuple[str, ...] = ()
    is_async: bool = False
    is_api: bool = False
    handler: Callable[..., Any] | None = None

    def __post_init__(self):
        object.__setattr__(
            self,
            "sub_commands",
            MappingProxyType({k: tuple(v) for k, v in self.sub_commands.items()}),
        )
        object.__setattr__(self, "required_args", tuple(self.required_args))

    @property
    def key(self) -> str:
        return self.name.lower()

    @property
    def required_names(self) -> list[str]:
        """Required argument names with the trailing '=' stripped."""
        return [required.replace("=", "") for required in self.required_args]


@dataclass
class Resolution:
    """Outcome of resolving user tokens against the registry."""

    name: str
    command: Command | None
    args: list[str]
    wants_help: bool = False


class Registry:
    """Read-only view of all known commands, keyed by lower-cased name."""

    def __init__(self, commands: Mapping[str, Command]):
        self._commands = MappingProxyType(dict(commands))

    def __contains__(self, name: str) -> bool:
        return name.lower() in self._commands

    def __len__(self) -> int:
        return len(self._commands)

    def get(self, name: str) -> Command | None:
        return self._commands.get(name.lower())

    def builtins(self) -> list[Command]:
        return sorted((c for c in self._commands.values() if not c.is_api), key=lambda c: c.key)

    def apis(self) -> list[Command]:
        return sorted((c for c in self._commands.values() if c.is_api), key=lambda c: c.key)

    def resolve(self, tokens: list[str]) -> Resolution:
        """Resolve typed tokens into a command and its remaining arguments.

        The first token is looked up case-insensitively. When it is unknown and
        a second token exists, both are joined without a separator and retried,
        so ``list zones`` finds ``listZones``. A ``-h`` anywhere asks for help
        on whatever name was resolved, even an unknown one.

        Raises:
            UnknownCommand: If nothing resolves and help was not requested.
        """
        if not tokens:
            raise UnknownCommand("please provide an API to execute")

        name = tokens[0].lower()
        args = tokens[1:]
        if name not in self._commands and len(tokens) > 1:
            name = (tokens[0] + tokens[1]).lower()
            args = tokens[2:]

        wants_help = HELP_FLAG in tokens
        command = self._commands.get(name)
        if command is None and not wants_help:
            raise UnknownCommand()

        debug_print("Resolved", tokens, "to", name, "args:", args)
        return Resolution(name=name, command=command, args=list(args), wants_help=wants_help)


class RegistryBuilder:
    """Collects commands during startup and freezes them into a Registry."""

    def __init__(self):
        self._commands: dict[str, Command] = {}

    def add(self, command: Command) -> "RegistryBuilder":
        self._commands[command.key] = command
        return self

    def add_all(self, commands: Iterable[Command]) -> "RegistryBuilder":
        for command in commands:
            self.add(command)
        return self

    def build(self) -> Registry:
        return Registry(self._commands)


def commands_from_api_list(data: dict[str, Any], handler: Callable[..., Any] | None = None) -> list[Command]:
    """Build API commands from a listApis style payload.

    Accepts either the bare ``{"count": n, "api": [...]}`` body or the same body
    wrapped in ``listapisresponse``.
    """
    if "listapisresponse" in data:
        data = data["listapisresponse"]

    commands = []
    for api in data.get("api", []):
        name = api.get("name")
        if not name:
            continue
        required = tuple(f"{p['name']}=" for p in api.get("params", []) if p.get("required") and p.get("name"))
        commands.append(
            Command(
                name=name,
                help=api.get("description", ""),
                required_args=required,
                is_async=bool(api.get("isasync", False)),
                is_api=True,
                handler=handler,
            )
        )
    return commands


def load_api_cache(path: Path, handler: Callable[..., Any] | None = None) -> list[Command]:
    """Load discovered APIs from a cache file. A missing file yields no APIs.

    Raises:
        InvalidApiCache: If the file exists but is not a listApis JSON object.
    """
    if not path.exists():
        debug_print("No API cache at", path)
        return []

    try:
        with open(path) as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        debug_print(f"Could not read API cache {path}: {e}")
        raise InvalidApiCache(path, str(e)) from e
    if not isinstance(data, dict):
        raise InvalidApiCache(path, f"expected an object, got {type(data).__name__}")

    commands = commands_from_api_list(data, handler)
    debug_print(f"Loaded {len(commands)} APIs from {path}")
    return commands
