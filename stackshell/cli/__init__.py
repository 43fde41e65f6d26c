# ABOUTME: CLI module for stackshell
# ABOUTME: Provides the command-line interface for the shell, one-shot API calls and profiles

"""Command-line interface for stackshell."""

from cleo.application import Application

from stackshell import __version__

from .commands.api import ApiCommand
from .commands.context import (
    ContextAddCommand,
    ContextCurrentCommand,
    ContextListCommand,
    ContextShowCommand,
    ContextUseCommand,
)
from .commands.shell import ShellCommand
from .commands.sync import SyncCommand


def create_application() -> Application:
    """Create the CLI application."""
    application = Application("stackshell", __version__)

    # Add commands
    application.add(ShellCommand())
    application.add(ApiCommand())
    application.add(SyncCommand())

    # Context management commands
    application.add(ContextListCommand())
    application.add(ContextCurrentCommand())
    application.add(ContextUseCommand())
    application.add(ContextShowCommand())
    application.add(ContextAddCommand())

    return application


def main():
    """Main entry point for the CLI."""
    application = create_application()
    application.run()


if __name__ == "__main__":
    main()
