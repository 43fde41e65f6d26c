"""Pytest configuration and shared fixtures."""

import io
from unittest.mock import patch

import pytest
from rich.console import Console

from stackshell.config import Config, Profile, Session


@pytest.fixture(autouse=True)
def config_home(tmp_path, monkeypatch):
    """Point every Config at a throwaway directory."""
    home = tmp_path / ".stackshell"
    monkeypatch.delenv("STACKSHELL_DEBUG", raising=False)
    with (
        patch.object(Config, "CONFIG_DIR", home),
        patch.object(Config, "CONFIG_FILE", home / "config.json"),
        patch.object(Config, "PROFILES_DIR", home / "profiles"),
    ):
        yield home


@pytest.fixture
def console():
    """Console that records into memory without terminal control codes."""
    return Console(file=io.StringIO(), width=200, color_system=None, force_terminal=False)


@pytest.fixture
def make_session(console):
    """Build a Session on the recording console."""

    def _make(has_shell: bool = True, profile: Profile | None = None) -> Session:
        return Session(
            config=Config(),
            profile=profile or Profile(name="test"),
            has_shell=has_shell,
            console=console,
        )

    return _make


@pytest.fixture
def output(console):
    """Return a callable giving everything printed to the recording console so far."""
    return lambda: console.file.getvalue()
