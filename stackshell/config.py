# ABOUTME: Configuration management for stackshell
# ABOUTME: Handles server profiles, the discovered API cache, and the per-session settings

"""Configuration management for stackshell."""

import json
import os
import re
import sys
import threading
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from rich.console import Console

from stackshell.spinner import SpinnerController

PROFILE_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9\-]{1,64}$")
CACHE_SUFFIX = ".cache.json"


def debug_enabled() -> bool:
    """Return True when STACKSHELL_DEBUG asks for diagnostic output."""
    return os.getenv("STACKSHELL_DEBUG", "").lower() in ("1", "true", "yes")


def debug_print(*parts: Any) -> None:
    """Print a debug message to stderr only if debug mode is enabled."""
    if debug_enabled():
        print("Debug:", *parts, file=sys.stderr)


def _now() -> str:
    return datetime.utcnow().isoformat()


@dataclass
class Profile:
    """Connection profile for a cloud management server."""

    name: str
    url: str = "http://localhost:8080/client/api"
    api_key: str = ""
    secret_key: str = ""
    username: str = "admin"
    domain: str = "/"
    output: str = "json"  # "json" or "text"
    verify_ssl: bool = True
    timeout: int = 1800  # seconds, async API calls may legitimately run long
    created_at: str = field(default_factory=_now)
    updated_at: str = field(default_factory=_now)

    def to_dict(self) -> dict[str, Any]:
        """Convert profile to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Profile":
        """Create profile from dictionary, ignoring keys this version does not know."""
        data = dict(data)

        # Older profiles stored the key pair as apikey/secretkey
        for legacy, current in (("apikey", "api_key"), ("secretkey", "secret_key")):
            if legacy in data:
                data.setdefault(current, data.pop(legacy))

        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


class Config:
    """Global settings plus the directory of saved profiles and their API caches.

    Layout under ``CONFIG_DIR``::

        config.json                 active profile
        profiles/<name>.json        one Profile each
        profiles/<name>.cache.json  APIs discovered by ``stackshell sync``
    """

    CONFIG_DIR = Path(os.getenv("STACKSHELL_HOME", str(Path.home() / ".stackshell")))
    CONFIG_FILE = CONFIG_DIR / "config.json"
    PROFILES_DIR = CONFIG_DIR / "profiles"

    def __init__(self, active_profile: str | None = None, schema_version: str = "1.0"):
        self.active_profile = active_profile
        self.schema_version = schema_version
        self.PROFILES_DIR.mkdir(parents=True, exist_ok=True)

    @classmethod
    def load(cls) -> "Config":
        """Read config.json; a missing or unreadable file gives an empty config."""
        if not cls.CONFIG_FILE.exists():
            return cls()

        try:
            data = json.loads(cls.CONFIG_FILE.read_text())
        except (OSError, ValueError) as e:
            print(f"Warning: Could not load config: {e}", file=sys.stderr)
            return cls()

        return cls(active_profile=data.get("active_profile"), schema_version=data.get("schema_version", "1.0"))

    def save(self) -> None:
        """Write config.json."""
        self.CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        self.CONFIG_FILE.write_text(
            json.dumps({"schema_version": self.schema_version, "active_profile": self.active_profile}, indent=2)
        )

    def _profile_path(self, name: str) -> Path:
        return self.PROFILES_DIR / f"{name}.json"

    def load_profile(self, name: str | None = None) -> Profile:
        """Load a named profile, or the active one when ``name`` is None.

        Raises:
            ValueError: If neither a name nor an active profile is available,
                or the profile file cannot be parsed.
            FileNotFoundError: If no profile of that name was saved.
        """
        profile_name = name or self.active_profile
        if not profile_name:
            raise ValueError("No profile specified and no active profile set")

        path = self._profile_path(profile_name)
        if not path.exists():
            raise FileNotFoundError(f"Profile not found: {profile_name}")

        try:
            return Profile.from_dict(json.loads(path.read_text()))
        except (ValueError, TypeError) as e:
            raise ValueError(f"Could not load profile {profile_name}: {e}") from e

    def save_profile(self, profile: Profile) -> None:
        """Write a profile; the first profile ever saved becomes the active one."""
        if not self._is_valid_profile_name(profile.name):
            raise ValueError(
                f"Invalid profile name: {profile.name}. Name must be alphanumeric with hyphens only, max 64 characters."
            )

        profile.updated_at = _now()
        self.PROFILES_DIR.mkdir(parents=True, exist_ok=True)
        self._profile_path(profile.name).write_text(json.dumps(profile.to_dict(), indent=2))
        debug_print("Saved profile", profile.name)

        if not self.active_profile:
            self.set_active_profile(profile.name)

    def list_profiles(self) -> list[str]:
        """Sorted names of saved profiles; API caches are not profiles."""
        if not self.PROFILES_DIR.exists():
            return []
        return sorted(p.stem for p in self.PROFILES_DIR.glob("*.json") if not p.name.endswith(CACHE_SUFFIX))

    def set_active_profile(self, name: str) -> bool:
        """Make ``name`` the active profile. Returns False if it was never saved."""
        if not self._profile_path(name).exists():
            return False
        self.active_profile = name
        self.save()
        return True

    def get_profile(self, name: str | None = None) -> Profile | None:
        """Like load_profile, but None instead of raising."""
        try:
            return self.load_profile(name)
        except (ValueError, FileNotFoundError):
            return None

    def api_cache_path(self, name: str | None = None) -> Path:
        """Path of the discovered-API cache for a profile."""
        return self.PROFILES_DIR / f"{name or self.active_profile or 'default'}{CACHE_SUFFIX}"

    @staticmethod
    def _is_valid_profile_name(name: str) -> bool:
        return bool(name) and PROFILE_NAME_PATTERN.match(name) is not None


@dataclass
class Session:
    """Per-process session state shared by the dispatcher and the upload flow.

    ``has_shell`` is True only inside the interactive shell; spinners and the
    upload prompt are disabled otherwise. ``cancel`` is set when the user
    interrupts the running command and cleared before the next one.
    """

    config: Config
    profile: Profile
    has_shell: bool = False
    console: Console = field(default_factory=Console)
    cancel: threading.Event = field(default_factory=threading.Event)
    spinners: SpinnerController | None = None
    exit_requested: bool = False

    def __post_init__(self):
        if self.spinners is None:
            self.spinners = SpinnerController(self.console, enabled=self.has_shell)

    @property
    def profile_name(self) -> str:
        return self.profile.name

    def switch_profile(self, name: str) -> Profile:
        """Load and activate another profile for the rest of the session."""
        self.profile = self.config.load_profile(name)
        self.config.set_active_profile(name)
        debug_print("Switched profile to", name)
        return self.profile
