# ABOUTME: Unit tests for Profile model and configuration management
# ABOUTME: Tests profile persistence, legacy field migration, API cache paths and the session

"""Tests for the Profile model and Config manager."""

import json
from unittest.mock import patch

import pytest

from stackshell.config import Config, Profile, Session, debug_print


class TestProfileModel:
    """Tests for the Profile dataclass."""

    def test_defaults(self):
        """Test that a bare profile points at a local management server."""
        profile = Profile(name="local")

        assert profile.url == "http://localhost:8080/client/api"
        assert profile.output == "json"
        assert profile.verify_ssl is True
        assert profile.timeout == 1800

    def test_from_dict_ignores_unknown_fields(self):
        """Test Profile.from_dict tolerates keys written by other versions."""
        data = {"name": "prod", "url": "https://cloud.example.com/client/api", "expires": "1y", "colour": "auto"}

        profile = Profile.from_dict(data)

        assert profile.name == "prod"
        assert not hasattr(profile, "colour")

    def test_migration_legacy_apikey(self):
        """Test that profiles written with 'apikey' get it moved to api_key."""
        profile = Profile.from_dict({"name": "legacy", "apikey": "old-key"})

        assert profile.api_key == "old-key"

    def test_to_dict_round_trip_fields(self):
        profile = Profile(name="test", api_key="k", secret_key="s", output="text")

        result = profile.to_dict()

        assert result["api_key"] == "k"
        assert result["output"] == "text"
        assert Profile.from_dict(result) == profile


class TestConfigManager:
    """Tests for the Config manager."""

    def test_save_and_load_profile(self, config_home):
        """Test that Config properly saves and loads a profile."""
        config = Config()
        config.save_profile(Profile(name="prod", url="https://cloud.example.com/client/api", api_key="k"))

        loaded = Config.load()
        profile = loaded.load_profile("prod")

        assert profile.url == "https://cloud.example.com/client/api"
        assert profile.api_key == "k"
        assert loaded.active_profile == "prod"
        assert (config_home / "profiles" / "prod.json").exists()

    def test_first_saved_profile_becomes_active(self):
        config = Config()
        config.save_profile(Profile(name="first"))
        config.save_profile(Profile(name="second"))

        assert config.active_profile == "first"

    def test_invalid_profile_name_rejected(self):
        with pytest.raises(ValueError, match="Invalid profile name"):
            Config().save_profile(Profile(name="has spaces"))

    def test_load_without_active_profile(self):
        with pytest.raises(ValueError, match="No profile specified"):
            Config().load_profile()

    def test_load_missing_profile(self):
        with pytest.raises(FileNotFoundError):
            Config().load_profile("ghost")

    def test_list_profiles_skips_api_cache(self):
        config = Config()
        config.save_profile(Profile(name="b"))
        config.save_profile(Profile(name="a"))
        config.api_cache_path("a").write_text(json.dumps({"api": []}))

        assert config.list_profiles() == ["a", "b"]

    def test_set_active_profile(self):
        config = Config()
        config.save_profile(Profile(name="a"))
        config.save_profile(Profile(name="b"))

        assert config.set_active_profile("b") is True
        assert config.set_active_profile("ghost") is False
        assert Config.load().active_profile == "b"

    def test_corrupt_config_falls_back(self, config_home):
        config_home.mkdir(parents=True, exist_ok=True)
        (config_home / "config.json").write_text("{not json")

        config = Config.load()

        assert config.active_profile is None

    def test_get_profile_returns_none(self):
        assert Config().get_profile("ghost") is None


class TestSession:
    """Tests for the per-process session."""

    def test_spinners_follow_shell_flag(self, console):
        interactive = Session(config=Config(), profile=Profile(name="a"), has_shell=True, console=console)
        batch = Session(config=Config(), profile=Profile(name="a"), has_shell=False, console=console)

        assert interactive.spinners.enabled is True
        assert batch.spinners.enabled is False

    def test_switch_profile(self, console):
        config = Config()
        config.save_profile(Profile(name="a"))
        config.save_profile(Profile(name="b", url="https://b.example.com/client/api"))
        session = Session(config=config, profile=config.load_profile("a"), console=console)

        session.switch_profile("b")

        assert session.profile_name == "b"
        assert session.profile.url == "https://b.example.com/client/api"
        assert config.active_profile == "b"


class TestDebugPrint:
    def test_silent_by_default(self, capsys):
        debug_print("hidden")

        assert capsys.readouterr().err == ""

    def test_enabled_by_environment(self, capsys):
        with patch.dict("os.environ", {"STACKSHELL_DEBUG": "1"}):
            debug_print("shown", 42)

        assert capsys.readouterr().err == "Debug: shown 42\n"
