# ABOUTME: Unit tests for command dispatch and response routing
# ABOUTME: Covers argument validation, cancellation, partial error responses, upload routing and built-ins

"""Tests for the Dispatcher and built-in commands."""

import json
from unittest.mock import MagicMock

import pytest

from stackshell.config import Profile
from stackshell.dispatch import Dispatcher, build_registry, validate_sub_command
from stackshell.errors import (
    ApiError,
    Cancelled,
    InvalidSubCommandValue,
    MissingRequiredArgs,
    UnknownCommand,
)
from stackshell.registry import Command

APIS = [
    Command(name="listZones", help="Lists zones", is_api=True),
    Command(name="listVolumes", help="Lists volumes", required_args=("id=",), is_api=True),
    Command(name="getUploadParamsForIso", help="Upload an ISO", required_args=("name=",), is_api=True),
    Command(name="getUploadParamsForTemplate", help="Upload a template", is_api=True),
]

UPLOAD_RESPONSE = {
    "getuploadparams": {
        "postURL": "https://upload.example.com/upload/abc",
        "metadata": "m",
        "signature": "s",
        "expires": "e",
    }
}


@pytest.fixture
def invoker():
    return MagicMock()


@pytest.fixture
def orchestrator():
    return MagicMock()


@pytest.fixture
def make_dispatcher(make_session, invoker, orchestrator):
    def _make(has_shell: bool = True) -> Dispatcher:
        return Dispatcher(
            build_registry(APIS),
            invoker,
            make_session(has_shell=has_shell),
            orchestrator_factory=lambda session: orchestrator,
        )

    return _make


class TestHandleApi:
    """Tests for ordinary API dispatch."""

    def test_missing_required_args_does_not_invoke(self, make_dispatcher, invoker):
        dispatcher = make_dispatcher()

        with pytest.raises(MissingRequiredArgs) as exc_info:
            dispatcher.execute(["list", "volumes", "idx=5"])

        assert exc_info.value.missing == ["id"]
        invoker.invoke.assert_not_called()

    def test_invokes_and_renders(self, make_dispatcher, invoker, output):
        invoker.invoke.return_value = {"count": 1, "zone": [{"id": "z1", "name": "zone-one"}]}
        dispatcher = make_dispatcher()

        assert dispatcher.execute(["list", "zones"]) == 0

        _, api_name, args, is_async = invoker.invoke.call_args.args
        assert api_name == "listZones"
        assert args == []
        assert is_async is False
        assert "zone-one" in output()

    def test_filter_hint_applies(self, make_dispatcher, invoker, output):
        invoker.invoke.return_value = {"zone": [{"id": "z1", "name": "zone-one"}]}
        dispatcher = make_dispatcher()

        dispatcher.execute(["listZones", "filter=id"])

        assert "z1" in output()
        assert "zone-one" not in output()

    def test_cancellation_is_silent(self, make_dispatcher, invoker, output):
        invoker.invoke.side_effect = Cancelled()
        dispatcher = make_dispatcher()

        assert dispatcher.execute(["listZones"]) == 0
        assert output() == ""

    def test_upstream_cancellation_text_is_silent(self, make_dispatcher, invoker, output):
        invoker.invoke.side_effect = ApiError("listZones failed: context canceled")
        dispatcher = make_dispatcher()

        assert dispatcher.execute(["listZones"]) == 0
        assert output() == ""

    def test_partial_response_rendered_before_error(self, make_dispatcher, invoker, output):
        invoker.invoke.side_effect = ApiError("listZones failed (431)", response={"errortext": "bad zone id"})
        dispatcher = make_dispatcher()

        with pytest.raises(ApiError):
            dispatcher.execute(["listZones"])

        assert "bad zone id" in output()

    def test_unknown_command(self, make_dispatcher):
        with pytest.raises(UnknownCommand):
            make_dispatcher().execute(["frobnicate"])

    def test_help_flag_shows_api_help(self, make_dispatcher, invoker, output):
        dispatcher = make_dispatcher()

        assert dispatcher.execute(["list", "volumes", "-h"]) == 0

        invoker.invoke.assert_not_called()
        assert "Lists volumes" in output()
        assert "required: id" in output()


class TestRouteResponse:
    """Tests for upload routing."""

    def test_upload_api_in_shell_starts_upload(self, make_dispatcher, invoker, orchestrator):
        invoker.invoke.return_value = UPLOAD_RESPONSE
        dispatcher = make_dispatcher(has_shell=True)

        dispatcher.execute(["getUploadParamsForIso", "name=debian"])

        orchestrator.run.assert_called_once_with("getUploadParamsForIso", UPLOAD_RESPONSE)

    def test_routing_is_case_insensitive(self, make_dispatcher, invoker, orchestrator):
        invoker.invoke.return_value = UPLOAD_RESPONSE
        dispatcher = make_dispatcher(has_shell=True)

        dispatcher.execute(["GETUPLOADPARAMSFORTEMPLATE"])

        orchestrator.run.assert_called_once()

    def test_no_upload_without_shell(self, make_dispatcher, invoker, orchestrator, output):
        invoker.invoke.return_value = UPLOAD_RESPONSE
        dispatcher = make_dispatcher(has_shell=False)

        dispatcher.execute(["getUploadParamsForIso", "name=debian"])

        orchestrator.run.assert_not_called()
        assert "upload.example.com" in output()

    def test_other_apis_not_routed(self, make_dispatcher, invoker, orchestrator):
        invoker.invoke.return_value = UPLOAD_RESPONSE
        dispatcher = make_dispatcher(has_shell=True)

        dispatcher.execute(["listZones"])

        orchestrator.run.assert_not_called()


class TestBuiltins:
    """Tests for help, switch, set and exit."""

    def test_help_lists_builtins(self, make_dispatcher, output):
        make_dispatcher().execute(["help"])

        text = output()
        assert "switch" in text
        assert "4 APIs available" in text

    def test_exit(self, make_dispatcher):
        dispatcher = make_dispatcher()

        dispatcher.execute(["quit"])

        assert dispatcher.session.exit_requested is True

    def test_set_output(self, make_dispatcher):
        dispatcher = make_dispatcher()

        dispatcher.execute(["set", "output", "text"])

        assert dispatcher.session.profile.output == "text"

    def test_set_output_rejects_unknown_value(self, make_dispatcher):
        with pytest.raises(InvalidSubCommandValue) as exc_info:
            make_dispatcher().execute(["set", "output", "yaml"])

        assert exc_info.value.message == "Invalid value for output. Supported values: json, text"

    def test_switch_without_args_lists_sub_commands(self, make_dispatcher, output):
        make_dispatcher().execute(["switch"])

        assert "Please provide one of the sub-commands: profile" in output()

    def test_switch_profile(self, make_dispatcher, output):
        dispatcher = make_dispatcher()
        config = dispatcher.session.config
        config.save_profile(Profile(name="prod", url="https://cloud.example.com/client/api", api_key="k"))
        cache = config.api_cache_path("prod")
        cache.write_text(json.dumps({"api": [{"name": "listHosts"}]}))

        assert dispatcher.execute(["switch", "profile", "prod"]) == 0

        assert dispatcher.session.profile_name == "prod"
        assert config.active_profile == "prod"
        assert "Loaded server profile: prod" in output()
        assert "Total APIs: 1" in output()
        # The prod API cache replaces the previous profile's APIs
        assert "listhosts" in dispatcher.registry
        assert "listzones" not in dispatcher.registry

    def test_switch_to_unknown_profile(self, make_dispatcher, output):
        dispatcher = make_dispatcher()

        assert dispatcher.execute(["switch", "profile", "nope"]) == 1

        assert dispatcher.session.profile_name == "test"
        assert "Failed to switch to server profile: nope" in output()

    def test_switch_to_profile_with_corrupt_cache(self, make_dispatcher, output):
        dispatcher = make_dispatcher()
        config = dispatcher.session.config
        config.save_profile(Profile(name="test"))
        config.save_profile(Profile(name="other"))
        config.api_cache_path("other").write_text("{not json")

        assert dispatcher.execute(["switch", "profile", "other"]) == 1

        assert "Failed to switch to server profile: other" in output()
        assert "unreadable" in output()
        # Session, active profile and registry all stay on the current profile
        assert dispatcher.session.profile_name == "test"
        assert config.active_profile == "test"
        assert "listzones" in dispatcher.registry


class TestValidateSubCommand:
    def test_free_value(self):
        command = Command(name="switch", sub_commands={"profile": ()})

        assert validate_sub_command(command, ["profile", "prod"]) == ("profile", "prod")

    def test_unknown_sub_command(self):
        command = Command(name="switch", sub_commands={"profile": ()})

        with pytest.raises(InvalidSubCommandValue):
            validate_sub_command(command, ["server", "prod"])
