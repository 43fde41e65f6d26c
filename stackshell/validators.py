# ABOUTME: Validation utilities for stackshell
# ABOUTME: Profile checks, required API arguments, upload credentials, and user supplied file paths

"""Validation for profiles, API arguments, upload parameters and file paths."""

import os
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

from stackshell.config import PROFILE_NAME_PATTERN
from stackshell.errors import InvalidUploadParams, MissingFiles, NoValidFiles
from stackshell.registry import Command

OUTPUT_FORMATS = {"json", "text"}

UPLOAD_PARAMS_KEY = "getuploadparams"
REQUIRED_UPLOAD_KEYS = ("postURL", "metadata", "signature", "expires")


@dataclass
class ValidationResult:
    """Result of profile validation."""

    valid: bool
    errors: list[str]
    warnings: list[str]

    def __bool__(self) -> bool:
        """Return True if validation passed (no errors)."""
        return self.valid

    def __str__(self) -> str:
        """String representation of validation result."""
        if self.valid:
            msg = "✓ Validation passed"
            if self.warnings:
                msg += f" ({len(self.warnings)} warning(s))"
            return msg
        else:
            msg = f"✗ Validation failed ({len(self.errors)} error(s))"
            if self.warnings:
                msg += f", {len(self.warnings)} warning(s)"
            return msg


class ProfileValidator:
    """Validator for server profiles."""

    @staticmethod
    def validate_profile(profile_data: dict[str, Any]) -> ValidationResult:
        """Validate a profile configuration.

        Args:
            profile_data: Profile data dictionary to validate.

        Returns:
            ValidationResult with errors and warnings.
        """
        errors = []
        warnings = []

        for required in ("name", "url"):
            if not profile_data.get(required):
                errors.append(f"Required field '{required}' is missing or empty")

        if errors:
            return ValidationResult(valid=False, errors=errors, warnings=warnings)

        name = profile_data["name"]
        if not ProfileValidator._is_valid_profile_name(name):
            errors.append(f"Invalid profile name '{name}'. Must be alphanumeric with hyphens only, max 64 characters")

        url = profile_data["url"]
        if not ProfileValidator._is_valid_url(url):
            errors.append(f"Invalid url: {url}")
        elif url.startswith("http://") and urlparse(url).hostname not in ("localhost", "127.0.0.1"):
            warnings.append("url uses plain http; API keys will be sent unencrypted")

        # A key pair is needed for signed calls; username/password sessions are handled elsewhere
        if bool(profile_data.get("api_key")) != bool(profile_data.get("secret_key")):
            errors.append("api_key and secret_key must be set together")
        elif not profile_data.get("api_key"):
            warnings.append("No API key pair configured")

        output = profile_data.get("output", "json")
        if output not in OUTPUT_FORMATS:
            errors.append(f"Invalid output: {output}. Must be one of: {', '.join(sorted(OUTPUT_FORMATS))}")

        timeout = profile_data.get("timeout")
        if timeout is not None and (not isinstance(timeout, int) or timeout <= 0):
            errors.append("timeout must be a positive integer (seconds)")

        return ValidationResult(valid=len(errors) == 0, errors=errors, warnings=warnings)

    @staticmethod
    def _is_valid_profile_name(name: str) -> bool:
        return bool(name) and PROFILE_NAME_PATTERN.match(name) is not None

    @staticmethod
    def _is_valid_url(url: str) -> bool:
        try:
            parsed = urlparse(url)
        except ValueError:
            return False
        return parsed.scheme in ("http", "https") and bool(parsed.hostname)


def missing_required_args(command: Command, args: list[str]) -> list[str]:
    """Return the required argument names of ``command`` absent from ``args``.

    An argument satisfies ``name`` only when it has the form ``name=value``;
    the key is compared exactly, so ``idx=5`` does not satisfy ``id``.
    """
    provided = {arg.split("=", 1)[0] for arg in args if "=" in arg}
    return [name for name in command.required_names if name not in provided]


def hint_keys(args: list[str], prefix: str) -> list[str]:
    """Collect comma separated keys from ``filter=``/``exclude=`` style arguments."""
    keys = []
    for arg in args:
        if arg.startswith(prefix):
            for key in arg[len(prefix) :].split(","):
                if key.strip():
                    keys.append(key.strip())
    return keys


@dataclass(frozen=True)
class UploadParams:
    """Pre-signed upload credentials returned by a getUploadParamsFor* API."""

    post_url: str
    signature: str
    expires: str
    metadata: str


def decode_upload_params(response: dict[str, Any]) -> UploadParams:
    """Decode the upload credentials nested in an API response.

    Raises:
        InvalidUploadParams: If the nested mapping is absent, not a mapping, or
            lacks one of the required keys.
    """
    params = response.get(UPLOAD_PARAMS_KEY)
    if not isinstance(params, dict):
        raise InvalidUploadParams()

    for key in REQUIRED_UPLOAD_KEYS:
        if key not in params:
            raise InvalidUploadParams(f"Missing required key '{key}' in {UPLOAD_PARAMS_KEY} response.")

    return UploadParams(
        post_url=str(params["postURL"]),
        signature=str(params["signature"]),
        expires=str(params["expires"]),
        metadata=str(params["metadata"]),
    )


def split_file_paths(raw: str) -> list[str]:
    """Split comma separated input into trimmed, non-empty paths."""
    return [path.strip() for path in raw.split(",") if path.strip()]


def validate_file_paths(raw: str) -> list[str]:
    """Turn raw prompt input into a list of existing file paths.

    Every missing path is reported at once; none are returned if any is missing.

    Raises:
        MissingFiles: If at least one path does not exist.
        NoValidFiles: If nothing is left after trimming.
    """
    paths = split_file_paths(raw)
    missing = [path for path in paths if not os.path.exists(path)]
    if missing:
        raise MissingFiles(missing)
    if not paths:
        raise NoValidFiles()
    return paths
