# ABOUTME: HTTP invoker for ordinary cloud management API calls
# ABOUTME: Sends key=value arguments, unwraps the response envelope, and polls async jobs

"""API invocation for ordinary (non-upload) calls."""

from collections.abc import Callable
from typing import Any, Protocol

import requests

from stackshell.config import Session, debug_print
from stackshell.errors import ApiError, Cancelled

ASYNC_POLL_INTERVAL = 2.0
ASYNC_JOB_API = "queryAsyncJobResult"
HINT_PREFIXES = ("filter=", "exclude=")

# Job status values reported by queryAsyncJobResult
JOB_PENDING = 0
JOB_SUCCEEDED = 1


class ApiInvoker(Protocol):
    """Anything that can execute a resolved API call."""

    def invoke(self, request: Any, api_name: str, args: list[str], is_async: bool) -> dict[str, Any]: ...


def args_to_params(args: list[str]) -> dict[str, str]:
    """Convert ``key=value`` tokens into request parameters, dropping display hints."""
    params = {}
    for arg in args:
        if "=" not in arg or arg.startswith(HINT_PREFIXES):
            continue
        key, value = arg.split("=", 1)
        params[key] = value
    return params


def unwrap_response(api_name: str, body: dict[str, Any]) -> dict[str, Any]:
    """Strip the ``<api>response`` envelope the server wraps every answer in."""
    envelope = f"{api_name.lower()}response"
    if envelope in body and isinstance(body[envelope], dict):
        return body[envelope]
    if len(body) == 1:
        (only,) = body.values()
        if isinstance(only, dict):
            return only
    return body


class RequestsApiInvoker:
    """Plain HTTP invoker for the active profile.

    Request signing is delegated to ``signer``, which receives the final
    parameter dict and returns the dict to send.
    """

    def __init__(self, session: Session, signer: Callable[[dict[str, str]], dict[str, str]] | None = None):
        self.session = session
        self.signer = signer

    def _call(self, api_name: str, params: dict[str, str]) -> dict[str, Any]:
        profile = self.session.profile
        params = {"command": api_name, "response": "json", **params}
        if profile.api_key:
            params["apikey"] = profile.api_key
        if self.signer is not None:
            params = self.signer(params)

        debug_print("GET", profile.url, "command:", api_name)
        response = requests.get(profile.url, params=params, timeout=(10, profile.timeout), verify=profile.verify_ssl)

        try:
            body = response.json()
        except ValueError:
            body = {}
        result = unwrap_response(api_name, body) if body else {}

        if not response.ok:
            message = result.get("errortext") or response.text or f"HTTP {response.status_code}"
            raise ApiError(f"{api_name} failed ({response.status_code}): {message}", response=result or None)
        return result

    def invoke(self, request: Any, api_name: str, args: list[str], is_async: bool) -> dict[str, Any]:
        if self.session.cancel.is_set():
            raise Cancelled()

        result = self._call(api_name, args_to_params(args))
        if is_async and "jobid" in result:
            return self._wait_for_job(result["jobid"])
        return result

    def _wait_for_job(self, job_id: str) -> dict[str, Any]:
        """Poll an async job until it finishes, showing a spinner meanwhile."""
        spinners = self.session.spinners
        spinner = spinners.start(f"Waiting for async job {job_id}...")
        try:
            while True:
                job = self._call(ASYNC_JOB_API, {"jobid": job_id})
                status = int(job.get("jobstatus", JOB_PENDING))
                if status != JOB_PENDING:
                    break
                if self.session.cancel.wait(ASYNC_POLL_INTERVAL):
                    raise Cancelled()
        finally:
            spinners.stop(spinner)

        result = job.get("jobresult", {})
        if status != JOB_SUCCEEDED:
            raise ApiError(f"async job {job_id} failed: {result.get('errortext', 'unknown error')}", response=job)
        return result
