# ABOUTME: Interactive upload flow triggered by getUploadParamsFor* responses
# ABOUTME: Prompts for files, validates the whole batch, then uploads one file at a time with a progress spinner

"""Upload orchestration for pre-signed upload credentials."""

import os
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

import questionary
import requests
from rich.markup import escape

from stackshell.config import Session, debug_print
from stackshell.errors import Cancelled, UploadTransportFailure
from stackshell.multipart import upload_file
from stackshell.validators import decode_upload_params, validate_file_paths

PROMPT = "Enter path of the file(s) to upload (comma-separated):"
UPLOADING_MESSAGE = "Uploading files, please wait..."
BAR_WIDTH = 24


class UploadState(Enum):
    AWAITING_INPUT = "awaiting_input"
    VALIDATING = "validating"
    UPLOADING = "uploading"
    DONE = "done"


@dataclass
class UploadTask:
    """One validated file and its position in the batch."""

    path: str
    index: int
    total: int

    @property
    def filename(self) -> str:
        return os.path.basename(self.path)

    @property
    def label(self) -> str:
        return f" [{self.index}/{self.total}] {self.filename}"


@dataclass
class UploadSummary:
    total: int
    failed: int = 0
    cancelled: bool = False

    @property
    def succeeded(self) -> int:
        return self.total - self.failed


def render_progress_bar(percent: int, width: int = BAR_WIDTH) -> str:
    """Render ``[====>   ]``; the head is dropped once the bar is full."""
    percent = max(0, min(100, percent))
    filled = percent * width // 100
    if filled >= width:
        return "[" + "=" * width + "]"
    return "[" + "=" * filled + ">" + " " * (width - filled - 1) + "]"


def progress_label(task: UploadTask, percent: int) -> str:
    return f"{task.label}\t{render_progress_bar(percent)} {percent}%"


def progress_reporter(spinner, task: UploadTask) -> Callable[[int], None]:
    """Progress callback for one file that only relabels the spinner when the percentage moves."""
    last = None

    def report(percent: int) -> None:
        nonlocal last
        if percent == last:
            return
        last = percent
        spinner.update(progress_label(task, percent))

    return report


def ask_file_paths() -> str:
    """Ask the user for a comma separated list of paths."""
    answer = questionary.text(PROMPT).ask()
    return answer or ""


class UploadOrchestrator:
    """Runs one upload batch: prompt, validate, upload sequentially, summarize.

    Structural problems (missing files, malformed credentials) raise before any
    file is sent. A failing file is reported and the batch moves on.
    """

    def __init__(
        self,
        session: Session,
        prompt: Callable[[], str] = ask_file_paths,
        uploader: Callable[..., Any] = upload_file,
    ):
        self.session = session
        self.console = session.console
        self.prompt = prompt
        self.uploader = uploader
        self.state = UploadState.AWAITING_INPUT

    def run(self, api_name: str, response: dict[str, Any]) -> UploadSummary | None:
        """Prompt for files and upload them. Returns None when the user skipped."""
        self.state = UploadState.AWAITING_INPUT
        raw = self.prompt()
        if not raw.strip():
            self.state = UploadState.DONE
            return None

        self.state = UploadState.VALIDATING
        try:
            paths = validate_file_paths(raw)
            params = decode_upload_params(response)
        except Exception:
            self.state = UploadState.DONE
            raise

        tasks = [UploadTask(path=path, index=i + 1, total=len(paths)) for i, path in enumerate(paths)]
        self.console.print(f"Uploading files for {api_name}: {escape(', '.join(paths))}", highlight=False)
        return self._upload_batch(params, tasks)

    def _upload_batch(self, params, tasks: list[UploadTask]) -> UploadSummary:
        spinners = self.session.spinners
        summary = UploadSummary(total=len(tasks))
        spinner = spinners.start(UPLOADING_MESSAGE)
        self.state = UploadState.UPLOADING

        try:
            for task in tasks:
                if self.session.cancel.is_set():
                    summary.cancelled = True
                    break

                spinner.update(task.label)
                try:
                    self.uploader(
                        params.post_url,
                        task.path,
                        params,
                        on_progress=progress_reporter(spinner, task),
                        cancel=self.session.cancel,
                    )
                except Cancelled:
                    summary.cancelled = True
                    break
                except (UploadTransportFailure, requests.RequestException, OSError) as e:
                    summary.failed += 1
                    debug_print(f"Upload of {task.path} failed: {e!r}")
                    self._print(f"[red]Error uploading {escape(task.path)}:[/red] {escape(str(e))}")
                    continue

                self._print(f"Upload successful for: {escape(task.path)}")
        finally:
            spinners.stop(spinner)
            self.state = UploadState.DONE

        if summary.cancelled:
            return summary

        if summary.failed:
            self.console.print(f"[red]{summary.failed} of {summary.total} files failed to upload.[/red]")
        else:
            self.console.print("[green]All files uploaded successfully.[/green]")
        return summary

    def _print(self, message: str) -> None:
        """Print a line without interleaving it with spinner frames."""
        spinners = self.session.spinners
        spinners.pause_all()
        try:
            self.console.print(message, highlight=False)
        finally:
            spinners.resume_all()
