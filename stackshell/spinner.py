# ABOUTME: Terminal status indicators for long running shell operations
# ABOUTME: Tracks active spinners so they can be paused around multi-line output and resumed

"""Spinner controller built on rich status indicators."""

import threading

from rich.console import Console
from rich.status import Status
from rich.text import Text

# 200ms redraw interval
REFRESH_PER_SECOND = 5.0
SPINNER_STYLE = "dots"


class SpinnerHandle:
    """Handle to one status indicator.

    An empty handle (no underlying status) is returned when the session is not
    interactive; every operation on it is a no-op.
    """

    def __init__(self, status: Status | None = None, label: str = ""):
        self._status = status
        self._label = label
        self.running = False

    def __bool__(self) -> bool:
        return self._status is not None

    @property
    def label(self) -> str:
        return self._label

    def update(self, label: str) -> None:
        """Replace the label. rich redraws the status straight away from the calling thread."""
        self._label = label
        if self._status is not None:
            self._status.update(status=Text(label))

    def start(self) -> None:
        if self._status is not None and not self.running:
            self._status.start()
            self.running = True

    def halt(self) -> None:
        if self._status is not None and self.running:
            self._status.stop()
            self.running = False


class SpinnerController:
    """Owns the set of currently active spinners."""

    def __init__(self, console: Console | None = None, enabled: bool = True):
        self.console = console or Console()
        self.enabled = enabled
        self._active: list[SpinnerHandle] = []
        self._lock = threading.Lock()

    @property
    def active(self) -> list[SpinnerHandle]:
        with self._lock:
            return list(self._active)

    def start(self, label: str) -> SpinnerHandle:
        """Create, start and register a spinner. Returns an empty handle when disabled."""
        if not self.enabled:
            return SpinnerHandle()

        label = " " + label
        status = Status(
            Text(label),
            console=self.console,
            spinner=SPINNER_STYLE,
            refresh_per_second=REFRESH_PER_SECOND,
        )
        handle = SpinnerHandle(status, label)
        handle.start()
        with self._lock:
            self._active.append(handle)
        return handle

    def stop(self, handle: SpinnerHandle | None) -> None:
        """Stop a spinner and forget it. Unknown or empty handles are ignored."""
        if not handle:
            return
        handle.halt()
        with self._lock:
            if handle in self._active:
                self._active.remove(handle)

    def pause_all(self) -> int:
        """Stop every running spinner but keep it registered. Returns how many were paused."""
        paused = 0
        with self._lock:
            for handle in self._active:
                if handle.running:
                    handle.halt()
                    paused += 1
        return paused

    def resume_all(self) -> None:
        """Restart registered spinners that are not running."""
        with self._lock:
            for handle in self._active:
                if not handle.running:
                    handle.start()
