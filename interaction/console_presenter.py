"""Terminal rendering of detection status."""

from __future__ import annotations

from rich.console import Console

from core.errors import ErrorInfo
from core.logging import console as default_console
from services.proximity_detector import LifecycleState
from vision.classifier import DetectionState


def describe_error(error: ErrorInfo) -> str:
    """Return the user-facing message for a camera or pipeline failure."""

    message = "Status: unable to access the camera. "
    if error.kind == "permission_denied":
        return message + "Allow camera access in the system privacy settings."
    if error.kind == "device_not_found":
        return message + "No camera device was found."
    return message + f"Error: {error.message}"


class ConsolePresenter:
    """Prints status lines for tick and lifecycle notifications.

    Only state changes are printed unless ``verbose`` is set.
    """

    def __init__(self, console: Console | None = None, verbose: bool = False) -> None:
        self._console = console or default_console
        self._verbose = verbose
        self._last_state: DetectionState | None = None
        self.last_error: ErrorInfo | None = None

    def status_text(self, smoothed: float, state: DetectionState) -> str:
        if state is DetectionState.APPROACHING:
            return f"Status: object approaching! (centre brightness: {smoothed:.2f})"
        if state is DetectionState.WARMING_UP:
            return f"Status: warming up (centre brightness: {smoothed:.2f})"
        return f"Status: environment normal (centre brightness: {smoothed:.2f})"

    def on_tick(self, raw: float, smoothed: float, state: DetectionState) -> None:
        changed = state is not self._last_state
        self._last_state = state
        if not (changed or self._verbose):
            return
        style = "bold red" if state is DetectionState.APPROACHING else None
        self._console.print(
            f"{self.status_text(smoothed, state)}  [dim]raw={raw:.2f}[/dim]",
            style=style,
        )

    def on_lifecycle(self, state: LifecycleState, error: ErrorInfo | None = None) -> None:
        self._last_state = None
        if error is not None:
            self.last_error = error
            self._console.print(describe_error(error), style="bold yellow")
            return
        if state is LifecycleState.RUNNING:
            self._console.print("Status: detecting...", style="green")
        else:
            self._console.print("Status: stopped")
