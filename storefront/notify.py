"""Toast and dialog feedback for the flows, routed onto the UI thread."""

from __future__ import annotations

from typing import Any, Callable

from textual.app import App, ComposeResult
from textual.containers import Container
from textual.screen import ModalScreen
from textual.widgets import Static
from textual.worker import NoActiveWorker, get_current_worker


class SuccessModal(ModalScreen[None]):
    """Blocking confirmation; the caller acts only once it is dismissed."""

    BINDINGS = [
        ("enter", "close", "OK"),
        ("escape", "close", "OK"),
    ]

    CSS = """
    SuccessModal {
        align: center middle;
        background: $background 60%;
    }

    #success-dialog {
        width: 56;
        height: auto;
        border: round $success;
        background: $panel;
        padding: 1 2;
    }

    #success-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #success-help {
        margin-top: 1;
        color: #dddddd;
    }
    """

    def __init__(self, title: str, text: str) -> None:
        super().__init__()
        self.title_text = title
        self.body_text = text

    def compose(self) -> ComposeResult:
        with Container(id="success-dialog"):
            yield Static(self.title_text, id="success-title")
            yield Static(self.body_text, id="success-body")
            yield Static("Enter / Esc to continue", id="success-help")

    def action_close(self) -> None:
        self.dismiss()


class AppNotifier:
    """Notifier backed by Textual toasts; ``on_success`` runs after the success dialog closes."""

    def __init__(self, app: App, on_success: Callable[[], None] | None = None) -> None:
        self.app = app
        self.on_success = on_success

    def warning(self, title: str, text: str) -> None:
        self._dispatch(self.app.notify, text, title=title, severity="warning", timeout=3)

    def error(self, title: str, text: str) -> None:
        self._dispatch(self.app.notify, text, title=title, severity="error")

    def success(self, title: str, text: str) -> None:
        self._dispatch(self._show_success, title, text)

    def _show_success(self, title: str, text: str) -> None:
        def _acknowledged(_: None) -> None:
            if self.on_success is not None:
                self.on_success()

        self.app.push_screen(SuccessModal(title, text), callback=_acknowledged)

    def _dispatch(self, callback: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        # Flows run their network calls in thread workers.
        try:
            get_current_worker()
        except NoActiveWorker:
            callback(*args, **kwargs)
            return
        self.app.call_from_thread(callback, *args, **kwargs)
