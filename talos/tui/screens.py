"""
Modal screens for the Talos TUI.

EditRecordScreen — new/edit form for one record. When the record was loaded
redacted, the password input starts empty; leaving it empty saves the KEEP
marker so the stored secret is never fetched just to be written back.
ConfirmScreen — yes/no prompt for destructive actions.
"""

from __future__ import annotations

from dataclasses import dataclass

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, Static, TextArea

from talos.errors import ValidationError
from talos.records.codec import SecretRecord, encode
from talos.records.passgen import generate_password
from talos.records.paths import validate_record_path

UNCHANGED_PLACEHOLDER = "(Unchanged) Leave empty to keep current password"


@dataclass(frozen=True)
class EditResult:
    """What the form hands back to the app on submit."""

    path: str
    original_path: str | None
    content: str


class EditRecordScreen(ModalScreen[EditResult | None]):
    """Create or edit a record. The form owns the record until it closes."""

    DEFAULT_CSS = """
    EditRecordScreen {
        align: center middle;
    }
    #edit-form {
        width: 80;
        height: auto;
        border: solid $accent;
        padding: 1 2;
        background: $surface;
    }
    #entry-desc {
        height: 6;
    }
    #edit-error {
        color: $error;
    }
    #edit-buttons {
        height: auto;
        margin-top: 1;
    }
    """

    BINDINGS = [Binding("escape", "cancel", "Cancel", show=True)]

    def __init__(
        self,
        path: str = "",
        record: SecretRecord | None = None,
        original_path: str | None = None,
    ) -> None:
        super().__init__()
        record = record or SecretRecord()
        self._path = path
        self._original_path = original_path
        self._was_redacted = record.is_hidden
        self._initial_password = "" if record.is_hidden else str(record.password)
        self._username = record.username
        self._url = record.url
        self._note = record.note

    @property
    def was_redacted(self) -> bool:
        return self._was_redacted

    def compose(self) -> ComposeResult:
        with Vertical(id="edit-form"):
            yield Label("Edit secret" if self._original_path else "New secret")
            yield Input(value=self._path, placeholder="category/name", id="entry-path")
            yield Input(
                value=self._initial_password,
                password=True,
                placeholder=UNCHANGED_PLACEHOLDER if self._was_redacted else "Password",
                id="entry-secret",
            )
            yield Input(value=self._username, placeholder="User", id="entry-user")
            yield Input(value=self._url, placeholder="URL", id="entry-url")
            yield TextArea(self._note, id="entry-desc")
            yield Static("", id="edit-error")
            with Horizontal(id="edit-buttons"):
                yield Button("Save", variant="primary", id="btn-save")
                yield Button("Generate", id="btn-entry-gen")
                yield Button("Cancel", id="btn-cancel")

    def build_result(self) -> EditResult:
        """Validate the form and encode it. Raises ValidationError."""
        path = validate_record_path(self.query_one("#entry-path", Input).value)
        password = self.query_one("#entry-secret", Input).value
        edited = password != self._initial_password
        record = SecretRecord(
            password=password,
            username=self.query_one("#entry-user", Input).value,
            url=self.query_one("#entry-url", Input).value,
            note=self.query_one("#entry-desc", TextArea).text.strip(),
        )
        content = encode(record, was_redacted=self._was_redacted, user_edited_password=edited)
        return EditResult(path=path, original_path=self._original_path, content=content)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn-save":
            try:
                result = self.build_result()
            except ValidationError as e:
                self.query_one("#edit-error", Static).update(str(e))
                return
            self.dismiss(result)
        elif event.button.id == "btn-entry-gen":
            secret = self.query_one("#entry-secret", Input)
            secret.value = generate_password()
        elif event.button.id == "btn-cancel":
            self.dismiss(None)

    def action_cancel(self) -> None:
        self.dismiss(None)


class ConfirmScreen(ModalScreen[bool]):
    """Ask before doing something that cannot be undone."""

    DEFAULT_CSS = """
    ConfirmScreen {
        align: center middle;
    }
    #confirm-box {
        width: 60;
        height: auto;
        border: solid $error;
        padding: 1 2;
        background: $surface;
    }
    #confirm-buttons {
        height: auto;
        margin-top: 1;
    }
    """

    BINDINGS = [Binding("escape", "cancel", "Cancel", show=True)]

    def __init__(self, question: str) -> None:
        super().__init__()
        self.question = question

    def compose(self) -> ComposeResult:
        with Vertical(id="confirm-box"):
            yield Label(self.question, markup=False)
            with Horizontal(id="confirm-buttons"):
                yield Button("Yes", variant="error", id="btn-yes")
                yield Button("No", id="btn-no")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "btn-yes")

    def action_cancel(self) -> None:
        self.dismiss(False)
