from typing import Literal, Optional

from typing_extensions import override

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Label

from utils.messages import QuitRequestedMessage

Tone = Literal["default", "positive", "warning", "error"]

# tone -> (confirm variant, cancel variant)
TONE_VARIANTS = {
    "default": ("primary", "default"),
    "positive": ("success", "default"),
    "warning": ("warning", "default"),
    "error": ("error", "primary"),
}


class DialogModal(ModalScreen[bool]):
    """
    Confirmation box used before logout, cart removals and product deletes.
    Dismisses with True for the confirm button, False for cancel or escape.
    """

    BINDINGS = [Binding("escape", "cancel", "Cancel", show=False)]

    def __init__(
        self,
        caption: str,
        confirm_text: str = "OK",
        cancel_text: str = "",
        tone: Tone = "default",
        detail: Optional[str] = None,
    ):
        super().__init__()
        self.caption = caption
        self.confirm_text = confirm_text
        self.cancel_text = cancel_text
        self.tone = tone
        self.detail = detail

    def compose(self) -> ComposeResult:
        confirm_variant, cancel_variant = TONE_VARIANTS[self.tone]
        with Container(id="div-dialog"):
            yield Label(self.caption, id="caption")
            if self.detail:
                yield Label(self.detail, id="caption-detail")
            with Horizontal(id="dialog"):
                if self.cancel_text:
                    yield Button(self.cancel_text, variant=cancel_variant, id="btn-cancel")
                yield Button(self.confirm_text, variant=confirm_variant, id="btn-confirm")

    def on_mount(self):
        # destructive prompts start on the cancel button
        if self.cancel_text and self.tone == "error":
            self.query_one("#btn-cancel").focus()
        else:
            self.query_one("#btn-confirm").focus()

    def action_cancel(self) -> None:
        self.dismiss(False)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "btn-confirm")


class QuitDialogModal(DialogModal):
    def __init__(self):
        super().__init__(
            "Quit the storefront?",
            "Quit",
            "Stay",
            "error",
            detail="Your cart is saved and will be restored next time.",
        )

    @override
    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn-confirm":
            self.post_message(QuitRequestedMessage())
        super().on_button_pressed(event)
