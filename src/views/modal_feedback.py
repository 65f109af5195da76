from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, Select

from utils.errors import ShopError


class FeedbackModal(ModalScreen[bool]):
    """Rate a product. Dismisses True once the feedback is stored."""

    def __init__(self, product_id: int, product_name: str) -> None:
        super().__init__()
        self._product_id = product_id
        self._product_name = product_name

    def compose(self) -> ComposeResult:
        with Vertical(id="div-feedback"):
            yield Label(f"Rate {self._product_name}", id="label-feedback-title")
            yield Label("Rating")
            yield Select(
                [("★" * n, n) for n in range(5, 0, -1)],
                value=5,
                allow_blank=False,
                id="select-rating",
            )
            yield Label("Comment")
            yield Input(placeholder="What did you think?", id="input-comment")
            with Horizontal():
                yield Button("Go Back", id="btn-quit")
                yield Button("Submit", id="btn-submit", variant="primary")

    def on_mount(self) -> None:
        self.query_one("#input-comment").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self) -> None:
        self.dismiss(False)

    @on(Input.Submitted, "#input-comment")
    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True)
    async def handle_submit(self) -> None:
        comment = self.query_one("#input-comment", Input)
        rating = self.query_one("#select-rating", Select).value
        try:
            await self.app.services.feedback.give_feedback(
                self.app.state.uid, self._product_id, int(rating), comment.value
            )
        except ShopError as err:
            self.notify(err.message, severity="warning")
            comment.focus()
            return
        self.app.notify("Thanks for your feedback.")
        self.dismiss(True)
