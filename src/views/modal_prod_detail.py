from typing import List

from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.validation import Number
from textual.widgets import Button, Input, Label, Markdown

from db.models import Feedback, Product
from utils.errors import ShopError
from utils.messages import CartChangedMessage
from utils.pure import generate_markdown_table, key_value_table, money
from views.modal_feedback import FeedbackModal


def _reviews_markdown(reviews: List[Feedback]) -> str:
    if not reviews:
        return "#### Reviews\n\nNo reviews yet."
    average = sum(r.rating for r in reviews) / len(reviews)
    rows = [
        [r.username or f"user {r.user_id}", "★" * r.rating, r.comment.replace("|", "/"), f"{r.created_at:%Y-%m-%d}"]
        for r in reviews
    ]
    table = generate_markdown_table(["By", "Rating", "Comment", "Date"], rows, ["l", "l", "l", "r"])
    return f"#### Reviews ({len(reviews)}, average {average:.1f}/5)\n\n{table}"


class ProdDetailModal(ModalScreen[bool]):
    """
    Product detail and reviews with an add-to-cart form.
    Dismisses True if stock was reserved into the cart, False otherwise.
    """

    def __init__(self, product_id: int) -> None:
        super().__init__()
        self._product_id = product_id
        self._product: Product | None = None

    def compose(self) -> ComposeResult:
        with Horizontal(id="hort-prod-detail"):
            yield Markdown("", id="md-prod-detail")
            with Vertical(id="div-order-form"):
                yield Label("Quantity")
                yield Input(value="1", id="input-order-qty", type="integer")
                with Horizontal():
                    yield Button("Go Back", id="btn-quit")
                    yield Button("Add to Cart", id="btn-addcart", variant="primary")
                yield Button("Rate Product", id="btn-rate")

    async def on_mount(self) -> None:
        try:
            self._product = await self.app.services.catalog.get_product(self._product_id)
        except ShopError as err:
            self.notify(err.message, severity="error")
            self.dismiss(False)
            return
        await self._render_product()
        self.query_one("#input-order-qty").focus()

    async def _render_product(self) -> None:
        prod = self._product
        rows = [
            ["ID", prod.id],
            ["Name", prod.name],
            ["Description", prod.description],
            ["Price", money(prod.price)],
            ["In Stock", prod.stock],
        ]
        reviews = await self.app.services.feedback.list_for_product(prod.id)
        await self.query_one("#md-prod-detail", Markdown).update(
            f"### {prod.name}\n\n" + key_value_table(rows) + "\n\n" + _reviews_markdown(reviews)
        )

        qty_input = self.query_one("#input-order-qty", Input)
        qty_input.validators = [Number(minimum=1, maximum=max(prod.stock, 1))]
        if prod.stock < 1:
            btn = self.query_one("#btn-addcart", Button)
            btn.label = "Out of Stock"
            btn.disabled = True
            btn.variant = "warning"

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self) -> None:
        self.dismiss(False)

    @on(Button.Pressed, "#btn-addcart")
    @work(exclusive=True)
    async def handle_addcart(self) -> None:
        qty_input = self.query_one("#input-order-qty", Input)
        if not qty_input.value.isdigit() or int(qty_input.value) < 1:
            qty_input.add_class("-invalid")
            qty_input.focus()
            return

        try:
            await self.app.services.cart.add_to_cart(
                self.app.state.uid, self._product_id, int(qty_input.value)
            )
        except ShopError as err:
            self.notify(err.message, severity="warning")
            # stock may have moved under us, show the current figure
            self._product = await self.app.services.catalog.get_product(self._product_id)
            await self._render_product()
            return

        self.app.notify("Item added to cart.")
        self.app.post_message(CartChangedMessage())
        self.dismiss(True)

    @on(Button.Pressed, "#btn-rate")
    @work(exclusive=True, group="rate")
    async def handle_rate(self) -> None:
        if self._product is None:
            return
        if await self.app.push_screen_wait(
            FeedbackModal(self._product.id, self._product.name)
        ):
            await self._render_product()
