from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, Markdown, Select

from db.models import Order, PaymentMethod
from services.payment import payment_method_label
from utils.errors import PaymentFailed, ShopError
from utils.pure import generate_markdown_table, money
from views.modal_dialog import DialogModal


class CheckoutModal(ModalScreen[Order | None]):
    """
    Order summary plus payment method. Dismisses with the created Order, or
    None if the customer backed out. A declined payment keeps the modal open
    so another method can be tried.
    """

    def compose(self) -> ComposeResult:
        with Vertical(id="div-checkout"):
            yield Markdown("", id="md-checkout-summary")
            yield Label("Payment Method")
            yield Select(
                [(payment_method_label(m), m.value) for m in PaymentMethod],
                value=PaymentMethod.COD.value,
                allow_blank=False,
                id="select-payment",
            )
            yield Label("Bank (optional)")
            yield Input(placeholder="e.g. First National", id="input-bank-name")
            with Horizontal():
                yield Button("Go Back", id="btn-quit")
                yield Button("Place Order", id="btn-submit", variant="primary")

    async def on_mount(self) -> None:
        lines = await self.app.services.cart.list_lines(self.app.state.uid)
        rows = [
            [line.product.name, money(line.product.price), line.item.quantity, money(line.subtotal)]
            for line in lines
        ]
        total = sum((line.subtotal for line in lines), start=0)
        md = generate_markdown_table(
            ["Product", "Unit Price", "Quantity", "Subtotal"], rows, ["l", "r", "c", "r"]
        )
        await self.query_one("#md-checkout-summary", Markdown).update(
            f"### Order Summary\n\n{md}\n\n**Total:** {money(total) if lines else '$0.00'}"
        )
        self.query_one("#select-payment").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(None)

    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True)
    async def handle_submit(self) -> None:
        method = self.query_one("#select-payment", Select).value
        bank = self.query_one("#input-bank-name", Input).value.strip() or None

        if not await self.app.push_screen_wait(
            DialogModal(
                f"Pay with {payment_method_label(method)} and place the order?",
                primary_text="Yes",
                secondary_text="No",
                tone="positive",
            )
        ):
            return

        try:
            order = await self.app.services.orders.place_order(
                self.app.state.uid, method, bank
            )
        except PaymentFailed as err:
            self.notify(f"{err.message}. Try another payment method.", severity="error")
            return
        except ShopError as err:
            self.notify(err.message, severity="error")
            self.dismiss(None)
            return

        self.notify(f"Order #{order.id} placed, status: {order.status}.")
        self.dismiss(order)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self) -> None:
        self.dismiss(None)
