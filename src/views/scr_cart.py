from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Label, Rule

from utils.errors import ShopError
from utils.messages import CartChangedMessage, ModeSwitchedMessage, OrdersChangedMessage
from utils.pure import money
from views.base_screen import BaseScreen
from views.modal_checkout import CheckoutModal
from views.modal_dialog import DialogModal


class CartScreen(BaseScreen):
    """
    The customer's cart. Every line holds reserved stock; removing a line
    hands it back to the catalog.
    """

    SUB_TITLE_TEXT = "Cart"

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield DataTable(id="table-cart")
        yield Label("Total Cart Value: $0.00", id="label-cart-total")
        yield Rule(line_style="dashed")
        with Horizontal(id="hort-buttons"):
            yield Button("Remove Item", id="btn-remove-item")
            yield Button("Empty Cart", id="btn-clear-cart")
            yield Button("Refresh", id="btn-refresh")
            yield Button("Checkout", id="btn-checkout", variant="primary")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Line", "Product", "Qty", "Unit Price", "Subtotal")
        self.handle_cart_change()

    @on(CartChangedMessage)
    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @on(Button.Pressed, "#btn-refresh")
    @work(exclusive=True)  # must be exclusive, overlapping reloads duplicate rows
    async def handle_cart_change(self) -> None:
        lines = await self.app.services.cart.list_lines(self.app.state.uid)
        table = self.query_one(DataTable)
        table.clear()
        for line in lines:
            table.add_row(
                line.item.id,
                line.product.name,
                line.item.quantity,
                money(line.product.price),
                money(line.subtotal),
            )
        total = sum((line.subtotal for line in lines), start=0)
        self.query_one("#label-cart-total", Label).update(
            f"Total Cart Value: {money(total) if lines else '$0.00'}"
        )

    def _selected_line(self) -> int | None:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return None
        return int(table.get_row_at(table.cursor_row)[0])

    @on(Button.Pressed, "#btn-remove-item")
    @work()
    async def handle_remove_item(self) -> None:
        cart_item_id = self._selected_line()
        if cart_item_id is None:
            self.notify("Cart is empty.", severity="warning")
            return
        if not await self.app.push_screen_wait(
            DialogModal(
                "Do you really want to remove this item from cart?",
                primary_text="Yes",
                secondary_text="No",
                tone="warning",
            )
        ):
            return
        try:
            await self.app.services.cart.remove_from_cart(cart_item_id, self.app.state.uid)
        except ShopError as err:
            self.report_error(err)
        else:
            self.notify("Item removed from cart.")
        self.post_message(CartChangedMessage())

    @on(Button.Pressed, "#btn-clear-cart")
    @work()
    async def handle_clear_cart(self) -> None:
        lines = await self.app.services.cart.list_lines(self.app.state.uid)
        if not lines:
            self.notify("Cart is empty.", severity="warning")
            return
        if not await self.app.push_screen_wait(
            DialogModal(
                "Do you really want to remove all items from cart?",
                primary_text="Yes",
                secondary_text="No",
                tone="error",
            )
        ):
            return
        # line by line so every reservation is released
        for line in lines:
            try:
                await self.app.services.cart.remove_from_cart(line.item.id, self.app.state.uid)
            except ShopError as err:
                self.report_error(err)
                break
        self.post_message(CartChangedMessage())

    @on(Button.Pressed, "#btn-checkout")
    @work()
    async def handle_checkout(self) -> None:
        if not await self.app.services.cart.count_items(self.app.state.uid):
            self.notify("Cart is empty.", severity="warning")
            return
        order = await self.app.push_screen_wait(CheckoutModal())
        if order is not None:
            self.app.post_message(OrdersChangedMessage(order.id))
        self.post_message(CartChangedMessage())
