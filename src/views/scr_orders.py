from typing import List

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Markdown

from db.models import Order, OrderStatus
from services.orders import TERMINAL_STATUSES
from services.payment import payment_method_label
from utils.errors import ShopError
from utils.messages import ModeSwitchedMessage, OrdersChangedMessage
from utils.pure import generate_markdown_table, money
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal


async def render_order_markdown(app, order: Order) -> str:
    """Order header plus its lines at the prices paid."""
    products = await app.services.catalog.get_products(i.product_id for i in order.items)
    rows = []
    for item in order.items:
        prod = products.get(item.product_id)
        rows.append(
            [
                prod.name if prod else f"Product {item.product_id}",
                item.quantity,
                money(item.price),
                money(item.subtotal),
            ]
        )
    header = (
        f"### Order #{order.id}\n"
        f"Placed: {order.created_at:%Y-%m-%d %H:%M}  \n"
        f"Status: **{order.status}**  \n"
        f"Payment: {payment_method_label(order.payment_method)}"
        + (f" ({order.bank_name})" if order.bank_name else "")
        + "\n\n"
    )
    table = generate_markdown_table(
        ["Product", "Qty", "Unit Price", "Line Total"], rows, ["l", "r", "r", "r"]
    )
    return header + table + f"\n\n**Total:** {money(order.total_price)}"


class OrderHistoryScreen(BaseScreen):
    """
    A customer's past orders, newest first, with details and cancellation.
    """

    SUB_TITLE_TEXT = "My Orders"

    def __init__(self) -> None:
        super().__init__()
        self._orders: List[Order] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield Markdown("### Select an order to view its details.", id="md-order-detail")
            yield DataTable(id="table-orders")
        with Horizontal(id="hort-table-control"):
            yield Button("Refresh", id="btn-refresh")
            yield Button("Cancel Order", id="btn-cancel-order", variant="error")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Order No", "Date", "Status", "Total")

    @on(Button.Pressed, "#btn-refresh")
    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @on(OrdersChangedMessage)
    @work(exclusive=True, group="orders")
    async def load_orders(self) -> None:
        self._orders = await self.app.services.orders.list_orders(self.app.state.uid)
        table = self.query_one(DataTable)
        table.clear()
        for o in self._orders:
            table.add_row(o.id, f"{o.created_at:%Y-%m-%d %H:%M}", str(o.status), money(o.total_price))
        self.show_selected()

    def _selected(self) -> Order | None:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return None
        order_id = int(table.get_row_at(table.cursor_row)[0])
        return next((o for o in self._orders if o.id == order_id), None)

    @on(DataTable.RowHighlighted)
    @work(exclusive=True, group="detail")
    async def show_selected(self) -> None:
        order = self._selected()
        md = "### Select an order to view its details."
        if order is not None:
            md = await render_order_markdown(self.app, order)
        self.query_one("#md-order-detail", Markdown).update(md)
        self.query_one("#btn-cancel-order", Button).disabled = (
            order is None or order.status in TERMINAL_STATUSES
        )

    @on(Button.Pressed, "#btn-cancel-order")
    @work()
    async def handle_cancel(self) -> None:
        order = self._selected()
        if order is None:
            return
        if not await self.app.push_screen_wait(
            DialogModal(
                f"Cancel order #{order.id}? Reserved stock goes back on sale.",
                primary_text="Cancel Order",
                secondary_text="Keep",
                tone="error",
            )
        ):
            return
        try:
            await self.app.services.orders.cancel_order(order.id, self.app.state.uid)
        except ShopError as err:
            self.report_error(err)
        else:
            self.notify(f"Order #{order.id} is now {OrderStatus.CANCELLED}.")
            self.app.post_message(OrdersChangedMessage(order.id))
        self.load_orders()
