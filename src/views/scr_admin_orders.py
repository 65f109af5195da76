from typing import List

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Markdown, Select

from db.models import Order, OrderStatus
from services.orders import TRANSITIONS
from utils.errors import ShopError
from utils.messages import ModeSwitchedMessage, OrdersChangedMessage
from utils.pure import money
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal
from views.scr_orders import render_order_markdown

_STATUS_BUTTONS = {
    OrderStatus.PAID: "btn-mark-paid",
    OrderStatus.SHIPPED: "btn-mark-shipped",
    OrderStatus.CANCELLED: "btn-mark-cancelled",
}


class AdminOrdersScreen(BaseScreen):
    """
    Every order in the shop. Buttons only light up for transitions the
    order's current status allows.
    """

    SUB_TITLE_TEXT = "Orders"

    def __init__(self) -> None:
        super().__init__()
        self._orders: List[Order] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield Select(
                [(s.value.title(), s.value) for s in OrderStatus],
                prompt="All statuses",
                id="select-status",
            )
            yield DataTable(id="table-orders")
            yield Markdown("### Select an order to view its details.", id="md-order-detail")
        with Horizontal(id="hort-table-control"):
            yield Button("Refresh", id="btn-refresh")
            yield Button("Mark Paid", id="btn-mark-paid", variant="success")
            yield Button("Mark Shipped", id="btn-mark-shipped", variant="primary")
            yield Button("Mark Cancelled", id="btn-mark-cancelled", variant="error")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Order No", "Customer", "Date", "Status", "Payment", "Total")

    @on(Button.Pressed, "#btn-refresh")
    @on(Select.Changed, "#select-status")
    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @on(OrdersChangedMessage)
    @work(exclusive=True, group="orders")
    async def load_orders(self) -> None:
        status = self.query_one("#select-status", Select).value
        self._orders = await self.app.services.orders.list_all_orders(
            None if status is Select.BLANK else status
        )
        table = self.query_one(DataTable)
        table.clear()
        for o in self._orders:
            table.add_row(
                o.id,
                o.user_id,
                f"{o.created_at:%Y-%m-%d %H:%M}",
                str(o.status),
                str(o.payment_method),
                money(o.total_price),
            )
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

        allowed = TRANSITIONS[order.status] if order is not None else frozenset()
        for status, button_id in _STATUS_BUTTONS.items():
            self.query_one(f"#{button_id}", Button).disabled = status not in allowed

    @on(Button.Pressed, "#btn-mark-paid")
    def handle_mark_paid(self) -> None:
        self.move_selected(OrderStatus.PAID)

    @on(Button.Pressed, "#btn-mark-shipped")
    def handle_mark_shipped(self) -> None:
        self.move_selected(OrderStatus.SHIPPED)

    @on(Button.Pressed, "#btn-mark-cancelled")
    def handle_mark_cancelled(self) -> None:
        self.move_selected(OrderStatus.CANCELLED)

    @work()
    async def move_selected(self, status: OrderStatus) -> None:
        order = self._selected()
        if order is None:
            return
        if not await self.app.push_screen_wait(
            DialogModal(
                f"Move order #{order.id} from {order.status} to {status}?",
                primary_text="Yes",
                secondary_text="No",
                tone="warning",
            )
        ):
            return
        try:
            updated = await self.app.services.orders.update_order_status(order.id, status)
        except ShopError as err:
            self.report_error(err)
        else:
            self.notify(f"Order #{updated.id} is now {updated.status}.")
        self.load_orders()
