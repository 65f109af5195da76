from typing import List

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Input, Markdown, Select

from db.models import ShopRequest, ShopRequestStatus
from utils.errors import ShopError
from utils.messages import ModeSwitchedMessage
from utils.pure import key_value_table
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal


class AdminShopsScreen(BaseScreen):
    """
    Shop-owner applications. Approve opens the shop; reject records the
    reason typed below the table. Both only apply to pending requests.
    """

    SUB_TITLE_TEXT = "Shop Requests"

    def __init__(self) -> None:
        super().__init__()
        self._requests: List[ShopRequest] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield Select(
                [(s.value.title(), s.value) for s in ShopRequestStatus],
                value=ShopRequestStatus.PENDING.value,
                prompt="All statuses",
                id="select-request-status",
            )
            yield DataTable(id="table-shop-requests")
            yield Markdown("### Select a request to view its details.", id="md-request-detail")
            yield Input(placeholder="Rejection reason (optional)", id="input-reject-reason")
        with Horizontal(id="hort-table-control"):
            yield Button("Refresh", id="btn-refresh")
            yield Button("Approve", id="btn-approve", variant="success")
            yield Button("Reject", id="btn-reject", variant="error")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Request", "Applicant", "Shop Name", "Submitted", "Status")

    @on(Button.Pressed, "#btn-refresh")
    @on(Select.Changed, "#select-request-status")
    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @work(exclusive=True, group="requests")
    async def load_requests(self) -> None:
        status = self.query_one("#select-request-status", Select).value
        self._requests = await self.app.services.shops.list_requests(
            None if status is Select.BLANK else status
        )
        table = self.query_one(DataTable)
        table.clear()
        for r in self._requests:
            table.add_row(
                r.id,
                r.username or r.user_id,
                r.shop_name,
                f"{r.created_at:%Y-%m-%d %H:%M}",
                str(r.status),
            )
        self.show_selected()

    def _selected(self) -> ShopRequest | None:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return None
        request_id = int(table.get_row_at(table.cursor_row)[0])
        return next((r for r in self._requests if r.id == request_id), None)

    @on(DataTable.RowHighlighted)
    def show_selected(self) -> None:
        request = self._selected()
        md = "### Select a request to view its details."
        if request is not None:
            rows = [
                ["Applicant", request.username or request.user_id],
                ["Shop Name", request.shop_name],
                ["Description", request.description.replace("|", "/")],
                ["Status", request.status],
            ]
            if request.rejection_reason:
                rows.append(["Reason", request.rejection_reason.replace("|", "/")])
            md = f"### Request #{request.id}\n\n" + key_value_table(rows)
        self.query_one("#md-request-detail", Markdown).update(md)

        pending = request is not None and request.status == ShopRequestStatus.PENDING
        self.query_one("#btn-approve", Button).disabled = not pending
        self.query_one("#btn-reject", Button).disabled = not pending

    @on(Button.Pressed, "#btn-approve")
    @work()
    async def handle_approve(self) -> None:
        request = self._selected()
        if request is None:
            return
        if not await self.app.push_screen_wait(
            DialogModal(
                f"Approve '{request.shop_name}' and open the shop?",
                primary_text="Approve",
                secondary_text="No",
                tone="positive",
            )
        ):
            return
        try:
            shop = await self.app.services.shops.approve_request(request.id)
        except ShopError as err:
            self.report_error(err)
        else:
            self.notify(f"Shop #{shop.id} '{shop.shop_name}' is open.")
        self.load_requests()

    @on(Button.Pressed, "#btn-reject")
    @work()
    async def handle_reject(self) -> None:
        request = self._selected()
        if request is None:
            return
        reason = self.query_one("#input-reject-reason", Input)
        if not await self.app.push_screen_wait(
            DialogModal(
                f"Reject request #{request.id} for '{request.shop_name}'?",
                primary_text="Reject",
                secondary_text="No",
                tone="error",
            )
        ):
            return
        try:
            await self.app.services.shops.reject_request(request.id, reason.value)
        except ShopError as err:
            self.report_error(err)
        else:
            reason.value = ""
            self.notify(f"Request #{request.id} rejected.")
        self.load_requests()
