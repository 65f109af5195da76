from typing import List

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Input, Label, Markdown

from db.models import ShopRequest
from utils.errors import ShopError, ValidationError
from utils.messages import ModeSwitchedMessage
from utils.pure import generate_markdown_table
from views.base_screen import BaseScreen


class ShopRequestScreen(BaseScreen):
    """Customers apply to run a shop and follow their applications."""

    SUB_TITLE_TEXT = "Open a Shop"

    def __init__(self) -> None:
        super().__init__()
        self._requests: List[ShopRequest] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            with Vertical(id="div-shop-form"):
                yield Label("Shop Name")
                yield Input(placeholder="3 to 100 characters", id="input-shop-name")
                yield Label("Description")
                yield Input(placeholder="10 to 500 characters", id="input-shop-desc")
                with Horizontal(id="hort-buttons"):
                    yield Button("Submit Request", id="btn-submit-request", variant="primary")
            yield DataTable(id="table-shop-requests")
            yield Markdown("", id="md-my-shops")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Request", "Shop Name", "Submitted", "Status", "Reason")

    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @work(exclusive=True, group="requests")
    async def load_requests(self) -> None:
        uid = self.app.state.uid
        if uid is None:
            return
        self._requests = await self.app.services.shops.list_user_requests(uid)
        table = self.query_one(DataTable)
        table.clear()
        for r in self._requests:
            table.add_row(
                r.id, r.shop_name, f"{r.created_at:%Y-%m-%d}", str(r.status), r.rejection_reason
            )

        shops = await self.app.services.shops.shops_for_user(uid)
        md = "### My Shops\n\nNo shops yet."
        if shops:
            rows = [
                [s.id, s.shop_name, "active" if s.is_active else "inactive"] for s in shops
            ]
            md = "### My Shops\n\n" + generate_markdown_table(
                ["ID", "Name", "State"], rows, ["r", "l", "l"]
            )
        await self.query_one("#md-my-shops", Markdown).update(md)

    @on(Button.Pressed, "#btn-submit-request")
    @work(exclusive=True, group="submit")
    async def handle_submit(self) -> None:
        name = self.query_one("#input-shop-name", Input)
        desc = self.query_one("#input-shop-desc", Input)
        try:
            request = await self.app.services.shops.create_request(
                self.app.state.uid, name.value, desc.value
            )
        except ShopError as err:
            self.report_error(err)
            if isinstance(err, ValidationError) and err.field == "description":
                desc.focus()
            else:
                name.focus()
            return
        name.value = ""
        desc.value = ""
        self.notify(f"Request #{request.id} for '{request.shop_name}' submitted.")
        self.load_requests()
