from textual import events, on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.events import ScreenResume
from textual.widgets import DataTable, Input

from utils.pure import money
from views.base_screen import BaseScreen
from views.modal_prod_detail import ProdDetailModal


class CatalogScreen(BaseScreen):
    """
    Product search for customers. Enter on a row opens the detail modal.
    """

    SUB_TITLE_TEXT = "Catalog"

    # displayed in the footer only
    BINDINGS = [
        Binding("fn+shift+1", "noop", "View Product", show=True, key_display="⏎"),
    ]

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield Input(id="input-search", placeholder="Search by name, description or product id...")
        yield DataTable(id="table-search-result")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("ID", "Name", "Price", "In Stock")
        self.update_search_result("")
        self.query_one("#input-search").focus()

    def on_input_changed(self, message: Input.Changed) -> None:
        if message.input.id == "input-search":
            self.update_search_result(message.value)

    @on(ScreenResume)
    def refresh_results(self) -> None:
        # reservations elsewhere change the stock column
        self.update_search_result(self.query_one("#input-search", Input).value)

    async def on_key(self, event: events.Key) -> None:
        table = self.query_one(DataTable)
        if event.key == "enter" and self.focused is table and table.row_count:
            self.open_product(int(table.get_row_at(table.cursor_row)[0]))

    @work()
    async def open_product(self, product_id: int) -> None:
        if await self.app.push_screen_wait(ProdDetailModal(product_id)):
            self.refresh_results()

    @work(exclusive=True)
    async def update_search_result(self, query: str) -> None:
        products = await self.app.services.catalog.search(query)
        table = self.query_one(DataTable)
        table.clear()
        table.add_rows([(p.id, p.name, money(p.price), p.stock) for p in products])
