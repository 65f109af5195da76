from __future__ import annotations

from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.validation import Number
from textual.widgets import Button, Input, Label, MarkdownViewer, OptionList
from textual.widgets.option_list import Option

from db.models import Product
from utils.errors import ShopError
from utils.pure import key_value_table, money
from views.base_screen import BaseScreen


class AdminInventoryScreen(BaseScreen):
    """
    Admins look a product up, then reprice it or correct its stock by a delta.
    """

    SUB_TITLE_TEXT = "Inventory"

    current_pid: Optional[int] = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield Input(id="input-search", placeholder="Search for product...")
            yield OptionList(id="optlist-prods")
            yield MarkdownViewer(id="md-prod", show_table_of_contents=False)
            with Horizontal(id="hort-controls"):
                with Horizontal(id="div-new-inputs"):
                    with Vertical():
                        yield Label("New Price ($):")
                        yield Input(
                            placeholder="leave blank to keep",
                            id="input-price",
                            type="number",
                            validators=[Number(minimum=0.01)],
                        )

                    with Vertical():
                        yield Label("Stock Change (+/-):")
                        yield Input(
                            placeholder="leave blank to keep",
                            id="input-stock-delta",
                            type="integer",
                        )
                with Horizontal(id="div-button"):
                    yield Button("Update", id="btn-update", variant="success")

    def on_mount(self) -> None:
        self.query_one("#input-search", Input).focus()
        self.query_one("#md-prod").add_class("hidden")
        self.query_one("#hort-controls").add_class("hidden")
        self.update_optlist("")

    def on_input_changed(self, message: Input.Changed) -> None:
        if message.input.id == "input-search":
            self.query_one("#optlist-prods").remove_class("hidden")
            self.update_optlist(message.value)

    def on_option_list_option_selected(self, message: OptionList.OptionSelected) -> None:
        self.current_pid = int(message.option.id)
        self.render_product()

        self.query_one("#optlist-prods").add_class("hidden")
        self.query_one("#md-prod").remove_class("hidden")
        self.query_one("#hort-controls").remove_class("hidden")

    @work(exclusive=True, group="search")
    async def update_optlist(self, query: str) -> None:
        results = await self.app.services.catalog.search(query)
        opt_list = self.query_one("#optlist-prods", OptionList)
        opt_list.clear_options()
        opt_list.add_options(
            [Option(f"{p.id} {p.name} ({p.stock} in stock)", id=str(p.id)) for p in results]
        )

    @work(exclusive=True, group="detail")
    async def render_product(self) -> None:
        try:
            prod = await self.app.services.catalog.get_product(self.current_pid)
        except ShopError as err:
            self.report_error(err)
            return
        await self._show(prod)

    async def _show(self, prod: Product) -> None:
        rows = [
            ["ID", prod.id],
            ["Category", prod.category_id],
            ["Name", prod.name],
            ["Description", prod.description],
            ["Price", money(prod.price)],
            ["In Stock", prod.stock],
            ["Last Updated", f"{prod.updated_at:%Y-%m-%d %H:%M}"],
        ]
        await self.query_one("#md-prod", MarkdownViewer).document.update(
            f"### Product Detail: {prod.name}\n\n" + key_value_table(rows)
        )
        self.query_one("#input-price", Input).value = f"{prod.price:.2f}"
        self.query_one("#input-stock-delta", Input).value = ""

    @on(Button.Pressed, "#btn-update")
    @work(exclusive=True, group="detail")
    async def handle_update(self) -> None:
        if self.current_pid is None:
            return
        catalog = self.app.services.catalog
        price_input = self.query_one("#input-price", Input)
        delta_input = self.query_one("#input-stock-delta", Input)

        try:
            prod = await catalog.get_product(self.current_pid)
            changed = False
            if price_input.value.strip() and price_input.value.strip() != f"{prod.price:.2f}":
                prod = await catalog.update_price(prod.id, price_input.value)
                changed = True
            if delta_input.value.strip():
                prod = await catalog.restock(prod.id, int(delta_input.value))
                changed = True
        except ShopError as err:
            self.report_error(err)
            return
        except ValueError:
            delta_input.add_class("-invalid")
            delta_input.focus()
            return

        if changed:
            self.notify("Product updated successfully.")
        else:
            self.notify("Nothing to update.", severity="warning")
        await self._show(prod)
        self.update_optlist(self.query_one("#input-search", Input).value)
