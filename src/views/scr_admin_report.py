from textual import on, work
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.events import ScreenResume
from textual.widgets import Button, MarkdownViewer

from services.payment import payment_method_label
from services.reports import SalesSummary
from utils.messages import ModeSwitchedMessage, OrdersChangedMessage
from utils.pure import generate_markdown_table, money
from views.base_screen import BaseScreen


def render_summary(summary: SalesSummary) -> str:
    overview = (
        f"### Sales Overview\n\n"
        f"_Generated {summary.generated_at:%Y-%m-%d %H:%M}_\n\n"
        f"- Orders: {summary.total_orders}\n"
        f"- Products in Catalog: {summary.total_products}\n"
        f"- Customers: {summary.total_customers}\n"
        f"- Revenue (excluding cancelled): {money(summary.total_revenue)}\n\n"
    )
    statuses = generate_markdown_table(
        ["Status", "Orders"],
        [[status.title(), count] for status, count in summary.orders_by_status.items()],
        ["l", "r"],
    )
    products = generate_markdown_table(
        ["PID", "Name", "Units", "Revenue"],
        [[p.product_id, p.name, p.units, money(p.revenue)] for p in summary.top_products],
        ["r", "l", "r", "r"],
    )
    customers = generate_markdown_table(
        ["Customer", "Email", "Orders", "Spent"],
        [
            [c.username, c.email, c.order_count, money(c.total_spent)]
            for c in summary.top_customers
        ],
        ["l", "l", "r", "r"],
    )
    recent = generate_markdown_table(
        ["Order No", "Customer", "Status", "Payment", "Total", "Date"],
        [
            [
                o.order_id,
                o.username,
                o.status,
                payment_method_label(o.payment_method),
                money(o.total_price),
                f"{o.created_at:%Y-%m-%d %H:%M}",
            ]
            for o in summary.recent_orders
        ],
        ["r", "l", "l", "l", "r", "l"],
    )
    return (
        overview
        + "#### Orders by Status\n\n" + statuses
        + "\n\n#### Top Products\n\n" + products
        + "\n\n#### Top Customers\n\n" + customers
        + "\n\n#### Recent Orders\n\n" + recent
        + "\n"
    )


class AdminReportScreen(BaseScreen):
    """
    Sales insights: headline figures, top products and customers, latest orders.
    """

    SUB_TITLE_TEXT = "Sales Report"

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-top", show_table_of_contents=False)
            yield Button("Refresh", id="btn-refresh", variant="primary")

    def on_mount(self) -> None:
        self.handle_reload()

    @on(Button.Pressed, "#btn-refresh")
    @on(OrdersChangedMessage)
    @on(ScreenResume)
    @on(ModeSwitchedMessage)
    @work(exclusive=True)
    async def handle_reload(self) -> None:
        summary = await self.app.services.reports.summary(limit=5)
        await self.query_one("#md-top", MarkdownViewer).document.update(render_summary(summary))
