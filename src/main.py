from typing import Optional

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

from services.registry import ShopServices
from utils.config import Settings, load_settings
from utils.logger import get_logger
from utils.messages import ModeSwitchedMessage, QuitRequestedMessage, UserLogoutMessage
from utils.state import GlobalState
from views.scr_admin_inventory import AdminInventoryScreen
from views.scr_admin_orders import AdminOrdersScreen
from views.scr_admin_report import AdminReportScreen
from views.scr_admin_shops import AdminShopsScreen
from views.scr_cart import CartScreen
from views.scr_catalog import CatalogScreen
from views.scr_login import LoginScreen
from views.scr_orders import OrderHistoryScreen
from views.scr_shop_requests import ShopRequestScreen

_logger = get_logger(__name__)


class MedStoreApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "catalog": CatalogScreen,
        "cart": CartScreen,
        "orders": OrderHistoryScreen,
        "admin_orders": AdminOrdersScreen,
        "admin_inventory": AdminInventoryScreen,
        "admin_report": AdminReportScreen,
        "admin_shops": AdminShopsScreen,
        "shop_requests": ShopRequestScreen,
    }

    ADMIN_MODES = {
        "admin_report": "Sales Report",
        "admin_orders": "Orders",
        "admin_inventory": "Inventory",
        "admin_shops": "Shop Requests",
    }
    CUSTOMER_MODES = {
        "catalog": "Catalog",
        "cart": "Cart",
        "orders": "My Orders",
        "shop_requests": "Open a Shop",
    }

    CSS_PATH = "styles/app.tcss"

    state: GlobalState
    services: ShopServices

    def __init__(
        self,
        services: Optional[ShopServices] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        super().__init__()
        self.settings = settings or load_settings()
        self.services = services or ShopServices.from_settings(self.settings)
        self.state = GlobalState()

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        _logger.info(f"Starting with database {self.settings.db_path} ({self.settings.env})")
        self.main_flow()

    def action_switch_light(self) -> None:
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    @on(UserLogoutMessage)
    @work
    async def handle_user_logout(self) -> None:
        _logger.info(f"User {self.state.uid} logged out")
        self.state.logout()
        self.notify("Logout successful.")
        self.main_flow()

    @on(QuitRequestedMessage)
    def handle_quit(self) -> None:
        self.state.logout()
        self.exit()

    @work
    async def main_flow(self) -> None:
        await self.push_screen_wait(LoginScreen())
        landing = "admin_report" if self.state.is_admin else "catalog"
        self.post_message(ModeSwitchedMessage(self.current_mode, landing))
        await self.switch_mode(landing)


def run() -> None:
    MedStoreApp().run()


if __name__ == "__main__":
    run()
