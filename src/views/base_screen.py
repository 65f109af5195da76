from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Label, ListItem, ListView, Markdown

from utils.errors import ShopError
from utils.messages import ModeSwitchedMessage, UserLoginMessage, UserLogoutMessage
from utils.pure import generate_markdown_table
from views.modal_dialog import DialogModal, QuitDialogModal


class Sidebar(Container):
    """User info, logout and the menu of modes allowed for the current role."""

    def compose(self) -> ComposeResult:
        yield Label("User Info", id="label-info-1")
        yield Markdown("", id="md-userinfo")
        yield Button("Log out", id="btn-logout", variant="error")
        yield Label("Menu", id="label-info-2")
        yield ListView(id="list-menu")

    async def on_mount(self) -> None:
        await self.show_user()

    async def show_user(self) -> None:
        """Fill user info and menu; modes persist across logins so this reruns on resume."""
        state = self.app.state
        if not state.logged_in:
            return

        rows = [
            ["User ID", state.uid],
            ["Name", state.username],
            ["Role", "Administrator" if state.is_admin else "Customer"],
        ]
        await self.query_one(Markdown).update(
            generate_markdown_table(None, rows, ["l", "l"])
        )

        modes = self.app.ADMIN_MODES if state.is_admin else self.app.CUSTOMER_MODES
        menu = self.query_one("#list-menu", ListView)
        await menu.clear()
        await menu.extend(
            [ListItem(Label(label), id=f"list-menu-item-{mode}") for mode, label in modes.items()]
        )
        self.highlight_item(self.app.current_mode)

    async def on_list_view_selected(self, event: ListView.Selected) -> None:
        selected_mode = event.item.id.removeprefix("list-menu-item-")
        if self.app.current_mode != selected_mode:
            self.app.post_message(ModeSwitchedMessage(self.app.current_mode, selected_mode))
            await self.app.switch_mode(selected_mode)

    @on(Button.Pressed, "#btn-logout")
    @work()
    async def handle_logout(self) -> None:
        if await self.app.push_screen_wait(
            DialogModal(
                "Are you sure you want to log out?",
                primary_text="Yes",
                secondary_text="No",
                tone="warning",
            )
        ):
            self.post_message(UserLogoutMessage())

    def highlight_item(self, mode: str) -> None:
        for item in self.query_one("#list-menu", ListView).children:
            item.highlighted = item.id == f"list-menu-item-{mode}"


class BaseScreen(Screen):
    """
    Inherited by all screens: header, footer, sidebar, quit key and the
    common way of surfacing service errors.
    """

    BINDINGS = [
        Binding("ctrl+z", "quit", "Quit App", show=True),
    ]

    SUB_TITLE_TEXT = ""
    SHOW_SIDEBAR = True

    def compose(self) -> ComposeResult:
        if self.SHOW_SIDEBAR:
            yield Sidebar()
        yield Header()
        yield Footer(show_command_palette=False)

    async def on_screen_resume(self) -> None:
        self.app.title = "MedStore"
        self.sub_title = self.SUB_TITLE_TEXT
        if self.SHOW_SIDEBAR:
            await self.query_one(Sidebar).show_user()

    def report_error(self, error: ShopError) -> None:
        """Show a service error; severity follows whether the user can fix it."""
        severity = "error" if error.kind == "persistence_error" else "warning"
        self.notify(error.message, title=error.kind.replace("_", " "), severity=severity)

    @on(UserLoginMessage)
    def handle_user_login(self) -> None:
        self.refresh()

    @work()
    async def action_quit(self) -> None:
        await self.app.push_screen_wait(QuitDialogModal())
