from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.events import Key
from textual.widgets import Button, Input, Label, TabbedContent, TabPane

from utils.errors import ShopError
from utils.messages import UserLoginMessage
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal, QuitDialogModal


class LoginScreen(BaseScreen):
    """
    Login / sign-up. Dismisses once app.state holds a logged-in user.
    """

    SUB_TITLE_TEXT = "Login"
    SHOW_SIDEBAR = False

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with TabbedContent(id="super-tab-loginscr"):
            with TabPane("Login", id="tab-login"):
                with Vertical(id="div-login"):
                    yield Label("Email")
                    yield Input(placeholder="jane@medstore.local", id="input-login-email")
                    yield Label("Password")
                    yield Input(placeholder="*********", password=True, id="input-login-pwd")
                    with Horizontal(id="div-login-btns"):
                        yield Button("Quit", id="btn-quit")
                        yield Button("Login", id="btn-login", variant="primary")

            with TabPane("Sign up", id="tab-signup"):
                with Vertical(id="div-reg"):
                    yield Label("Username")
                    yield Input(placeholder="janedoe", id="input-reg-name")
                    yield Label("Email")
                    yield Input(placeholder="user@example.com", id="input-reg-email")
                    yield Label("Password")
                    yield Input(placeholder="at least 6 characters", password=True, id="input-reg-pwd")
                    with Container(id="div-reg-btns"):
                        yield Button("Register", id="btn-reg", variant="primary")

    def on_mount(self) -> None:
        self.query_one("#input-login-email").focus()

    def on_key(self, event: Key) -> None:
        if event.key != "enter":
            return
        if self.focused is self.query_one("#input-login-pwd"):
            self.handle_login_submit()
        elif self.focused is self.query_one("#input-reg-pwd"):
            self.handle_registration_submit()

    @on(Button.Pressed, "#btn-login")
    @work(exclusive=True)
    async def handle_login_submit(self) -> None:
        email = self.query_one("#input-login-email", Input).value.strip()
        pwd_input = self.query_one("#input-login-pwd", Input)

        if not email or not pwd_input.value:
            self.notify("Email or password cannot be empty!", severity="error")
            return

        try:
            user = await self.app.services.accounts.login(email, pwd_input.value)
        except ShopError as err:
            self.report_error(err)
            pwd_input.value = ""
            pwd_input.focus()
            pwd_input.add_class("-invalid")
            return

        self.app.state.login(user)
        self.notify(f"Hello {user.username}!")
        self.app.post_message(UserLoginMessage())
        self.dismiss()

    @on(Button.Pressed, "#btn-reg")
    @work(exclusive=True)
    async def handle_registration_submit(self) -> None:
        name = self.query_one("#input-reg-name", Input).value.strip()
        email = self.query_one("#input-reg-email", Input).value.strip()
        pwd = self.query_one("#input-reg-pwd", Input).value

        if not name or not email or not pwd:
            self.notify("Make sure all inputs are filled.", severity="error")
            return

        try:
            user = await self.app.services.accounts.register(name, email, pwd)
        except ShopError as err:
            self.report_error(err)
            return

        await self.app.push_screen_wait(
            DialogModal(f"Registration successful. Welcome, {user.username}!")
        )
        self.query_one(TabbedContent).active = "tab-login"
        self.query_one("#input-login-email", Input).value = user.email
        self.query_one("#input-login-pwd", Input).focus()

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self) -> None:
        self.app.push_screen(QuitDialogModal())
