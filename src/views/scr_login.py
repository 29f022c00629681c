from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Button, Checkbox, Input, Label


class LoginModal(ModalScreen[bool]):
    """
    Credential prompt. Dismisses with True once the session gate accepted the login.
    """

    def compose(self) -> ComposeResult:
        with Vertical(id="div-login"):
            yield Label("Username")
            yield Input(placeholder="emilys", id="input-login-user")
            yield Label("Password")
            yield Input(placeholder="*********", password=True, id="input-login-pwd")
            yield Checkbox("Remember me", id="chk-remember")
            with Horizontal(id="div-login-btns"):
                yield Button("Cancel", id="btn-cancel")
                yield Button("Login", id="btn-login", variant="primary")

    def on_mount(self):
        self.query_one("#input-login-user").focus()

    def on_key(self, event: Key) -> None:
        if event.key == "escape":
            self.dismiss(False)
        if event.key == "enter" and self.focused == self.query_one("#input-login-pwd"):
            self.handle_login_submit()

    @on(Button.Pressed, "#btn-cancel")
    def handle_cancel(self) -> None:
        self.dismiss(False)

    @on(Button.Pressed, "#btn-login")
    @work(exclusive=True)
    async def handle_login_submit(self) -> None:
        username = self.query_one("#input-login-user", Input).value.strip()
        pwd = self.query_one("#input-login-pwd", Input).value.strip()
        remember = self.query_one("#chk-remember", Checkbox).value

        if not username or not pwd:
            self.notify("Username or password cannot be empty!", severity="error")
            return

        btn_login = self.query_one("#btn-login", Button)
        btn_login.disabled = True
        session = self.app.state.session
        ok = await session.login(username, pwd, remember_me=remember)
        btn_login.disabled = False

        if ok:
            self.notify(f"Hello {session.user.first_name or session.user.username}!")
            self.dismiss(True)
        else:
            self.notify(session.error or "Login failed.", severity="error")
            input_login_pwd = self.query_one("#input-login-pwd", Input)
            input_login_pwd.value = ""
            input_login_pwd.focus()
            input_login_pwd.add_class("-invalid")
