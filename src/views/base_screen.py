from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Label, ListItem, ListView, Markdown

from utils.messages import ModeSwitchedMessage, UserLoginMessage, UserLogoutMessage
from utils.pure import format_price, generate_markdown_table
from views.modal_dialog import DialogModal, QuitDialogModal
from views.scr_login import LoginModal


class Sidebar(Container):
    init_mode = ""

    def compose(self) -> ComposeResult:
        yield Label("User Info", id="label-info-1")
        yield Markdown("", id="md-userinfo")
        yield Button("Log in", id="btn-auth", variant="primary")
        yield Label("Menu", id="label-info-2")
        yield ListView(id="list-menu")

    async def on_mount(self):
        self.init_mode = self.app.current_mode

        list_menu: ListView = self.query_one("#list-menu")
        await list_menu.clear()
        await list_menu.extend(
            [
                ListItem(Label(v), id="list-menu-item-" + k)
                for k, v in self.app.MENU_MODES.items()
            ]
        )
        self.highlight_item(self.init_mode)
        await self.refresh_info()

    async def refresh_info(self) -> None:
        """Re-render the user/cart table and the login button."""
        state = self.app.state
        user = state.session.user
        cart = state.cart.state

        table_rows = [
            ["User", user.username if user else "Guest"],
            ["Cart Items", cart.total_quantity],
            ["Cart Total", format_price(cart.total)],
        ]
        if user and (user.first_name or user.last_name):
            table_rows.insert(1, ["Name", f"{user.first_name} {user.last_name}".strip()])
        md_table_str = generate_markdown_table(None, table_rows, ["l", "l"])
        await self.query_one("#md-userinfo", Markdown).update(md_table_str)

        btn_auth = self.query_one("#btn-auth", Button)
        btn_auth.label = "Log out" if user else "Log in"
        btn_auth.variant = "error" if user else "primary"

    async def on_list_view_selected(self, event: ListView.Selected):
        selected_mode = event.item.id.removeprefix("list-menu-item-")
        self.highlight_item(self.init_mode)
        if self.app.current_mode != selected_mode:
            self.post_message(ModeSwitchedMessage(self.app.current_mode, selected_mode))
            await self.app.switch_mode(selected_mode)

    @on(Button.Pressed, "#btn-auth")
    @work(exclusive=True)
    async def handle_auth(self):
        if self.app.state.session.user is None:
            if await self.app.push_screen_wait(LoginModal()):
                self.post_message(UserLoginMessage())
            return

        if not await self.app.push_screen_wait(
            DialogModal(
                "Log out?",
                confirm_text="Log out",
                cancel_text="Cancel",
                tone="warning",
                detail="Items stay in the local cart.",
            )
        ):
            return

        self.post_message(UserLogoutMessage())

    def highlight_item(self, mode_str: str):
        list_menu = self.query_one("#list-menu")
        for item in list_menu.children:
            item.highlighted = mode_str in item.id


class BaseScreen(Screen):
    """
    Inherited by all screens, contains common elements like
    headers, footers, sidebar, and keybindings.
    """

    BINDINGS = [
        Binding("ctrl+z", "quit", "Quit App", show=True),
    ]

    def __init__(self):
        super().__init__()

        self.configure()

    def configure(
        self,
        header_sub_title: str = "Storefront",
        show_sidebar: bool = True,
    ) -> None:
        """
        configure behavior of the base screen
        """
        self.app.title = "Storefront"
        self.sub_title = header_sub_title
        for k, v in self.app.MODES.items():
            if isinstance(self, v) and k in self.app.MENU_MODES:
                self.sub_title = self.app.MENU_MODES[k]

        self._show_sidebar = show_sidebar

    def compose(self) -> ComposeResult:
        if self._show_sidebar:
            yield Sidebar()
        yield Header()
        yield Footer(show_command_palette=False)

    async def refresh_sidebar(self) -> None:
        for sidebar in self.query(Sidebar):
            await sidebar.refresh_info()

    @work()
    async def action_quit(self):
        await self.app.push_screen_wait(QuitDialogModal())
