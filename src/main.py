from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

from utils.logger import get_logger
from utils.messages import (
    CartChangedMessage,
    ModeSwitchedMessage,
    QuitRequestedMessage,
    UserLoginMessage,
    UserLogoutMessage,
)
from utils.state import GlobalState
from views.base_screen import Sidebar
from views.scr_cart import CartScreen
from views.scr_manage_products import ManageProductsScreen
from views.scr_products import ProductsScreen

_logger = get_logger(__name__)


class StorefrontApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "products": ProductsScreen,
        "cart": CartScreen,
        "manage": ManageProductsScreen,
    }

    MENU_MODES = {
        "products": "Products",
        "cart": "Cart",
        "manage": "Manage Products",
    }

    CSS_PATH = "styles/storefront.tcss"

    state: GlobalState

    def __init__(self, state: GlobalState = None):
        super().__init__()
        self.state = state or GlobalState.build()

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        await self.state.start()
        await self.switch_mode("products")

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    @on(CartChangedMessage)
    @on(UserLoginMessage)
    async def handle_state_changed(self) -> None:
        for sidebar in self.screen.query(Sidebar):
            await sidebar.refresh_info()

    @on(ModeSwitchedMessage)
    def handle_mode_switched(self, message: ModeSwitchedMessage) -> None:
        _logger.debug(f"Mode switched: {message.old_mode} -> {message.new_mode}")

    @on(UserLogoutMessage)
    @work
    async def handle_user_logout(self):
        await self.state.session.logout()
        self.notify("Logout successful.")
        await self.handle_state_changed()

    @on(QuitRequestedMessage)
    @work
    async def handle_quit(self):
        await self.state.close()
        self.exit()


def run():
    app = StorefrontApp()
    app.run()


if __name__ == "__main__":
    run()
