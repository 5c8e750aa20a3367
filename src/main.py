from typing import Dict

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

from utils.logger import get_logger
from utils.messages import ModeSwitchedMessage, QuitRequestedMessage, UserLogoutMessage
from utils.state import GlobalState
from views.scr_admin_products import ManageProductsScreen
from views.scr_cart import CartScreen
from views.scr_login import LoginScreen
from views.scr_orders import OrdersScreen
from views.scr_shop import ShopScreen

_logger = get_logger(__name__)


class StorefrontApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "shop": ShopScreen,
        "cart": CartScreen,
        "orders": OrdersScreen,
        "products": ManageProductsScreen,
    }

    ADMIN_MODES = {"products": "Manage Products", "orders": "All Orders"}
    CUSTOMER_MODES = {"shop": "Shop", "cart": "Cart", "orders": "My Orders"}

    CSS_PATH = "views/storefront.tcss"

    state: GlobalState

    def __init__(self, state: GlobalState | None = None):
        super().__init__()
        self.state = state or GlobalState.create()

    def menu_modes(self) -> Dict[str, str]:
        return self.ADMIN_MODES if self.state.is_admin else self.CUSTOMER_MODES

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        self.main_flow(restore=True)

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    @on(UserLogoutMessage)
    @work
    async def handle_user_logout(self):
        await self.state.end_session()
        self.notify("Logout successful.")
        self.main_flow()

    @on(QuitRequestedMessage)
    def handle_quit(self):
        # the session is kept so the next start skips the login screen
        self.exit()

    @work
    async def main_flow(self, restore: bool = False):
        user = await self.state.start() if restore else None
        if user:
            self.notify(f"Welcome back, {user.name}!")
        else:
            await self.push_screen_wait(LoginScreen())

        landing = "products" if self.state.is_admin else "shop"
        _logger.info(f"Session started for {self.state.user.id}, opening {landing}")
        self.post_message(ModeSwitchedMessage(self.current_mode, landing))
        await self.switch_mode(landing)


def run() -> None:
    app = StorefrontApp()
    app.run()


if __name__ == "__main__":
    run()
