from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, HorizontalGroup, VerticalScroll
from textual.events import ScreenResume
from textual.widgets import Button, Label, Rule

from db.models import CartLine
from utils.messages import CartChangedMessage, ModeSwitchedMessage
from utils.pure import format_money
from views.base_screen import BaseScreen
from views.modal_checkout import CheckoutModal
from views.modal_dialog import ConfirmModal


class CartLineWidget(HorizontalGroup):
    """One cart line with -/+ and remove controls."""

    def __init__(self, line: CartLine):
        super().__init__()
        self.line = line

    def compose(self) -> ComposeResult:
        line = self.line
        with Container(id="div-item"):
            yield Label(line.product.name, id="label-item-name")
            yield Label(format_money(line.product.price), id="label-item-price")
            yield Label(format_money(line.line_total), id="label-item-total")
        with Horizontal(id="div-actions"):
            yield Button("-", id="btn-dec")
            yield Label(str(line.quantity), id="label-item-qty")
            yield Button("+", id="btn-inc")
            yield Button("Remove", id="btn-remove", variant="error")

    @on(Button.Pressed, "#btn-dec")
    async def handle_dec(self):
        # dropping to zero removes the line
        await self.app.state.cart.update_quantity(
            self.line.product_id, self.line.quantity - 1
        )
        self.post_message(CartChangedMessage())

    @on(Button.Pressed, "#btn-inc")
    async def handle_inc(self):
        await self.app.state.cart.update_quantity(
            self.line.product_id, self.line.quantity + 1
        )
        self.post_message(CartChangedMessage())

    @on(Button.Pressed, "#btn-remove")
    async def handle_remove(self):
        await self.app.state.cart.remove_item(self.line.product_id)
        self.post_message(CartChangedMessage())
        self.notify("Item removed from cart")


class CartScreen(BaseScreen):
    """
    Cart contents, total, and checkout.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield VerticalScroll(id="vertscroll-content")
        yield Label("Total: $0.00", id="label-cart-total")
        yield Rule(line_style="dashed")
        with Horizontal(id="hort-buttons"):
            yield Button("Clear Cart", id="btn-clear-cart")
            yield Button("Checkout", id="btn-checkout", variant="primary")

    @on(CartChangedMessage)
    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @work(exclusive=True, group="cart")  # concurrent reloads would mount duplicates
    async def handle_cart_change(self):
        cart = self.app.state.cart
        lines = await cart.list_lines()

        content = self.query_one("#vertscroll-content")
        await content.remove_children()
        await content.mount_all([CartLineWidget(line) for line in lines])

        if not lines:
            await content.mount(Label("Your cart is empty", id="label-empty"))

        total = await cart.total_price()
        items = await cart.total_items()
        self.query_one("#label-cart-total", Label).update(
            f"Total: {format_money(total)} ({items} item(s))"
        )
        self.query_one("#btn-checkout", Button).disabled = not lines

    @on(Button.Pressed, "#btn-clear-cart")
    @work()
    async def handle_clear_cart(self) -> None:
        if not await self.app.state.cart.list_lines():
            self.app.notify("Cart is empty", severity="warning")
            return

        if await self.app.push_screen_wait(
            ConfirmModal("Do you really want to remove all items from cart?", "error")
        ):
            await self.app.state.cart.clear()
            self.post_message(CartChangedMessage())

    @on(Button.Pressed, "#btn-checkout")
    @work()
    async def handle_checkout(self) -> None:
        if not await self.app.state.cart.list_lines():
            self.app.notify("Cart is empty", severity="error")
            return

        await self.app.push_screen_wait(CheckoutModal())
        self.post_message(CartChangedMessage())
