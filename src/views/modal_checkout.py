from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, LoadingIndicator, MarkdownViewer, Select

from db.cart import CheckoutError
from db.models import CardPayment, PaymentDetails, TransferPayment
from utils.messages import CartChangedMessage, NewOrderMessage
from utils.pure import format_money, generate_markdown_table
from views.modal_dialog import ConfirmModal


class CheckoutModal(ModalScreen[bool]):
    """
    Order summary plus payment: card, or manual bank transfer with a
    reference number. Dismisses with True once the order is placed.
    """

    def compose(self) -> ComposeResult:
        with Vertical(id="div-checkout"):
            yield MarkdownViewer("", show_table_of_contents=False)
            yield Label("Payment Method")
            yield Select(
                [("Credit / Debit Card", "card"), ("Bank Transfer", "manual")],
                value="card",
                allow_blank=False,
                id="select-pay-method",
            )
            with Vertical(id="div-pay-card"):
                yield Input(placeholder="Cardholder name", id="input-card-holder")
                yield Input(placeholder="Card number", id="input-card-number")
                with Horizontal():
                    yield Input(placeholder="MM/YY", id="input-card-expiry")
                    yield Input(placeholder="CVV", password=True, id="input-card-cvv")
            with Vertical(id="div-pay-manual"):
                yield Label("Transfer the total, then enter the bank reference.")
                yield Input(placeholder="Reference number", id="input-transfer-ref")
            yield LoadingIndicator(id="loading-pay")
            with Horizontal(id="div-checkout-btns"):
                yield Button("Go Back", id="btn-quit")
                yield Button("Place Order", id="btn-submit", variant="primary")

    async def on_mount(self):
        cart = self.app.state.cart
        lines = await cart.list_lines()
        rows = [
            [
                line.product.name,
                format_money(line.product.price),
                line.quantity,
                format_money(line.line_total),
            ]
            for line in lines
        ]
        md = generate_markdown_table(
            ["Product", "Unit Price", "Quantity", "Line Total"],
            rows,
            ["l", "r", "c", "r"],
        )
        md += f"\n\n**Total:** {format_money(await cart.total_price())}"
        await self.query_one(MarkdownViewer).document.update("### Order Summary\n\n" + md)

        self.query_one("#loading-pay").display = False
        self.show_payment_fields("card")
        self.query_one("#input-card-holder").focus()

    def on_key(self, event) -> None:
        if event.key == "escape" and not self.query_one("#btn-quit").disabled:
            self.dismiss(False)

    @on(Select.Changed, "#select-pay-method")
    def handle_method_change(self, event: Select.Changed) -> None:
        self.show_payment_fields(event.value)

    def show_payment_fields(self, method) -> None:
        self.query_one("#div-pay-card").display = method == "card"
        self.query_one("#div-pay-manual").display = method == "manual"

    def read_payment(self) -> Optional[PaymentDetails]:
        method = self.query_one("#select-pay-method", Select).value
        if method == "card":
            return CardPayment.from_form(
                self.query_one("#input-card-holder", Input).value,
                self.query_one("#input-card-number", Input).value,
                self.query_one("#input-card-expiry", Input).value,
                self.query_one("#input-card-cvv", Input).value,
            )
        reference = self.query_one("#input-transfer-ref", Input).value.strip()
        return TransferPayment(reference) if reference else None

    def set_busy(self, busy: bool) -> None:
        self.query_one("#loading-pay").display = busy
        for button in self.query(Button):
            button.disabled = busy

    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True)
    async def handle_submit(self):
        payment = self.read_payment()
        if payment is None:
            self.notify("Please fill in all payment details.", severity="error")
            return

        if not await self.app.push_screen_wait(
            ConfirmModal("Place order? This cannot be undone.", "positive")
        ):
            return

        # the payment delay cannot be cancelled, so lock the dialog
        self.set_busy(True)
        try:
            order = await self.app.state.cart.checkout(payment)
        except CheckoutError as e:
            self.set_busy(False)
            self.notify(str(e), severity="error")
            return

        self.notify(f"Order placed successfully! Order #{order.id[:8]}")
        self.app.post_message(NewOrderMessage())
        self.app.post_message(CartChangedMessage())
        self.dismiss(True)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(False)
