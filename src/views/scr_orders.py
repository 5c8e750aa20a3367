from typing import Dict, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, MarkdownViewer

from db.models import Order
from db.orders import can_advance
from utils.messages import ModeSwitchedMessage, NewOrderMessage, OrderStatusChangedMessage
from utils.pure import format_money, generate_markdown_table
from views.base_screen import BaseScreen

# admin action buttons: id -> status the button moves an order to
STATUS_BUTTONS = {
    "btn-mark-processing": "processing",
    "btn-mark-shipped": "shipped",
    "btn-mark-delivered": "delivered",
}


class OrdersScreen(BaseScreen):
    """
    Order tracking. Customers see their own orders; admins see every order
    and can move the highlighted one to its next status.

    Layout:
    - Markdown detail view at the top, showing the highlighted order.
    - Orders table below, oldest first.
    - Status buttons (admins only), each enabled only from the status
      directly before it.
    """

    def __init__(self) -> None:
        super().__init__()
        self._orders: Dict[str, Order] = {}
        self._customers: Dict[str, str] = {}
        self.selected_id: Optional[str] = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-order-detail", show_table_of_contents=False)
            yield DataTable(id="table-orders")
        with Horizontal(id="hort-status-btns"):
            yield Button("Mark Processing", id="btn-mark-processing")
            yield Button("Mark Shipped", id="btn-mark-shipped")
            yield Button("Mark Delivered", id="btn-mark-delivered")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Order", "Date", "Customer", "Items", "Total", "Payment", "Status")

    @on(ScreenResume)
    @on(ModeSwitchedMessage)
    @on(NewOrderMessage)
    @on(OrderStatusChangedMessage)
    @work(exclusive=True, group="orders")
    async def load_orders(self) -> None:
        state = self.app.state
        self.query_one("#hort-status-btns").display = state.is_admin

        orders = await state.orders.list_orders(state.user)
        self._orders = {o.id: o for o in orders}
        self._customers = {a.id: a.name for a in await state.identity.list_accounts()}

        table = self.query_one(DataTable)
        table.clear()
        for o in orders:
            table.add_row(
                o.id[:8],
                o.created_at.strftime("%Y-%m-%d"),
                self._customers.get(o.user_id, "?"),
                o.item_count,
                format_money(o.total),
                o.payment_method,
                o.status.upper(),
                key=o.id,
            )

        if self.selected_id in self._orders:
            table.move_cursor(row=table.get_row_index(self.selected_id))
        elif orders:
            self.selected_id = orders[0].id
        else:
            self.selected_id = None
        self.render_detail()

    @on(DataTable.RowHighlighted)
    def handle_row_highlight(self, event: DataTable.RowHighlighted) -> None:
        self.selected_id = event.row_key.value
        self.render_detail()

    def render_detail(self) -> None:
        order = self._orders.get(self.selected_id) if self.selected_id else None
        self._refresh_buttons(order)

        viewer = self.query_one("#md-order-detail", MarkdownViewer)
        if not order:
            viewer.document.update("### No orders found")
            return

        header = (
            f"### Order #{order.id[:8]}  `{order.status.upper()}`\n\n"
            f"Date: {order.created_at:%Y-%m-%d %H:%M}  \n"
            f"Customer: {self._customers.get(order.user_id, order.user_id)}  \n"
            f"Payment: {order.payment.describe() if order.payment else order.payment_method}\n\n"
        )
        rows = [
            [
                line.product.name,
                line.quantity,
                format_money(line.product.price),
                format_money(line.line_total),
            ]
            for line in order.items
        ]
        table = generate_markdown_table(
            ["Product", "Qty", "Unit Price", "Line Total"], rows, ["l", "r", "r", "r"]
        )
        footer = f"\n\n**Total:** {format_money(order.total)}"
        viewer.document.update(header + table + footer)

    def _refresh_buttons(self, order: Optional[Order]) -> None:
        for button_id, target in STATUS_BUTTONS.items():
            button = self.query_one(f"#{button_id}", Button)
            button.disabled = order is None or not can_advance(order.status, target)

    @on(Button.Pressed, "#btn-mark-processing")
    @on(Button.Pressed, "#btn-mark-shipped")
    @on(Button.Pressed, "#btn-mark-delivered")
    @work(exclusive=True)
    async def handle_advance(self, event: Button.Pressed) -> None:
        if not self.selected_id:
            return
        target = STATUS_BUTTONS[event.button.id]
        if await self.app.state.orders.advance_status(self.selected_id, target):
            self.notify(f"Order marked {target}.")
            self.post_message(OrderStatusChangedMessage(self.selected_id, target))
        else:
            self.notify(f"Order cannot be marked {target}.", severity="error")
