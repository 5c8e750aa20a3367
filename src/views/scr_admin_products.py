from __future__ import annotations

from typing import Dict, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.validation import Number
from textual.widgets import Button, DataTable, Input, Label

from db.models import Product
from utils.messages import CatalogChangedMessage, ModeSwitchedMessage
from utils.pure import encode_image, format_money, parse_price, parse_stock
from views.base_screen import BaseScreen
from views.modal_dialog import ConfirmModal

FORM_INPUTS = (
    "#input-name",
    "#input-category",
    "#input-descr",
    "#input-price",
    "#input-stock",
    "#input-image",
)


class ManageProductsScreen(BaseScreen):
    """
    Admins add products with the form on top and delete them from the
    table below.
    """

    def __init__(self) -> None:
        super().__init__()
        self._products: Dict[str, Product] = {}
        self.current_id: Optional[str] = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="div-product-form"):
            yield Label("Add New Product")
            with Horizontal():
                yield Input(placeholder="Product name", id="input-name")
                yield Input(placeholder="Category", id="input-category")
            yield Input(placeholder="Description", id="input-descr")
            with Horizontal():
                yield Input(
                    placeholder="Price ($)",
                    id="input-price",
                    type="number",
                    validators=[Number(minimum=0.0)],
                )
                yield Input(
                    placeholder="Stock",
                    id="input-stock",
                    type="integer",
                    validators=[Number(minimum=0)],
                )
            yield Input(
                placeholder="Image URL or path to an image file (optional)",
                id="input-image",
            )
            yield Button("Add Product", id="btn-add", variant="success")
        yield DataTable(id="table-admin-products")
        with Horizontal(id="hort-product-btns"):
            yield Button("Delete Product", id="btn-delete", variant="error")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Name", "Category", "Price", "Stock", "Description")
        self.query_one("#input-name").focus()

    @on(ScreenResume)
    @on(ModeSwitchedMessage)
    @on(CatalogChangedMessage)
    @work(exclusive=True, group="products")
    async def load_products(self) -> None:
        products = await self.app.state.catalog.list_products()
        self._products = {p.id: p for p in products}

        table = self.query_one(DataTable)
        table.clear()
        for p in products:
            table.add_row(
                p.name, p.category, format_money(p.price), p.stock, p.description, key=p.id
            )
        if self.current_id not in self._products:
            self.current_id = products[0].id if products else None
        self.query_one("#btn-delete", Button).disabled = self.current_id is None

    @on(DataTable.RowHighlighted)
    def handle_row_highlight(self, event: DataTable.RowHighlighted) -> None:
        self.current_id = event.row_key.value

    @on(Button.Pressed, "#btn-add")
    @work(exclusive=True)
    async def handle_add(self) -> None:
        state = self.app.state
        if not state.is_admin:
            self.notify("You must be logged in as admin", severity="error")
            return

        values = {sel: self.query_one(sel, Input).value.strip() for sel in FORM_INPUTS}
        for sel in FORM_INPUTS[:5]:
            if not values[sel]:
                field = self.query_one(sel, Input)
                field.add_class("-invalid")
                field.focus()
                self.notify("Make sure all required fields are filled.", severity="error")
                return

        try:
            price = parse_price(values["#input-price"])
            stock = parse_stock(values["#input-stock"])
            image = encode_image(values["#input-image"])
        except ValueError as e:
            self.notify(str(e), severity="error")
            return

        await state.catalog.add_product(
            name=values["#input-name"],
            description=values["#input-descr"],
            price=price,
            category=values["#input-category"],
            stock=stock,
            image=image,
            admin_id=state.user.id,
        )
        self.notify("Product added successfully!")

        for sel in FORM_INPUTS:
            self.query_one(sel, Input).value = ""
        self.query_one("#input-name").focus()
        self.post_message(CatalogChangedMessage())

    @on(Button.Pressed, "#btn-delete")
    @work(exclusive=True)
    async def handle_delete(self) -> None:
        product = self._products.get(self.current_id) if self.current_id else None
        if product is None:
            return

        if not await self.app.push_screen_wait(
            ConfirmModal(f'Are you sure you want to delete "{product.name}"?', "error")
        ):
            return

        if await self.app.state.catalog.delete_product(product.id):
            self.notify("Product deleted successfully!")
        self.post_message(CatalogChangedMessage())
