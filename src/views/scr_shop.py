from typing import Dict, List

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.events import ScreenResume
from textual.widgets import DataTable, Input, Label

from db.models import Product
from utils.messages import CatalogChangedMessage, ModeSwitchedMessage
from utils.pure import format_money
from views.base_screen import BaseScreen
from views.modal_prod_detail import ProdDetailModal


class ShopScreen(BaseScreen):
    """
    Browse the catalog, for customers. Typing narrows the table by name or
    category; enter opens the product.
    """

    # only here to be displayed in footer
    BINDINGS = [
        Binding("enter", "noop", "View Product", show=True, key_display="⏎"),
    ]

    def __init__(self):
        super().__init__()
        self._products: Dict[str, Product] = {}

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield Input(id="input-filter", placeholder="Type to filter products...")
        yield DataTable(id="table-products")
        yield Label("", id="label-product-cnt")

    def on_mount(self):
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Name", "Category", "Price", "Stock")
        self.query_one("#input-filter").focus()

    def action_noop(self) -> None:
        pass

    @on(ScreenResume)
    @on(ModeSwitchedMessage)
    @on(CatalogChangedMessage)
    @on(Input.Changed, "#input-filter")
    @work(exclusive=True, group="products")
    async def load_products(self) -> None:
        products = await self.app.state.catalog.list_products()
        self._products = {p.id: p for p in products}

        needle = self.query_one("#input-filter", Input).value.strip().lower()
        shown: List[Product] = [
            p
            for p in products
            if not needle or needle in p.name.lower() or needle in p.category.lower()
        ]

        table = self.query_one(DataTable)
        table.clear()
        for p in shown:
            stock = str(p.stock) if p.stock > 0 else "Out of Stock"
            table.add_row(p.name, p.category, format_money(p.price), stock, key=p.id)

        if not products:
            caption = "No products available yet."
        else:
            caption = f"{len(shown)} of {len(products)} product(s)"
        self.query_one("#label-product-cnt", Label).update(caption)

    @on(DataTable.RowSelected)
    @work()
    async def handle_row_selected(self, event: DataTable.RowSelected) -> None:
        product = self._products.get(event.row_key.value)
        if product is None:
            return
        await self.app.push_screen_wait(ProdDetailModal(product))
