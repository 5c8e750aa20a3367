from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, MarkdownViewer

from db.models import Product
from utils.messages import CartChangedMessage
from utils.pure import describe_image, format_money, generate_markdown_table


class ProdDetailModal(ModalScreen[bool]):
    """
    Product detail with an Add to Cart button.
    Dismisses with True if the cart changed.
    """

    BINDINGS = [Binding("escape", "go_back", "Back", show=False)]

    def __init__(self, product: Product) -> None:
        super().__init__()
        self._prod = product

    def compose(self) -> ComposeResult:
        with Vertical(id="div-prod-detail"):
            yield MarkdownViewer("", show_table_of_contents=False)
            with Horizontal():
                yield Button("Go Back", id="btn-quit")
                yield Button("Add to Cart", id="btn-addcart", variant="primary")

    async def on_mount(self):
        prod = self._prod
        rows = [
            ["Category", prod.category],
            ["Price", format_money(prod.price)],
            ["In Stock", prod.stock],
            ["Image", describe_image(prod.image)],
        ]
        md = (
            f"### {prod.name}\n\n{prod.description}\n\n"
            + generate_markdown_table(["Attribute", "Value"], rows, ["l", "l"])
        )
        await self.query_one(MarkdownViewer).document.update(md)

        order_btn = self.query_one("#btn-addcart", Button)
        if prod.stock == 0:
            order_btn.label = "Out of Stock"
            order_btn.disabled = True
            order_btn.variant = "warning"
            self.query_one("#btn-quit").focus()
        else:
            order_btn.focus()

    def action_go_back(self) -> None:
        self.dismiss(False)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(False)

    @on(Button.Pressed, "#btn-addcart")
    @work(exclusive=True)
    async def handle_addcart(self):
        await self.app.state.cart.add_to_cart(self._prod)
        self.app.notify(f"{self._prod.name} added to cart!")
        self.app.post_message(CartChangedMessage())
        self.dismiss(True)
