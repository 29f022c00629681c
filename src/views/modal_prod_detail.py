from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.validation import Number
from textual.widgets import Button, Input, Label, MarkdownViewer

from db.models import Product
from utils.pure import format_price, generate_markdown_table


class ProdDetailModal(ModalScreen[bool]):
    """
    prod detail, plus add to cart
    Will return true if cart changed, false if not
    """

    add_qty = reactive(1)

    def __init__(self, product_id: int) -> None:
        super().__init__()

        self._product_id = product_id
        self._prod: Product = None

    def compose(self) -> ComposeResult:
        with Horizontal(id="hort-prod-detail"):
            yield MarkdownViewer("", show_table_of_contents=False)
            with Vertical(id="div-add"):
                yield Label("", id="label-in-cart")
                yield Label("Quantity")
                with Horizontal():
                    yield Button("-", id="btn-sub-qty")
                    yield Input(value="1", id="input-add-qty", type="integer")
                    yield Button("+", id="btn-add-qty")
                with Horizontal():
                    yield Button("Go Back", id="btn-quit")
                    yield Button("Add to Cart", id="btn-addcart", variant="primary")

    async def on_mount(self):
        catalog = self.app.state.catalog
        self._prod = await catalog.fetch_product(self._product_id)
        add_btn = self.query_one("#btn-addcart", Button)

        if self._prod is None:
            await self.query_one(MarkdownViewer).document.update(
                f"### {catalog.detail_error}"
            )
            add_btn.disabled = True
            return

        prod = self._prod
        table_rows = [
            ["Brand", prod.brand],
            ["Category", prod.category],
            ["Price", format_price(prod.price)],
            ["Discount", f"{prod.discount_percentage:g}%"],
            ["You Pay", format_price(prod.discounted_price)],
            ["Rating", f"{prod.rating:.1f}"],
            ["Stock", prod.stock],
        ]
        md_table_str = generate_markdown_table(
            ["Attribute", "Value"], table_rows, ["l", "l"]
        )
        header_md = f"### {prod.title}\n\n{prod.description}\n\n"
        await self.query_one(MarkdownViewer).document.update(header_md + md_table_str)

        if prod.stock < 1:
            add_btn.label = "Out of Stock"
            add_btn.disabled = True
            add_btn.variant = "warning"

        self.query_one("#input-add-qty").validators = [
            Number(minimum=1, maximum=max(prod.stock, 1))
        ]
        self.render_in_cart()
        self.query_one("#input-add-qty").focus()

    def render_in_cart(self) -> None:
        in_cart = self.app.state.cart.get_item_quantity(self._product_id)
        self.query_one("#label-in-cart", Label).update(
            f"In cart: {in_cart}" if in_cart else ""
        )

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    async def on_input_changed(self, message: Input.Changed) -> None:
        if (
            message.input.id == "input-add-qty"
            and message.input.is_valid
            and self.focused == message.input
        ):
            self.add_qty = int(message.value)

    def validate_add_qty(self, qty: int) -> int:
        upper = self._prod.stock if self._prod else 1
        return min(max(qty, 1), max(upper, 1))

    async def watch_add_qty(self, qty: int):
        if self._prod is None:
            return
        self.query_one("#btn-sub-qty").disabled = qty <= 1
        self.query_one("#btn-add-qty").disabled = qty >= self._prod.stock
        self.query_one("#input-add-qty", Input).value = str(qty)

    @on(Button.Pressed, "#btn-add-qty")
    def handle_add_qty(self):
        self.add_qty += 1

    @on(Button.Pressed, "#btn-sub-qty")
    def handle_sub_qty(self):
        self.add_qty -= 1

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(False)

    @on(Button.Pressed, "#btn-addcart")
    @work(exclusive=True)
    async def handle_addcart(self):
        cart = self.app.state.cart
        synced = await cart.add_to_cart(self._prod, self.add_qty)

        if not self.app.state.session.is_authenticated:
            self.app.notify(cart.state.error, severity="error")
            return

        if synced:
            self.app.notify(f"Added {self.add_qty} x {self._prod.title} to cart.")
        else:
            self.app.notify(cart.state.error, severity="warning")
        self.dismiss(True)
