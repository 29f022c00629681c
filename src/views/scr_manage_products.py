from __future__ import annotations

from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.validation import Number
from textual.widgets import Button, Input, Label, MarkdownViewer, OptionList

from db.models import Product
from utils.pure import format_price, generate_markdown_table
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal


class ManageProductsScreen(BaseScreen):
    """
    Pick a product from the catalog and update its price/stock or delete it.
    Changes show up locally only after the service confirmed them.
    """

    current: Optional[Product] = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield Input(id="input-search", placeholder="Search for product...")
            yield OptionList(id="optlist-prods")
            yield MarkdownViewer(id="md-prod", show_table_of_contents=False)
            with Horizontal(id="hort-controls"):
                with Horizontal(id="div-new-inputs"):
                    with Vertical():
                        yield Label("New Price ($):")
                        yield Input(
                            placeholder="leave blank to keep",
                            id="input-price",
                            type="number",
                            validators=[Number(minimum=0.0)],
                        )

                    with Vertical():
                        yield Label("New Stock:")
                        yield Input(
                            placeholder="leave blank to keep",
                            id="input-stock",
                            type="integer",
                            validators=[Number(minimum=0)],
                        )
                with Horizontal(id="div-button"):
                    yield Button("Update", id="btn-update", variant="success")
                    yield Button("Delete", id="btn-delete", variant="error")

    def on_mount(self) -> None:
        self.query_one("#input-search", Input).focus()
        self.query_one("#md-prod").add_class("hidden")
        self.query_one("#hort-controls").add_class("hidden")
        self.fill_optlist()

    def on_input_changed(self, message: Input.Changed) -> None:
        if message.input.id == "input-search":
            self.app.state.catalog.set_search(message.value)
            self.query_one("#optlist-prods").remove_class("hidden")
            self.update_optlist()

    @work(exclusive=True, group="search")
    async def update_optlist(self):
        await self.app.state.catalog.wait_idle()
        self.fill_optlist()

    def fill_optlist(self) -> None:
        opt_list = self.query_one("#optlist-prods", OptionList)
        opt_list.clear_options()
        opt_list.add_options(
            [f"{p.id} {p.title}" for p in self.app.state.catalog.result.products]
        )

    def on_option_list_option_selected(self, message: OptionList.OptionSelected):
        product_id = int(str(message.option.prompt).split(" ")[0])
        self.current = next(
            (p for p in self.app.state.catalog.result.products if p.id == product_id),
            None,
        )
        if self.current is None:
            return
        self.render_product()

        self.query_one("#optlist-prods").add_class("hidden")
        self.query_one("#md-prod").remove_class("hidden")
        self.query_one("#hort-controls").remove_class("hidden")

    @work(exclusive=True)
    async def render_product(self) -> None:
        prod = self.current
        rows = [
            ["ID", prod.id],
            ["Title", prod.title],
            ["Brand", prod.brand],
            ["Category", prod.category],
            ["Price", format_price(prod.price)],
            ["Stock", prod.stock],
        ]
        md_table = generate_markdown_table(["Attribute", "Value"], rows, ["l", "l"])
        await self.query_one("#md-prod", MarkdownViewer).document.update(
            f"### Product Detail: {prod.title}\n\n" + md_table
        )

        # prefill inputs with current values for convenience
        self.query_one("#input-price", Input).value = f"{prod.price:.2f}"
        self.query_one("#input-stock", Input).value = str(prod.stock)

    @on(Button.Pressed, "#btn-update")
    @work(exclusive=True)
    async def handle_update(self) -> None:
        prod = self.current
        price_input = self.query_one("#input-price", Input)
        stock_input = self.query_one("#input-stock", Input)

        changes = {}
        if price_input.value:
            if not price_input.is_valid:
                price_input.focus()
                return
            changes["price"] = float(price_input.value)
        if stock_input.value:
            if not stock_input.is_valid:
                stock_input.focus()
                return
            changes["stock"] = int(stock_input.value)
        changes = {k: v for k, v in changes.items() if getattr(prod, k) != v}

        if not changes:
            self.notify("Nothing to update.", severity="warning")
            return

        catalog = self.app.state.catalog
        updated = await catalog.update_product(prod.id, changes)
        if updated is None:
            self.notify(catalog.result.error, severity="error")
            return

        self.notify("Product updated successfully.")
        self.current = next(
            (p for p in catalog.result.products if p.id == prod.id), updated
        )
        self.render_product()

    @on(Button.Pressed, "#btn-delete")
    @work(exclusive=True)
    async def handle_delete(self) -> None:
        prod = self.current
        if not await self.app.push_screen_wait(
            DialogModal(
                f"Delete '{prod.title}'?",
                confirm_text="Delete",
                cancel_text="Cancel",
                tone="error",
                detail=f"Product #{prod.id}, {prod.stock} in stock",
            )
        ):
            return

        catalog = self.app.state.catalog
        if not await catalog.delete_product(prod.id):
            self.notify(catalog.result.error, severity="error")
            return

        self.notify("Product deleted.")
        self.current = None
        self.query_one("#md-prod").add_class("hidden")
        self.query_one("#hort-controls").add_class("hidden")
        self.query_one("#optlist-prods").remove_class("hidden")
        self.fill_optlist()
