from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, HorizontalGroup, VerticalScroll
from textual.events import ScreenResume
from textual.message import Message
from textual.widgets import Button, Label, Rule

from db.models import CartItem
from utils.messages import CartChangedMessage, UserLoginMessage, UserLogoutMessage
from utils.pure import format_price, summarize_cart
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal
from views.modal_prod_detail import ProdDetailModal


class CartItemQtyMessage(Message):
    bubble = True

    def __init__(self, product_id: int, quantity: int) -> None:
        super().__init__()
        self.product_id = product_id
        self.quantity = quantity


class CartItemRemoveMessage(Message):
    bubble = True

    def __init__(self, product_id: int) -> None:
        super().__init__()
        self.product_id = product_id


class CartItemDetailMessage(Message):
    bubble = True

    def __init__(self, product_id: int) -> None:
        super().__init__()
        self.product_id = product_id


class CartItemWidget(HorizontalGroup):
    def __init__(self, item: CartItem):
        super().__init__()
        self.item = item

    def compose(self):
        item = self.item
        with Container(classes="div-cart-item-group"):
            with Container(classes="div-item"):
                yield Label(item.title, classes="label-item-name")
                yield Label(
                    f"{format_price(item.discounted_price)} each"
                    + (f" ({format_price(item.price)})" if item.discount_percentage else ""),
                    classes="label-item-price",
                )
                yield Label(format_price(item.total), classes="label-item-total")
            with Container(classes="div-actions"):
                yield Button("-", classes="btn-dec")
                yield Label(str(item.quantity), classes="label-item-qty")
                yield Button("+", classes="btn-inc")
                yield Button("Details", classes="btn-details")
                yield Button("Remove", classes="btn-remove", variant="error")

    @on(Button.Pressed, ".btn-dec")
    def handle_dec(self):
        self.post_message(CartItemQtyMessage(self.item.id, self.item.quantity - 1))

    @on(Button.Pressed, ".btn-inc")
    def handle_inc(self):
        self.post_message(CartItemQtyMessage(self.item.id, self.item.quantity + 1))

    @on(Button.Pressed, ".btn-details")
    def handle_details(self):
        self.post_message(CartItemDetailMessage(self.item.id))

    @on(Button.Pressed, ".btn-remove")
    def handle_remove(self):
        self.post_message(CartItemRemoveMessage(self.item.id))


class CartScreen(BaseScreen):
    """
    cart lines, quantities and the price summary
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield VerticalScroll(id="vertscroll-content")
        yield Label("", id="label-cart-summary")
        yield Label("", id="label-cart-status")
        yield Rule(line_style="dashed")
        with Horizontal(id="hort-buttons"):
            yield Button("Clear Cart", id="btn-clear-cart")
            yield Button("Sync", id="btn-sync", variant="primary")

    async def on_mount(self):
        self.render_cart()

    @on(CartChangedMessage)
    @on(UserLoginMessage)
    @on(UserLogoutMessage)
    @on(ScreenResume)
    @work(exclusive=True, group="render")  # exclusive, else remounts race and duplicate rows
    async def render_cart(self):
        cart = self.app.state.cart
        items = cart.items

        content = self.query_one("#vertscroll-content")
        await content.remove_children()
        await content.mount_all([CartItemWidget(item) for item in items])

        if not items:
            content.add_class("no-items")
        else:
            content.remove_class("no-items")

        summary = summarize_cart(cart.state.total)
        lines = [
            f"{cart.state.total_quantity} item(s)",
            f"Subtotal: {format_price(summary.subtotal)}",
            "Shipping: "
            + ("Free" if summary.shipping == 0 else format_price(summary.shipping)),
            f"Tax: {format_price(summary.tax)}",
            f"Total: {format_price(summary.total)}",
        ]
        if summary.shipping and items:
            lines.append(
                f"Add {format_price(summary.free_shipping_remaining)} more for free shipping!"
            )
        self.query_one("#label-cart-summary", Label).update("  |  ".join(lines))

        status = cart.state.error or ("Syncing..." if cart.state.loading else "")
        self.query_one("#label-cart-status", Label).update(status)
        await self.refresh_sidebar()

    @on(CartItemQtyMessage)
    async def handle_qty(self, message: CartItemQtyMessage) -> None:
        await self.app.state.cart.update_quantity(message.product_id, message.quantity)
        self.post_message(CartChangedMessage())

    @on(CartItemRemoveMessage)
    @work()
    async def handle_remove_item(self, message: CartItemRemoveMessage):
        cart = self.app.state.cart
        item = cart.state.items.get(message.product_id)
        remove_confirmed = await self.app.push_screen_wait(
            DialogModal(
                "Remove this item from the cart?",
                confirm_text="Remove",
                cancel_text="Keep",
                tone="warning",
                detail=item.title if item else None,
            )
        )

        if remove_confirmed:
            await cart.remove_from_cart(message.product_id)
            self.post_message(CartChangedMessage())
            self.notify("Item removed from cart.", severity="information")

    @on(CartItemDetailMessage)
    @work()
    async def handle_item_detail(self, message: CartItemDetailMessage):
        if await self.app.push_screen_wait(ProdDetailModal(message.product_id)):
            self.post_message(CartChangedMessage())

    @on(Button.Pressed, "#btn-clear-cart")
    @work()
    async def handle_clear_cart(self) -> None:
        cart = self.app.state.cart
        if not cart.items:
            self.app.notify("Cart is empty.", severity="warning")
            return

        remove_confirmed = await self.app.push_screen_wait(
            DialogModal(
                "Remove all items from the cart?",
                confirm_text="Clear",
                cancel_text="Cancel",
                tone="error",
                detail=f"{cart.state.total_quantity} item(s), {format_price(cart.state.total)}",
            )
        )
        if remove_confirmed:
            await cart.clear_cart()
            self.post_message(CartChangedMessage())

    @on(Button.Pressed, "#btn-sync")
    @work(exclusive=True, group="sync")
    async def handle_sync(self) -> None:
        state = self.app.state
        if not state.session.is_authenticated:
            self.app.notify("Log in to sync your cart.", severity="warning")
            return
        if await state.cart.sync_with_remote():
            self.app.notify("Cart synced.")
        else:
            self.app.notify(state.cart.state.error, severity="error")
        self.post_message(CartChangedMessage())
