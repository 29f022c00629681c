from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.events import ScreenResume
from textual.validation import Number
from textual.widgets import Button, DataTable, Input, Label, Select

from utils.messages import CartChangedMessage
from utils.pure import format_price, page_window
from views.base_screen import BaseScreen
from views.modal_prod_detail import ProdDetailModal

TABLE_COLUMNS = ["ID", "Title", "Brand", "Category", "Price", "Discount", "Rating", "Stock"]


class ProductsScreen(BaseScreen):
    """
    catalog browsing: search, category, price range and pages
    """

    # footer hints only, DataTable handles enter itself
    BINDINGS = [
        Binding("fn+shift+1", "abs(1)", "View Product", show=True, key_display="⏎"),
    ]

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield Input(id="input-search", placeholder="Start typing to search products...")
        with Horizontal(id="hort-filters"):
            yield Select([], prompt="All categories", id="select-category")
            yield Input(
                placeholder="Min $",
                id="input-min-price",
                type="number",
                validators=[Number(minimum=0)],
            )
            yield Input(
                placeholder="Max $",
                id="input-max-price",
                type="number",
                validators=[Number(minimum=0)],
            )
            yield Button("Apply", id="btn-apply-price")
        yield DataTable(id="table-products")
        with Horizontal(id="hort-pager"):
            yield Button("<", id="btn-prev-page")
            yield Input("1", id="input-page", type="integer")  # page idx start from 1
            yield Label(" / 1", id="label-total-page-cnt")
            yield Button(">", id="btn-next-page")
            yield Button("Load more", id="btn-load-more")
            yield Label("", id="label-status")

    def on_mount(self):
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns(*TABLE_COLUMNS)

        self.query_one("#input-search").focus()
        self.initial_load()

    @work()
    async def initial_load(self) -> None:
        catalog = self.app.state.catalog
        categories = await catalog.load_categories()
        self.query_one("#select-category", Select).set_options(
            [(c.name, c.slug) for c in categories]
        )
        await catalog.refresh()
        self.render_results()

    @on(ScreenResume)
    def handle_resume(self) -> None:
        self.render_results()

    # ---------------------------
    # filter inputs
    # ---------------------------

    async def on_input_changed(self, message: Input.Changed) -> None:
        if message.input.id == "input-search":
            self.app.state.catalog.set_search(message.value)
            self.await_search()

    @work(exclusive=True, group="search")
    async def await_search(self) -> None:
        self.render_status("Searching...")
        await self.app.state.catalog.wait_idle()
        self.render_results()

    @on(Select.Changed, "#select-category")
    @work(exclusive=True, group="fetch")
    async def handle_category(self, event: Select.Changed) -> None:
        slug = event.value if isinstance(event.value, str) else ""
        await self.app.state.catalog.set_category(slug)
        self.render_results()

    @on(Button.Pressed, "#btn-apply-price")
    @work(exclusive=True, group="fetch")
    async def handle_price_range(self) -> None:
        min_input = self.query_one("#input-min-price", Input)
        max_input = self.query_one("#input-max-price", Input)
        if not (min_input.is_valid and max_input.is_valid):
            self.notify("Prices must be positive numbers.", severity="error")
            return
        low = float(min_input.value) if min_input.value else None
        high = float(max_input.value) if max_input.value else None
        await self.app.state.catalog.set_price_range(low, high)
        self.render_results()

    # ---------------------------
    # pagination
    # ---------------------------

    @on(Input.Submitted, "#input-page")
    def handle_page_submitted(self, message: Input.Submitted) -> None:
        if message.value:
            self.go_to_page(int(message.value))

    @on(Button.Pressed, "#btn-prev-page")
    def handle_prev(self) -> None:
        self.go_to_page(self.app.state.catalog.page - 1)

    @on(Button.Pressed, "#btn-next-page")
    def handle_next(self) -> None:
        self.go_to_page(self.app.state.catalog.page + 1)

    @work(exclusive=True, group="fetch")
    async def go_to_page(self, page: int) -> None:
        catalog = self.app.state.catalog
        page = min(max(page, 1), catalog.total_pages)
        if page == catalog.page and catalog.result.products:
            self.render_results()
            return
        await catalog.set_page(page)
        self.render_results()

    @on(Button.Pressed, "#btn-load-more")
    @work(exclusive=True, group="fetch")
    async def handle_load_more(self) -> None:
        await self.app.state.catalog.load_more()
        self.render_results()

    # ---------------------------
    # detail
    # ---------------------------

    @on(DataTable.RowSelected)
    @work()
    async def handle_row_selected(self, event: DataTable.RowSelected) -> None:
        product_id = int(event.row_key.value)
        if await self.app.push_screen_wait(ProdDetailModal(product_id)):
            self.post_message(CartChangedMessage())
            await self.refresh_sidebar()

    # ---------------------------
    # rendering
    # ---------------------------

    def render_status(self, text: str) -> None:
        self.query_one("#label-status", Label).update(text)

    def render_results(self) -> None:
        catalog = self.app.state.catalog
        result = catalog.result

        table = self.query_one(DataTable)
        table.clear()
        seen = set()
        for p in result.products:
            # row keys must be unique, an appended page may repeat a product
            if p.id in seen:
                continue
            seen.add(p.id)
            table.add_row(
                p.id,
                p.title,
                p.brand,
                p.category,
                format_price(p.price),
                f"{p.discount_percentage:g}%",
                f"{p.rating:.1f}",
                p.stock,
                key=str(p.id),
            )

        paged = catalog.mode == "all"
        page_cnt = catalog.total_pages
        self.query_one("#input-page", Input).value = str(catalog.page)
        self.query_one("#input-page", Input).validators = [
            Number(minimum=1, maximum=page_cnt)
        ]
        pages = page_window(catalog.page, page_cnt)
        self.query_one("#label-total-page-cnt", Label).update(
            f" / {page_cnt}  [{' '.join(map(str, pages))}]"
        )
        self.query_one("#btn-prev-page", Button).disabled = not paged or catalog.page <= 1
        self.query_one("#btn-next-page", Button).disabled = (
            not paged or catalog.page >= page_cnt
        )
        self.query_one("#btn-load-more", Button).disabled = not result.has_more

        if result.error:
            self.render_status(result.error)
        elif result.loading:
            self.render_status("Loading...")
        else:
            self.render_status(f"{len(result.products)} shown, {result.total} total")
