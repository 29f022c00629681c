# catalog query engine: search/category/price/page filters -> one consistent result page
from __future__ import annotations

import dataclasses
from typing import Any, Dict, List, Optional, Tuple

from api.client import StoreApiClient
from api.errors import ApiError, NotFound
from core.debounce import Debouncer
from db.models import (
    PRODUCT_API_FIELDS,
    Category,
    Product,
    ProductPage,
    QueryFilters,
    QueryResult,
)
from utils.config import PRICE_CEILING
from utils.logger import get_logger
from utils.pure import total_pages

_logger = get_logger(__name__)

LOAD_FAILED_MESSAGE = "Failed to load products. Please try again."
UPDATE_FAILED_MESSAGE = "Failed to update product. Please try again."
DELETE_FAILED_MESSAGE = "Failed to delete product. Please try again."
DETAIL_NOT_FOUND_MESSAGE = "Product not found."
DETAIL_FAILED_MESSAGE = "Failed to load product. Please try again."


def _price_filtered(products: List[Product], filters: QueryFilters) -> List[Product]:
    """max_price at PRICE_CEILING means no upper bound."""
    bounded_above = filters.max_price < PRICE_CEILING
    if filters.min_price <= 0 and not bounded_above:
        return list(products)
    return [
        p
        for p in products
        if p.price >= filters.min_price
        and (not bounded_above or p.price <= filters.max_price)
    ]


class CatalogQuery:
    """
    Turns QueryFilters into remote calls and keeps the latest QueryResult.

    Routing, first match wins:
      1. debounced search text  -> search endpoint (category ignored)
      2. category               -> category endpoint
      3. otherwise              -> paged endpoint, skip=(page-1)*page_size

    Price bounds are applied to the returned page on the client. The
    reported total and has_more still describe the unfiltered remote answer.

    Every fetch is tagged with a generation number; a response is dropped if
    a newer fetch was issued while it was in flight.
    """

    def __init__(
        self,
        client: StoreApiClient,
        page_size: int = 20,
        debounce_window: float = 0.5,
    ):
        self._client = client
        self.filters = QueryFilters(page_size=max(page_size, 1))
        self.result = QueryResult()
        self.categories: List[Category] = []
        self.detail_error: Optional[str] = None

        self._search_query = ""  # search text once the debounce window passed
        self._generation = 0
        self._next_skip = 0
        self._shown_page = 1  # page the current products belong to
        self._debouncer = Debouncer(debounce_window, self._apply_search)

    @property
    def page(self) -> int:
        return self.filters.page

    @property
    def total_pages(self) -> int:
        return total_pages(self.result.total, self.filters.page_size)

    @property
    def mode(self) -> str:
        if self._search_query:
            return "search"
        if self.filters.category:
            return "category"
        return "all"

    # ---------------------------
    # Filter mutations
    # ---------------------------

    def set_search(self, text: str) -> None:
        """Record search text; the fetch fires once typing stops for the debounce window."""
        self.filters.search = text
        self.filters.page = 1
        self._debouncer.push(text.strip())

    async def _apply_search(self, query: str) -> None:
        self._search_query = query
        await self._fetch(replace=True)

    async def set_category(self, slug: str) -> bool:
        self.filters.category = slug or ""
        self.filters.page = 1
        return await self._fetch(replace=True)

    async def set_price_range(
        self, min_price: Optional[float] = None, max_price: Optional[float] = None
    ) -> bool:
        low = max(float(min_price or 0), 0.0)
        high = PRICE_CEILING if max_price is None else float(max_price)
        if low > high:
            low, high = high, low
        self.filters.min_price = low
        self.filters.max_price = high
        self.filters.page = 1
        return await self._fetch(replace=True)

    async def set_page(self, page: int) -> bool:
        self.filters.page = max(int(page), 1)
        return await self._fetch(replace=True)

    async def set_page_size(self, page_size: int) -> bool:
        self.filters.page_size = max(int(page_size), 1)
        self.filters.page = 1
        return await self._fetch(replace=True)

    async def refresh(self) -> bool:
        return await self._fetch(replace=True)

    async def load_more(self) -> bool:
        """Append the next slice; no-op while loading or when nothing is left."""
        if self.result.loading or not self.result.has_more:
            return False
        return await self._fetch(replace=False)

    async def wait_idle(self) -> None:
        await self._debouncer.wait()

    # ---------------------------
    # Fetching
    # ---------------------------

    async def _request(self, skip: int, limit: int) -> Tuple[ProductPage, bool]:
        """Returns the page and whether the endpoint honours skip/limit."""
        if self._search_query:
            return await self._client.search_products(self._search_query), False
        if self.filters.category:
            return await self._client.get_products_by_category(self.filters.category), False
        return await self._client.get_products(skip, limit), True

    async def _fetch(self, replace: bool) -> bool:
        self._generation += 1
        generation = self._generation

        filters = dataclasses.replace(self.filters)
        skip = (filters.page - 1) * filters.page_size if replace else self._next_skip

        self.result.loading = True
        self.result.error = None
        try:
            page, paged = await self._request(skip, filters.page_size)
        except ApiError as e:
            _logger.error(f"Error loading products ({self.mode}): {e.message}")
            if generation == self._generation:
                # keep whatever was shown before, pager included
                self.result.error = LOAD_FAILED_MESSAGE
                self.result.loading = False
                self.filters.page = self._shown_page
            return False

        if generation != self._generation:
            _logger.debug(f"Dropping stale response #{generation}")
            return False

        visible = _price_filtered(page.products, filters)

        if paged:
            self._next_skip = skip + len(page.products)
            has_more = bool(page.products) and self._next_skip < page.total
        else:
            self._next_skip = len(page.products)
            has_more = False

        self.result.products = visible if replace else self.result.products + visible
        self.result.total = page.total
        self.result.has_more = has_more
        self.result.loading = False
        self._shown_page = filters.page
        _logger.debug(
            f"Loaded {len(page.products)} product(s), {len(visible)} in price range, "
            f"total {page.total}"
        )
        return True

    async def load_categories(self) -> List[Category]:
        try:
            self.categories = await self._client.get_categories()
        except ApiError as e:
            _logger.error(f"Error loading categories: {e.message}")
            self.categories = []
        return self.categories

    async def fetch_product(self, product_id: int) -> Optional[Product]:
        self.detail_error = None
        try:
            return await self._client.get_product(product_id)
        except NotFound:
            _logger.info(f"Product {product_id} not found")
            self.detail_error = DETAIL_NOT_FOUND_MESSAGE
        except ApiError as e:
            _logger.error(f"Error loading product {product_id}: {e.message}")
            self.detail_error = DETAIL_FAILED_MESSAGE
        return None

    # ---------------------------
    # Admin mutations, applied locally only after the service confirms
    # ---------------------------

    async def update_product(
        self, product_id: int, changes: Dict[str, Any]
    ) -> Optional[Product]:
        """`changes` uses Product attribute names, e.g. {"price": 9.5, "stock": 3}."""
        unknown = set(changes) - set(PRODUCT_API_FIELDS)
        if unknown:
            _logger.warning(f"Ignoring unknown product fields: {sorted(unknown)}")
        fields = {
            PRODUCT_API_FIELDS[k]: list(v) if k == "images" else v
            for k, v in changes.items()
            if k in PRODUCT_API_FIELDS
        }

        self.result.error = None
        try:
            updated = await self._client.update_product(product_id, fields)
        except ApiError as e:
            _logger.error(f"Error updating product {product_id}: {e.message}")
            self.result.error = UPDATE_FAILED_MESSAGE
            return None

        patch = {k: getattr(updated, k) for k in changes if k in PRODUCT_API_FIELDS}
        self.result.products = [
            dataclasses.replace(p, **patch) if p.id == product_id else p
            for p in self.result.products
        ]
        return updated

    async def delete_product(self, product_id: int) -> bool:
        self.result.error = None
        try:
            await self._client.delete_product(product_id)
        except ApiError as e:
            _logger.error(f"Error deleting product {product_id}: {e.message}")
            self.result.error = DELETE_FAILED_MESSAGE
            return False

        self.result.products = [p for p in self.result.products if p.id != product_id]
        return True
