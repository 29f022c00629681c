# async http client for the remote product/cart/auth service
from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, TypeVar
from urllib.parse import quote

import httpx

from api.errors import ApiError, NetworkFailure, NotFound
from db.models import ApiCart, Category, Product, ProductPage, User
from utils.config import DEFAULT_API_URL
from utils.logger import get_logger

_logger = get_logger(__name__)

TokenProvider = Callable[[], Optional[str]]
T = TypeVar("T")

MALFORMED_MESSAGE = "Malformed response from server."


def _parse(parser: Callable[[Any], T], data: Any, what: str) -> T:
    """Run a model parser over a decoded body; a body of the wrong shape is an ApiError."""
    try:
        return parser(data)
    except (AttributeError, TypeError, KeyError, ValueError) as e:
        _logger.warning(f"Unexpected {what} payload: {e!r}")
        raise ApiError(MALFORMED_MESSAGE) from e


def _categories(data: Any) -> List[Category]:
    if not isinstance(data, list):
        raise TypeError(f"expected a list, got {type(data).__name__}")
    return [Category.from_api(c) for c in data]


def _carts(data: Any) -> List[ApiCart]:
    return [ApiCart.from_api(c) for c in data.get("carts") or []]


def _error_message(response: httpx.Response, fallback: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return fallback


class StoreApiClient:
    """
    Thin wrapper over httpx.AsyncClient. Every method either returns parsed
    models or raises an ApiError subclass.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 10.0,
        token_provider: Optional[TokenProvider] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._token_provider = token_provider
        self._client = httpx.AsyncClient(
            base_url=base_url, timeout=timeout, transport=transport
        )

    def set_token_provider(self, token_provider: Optional[TokenProvider]) -> None:
        self._token_provider = token_provider

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> StoreApiClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def _headers(self) -> Dict[str, str]:
        token = self._token_provider() if self._token_provider else None
        if token:
            return {"Authorization": f"Bearer {token}"}
        return {}

    async def _request(self, method: str, url: str, **kwargs) -> Any:
        try:
            response = await self._client.request(
                method, url, headers=self._headers(), **kwargs
            )
        except httpx.TimeoutException as e:
            _logger.warning(f"API timeout: {method} {url}")
            raise NetworkFailure("The request timed out. Please try again.") from e
        except httpx.HTTPError as e:
            _logger.warning(f"API error: {method} {url}: {e!r}")
            raise NetworkFailure("Network error. Please check your connection.") from e

        if response.status_code == 404:
            _logger.warning(f"API 404: {method} {url}")
            raise NotFound(_error_message(response, "Not found."))
        if response.is_error:
            _logger.warning(f"API {response.status_code}: {method} {url}")
            raise ApiError(
                _error_message(response, "Request failed. Please try again."),
                response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise ApiError(MALFORMED_MESSAGE, response.status_code) from e

    # ---------------------------
    # Products
    # ---------------------------

    async def get_products(self, skip: int = 0, limit: int = 20) -> ProductPage:
        data = await self._request(
            "GET", "/products", params={"skip": skip, "limit": limit}
        )
        return _parse(ProductPage.from_api, data, "product page")

    async def search_products(self, query: str) -> ProductPage:
        data = await self._request("GET", "/products/search", params={"q": query})
        return _parse(ProductPage.from_api, data, "product page")

    async def get_products_by_category(self, slug: str) -> ProductPage:
        data = await self._request("GET", f"/products/category/{quote(slug, safe='')}")
        return _parse(ProductPage.from_api, data, "product page")

    async def get_product(self, product_id: int) -> Product:
        data = await self._request("GET", f"/products/{product_id}")
        return _parse(Product.from_api, data, "product")

    async def update_product(self, product_id: int, fields: Dict[str, Any]) -> Product:
        """fields uses the remote (camelCase) names, see db.models.PRODUCT_API_FIELDS"""
        data = await self._request("PUT", f"/products/{product_id}", json=fields)
        return _parse(Product.from_api, data, "product")

    async def delete_product(self, product_id: int) -> Dict[str, Any]:
        return await self._request("DELETE", f"/products/{product_id}")

    async def get_categories(self) -> List[Category]:
        data = await self._request("GET", "/products/categories")
        return _parse(_categories, data, "category list")

    # ---------------------------
    # Auth
    # ---------------------------

    async def login(self, username: str, password: str) -> User:
        data = await self._request(
            "POST", "/auth/login", json={"username": username, "password": password}
        )
        return _parse(User.from_api, data, "login")

    # ---------------------------
    # Carts
    # ---------------------------

    async def get_user_carts(self, user_id: int) -> List[ApiCart]:
        data = await self._request("GET", f"/carts/user/{user_id}")
        return _parse(_carts, data, "user carts")

    async def add_cart(self, user_id: int, products: List[Dict[str, int]]) -> ApiCart:
        data = await self._request(
            "POST", "/carts/add", json={"userId": user_id, "products": products}
        )
        return _parse(ApiCart.from_api, data, "cart")

    async def update_cart(self, cart_id: int, products: List[Dict[str, int]]) -> ApiCart:
        data = await self._request(
            "PUT", f"/carts/{cart_id}", json={"products": products}
        )
        return _parse(ApiCart.from_api, data, "cart")
