# in-memory stand-in for the remote product/cart/auth service, served via httpx.MockTransport
import asyncio
import json
import os
import sys
from typing import Any, Callable, Dict, List, Optional, Tuple

# Ensure project src/ is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

import httpx  # noqa: E402

from api.client import StoreApiClient  # noqa: E402
from db.models import Product  # noqa: E402

CATEGORIES = ["beauty", "groceries", "laptops"]

USER = {
    "id": 1,
    "username": "emilys",
    "email": "emily.johnson@x.dummyjson.com",
    "firstName": "Emily",
    "lastName": "Johnson",
    "gender": "female",
    "image": "https://dummyjson.com/icon/emilys/128",
    "accessToken": "token-emilys",
    "refreshToken": "refresh-emilys",
}
PASSWORD = "emilyspass"


def make_product(pid: int, price: Optional[float] = None, **overrides) -> Dict:
    data = {
        "id": pid,
        "title": f"Product {pid}",
        "description": f"Description of product {pid}",
        "price": float(price if price is not None else pid * 5),
        "discountPercentage": 10.0,
        "rating": 4.5,
        "stock": 10,
        "brand": "Acme",
        "category": CATEGORIES[pid % len(CATEGORIES)],
        "thumbnail": f"https://cdn.test/{pid}/thumb.png",
        "images": [f"https://cdn.test/{pid}/1.png"],
    }
    data.update(overrides)
    return data


def product(pid: int, price: Optional[float] = None, **overrides) -> Product:
    return Product.from_api(make_product(pid, price, **overrides))


def cart_line(pid: int, quantity: int, price: float = 10.0) -> Dict:
    return {
        "id": pid,
        "title": f"Product {pid}",
        "price": price,
        "quantity": quantity,
        "total": price * quantity,
        "discountPercentage": 0.0,
        "discountedTotal": price * quantity,
        "thumbnail": f"https://cdn.test/{pid}/thumb.png",
    }


class FakeStoreService:
    """
    Records every request. Failures are injected per (method, path) with
    `fail(...)`; status 0 simulates a connection error. `respond(...)` swaps in
    an arbitrary 200 body. `hold(predicate)`
    parks matching requests until `release()` is called.
    """

    def __init__(self, product_count: int = 45):
        self.products: List[Dict] = [make_product(i) for i in range(1, product_count + 1)]
        self.user_carts: Dict[int, List[Dict]] = {}
        self.requests: List[httpx.Request] = []
        self.failures: Dict[Tuple[str, str], int] = {}
        self.bodies: Dict[Tuple[str, str], Any] = {}
        self.next_cart_id = 51

        self._hold_predicate: Optional[Callable[[httpx.Request], bool]] = None
        self._released = asyncio.Event()
        self.held = asyncio.Event()

    # ---------- test controls ----------

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def client(self) -> StoreApiClient:
        return StoreApiClient(base_url="https://store.test", transport=self.transport())

    def fail(self, method: str, path: str, status: int = 500) -> None:
        self.failures[(method, path)] = status

    def respond(self, method: str, path: str, body: Any) -> None:
        """Answer 200 with `body` instead of the routed response."""
        self.bodies[(method, path)] = body

    def hold(self, predicate: Callable[[httpx.Request], bool]) -> None:
        self._hold_predicate = predicate
        self._released = asyncio.Event()
        self.held = asyncio.Event()

    def release(self) -> None:
        self._released.set()

    def requests_to(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    # ---------- request handling ----------

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        method, path = request.method, request.url.path

        if self._hold_predicate and self._hold_predicate(request):
            self.held.set()
            await self._released.wait()

        status = self.failures.get((method, path))
        if status == 0:
            raise httpx.ConnectError("connection refused", request=request)
        if status:
            return httpx.Response(status, json={"message": f"Injected failure {status}"})
        if (method, path) in self.bodies:
            return httpx.Response(200, json=self.bodies[(method, path)])

        return self.route(request)

    def route(self, request: httpx.Request) -> httpx.Response:
        method, path = request.method, request.url.path
        params = request.url.params

        if path == "/products" and method == "GET":
            skip = int(params.get("skip", 0))
            limit = int(params.get("limit", 30))
            return self._page(
                self.products[skip : skip + limit], skip, limit, len(self.products)
            )

        if path == "/products/search":
            q = params.get("q", "").lower()
            found = [p for p in self.products if q in p["title"].lower()]
            return self._page(found, 0, len(found), len(found))

        if path == "/products/categories":
            return httpx.Response(
                200,
                json=[
                    {"slug": c, "name": c.title(), "url": f"https://store.test/c/{c}"}
                    for c in CATEGORIES
                ],
            )

        if path.startswith("/products/category/"):
            slug = path.rsplit("/", 1)[-1]
            found = [p for p in self.products if p["category"] == slug]
            return self._page(found, 0, len(found), len(found))

        if path.startswith("/products/"):
            pid = int(path.rsplit("/", 1)[-1])
            existing = next((p for p in self.products if p["id"] == pid), None)
            if existing is None:
                return httpx.Response(
                    404, json={"message": f"Product with id '{pid}' not found"}
                )
            if method == "GET":
                return httpx.Response(200, json=existing)
            if method == "PUT":
                return httpx.Response(200, json={**existing, **json.loads(request.content)})
            if method == "DELETE":
                return httpx.Response(200, json={**existing, "isDeleted": True})

        if path == "/auth/login":
            body = json.loads(request.content)
            if body.get("username") == USER["username"] and body.get("password") == PASSWORD:
                return httpx.Response(200, json=USER)
            return httpx.Response(400, json={"message": "Invalid credentials"})

        if path.startswith("/carts/user/"):
            user_id = int(path.rsplit("/", 1)[-1])
            carts = self.user_carts.get(user_id, [])
            return httpx.Response(200, json={"carts": carts, "total": len(carts)})

        if path == "/carts/add":
            body = json.loads(request.content)
            cart_id = self.next_cart_id
            self.next_cart_id += 1
            return httpx.Response(201, json=self._cart(cart_id, body))

        if path.startswith("/carts/") and method == "PUT":
            cart_id = int(path.rsplit("/", 1)[-1])
            return httpx.Response(200, json=self._cart(cart_id, json.loads(request.content)))

        return httpx.Response(404, json={"message": f"Route {method} {path} not found"})

    def _page(
        self, products: List[Dict], skip: int, limit: int, total: int
    ) -> httpx.Response:
        return httpx.Response(
            200,
            json={"products": products, "total": total, "skip": skip, "limit": limit},
        )

    def _cart(self, cart_id: int, body: Dict) -> Dict:
        lines = [
            cart_line(p["id"], p["quantity"], price=self._price_of(p["id"]))
            for p in body.get("products") or []
        ]
        return {
            "id": cart_id,
            "userId": body.get("userId", USER["id"]),
            "products": lines,
            "total": sum(line["total"] for line in lines),
            "discountedTotal": sum(line["discountedTotal"] for line in lines),
            "totalProducts": len(lines),
            "totalQuantity": sum(line["quantity"] for line in lines),
        }

    def _price_of(self, pid: int) -> float:
        found = next((p for p in self.products if p["id"] == pid), None)
        return found["price"] if found else 0.0
