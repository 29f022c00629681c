# cart reconciliation: local-first mutations, best-effort sync with the remote cart
from __future__ import annotations

import asyncio
from typing import Dict, List, Optional

from api.client import StoreApiClient
from api.errors import ApiError, AuthRequired
from core.session import SessionGate
from db.models import ApiCart, CartItem, CartState, Product, User
from db.storage import KeyValueStore, load_json, save_json
from utils.config import CART_KEY
from utils.logger import get_logger

_logger = get_logger(__name__)

SYNC_FAILED_MESSAGE = "Item added locally, but the cart could not be synced."
LOAD_FAILED_MESSAGE = "Could not load your saved cart. Please try again."


class CartStore:
    """
    Owns the CartState.

    Mutations apply to local state first, are written through to the durable
    store, and only then (for add_to_cart) go to the remote cart service.
    A failed remote call never rolls back a local change; it only sets
    `state.error`.

    remove_from_cart, update_quantity and clear_cart are local only. The
    remote cart is touched by add_to_cart and sync_with_remote.
    """

    def __init__(
        self,
        client: StoreApiClient,
        durable: KeyValueStore,
        session: SessionGate,
    ):
        self._client = client
        self._durable = durable
        self._session = session
        self._write_lock = asyncio.Lock()
        self._hydrated = False

        self.state = CartState()

        session.subscribe(self._on_identity_changed)

    # ---------------------------
    # Read side
    # ---------------------------

    @property
    def items(self) -> List[CartItem]:
        return list(self.state.items.values())

    def get_item_quantity(self, product_id: int) -> int:
        item = self.state.items.get(product_id)
        return item.quantity if item else 0

    # ---------------------------
    # Lifecycle
    # ---------------------------

    async def hydrate(self) -> None:
        """Load the persisted snapshot. Runs once, before any mutation."""
        if self._hydrated:
            return
        self._hydrated = True

        snapshot = await load_json(self._durable, CART_KEY)
        if not snapshot:
            return
        try:
            # pre-snapshot format stored a bare item list
            if isinstance(snapshot, list):
                raw_items, cart_id = snapshot, None
            else:
                raw_items, cart_id = snapshot.get("items") or [], snapshot.get("cartId")
            items = [CartItem.from_api(raw) for raw in raw_items]
        except (AttributeError, TypeError) as e:
            _logger.error(f"Error loading cart from storage: {e}")
            return

        self.state.items = {item.id: item for item in items}
        self.state.cart_id = cart_id
        self._recalculate()
        _logger.debug(f"Hydrated cart with {len(items)} item(s), cart id {cart_id}")

    def _recalculate(self) -> None:
        items = self.state.items.values()
        self.state.total = sum(item.total for item in items)
        self.state.total_quantity = sum(item.quantity for item in items)

    async def _persist(self) -> None:
        # the snapshot is taken inside the lock, so the last write always
        # carries the newest state
        async with self._write_lock:
            await save_json(
                self._durable,
                CART_KEY,
                {
                    "items": [item.to_api() for item in self.state.items.values()],
                    "cartId": self.state.cart_id,
                },
            )

    async def _commit(self) -> None:
        self._recalculate()
        await self._persist()

    # ---------------------------
    # Mutations
    # ---------------------------

    async def add_to_cart(self, product: Product, quantity: int = 1) -> bool:
        """
        Add `quantity` of `product` and push the new quantity to the remote cart.
        Returns True when the remote cart acknowledged the change.
        """
        user = self._session.user
        if user is None:
            self.state.error = AuthRequired().message
            _logger.info(f"Rejected add of product {product.id}: not logged in")
            return False

        quantity = max(int(quantity), 1)
        self.state.error = None

        existing = self.state.items.get(product.id)
        if existing:
            existing.quantity += quantity
        else:
            self.state.items[product.id] = CartItem.from_product(product, quantity)
        await self._commit()

        return await self._push(user, product.id)

    async def _push(self, user: User, product_id: int) -> bool:
        products = [
            {"id": item.id, "quantity": item.quantity}
            for item in self.state.items.values()
        ]
        self.state.loading = True
        try:
            remote = await self._send(user, products)
        except ApiError as e:
            _logger.warning(f"Cart sync failed after adding {product_id}: {e.message}")
            self.state.error = SYNC_FAILED_MESSAGE
            return False
        finally:
            self.state.loading = False

        # local items stay as they are, the echoed list is older than them
        if remote.id and remote.id != self.state.cart_id:
            _logger.debug(f"Adopting remote cart id {remote.id}")
            self.state.cart_id = remote.id
            await self._persist()
        return True

    async def _send(self, user: User, products: List[Dict[str, int]]) -> ApiCart:
        if self.state.cart_id is None:
            return await self._client.add_cart(user.id, products)
        try:
            return await self._client.update_cart(self.state.cart_id, products)
        except ApiError as e:
            # the update endpoint is unreliable, fall back to creating a cart
            _logger.info(f"Cart update failed ({e.message}), creating a new cart")
            return await self._client.add_cart(user.id, products)

    async def remove_from_cart(self, product_id: int) -> None:
        if self.state.items.pop(product_id, None) is None:
            return
        await self._commit()

    async def update_quantity(self, product_id: int, quantity: int) -> None:
        """Set the quantity of a line; zero or less removes it."""
        if quantity <= 0:
            await self.remove_from_cart(product_id)
            return
        item = self.state.items.get(product_id)
        if item is None:
            return
        item.quantity = int(quantity)
        await self._commit()

    async def clear_cart(self) -> None:
        self.state.items = {}
        await self._commit()

    # ---------------------------
    # Remote sync
    # ---------------------------

    async def sync_with_remote(self) -> bool:
        """
        Pull the user's remote cart. When one exists it replaces the local
        items and its id is adopted; when none exists local state is kept.
        """
        user = self._session.user
        if user is None:
            return False

        self.state.loading = True
        self.state.error = None
        try:
            carts = await self._client.get_user_carts(user.id)
        except ApiError as e:
            _logger.warning(f"Fetching remote cart for user {user.id} failed: {e.message}")
            self.state.error = LOAD_FAILED_MESSAGE
            return False
        finally:
            self.state.loading = False

        if not carts:
            _logger.debug(f"No remote cart for user {user.id}")
            return True

        remote = carts[0]
        self.state.items = {item.id: item for item in remote.products}
        self.state.cart_id = remote.id
        await self._commit()
        _logger.info(f"Synced cart {remote.id} with {len(remote.products)} item(s)")
        return True

    async def _on_identity_changed(
        self, previous: Optional[User], current: Optional[User]
    ) -> None:
        if previous is None and current is not None and self.state.items:
            await self.sync_with_remote()
