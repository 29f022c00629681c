from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import db.database
from api.client import StoreApiClient
from core.cart import CartStore
from core.catalog import CatalogQuery
from core.session import SessionGate
from db.storage import DurableStore, KeyValueStore, SessionStore
from utils.config import Settings
from utils.logger import get_logger

_logger = get_logger(__name__)


@dataclass
class GlobalState:
    """
    Centralized application state shared by screens.

    Fields:
      - client: http client for the remote service
      - session: identity gate (who is logged in)
      - cart: cart reconciliation core
      - catalog: product query engine
    """

    client: StoreApiClient
    session: SessionGate
    cart: CartStore
    catalog: CatalogQuery

    @classmethod
    def build(
        cls,
        settings: Optional[Settings] = None,
        client: Optional[StoreApiClient] = None,
        durable: Optional[KeyValueStore] = None,
        session_store: Optional[KeyValueStore] = None,
    ) -> GlobalState:
        settings = settings or Settings.from_env()
        if durable is None:
            db.database.configure(settings.db_path)
            durable = DurableStore()
        client = client or StoreApiClient(settings.api_url, settings.request_timeout)

        session = SessionGate(client, durable, session_store or SessionStore())
        return cls(
            client=client,
            session=session,
            cart=CartStore(client, durable, session),
            catalog=CatalogQuery(client, settings.page_size, settings.debounce_window),
        )

    async def start(self) -> None:
        """
        Hydrate from storage before the first screen renders.
        The cart goes first so a restored identity can trigger the login sync.
        """
        await self.cart.hydrate()
        await self.session.hydrate()
        _logger.info(
            f"State ready: {self.cart.state.total_quantity} item(s) in cart, "
            f"user={self.session.user.username if self.session.user else None}"
        )

    async def close(self) -> None:
        await self.client.aclose()
