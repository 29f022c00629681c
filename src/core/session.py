# who is logged in; the cart core asks this before talking to the remote cart
from __future__ import annotations

from typing import Awaitable, Callable, List, Optional

from api.client import StoreApiClient
from api.errors import ApiError
from db.models import User
from db.storage import KeyValueStore, load_json, save_json
from utils.config import USER_KEY
from utils.logger import get_logger

_logger = get_logger(__name__)

IdentityListener = Callable[[Optional[User], Optional[User]], Awaitable[None]]


class SessionGate:
    """
    Holds the current identity.

    A "remember me" login is written to the durable store, any other login to
    the session store. Listeners are awaited with (previous, current) on every
    identity change.
    """

    def __init__(
        self,
        client: StoreApiClient,
        durable: KeyValueStore,
        session: KeyValueStore,
    ):
        self._client = client
        self._durable = durable
        self._session = session
        self._listeners: List[IdentityListener] = []

        self.user: Optional[User] = None
        self.loading = False
        self.error: Optional[str] = None

        client.set_token_provider(self.token)

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def token(self) -> Optional[str]:
        return self.user.token if self.user else None

    def subscribe(self, listener: IdentityListener) -> None:
        self._listeners.append(listener)

    async def _set_user(self, user: Optional[User]) -> None:
        previous, self.user = self.user, user
        for listener in self._listeners:
            await listener(previous, user)

    async def _load_user(self, store: KeyValueStore) -> Optional[User]:
        data = await load_json(store, USER_KEY)
        if data is None:
            return None
        try:
            return User.from_api(data)
        except AttributeError:
            _logger.error("Stored identity is malformed, discarding it.")
            await store.remove(USER_KEY)
            return None

    async def hydrate(self) -> Optional[User]:
        """Restore a remembered identity, falling back to the session scope."""
        user = await self._load_user(self._durable) or await self._load_user(
            self._session
        )
        if user:
            _logger.info(f"Restored session for {user.username}")
            await self._set_user(user)
        return user

    async def login(self, username: str, password: str, remember_me: bool = False) -> bool:
        self.loading = True
        self.error = None
        try:
            user = await self._client.login(username, password)
        except ApiError as e:
            _logger.warning(f"Login failed for {username}: {e.message}")
            self.error = (
                e.message
                if e.status_code and 400 <= e.status_code < 500
                else "Login failed. Please try again."
            )
            return False
        finally:
            self.loading = False

        store = self._durable if remember_me else self._session
        await save_json(store, USER_KEY, user.to_api())
        _logger.info(f"Logged in as {user.username}")
        await self._set_user(user)
        return True

    async def logout(self) -> None:
        await self._durable.remove(USER_KEY)
        await self._session.remove(USER_KEY)
        self.error = None
        await self._set_user(None)
