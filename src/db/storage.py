# string key-value stores in two scopes: durable (sqlite) and session (memory)
from __future__ import annotations

import json
from typing import Any, Dict, Optional, Protocol

from db.database import connect
from utils.logger import get_logger

_logger = get_logger(__name__)


class KeyValueStore(Protocol):
    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, value: str) -> None: ...

    async def remove(self, key: str) -> None: ...


class DurableStore:
    """Survives restarts. One row per key in the kv_store table."""

    async def get(self, key: str) -> Optional[str]:
        async with connect() as conn:
            cur = await conn.execute(
                "SELECT value FROM kv_store WHERE key = ?;", (key,)
            )
            row = await cur.fetchone()
            await cur.close()
        return row[0] if row else None

    async def set(self, key: str, value: str) -> None:
        async with connect() as conn:
            await conn.execute(
                """
                INSERT INTO kv_store(key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value;
                """,
                (key, value),
            )
            await conn.commit()

    async def remove(self, key: str) -> None:
        async with connect() as conn:
            await conn.execute("DELETE FROM kv_store WHERE key = ?;", (key,))
            await conn.commit()


class SessionStore:
    """Lives only as long as the process."""

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)


async def load_json(store: KeyValueStore, key: str) -> Optional[Any]:
    """Read and decode a JSON value; malformed values are logged and treated as absent."""
    raw = await store.get(key)
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except ValueError as e:
        _logger.error(f"Error loading '{key}' from storage: {e}")
        return None


async def save_json(store: KeyValueStore, key: str, value: Any) -> None:
    await store.set(key, json.dumps(value))
