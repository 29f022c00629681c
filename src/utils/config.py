# runtime settings, read once from the environment
from __future__ import annotations

import os
from dataclasses import dataclass

from utils.logger import get_logger

_logger = get_logger(__name__)

DEFAULT_API_URL = "https://dummyjson.com"
DEFAULT_DB_PATH = "data/storefront.sqlite"

# storage keys
USER_KEY = "user"
CART_KEY = "cart"

# upper bound used when no max price is set
PRICE_CEILING = 10000.0

TAX_RATE = 0.08
SHIPPING_FEE = 9.99
FREE_SHIPPING_THRESHOLD = 50.0


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        _logger.warning(f"Ignoring invalid {name}={raw!r}, using {default}")
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        _logger.warning(f"Ignoring invalid {name}={raw!r}, using {default}")
        return default


@dataclass(frozen=True)
class Settings:
    """
    Knobs for the storefront client.

    Fields:
      - api_url: base url of the remote product/cart/auth service
      - db_path: sqlite file backing the durable key-value store
      - page_size: products per catalog page
      - request_timeout: seconds before an http request counts as failed
      - debounce_window: seconds of quiet typing before a search fires
    """

    api_url: str = DEFAULT_API_URL
    db_path: str = DEFAULT_DB_PATH
    page_size: int = 20
    request_timeout: float = 10.0
    debounce_window: float = 0.5

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            api_url=os.getenv("STOREFRONT_API_URL") or DEFAULT_API_URL,
            db_path=os.getenv("STOREFRONT_DB_PATH") or DEFAULT_DB_PATH,
            page_size=max(_env_int("STOREFRONT_PAGE_SIZE", 20), 1),
            request_timeout=_env_float("STOREFRONT_TIMEOUT", 10.0),
            debounce_window=_env_float("STOREFRONT_DEBOUNCE", 0.5),
        )
