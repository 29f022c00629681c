# provide dataclass models
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from utils.config import PRICE_CEILING


def _to_float(val, default: float = 0.0) -> float:
    try:
        return float(val)
    except (TypeError, ValueError):
        return default


def _to_int(val, default: int = 0) -> int:
    try:
        return int(val)
    except (TypeError, ValueError):
        return default


def discounted(price: float, discount_percentage: float) -> float:
    return price * (1 - discount_percentage / 100)


@dataclass(frozen=True)
class Product:
    id: int
    title: str
    description: str = ""
    price: float = 0.0
    discount_percentage: float = 0.0  # 0..100
    rating: float = 0.0
    stock: int = 0
    brand: str = ""
    category: str = ""
    thumbnail: str = ""
    images: tuple = ()

    @property
    def discounted_price(self) -> float:
        return discounted(self.price, self.discount_percentage)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> Product:
        return cls(
            id=_to_int(data.get("id")),
            title=data.get("title") or "",
            description=data.get("description") or "",
            price=_to_float(data.get("price")),
            discount_percentage=_to_float(data.get("discountPercentage")),
            rating=_to_float(data.get("rating")),
            stock=_to_int(data.get("stock")),
            brand=data.get("brand") or "",
            category=data.get("category") or "",
            thumbnail=data.get("thumbnail") or "",
            images=tuple(data.get("images") or ()),
        )


# python attribute -> remote field, for partial updates
PRODUCT_API_FIELDS = {
    "title": "title",
    "description": "description",
    "price": "price",
    "discount_percentage": "discountPercentage",
    "rating": "rating",
    "stock": "stock",
    "brand": "brand",
    "category": "category",
    "thumbnail": "thumbnail",
    "images": "images",
}


@dataclass(frozen=True)
class Category:
    slug: str
    name: str
    url: str = ""

    @classmethod
    def from_api(cls, data) -> Category:
        # older deployments answer with bare slugs
        if isinstance(data, str):
            return cls(slug=data, name=data.replace("-", " ").title())
        return cls(
            slug=data.get("slug") or "",
            name=data.get("name") or data.get("slug") or "",
            url=data.get("url") or "",
        )


@dataclass(frozen=True)
class ProductPage:
    products: List[Product]
    total: int
    skip: int
    limit: int

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> ProductPage:
        products = [Product.from_api(p) for p in data.get("products") or []]
        return cls(
            products=products,
            total=_to_int(data.get("total"), len(products)),
            skip=_to_int(data.get("skip")),
            limit=_to_int(data.get("limit"), len(products)),
        )


@dataclass(frozen=True)
class User:
    id: int
    username: str
    token: str
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    gender: str = ""
    image: str = ""
    refresh_token: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> User:
        return cls(
            id=_to_int(data.get("id")),
            username=data.get("username") or "",
            # login answers with accessToken on newer deployments
            token=data.get("token") or data.get("accessToken") or "",
            email=data.get("email") or "",
            first_name=data.get("firstName") or "",
            last_name=data.get("lastName") or "",
            gender=data.get("gender") or "",
            image=data.get("image") or "",
            refresh_token=data.get("refreshToken"),
        )

    def to_api(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "gender": self.gender,
            "image": self.image,
            "token": self.token,
            "refreshToken": self.refresh_token,
        }


@dataclass
class CartItem:
    """
    One cart line. discounted_price and total are derived on access so a line
    total can never drift from its quantity.
    """

    id: int
    title: str
    price: float
    quantity: int
    discount_percentage: float = 0.0
    thumbnail: str = ""

    @property
    def discounted_price(self) -> float:
        return discounted(self.price, self.discount_percentage)

    @property
    def total(self) -> float:
        return self.discounted_price * self.quantity

    @classmethod
    def from_product(cls, product: Product, quantity: int) -> CartItem:
        return cls(
            id=product.id,
            title=product.title,
            price=product.price,
            quantity=quantity,
            discount_percentage=product.discount_percentage,
            thumbnail=product.thumbnail,
        )

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> CartItem:
        return cls(
            id=_to_int(data.get("id")),
            title=data.get("title") or "",
            price=_to_float(data.get("price")),
            quantity=max(_to_int(data.get("quantity"), 1), 1),
            discount_percentage=_to_float(data.get("discountPercentage")),
            thumbnail=data.get("thumbnail") or "",
        )

    def to_api(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "price": self.price,
            "quantity": self.quantity,
            "total": self.total,
            "discountPercentage": self.discount_percentage,
            "discountedPrice": self.discounted_price,
            "thumbnail": self.thumbnail,
        }


@dataclass(frozen=True)
class ApiCart:
    id: int
    user_id: int
    products: List[CartItem]
    total: float = 0.0
    discounted_total: float = 0.0
    total_products: int = 0
    total_quantity: int = 0

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> ApiCart:
        products = [CartItem.from_api(p) for p in data.get("products") or []]
        return cls(
            id=_to_int(data.get("id")),
            user_id=_to_int(data.get("userId")),
            products=products,
            total=_to_float(data.get("total")),
            discounted_total=_to_float(data.get("discountedTotal")),
            total_products=_to_int(data.get("totalProducts"), len(products)),
            total_quantity=_to_int(data.get("totalQuantity")),
        )


@dataclass
class CartState:
    """
    Cart owned by the cart core.

    Fields:
      - items: cart lines keyed by product id, in insertion order
      - total / total_quantity: recomputed from items after every mutation
      - cart_id: id of the remote cart, None until the service assigns one
      - loading: a remote call is in flight
      - error: user-facing message of the last failed operation
    """

    items: Dict[int, CartItem] = field(default_factory=dict)
    total: float = 0.0
    total_quantity: int = 0
    cart_id: Optional[int] = None
    loading: bool = False
    error: Optional[str] = None


@dataclass
class QueryFilters:
    search: str = ""
    category: str = ""  # empty means all categories
    min_price: float = 0.0
    max_price: float = PRICE_CEILING
    page: int = 1  # 1-based
    page_size: int = 20


@dataclass
class QueryResult:
    """
    Latest page shown by the catalog engine. total and has_more describe the
    unfiltered remote answer, products is the price-filtered page.
    """

    products: List[Product] = field(default_factory=list)
    total: int = 0
    has_more: bool = False
    loading: bool = False
    error: Optional[str] = None
