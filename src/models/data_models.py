"""Core data models for product listing acquisition."""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Union


FACETS = ("category", "brand")


class SortKey(Enum):
    """Listing sort orders, valued by their wire representation."""
    PRICE_ASC = "price-lowtohigh"
    PRICE_DESC = "price-hightolow"
    TITLE_ASC = "title-atoz"
    TITLE_DESC = "title-ztoa"


class SourceMode(Enum):
    """Which backing store the controller is currently reading from."""
    PRIMARY = "primary"
    FALLBACK = "fallback"


class ListingState(Enum):
    """Observable controller states."""
    PRIMARY_OK = "primary_ok"
    PRIMARY_ERROR = "primary_error"
    FALLBACK_OK = "fallback_ok"
    FALLBACK_ERROR = "fallback_error"


class ErrorCategory(Enum):
    """Semantic failure categories produced by the error classifier."""
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    SERVER_FAULT = "server_fault"
    TIMEOUT = "timeout"
    NETWORK_FAULT = "network_fault"
    GENERIC_API_FAULT = "generic_api_fault"


# Categories meaning the whole primary source is unusable for this user.
SOURCE_LEVEL_CATEGORIES = frozenset({ErrorCategory.UNAUTHORIZED, ErrorCategory.NOT_FOUND})


@dataclass(frozen=True)
class ClassifiedError:
    """A failed call, labelled with its category."""
    category: ErrorCategory
    message: str
    code: str
    status_code: Optional[int] = None


@dataclass(frozen=True)
class FetchRequest:
    """
    Immutable listing query.

    Filters map a facet name (category, brand) to the selected values.
    Value order is irrelevant and empty selections are dropped, so two
    requests selecting the same values compare equal.
    """
    filters: Mapping[str, FrozenSet[str]] = field(default_factory=dict)
    sort_key: SortKey = SortKey.PRICE_ASC
    page: int = 1
    page_size: int = 20

    def __post_init__(self):
        normalized: Dict[str, FrozenSet[str]] = {}
        for facet, values in dict(self.filters).items():
            if isinstance(values, str):
                values = [values]
            selected = frozenset(v for v in values if v)
            if selected:
                normalized[facet] = selected
        object.__setattr__(self, "filters", MappingProxyType(normalized))

        if self.page < 1:
            raise ValueError(f"page must be >= 1, got: {self.page}")
        if self.page_size < 1:
            raise ValueError(f"page_size must be >= 1, got: {self.page_size}")

    @classmethod
    def build(
        cls,
        category: Iterable[str] = (),
        brand: Iterable[str] = (),
        sort_key: Union[SortKey, str] = SortKey.PRICE_ASC,
        page: int = 1,
        page_size: int = 20
    ) -> "FetchRequest":
        """Convenience constructor from per-facet selections."""
        if isinstance(sort_key, str):
            sort_key = SortKey(sort_key)
        return cls(
            filters={"category": frozenset(category), "brand": frozenset(brand)},
            sort_key=sort_key,
            page=page,
            page_size=page_size
        )

    def selected(self, facet: str) -> List[str]:
        """Selected values for a facet, sorted for stable serialization."""
        return sorted(self.filters.get(facet, ()))

    def __hash__(self) -> int:
        return hash((
            frozenset(self.filters.items()),
            self.sort_key,
            self.page,
            self.page_size
        ))

    def __eq__(self, other) -> bool:
        if not isinstance(other, FetchRequest):
            return NotImplemented
        return (
            dict(self.filters) == dict(other.filters)
            and self.sort_key == other.sort_key
            and self.page == other.page
            and self.page_size == other.page_size
        )


@dataclass(frozen=True)
class Product:
    """Storefront product record as returned by either store."""
    id: str
    title: str
    price: float
    sale_price: float  # 0 means not on sale
    category: str
    brand: str
    total_stock: int
    image: Optional[str] = None
    description: str = ""
    average_review: float = 0.0

    @property
    def on_sale(self) -> bool:
        return self.sale_price > 0


@dataclass(frozen=True)
class PageInfo:
    """Pagination metadata for a listing page."""
    page: int
    page_size: int
    total_pages: int


@dataclass(frozen=True)
class AcquisitionSuccess:
    """A listing page fetched from one store."""
    records: List[Product]
    total_count: int
    page_info: PageInfo
    source: SourceMode


@dataclass(frozen=True)
class AcquisitionFailure:
    """A listing or details call that failed."""
    error: ClassifiedError
    source: SourceMode


@dataclass(frozen=True)
class DetailsSuccess:
    """A single product fetched by id."""
    product: Product
    source: SourceMode


AcquisitionResult = Union[AcquisitionSuccess, AcquisitionFailure]
DetailsResult = Union[DetailsSuccess, AcquisitionFailure]


@dataclass(frozen=True)
class UserIdentity:
    """Authenticated user as reported by the authentication provider."""
    user_id: str
    email: str = ""


@dataclass(frozen=True)
class ListingSnapshot:
    """Read-only view of the controller state for presentation."""
    products: List[Product]
    current_error: Optional[ClassifiedError]
    mode: SourceMode
    state: ListingState
    switched: bool
    is_loading: bool
    total_count: int
    page_info: Optional[PageInfo]
    product_details: Optional[Product]

    @property
    def is_empty(self) -> bool:
        """True for a successful listing with no records."""
        return self.current_error is None and not self.products
