"""Domain models for wb_bidding — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from src.wb_product.domain.models import Product

MIN_BID_AMOUNT = Decimal("0.01")


@dataclass
class Bid:
    """Immutable once placed, except is_winning (set at most once per product)."""

    id: str
    product_id: str
    user_id: str
    amount: Decimal
    placed_at: datetime
    is_winning: bool = False


@dataclass
class BidderRef:
    id: str
    username: str
    first_name: str | None = None
    last_name: str | None = None


@dataclass
class ProductRef:
    id: str
    name: str
    image_url: str
    is_closed: bool


@dataclass
class BidWithBidder:
    bid: Bid
    bidder: BidderRef | None


@dataclass
class BidWithProduct:
    bid: Bid
    product: ProductRef | None


@dataclass
class Winner:
    """Append-only audit record; one per product."""

    id: str
    product_id: str
    user_id: str
    winning_amount: Decimal
    won_at: datetime


@dataclass
class NewWinner:
    product_id: str
    user_id: str
    winning_amount: Decimal


@dataclass
class SettlementResult:
    product: Product
    is_bidding_complete: bool
    wishlist_removed: bool
    winner: Winner | None = None
    winning_bid: Bid | None = None


@dataclass
class WishlistEntry:
    """A user's "interested" marker on a product; dropped when they bid on it."""

    id: str
    user_id: str
    product_id: str
    created_at: datetime
    product: ProductRef | None = None
