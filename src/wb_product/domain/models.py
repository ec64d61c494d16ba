"""Domain models for wb_product — pure dataclasses, no business logic."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass
class Product:
    """A raffle-style listing.

    Bidding closes exactly once, when current_bid_count reaches
    total_bids_target; winner_id is set in the same step and is non-null
    iff is_closed.
    """

    id: str
    name: str
    description: str
    image_url: str
    total_bids_target: int
    current_bid_count: int
    unit_bid_price: Decimal
    winner_id: str | None
    is_closed: bool
    owner_id: str | None
    created_at: datetime
    updated_at: datetime

    @property
    def target_reached(self) -> bool:
        return self.current_bid_count >= self.total_bids_target


@dataclass
class NewProduct:
    name: str
    description: str
    image_url: str
    total_bids_target: int
    unit_bid_price: Decimal
    owner_id: str
