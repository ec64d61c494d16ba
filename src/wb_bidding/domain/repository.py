"""Repository Protocols for bids, winners and wishlist entries.

Unit tests inject in-memory fakes that conform to these Protocols.
"""

from decimal import Decimal
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.wb_bidding.domain.models import (
    Bid,
    BidWithBidder,
    BidWithProduct,
    NewWinner,
    Winner,
    WishlistEntry,
)


class BidRepositoryProtocol(Protocol):
    async def create_bid(
        self, db: AsyncSession, product_id: str, user_id: str, amount: Decimal
    ) -> Bid: ...

    async def get_bid(self, db: AsyncSession, bid_id: str) -> Bid | None: ...

    async def list_for_product(self, db: AsyncSession, product_id: str) -> list[Bid]:
        """All bids on a product, in placement order."""
        ...

    async def list_for_product_with_bidder(
        self, db: AsyncSession, product_id: str
    ) -> list[BidWithBidder]:
        """Amount descending."""
        ...

    async def list_by_user(self, db: AsyncSession, user_id: str) -> list[BidWithProduct]:
        """Newest first."""
        ...

    async def get_highest(self, db: AsyncSession, product_id: str) -> Bid | None: ...

    async def delete_bid(self, db: AsyncSession, bid_id: str) -> bool: ...

    async def mark_winning(self, db: AsyncSession, bid_id: str) -> Bid | None:
        """Set is_winning, unless some bid on the same product already has it."""
        ...


class WinnerRepositoryProtocol(Protocol):
    async def create_winner(self, db: AsyncSession, new: NewWinner) -> Winner:
        """Raises DuplicateEntryError if the product already has a winner."""
        ...

    async def get_winner(self, db: AsyncSession, winner_id: str) -> Winner | None: ...

    async def list_winners(self, db: AsyncSession, limit: int, offset: int) -> list[Winner]: ...

    async def list_by_user(self, db: AsyncSession, user_id: str) -> list[Winner]: ...

    async def get_by_product(self, db: AsyncSession, product_id: str) -> Winner | None: ...


class WishlistRepositoryProtocol(Protocol):
    async def remove(self, db: AsyncSession, user_id: str, product_id: str) -> bool:
        """True if an entry was deleted."""
        ...

    async def add(self, db: AsyncSession, user_id: str, product_id: str) -> WishlistEntry:
        """Idempotent: returns the existing entry when already present."""
        ...

    async def list_for_user(self, db: AsyncSession, user_id: str) -> list[WishlistEntry]:
        """Newest first, product populated."""
        ...

    async def contains(self, db: AsyncSession, user_id: str, product_id: str) -> bool: ...
