"""SettlementEngine — what one newly placed bid does to its product.

  1. drop the bidder's wishlist entry for the product (best effort)
  2. current_bid_count += 1 (refused once bidding is closed)
  3. if the target is reached, close bidding; only the caller whose
     conditional UPDATE flipped is_closed goes on to:
  4. pick a bid uniformly at random, mark it winning
  5. set products.winner_id, insert the winners row

Every step runs on the caller's session, so the whole settlement commits
or rolls back with the bid insert itself. Concurrent bids on one product
serialize on the product row lock taken in step 2.
"""

import logging
import secrets
from collections.abc import Callable, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.wb_bidding.domain.models import Bid, NewWinner, SettlementResult
from src.wb_bidding.domain.repository import (
    BidRepositoryProtocol,
    WinnerRepositoryProtocol,
    WishlistRepositoryProtocol,
)
from src.wb_common.errors import (
    BiddingClosedError,
    BidNotFoundError,
    PersistenceFailureError,
    ProductNotFoundError,
)
from src.wb_product.domain.repository import ProductRepositoryProtocol

logger = logging.getLogger("wb.bidding")

WinnerChooser = Callable[[Sequence[Bid]], Bid]

_system_random = secrets.SystemRandom()


def choose_uniformly(bids: Sequence[Bid]) -> Bid:
    return _system_random.choice(bids)


class SettlementEngine:
    def __init__(
        self,
        products: ProductRepositoryProtocol,
        bids: BidRepositoryProtocol,
        winners: WinnerRepositoryProtocol,
        wishlists: WishlistRepositoryProtocol,
        chooser: WinnerChooser = choose_uniformly,
    ) -> None:
        self._products = products
        self._bids = bids
        self._winners = winners
        self._wishlists = wishlists
        self._chooser = chooser

    async def process_bid(self, db: AsyncSession, bid_id: str) -> SettlementResult:
        bid = await self._bids.get_bid(db, bid_id)
        if bid is None:
            raise BidNotFoundError(bid_id)

        wishlist_removed = await self._remove_from_wishlist(db, bid)

        product = await self._products.increment_bid_count(db, bid.product_id)
        if product is None:
            if await self._products.get_product(db, bid.product_id) is None:
                raise ProductNotFoundError(bid.product_id)
            raise BiddingClosedError(bid.product_id)

        if not product.target_reached:
            return SettlementResult(
                product=product, is_bidding_complete=False, wishlist_removed=wishlist_removed
            )

        closed = await self._products.close_bidding(db, product.id)
        if closed is None:
            # Another transaction closed it first; our increment still counts.
            return SettlementResult(
                product=product, is_bidding_complete=False, wishlist_removed=wishlist_removed
            )

        candidates = await self._bids.list_for_product(db, closed.id)
        if not candidates:
            raise PersistenceFailureError(f"No bids found for closing product {closed.id}")
        chosen = self._chooser(candidates)

        winning_bid = await self._bids.mark_winning(db, chosen.id)
        if winning_bid is None:
            raise PersistenceFailureError(f"Product {closed.id} already has a winning bid")

        settled = await self._products.set_winner(db, closed.id, winning_bid.user_id)
        if settled is None:
            raise PersistenceFailureError(f"Product {closed.id} already has a winner")

        winner = await self._winners.create_winner(
            db,
            NewWinner(
                product_id=settled.id,
                user_id=winning_bid.user_id,
                winning_amount=winning_bid.amount,
            ),
        )
        logger.info(
            "Bidding closed: product=%s bids=%d winner=%s bid=%s",
            settled.id,
            settled.current_bid_count,
            winner.user_id,
            winning_bid.id,
        )
        return SettlementResult(
            product=settled,
            is_bidding_complete=True,
            wishlist_removed=wishlist_removed,
            winner=winner,
            winning_bid=winning_bid,
        )

    async def _remove_from_wishlist(self, db: AsyncSession, bid: Bid) -> bool:
        try:
            async with db.begin_nested():
                return await self._wishlists.remove(db, bid.user_id, bid.product_id)
        except SQLAlchemyError:
            logger.warning(
                "Wishlist removal failed: user=%s product=%s",
                bid.user_id,
                bid.product_id,
                exc_info=True,
            )
            return False
