"""Bid, winner and wishlist application services.

BidApplicationService.place_bid is the only write path that moves a
product toward settlement; everything else here is query or audit glue.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.wb_bidding.application.schemas import (
    AddWishlistRequest,
    BidResponse,
    BidWithBidderResponse,
    BidWithProductResponse,
    CreateWinnerRequest,
    PlaceBidRequest,
    PlaceBidResponse,
    WinnerListResponse,
    WinnerResponse,
    WishlistCheckResponse,
    WishlistEntryResponse,
)
from src.wb_bidding.application.settlement import SettlementEngine
from src.wb_bidding.domain.models import NewWinner
from src.wb_bidding.domain.repository import (
    BidRepositoryProtocol,
    WinnerRepositoryProtocol,
    WishlistRepositoryProtocol,
)
from src.wb_bidding.infrastructure.persistence import (
    BidRepository,
    WinnerRepository,
    WishlistRepository,
)
from src.wb_common.errors import (
    BiddingClosedError,
    BidNotFoundError,
    NotFoundError,
    ProductNotFoundError,
    ValidationFailureError,
    WinnerNotFoundError,
)
from src.wb_gateway.auth.dependencies import ensure_owner_or_admin
from src.wb_gateway.user.db_models import UserModel
from src.wb_product.domain.repository import ProductRepositoryProtocol
from src.wb_product.infrastructure.persistence import ProductRepository


class BidApplicationService:
    def __init__(
        self,
        products: ProductRepositoryProtocol | None = None,
        bids: BidRepositoryProtocol | None = None,
        winners: WinnerRepositoryProtocol | None = None,
        wishlists: WishlistRepositoryProtocol | None = None,
        engine: SettlementEngine | None = None,
    ) -> None:
        self._products: ProductRepositoryProtocol = products or ProductRepository()
        self._bids: BidRepositoryProtocol = bids or BidRepository()
        winners = winners or WinnerRepository()
        wishlists = wishlists or WishlistRepository()
        self._engine = engine or SettlementEngine(
            self._products, self._bids, winners, wishlists
        )

    async def place_bid(
        self, db: AsyncSession, req: PlaceBidRequest, user_id: str
    ) -> PlaceBidResponse:
        """Insert the bid and settle it. Caller owns the transaction."""
        product_id = str(req.product_id)
        product = await self._products.get_product(db, product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        if product.is_closed:
            raise BiddingClosedError(product_id)

        bid = await self._bids.create_bid(db, product_id, user_id, req.amount)
        result = await self._engine.process_bid(db, bid.id)
        return PlaceBidResponse.build(bid, result)

    async def get_bid(self, db: AsyncSession, bid_id: str) -> BidResponse:
        bid = await self._bids.get_bid(db, bid_id)
        if bid is None:
            raise BidNotFoundError(bid_id)
        return BidResponse.from_domain(bid)

    async def get_bids_for_product(
        self, db: AsyncSession, product_id: str
    ) -> list[BidWithBidderResponse]:
        if await self._products.get_product(db, product_id) is None:
            raise ProductNotFoundError(product_id)
        items = await self._bids.list_for_product_with_bidder(db, product_id)
        return [BidWithBidderResponse.from_view(item) for item in items]

    async def get_highest_bid(self, db: AsyncSession, product_id: str) -> BidResponse | None:
        bid = await self._bids.get_highest(db, product_id)
        return BidResponse.from_domain(bid) if bid else None

    async def get_bids_by_user(
        self, db: AsyncSession, user_id: str, current_user: UserModel
    ) -> list[BidWithProductResponse]:
        ensure_owner_or_admin(current_user, user_id)
        items = await self._bids.list_by_user(db, user_id)
        return [BidWithProductResponse.from_view(item) for item in items]

    async def delete_bid(
        self, db: AsyncSession, bid_id: str, current_user: UserModel
    ) -> None:
        bid = await self._bids.get_bid(db, bid_id)
        if bid is None:
            raise BidNotFoundError(bid_id)
        ensure_owner_or_admin(current_user, bid.user_id)
        if bid.is_winning:
            raise ValidationFailureError("Winning bids cannot be deleted")
        if not await self._bids.delete_bid(db, bid_id):
            raise BidNotFoundError(bid_id)


class WinnerApplicationService:
    def __init__(
        self,
        winners: WinnerRepositoryProtocol | None = None,
        products: ProductRepositoryProtocol | None = None,
    ) -> None:
        self._winners: WinnerRepositoryProtocol = winners or WinnerRepository()
        self._products: ProductRepositoryProtocol = products or ProductRepository()

    async def list_winners(
        self, db: AsyncSession, limit: int, offset: int
    ) -> WinnerListResponse:
        winners = await self._winners.list_winners(db, limit, offset)
        return WinnerListResponse(
            items=[WinnerResponse.from_domain(w) for w in winners], limit=limit, offset=offset
        )

    async def get_winner(self, db: AsyncSession, winner_id: str) -> WinnerResponse:
        winner = await self._winners.get_winner(db, winner_id)
        if winner is None:
            raise WinnerNotFoundError(winner_id)
        return WinnerResponse.from_domain(winner)

    async def get_winners_by_user(self, db: AsyncSession, user_id: str) -> list[WinnerResponse]:
        return [WinnerResponse.from_domain(w) for w in await self._winners.list_by_user(db, user_id)]

    async def get_winner_by_product(self, db: AsyncSession, product_id: str) -> WinnerResponse:
        winner = await self._winners.get_by_product(db, product_id)
        if winner is None:
            raise WinnerNotFoundError(f"product {product_id}")
        return WinnerResponse.from_domain(winner)

    async def create_winner(self, db: AsyncSession, req: CreateWinnerRequest) -> WinnerResponse:
        """Manual audit record (admin only). One per product, like settlement."""
        product_id = str(req.product_id)
        if await self._products.get_product(db, product_id) is None:
            raise ProductNotFoundError(product_id)
        winner = await self._winners.create_winner(
            db,
            NewWinner(
                product_id=product_id,
                user_id=str(req.user_id),
                winning_amount=req.winning_amount,
            ),
        )
        return WinnerResponse.from_domain(winner)


class WishlistApplicationService:
    """The caller's own wishlist. Placing a bid removes the entry (see SettlementEngine)."""

    def __init__(
        self,
        wishlists: WishlistRepositoryProtocol | None = None,
        products: ProductRepositoryProtocol | None = None,
    ) -> None:
        self._wishlists: WishlistRepositoryProtocol = wishlists or WishlistRepository()
        self._products: ProductRepositoryProtocol = products or ProductRepository()

    async def add(
        self, db: AsyncSession, req: AddWishlistRequest, user_id: str
    ) -> WishlistEntryResponse:
        product_id = str(req.product_id)
        product = await self._products.get_product(db, product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        if product.is_closed:
            raise BiddingClosedError(product_id)
        entry = await self._wishlists.add(db, user_id, product_id)
        return WishlistEntryResponse.from_domain(entry)

    async def list_mine(self, db: AsyncSession, user_id: str) -> list[WishlistEntryResponse]:
        entries = await self._wishlists.list_for_user(db, user_id)
        return [WishlistEntryResponse.from_domain(e) for e in entries]

    async def is_liked(
        self, db: AsyncSession, product_id: str, user_id: str
    ) -> WishlistCheckResponse:
        liked = await self._wishlists.contains(db, user_id, product_id)
        return WishlistCheckResponse(product_id=product_id, is_liked=liked)

    async def remove(self, db: AsyncSession, product_id: str, user_id: str) -> None:
        if not await self._wishlists.remove(db, user_id, product_id):
            raise NotFoundError("Wishlist entry", product_id)
