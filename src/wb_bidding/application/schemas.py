"""Pydantic schemas for bids and winners."""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from src.wb_bidding.domain.models import (
    Bid,
    BidderRef,
    BidWithBidder,
    BidWithProduct,
    ProductRef,
    SettlementResult,
    Winner,
    WishlistEntry,
)
from src.wb_product.application.schemas import ProductResponse


class PlaceBidRequest(BaseModel):
    product_id: uuid.UUID
    amount: Decimal = Field(..., ge=Decimal("0.01"), max_digits=12, decimal_places=2)


class CreateWinnerRequest(BaseModel):
    product_id: uuid.UUID
    user_id: uuid.UUID
    winning_amount: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)


class BidResponse(BaseModel):
    id: str
    product_id: str
    user_id: str
    amount: Decimal
    placed_at: datetime
    is_winning: bool

    @classmethod
    def from_domain(cls, b: Bid) -> "BidResponse":
        return cls(
            id=b.id,
            product_id=b.product_id,
            user_id=b.user_id,
            amount=b.amount,
            placed_at=b.placed_at,
            is_winning=b.is_winning,
        )


class BidderInfo(BaseModel):
    id: str
    username: str
    first_name: str | None = None
    last_name: str | None = None

    @classmethod
    def from_domain(cls, ref: BidderRef) -> "BidderInfo":
        return cls(
            id=ref.id,
            username=ref.username,
            first_name=ref.first_name,
            last_name=ref.last_name,
        )


class ProductSummary(BaseModel):
    id: str
    name: str
    image_url: str
    is_closed: bool

    @classmethod
    def from_domain(cls, ref: ProductRef) -> "ProductSummary":
        return cls(id=ref.id, name=ref.name, image_url=ref.image_url, is_closed=ref.is_closed)


class BidWithBidderResponse(BidResponse):
    bidder: BidderInfo | None = None

    @classmethod
    def from_view(cls, item: BidWithBidder) -> "BidWithBidderResponse":
        base = BidResponse.from_domain(item.bid).model_dump()
        bidder = BidderInfo.from_domain(item.bidder) if item.bidder else None
        return cls(**base, bidder=bidder)


class BidWithProductResponse(BidResponse):
    product: ProductSummary | None = None

    @classmethod
    def from_view(cls, item: BidWithProduct) -> "BidWithProductResponse":
        base = BidResponse.from_domain(item.bid).model_dump()
        product = ProductSummary.from_domain(item.product) if item.product else None
        return cls(**base, product=product)


class WinnerResponse(BaseModel):
    id: str
    product_id: str
    user_id: str
    winning_amount: Decimal
    won_at: datetime

    @classmethod
    def from_domain(cls, w: Winner) -> "WinnerResponse":
        return cls(
            id=w.id,
            product_id=w.product_id,
            user_id=w.user_id,
            winning_amount=w.winning_amount,
            won_at=w.won_at,
        )


class PlaceBidResponse(BaseModel):
    bid: BidResponse
    product: ProductResponse
    winner: WinnerResponse | None = None
    is_bidding_complete: bool
    wishlist_removed: bool

    @classmethod
    def build(cls, bid: Bid, result: SettlementResult) -> "PlaceBidResponse":
        # Re-read is_winning from the settlement in case this bid was the one drawn.
        placed = result.winning_bid if (
            result.winning_bid is not None and result.winning_bid.id == bid.id
        ) else bid
        return cls(
            bid=BidResponse.from_domain(placed),
            product=ProductResponse.from_domain(result.product),
            winner=WinnerResponse.from_domain(result.winner) if result.winner else None,
            is_bidding_complete=result.is_bidding_complete,
            wishlist_removed=result.wishlist_removed,
        )


class WinnerListResponse(BaseModel):
    items: list[WinnerResponse]
    limit: int
    offset: int


class AddWishlistRequest(BaseModel):
    product_id: uuid.UUID


class WishlistEntryResponse(BaseModel):
    id: str
    product_id: str
    created_at: datetime
    product: ProductSummary | None = None

    @classmethod
    def from_domain(cls, e: WishlistEntry) -> "WishlistEntryResponse":
        return cls(
            id=e.id,
            product_id=e.product_id,
            created_at=e.created_at,
            product=ProductSummary.from_domain(e.product) if e.product else None,
        )


class WishlistCheckResponse(BaseModel):
    product_id: str
    is_liked: bool
