"""Bid queries/deletes, the winner audit service and wishlists."""

import uuid
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from src.wb_bidding.application.schemas import (
    AddWishlistRequest,
    CreateWinnerRequest,
    PlaceBidRequest,
)
from src.wb_bidding.application.service import (
    BidApplicationService,
    WinnerApplicationService,
    WishlistApplicationService,
)
from src.wb_bidding.domain.models import NewWinner
from src.wb_common.enums import UserRole
from src.wb_common.errors import (
    BiddingClosedError,
    BidNotFoundError,
    DuplicateEntryError,
    ForbiddenError,
    NotFoundError,
    ProductNotFoundError,
    ValidationFailureError,
    WinnerNotFoundError,
)
from tests.fakes import (
    FakeBidRepository,
    FakeProductRepository,
    FakeWinnerRepository,
    FakeWishlistRepository,
    make_product,
    make_user,
)


@pytest.fixture
def product():
    return make_product(total_bids_target=10)


@pytest.fixture
def products(product):
    return FakeProductRepository(product)


@pytest.fixture
def bids(products):
    return FakeBidRepository(products)


@pytest.fixture
def winners():
    return FakeWinnerRepository()


@pytest.fixture
def service(products, bids, winners):
    return BidApplicationService(products, bids, winners, FakeWishlistRepository())


@pytest.fixture
def db():
    return MagicMock()


class TestPlaceBid:
    async def test_closed_product_rejected_before_insert(self, service, products, bids, product, db):
        products.products[product.id].is_closed = True
        req = PlaceBidRequest(product_id=product.id, amount=Decimal("2.00"))
        with pytest.raises(BiddingClosedError):
            await service.place_bid(db, req, "u1")
        assert bids.bids == {}

    async def test_unknown_product(self, service, db):
        req = PlaceBidRequest(product_id=uuid.uuid4(), amount=Decimal("2.00"))
        with pytest.raises(ProductNotFoundError):
            await service.place_bid(db, req, "u1")

    def test_amount_below_minimum_rejected(self, product):
        with pytest.raises(ValueError):
            PlaceBidRequest(product_id=product.id, amount=Decimal("0"))


class TestBidQueries:
    async def test_get_bid(self, service, bids, product, db):
        bid = await bids.create_bid(db, product.id, "u1", Decimal("3.00"))
        resp = await service.get_bid(db, bid.id)
        assert resp.amount == Decimal("3.00")
        assert resp.is_winning is False

    async def test_get_missing_bid(self, service, db):
        with pytest.raises(BidNotFoundError):
            await service.get_bid(db, "nope")

    async def test_bids_for_product_include_bidder(self, service, bids, product, db):
        bids.usernames["u1"] = "alice"
        await bids.create_bid(db, product.id, "u1", Decimal("1.00"))
        await bids.create_bid(db, product.id, "u2", Decimal("4.00"))

        items = await service.get_bids_for_product(db, product.id)

        assert [i.amount for i in items] == [Decimal("4.00"), Decimal("1.00")]
        assert items[0].bidder is None
        assert items[1].bidder.username == "alice"

    async def test_bids_for_unknown_product(self, service, db):
        with pytest.raises(ProductNotFoundError):
            await service.get_bids_for_product(db, "missing")

    async def test_highest_bid(self, service, bids, product, db):
        assert await service.get_highest_bid(db, product.id) is None
        await bids.create_bid(db, product.id, "u1", Decimal("1.00"))
        await bids.create_bid(db, product.id, "u2", Decimal("9.00"))
        highest = await service.get_highest_bid(db, product.id)
        assert highest.user_id == "u2"

    async def test_bids_by_user_self(self, service, bids, product, db):
        user = make_user()
        await bids.create_bid(db, product.id, str(user.id), Decimal("1.00"))
        items = await service.get_bids_by_user(db, str(user.id), user)
        assert len(items) == 1
        assert items[0].product.name == product.name

    async def test_bids_by_other_user_forbidden(self, service, db):
        with pytest.raises(ForbiddenError):
            await service.get_bids_by_user(db, str(uuid.uuid4()), make_user())

    async def test_bids_by_other_user_as_admin(self, service, db):
        admin = make_user(role=UserRole.ADMIN.value)
        assert await service.get_bids_by_user(db, str(uuid.uuid4()), admin) == []


class TestDeleteBid:
    async def test_owner_deletes(self, service, bids, product, db):
        user = make_user()
        bid = await bids.create_bid(db, product.id, str(user.id), Decimal("1.00"))
        await service.delete_bid(db, bid.id, user)
        assert bids.bids == {}

    async def test_stranger_forbidden(self, service, bids, product, db):
        bid = await bids.create_bid(db, product.id, str(uuid.uuid4()), Decimal("1.00"))
        with pytest.raises(ForbiddenError):
            await service.delete_bid(db, bid.id, make_user())
        assert bid.id in bids.bids

    async def test_admin_deletes_any(self, service, bids, product, db):
        bid = await bids.create_bid(db, product.id, str(uuid.uuid4()), Decimal("1.00"))
        await service.delete_bid(db, bid.id, make_user(role=UserRole.ADMIN.value))
        assert bids.bids == {}

    async def test_winning_bid_kept(self, service, bids, product, db):
        admin = make_user(role=UserRole.ADMIN.value)
        bid = await bids.create_bid(db, product.id, "u1", Decimal("1.00"))
        await bids.mark_winning(db, bid.id)
        with pytest.raises(ValidationFailureError):
            await service.delete_bid(db, bid.id, admin)

    async def test_missing(self, service, db):
        with pytest.raises(BidNotFoundError):
            await service.delete_bid(db, "nope", make_user())


class TestWinnerService:
    @pytest.fixture
    def winner_service(self, winners, products):
        return WinnerApplicationService(winners, products)

    async def test_create_and_lookup(self, winner_service, product, db):
        req = CreateWinnerRequest(
            product_id=product.id, user_id=uuid.uuid4(), winning_amount=Decimal("12.50")
        )
        created = await winner_service.create_winner(db, req)

        assert (await winner_service.get_winner(db, created.id)).id == created.id
        assert (await winner_service.get_winner_by_product(db, product.id)).id == created.id
        by_user = await winner_service.get_winners_by_user(db, str(req.user_id))
        assert [w.id for w in by_user] == [created.id]

    async def test_second_winner_for_product_is_duplicate(self, winner_service, winners, product, db):
        await winners.create_winner(db, NewWinner(product.id, "u1", Decimal("1.00")))
        req = CreateWinnerRequest(
            product_id=product.id, user_id=uuid.uuid4(), winning_amount=Decimal("1.00")
        )
        with pytest.raises(DuplicateEntryError) as exc_info:
            await winner_service.create_winner(db, req)
        assert exc_info.value.fields == ["product_id"]

    async def test_create_for_unknown_product(self, winner_service, db):
        req = CreateWinnerRequest(
            product_id=uuid.uuid4(), user_id=uuid.uuid4(), winning_amount=Decimal("1.00")
        )
        with pytest.raises(ProductNotFoundError):
            await winner_service.create_winner(db, req)

    async def test_missing_lookups(self, winner_service, db):
        with pytest.raises(WinnerNotFoundError):
            await winner_service.get_winner(db, "nope")
        with pytest.raises(WinnerNotFoundError):
            await winner_service.get_winner_by_product(db, "nope")

    async def test_list_paginates(self, winner_service, winners, db):
        for i in range(3):
            await winners.create_winner(db, NewWinner(f"p{i}", "u1", Decimal("1.00")))
        page = await winner_service.list_winners(db, limit=2, offset=1)
        assert len(page.items) == 2
        assert (page.limit, page.offset) == (2, 1)


class TestWishlistService:
    @pytest.fixture
    def wishlists(self):
        return FakeWishlistRepository()

    @pytest.fixture
    def wishlist_service(self, wishlists, products):
        return WishlistApplicationService(wishlists, products)

    async def test_add_is_idempotent(self, wishlist_service, product, db):
        req = AddWishlistRequest(product_id=product.id)
        first = await wishlist_service.add(db, req, "u1")
        second = await wishlist_service.add(db, req, "u1")
        assert first.id == second.id
        assert [e.product_id for e in await wishlist_service.list_mine(db, "u1")] == [product.id]

    async def test_closed_product_cannot_be_added(self, wishlist_service, products, product, db):
        products.products[product.id].is_closed = True
        with pytest.raises(BiddingClosedError):
            await wishlist_service.add(db, AddWishlistRequest(product_id=product.id), "u1")

    async def test_unknown_product(self, wishlist_service, db):
        with pytest.raises(ProductNotFoundError):
            await wishlist_service.add(db, AddWishlistRequest(product_id=uuid.uuid4()), "u1")

    async def test_remove(self, wishlist_service, wishlists, product, db):
        wishlists.entries.add(("u1", product.id))
        await wishlist_service.remove(db, product.id, "u1")
        assert wishlists.entries == set()
        with pytest.raises(NotFoundError):
            await wishlist_service.remove(db, product.id, "u1")

    async def test_is_liked_is_per_user(self, wishlist_service, wishlists, product, db):
        wishlists.entries.add(("u1", product.id))
        mine = await wishlist_service.is_liked(db, product.id, "u1")
        theirs = await wishlist_service.is_liked(db, product.id, "u2")
        assert (mine.product_id, mine.is_liked) == (product.id, True)
        assert theirs.is_liked is False
