"""ProductApplicationService: ownership rules and target edits."""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError

from src.wb_common.enums import UserRole
from src.wb_common.errors import (
    BiddingClosedError,
    ForbiddenError,
    ProductNotFoundError,
    ValidationFailureError,
)
from src.wb_product.application.schemas import CreateProductRequest, UpdateProductRequest
from src.wb_product.application.service import ProductApplicationService
from tests.fakes import FakeProductRepository, make_product, make_user


@pytest.fixture
def owner():
    return make_user()


@pytest.fixture
def product(owner):
    return make_product(owner_id=str(owner.id), total_bids_target=5, current_bid_count=2)


@pytest.fixture
def repo(product):
    return FakeProductRepository(product)


@pytest.fixture
def service(repo):
    return ProductApplicationService(repo)


@pytest.fixture
def db():
    return MagicMock()


def _create_request(**overrides) -> CreateProductRequest:
    fields = {
        "name": "  Espresso machine ",
        "description": "Dual boiler",
        "image_url": "https://img.example.com/e.jpg",
        "total_bids_target": 4,
        "unit_bid_price": Decimal("2.50"),
    }
    fields.update(overrides)
    return CreateProductRequest(**fields)


class TestCreate:
    async def test_creator_becomes_owner(self, service, owner, db):
        resp = await service.create_product(db, _create_request(), str(owner.id))
        assert resp.owner_id == str(owner.id)
        assert resp.name == "Espresso machine"
        assert resp.current_bid_count == 0
        assert resp.is_closed is False
        assert resp.winner_id is None

    def test_negative_target_rejected(self):
        with pytest.raises(ValidationError):
            _create_request(total_bids_target=-1)


class TestRead:
    async def test_get(self, service, product, db):
        assert (await service.get_product(db, product.id)).id == product.id

    async def test_get_missing(self, service, db):
        with pytest.raises(ProductNotFoundError):
            await service.get_product(db, "nope")

    async def test_list_hides_closed_by_default(self, service, repo, db):
        closed = make_product(is_closed=True)
        repo.products[closed.id] = closed

        open_only = await service.list_products(db, include_closed=False, limit=20, offset=0)
        everything = await service.list_products(db, include_closed=True, limit=20, offset=0)

        assert closed.id not in {p.id for p in open_only.items}
        assert closed.id in {p.id for p in everything.items}


class TestUpdate:
    async def test_owner_renames(self, service, product, owner, db):
        resp = await service.update_product(
            db, product.id, UpdateProductRequest(name="New name"), owner
        )
        assert resp.name == "New name"
        assert resp.total_bids_target == 5

    async def test_admin_may_update(self, service, product, db):
        admin = make_user(role=UserRole.ADMIN.value)
        resp = await service.update_product(
            db, product.id, UpdateProductRequest(unit_bid_price=Decimal("9.99")), admin
        )
        assert resp.unit_bid_price == Decimal("9.99")

    async def test_stranger_forbidden(self, service, product, db):
        with pytest.raises(ForbiddenError):
            await service.update_product(
                db, product.id, UpdateProductRequest(name="x"), make_user()
            )

    async def test_target_below_bids_placed(self, service, product, owner, db):
        with pytest.raises(ValidationFailureError) as exc_info:
            await service.update_product(
                db, product.id, UpdateProductRequest(total_bids_target=1), owner
            )
        assert "total_bids_target" in exc_info.value.details

    async def test_target_equal_to_bids_placed_rejected(
        self, service, repo, product, owner, db
    ):
        with pytest.raises(ValidationFailureError) as exc_info:
            await service.update_product(
                db, product.id, UpdateProductRequest(total_bids_target=2), owner
            )
        assert exc_info.value.details == {"total_bids_target": "must be > 2"}
        stored = repo.products[product.id]
        assert (stored.total_bids_target, stored.is_closed) == (5, False)

    async def test_target_one_above_bids_placed_closes_on_next_bid(
        self, service, repo, product, owner, db
    ):
        resp = await service.update_product(
            db, product.id, UpdateProductRequest(total_bids_target=3), owner
        )
        assert resp.total_bids_target == 3

        await repo.increment_bid_count(db, product.id)
        closed = await repo.close_bidding(db, product.id)
        assert closed is not None
        assert closed.current_bid_count == closed.total_bids_target == 3

    async def test_zero_target_allowed_before_any_bid(self, service, repo, owner, db):
        fresh = make_product(owner_id=str(owner.id), total_bids_target=5)
        repo.products[fresh.id] = fresh
        resp = await service.update_product(
            db, fresh.id, UpdateProductRequest(total_bids_target=0), owner
        )
        assert resp.total_bids_target == 0

    async def test_bid_between_read_and_write_is_caught(
        self, service, repo, product, owner, db
    ):
        stale = await repo.get_product(db, product.id)
        real_get = repo.get_product
        calls = 0

        async def get_product(db, product_id):
            nonlocal calls
            calls += 1
            return stale if calls == 1 else await real_get(db, product_id)

        repo.get_product = get_product
        repo.products[product.id].current_bid_count = 3

        with pytest.raises(ValidationFailureError) as exc_info:
            await service.update_product(
                db, product.id, UpdateProductRequest(total_bids_target=3), owner
            )
        assert exc_info.value.details == {"total_bids_target": "must be > 3"}
        assert repo.products[product.id].total_bids_target == 5

    async def test_target_frozen_after_close(self, service, repo, product, owner, db):
        repo.products[product.id].is_closed = True
        with pytest.raises(BiddingClosedError):
            await service.update_product(
                db, product.id, UpdateProductRequest(total_bids_target=9), owner
            )

    def test_settlement_fields_not_accepted(self):
        with pytest.raises(ValidationError):
            UpdateProductRequest(is_closed=True)
        with pytest.raises(ValidationError):
            UpdateProductRequest(winner_id="someone")


class TestDelete:
    async def test_owner_deletes(self, service, repo, product, owner, db):
        await service.delete_product(db, product.id, owner)
        assert product.id not in repo.products

    async def test_stranger_forbidden(self, service, repo, product, db):
        with pytest.raises(ForbiddenError):
            await service.delete_product(db, product.id, make_user())
        assert product.id in repo.products

    async def test_missing(self, service, owner, db):
        with pytest.raises(ProductNotFoundError):
            await service.delete_product(db, "nope", owner)

    async def test_closed_product_cannot_be_deleted(self, service, repo, product, owner, db):
        settled = repo.products[product.id]
        settled.is_closed = True
        settled.winner_id = "winner-1"

        with pytest.raises(BiddingClosedError):
            await service.delete_product(db, product.id, owner)
        with pytest.raises(BiddingClosedError):
            await service.delete_product(db, product.id, make_user(role=UserRole.ADMIN.value))
        assert product.id in repo.products
