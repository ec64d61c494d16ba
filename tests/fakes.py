"""In-memory repositories and builders shared by the unit tests.

The fakes follow the same contracts as the raw-SQL repositories. Every
method yields to the event loop once before touching state, so tests that
gather many coroutines get real interleaving between steps, while each
conditional update itself stays atomic (as the single SQL statement is).
"""

import asyncio
import uuid
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy.exc import OperationalError

from src.wb_bidding.domain.models import (
    Bid,
    BidderRef,
    BidWithBidder,
    BidWithProduct,
    NewWinner,
    ProductRef,
    Winner,
    WishlistEntry,
)
from src.wb_common.enums import UserRole
from src.wb_common.errors import DuplicateEntryError
from src.wb_contact.domain.models import ContactMessage, NewContactMessage, SubmissionWindow
from src.wb_gateway.user.db_models import UserModel
from src.wb_product.domain.models import NewProduct, Product

T0 = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def make_user(role: str = UserRole.USER.value, **overrides: Any) -> UserModel:
    user = UserModel()
    user.id = overrides.pop("id", uuid.uuid4())
    user.username = overrides.pop("username", "alice")
    user.email = overrides.pop("email", "alice@example.com")
    user.password_hash = overrides.pop("password_hash", "$2b$12$fakehash")
    user.password_scheme = overrides.pop("password_scheme", "bcrypt")
    user.first_name = overrides.pop("first_name", "Alice")
    user.last_name = overrides.pop("last_name", "Doe")
    user.phone_number = overrides.pop("phone_number", None)
    user.role = role
    user.is_active = overrides.pop("is_active", True)
    user.is_email_verified = True
    user.email_verified_at = T0
    user.created_at = T0
    user.updated_at = T0
    assert not overrides, f"unknown fields: {overrides}"
    return user


def make_product(**overrides: Any) -> Product:
    fields: dict[str, Any] = {
        "id": str(uuid.uuid4()),
        "name": "Camera",
        "description": "Mirrorless body",
        "image_url": "https://img.example.com/cam.jpg",
        "total_bids_target": 3,
        "current_bid_count": 0,
        "unit_bid_price": Decimal("5.00"),
        "winner_id": None,
        "is_closed": False,
        "owner_id": str(uuid.uuid4()),
        "created_at": T0,
        "updated_at": T0,
    }
    fields.update(overrides)
    return Product(**fields)


class FakeProductRepository:
    def __init__(self, *products: Product) -> None:
        self.products: dict[str, Product] = {p.id: p for p in products}
        self.increments = 0
        self.closes = 0

    async def get_product(self, db: Any, product_id: str) -> Product | None:
        await asyncio.sleep(0)
        product = self.products.get(product_id)
        return replace(product) if product else None

    async def list_products(
        self, db: Any, include_closed: bool, limit: int, offset: int
    ) -> list[Product]:
        items = [p for p in self.products.values() if include_closed or not p.is_closed]
        return [replace(p) for p in items[offset : offset + limit]]

    async def create_product(self, db: Any, new: NewProduct) -> Product:
        product = make_product(
            name=new.name,
            description=new.description,
            image_url=new.image_url,
            total_bids_target=new.total_bids_target,
            unit_bid_price=new.unit_bid_price,
            owner_id=new.owner_id,
        )
        self.products[product.id] = product
        return replace(product)

    async def update_product(
        self, db: Any, product_id: str, fields: dict[str, Any]
    ) -> Product | None:
        product = self.products.get(product_id)
        if product is None:
            return None
        target = fields.get("total_bids_target")
        if target is not None and (
            product.is_closed
            or (product.current_bid_count > 0 and product.current_bid_count >= target)
        ):
            return None
        for name, value in fields.items():
            setattr(product, name, value)
        return replace(product)

    async def delete_product(self, db: Any, product_id: str) -> bool:
        product = self.products.get(product_id)
        if product is None or product.is_closed:
            return False
        del self.products[product_id]
        return True

    async def increment_bid_count(self, db: Any, product_id: str) -> Product | None:
        await asyncio.sleep(0)
        product = self.products.get(product_id)
        if product is None or product.is_closed:
            return None
        product.current_bid_count += 1
        self.increments += 1
        return replace(product)

    async def close_bidding(self, db: Any, product_id: str) -> Product | None:
        await asyncio.sleep(0)
        product = self.products.get(product_id)
        if product is None or product.is_closed or not product.target_reached:
            return None
        product.is_closed = True
        self.closes += 1
        return replace(product)

    async def set_winner(self, db: Any, product_id: str, winner_id: str) -> Product | None:
        await asyncio.sleep(0)
        product = self.products.get(product_id)
        if product is None or not product.is_closed or product.winner_id is not None:
            return None
        product.winner_id = winner_id
        return replace(product)


class FakeBidRepository:
    def __init__(self, products: FakeProductRepository | None = None) -> None:
        self.bids: dict[str, Bid] = {}
        self.usernames: dict[str, str] = {}
        self._products = products
        self._tick = 0

    async def create_bid(
        self, db: Any, product_id: str, user_id: str, amount: Decimal
    ) -> Bid:
        await asyncio.sleep(0)
        self._tick += 1
        bid = Bid(
            id=str(uuid.uuid4()),
            product_id=product_id,
            user_id=user_id,
            amount=amount,
            placed_at=T0 + timedelta(seconds=self._tick),
        )
        self.bids[bid.id] = bid
        return replace(bid)

    async def get_bid(self, db: Any, bid_id: str) -> Bid | None:
        await asyncio.sleep(0)
        bid = self.bids.get(bid_id)
        return replace(bid) if bid else None

    async def list_for_product(self, db: Any, product_id: str) -> list[Bid]:
        await asyncio.sleep(0)
        return [replace(b) for b in self.bids.values() if b.product_id == product_id]

    async def list_for_product_with_bidder(
        self, db: Any, product_id: str
    ) -> list[BidWithBidder]:
        bids = sorted(
            (b for b in self.bids.values() if b.product_id == product_id),
            key=lambda b: b.amount,
            reverse=True,
        )
        return [
            BidWithBidder(
                bid=replace(b),
                bidder=BidderRef(id=b.user_id, username=self.usernames[b.user_id])
                if b.user_id in self.usernames
                else None,
            )
            for b in bids
        ]

    async def list_by_user(self, db: Any, user_id: str) -> list[BidWithProduct]:
        bids = sorted(
            (b for b in self.bids.values() if b.user_id == user_id),
            key=lambda b: b.placed_at,
            reverse=True,
        )
        items = []
        for b in bids:
            ref = None
            product = self._products.products.get(b.product_id) if self._products else None
            if product is not None:
                ref = ProductRef(
                    id=product.id,
                    name=product.name,
                    image_url=product.image_url,
                    is_closed=product.is_closed,
                )
            items.append(BidWithProduct(bid=replace(b), product=ref))
        return items

    async def get_highest(self, db: Any, product_id: str) -> Bid | None:
        bids = [b for b in self.bids.values() if b.product_id == product_id]
        if not bids:
            return None
        return replace(max(bids, key=lambda b: (b.amount, -b.placed_at.timestamp())))

    async def delete_bid(self, db: Any, bid_id: str) -> bool:
        return self.bids.pop(bid_id, None) is not None

    async def mark_winning(self, db: Any, bid_id: str) -> Bid | None:
        await asyncio.sleep(0)
        bid = self.bids.get(bid_id)
        if bid is None:
            return None
        if any(b.is_winning for b in self.bids.values() if b.product_id == bid.product_id):
            return None
        bid.is_winning = True
        return replace(bid)


class FakeWinnerRepository:
    def __init__(self) -> None:
        self.winners: dict[str, Winner] = {}

    async def create_winner(self, db: Any, new: NewWinner) -> Winner:
        await asyncio.sleep(0)
        if any(w.product_id == new.product_id for w in self.winners.values()):
            raise DuplicateEntryError(["product_id"])
        winner = Winner(
            id=str(uuid.uuid4()),
            product_id=new.product_id,
            user_id=new.user_id,
            winning_amount=new.winning_amount,
            won_at=T0,
        )
        self.winners[winner.id] = winner
        return replace(winner)

    async def get_winner(self, db: Any, winner_id: str) -> Winner | None:
        winner = self.winners.get(winner_id)
        return replace(winner) if winner else None

    async def list_winners(self, db: Any, limit: int, offset: int) -> list[Winner]:
        return list(self.winners.values())[offset : offset + limit]

    async def list_by_user(self, db: Any, user_id: str) -> list[Winner]:
        return [w for w in self.winners.values() if w.user_id == user_id]

    async def get_by_product(self, db: Any, product_id: str) -> Winner | None:
        for winner in self.winners.values():
            if winner.product_id == product_id:
                return replace(winner)
        return None


class FakeWishlistRepository:
    def __init__(self, *entries: tuple[str, str], fail: bool = False) -> None:
        self.entries: set[tuple[str, str]] = set(entries)
        self.fail = fail
        self._ids: dict[tuple[str, str], str] = {}

    def _entry(self, key: tuple[str, str]) -> WishlistEntry:
        entry_id = self._ids.setdefault(key, str(uuid.uuid4()))
        return WishlistEntry(id=entry_id, user_id=key[0], product_id=key[1], created_at=T0)

    async def add(self, db: Any, user_id: str, product_id: str) -> WishlistEntry:
        self.entries.add((user_id, product_id))
        return self._entry((user_id, product_id))

    async def list_for_user(self, db: Any, user_id: str) -> list[WishlistEntry]:
        return [self._entry(key) for key in sorted(self.entries) if key[0] == user_id]

    async def contains(self, db: Any, user_id: str, product_id: str) -> bool:
        return (user_id, product_id) in self.entries

    async def remove(self, db: Any, user_id: str, product_id: str) -> bool:
        await asyncio.sleep(0)
        if self.fail:
            raise OperationalError("DELETE FROM wishlists", {}, Exception("connection lost"))
        if (user_id, product_id) in self.entries:
            self.entries.discard((user_id, product_id))
            return True
        return False


class FakeContactRepository:
    def __init__(self, clock: FakeClock, fail_window_lookup: bool = False) -> None:
        self.contacts: dict[str, ContactMessage] = {}
        self._clock = clock
        self.fail_window_lookup = fail_window_lookup

    async def create(self, db: Any, new: NewContactMessage) -> ContactMessage:
        now = self._clock()
        contact = ContactMessage(
            id=str(uuid.uuid4()),
            first_name=new.first_name,
            last_name=new.last_name,
            email=new.email,
            subject=new.subject,
            message=new.message,
            status="new",
            user_id=new.user_id,
            replied_at=None,
            created_at=now,
            updated_at=now,
        )
        self.contacts[contact.id] = contact
        return replace(contact)

    async def get(self, db: Any, contact_id: str) -> ContactMessage | None:
        contact = self.contacts.get(contact_id)
        return replace(contact) if contact else None

    async def list_contacts(
        self, db: Any, status: str | None, limit: int, offset: int
    ) -> tuple[list[ContactMessage], int]:
        items = [c for c in self.contacts.values() if status is None or c.status == status]
        return [replace(c) for c in items[offset : offset + limit]], len(items)

    async def update_status(
        self, db: Any, contact_id: str, status: str
    ) -> ContactMessage | None:
        contact = self.contacts.get(contact_id)
        if contact is None:
            return None
        contact.status = status
        if status == "replied" and contact.replied_at is None:
            contact.replied_at = self._clock()
        return replace(contact)

    async def submissions_since(
        self, db: Any, email: str, since: datetime
    ) -> SubmissionWindow:
        if self.fail_window_lookup:
            raise OperationalError("SELECT COUNT(*)", {}, Exception("timeout"))
        recent = [c for c in self.contacts.values() if c.email == email and c.created_at >= since]
        oldest = min((c.created_at for c in recent), default=None)
        return SubmissionWindow(count=len(recent), oldest_at=oldest)
