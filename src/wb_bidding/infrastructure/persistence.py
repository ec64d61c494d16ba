"""Raw-SQL repositories for bids, winners and wishlist entries.

Transaction ownership: the CALLER starts and commits via `async with unit_of_work(db)`.
"""

from decimal import Decimal
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

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
from src.wb_common.database import violated_constraint
from src.wb_common.errors import DuplicateEntryError

_BID_COLUMNS = "b.id, b.product_id, b.user_id, b.amount, b.placed_at, b.is_winning"
_WINNER_COLUMNS = "id, product_id, user_id, winning_amount, won_at"

# ---------------------------------------------------------------------------
# SQL: bids
# ---------------------------------------------------------------------------

_INSERT_BID_SQL = text(f"""
    INSERT INTO bids AS b (product_id, user_id, amount)
    VALUES (:product_id, :user_id, :amount)
    RETURNING {_BID_COLUMNS}
""")

_GET_BID_SQL = text(f"SELECT {_BID_COLUMNS} FROM bids b WHERE b.id = :bid_id")

_LIST_FOR_PRODUCT_SQL = text(f"""
    SELECT {_BID_COLUMNS} FROM bids b
    WHERE b.product_id = :product_id
    ORDER BY b.placed_at ASC, b.id ASC
""")

_LIST_FOR_PRODUCT_WITH_BIDDER_SQL = text(f"""
    SELECT {_BID_COLUMNS},
           u.username AS bidder_username,
           u.first_name AS bidder_first_name,
           u.last_name AS bidder_last_name
    FROM bids b
    LEFT JOIN users u ON u.id = b.user_id
    WHERE b.product_id = :product_id
    ORDER BY b.amount DESC, b.placed_at ASC
""")

_LIST_BY_USER_SQL = text(f"""
    SELECT {_BID_COLUMNS},
           p.name AS product_name,
           p.image_url AS product_image_url,
           p.is_closed AS product_is_closed
    FROM bids b
    LEFT JOIN products p ON p.id = b.product_id
    WHERE b.user_id = :user_id
    ORDER BY b.placed_at DESC, b.id DESC
""")

_HIGHEST_BID_SQL = text(f"""
    SELECT {_BID_COLUMNS} FROM bids b
    WHERE b.product_id = :product_id
    ORDER BY b.amount DESC, b.placed_at ASC
    LIMIT 1
""")

_DELETE_BID_SQL = text("DELETE FROM bids WHERE id = :bid_id RETURNING id")

# Second line of defence next to the conditional close: never two winning
# bids on one product.
_MARK_WINNING_SQL = text(f"""
    UPDATE bids AS b
    SET is_winning = TRUE
    WHERE b.id = :bid_id
      AND NOT EXISTS (
          SELECT 1 FROM bids w
          WHERE w.product_id = b.product_id AND w.is_winning = TRUE
      )
    RETURNING {_BID_COLUMNS}
""")

# ---------------------------------------------------------------------------
# SQL: winners
# ---------------------------------------------------------------------------

_INSERT_WINNER_SQL = text(f"""
    INSERT INTO winners (product_id, user_id, winning_amount)
    VALUES (:product_id, :user_id, :winning_amount)
    RETURNING {_WINNER_COLUMNS}
""")

_GET_WINNER_SQL = text(f"SELECT {_WINNER_COLUMNS} FROM winners WHERE id = :winner_id")

_LIST_WINNERS_SQL = text(f"""
    SELECT {_WINNER_COLUMNS} FROM winners
    ORDER BY won_at DESC, id DESC
    LIMIT :limit OFFSET :offset
""")

_LIST_WINNERS_BY_USER_SQL = text(f"""
    SELECT {_WINNER_COLUMNS} FROM winners
    WHERE user_id = :user_id
    ORDER BY won_at DESC
""")

_GET_WINNER_BY_PRODUCT_SQL = text(
    f"SELECT {_WINNER_COLUMNS} FROM winners WHERE product_id = :product_id"
)

# ---------------------------------------------------------------------------
# SQL: wishlists
# ---------------------------------------------------------------------------

_WISHLIST_COLUMNS = "w.id, w.user_id, w.product_id, w.created_at"

_ADD_WISHLIST_SQL = text(f"""
    INSERT INTO wishlists AS w (user_id, product_id)
    VALUES (:user_id, :product_id)
    ON CONFLICT ON CONSTRAINT uq_wishlists_user_product DO NOTHING
    RETURNING {_WISHLIST_COLUMNS}
""")

_GET_WISHLIST_SQL = text(f"""
    SELECT {_WISHLIST_COLUMNS} FROM wishlists w
    WHERE w.user_id = :user_id AND w.product_id = :product_id
""")

_LIST_WISHLIST_SQL = text(f"""
    SELECT {_WISHLIST_COLUMNS},
           p.name AS product_name,
           p.image_url AS product_image_url,
           p.is_closed AS product_is_closed
    FROM wishlists w
    LEFT JOIN products p ON p.id = w.product_id
    WHERE w.user_id = :user_id
    ORDER BY w.created_at DESC, w.id DESC
""")

_REMOVE_WISHLIST_SQL = text(
    "DELETE FROM wishlists WHERE user_id = :user_id AND product_id = :product_id RETURNING id"
)

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_bid(row: Any) -> Bid:
    return Bid(
        id=str(row.id),
        product_id=str(row.product_id),
        user_id=str(row.user_id),
        amount=Decimal(row.amount),
        placed_at=row.placed_at,
        is_winning=row.is_winning,
    )


def _row_to_winner(row: Any) -> Winner:
    return Winner(
        id=str(row.id),
        product_id=str(row.product_id),
        user_id=str(row.user_id),
        winning_amount=Decimal(row.winning_amount),
        won_at=row.won_at,
    )


def _row_to_wishlist_entry(row: Any) -> WishlistEntry:
    return WishlistEntry(
        id=str(row.id),
        user_id=str(row.user_id),
        product_id=str(row.product_id),
        created_at=row.created_at,
    )


# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------


class BidRepository:
    async def create_bid(
        self, db: AsyncSession, product_id: str, user_id: str, amount: Decimal
    ) -> Bid:
        result = await db.execute(
            _INSERT_BID_SQL,
            {"product_id": product_id, "user_id": user_id, "amount": amount},
        )
        return _row_to_bid(result.fetchone())

    async def get_bid(self, db: AsyncSession, bid_id: str) -> Bid | None:
        row = (await db.execute(_GET_BID_SQL, {"bid_id": bid_id})).fetchone()
        return _row_to_bid(row) if row else None

    async def list_for_product(self, db: AsyncSession, product_id: str) -> list[Bid]:
        result = await db.execute(_LIST_FOR_PRODUCT_SQL, {"product_id": product_id})
        return [_row_to_bid(row) for row in result.fetchall()]

    async def list_for_product_with_bidder(
        self, db: AsyncSession, product_id: str
    ) -> list[BidWithBidder]:
        result = await db.execute(
            _LIST_FOR_PRODUCT_WITH_BIDDER_SQL, {"product_id": product_id}
        )
        items = []
        for row in result.fetchall():
            bidder = None
            if row.bidder_username is not None:
                bidder = BidderRef(
                    id=str(row.user_id),
                    username=row.bidder_username,
                    first_name=row.bidder_first_name,
                    last_name=row.bidder_last_name,
                )
            items.append(BidWithBidder(bid=_row_to_bid(row), bidder=bidder))
        return items

    async def list_by_user(self, db: AsyncSession, user_id: str) -> list[BidWithProduct]:
        result = await db.execute(_LIST_BY_USER_SQL, {"user_id": user_id})
        items = []
        for row in result.fetchall():
            product = None
            if row.product_name is not None:
                product = ProductRef(
                    id=str(row.product_id),
                    name=row.product_name,
                    image_url=row.product_image_url,
                    is_closed=row.product_is_closed,
                )
            items.append(BidWithProduct(bid=_row_to_bid(row), product=product))
        return items

    async def get_highest(self, db: AsyncSession, product_id: str) -> Bid | None:
        row = (await db.execute(_HIGHEST_BID_SQL, {"product_id": product_id})).fetchone()
        return _row_to_bid(row) if row else None

    async def delete_bid(self, db: AsyncSession, bid_id: str) -> bool:
        result = await db.execute(_DELETE_BID_SQL, {"bid_id": bid_id})
        return result.fetchone() is not None

    async def mark_winning(self, db: AsyncSession, bid_id: str) -> Bid | None:
        row = (await db.execute(_MARK_WINNING_SQL, {"bid_id": bid_id})).fetchone()
        return _row_to_bid(row) if row else None


class WinnerRepository:
    async def create_winner(self, db: AsyncSession, new: NewWinner) -> Winner:
        # Savepoint so a duplicate does not poison the caller's transaction.
        try:
            async with db.begin_nested():
                result = await db.execute(
                    _INSERT_WINNER_SQL,
                    {
                        "product_id": new.product_id,
                        "user_id": new.user_id,
                        "winning_amount": new.winning_amount,
                    },
                )
                row = result.fetchone()
        except IntegrityError as exc:
            if violated_constraint(exc) == "uq_winners_product_id":
                raise DuplicateEntryError(["product_id"]) from exc
            raise
        return _row_to_winner(row)

    async def get_winner(self, db: AsyncSession, winner_id: str) -> Winner | None:
        row = (await db.execute(_GET_WINNER_SQL, {"winner_id": winner_id})).fetchone()
        return _row_to_winner(row) if row else None

    async def list_winners(self, db: AsyncSession, limit: int, offset: int) -> list[Winner]:
        result = await db.execute(_LIST_WINNERS_SQL, {"limit": limit, "offset": offset})
        return [_row_to_winner(row) for row in result.fetchall()]

    async def list_by_user(self, db: AsyncSession, user_id: str) -> list[Winner]:
        result = await db.execute(_LIST_WINNERS_BY_USER_SQL, {"user_id": user_id})
        return [_row_to_winner(row) for row in result.fetchall()]

    async def get_by_product(self, db: AsyncSession, product_id: str) -> Winner | None:
        row = (
            await db.execute(_GET_WINNER_BY_PRODUCT_SQL, {"product_id": product_id})
        ).fetchone()
        return _row_to_winner(row) if row else None


class WishlistRepository:
    async def add(self, db: AsyncSession, user_id: str, product_id: str) -> WishlistEntry:
        params = {"user_id": user_id, "product_id": product_id}
        row = (await db.execute(_ADD_WISHLIST_SQL, params)).fetchone()
        if row is None:
            row = (await db.execute(_GET_WISHLIST_SQL, params)).fetchone()
        return _row_to_wishlist_entry(row)

    async def list_for_user(self, db: AsyncSession, user_id: str) -> list[WishlistEntry]:
        result = await db.execute(_LIST_WISHLIST_SQL, {"user_id": user_id})
        items = []
        for row in result.fetchall():
            entry = _row_to_wishlist_entry(row)
            if row.product_name is not None:
                entry.product = ProductRef(
                    id=entry.product_id,
                    name=row.product_name,
                    image_url=row.product_image_url,
                    is_closed=row.product_is_closed,
                )
            items.append(entry)
        return items

    async def contains(self, db: AsyncSession, user_id: str, product_id: str) -> bool:
        params = {"user_id": user_id, "product_id": product_id}
        return (await db.execute(_GET_WISHLIST_SQL, params)).fetchone() is not None

    async def remove(self, db: AsyncSession, user_id: str, product_id: str) -> bool:
        result = await db.execute(
            _REMOVE_WISHLIST_SQL, {"user_id": user_id, "product_id": product_id}
        )
        return result.fetchone() is not None
