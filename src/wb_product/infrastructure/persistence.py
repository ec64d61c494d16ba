"""ProductRepository — concrete implementation of ProductRepositoryProtocol.

All queries use raw text() SQL (no ORM). Settlement transitions are single
UPDATE ... RETURNING statements: PostgreSQL takes the row lock for the
duration of the caller's transaction, so concurrent bids on one product
serialize on that row and each sees the previous increment.

Transaction ownership: the CALLER starts and commits via `async with unit_of_work(db)`.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.wb_product.domain.models import NewProduct, Product

_COLUMNS = """
    id, name, description, image_url,
    total_bids_target, current_bid_count, unit_bid_price,
    winner_id, is_closed, owner_id,
    created_at, updated_at
"""

# Columns a client may change through PUT /products/{id}
UPDATABLE_COLUMNS = ("name", "description", "image_url", "total_bids_target", "unit_bid_price")

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_GET_PRODUCT_SQL = text(f"SELECT {_COLUMNS} FROM products WHERE id = :product_id")

_LIST_PRODUCTS_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM products
    WHERE (CAST(:include_closed AS BOOLEAN) OR is_closed = FALSE)
    ORDER BY created_at DESC, id DESC
    LIMIT :limit OFFSET :offset
""")

_INSERT_PRODUCT_SQL = text(f"""
    INSERT INTO products
        (name, description, image_url, total_bids_target, unit_bid_price, owner_id)
    VALUES
        (:name, :description, :image_url, :total_bids_target, :unit_bid_price, :owner_id)
    RETURNING {_COLUMNS}
""")

# Settled products are kept: their winners row references them.
_DELETE_PRODUCT_SQL = text(
    "DELETE FROM products WHERE id = :product_id AND is_closed = FALSE RETURNING id"
)

# Appended when total_bids_target changes: an open product that has bids must
# still need at least one more.
_TARGET_GUARD = (
    " AND is_closed = FALSE"
    " AND (current_bid_count = 0 OR current_bid_count < :total_bids_target)"
)

_INCREMENT_BID_COUNT_SQL = text(f"""
    UPDATE products
    SET current_bid_count = current_bid_count + 1,
        updated_at = NOW()
    WHERE id = :product_id
      AND is_closed = FALSE
    RETURNING {_COLUMNS}
""")

_CLOSE_BIDDING_SQL = text(f"""
    UPDATE products
    SET is_closed = TRUE,
        updated_at = NOW()
    WHERE id = :product_id
      AND is_closed = FALSE
      AND current_bid_count >= total_bids_target
    RETURNING {_COLUMNS}
""")

_SET_WINNER_SQL = text(f"""
    UPDATE products
    SET winner_id = :winner_id,
        updated_at = NOW()
    WHERE id = :product_id
      AND is_closed = TRUE
      AND winner_id IS NULL
    RETURNING {_COLUMNS}
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _opt_str(value: object) -> str | None:
    return str(value) if value is not None else None


def _row_to_product(row: Any) -> Product:
    return Product(
        id=str(row.id),
        name=row.name,
        description=row.description,
        image_url=row.image_url,
        total_bids_target=row.total_bids_target,
        current_bid_count=row.current_bid_count,
        unit_bid_price=row.unit_bid_price,
        winner_id=_opt_str(row.winner_id),
        is_closed=row.is_closed,
        owner_id=_opt_str(row.owner_id),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class ProductRepository:
    async def get_product(self, db: AsyncSession, product_id: str) -> Product | None:
        result = await db.execute(_GET_PRODUCT_SQL, {"product_id": product_id})
        row = result.fetchone()
        return _row_to_product(row) if row else None

    async def list_products(
        self, db: AsyncSession, include_closed: bool, limit: int, offset: int
    ) -> list[Product]:
        result = await db.execute(
            _LIST_PRODUCTS_SQL,
            {"include_closed": include_closed, "limit": limit, "offset": offset},
        )
        return [_row_to_product(row) for row in result.fetchall()]

    async def create_product(self, db: AsyncSession, new: NewProduct) -> Product:
        result = await db.execute(
            _INSERT_PRODUCT_SQL,
            {
                "name": new.name,
                "description": new.description,
                "image_url": new.image_url,
                "total_bids_target": new.total_bids_target,
                "unit_bid_price": new.unit_bid_price,
                "owner_id": new.owner_id,
            },
        )
        return _row_to_product(result.fetchone())

    async def update_product(
        self, db: AsyncSession, product_id: str, fields: dict[str, Any]
    ) -> Product | None:
        columns = [c for c in UPDATABLE_COLUMNS if c in fields]
        if not columns:
            return await self.get_product(db, product_id)
        assignments = ", ".join(f"{c} = :{c}" for c in columns)
        guard = _TARGET_GUARD if "total_bids_target" in columns else ""
        stmt = text(
            f"UPDATE products SET {assignments}, updated_at = NOW() "
            f"WHERE id = :product_id{guard} RETURNING {_COLUMNS}"
        )
        params = {c: fields[c] for c in columns}
        params["product_id"] = product_id
        result = await db.execute(stmt, params)
        row = result.fetchone()
        return _row_to_product(row) if row else None

    async def delete_product(self, db: AsyncSession, product_id: str) -> bool:
        result = await db.execute(_DELETE_PRODUCT_SQL, {"product_id": product_id})
        return result.fetchone() is not None

    async def increment_bid_count(self, db: AsyncSession, product_id: str) -> Product | None:
        result = await db.execute(_INCREMENT_BID_COUNT_SQL, {"product_id": product_id})
        row = result.fetchone()
        return _row_to_product(row) if row else None

    async def close_bidding(self, db: AsyncSession, product_id: str) -> Product | None:
        result = await db.execute(_CLOSE_BIDDING_SQL, {"product_id": product_id})
        row = result.fetchone()
        return _row_to_product(row) if row else None

    async def set_winner(
        self, db: AsyncSession, product_id: str, winner_id: str
    ) -> Product | None:
        result = await db.execute(
            _SET_WINNER_SQL, {"product_id": product_id, "winner_id": winner_id}
        )
        row = result.fetchone()
        return _row_to_product(row) if row else None
