"""Repository Protocol — dependency inversion for testability.

Unit tests inject a mock or in-memory fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.wb_product.domain.models import NewProduct, Product


class ProductRepositoryProtocol(Protocol):
    async def get_product(self, db: AsyncSession, product_id: str) -> Product | None: ...

    async def list_products(
        self, db: AsyncSession, include_closed: bool, limit: int, offset: int
    ) -> list[Product]: ...

    async def create_product(self, db: AsyncSession, new: NewProduct) -> Product: ...

    async def update_product(
        self, db: AsyncSession, product_id: str, fields: dict[str, Any]
    ) -> Product | None:
        """Apply client-editable fields.

        A new total_bids_target only applies to an open product whose
        current_bid_count is 0 or below the new target; otherwise None.
        """
        ...

    async def delete_product(self, db: AsyncSession, product_id: str) -> bool:
        """Delete an open product; closed products are never deleted."""
        ...

    # --- settlement transitions (each a single atomic statement) ---

    async def increment_bid_count(self, db: AsyncSession, product_id: str) -> Product | None:
        """current_bid_count += 1 on an open product.

        Returns the row as updated; None if the product is missing or closed.
        """
        ...

    async def close_bidding(self, db: AsyncSession, product_id: str) -> Product | None:
        """Flip is_closed false→true iff the target is reached.

        Returns the row only to the one caller that performed the flip;
        everyone else (already closed, target not reached) gets None.
        """
        ...

    async def set_winner(
        self, db: AsyncSession, product_id: str, winner_id: str
    ) -> Product | None: ...
