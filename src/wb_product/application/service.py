"""ProductApplicationService — product CRUD.

Ownership rules: the creator owns the product; owner or admin may update
or delete it. Settlement fields (current_bid_count, is_closed, winner_id)
are only ever changed by the bidding workflow.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.wb_common.errors import (
    BiddingClosedError,
    PersistenceFailureError,
    ProductNotFoundError,
    ValidationFailureError,
)
from src.wb_gateway.auth.dependencies import ensure_owner_or_admin
from src.wb_gateway.user.db_models import UserModel
from src.wb_product.application.schemas import (
    CreateProductRequest,
    ProductListResponse,
    ProductResponse,
    UpdateProductRequest,
)
from src.wb_product.domain.models import NewProduct, Product
from src.wb_product.domain.repository import ProductRepositoryProtocol
from src.wb_product.infrastructure.persistence import ProductRepository


class ProductApplicationService:
    def __init__(self, repo: ProductRepositoryProtocol | None = None) -> None:
        self._repo: ProductRepositoryProtocol = repo or ProductRepository()

    async def _require(self, db: AsyncSession, product_id: str) -> Product:
        product = await self._repo.get_product(db, product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    async def create_product(
        self, db: AsyncSession, req: CreateProductRequest, owner_id: str
    ) -> ProductResponse:
        product = await self._repo.create_product(
            db,
            NewProduct(
                name=req.name.strip(),
                description=req.description,
                image_url=req.image_url,
                total_bids_target=req.total_bids_target,
                unit_bid_price=req.unit_bid_price,
                owner_id=owner_id,
            ),
        )
        return ProductResponse.from_domain(product)

    async def get_product(self, db: AsyncSession, product_id: str) -> ProductResponse:
        return ProductResponse.from_domain(await self._require(db, product_id))

    async def list_products(
        self, db: AsyncSession, include_closed: bool, limit: int, offset: int
    ) -> ProductListResponse:
        products = await self._repo.list_products(db, include_closed, limit, offset)
        return ProductListResponse(
            items=[ProductResponse.from_domain(p) for p in products],
            limit=limit,
            offset=offset,
        )

    async def update_product(
        self,
        db: AsyncSession,
        product_id: str,
        req: UpdateProductRequest,
        current_user: UserModel,
    ) -> ProductResponse:
        product = await self._require(db, product_id)
        ensure_owner_or_admin(current_user, product.owner_id)

        fields = req.model_dump(exclude_unset=True, exclude_none=True)
        if "total_bids_target" in fields:
            if product.is_closed:
                raise BiddingClosedError(product_id)
            _check_target(fields["total_bids_target"], product.current_bid_count)

        updated = await self._repo.update_product(db, product_id, fields)
        if updated is None:
            current = await self._require(db, product_id)
            if "total_bids_target" not in fields:
                raise PersistenceFailureError(f"Product {product_id} could not be updated")
            # A bid moved the count or closed the product since we read it.
            if current.is_closed:
                raise BiddingClosedError(product_id)
            _check_target(fields["total_bids_target"], current.current_bid_count)
            raise PersistenceFailureError(f"Product {product_id} could not be updated")
        return ProductResponse.from_domain(updated)

    async def delete_product(
        self, db: AsyncSession, product_id: str, current_user: UserModel
    ) -> None:
        """Delete an open product. Settled products keep their bids and winner."""
        product = await self._require(db, product_id)
        ensure_owner_or_admin(current_user, product.owner_id)
        if product.is_closed:
            raise BiddingClosedError(product_id)
        if not await self._repo.delete_product(db, product_id):
            if await self._repo.get_product(db, product_id) is None:
                raise ProductNotFoundError(product_id)
            raise BiddingClosedError(product_id)


def _check_target(target: int, bid_count: int) -> None:
    # An open product must still need at least one bid, unless it has none yet.
    if bid_count > 0 and target <= bid_count:
        raise ValidationFailureError(
            "total_bids_target must exceed the bids already placed",
            {"total_bids_target": f"must be > {bid_count}"},
        )
