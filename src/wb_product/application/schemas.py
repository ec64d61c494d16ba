"""Pydantic schemas for wb_product API requests / responses."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from src.wb_product.domain.models import Product


class CreateProductRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    image_url: str = Field(..., min_length=1, max_length=2048)
    total_bids_target: int = Field(..., ge=0)
    unit_bid_price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)


class UpdateProductRequest(BaseModel):
    """Partial update. Settlement fields are not accepted from clients."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, min_length=1)
    image_url: str | None = Field(None, min_length=1, max_length=2048)
    total_bids_target: int | None = Field(None, ge=0)
    unit_bid_price: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)


class ProductResponse(BaseModel):
    id: str
    name: str
    description: str
    image_url: str
    total_bids_target: int
    current_bid_count: int
    unit_bid_price: Decimal
    winner_id: str | None
    is_closed: bool
    owner_id: str | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, p: Product) -> "ProductResponse":
        return cls(
            id=p.id,
            name=p.name,
            description=p.description,
            image_url=p.image_url,
            total_bids_target=p.total_bids_target,
            current_bid_count=p.current_bid_count,
            unit_bid_price=p.unit_bid_price,
            winner_id=p.winner_id,
            is_closed=p.is_closed,
            owner_id=p.owner_id,
            created_at=p.created_at,
            updated_at=p.updated_at,
        )


class ProductListResponse(BaseModel):
    items: list[ProductResponse]
    limit: int
    offset: int
