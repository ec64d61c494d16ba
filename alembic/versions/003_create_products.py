"""003: create products

Revision ID: 003
Revises: 002
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE products (
            id                  UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            name                VARCHAR(200)    NOT NULL,
            description         TEXT            NOT NULL,
            image_url           VARCHAR(2048)   NOT NULL,
            total_bids_target   INTEGER         NOT NULL,
            current_bid_count   INTEGER         NOT NULL DEFAULT 0,
            unit_bid_price      NUMERIC(12, 2)  NOT NULL,
            winner_id           UUID            REFERENCES users (id) ON DELETE SET NULL,
            is_closed           BOOLEAN         NOT NULL DEFAULT FALSE,
            owner_id            UUID            REFERENCES users (id) ON DELETE SET NULL,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_products_target_non_negative CHECK (total_bids_target >= 0),
            CONSTRAINT ck_products_count_non_negative  CHECK (current_bid_count >= 0),
            CONSTRAINT ck_products_price_non_negative  CHECK (unit_bid_price >= 0),
            CONSTRAINT ck_products_winner_when_closed  CHECK (winner_id IS NULL OR is_closed)
        );
    """)
    op.execute("CREATE INDEX idx_products_open_created ON products (is_closed, created_at DESC);")
    op.execute("CREATE INDEX idx_products_owner ON products (owner_id);")
    op.execute("""
        CREATE TRIGGER trg_products_updated_at
            BEFORE UPDATE ON products
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS products CASCADE;")
