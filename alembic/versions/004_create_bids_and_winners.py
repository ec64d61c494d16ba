"""004: create bids and winners

Revision ID: 004
Revises: 003
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE bids (
            id          UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            product_id  UUID            NOT NULL REFERENCES products (id) ON DELETE CASCADE,
            user_id     UUID            NOT NULL REFERENCES users (id) ON DELETE CASCADE,
            amount      NUMERIC(12, 2)  NOT NULL,
            placed_at   TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            is_winning  BOOLEAN         NOT NULL DEFAULT FALSE,
            CONSTRAINT ck_bids_amount_min CHECK (amount >= 0.01)
        );
    """)
    op.execute("CREATE INDEX idx_bids_product_amount ON bids (product_id, amount DESC);")
    op.execute("CREATE INDEX idx_bids_user_placed ON bids (user_id, placed_at DESC);")
    # At most one winning bid per product.
    op.execute(
        "CREATE UNIQUE INDEX uq_bids_one_winner_per_product ON bids (product_id) WHERE is_winning;"
    )

    op.execute("""
        CREATE TABLE winners (
            id              UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            product_id      UUID            NOT NULL REFERENCES products (id) ON DELETE CASCADE,
            user_id         UUID            NOT NULL REFERENCES users (id) ON DELETE CASCADE,
            winning_amount  NUMERIC(12, 2)  NOT NULL,
            won_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_winners_product_id UNIQUE (product_id)
        );
    """)
    op.execute("CREATE INDEX idx_winners_user ON winners (user_id, won_at DESC);")
    op.execute("COMMENT ON TABLE winners IS 'Append-only settlement audit, one row per product';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS winners CASCADE;")
    op.execute("DROP TABLE IF EXISTS bids CASCADE;")
